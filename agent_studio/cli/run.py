"""Run an agent once and print the result."""

from __future__ import annotations

import argparse
import asyncio
import json
from typing import Any

from agent_studio.cli.common import add_agent_arguments, build_client, fail, parse_context, resolve_profile
from agent_studio.config import StudioConfig
from agent_studio.errors import AgentStudioError
from agent_studio.orchestrator import run_agent
from agent_studio.results import to_agent_response


def cmd_run(args: argparse.Namespace) -> None:
    config = StudioConfig.from_env()
    context = parse_context(args.context)
    try:
        profile = resolve_profile(args.agent)
    except (AgentStudioError, FileNotFoundError, ValueError) as e:
        fail(str(e))

    client = build_client(args.simulate, config, profile)
    try:
        result = asyncio.run(run_agent(
            profile,
            args.message,
            context,
            client=client,
            config=config,
            model=args.model,
            timeout=args.timeout,
        ))
    except AgentStudioError as e:
        fail(f"{type(e).__name__}: {e}")

    if args.format == "json":
        print(json.dumps(to_agent_response(result), indent=2))
        return

    print(result.final_text)
    print()
    for record in result.tool_calls:
        status = "ok" if record.ok else f"error: {record.error}"
        print(f"  [round {record.round}] {record.tool} ({record.latency_s:.3f}s) {status}")
    usage = result.usage
    print(
        f"{result.agent_type}: {result.state.value} after {result.rounds} rounds, "
        f"{usage.total_units} tokens ({usage.prompt_units} prompt + {usage.completion_units} completion)"
    )


def register_parser(subparsers: Any) -> None:
    parser = subparsers.add_parser("run", help="Run an agent once")
    add_agent_arguments(parser)
    parser.add_argument("--format", choices=["text", "json"], default="text", help="Output format")
    parser.set_defaults(handler=cmd_run)
