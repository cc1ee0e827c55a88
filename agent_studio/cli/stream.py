"""Stream an agent's answer to stdout as it is generated."""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Any

from agent_studio.cli.common import add_agent_arguments, build_client, fail, parse_context, resolve_profile
from agent_studio.config import StudioConfig
from agent_studio.errors import AgentStudioError
from agent_studio.orchestrator import AgentRunResult, StreamEnd, stream_agent
from agent_studio.profiles import AgentProfile


async def _stream(
    args: argparse.Namespace,
    profile: AgentProfile,
    context: dict[str, Any] | None,
    config: StudioConfig,
) -> AgentRunResult | None:
    final: AgentRunResult | None = None
    async for item in stream_agent(
        profile,
        args.message,
        context,
        client=build_client(args.simulate, config, profile),
        config=config,
        model=args.model,
        timeout=args.timeout,
    ):
        if isinstance(item, StreamEnd):
            final = item.result
        else:
            sys.stdout.write(item)
            sys.stdout.flush()
    return final


def cmd_stream(args: argparse.Namespace) -> None:
    config = StudioConfig.from_env()
    context = parse_context(args.context)
    try:
        profile = resolve_profile(args.agent)
    except (AgentStudioError, FileNotFoundError, ValueError) as e:
        fail(str(e))

    try:
        result = asyncio.run(_stream(args, profile, context, config))
    except AgentStudioError as e:
        print()
        fail(f"{type(e).__name__}: {e}")

    print()
    if result is not None and result.tool_calls:
        print(f"\nTools used: {', '.join(result.tools_used)}", file=sys.stderr)


def register_parser(subparsers: Any) -> None:
    parser = subparsers.add_parser("stream", help="Stream an agent's answer")
    add_agent_arguments(parser)
    parser.set_defaults(handler=cmd_stream)
