"""Shared CLI helpers for agent_studio commands."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any, NoReturn

from agent_studio.completion import CompletionClient, LiteLLMCompletionClient
from agent_studio.config import StudioConfig
from agent_studio.custom_agents import load_agent_config
from agent_studio.profiles import AgentProfile, get_profile
from agent_studio.simulated import SimulatedCompletionClient

_CONFIG_SUFFIXES = {".json", ".yaml", ".yml"}


def fail(message: str) -> NoReturn:
    print(f"Error: {message}", file=sys.stderr)
    sys.exit(1)


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def resolve_profile(agent: str) -> AgentProfile:
    """Built-in profile by type/alias, or a custom agent loaded from a JSON/YAML file."""
    if Path(agent).suffix.lower() in _CONFIG_SUFFIXES:
        return load_agent_config(agent).to_profile()
    return get_profile(agent)


def parse_context(raw: str | None) -> dict[str, Any] | None:
    if raw is None:
        return None
    try:
        context = json.loads(raw)
    except json.JSONDecodeError as exc:
        fail(f"--context is not valid JSON: {exc}")
    if not isinstance(context, dict):
        fail("--context must be a JSON object")
    return context


def build_client(simulate: bool, config: StudioConfig, profile: AgentProfile) -> CompletionClient:
    if simulate or config.simulate:
        return SimulatedCompletionClient(agent_name=profile.display_name)
    return LiteLLMCompletionClient(config)


def add_agent_arguments(parser: Any) -> None:
    parser.add_argument("agent", help="Agent type (code-review, content-writer, customer-support, sales) or a .json/.yaml custom agent file")
    parser.add_argument("message", help="User message")
    parser.add_argument("--context", help="JSON object rendered into the system prompt")
    parser.add_argument("--model", help="Override the model string")
    parser.add_argument("--timeout", type=float, help="Run timeout in seconds")
    parser.add_argument("--simulate", action="store_true", help="Answer locally instead of calling the completion API")
