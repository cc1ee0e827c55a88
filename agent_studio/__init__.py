"""Tool-calling agent runtime: profiles, tools and the orchestration loop.

Swap any model by changing the model string. Everything else stays the same.

Usage:
    from agent_studio import get_profile, run_agent, LiteLLMCompletionClient

    result = await run_agent(
        get_profile("sales"),
        "We're a team of 10 spending 20 hours a week on reports",
        client=LiteLLMCompletionClient(),
    )
    print(result.final_text, result.usage.to_dict())

    # Custom agents
    from agent_studio import load_agent_config

    profile = load_agent_config("agents/helpdesk.yaml").to_profile()

    # Streaming
    async for item in stream_agent(profile, "Hello", client=client):
        ...

    # Offline
    from agent_studio import SimulatedCompletionClient
"""

import logging as _logging
import os as _os
from pathlib import Path as _Path

_DEFAULT_KEYS_FILE = _Path.home() / ".secrets" / "api_keys.env"
_log = _logging.getLogger(__name__)


def _load_api_keys() -> int:
    """Load API keys from env file into os.environ on import.

    Reads from AGENT_STUDIO_KEYS_FILE env var, or ~/.secrets/api_keys.env.
    Skips comments, empty lines, and keys already set in the environment.
    Returns the number of keys loaded.
    """
    keys_file = _Path(_os.environ.get("AGENT_STUDIO_KEYS_FILE", str(_DEFAULT_KEYS_FILE)))
    if not keys_file.is_file():
        return 0
    loaded = 0
    for line in keys_file.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[7:]
        key, sep, value = line.partition("=")
        key = key.strip()
        if not sep or not key or key in _os.environ:
            continue
        _os.environ[key] = value.strip().strip("\"'")
        loaded += 1
    if loaded:
        _log.debug("agent_studio: loaded %d API keys from %s", loaded, keys_file)
    return loaded


_load_api_keys()

from agent_studio.completion import CompletionClient, CompletionResult, LiteLLMCompletionClient
from agent_studio.config import StudioConfig
from agent_studio.custom_agents import AgentConfigValidationError, CustomAgentConfig, load_agent_config
from agent_studio.errors import (
    AgentStudioError,
    ConfigurationError,
    ExecutionError,
    RunTimeoutError,
    SchemaValidationError,
    ToolError,
    UnknownAgentTypeError,
    UnknownToolError,
    UpstreamAuthError,
    UpstreamError,
    UpstreamRateLimitError,
    UpstreamTransientError,
)
from agent_studio.orchestrator import AgentRunResult, LoopState, StreamEnd, run_agent, stream_agent
from agent_studio.profiles import AgentProfile, get_profile, list_profiles, render_system_prompt
from agent_studio.rate_limit import configure as configure_rate_limit
from agent_studio.results import to_agent_response, to_chat_response
from agent_studio.simulated import SimulatedCompletionClient
from agent_studio.tool_schema import ParamSpec, ParamType, ToolRegistry, ToolSpec, validate_arguments
from agent_studio.tools import CATALOGUE, ToolId
from agent_studio.transcript import ToolCallRecord, Usage

__all__ = [
    "AgentConfigValidationError",
    "AgentProfile",
    "AgentRunResult",
    "AgentStudioError",
    "CATALOGUE",
    "CompletionClient",
    "CompletionResult",
    "ConfigurationError",
    "CustomAgentConfig",
    "ExecutionError",
    "LiteLLMCompletionClient",
    "LoopState",
    "ParamSpec",
    "ParamType",
    "RunTimeoutError",
    "SchemaValidationError",
    "SimulatedCompletionClient",
    "StreamEnd",
    "StudioConfig",
    "ToolCallRecord",
    "ToolError",
    "ToolId",
    "ToolRegistry",
    "ToolSpec",
    "UnknownAgentTypeError",
    "UnknownToolError",
    "UpstreamAuthError",
    "UpstreamError",
    "UpstreamRateLimitError",
    "UpstreamTransientError",
    "Usage",
    "configure_rate_limit",
    "get_profile",
    "list_profiles",
    "load_agent_config",
    "render_system_prompt",
    "run_agent",
    "stream_agent",
    "to_agent_response",
    "to_chat_response",
    "validate_arguments",
]
