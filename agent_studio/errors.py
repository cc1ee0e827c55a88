"""Structured error types for agent_studio.

Tool-level errors are recoverable: the orchestration loop turns them into
error-carrying tool results so the model can retry or rephrase. Everything
else aborts the run:

    from agent_studio.errors import UpstreamError, UnknownToolError

    try:
        result = await run_agent(profile, "I want a refund", client=client)
    except UnknownToolError:
        # Model asked for a tool it was never offered: protocol mismatch
        ...
    except UpstreamError:
        # Completion API unreachable or malformed, not retried
        ...
"""

from __future__ import annotations

from typing import Any

import litellm


class AgentStudioError(Exception):
    """Base for all agent_studio errors."""

    def __init__(self, message: str, original: Exception | None = None) -> None:
        super().__init__(message)
        self.original = original


class ConfigurationError(AgentStudioError):
    """Invalid static configuration (profile, tool catalogue, custom agent)."""


# ---------------------------------------------------------------------------
# Tool errors
# ---------------------------------------------------------------------------


class ToolError(AgentStudioError):
    """Base for errors raised while resolving or running a tool."""

    def __init__(self, tool: str, message: str, original: Exception | None = None) -> None:
        super().__init__(message, original=original)
        self.tool = tool

    def to_payload(self) -> dict[str, Any]:
        """Error payload fed back to the model as the tool result."""
        return {"error": str(self)}


class SchemaValidationError(ToolError):
    """Tool arguments don't match the tool's parameter schema."""

    def __init__(self, tool: str, field: str, message: str) -> None:
        super().__init__(tool, f"Invalid argument {field!r} for {tool}: {message}")
        self.field = field

    def to_payload(self) -> dict[str, Any]:
        return {"error": str(self), "field": self.field}


class ExecutionError(ToolError):
    """Tool logic failed. Message is tool-specific and safe to show the model."""


class UnknownToolError(ToolError, KeyError):
    """Requested tool is not registered. Fatal: offered and requested tool sets disagree."""

    def __init__(self, tool: str) -> None:
        super().__init__(tool, f"Unknown tool: {tool}")

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class UnknownAgentTypeError(AgentStudioError, KeyError):
    """No agent profile is registered under the requested type."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


# ---------------------------------------------------------------------------
# Upstream (completion API) errors
# ---------------------------------------------------------------------------


class UpstreamError(AgentStudioError):
    """Completion API unreachable or returned a malformed response."""


class UpstreamRateLimitError(UpstreamError):
    """Provider rate limit or quota (429)."""


class UpstreamAuthError(UpstreamError):
    """Authentication failed (401/403): API key invalid or forbidden."""


class UpstreamTransientError(UpstreamError):
    """Server error (500/502/503), connection failure or provider timeout."""


class RunTimeoutError(UpstreamError):
    """The run exceeded its wall-clock budget and was cancelled."""


# Upstream subtype -> litellm exception class names mapping onto it.
_LITELLM_TYPE_NAMES: tuple[tuple[type[UpstreamError], tuple[str, ...]], ...] = (
    (UpstreamAuthError, ("AuthenticationError", "PermissionDeniedError")),
    (UpstreamRateLimitError, ("RateLimitError", "BudgetExceededError")),
    (
        UpstreamTransientError,
        ("InternalServerError", "ServiceUnavailableError", "APIConnectionError", "BadGatewayError", "Timeout"),
    ),
)

# Lowercased message fragments, checked in order when the type is unknown.
_MESSAGE_PATTERNS: tuple[tuple[type[UpstreamError], tuple[str, ...]], ...] = (
    (UpstreamAuthError, ("401", "403", "authentication", "unauthorized", "forbidden")),
    (UpstreamRateLimitError, ("429", "rate limit", "ratelimit", "quota", "too many requests")),
    (
        UpstreamTransientError,
        ("timeout", "timed out", "connection", "500", "502", "503", "server error", "bad gateway"),
    ),
)


def _litellm_types(names: tuple[str, ...]) -> tuple[type[BaseException], ...]:
    """litellm exception classes by name; names missing from the installed release are skipped."""
    found = (getattr(litellm, name, None) for name in names)
    return tuple(c for c in found if isinstance(c, type) and issubclass(c, BaseException))


_TYPED_RULES = tuple((target, _litellm_types(names)) for target, names in _LITELLM_TYPE_NAMES)


def classify_error(error: Exception) -> type[UpstreamError]:
    """Map a completion-call exception onto an UpstreamError subtype.

    litellm's own exception types decide first; otherwise the message is
    matched against known status codes and phrases.
    """
    for target, types in _TYPED_RULES:
        if types and isinstance(error, types):
            return target
    if isinstance(error, TimeoutError):
        return UpstreamTransientError

    message = str(error).lower()
    for target, fragments in _MESSAGE_PATTERNS:
        if any(fragment in message for fragment in fragments):
            return target
    return UpstreamError


def wrap_error(error: Exception) -> AgentStudioError:
    """Wrap a completion-call exception in the appropriate UpstreamError subclass.

    agent_studio errors are returned unchanged.
    """
    if isinstance(error, AgentStudioError):
        return error
    cls = classify_error(error)
    return cls(str(error), original=error)
