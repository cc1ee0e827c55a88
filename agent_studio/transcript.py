"""Conversation turns, tool invocation requests and usage counters.

A transcript is an ordered list of turns. Each turn knows how to render
itself as an OpenAI chat message, which is what the completion API receives.
"""

from __future__ import annotations

import json as _json
from dataclasses import dataclass, field
from typing import Any, Literal, Union

from agent_studio.errors import UpstreamError


@dataclass(frozen=True)
class ToolInvocationRequest:
    """One tool call the model asked for. ``arguments`` is the raw JSON payload."""

    tool_name: str
    call_id: str
    arguments: Any

    def to_openai(self) -> dict[str, Any]:
        arguments = self.arguments
        if not isinstance(arguments, str):
            arguments = _json.dumps(arguments)
        return {
            "id": self.call_id,
            "type": "function",
            "function": {"name": self.tool_name, "arguments": arguments},
        }


@dataclass(frozen=True)
class SystemTurn:
    content: str
    role: Literal["system"] = "system"

    def to_message(self) -> dict[str, Any]:
        return {"role": "system", "content": self.content}


@dataclass(frozen=True)
class UserTurn:
    content: str
    role: Literal["user"] = "user"

    def to_message(self) -> dict[str, Any]:
        return {"role": "user", "content": self.content}


@dataclass(frozen=True)
class AssistantTurn:
    content: str
    tool_calls: tuple[ToolInvocationRequest, ...] = ()
    role: Literal["assistant"] = "assistant"

    def to_message(self) -> dict[str, Any]:
        message: dict[str, Any] = {"role": "assistant", "content": self.content or None}
        if self.tool_calls:
            message["tool_calls"] = [tc.to_openai() for tc in self.tool_calls]
        return message


@dataclass(frozen=True)
class ToolResultTurn:
    """Result of one tool call, correlated to its request by ``call_id``."""

    tool_name: str
    call_id: str
    payload: Any
    is_error: bool = False
    role: Literal["tool"] = "tool"

    def to_message(self) -> dict[str, Any]:
        content = self.payload if isinstance(self.payload, str) else _json.dumps(self.payload)
        return {"role": "tool", "tool_call_id": self.call_id, "name": self.tool_name, "content": content}


ConversationTurn = Union[SystemTurn, UserTurn, AssistantTurn, ToolResultTurn]


def to_messages(transcript: list[ConversationTurn]) -> list[dict[str, Any]]:
    return [turn.to_message() for turn in transcript]


def parse_tool_calls(tool_calls: list[dict[str, Any]]) -> list[ToolInvocationRequest]:
    """Convert OpenAI-format tool call dicts into requests.

    Raises:
        UpstreamError: If a call has no function name or no id.
    """
    requests: list[ToolInvocationRequest] = []
    for i, tc in enumerate(tool_calls):
        fn = tc.get("function") or {}
        name = fn.get("name")
        call_id = tc.get("id")
        if not name or not call_id:
            raise UpstreamError(f"Malformed tool call at index {i}: missing name or id")
        requests.append(ToolInvocationRequest(
            tool_name=name,
            call_id=call_id,
            arguments=fn.get("arguments", "{}"),
        ))
    return requests


@dataclass
class Usage:
    """Token counters. Adding two Usage values sums every field."""

    prompt_units: int = 0
    completion_units: int = 0
    total_units: int = 0

    @classmethod
    def from_counts(cls, usage: dict[str, Any] | None) -> Usage:
        """Build from an OpenAI-style usage dict (prompt_tokens/completion_tokens).

        Also accepts the Anthropic convention (input_tokens/output_tokens).
        A missing total is derived from the parts.
        """
        usage = usage or {}
        prompt = int(usage.get("prompt_tokens") or usage.get("input_tokens") or 0)
        completion = int(usage.get("completion_tokens") or usage.get("output_tokens") or 0)
        total = int(usage.get("total_tokens") or prompt + completion)
        return cls(prompt, completion, total)

    def __add__(self, other: Usage) -> Usage:
        return Usage(
            self.prompt_units + other.prompt_units,
            self.completion_units + other.completion_units,
            self.total_units + other.total_units,
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "promptTokens": self.prompt_units,
            "completionTokens": self.completion_units,
            "totalTokens": self.total_units,
        }


@dataclass
class ToolCallRecord:
    """Record of a single tool call during a run."""

    tool: str
    call_id: str
    arguments: Any
    result: Any = None
    error: str | None = None
    latency_s: float = 0.0
    round: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class RunTrace:
    """Mutable per-run state: the transcript plus everything accumulated so far."""

    transcript: list[ConversationTurn] = field(default_factory=list)
    tool_calls: list[ToolCallRecord] = field(default_factory=list)
    usage: Usage = field(default_factory=Usage)
    rounds: int = 0
    text: str = ""
