"""Simulated completion client for tests and offline demos.

Two modes:

- **Scripted**: responses are played back in order. Every request is recorded
  in ``client.calls`` so tests can assert on what the loop sent.

      client = SimulatedCompletionClient([
          tool_call_response(("search_knowledge_base", {"query": "refund", "category": "billing"})),
          text_response("Refunds take 5-7 business days."),
      ])

- **Improvised** (no script): the first round calls the first offered tool
  with placeholder arguments derived from its schema, the next round answers
  with a canned summary of the tool results. Lets the CLI and HTTP app run
  end to end without an API key.
"""

from __future__ import annotations

import asyncio
import copy
import itertools
import json as _json
import logging
import re
from collections.abc import Iterable
from typing import Any

from agent_studio.completion import CompletionResult
from agent_studio.errors import UpstreamError

logger = logging.getLogger(__name__)

SIMULATED_MODEL = "simulated/echo"
DEFAULT_USAGE: dict[str, int] = {"prompt_tokens": 100, "completion_tokens": 50, "total_tokens": 150}

_FRAGMENT_RE = re.compile(r"\S+\s*|\s+")
_call_ids = itertools.count(1)


def _next_call_id() -> str:
    return f"call_sim_{next(_call_ids)}"


def text_response(content: str, usage: dict[str, int] | None = None, model: str = SIMULATED_MODEL) -> CompletionResult:
    """A final-answer response."""
    return CompletionResult(
        content=content,
        usage=dict(usage or DEFAULT_USAGE),
        model=model,
        finish_reason="stop",
    )


def tool_call_response(
    *calls: tuple[str, Any] | tuple[str, Any, str],
    content: str = "",
    usage: dict[str, int] | None = None,
    model: str = SIMULATED_MODEL,
) -> CompletionResult:
    """A response requesting tools. Each call is (name, arguments[, call_id]).

    Dict arguments are JSON-encoded the way providers send them; strings are
    passed through untouched (so tests can send malformed JSON).
    """
    tool_calls: list[dict[str, Any]] = []
    for call in calls:
        name, arguments = call[0], call[1]
        call_id = call[2] if len(call) > 2 else _next_call_id()
        tool_calls.append({
            "id": call_id,
            "type": "function",
            "function": {
                "name": name,
                "arguments": arguments if isinstance(arguments, str) else _json.dumps(arguments),
            },
        })
    return CompletionResult(
        content=content,
        usage=dict(usage or DEFAULT_USAGE),
        model=model,
        tool_calls=tool_calls,
        finish_reason="tool_calls",
    )


def _placeholder_arguments(tool: dict[str, Any], user_text: str) -> dict[str, Any]:
    """Fill every required parameter with a schema-valid placeholder."""
    schema = tool.get("function", {}).get("parameters", {})
    properties: dict[str, Any] = schema.get("properties", {})
    args: dict[str, Any] = {}
    for name in schema.get("required", []):
        prop = properties.get(name, {})
        if "enum" in prop:
            args[name] = prop["enum"][0]
        elif prop.get("type") == "integer":
            args[name] = 1
        elif prop.get("type") == "number":
            args[name] = 1.0
        elif prop.get("type") == "boolean":
            args[name] = False
        elif prop.get("type") == "array":
            args[name] = []
        else:
            args[name] = user_text
    return args


class SimulatedStream:
    """Plays a CompletionResult back as word-sized text fragments."""

    def __init__(self, result: CompletionResult, fragment_delay: float = 0.0) -> None:
        self._result = result
        self._fragments = iter(_FRAGMENT_RE.findall(result.content))
        self._delay = fragment_delay
        self._done = False
        self._closed = False

    def __aiter__(self) -> SimulatedStream:
        return self

    async def __anext__(self) -> str:
        if self._closed:
            raise StopAsyncIteration
        try:
            fragment = next(self._fragments)
        except StopIteration:
            self._done = True
            raise StopAsyncIteration from None
        if self._delay:
            await asyncio.sleep(self._delay)
        return fragment

    async def aclose(self) -> None:
        self._closed = True

    @property
    def result(self) -> CompletionResult:
        if not self._done:
            raise RuntimeError("Stream not yet consumed. Iterate first.")
        return self._result


class SimulatedCompletionClient:
    """Fake CompletionClient. See module docstring."""

    def __init__(
        self,
        script: Iterable[CompletionResult] | None = None,
        *,
        fragment_delay: float = 0.0,
        agent_name: str = "Agent",
    ) -> None:
        self._script = list(script) if script is not None else None
        self._fragment_delay = fragment_delay
        self._agent_name = agent_name
        self.calls: list[dict[str, Any]] = []

    async def acomplete(
        self,
        model: str,
        messages: list[dict[str, Any]],
        *,
        tools: list[dict[str, Any]] | None = None,
        temperature: float | None = None,
        timeout: float | None = None,
    ) -> CompletionResult:
        self.calls.append({
            "model": model,
            "messages": copy.deepcopy(messages),
            "tools": copy.deepcopy(tools or []),
            "temperature": temperature,
        })
        if self._script is not None:
            if not self._script:
                raise UpstreamError("Simulated completion script exhausted")
            return self._script.pop(0)
        return self._improvise(messages, tools or [])

    async def astream(
        self,
        model: str,
        messages: list[dict[str, Any]],
        *,
        tools: list[dict[str, Any]] | None = None,
        temperature: float | None = None,
        timeout: float | None = None,
    ) -> SimulatedStream:
        result = await self.acomplete(model, messages, tools=tools, temperature=temperature, timeout=timeout)
        return SimulatedStream(result, self._fragment_delay)

    def _improvise(self, messages: list[dict[str, Any]], tools: list[dict[str, Any]]) -> CompletionResult:
        user_text = next((m["content"] for m in reversed(messages) if m.get("role") == "user"), "")
        tool_results = [m for m in messages if m.get("role") == "tool"]

        if tools and not tool_results:
            first = tools[0]
            name = first["function"]["name"]
            logger.debug("Simulated model calling %s", name)
            return tool_call_response((name, _placeholder_arguments(first, user_text)))

        lines = [f"[{self._agent_name}]: {user_text}"]
        for m in tool_results:
            lines.append(f"Tool {m.get('name', 'tool')} returned: {m['content']}")
        lines.append("*This is a simulated response - configure an API key to enable real agents*")
        return text_response("\n\n".join(lines))
