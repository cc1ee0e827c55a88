"""Completion API boundary.

The orchestration loop only talks to a ``CompletionClient``: one request per
round (transcript + tool schemas in, text or tool calls + usage out). The
production client wraps litellm, so any provider litellm supports works by
changing the model string:

    client = LiteLLMCompletionClient()
    result = await client.acomplete("gpt-4o", messages, tools=openai_tools)
    result = await client.acomplete("anthropic/claude-sonnet-4-5-20250929", messages)

Streaming returns an async iterator of text fragments that exposes the
accumulated ``CompletionResult`` once consumed:

    stream = await client.astream("gpt-4o", messages, tools=openai_tools)
    async for fragment in stream:
        print(fragment, end="", flush=True)
    print(stream.result.tool_calls)

Tests and offline demos swap in ``agent_studio.simulated.SimulatedCompletionClient``.
"""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Protocol, runtime_checkable

import litellm

from agent_studio import rate_limit as _rate_limit
from agent_studio.config import StudioConfig
from agent_studio.errors import UpstreamError, wrap_error

logger = logging.getLogger(__name__)

# Silence litellm's noisy default logging
litellm.suppress_debug_info = True


# ---------------------------------------------------------------------------
# Data
# ---------------------------------------------------------------------------


@dataclass
class CompletionResult:
    """One completion API response.

    Attributes:
        content: Text produced by the model (may be empty alongside tool calls)
        usage: Token counts (prompt_tokens, completion_tokens, total_tokens)
        model: The model string that was used
        tool_calls: OpenAI-format tool call dicts, empty for a final answer
        finish_reason: "stop", "tool_calls", "length", ... or "" if unavailable
        raw_response: The provider response object. Excluded from repr.
    """

    content: str
    usage: dict[str, Any]
    model: str
    tool_calls: list[dict[str, Any]] = field(default_factory=list)
    finish_reason: str = ""
    raw_response: Any = field(default=None, repr=False)


@runtime_checkable
class CompletionStream(Protocol):
    """Async iterator of text fragments; ``result`` is available once exhausted."""

    def __aiter__(self) -> AsyncIterator[str]: ...

    @property
    def result(self) -> CompletionResult: ...

    async def aclose(self) -> None: ...


@runtime_checkable
class CompletionClient(Protocol):
    """What the orchestration loop needs from a completion API."""

    async def acomplete(
        self,
        model: str,
        messages: list[dict[str, Any]],
        *,
        tools: list[dict[str, Any]] | None = None,
        temperature: float | None = None,
        timeout: float | None = None,
    ) -> CompletionResult: ...

    async def astream(
        self,
        model: str,
        messages: list[dict[str, Any]],
        *,
        tools: list[dict[str, Any]] | None = None,
        temperature: float | None = None,
        timeout: float | None = None,
    ) -> CompletionStream: ...


# ---------------------------------------------------------------------------
# Response helpers
# ---------------------------------------------------------------------------


def _extract_usage(response: Any) -> dict[str, Any]:
    """Extract token usage dict from a litellm response (zeros when absent)."""
    usage = getattr(response, "usage", None)
    if usage is None:
        return {"prompt_tokens": 0, "completion_tokens": 0, "total_tokens": 0}
    return {
        "prompt_tokens": usage.prompt_tokens or 0,
        "completion_tokens": usage.completion_tokens or 0,
        "total_tokens": usage.total_tokens or 0,
    }


def _extract_tool_calls(message: Any) -> list[dict[str, Any]]:
    """Extract tool calls from response message into plain dicts."""
    if not getattr(message, "tool_calls", None):
        return []
    result: list[dict[str, Any]] = []
    for tc in message.tool_calls:
        result.append({
            "id": tc.id,
            "type": getattr(tc, "type", None) or "function",
            "function": {
                "name": tc.function.name,
                "arguments": tc.function.arguments,
            },
        })
    return result


def _build_result_from_response(response: Any, model: str) -> CompletionResult:
    """Extract all fields from a litellm response into CompletionResult.

    Raises:
        UpstreamError: If the response has no choices.
    """
    choices = getattr(response, "choices", None)
    if not choices:
        raise UpstreamError(f"Malformed completion response from {model}: no choices")
    message = choices[0].message
    content: str = message.content or ""
    finish_reason: str = choices[0].finish_reason or ""
    tool_calls = _extract_tool_calls(message)
    usage = _extract_usage(response)

    logger.debug(
        "Completion: model=%s tokens=%d finish=%s tool_calls=%d",
        model,
        usage["total_tokens"],
        finish_reason,
        len(tool_calls),
    )

    return CompletionResult(
        content=content,
        usage=usage,
        model=model,
        tool_calls=tool_calls,
        finish_reason=finish_reason,
        raw_response=response,
    )


# ---------------------------------------------------------------------------
# Streaming
# ---------------------------------------------------------------------------


class AsyncCompletionStream:
    """Async streaming wrapper over a litellm chunk iterator.

    Example::

        stream = await client.astream("gpt-4o", messages)
        async for chunk in stream:
            print(chunk, end="", flush=True)
        print(stream.result.usage)
    """

    def __init__(self, response_iter: Any, model: str, slot: AsyncExitStack | None = None) -> None:
        self._iter = response_iter
        self._model = model
        # Provider rate-limit slot, held until the stream ends or is closed.
        self._slot = slot
        self._chunks_text: list[str] = []
        self._raw_chunks: list[Any] = []
        self._result: CompletionResult | None = None

    def __aiter__(self) -> AsyncCompletionStream:
        return self

    async def __anext__(self) -> str:
        try:
            chunk = await self._iter.__anext__()
        except StopAsyncIteration:
            await self._release()
            self._finalize()
            raise
        except Exception as e:
            await self._release()
            raise wrap_error(e) from e
        self._raw_chunks.append(chunk)
        text = ""
        if chunk.choices:
            delta = chunk.choices[0].delta
            text = (delta.content if delta and delta.content else "") or ""
        self._chunks_text.append(text)
        return text

    def _finalize(self) -> None:
        content = "".join(self._chunks_text)
        complete = litellm.stream_chunk_builder(self._raw_chunks) if self._raw_chunks else None
        if complete is None:
            self._result = CompletionResult(
                content=content,
                usage={"prompt_tokens": 0, "completion_tokens": 0, "total_tokens": 0},
                model=self._model,
                finish_reason="stop",
            )
            return
        result = _build_result_from_response(complete, self._model)
        # Streamed text is authoritative; the rebuilt message may drop whitespace chunks.
        result.content = content
        self._result = result

    async def _release(self) -> None:
        slot, self._slot = self._slot, None
        if slot is not None:
            await slot.aclose()

    async def aclose(self) -> None:
        closer = getattr(self._iter, "aclose", None)
        try:
            if closer is not None:
                await closer()
        finally:
            await self._release()

    @property
    def result(self) -> CompletionResult:
        """The accumulated result. Available after the stream is fully consumed."""
        if self._result is None:
            raise RuntimeError("Stream not yet consumed. Iterate first.")
        return self._result


# ---------------------------------------------------------------------------
# Production client
# ---------------------------------------------------------------------------


class LiteLLMCompletionClient:
    """CompletionClient backed by ``litellm.acompletion``.

    Upstream failures are wrapped into UpstreamError subclasses and never
    retried here; the loop surfaces them to the caller.
    """

    def __init__(self, config: StudioConfig | None = None) -> None:
        self._config = config or StudioConfig.from_env()

    def _call_kwargs(
        self,
        model: str,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None,
        temperature: float | None,
        timeout: float | None,
    ) -> dict[str, Any]:
        call_kwargs: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": self._config.temperature if temperature is None else temperature,
            "timeout": self._config.timeout if timeout is None else timeout,
            "num_retries": 0,
        }
        if tools:
            call_kwargs["tools"] = tools
            call_kwargs["tool_choice"] = "auto"
        if self._config.api_base:
            call_kwargs["api_base"] = self._config.api_base
        return call_kwargs

    async def acomplete(
        self,
        model: str,
        messages: list[dict[str, Any]],
        *,
        tools: list[dict[str, Any]] | None = None,
        temperature: float | None = None,
        timeout: float | None = None,
    ) -> CompletionResult:
        call_kwargs = self._call_kwargs(model, messages, tools, temperature, timeout)
        try:
            async with _rate_limit.aacquire(model):
                response = await litellm.acompletion(**call_kwargs)
        except Exception as e:
            raise wrap_error(e) from e
        return _build_result_from_response(response, model)

    async def astream(
        self,
        model: str,
        messages: list[dict[str, Any]],
        *,
        tools: list[dict[str, Any]] | None = None,
        temperature: float | None = None,
        timeout: float | None = None,
    ) -> AsyncCompletionStream:
        call_kwargs = self._call_kwargs(model, messages, tools, temperature, timeout)
        call_kwargs["stream"] = True
        call_kwargs["stream_options"] = {"include_usage": True}
        slot = AsyncExitStack()
        await slot.enter_async_context(_rate_limit.aacquire(model))
        try:
            try:
                response = await litellm.acompletion(**call_kwargs)
            except Exception as e:
                raise wrap_error(e) from e
        except BaseException:
            await slot.aclose()
            raise
        return AsyncCompletionStream(response, model, slot=slot)
