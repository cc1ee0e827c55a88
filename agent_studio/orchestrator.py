"""Agent orchestration loop: model call, tool round, repeat until done or out of steps.

Every built-in agent type and every custom agent runs through the same loop;
only the AgentProfile differs (system prompt, offered tools, step budget).

    from agent_studio import get_profile, run_agent
    from agent_studio.completion import LiteLLMCompletionClient

    result = await run_agent(
        get_profile("customer-support"),
        "I want a refund",
        context={"plan": "pro"},
        client=LiteLLMCompletionClient(),
    )
    print(result.state, result.final_text, result.usage.to_dict())

A round is one model call plus the tool calls it requested. Tool calls in a
round run concurrently and all settle before the next model call; their
results are appended in the order the model asked for them. Bad arguments and
executor failures go back to the model as error tool results. An unknown tool
name aborts the run. Running out of steps is not an error: the run ends at
STEP_LIMIT_EXCEEDED with whatever text the model produced last.

Streaming runs yield text fragments as they arrive and finish with a single
``StreamEnd`` carrying the full result:

    async for item in stream_agent(profile, "Review this code", client=client):
        if isinstance(item, StreamEnd):
            break
        print(item, end="", flush=True)
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Awaitable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeVar, Union

from agent_studio.completion import CompletionClient, CompletionResult
from agent_studio.config import StudioConfig
from agent_studio.errors import RunTimeoutError, ToolError
from agent_studio.profiles import AgentProfile, render_system_prompt
from agent_studio.tool_schema import ToolRegistry
from agent_studio.transcript import (
    AssistantTurn,
    ConversationTurn,
    RunTrace,
    SystemTurn,
    ToolCallRecord,
    ToolInvocationRequest,
    ToolResultTurn,
    Usage,
    UserTurn,
    parse_tool_calls,
    to_messages,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LoopState(str, Enum):
    AWAITING_MODEL = "awaiting_model"
    EXECUTING_TOOLS = "executing_tools"
    DONE = "done"
    STEP_LIMIT_EXCEEDED = "step_limit_exceeded"


@dataclass
class AgentRunResult:
    """Outcome of one agent run.

    Attributes:
        final_text: Text of the last model response (may be empty on step limit)
        tool_calls: Every tool call made, in round then request order
        usage: Token usage summed over all rounds
        state: DONE or STEP_LIMIT_EXCEEDED
        rounds: Number of model calls made
        transcript: Full conversation, system turn first
        agent_type: Profile the run used
        model: Model string sent to the completion API
    """

    final_text: str
    tool_calls: list[ToolCallRecord]
    usage: Usage
    state: LoopState
    rounds: int
    transcript: list[ConversationTurn] = field(default_factory=list, repr=False)
    agent_type: str = ""
    model: str = ""

    @property
    def step_limit_exceeded(self) -> bool:
        return self.state is LoopState.STEP_LIMIT_EXCEEDED

    @property
    def tools_used(self) -> list[str]:
        """Distinct tool names in first-use order."""
        return list(dict.fromkeys(record.tool for record in self.tool_calls))


@dataclass(frozen=True)
class StreamEnd:
    """Last item of a streaming run."""

    result: AgentRunResult


StreamItem = Union[str, StreamEnd]


# ---------------------------------------------------------------------------
# Tool rounds
# ---------------------------------------------------------------------------


async def _invoke_one(
    registry: ToolRegistry,
    request: ToolInvocationRequest,
    round_no: int,
) -> tuple[ToolCallRecord, ToolResultTurn]:
    record = ToolCallRecord(
        tool=request.tool_name,
        call_id=request.call_id,
        arguments=request.arguments,
        round=round_no,
    )
    t0 = time.monotonic()
    try:
        record.result = await registry.invoke(request.tool_name, request.arguments)
        turn = ToolResultTurn(request.tool_name, request.call_id, record.result)
    except ToolError as exc:
        logger.warning("Tool %s failed (call %s): %s", request.tool_name, request.call_id, exc)
        record.error = str(exc)
        turn = ToolResultTurn(request.tool_name, request.call_id, exc.to_payload(), is_error=True)
    record.latency_s = round(time.monotonic() - t0, 3)
    return record, turn


async def execute_tool_round(
    registry: ToolRegistry,
    requests: list[ToolInvocationRequest],
    round_no: int = 0,
) -> tuple[list[ToolCallRecord], list[ToolResultTurn]]:
    """Run one round of tool calls concurrently.

    Every tool is resolved before anything runs, so an unknown name aborts
    the round with UnknownToolError and no executor is started. A failing
    call never cancels its siblings. Records and turns come back in request
    order.
    """
    for request in requests:
        registry.get(request.tool_name)

    outcomes = await asyncio.gather(
        *(_invoke_one(registry, request, round_no) for request in requests),
        return_exceptions=True,
    )

    records: list[ToolCallRecord] = []
    turns: list[ToolResultTurn] = []
    for outcome in outcomes:
        if isinstance(outcome, BaseException):
            raise outcome
        record, turn = outcome
        records.append(record)
        turns.append(turn)
    return records, turns


# ---------------------------------------------------------------------------
# Run state
# ---------------------------------------------------------------------------


class _AgentRun:
    """Per-run state shared by the blocking and streaming drivers."""

    def __init__(
        self,
        profile: AgentProfile,
        message: str,
        context: Mapping[str, Any] | None,
        config: StudioConfig,
        model: str | None,
    ) -> None:
        self.profile = profile
        self.registry = profile.registry()
        self.openai_tools = self.registry.to_openai_tools() or None
        self.model = model or profile.model or config.model
        self.temperature = profile.temperature if profile.temperature is not None else config.temperature
        self.state = LoopState.AWAITING_MODEL
        self.trace = RunTrace(transcript=[
            SystemTurn(render_system_prompt(profile, context)),
            UserTurn(message),
        ])

    def next_round(self) -> list[dict[str, Any]]:
        self.trace.rounds += 1
        logger.debug(
            "%s round %d/%d: model=%s",
            self.profile.agent_type, self.trace.rounds, self.profile.max_steps, self.model,
        )
        return to_messages(self.trace.transcript)

    def absorb(self, response: CompletionResult) -> list[ToolInvocationRequest]:
        """Fold one model response into the trace. Returns the requested tool calls."""
        self.trace.usage = self.trace.usage + Usage.from_counts(response.usage)
        requests = parse_tool_calls(response.tool_calls)
        if response.content or not requests:
            self.trace.text = response.content
        self.trace.transcript.append(AssistantTurn(response.content, tuple(requests)))
        self.state = LoopState.EXECUTING_TOOLS if requests else LoopState.DONE
        return requests

    async def execute(self, requests: list[ToolInvocationRequest]) -> None:
        logger.debug(
            "%s round %d tools: %s",
            self.profile.agent_type, self.trace.rounds, [r.tool_name for r in requests],
        )
        records, turns = await execute_tool_round(self.registry, requests, self.trace.rounds)
        self.trace.tool_calls.extend(records)
        self.trace.transcript.extend(turns)
        if self.trace.rounds >= self.profile.max_steps:
            logger.info(
                "%s hit step limit after %d rounds",
                self.profile.agent_type, self.trace.rounds,
            )
            self.state = LoopState.STEP_LIMIT_EXCEEDED
        else:
            self.state = LoopState.AWAITING_MODEL

    @property
    def finished(self) -> bool:
        return self.state in (LoopState.DONE, LoopState.STEP_LIMIT_EXCEEDED)

    def result(self) -> AgentRunResult:
        return AgentRunResult(
            final_text=self.trace.text,
            tool_calls=list(self.trace.tool_calls),
            usage=self.trace.usage,
            state=self.state,
            rounds=self.trace.rounds,
            transcript=list(self.trace.transcript),
            agent_type=self.profile.agent_type,
            model=self.model,
        )


def _timeout_error(profile: AgentProfile, timeout: float) -> RunTimeoutError:
    return RunTimeoutError(f"{profile.agent_type} run exceeded {timeout:g}s")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def run_agent(
    profile: AgentProfile,
    message: str,
    context: Mapping[str, Any] | None = None,
    *,
    client: CompletionClient,
    config: StudioConfig | None = None,
    model: str | None = None,
    timeout: float | None = None,
) -> AgentRunResult:
    """Run an agent to completion.

    Args:
        profile: Agent definition (prompt, tools, step budget)
        message: The user's message
        context: Optional caller context rendered into the system prompt
        client: Completion API client
        config: Runtime config (default: StudioConfig.from_env())
        model: Override the profile/config model
        timeout: Wall-clock budget in seconds (default: config.timeout)

    Raises:
        UnknownToolError: The model asked for a tool it was not offered.
        UpstreamError: The completion API failed or returned garbage.
        RunTimeoutError: The run exceeded ``timeout``.
    """
    config = config or StudioConfig.from_env()
    budget = config.timeout if timeout is None else timeout
    run = _AgentRun(profile, message, context, config, model)

    async def _drive() -> AgentRunResult:
        while not run.finished:
            response = await client.acomplete(
                run.model,
                run.next_round(),
                tools=run.openai_tools,
                temperature=run.temperature,
            )
            requests = run.absorb(response)
            if requests:
                await run.execute(requests)
        return run.result()

    try:
        return await asyncio.wait_for(_drive(), budget)
    except asyncio.TimeoutError:
        logger.warning("%s run timed out after %ss", profile.agent_type, budget)
        raise _timeout_error(profile, budget) from None


async def stream_agent(
    profile: AgentProfile,
    message: str,
    context: Mapping[str, Any] | None = None,
    *,
    client: CompletionClient,
    config: StudioConfig | None = None,
    model: str | None = None,
    timeout: float | None = None,
) -> AsyncIterator[StreamItem]:
    """Streaming variant of run_agent.

    Yields non-empty text fragments from every model call (including text
    produced alongside tool calls), then exactly one StreamEnd. Closing the
    generator early closes the in-flight model stream and stops the run.
    Raises the same errors as run_agent.
    """
    config = config or StudioConfig.from_env()
    budget = config.timeout if timeout is None else timeout
    run = _AgentRun(profile, message, context, config, model)
    loop = asyncio.get_running_loop()
    deadline = loop.time() + budget

    async def _within(aw: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(aw, max(deadline - loop.time(), 0.0))
        except asyncio.TimeoutError:
            logger.warning("%s stream timed out after %ss", profile.agent_type, budget)
            raise _timeout_error(profile, budget) from None

    while not run.finished:
        stream = await _within(client.astream(
            run.model,
            run.next_round(),
            tools=run.openai_tools,
            temperature=run.temperature,
        ))
        fragments = stream.__aiter__()
        try:
            while True:
                try:
                    fragment = await _within(fragments.__anext__())
                except StopAsyncIteration:
                    break
                if fragment:
                    yield fragment
        finally:
            await stream.aclose()

        requests = run.absorb(stream.result)
        if requests:
            await _within(run.execute(requests))

    yield StreamEnd(run.result())
