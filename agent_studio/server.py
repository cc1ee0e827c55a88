"""HTTP surface: one endpoint per built-in agent, custom-agent chat and SSE streaming.

    uvicorn agent_studio.server:create_app --factory
    python -m agent_studio serve --port 8000

Every failure is logged with its traceback and collapses to a fixed
``{"error": ...}`` body; nothing about the cause reaches the caller.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable
from typing import Any

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, ConfigDict, Field

from agent_studio.completion import CompletionClient, LiteLLMCompletionClient
from agent_studio.config import StudioConfig
from agent_studio.custom_agents import load_agent_config
from agent_studio.orchestrator import StreamEnd, run_agent, stream_agent
from agent_studio.profiles import AgentProfile, get_profile, list_profiles
from agent_studio.results import SSE_DONE, sse_content, sse_error, to_agent_response, to_chat_response
from agent_studio.simulated import SimulatedCompletionClient

logger = logging.getLogger(__name__)

# Route slug -> (profile type, label used in the error message)
AGENT_ROUTES: dict[str, tuple[str, str]] = {
    "code-review": ("code-review", "code review"),
    "content-writer": ("content-writer", "content writing"),
    "customer-support": ("customer-support", "customer support"),
    "sales": ("sales-assistant", "sales"),
}

CHAT_ERROR = "Failed to process message"

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}

ClientFactory = Callable[[AgentProfile], CompletionClient]


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------


class AgentRequest(BaseModel):
    message: str = Field(min_length=1)
    context: dict[str, Any] | None = None


class ChatRequest(BaseModel):
    """Custom-agent chat body. ``agentConfig`` is validated per request."""

    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(min_length=1)
    agent_config: dict[str, Any] = Field(alias="agentConfig")


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------


def _client_factory(config: StudioConfig, client: CompletionClient | None) -> ClientFactory:
    if client is not None:
        return lambda profile: client
    if config.simulate:
        logger.info("Simulation mode: completion calls are answered locally")
        return lambda profile: SimulatedCompletionClient(agent_name=profile.display_name)
    shared = LiteLLMCompletionClient(config)
    return lambda profile: shared


def _agent_route(router: APIRouter, slug: str, agent_type: str, label: str) -> None:
    profile = get_profile(agent_type)
    failure = f"Failed to process {label} request"

    @router.post(f"/api/agents/{slug}", name=f"run_{agent_type.replace('-', '_')}")
    async def run(body: AgentRequest, request: Request) -> Any:
        state = request.app.state
        try:
            result = await run_agent(
                profile,
                body.message,
                body.context,
                client=state.client_for(profile),
                config=state.config,
            )
        except Exception:
            logger.exception("%s agent failed", agent_type)
            return JSONResponse({"error": failure}, status_code=500)
        return to_agent_response(result)


def build_router() -> APIRouter:
    router = APIRouter()

    for slug, (agent_type, label) in AGENT_ROUTES.items():
        _agent_route(router, slug, agent_type, label)

    @router.get("/api/agents")
    async def agents() -> list[dict[str, Any]]:
        return [
            {
                "agentType": p.agent_type,
                "name": p.display_name,
                "tools": p.tool_names,
                "maxSteps": p.max_steps,
            }
            for p in list_profiles()
        ]

    @router.post("/api/chat")
    async def chat(body: ChatRequest, request: Request) -> Any:
        state = request.app.state
        try:
            profile = load_agent_config(body.agent_config).to_profile()
            result = await run_agent(
                profile,
                body.message,
                client=state.client_for(profile),
                config=state.config,
            )
        except Exception:
            logger.exception("Custom agent chat failed")
            return JSONResponse({"error": CHAT_ERROR}, status_code=500)
        return to_chat_response(result, profile)

    @router.post("/api/chat/stream")
    async def chat_stream(body: ChatRequest, request: Request) -> StreamingResponse:
        state = request.app.state

        async def events() -> AsyncIterator[str]:
            try:
                profile = load_agent_config(body.agent_config).to_profile()
                async for item in stream_agent(
                    profile,
                    body.message,
                    client=state.client_for(profile),
                    config=state.config,
                ):
                    if not isinstance(item, StreamEnd):
                        yield sse_content(item)
            except Exception:
                logger.exception("Custom agent stream failed")
                yield sse_error(CHAT_ERROR)
            yield SSE_DONE

        return StreamingResponse(events(), media_type="text/event-stream", headers=SSE_HEADERS)

    @router.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return router


def create_app(
    config: StudioConfig | None = None,
    client: CompletionClient | None = None,
) -> FastAPI:
    """Build the FastAPI app.

    Args:
        config: Runtime config (default: StudioConfig.from_env())
        client: Completion client shared by all requests. When omitted, the
            litellm client is used, or a per-request simulated client when
            ``config.simulate`` is set.
    """
    config = config or StudioConfig.from_env()
    app = FastAPI(title="Agent Studio", description="Tool-calling agent runtime")
    app.state.config = config
    app.state.client_for = _client_factory(config, client)

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.warning("Invalid request body for %s %s: %s", request.method, request.url.path, exc.errors())
        return JSONResponse({"error": "Invalid request body"}, status_code=422)

    app.include_router(build_router())
    return app
