"""Normalize agent runs into transport-agnostic response payloads.

Field names are camelCase to match the studio's JSON wire format.
"""

from __future__ import annotations

import json as _json
from typing import Any

from agent_studio.orchestrator import AgentRunResult
from agent_studio.profiles import AgentProfile

SSE_DONE = "data: [DONE]\n\n"


def to_agent_response(result: AgentRunResult) -> dict[str, Any]:
    """Payload for the per-agent-type endpoints.

    ``toolCalls`` lists every call in order; a failed call reports its error
    payload as the result so callers can see what the model saw.
    """
    return {
        "response": result.final_text,
        "toolCalls": [
            {"tool": record.tool, "result": record.result if record.ok else {"error": record.error}}
            for record in result.tool_calls
        ],
        "usage": result.usage.to_dict(),
        "agentType": result.agent_type,
    }


def to_chat_response(result: AgentRunResult, profile: AgentProfile) -> dict[str, Any]:
    """Payload for custom-agent chat. Suggests the first configured handoff, if any."""
    return {
        "content": result.final_text,
        "toolsUsed": result.tools_used,
        "usage": result.usage.to_dict(),
        "handoffSuggestion": profile.handoffs[0] if profile.handoffs else None,
    }


def sse_event(payload: dict[str, Any]) -> str:
    """One Server-Sent Events frame carrying a JSON payload."""
    return f"data: {_json.dumps(payload)}\n\n"


def sse_content(fragment: str) -> str:
    return sse_event({"content": fragment})


def sse_error(message: str) -> str:
    return sse_event({"error": message})
