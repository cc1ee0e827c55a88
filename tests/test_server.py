"""Tests for the HTTP surface.

# mock-ok: completion calls are a scripted SimulatedCompletionClient; routing,
# tool execution and response shaping are real
"""

from __future__ import annotations

import json
from typing import Any

import pytest
from fastapi.testclient import TestClient

from agent_studio.completion import CompletionResult
from agent_studio.config import StudioConfig
from agent_studio.server import create_app
from agent_studio.simulated import SimulatedCompletionClient, text_response, tool_call_response

CONFIG = StudioConfig(model="test-model", timeout=10.0)

CUSTOM_AGENT = {
    "name": "Helpdesk",
    "instructions": "You answer billing questions.",
    "tools": ["search_knowledge_base"],
    "handoffs": ["Billing Specialist"],
}


def _app(*script: CompletionResult) -> tuple[TestClient, SimulatedCompletionClient]:
    client = SimulatedCompletionClient(list(script))
    return TestClient(create_app(CONFIG, client=client)), client


def _sse_payloads(body: str) -> list[Any]:
    frames = [frame for frame in body.split("\n\n") if frame]
    assert all(frame.startswith("data: ") for frame in frames)
    payloads: list[Any] = []
    for frame in frames:
        data = frame[len("data: "):]
        payloads.append(data if data == "[DONE]" else json.loads(data))
    return payloads


# ---------------------------------------------------------------------------
# Per-agent endpoints
# ---------------------------------------------------------------------------


class TestAgentEndpoints:
    def test_customer_support_refund(self):
        http, client = _app(
            tool_call_response(("search_knowledge_base", {"query": "I want a refund", "category": "billing"})),
            text_response("Refunds are processed within 5-7 business days."),
        )
        resp = http.post("/api/agents/customer-support", json={"message": "I want a refund", "context": {"plan": "pro"}})

        assert resp.status_code == 200
        body = resp.json()
        assert body["response"] == "Refunds are processed within 5-7 business days."
        assert body["agentType"] == "customer-support"
        assert body["usage"] == {"promptTokens": 200, "completionTokens": 100, "totalTokens": 300}
        assert [c["tool"] for c in body["toolCalls"]] == ["search_knowledge_base"]
        assert len(body["toolCalls"][0]["result"]["results"]) == 3
        assert 'Customer Context: {"plan":"pro"}' in client.calls[0]["messages"][0]["content"]

    def test_sales_route_uses_sales_assistant(self):
        http, client = _app(text_response("Our Starter plan is $29/month."))
        body = http.post("/api/agents/sales", json={"message": "Pricing?"}).json()

        assert body["agentType"] == "sales-assistant"
        assert body["toolCalls"] == []
        offered = [t["function"]["name"] for t in client.calls[0]["tools"]]
        assert offered == ["get_product_info", "calculate_roi", "schedule_demo"]

    def test_tool_error_is_reported_in_tool_calls(self):
        http, _ = _app(
            tool_call_response(("calculate_roi", {"currentCost": 100, "teamSize": 0, "timeSpent": 5})),
            text_response("How big is your team?"),
        )
        body = http.post("/api/agents/sales", json={"message": "ROI?"}).json()
        assert "teamSize" in body["toolCalls"][0]["result"]["error"]

    @pytest.mark.parametrize(
        ("slug", "message"),
        [
            ("code-review", "Failed to process code review request"),
            ("content-writer", "Failed to process content writing request"),
            ("customer-support", "Failed to process customer support request"),
            ("sales", "Failed to process sales request"),
        ],
    )
    def test_failures_collapse_to_fixed_message(self, slug, message):
        http, _ = _app()  # empty script: the first model call fails
        resp = http.post(f"/api/agents/{slug}", json={"message": "Hi"})
        assert resp.status_code == 500
        assert resp.json() == {"error": message}

    def test_unknown_tool_is_500(self):
        http, _ = _app(tool_call_response(("file_search", {"q": "x"})))
        resp = http.post("/api/agents/code-review", json={"message": "Review"})
        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to process code review request"}

    def test_invalid_body_is_422(self):
        http, client = _app()
        resp = http.post("/api/agents/customer-support", json={"context": {}})
        assert resp.status_code == 422
        assert resp.json() == {"error": "Invalid request body"}
        assert client.calls == []

    def test_empty_message_is_422(self):
        http, _ = _app()
        assert http.post("/api/agents/sales", json={"message": ""}).status_code == 422

    def test_unknown_route_is_404(self):
        http, _ = _app()
        assert http.post("/api/agents/legal", json={"message": "Hi"}).status_code == 404


# ---------------------------------------------------------------------------
# Custom-agent chat
# ---------------------------------------------------------------------------


class TestChat:
    def test_chat(self):
        http, client = _app(
            tool_call_response(("search_knowledge_base", {"query": "billing", "category": "billing"})),
            text_response("Billing runs monthly."),
        )
        resp = http.post("/api/chat", json={"message": "When am I billed?", "agentConfig": CUSTOM_AGENT})

        assert resp.status_code == 200
        assert resp.json() == {
            "content": "Billing runs monthly.",
            "toolsUsed": ["search_knowledge_base"],
            "usage": {"promptTokens": 200, "completionTokens": 100, "totalTokens": 300},
            "handoffSuggestion": "Billing Specialist",
        }
        assert client.calls[0]["messages"][0] == {"role": "system", "content": "You answer billing questions."}

    def test_invalid_agent_config_is_500(self):
        http, client = _app(text_response("unused"))
        bad = dict(CUSTOM_AGENT, tools=["web_search_preview"])
        resp = http.post("/api/chat", json={"message": "Hi", "agentConfig": bad})

        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to process message"}
        assert client.calls == []

    def test_missing_agent_config_is_422(self):
        http, _ = _app()
        assert http.post("/api/chat", json={"message": "Hi"}).status_code == 422


class TestChatStream:
    def test_stream_frames(self):
        http, _ = _app(text_response("Billing runs monthly."))
        resp = http.post("/api/chat/stream", json={"message": "Hi", "agentConfig": CUSTOM_AGENT})

        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/event-stream")
        assert resp.headers["cache-control"] == "no-cache"
        payloads = _sse_payloads(resp.text)
        assert payloads[-1] == "[DONE]"
        assert "".join(p["content"] for p in payloads[:-1]) == "Billing runs monthly."

    def test_stream_error_frame_then_done(self):
        http, _ = _app()
        resp = http.post("/api/chat/stream", json={"message": "Hi", "agentConfig": CUSTOM_AGENT})

        assert resp.status_code == 200
        assert _sse_payloads(resp.text) == [{"error": "Failed to process message"}, "[DONE]"]

    def test_invalid_config_streams_error(self):
        http, _ = _app()
        bad = dict(CUSTOM_AGENT, instructions="")
        resp = http.post("/api/chat/stream", json={"message": "Hi", "agentConfig": bad})
        assert _sse_payloads(resp.text) == [{"error": "Failed to process message"}, "[DONE]"]


# ---------------------------------------------------------------------------
# Discovery and health
# ---------------------------------------------------------------------------


class TestMisc:
    def test_list_agents(self):
        http, _ = _app()
        agents = http.get("/api/agents").json()
        assert [a["agentType"] for a in agents] == [
            "code-review",
            "content-writer",
            "customer-support",
            "sales-assistant",
        ]
        support = agents[2]
        assert support["tools"] == ["search_knowledge_base", "create_ticket"]
        assert support["maxSteps"] == 3

    def test_health(self):
        http, _ = _app()
        assert http.get("/health").json() == {"status": "ok"}

    def test_simulate_mode_without_client(self):
        http = TestClient(create_app(StudioConfig(simulate=True, timeout=10.0)))
        body = http.post("/api/agents/sales", json={"message": "Tell me about plans"}).json()

        assert body["agentType"] == "sales-assistant"
        assert body["response"].startswith("[Sales Assistant]: Tell me about plans")
        assert [c["tool"] for c in body["toolCalls"]] == ["get_product_info"]
