"""Customer-support tools: knowledge-base search and ticket creation."""

from __future__ import annotations

import re
from typing import Any

from agent_studio.tool_schema import ParamSpec, ParamType, ToolSpec
from agent_studio.tools.common import token_id

KNOWLEDGE_BASE: dict[str, tuple[str, ...]] = {
    "billing": (
        "Billing cycles run monthly on the date you signed up",
        "You can update payment methods in Account Settings",
        "Refunds are processed within 5-7 business days",
    ),
    "technical": (
        "Try clearing your browser cache and cookies",
        "Check if JavaScript is enabled in your browser",
        "Our system status page shows current uptime",
    ),
    "account": (
        "Password resets are sent to your registered email",
        "You can update your profile in Account Settings",
        "Account deletion requests take 24-48 hours to process",
    ),
    "general": (
        "Our support hours are 9 AM - 6 PM EST, Monday-Friday",
        "Premium users get priority support response",
        "You can reach us via chat, email, or phone",
    ),
}

MAX_KB_RESULTS = 3
_MIN_TERM_LENGTH = 3
_WORD_RE = re.compile(r"[a-z0-9]+")

RESPONSE_TIMES: dict[str, str] = {
    "urgent": "1 hour",
    "high": "4 hours",
}
DEFAULT_RESPONSE_TIME = "24 hours"


def _query_terms(query: str) -> list[str]:
    return [w for w in _WORD_RE.findall(query.lower()) if len(w) >= _MIN_TERM_LENGTH]


def _matches(entry: str, query: str, terms: list[str]) -> bool:
    text = entry.lower()
    phrase = query.strip().lower()
    if phrase and phrase in text:
        return True
    return any(term in text for term in terms)


async def search_knowledge_base(args: dict[str, Any]) -> dict[str, Any]:
    query: str = args["query"]
    category: str | None = args.get("category")
    terms = _query_terms(query)

    if category:
        # Within a category every entry is relevant; matches just sort first.
        entries = KNOWLEDGE_BASE[category]
        hits = [e for e in entries if _matches(e, query, terms)]
        results = hits + [e for e in entries if e not in hits]
    else:
        results = [
            entry
            for entries in KNOWLEDGE_BASE.values()
            for entry in entries
            if _matches(entry, query, terms)
        ]

    return {
        "results": results[:MAX_KB_RESULTS],
        "category": category or "general",
    }


async def create_ticket(args: dict[str, Any]) -> dict[str, Any]:
    ticket_id = token_id("TICK")
    return {
        "ticketId": ticket_id,
        "title": args["title"],
        "priority": args["priority"],
        "category": args["category"],
        "status": "created",
        "estimatedResponse": RESPONSE_TIMES.get(args["priority"], DEFAULT_RESPONSE_TIME),
        "message": f"Ticket {ticket_id} has been created. You'll receive updates via email.",
    }


SPECS: tuple[ToolSpec, ...] = (
    ToolSpec(
        name="search_knowledge_base",
        description="Search the company knowledge base for answers",
        parameters=(
            ParamSpec("query", ParamType.STRING, "Search query for the knowledge base"),
            ParamSpec(
                "category",
                ParamType.STRING,
                "Knowledge base section to search",
                required=False,
                enum=tuple(KNOWLEDGE_BASE),
            ),
        ),
        executor=search_knowledge_base,
    ),
    ToolSpec(
        name="create_ticket",
        description="Create a support ticket for complex issues",
        parameters=(
            ParamSpec("title", ParamType.STRING, "Brief title for the ticket"),
            ParamSpec("description", ParamType.STRING, "Detailed description of the issue"),
            ParamSpec("priority", ParamType.STRING, "Ticket priority", enum=("low", "medium", "high", "urgent")),
            ParamSpec(
                "category",
                ParamType.STRING,
                "Ticket category",
                enum=("billing", "technical", "account", "feature_request"),
            ),
        ),
        executor=create_ticket,
    ),
)
