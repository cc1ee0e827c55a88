"""Agent profiles: system prompt + bound tool subset + step budget.

Profiles are process-wide static configuration. The four built-in profiles
are created at import time; custom agents build theirs from a validated
``CustomAgentConfig`` (see ``agent_studio.custom_agents``).
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from agent_studio.errors import ConfigurationError, UnknownAgentTypeError
from agent_studio.prompts import render_template
from agent_studio.tool_schema import ToolRegistry
from agent_studio.tools import ToolId, registry_for

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AgentProfile:
    """Immutable agent definition shared by every run of that agent type.

    Exactly one of ``template`` (bundled YAML prompt name) or ``instructions``
    (literal system prompt, used by custom agents) is set. ``model`` and
    ``temperature`` of None defer to StudioConfig.
    """

    agent_type: str
    display_name: str
    tools: tuple[ToolId, ...]
    max_steps: int
    template: str | None = None
    instructions: str | None = None
    model: str | None = None
    temperature: float | None = None
    handoffs: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.max_steps < 1:
            raise ConfigurationError(f"{self.agent_type}: max_steps must be positive, got {self.max_steps}")
        if (self.template is None) == (self.instructions is None):
            raise ConfigurationError(f"{self.agent_type}: set exactly one of template or instructions")
        if len(set(self.tools)) != len(self.tools):
            raise ConfigurationError(f"{self.agent_type}: duplicate tools in {self.tools}")

    @property
    def tool_names(self) -> list[str]:
        return [t.value for t in self.tools]

    def registry(self) -> ToolRegistry:
        """Registry holding only this profile's tools."""
        return registry_for(self.tools)


def render_system_prompt(profile: AgentProfile, context: Mapping[str, Any] | None = None) -> str:
    """Format the profile's system prompt, embedding the caller's context block."""
    if profile.instructions is not None:
        return profile.instructions
    if profile.template is None:
        raise ConfigurationError(f"{profile.agent_type}: no template or instructions")
    return render_template(profile.template, context=dict(context) if context is not None else None)


CODE_REVIEW = AgentProfile(
    agent_type="code-review",
    display_name="Code Review Agent",
    template="code_review",
    tools=(ToolId.ANALYZE_CODE_SECURITY, ToolId.CHECK_CODE_QUALITY, ToolId.SUGGEST_IMPROVEMENTS),
    max_steps=5,
)

CONTENT_WRITER = AgentProfile(
    agent_type="content-writer",
    display_name="Content Writer Agent",
    template="content_writer",
    tools=(ToolId.RESEARCH_TOPIC, ToolId.GENERATE_OUTLINE, ToolId.OPTIMIZE_FOR_SEO),
    max_steps=4,
)

CUSTOMER_SUPPORT = AgentProfile(
    agent_type="customer-support",
    display_name="Customer Support Agent",
    template="customer_support",
    tools=(ToolId.SEARCH_KNOWLEDGE_BASE, ToolId.CREATE_TICKET),
    max_steps=3,
)

SALES_ASSISTANT = AgentProfile(
    agent_type="sales-assistant",
    display_name="Sales Assistant",
    template="sales_assistant",
    tools=(ToolId.GET_PRODUCT_INFO, ToolId.CALCULATE_ROI, ToolId.SCHEDULE_DEMO),
    max_steps=3,
)

PROFILES: dict[str, AgentProfile] = {
    p.agent_type: p for p in (CODE_REVIEW, CONTENT_WRITER, CUSTOMER_SUPPORT, SALES_ASSISTANT)
}

# Short names accepted by the HTTP routes and the CLI.
ALIASES: dict[str, str] = {"sales": "sales-assistant", "support": "customer-support"}


def get_profile(agent_type: str) -> AgentProfile:
    """Look up a built-in profile by type or alias. Raises UnknownAgentTypeError on miss."""
    key = ALIASES.get(agent_type, agent_type)
    try:
        return PROFILES[key]
    except KeyError:
        raise UnknownAgentTypeError(
            f"Unknown agent type {agent_type!r}; expected one of: {', '.join(PROFILES)}"
        ) from None


def list_profiles() -> list[AgentProfile]:
    return list(PROFILES.values())
