"""Tool catalogue: every tool an agent profile can be bound to.

``ToolId`` is the closed set of tool identifiers. Each member resolves to
exactly one ToolSpec through ``resolve()``; a name outside the set fails
loudly with UnknownToolError instead of a silent attribute lookup.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

from agent_studio.errors import UnknownToolError
from agent_studio.tool_schema import ToolRegistry, ToolSpec
from agent_studio.tools import code_review, content, sales, support


class ToolId(str, Enum):
    ANALYZE_CODE_SECURITY = "analyze_code_security"
    CHECK_CODE_QUALITY = "check_code_quality"
    SUGGEST_IMPROVEMENTS = "suggest_improvements"
    RESEARCH_TOPIC = "research_topic"
    GENERATE_OUTLINE = "generate_outline"
    OPTIMIZE_FOR_SEO = "optimize_for_seo"
    SEARCH_KNOWLEDGE_BASE = "search_knowledge_base"
    CREATE_TICKET = "create_ticket"
    GET_PRODUCT_INFO = "get_product_info"
    CALCULATE_ROI = "calculate_roi"
    SCHEDULE_DEMO = "schedule_demo"

    @classmethod
    def parse(cls, name: str) -> ToolId:
        """Resolve a wire name to a ToolId. Raises UnknownToolError on miss."""
        try:
            return cls(name)
        except ValueError:
            raise UnknownToolError(name) from None


CATALOGUE = ToolRegistry(
    (*code_review.SPECS, *content.SPECS, *support.SPECS, *sales.SPECS)
)

if set(CATALOGUE.names) != {t.value for t in ToolId}:
    raise RuntimeError("ToolId members and catalogue tool names are out of sync")


def resolve(tool_id: ToolId | str) -> ToolSpec:
    """Return the ToolSpec for an identifier."""
    return CATALOGUE.get(ToolId.parse(tool_id).value)


def registry_for(tool_ids: Iterable[ToolId | str]) -> ToolRegistry:
    """Registry bound to the given tools, in order."""
    return ToolRegistry(resolve(t) for t in tool_ids)


__all__ = ["CATALOGUE", "ToolId", "registry_for", "resolve"]
