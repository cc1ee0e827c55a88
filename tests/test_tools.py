"""Tests for the tool catalogue (agent_studio.tools).

Executors are pure heuristics, so these run them for real through the
catalogue registry (validation included).
"""

from __future__ import annotations

import re

import pytest

from agent_studio.errors import ExecutionError, SchemaValidationError, UnknownToolError
from agent_studio.tools import CATALOGUE, ToolId, registry_for, resolve
from agent_studio.tools.common import round_half_up
from agent_studio.tools.support import KNOWLEDGE_BASE


async def _call(name: str, **args):
    return await CATALOGUE.invoke(name, args)


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------


class TestCatalogue:
    def test_every_tool_id_resolves(self) -> None:
        for tool_id in ToolId:
            assert resolve(tool_id).name == tool_id.value

    def test_resolve_by_string(self) -> None:
        assert resolve("calculate_roi").name == "calculate_roi"

    def test_unknown_id(self) -> None:
        with pytest.raises(UnknownToolError):
            ToolId.parse("web_search_preview")
        with pytest.raises(UnknownToolError):
            resolve("file_search")

    def test_registry_for_keeps_order(self) -> None:
        registry = registry_for([ToolId.SCHEDULE_DEMO, ToolId.GET_PRODUCT_INFO])
        assert registry.names == ["schedule_demo", "get_product_info"]


class TestRoundHalfUp:
    def test_halves_go_up(self) -> None:
        assert round_half_up(2.5) == 3
        assert round_half_up(0.5) == 1
        assert round_half_up(114.5) == 115

    def test_decimals(self) -> None:
        assert round_half_up(1.125, 2) == 1.13
        assert round_half_up(33.333333, 2) == 33.33

    def test_int_result(self) -> None:
        assert isinstance(round_half_up(2728.28), int)


# ---------------------------------------------------------------------------
# Code review
# ---------------------------------------------------------------------------


class TestCodeReviewTools:
    @pytest.mark.asyncio
    async def test_security_flags_eval(self) -> None:
        result = await _call("analyze_code_security", code="x = eval(user_input)", language="python")
        assert [v["type"] for v in result["vulnerabilities"]] == ["Code Injection"]
        assert result["vulnerabilities"][0]["severity"] == "High"
        assert result["riskLevel"] == "Medium"
        assert result["commonRisks"] == ["SQL injection", "Command injection", "Unsafe deserialization"]

    @pytest.mark.asyncio
    async def test_security_flags_sql_concatenation(self) -> None:
        code = 'q = "SELECT * FROM users WHERE id=" + user_id'
        result = await _call("analyze_code_security", code=code, language="java")
        assert result["vulnerabilities"][0]["type"] == "SQL Injection"
        assert result["vulnerabilities"][0]["severity"] == "Critical"

    @pytest.mark.asyncio
    async def test_security_clean_code(self) -> None:
        result = await _call("analyze_code_security", code="print('hi')", language="rust")
        assert result["vulnerabilities"] == []
        assert result["riskLevel"] == "Low"
        assert result["commonRisks"] == []
        assert len(result["recommendations"]) == 3

    @pytest.mark.asyncio
    async def test_quality_perfect_score(self) -> None:
        result = await _call("check_code_quality", code="# add\ndef add(a, b):\n    return a + b", language="python")
        assert result["qualityScore"] == 100
        assert result["issues"] == []

    @pytest.mark.asyncio
    async def test_quality_all_penalties(self) -> None:
        code = "x" * 121 + "\n" + "\n".join(f"def f{i}(): pass" for i in range(11))
        result = await _call("check_code_quality", code=code, language="python")
        assert result["qualityScore"] == 100 - 5 - 15 - 10
        assert {i["type"] for i in result["issues"]} == {"Line Length", "Documentation", "Complexity"}

    @pytest.mark.asyncio
    async def test_improvements_focus(self) -> None:
        result = await _call("suggest_improvements", code="x", language="python", focus="performance")
        assert [i["category"] for i in result["improvements"]] == ["Performance"]
        assert result["refactoringPriority"] == "Medium"
        assert result["estimatedEffort"] == "2-4 hours"

    @pytest.mark.asyncio
    async def test_improvements_default_all(self) -> None:
        result = await _call("suggest_improvements", code="x", language="python")
        assert [i["category"] for i in result["improvements"]] == ["Performance", "Readability", "Maintainability"]


# ---------------------------------------------------------------------------
# Content writer
# ---------------------------------------------------------------------------


class TestContentTools:
    @pytest.mark.asyncio
    async def test_research_mentions_topic_and_audience(self) -> None:
        result = await _call("research_topic", topic="solar panels", contentType="blog", targetAudience="homeowners")
        assert "solar panels is trending in homeowners communities" in result["keyPoints"]
        assert {"keyPoints", "statistics", "competitorAnalysis", "seoKeywords"} <= set(result)

    @pytest.mark.asyncio
    async def test_outline_words_per_section(self) -> None:
        result = await _call(
            "generate_outline", topic="AI", contentType="article", wordCount=1000, tone="technical",
        )
        assert result["estimatedSections"] == 7
        assert result["structure"][0] == "Executive Summary"
        # 1000 / 7 = 142.86
        assert result["wordsPerSection"] == 143
        assert result["tone"] == "technical"

    @pytest.mark.asyncio
    async def test_outline_falls_back_to_blog(self) -> None:
        result = await _call("generate_outline", topic="AI", contentType="email", wordCount=700, tone="casual")
        assert result["structure"][0] == "Hook/Opening Question"
        assert result["wordsPerSection"] == 100

    @pytest.mark.asyncio
    async def test_outline_rejects_non_positive_word_count(self) -> None:
        with pytest.raises(ExecutionError):
            await _call("generate_outline", topic="AI", contentType="blog", wordCount=0, tone="casual")

    @pytest.mark.asyncio
    async def test_seo_keyword_density(self) -> None:
        content = "solar power is cheap and solar is clean"
        result = await _call(
            "optimize_for_seo", content=content, primaryKeyword="solar", secondaryKeywords=["clean", "wind"],
        )
        # 2 of 8 words
        assert result["keywordDensity"]["primary"] == 25.0
        assert result["keywordDensity"]["secondary"] == [
            {"keyword": "clean", "density": 12.5},
            {"keyword": "wind", "density": 0.0},
        ]
        assert result["seoScore"] == 75

    @pytest.mark.asyncio
    async def test_seo_density_rounds_to_two_decimals(self) -> None:
        result = await _call("optimize_for_seo", content="a b c", primaryKeyword="a", secondaryKeywords=[])
        assert result["keywordDensity"]["primary"] == 33.33

    @pytest.mark.asyncio
    async def test_seo_empty_content(self) -> None:
        with pytest.raises(ExecutionError, match="empty"):
            await _call("optimize_for_seo", content="   ", primaryKeyword="a", secondaryKeywords=[])


# ---------------------------------------------------------------------------
# Customer support
# ---------------------------------------------------------------------------


class TestSupportTools:
    @pytest.mark.asyncio
    async def test_refund_billing_returns_all_billing_entries(self) -> None:
        result = await _call("search_knowledge_base", query="I want a refund", category="billing")
        assert result["category"] == "billing"
        assert sorted(result["results"]) == sorted(KNOWLEDGE_BASE["billing"])
        assert result["results"][0] == "Refunds are processed within 5-7 business days"

    @pytest.mark.asyncio
    async def test_search_without_category_matches_across_sections(self) -> None:
        result = await _call("search_knowledge_base", query="Account Settings")
        assert result["category"] == "general"
        assert result["results"] == [
            "You can update payment methods in Account Settings",
            "You can update your profile in Account Settings",
            "Account deletion requests take 24-48 hours to process",
        ]

    @pytest.mark.asyncio
    async def test_search_caps_results(self) -> None:
        result = await _call("search_knowledge_base", query="you your our")
        assert len(result["results"]) <= 3

    @pytest.mark.asyncio
    async def test_search_unknown_category_rejected(self) -> None:
        with pytest.raises(SchemaValidationError):
            await _call("search_knowledge_base", query="x", category="shipping")

    @pytest.mark.asyncio
    async def test_ticket_response_times(self) -> None:
        expected = {"urgent": "1 hour", "high": "4 hours", "medium": "24 hours", "low": "24 hours"}
        for priority, eta in expected.items():
            result = await _call(
                "create_ticket", title="Broken", description="It broke", priority=priority, category="technical",
            )
            assert result["estimatedResponse"] == eta
            assert result["status"] == "created"
            assert re.fullmatch(r"TICK-\d+", result["ticketId"])
            assert result["ticketId"] in result["message"]


# ---------------------------------------------------------------------------
# Sales
# ---------------------------------------------------------------------------


class TestSalesTools:
    @pytest.mark.asyncio
    async def test_roi_reference_numbers(self) -> None:
        result = await _call("calculate_roi", currentCost=1000, teamSize=10, timeSpent=20)
        assert result == {
            "monthlySavings": 2800,
            "ourCost": 99,
            "netMonthlySavings": 2701,
            "annualROI": 2728,
            "paybackPeriod": "1 months",
        }

    @pytest.mark.asyncio
    async def test_roi_price_tiers(self) -> None:
        small = await _call("calculate_roi", currentCost=0, teamSize=5, timeSpent=10)
        large = await _call("calculate_roi", currentCost=0, teamSize=26, timeSpent=10)
        assert small["ourCost"] == 29
        assert large["ourCost"] == 299

    @pytest.mark.asyncio
    async def test_roi_no_savings_never_pays_back(self) -> None:
        result = await _call("calculate_roi", currentCost=100, teamSize=30, timeSpent=0)
        assert result["netMonthlySavings"] == -299
        assert result["annualROI"] == -100
        assert result["paybackPeriod"] == "never"

    @pytest.mark.asyncio
    async def test_roi_invalid_inputs(self) -> None:
        with pytest.raises(ExecutionError):
            await _call("calculate_roi", currentCost=100, teamSize=0, timeSpent=5)
        with pytest.raises(ExecutionError):
            await _call("calculate_roi", currentCost=-1, teamSize=3, timeSpent=5)

    @pytest.mark.asyncio
    async def test_roi_team_size_must_be_integral(self) -> None:
        with pytest.raises(SchemaValidationError):
            await _call("calculate_roi", currentCost=100, teamSize=2.5, timeSpent=5)

    @pytest.mark.asyncio
    async def test_product_info_single(self) -> None:
        result = await _call("get_product_info", product="professional")
        assert result["price"] == "$99/month"
        assert "API access" in result["features"]

    @pytest.mark.asyncio
    async def test_product_info_all_with_feature(self) -> None:
        result = await _call("get_product_info", feature="analytics")
        assert set(result["allProducts"]) == {"starter", "professional", "enterprise"}
        assert result["matchingPlans"] == ["starter", "professional"]

    @pytest.mark.asyncio
    async def test_product_info_returns_copies(self) -> None:
        first = await _call("get_product_info", product="starter")
        first["features"].append("Free lunch")
        second = await _call("get_product_info", product="starter")
        assert "Free lunch" not in second["features"]

    @pytest.mark.asyncio
    async def test_schedule_demo(self) -> None:
        result = await _call(
            "schedule_demo", preferredTime="Tuesday 10am", contactInfo="ana@example.com", specificInterests="API",
        )
        assert re.fullmatch(r"DEMO-\d+", result["demoId"])
        assert result["demoLink"] == f"https://calendly.com/sales-demo/{result['demoId']}"
        assert result["agenda"] == "Custom demo focusing on: API"
        assert "ana@example.com" in result["message"]

    @pytest.mark.asyncio
    async def test_schedule_demo_default_agenda(self) -> None:
        result = await _call("schedule_demo", preferredTime="now", contactInfo="555-0100")
        assert result["agenda"] == "Standard product overview"
