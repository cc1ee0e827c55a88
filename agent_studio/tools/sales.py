"""Sales-assistant tools: product catalogue, ROI calculator, demo scheduler."""

from __future__ import annotations

import copy
import math
from typing import Any

from agent_studio.errors import ExecutionError
from agent_studio.tool_schema import ParamSpec, ParamType, ToolSpec
from agent_studio.tools.common import round_half_up, token_id

PRODUCTS: dict[str, dict[str, Any]] = {
    "starter": {
        "price": "$29/month",
        "features": ["Up to 5 users", "Basic analytics", "Email support", "10GB storage"],
        "bestFor": "Small teams and startups",
    },
    "professional": {
        "price": "$99/month",
        "features": ["Up to 25 users", "Advanced analytics", "Priority support", "100GB storage", "API access"],
        "bestFor": "Growing businesses",
    },
    "enterprise": {
        "price": "Custom pricing",
        "features": ["Unlimited users", "Custom integrations", "Dedicated support", "Unlimited storage", "SLA guarantee"],
        "bestFor": "Large organizations",
    },
}

HOURLY_RATE = 50
TIME_SAVINGS_FACTOR = 0.7
WEEKS_PER_MONTH = 4

# (max team size, monthly price); the last tier has no upper bound.
PRICE_TIERS: tuple[tuple[int | None, int], ...] = ((5, 29), (25, 99), (None, 299))

DEMO_LINK_BASE = "https://calendly.com/sales-demo"


def monthly_price(team_size: int) -> int:
    for max_size, price in PRICE_TIERS:
        if max_size is None or team_size <= max_size:
            return price
    raise AssertionError("unreachable: last price tier is unbounded")


async def get_product_info(args: dict[str, Any]) -> dict[str, Any]:
    product: str | None = args.get("product")
    feature: str | None = args.get("feature")

    if product:
        info: dict[str, Any] = {"product": product, **copy.deepcopy(PRODUCTS[product])}
    else:
        info = {
            "allProducts": copy.deepcopy(PRODUCTS),
            "recommendation": "I can help you choose the right plan based on your needs!",
        }

    if feature:
        needle = feature.strip().lower()
        candidates = [product] if product else list(PRODUCTS)
        info["matchingPlans"] = [
            name
            for name in candidates
            if any(needle in f.lower() for f in PRODUCTS[name]["features"])
        ]
    return info


async def calculate_roi(args: dict[str, Any]) -> dict[str, Any]:
    current_cost: float = args["currentCost"]
    team_size: int = args["teamSize"]
    time_spent: float = args["timeSpent"]

    if team_size < 1:
        raise ExecutionError("calculate_roi", f"teamSize must be at least 1, got {team_size}")
    if current_cost < 0 or time_spent < 0:
        raise ExecutionError("calculate_roi", "currentCost and timeSpent must not be negative")

    weekly_savings = time_spent * HOURLY_RATE * TIME_SAVINGS_FACTOR
    monthly_savings = weekly_savings * WEEKS_PER_MONTH
    our_cost = monthly_price(team_size)
    net_savings = monthly_savings - our_cost
    roi = (net_savings * 12) / (our_cost * 12) * 100

    if net_savings > 0:
        payback = f"{math.ceil(our_cost / net_savings)} months"
    else:
        payback = "never"

    return {
        "monthlySavings": round_half_up(monthly_savings),
        "ourCost": our_cost,
        "netMonthlySavings": round_half_up(net_savings),
        "annualROI": round_half_up(roi),
        "paybackPeriod": payback,
    }


async def schedule_demo(args: dict[str, Any]) -> dict[str, Any]:
    demo_id = token_id("DEMO")
    interests: str | None = args.get("specificInterests")
    return {
        "demoId": demo_id,
        "scheduledTime": args["preferredTime"],
        "confirmationSent": True,
        "demoLink": f"{DEMO_LINK_BASE}/{demo_id}",
        "message": f"Demo scheduled! You'll receive a calendar invite at {args['contactInfo']}",
        "agenda": f"Custom demo focusing on: {interests}" if interests else "Standard product overview",
    }


SPECS: tuple[ToolSpec, ...] = (
    ToolSpec(
        name="get_product_info",
        description="Get detailed information about our products and pricing",
        parameters=(
            ParamSpec("product", ParamType.STRING, "Plan to describe", required=False, enum=tuple(PRODUCTS)),
            ParamSpec("feature", ParamType.STRING, "Specific feature to inquire about", required=False),
        ),
        executor=get_product_info,
    ),
    ToolSpec(
        name="calculate_roi",
        description="Calculate potential ROI and savings for the customer",
        parameters=(
            ParamSpec("currentCost", ParamType.NUMBER, "Current monthly cost of their solution"),
            ParamSpec("teamSize", ParamType.INTEGER, "Number of team members"),
            ParamSpec("timeSpent", ParamType.NUMBER, "Hours per week spent on manual tasks"),
        ),
        executor=calculate_roi,
    ),
    ToolSpec(
        name="schedule_demo",
        description="Schedule a product demo or sales call",
        parameters=(
            ParamSpec("preferredTime", ParamType.STRING, "Preferred time for the demo"),
            ParamSpec("contactInfo", ParamType.STRING, "Email or phone number"),
            ParamSpec(
                "specificInterests",
                ParamType.STRING,
                "Specific features they want to see",
                required=False,
            ),
        ),
        executor=schedule_demo,
    ),
)
