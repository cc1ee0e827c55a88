"""Typed runtime configuration for agent_studio."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

MODEL_ENV = "AGENT_STUDIO_MODEL"
TEMPERATURE_ENV = "AGENT_STUDIO_TEMPERATURE"
TIMEOUT_ENV = "AGENT_STUDIO_TIMEOUT"
API_BASE_ENV = "AGENT_STUDIO_API_BASE"
SIMULATE_ENV = "AGENT_STUDIO_SIMULATE"

DEFAULT_MODEL = "gpt-4o"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_TIMEOUT = 120.0


def _parse_float(env: str, raw: str | None, default: float, *, low: float, high: float) -> float:
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid %s=%r; expected a number. Defaulting to %s.", env, raw, default)
        return default
    if not low <= value <= high:
        logger.warning("Out-of-range %s=%r; expected %s..%s. Defaulting to %s.", env, raw, low, high, default)
        return default
    return value


@dataclass(frozen=True)
class StudioConfig:
    """Runtime config resolved once and passed explicitly through calls."""

    model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    timeout: float = DEFAULT_TIMEOUT
    api_base: str | None = None
    simulate: bool = False

    @classmethod
    def from_env(cls) -> "StudioConfig":
        """Build typed config from environment variables."""
        model = os.environ.get(MODEL_ENV, "").strip() or DEFAULT_MODEL
        temperature = _parse_float(
            TEMPERATURE_ENV, os.environ.get(TEMPERATURE_ENV), DEFAULT_TEMPERATURE, low=0.0, high=2.0,
        )
        timeout = _parse_float(
            TIMEOUT_ENV, os.environ.get(TIMEOUT_ENV), DEFAULT_TIMEOUT, low=1.0, high=3600.0,
        )

        simulate_raw = os.environ.get(SIMULATE_ENV, "off").strip().lower()
        if simulate_raw in {"1", "true", "yes", "on"}:
            simulate = True
        elif simulate_raw in {"0", "false", "no", "off", ""}:
            simulate = False
        else:
            logger.warning(
                "Invalid %s=%r; expected on/off boolean. Defaulting to off.",
                SIMULATE_ENV,
                simulate_raw,
            )
            simulate = False

        return cls(
            model=model,
            temperature=temperature,
            timeout=timeout,
            api_base=os.environ.get(API_BASE_ENV) or None,
            simulate=simulate,
        )
