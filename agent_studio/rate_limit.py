"""Per-provider concurrency limits for completion calls.

Every HTTP request may run its own agent loop, so a burst of traffic turns
into a burst of model calls. Each call holds a slot from its provider's
semaphore for the duration of the request:

    from agent_studio.rate_limit import aacquire

    async with aacquire("anthropic/claude-sonnet-4-5"):
        response = await litellm.acompletion(...)

Limits come from ``DEFAULT_LIMITS``, overridden by the
``AGENT_STUDIO_RATE_LIMITS`` environment variable (a JSON object of
provider -> max concurrent calls) and then by ``configure()``.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from collections.abc import AsyncIterator, Mapping
from contextlib import AbstractAsyncContextManager, asynccontextmanager

logger = logging.getLogger(__name__)

RATE_LIMITS_ENV = "AGENT_STUDIO_RATE_LIMITS"

# Model-string prefix -> provider; first match wins.
PROVIDER_PREFIXES: tuple[tuple[str, str], ...] = (
    ("gemini/", "google"),
    ("anthropic/", "anthropic"),
    ("openrouter/", "openrouter"),
    ("ollama/", "ollama"),
    ("simulated/", "simulated"),
    ("openai/", "openai"),
    ("gpt-", "openai"),
    ("o1", "openai"),
    ("o3", "openai"),
    ("o4-", "openai"),
)

DEFAULT_LIMITS: dict[str, int] = {
    "openai": 50,
    "google": 30,
    "anthropic": 20,
    "openrouter": 40,
    "ollama": 5,
    "simulated": 1000,
    "default": 30,
}


def get_provider(model: str) -> str:
    """Provider bucket for a model string ("default" when unrecognized)."""
    for prefix, provider in PROVIDER_PREFIXES:
        if model.startswith(prefix):
            return provider
    return "default"


def limits_from_env() -> dict[str, int]:
    """Parse AGENT_STUDIO_RATE_LIMITS. Invalid values are logged and ignored."""
    raw = os.environ.get(RATE_LIMITS_ENV)
    if not raw:
        return {}
    try:
        overrides = json.loads(raw)
        if not isinstance(overrides, dict):
            raise TypeError(f"expected a JSON object, got {type(overrides).__name__}")
        return {str(provider): int(limit) for provider, limit in overrides.items()}
    except (json.JSONDecodeError, TypeError, ValueError) as exc:
        logger.warning("Ignoring invalid %s=%r: %s", RATE_LIMITS_ENV, raw, exc)
        return {}


class ProviderLimiter:
    """One asyncio.Semaphore per provider, created on first use."""

    def __init__(self, limits: Mapping[str, int] | None = None, *, enabled: bool = True) -> None:
        self.limits: dict[str, int] = {**DEFAULT_LIMITS, **(limits or {})}
        self.enabled = enabled
        self._semaphores: dict[str, asyncio.Semaphore] = {}

    def limit_for(self, provider: str) -> int:
        return self.limits.get(provider, self.limits["default"])

    def configure(self, *, enabled: bool | None = None, limits: Mapping[str, int] | None = None) -> None:
        """Toggle limiting or override per-provider limits.

        New limits apply to semaphores created afterwards; existing ones are
        dropped so the next call picks the new size up.
        """
        if enabled is not None:
            self.enabled = enabled
        if limits is not None:
            self.limits.update(limits)
            self._semaphores.clear()

    def _semaphore(self, provider: str) -> asyncio.Semaphore:
        sem = self._semaphores.get(provider)
        if sem is None:
            sem = self._semaphores[provider] = asyncio.Semaphore(self.limit_for(provider))
        return sem

    @asynccontextmanager
    async def slot(self, model: str) -> AsyncIterator[None]:
        """Hold one of the model's provider slots for the duration of the block."""
        if not self.enabled:
            yield
            return
        provider = get_provider(model)
        sem = self._semaphore(provider)
        if sem.locked():
            logger.debug("Waiting for a %s slot (limit %d)", provider, self.limit_for(provider))
        async with sem:
            yield


LIMITER = ProviderLimiter(limits_from_env())


def configure(*, enabled: bool | None = None, limits: Mapping[str, int] | None = None) -> None:
    """Configure the process-wide limiter. See ProviderLimiter.configure."""
    LIMITER.configure(enabled=enabled, limits=limits)


def aacquire(model: str) -> AbstractAsyncContextManager[None]:
    """Async context manager holding a slot of the process-wide limiter."""
    return LIMITER.slot(model)
