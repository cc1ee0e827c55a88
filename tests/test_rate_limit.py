"""Tests for agent_studio.rate_limit: per-provider concurrency limiting."""

import asyncio

import pytest

from agent_studio import rate_limit as rl
from agent_studio.rate_limit import (
    DEFAULT_LIMITS,
    ProviderLimiter,
    aacquire,
    configure,
    get_provider,
    limits_from_env,
)


@pytest.fixture(autouse=True)
def _fresh_limiter(monkeypatch):
    """Give every test its own process-wide limiter."""
    monkeypatch.setattr(rl, "LIMITER", ProviderLimiter())


async def _peak_concurrency(limiter: ProviderLimiter, model: str, workers: int) -> int:
    peak = 0
    current = 0

    async def worker():
        nonlocal peak, current
        async with limiter.slot(model):
            current += 1
            peak = max(peak, current)
            await asyncio.sleep(0.02)
            current -= 1

    await asyncio.gather(*(worker() for _ in range(workers)))
    return peak


# ---------------------------------------------------------------------------
# Provider detection
# ---------------------------------------------------------------------------


class TestProviderDetection:
    def test_google(self):
        assert get_provider("gemini/gemini-2.5-flash") == "google"

    def test_openai(self):
        assert get_provider("gpt-4o") == "openai"
        assert get_provider("gpt-4o-mini") == "openai"
        assert get_provider("o4-mini") == "openai"
        assert get_provider("openai/gpt-4o") == "openai"

    def test_anthropic(self):
        assert get_provider("anthropic/claude-sonnet-4-5") == "anthropic"

    def test_openrouter_prefix_wins_over_nested_provider(self):
        assert get_provider("openrouter/openai/gpt-4o") == "openrouter"

    def test_simulated(self):
        assert get_provider("simulated/echo") == "simulated"

    def test_unknown_default(self):
        assert get_provider("some-unknown-model") == "default"


# ---------------------------------------------------------------------------
# Limits
# ---------------------------------------------------------------------------


class TestLimits:
    def test_defaults(self):
        limiter = ProviderLimiter()
        assert limiter.limit_for("openai") == DEFAULT_LIMITS["openai"]
        assert limiter.limit_for("mystery") == DEFAULT_LIMITS["default"]

    def test_overrides_merge_with_defaults(self):
        limiter = ProviderLimiter({"openai": 3})
        assert limiter.limit_for("openai") == 3
        assert limiter.limit_for("anthropic") == DEFAULT_LIMITS["anthropic"]

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv(rl.RATE_LIMITS_ENV, '{"openai": 3, "google": "7"}')
        assert limits_from_env() == {"openai": 3, "google": 7}

    def test_env_unset(self, monkeypatch):
        monkeypatch.delenv(rl.RATE_LIMITS_ENV, raising=False)
        assert limits_from_env() == {}

    @pytest.mark.parametrize("raw", ["not json", "[1, 2]", '{"openai": "lots"}'])
    def test_invalid_env_is_ignored(self, monkeypatch, caplog, raw):
        monkeypatch.setenv(rl.RATE_LIMITS_ENV, raw)
        assert limits_from_env() == {}
        assert rl.RATE_LIMITS_ENV in caplog.text


# ---------------------------------------------------------------------------
# Slots
# ---------------------------------------------------------------------------


class TestSlots:
    @pytest.mark.asyncio
    async def test_basic_async_acquire(self):
        async with aacquire("gemini/gemini-2.5-flash"):
            pass  # should not raise

    @pytest.mark.asyncio
    async def test_concurrency_limited(self):
        limiter = ProviderLimiter({"google": 2})
        assert await _peak_concurrency(limiter, "gemini/gemini-2.5-flash", 5) == 2

    @pytest.mark.asyncio
    async def test_providers_do_not_share_slots(self):
        limiter = ProviderLimiter({"google": 1, "anthropic": 1})
        peaks = await asyncio.gather(
            _peak_concurrency(limiter, "gemini/gemini-2.5-flash", 3),
            _peak_concurrency(limiter, "anthropic/claude-sonnet-4-5", 3),
        )
        assert peaks == [1, 1]

    @pytest.mark.asyncio
    async def test_slot_released_on_error(self):
        limiter = ProviderLimiter({"anthropic": 1})
        with pytest.raises(RuntimeError):
            async with limiter.slot("anthropic/claude-sonnet-4-5"):
                raise RuntimeError("boom")
        async with limiter.slot("anthropic/claude-sonnet-4-5"):
            pass  # would block forever if the slot leaked


# ---------------------------------------------------------------------------
# Configure
# ---------------------------------------------------------------------------


class TestConfigure:
    @pytest.mark.asyncio
    async def test_disable(self):
        configure(enabled=False)
        limiter = rl.LIMITER
        assert await _peak_concurrency(limiter, "ollama/llama3", 8) == 8

    def test_custom_limits(self):
        configure(limits={"openai": 1})
        assert rl.LIMITER.limit_for("openai") == 1

    @pytest.mark.asyncio
    async def test_new_limits_apply_to_next_call(self):
        limiter = ProviderLimiter({"ollama": 1})
        assert await _peak_concurrency(limiter, "ollama/llama3", 3) == 1
        limiter.configure(limits={"ollama": 3})
        assert await _peak_concurrency(limiter, "ollama/llama3", 3) == 3
