"""Helpers shared by the tool executors."""

from __future__ import annotations

import math
import time


def round_half_up(value: float, ndigits: int = 0) -> float | int:
    """Round halves towards +infinity (2.5 -> 3, -2.5 -> -2).

    Python's round() uses banker's rounding, which disagrees on x.5 values.
    """
    if ndigits == 0:
        return int(math.floor(value + 0.5))
    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor


def token_id(prefix: str) -> str:
    """Opaque id like ``TICK-1718030000123`` (prefix + epoch milliseconds)."""
    return f"{prefix}-{int(time.time() * 1000)}"
