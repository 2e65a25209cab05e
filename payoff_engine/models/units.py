"""Percent convention helpers.

Every level, rate and return inside the engine is a 0-100 percent value
(87.3 means 87.3% of the initial fixing). Fractions are converted exactly once,
at the boundary, by :func:`scale_fraction_fields`.
"""

from __future__ import annotations

import math
from typing import Annotated, Any

from pydantic import Field

Percent = Annotated[float, Field(ge=0.0, allow_inf_nan=False)]

# Term fields that hold percentages. Anything not listed here (notional,
# tenor, frequency, conversion ratio) is scale-free.
PERCENT_FIELDS: tuple[str, ...] = (
    "barrier_pct",
    "strike_pct",
    "coupon_rate_pa",
    "autocall_level_pct",
    "capital_protection_pct",
    "participation_start_pct",
    "participation_rate_pct",
    "cap_level_pct",
    "knock_in_level_pct",
    "downside_strike_pct",
    "bonus_level_pct",
    "bonus_barrier_pct",
)


def to_percent(fraction: float) -> float:
    """0.70 -> 70.0"""
    return float(fraction) * 100.0


def to_fraction(pct: float) -> float:
    """70.0 -> 0.70"""
    return float(pct) / 100.0


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def looks_like_fraction(value: float | None) -> bool:
    """True for barrier-like levels that were almost certainly given as 0-1 fractions."""
    return value is not None and 0.0 < value <= 1.0


def scale_fraction_fields(payload: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of a terms payload with every percent field multiplied by 100."""
    scaled = dict(payload)
    for name in PERCENT_FIELDS:
        value = scaled.get(name)
        if value is not None:
            scaled[name] = to_percent(value)
    return scaled
