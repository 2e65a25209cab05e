"""Scalar building blocks of the protected-participation payoff.

Kept free of model imports so the term validators can use the same formula as
the evaluator.

Notation (all in percent of initial fixing):
    X   settlement level
    P   capital protection floor
    K   participation start
    a   participation rate / 100
    C   cap level
    KI  knock-in level
    S   downside strike used once the knock-in triggers
"""

from __future__ import annotations

import math
from typing import Optional


def participation_delta(level: float, start: float, direction: str) -> float:
    if direction == "up":
        return max(0.0, level - start)
    return max(0.0, start - level)


def max_participation_delta(start: float, direction: str, cap: Optional[float]) -> Optional[float]:
    """Largest delta the cap lets through, or None when uncapped."""
    if cap is None:
        return None
    if direction == "up":
        return max(0.0, cap - start)
    return max(0.0, start - cap)


def floored_participation_pct(
    level: float,
    floor: float,
    start: float,
    rate_pct: float,
    direction: str,
    cap: Optional[float] = None,
) -> float:
    """max(P, P + a * min(delta, max_delta))"""
    delta = participation_delta(level, start, direction)
    max_delta = max_participation_delta(start, direction, cap)
    if max_delta is not None:
        delta = min(delta, max_delta)
    return max(floor, floor + (rate_pct / 100.0) * delta)


def continuity_strike_floor(protected_at_knock_in: float, knock_in: float) -> Optional[float]:
    """S_min such that 100 * KI / S_min equals the protected payoff at KI.

    Returns None when the protected payoff at KI is zero (no finite bound).
    """
    if not (protected_at_knock_in > 0 and knock_in > 0):
        return None
    s_min = 100.0 * knock_in / protected_at_knock_in
    return s_min if math.isfinite(s_min) else None
