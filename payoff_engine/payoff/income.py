"""Reverse convertible (income note) payoff at maturity.

Below the barrier the investor receives shares instead of cash:

- standard barrier: shares priced at the reference level, so the
  redemption is ``X * CR``
- low strike / geared put: shares priced at the lower strike ``K``, so the
  redemption is ``100 * X / K * CR`` and losses accelerate (gearing = 1/K)

Coupons are unconditional and paid on top of the redemption. An autocall
ends the note early at par plus the coupons paid up to that date.
"""

from __future__ import annotations

import math

from payoff_engine.models.errors import InvalidInput
from payoff_engine.models.schemas import IncomeNoteTerms, PayoffRegime
from payoff_engine.models.units import round_half_up


def coupon_periods(terms: IncomeNoteTerms) -> int:
    """Number of coupon payments over the tenor."""
    if terms.coupon_freq_per_year == 0:
        return 0
    return round_half_up(terms.tenor_months / 12 * terms.coupon_freq_per_year)


def coupon_per_period_pct(terms: IncomeNoteTerms) -> float:
    if terms.coupon_freq_per_year == 0:
        return 0.0
    return terms.coupon_rate_pa / terms.coupon_freq_per_year


def total_coupon_pct(terms: IncomeNoteTerms) -> float:
    """Sum of all coupons as a percent of notional (c in the break-even formula)."""
    return coupon_per_period_pct(terms) * coupon_periods(terms)


def gearing(terms: IncomeNoteTerms) -> float:
    """Loss multiplier below the strike; 1.0 for a standard barrier note."""
    return 100.0 / terms.strike_level_pct * terms.conversion_ratio


def income_redemption_pct(terms: IncomeNoteTerms, level: float) -> tuple[float, PayoffRegime]:
    """Redemption as percent of notional, excluding coupons."""
    if level >= terms.trigger_pct:
        return 100.0, PayoffRegime.CASH_REDEMPTION

    return level * gearing(terms), PayoffRegime.SHARE_CONVERSION


# ── Autocall ─────────────────────────────────────────────────────────


def is_autocalled(terms: IncomeNoteTerms, level: float) -> bool:
    """True if the level reaches the autocall trigger (always False without one)."""
    return terms.autocall_level_pct is not None and level >= terms.autocall_level_pct


def coupons_paid_pct(terms: IncomeNoteTerms, months_elapsed: float) -> float:
    """Coupons already paid after ``months_elapsed``, i.e. what an early redemption adds to par."""
    if not math.isfinite(months_elapsed) or months_elapsed < 0:
        raise InvalidInput(f"Elapsed months must be a non-negative number, got {months_elapsed}")
    if terms.coupon_freq_per_year == 0:
        return 0.0
    paid = math.floor(months_elapsed / 12 * terms.coupon_freq_per_year + 1e-9)
    return coupon_per_period_pct(terms) * min(paid, coupon_periods(terms))
