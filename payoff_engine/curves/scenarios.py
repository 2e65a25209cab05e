"""Illustrative scenario table: payoff at a handful of final levels."""

from __future__ import annotations

import math
from typing import Optional, Sequence

from payoff_engine.breakeven.solver import solve_break_even
from payoff_engine.models.errors import InvalidInput
from payoff_engine.models.schemas import (
    IncomeNoteTerms,
    LevelBreakEven,
    PayoffRegime,
    ProtectionNoteTerms,
    RedemptionType,
    ScenarioRow,
)
from payoff_engine.payoff.evaluator import evaluate_payoff

DEFAULT_INCOME_LEVELS = [120.0, 100.0, 90.0, 70.0, 60.0, 50.0]
DEFAULT_PROTECTION_LEVELS = [160.0, 140.0, 120.0, 100.0, 90.0, 70.0]

TRIGGER_TOLERANCE = 0.5
BREAK_EVEN_TOLERANCE = 1.0

_SHARE_REGIMES = (PayoffRegime.SHARE_CONVERSION, PayoffRegime.KNOCKED_IN)


def trigger_level_pct(terms: IncomeNoteTerms | ProtectionNoteTerms) -> Optional[float]:
    """The barrier the note is monitored against, if any."""
    if isinstance(terms, IncomeNoteTerms):
        return terms.trigger_pct
    if terms.knock_in_enabled:
        return terms.knock_in_level_pct
    if terms.bonus_enabled:
        return terms.bonus_barrier_pct
    return None


def default_levels(terms: IncomeNoteTerms | ProtectionNoteTerms) -> list[float]:
    if isinstance(terms, IncomeNoteTerms):
        return list(DEFAULT_INCOME_LEVELS)
    return list(DEFAULT_PROTECTION_LEVELS)


def build_scenario_table(
    terms: IncomeNoteTerms | ProtectionNoteTerms,
    notional: Optional[float] = None,
    levels: Optional[Sequence[float]] = None,
) -> list[ScenarioRow]:
    """One row per level, scaled to ``notional`` (defaults to the terms' notional)."""
    if notional is None:
        notional = terms.notional
    if not math.isfinite(notional) or notional <= 0:
        raise InvalidInput(f"Notional must be a positive number, got {notional}")
    if levels is None:
        levels = default_levels(terms)

    be = solve_break_even(terms)
    be_level = be.level_pct if isinstance(be, LevelBreakEven) else None
    trigger = trigger_level_pct(terms)

    rows = []
    for level in levels:
        pv = evaluate_payoff(terms, float(level))
        coupons_amount = notional * pv.coupon_pct / 100.0
        redemption_amount = notional * pv.redemption_pct / 100.0
        rows.append(
            ScenarioRow(
                level_pct=pv.level_pct,
                regime=pv.regime,
                redemption_type=(
                    RedemptionType.SHARES if pv.regime in _SHARE_REGIMES else RedemptionType.CASH
                ),
                redemption_pct=pv.redemption_pct,
                coupon_pct=pv.coupon_pct,
                coupons_amount=coupons_amount,
                redemption_amount=redemption_amount,
                ending_value=redemption_amount + coupons_amount,
                total_return_pct=pv.total_pct - 100.0,
                is_trigger=trigger is not None and abs(pv.level_pct - trigger) <= TRIGGER_TOLERANCE,
                is_break_even=(
                    be_level is not None and abs(pv.level_pct - be_level) <= BREAK_EVEN_TOLERANCE
                ),
            )
        )
    return rows
