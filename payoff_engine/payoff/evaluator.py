"""Single payoff entry point shared by curves, scenario tables and settlement previews."""

from __future__ import annotations

import math

from payoff_engine.models.errors import InvalidInput
from payoff_engine.models.schemas import IncomeNoteTerms, PayoffValue, ProtectionNoteTerms
from payoff_engine.payoff.income import income_redemption_pct, total_coupon_pct
from payoff_engine.payoff.protection import protection_redemption_pct


def accrued_income_pct(terms: IncomeNoteTerms | ProtectionNoteTerms) -> float:
    """Fixed income earned over the tenor, in percent of notional."""
    if isinstance(terms, IncomeNoteTerms):
        return total_coupon_pct(terms)
    return 0.0


def payoff_pct(terms: IncomeNoteTerms | ProtectionNoteTerms, level: float) -> float:
    """Redemption as percent of notional, excluding coupons."""
    return evaluate_payoff(terms, level).redemption_pct


def evaluate_payoff(terms: IncomeNoteTerms | ProtectionNoteTerms, level: float) -> PayoffValue:
    """Evaluate the contractual payoff at settlement level ``level`` (percent of initial)."""
    if not isinstance(level, (int, float)) or not math.isfinite(level) or level < 0:
        raise InvalidInput(f"Settlement level must be a finite non-negative percent, got {level!r}")

    if isinstance(terms, IncomeNoteTerms):
        redemption, regime = income_redemption_pct(terms, level)
    elif isinstance(terms, ProtectionNoteTerms):
        redemption, regime = protection_redemption_pct(terms, level)
    else:
        raise InvalidInput(f"Unsupported terms type: {type(terms).__name__}")

    coupons = accrued_income_pct(terms)
    return PayoffValue(
        level_pct=float(level),
        redemption_pct=redemption,
        coupon_pct=coupons,
        total_pct=redemption + coupons,
        regime=regime,
    )
