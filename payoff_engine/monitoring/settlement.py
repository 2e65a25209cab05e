"""Projected settlement of a live position if today's prices were the final fixings."""

from __future__ import annotations

import logging
import math
from typing import Optional, Sequence

from payoff_engine.basket.resolver import resolve_basket, resolve_from_underlyings
from payoff_engine.curves.scenarios import trigger_level_pct
from payoff_engine.models.errors import InvalidInput
from payoff_engine.models.schemas import (
    BarrierStatus,
    BonusStatus,
    IncomeNoteTerms,
    PayoffRegime,
    ProtectionNoteTerms,
    SettlementPreview,
    SettlementType,
)
from payoff_engine.payoff.evaluator import evaluate_payoff
from payoff_engine.payoff.income import coupons_paid_pct, is_autocalled
from payoff_engine.payoff.protection import effective_downside_strike

logger = logging.getLogger(__name__)


def barrier_status(level: float, barrier: Optional[float], band_pct: float) -> BarrierStatus:
    """Classify ``level`` against ``barrier``: breached below it, at risk within ``band_pct`` above."""
    if barrier is None:
        return BarrierStatus.NOT_APPLICABLE
    if level < barrier:
        return BarrierStatus.BREACHED
    if level < barrier + band_pct:
        return BarrierStatus.AT_RISK
    return BarrierStatus.SAFE


def delivery_strike_pct(terms: IncomeNoteTerms | ProtectionNoteTerms) -> float:
    """Level at which physically delivered shares are priced."""
    if isinstance(terms, IncomeNoteTerms):
        return terms.strike_level_pct
    return effective_downside_strike(terms)


def preview_settlement(
    terms: IncomeNoteTerms | ProtectionNoteTerms,
    spots: Optional[Sequence[float]] = None,
    fixings: Optional[Sequence[float]] = None,
    at_risk_band_pct: float = 5.0,
    months_elapsed: Optional[float] = None,
) -> SettlementPreview:
    """Settle ``terms`` at the given spots (or the spots recorded on the basket).

    Physical delivery happens when an income note converts or a knock-in
    triggers. The investor then receives shares of the driving asset; an
    average basket has no single driver, so no share count is reported.

    When an income note reaches its autocall level and ``months_elapsed`` is
    given, the note is treated as called today: par plus the coupons paid so
    far. Without ``months_elapsed`` the preview is a maturity settlement and
    counts the full tenor's coupons even if the autocall flag is set.
    """
    if not math.isfinite(at_risk_band_pct) or at_risk_band_pct < 0:
        raise InvalidInput(f"At-risk band must be a non-negative number, got {at_risk_band_pct}")

    basket = terms.basket
    if spots is None:
        if fixings is not None:
            raise InvalidInput("Fixings were given without spot prices")
        resolved = resolve_from_underlyings(basket)
        spots = [u.spot for u in basket.underlyings]
    else:
        resolved = resolve_basket(basket, spots, fixings)
    if fixings is None:
        fixings = basket.fixings

    payoff = evaluate_payoff(terms, resolved.level_pct)
    physical = payoff.regime in (PayoffRegime.SHARE_CONVERSION, PayoffRegime.KNOCKED_IN)

    shares = shares_value = ticker = None
    if physical and resolved.driving_index is not None:
        i = resolved.driving_index
        ratio = terms.conversion_ratio if isinstance(terms, IncomeNoteTerms) else 1.0
        shares = terms.notional * ratio / (fixings[i] * delivery_strike_pct(terms) / 100.0)
        shares_value = shares * spots[i]
        ticker = basket.underlyings[i].ticker
    elif physical:
        logger.debug("Average basket converts without a single driving asset; share count omitted")

    autocalled = isinstance(terms, IncomeNoteTerms) and is_autocalled(terms, resolved.level_pct)
    coupons_pct = payoff.coupon_pct
    if autocalled and months_elapsed is not None:
        coupons_pct = coupons_paid_pct(terms, months_elapsed)

    barrier = trigger_level_pct(terms)

    bonus = BonusStatus.NOT_APPLICABLE
    if isinstance(terms, ProtectionNoteTerms) and terms.bonus_enabled:
        bonus = BonusStatus.ACTIVE if resolved.level_pct >= terms.bonus_barrier_pct else BonusStatus.LOST

    return SettlementPreview(
        resolved=resolved,
        payoff=payoff,
        settlement_type=SettlementType.PHYSICAL if physical else SettlementType.CASH,
        redemption_amount=terms.notional * payoff.redemption_pct / 100.0,
        coupons_amount=terms.notional * coupons_pct / 100.0,
        shares_delivered=shares,
        shares_market_value=shares_value,
        delivered_ticker=ticker,
        monitored_barrier_pct=barrier,
        barrier_status=barrier_status(resolved.level_pct, barrier, at_risk_band_pct),
        bonus_status=bonus,
        autocall_triggered=autocalled,
    )
