"""Capital-protected participation note payoff at maturity.

Regime precedence is fixed: bonus overlay first, then knock-in, then the
plain floored and optionally capped participation. The term validators
guarantee that at most one overlay is active.
"""

from __future__ import annotations

import logging

from payoff_engine.models.schemas import PayoffRegime, ProtectionNoteTerms
from payoff_engine.payoff.guards import max_participation_delta, participation_delta

logger = logging.getLogger(__name__)


def effective_downside_strike(terms: ProtectionNoteTerms) -> float:
    """Strike S used below the knock-in.

    Defaults to the knock-in level, raised to the continuity floor when the
    default would let a knock-in pay more than the protected payoff at KI.
    """
    KI = terms.knock_in_level_pct
    if terms.downside_strike_pct is not None:
        return terms.downside_strike_pct

    s_min = terms.continuity_strike_floor_pct
    if s_min is not None and s_min > KI:
        logger.debug(
            "Downside strike defaulted to continuity floor %.4f instead of knock-in %.4f", s_min, KI
        )
        return s_min
    return KI


def _participation_regime(terms: ProtectionNoteTerms, level: float) -> PayoffRegime:
    delta = participation_delta(
        level, terms.participation_start_pct, terms.participation_direction.value
    )
    if delta <= 0 or terms.participation_rate_pct <= 0:
        return PayoffRegime.PROTECTED
    max_delta = max_participation_delta(
        terms.participation_start_pct,
        terms.participation_direction.value,
        terms.cap_level_pct if terms.capped else None,
    )
    if max_delta is not None and delta >= max_delta:
        return PayoffRegime.CAPPED
    return PayoffRegime.PARTICIPATING


def protection_redemption_pct(
    terms: ProtectionNoteTerms, level: float
) -> tuple[float, PayoffRegime]:
    """Redemption as percent of notional for settlement level ``level``."""
    if terms.bonus_enabled:
        if level < terms.bonus_barrier_pct:
            return level, PayoffRegime.BONUS_BREACHED
        protected = terms.protected_payoff_pct(level)
        if terms.bonus_level_pct >= protected:
            return terms.bonus_level_pct, PayoffRegime.BONUS
        return protected, _participation_regime(terms, level)

    if terms.knock_in_enabled and level < terms.knock_in_level_pct:
        return 100.0 * level / effective_downside_strike(terms), PayoffRegime.KNOCKED_IN

    return terms.protected_payoff_pct(level), _participation_regime(terms, level)


def max_protected_payoff_pct(terms: ProtectionNoteTerms) -> float | None:
    """Highest payoff the participation leg can reach, or None when unbounded."""
    if not terms.capped:
        return None
    return terms.protected_payoff_pct(terms.cap_level_pct)
