"""Break-even levels: where redemption plus income equals the notional."""

from __future__ import annotations

from payoff_engine.models.schemas import (
    AlwaysBreakEven,
    BonusConditionalBreakEven,
    ImpossibleBreakEven,
    IncomeNoteTerms,
    KnockInConditionalBreakEven,
    LevelBreakEven,
    ParticipationDirection,
    ProtectionNoteTerms,
)
from payoff_engine.payoff.income import total_coupon_pct
from payoff_engine.payoff.protection import effective_downside_strike, max_protected_payoff_pct


class BreakEvenSolver:
    """
    Closed-form inversion of the payoff evaluator.

    Income notes (share delivery below the barrier):
        L = K * (1 - c) / CR
        K = 100 (standard barrier) or the strike (geared put), c = coupons / notional
    Protection notes (floored participation):
        up:   X = K + (100 - P) / a
        down: X = K - (100 - P) / a,  valid only on (0, K]
    Overlays return conditional results because a different formula governs
    on each side of the knock-in or bonus barrier.
    """

    def __init__(self, tolerance: float = 1e-9):
        self.tol = tolerance

    def solve(self, terms: IncomeNoteTerms | ProtectionNoteTerms):
        if isinstance(terms, IncomeNoteTerms):
            return self._income(terms)
        if terms.bonus_enabled:
            return self._bonus(terms)
        if terms.knock_in_enabled:
            return self._knock_in(terms)
        return self._participation(terms)

    def _income(self, terms: IncomeNoteTerms):
        c = total_coupon_pct(terms)
        if c >= 100.0 - self.tol:
            return AlwaysBreakEven(
                reason=f"Coupons of {c:.2f}% repay the notional on their own",
                min_return_pct=c,
            )

        level = terms.strike_level_pct * (1.0 - c / 100.0) / terms.conversion_ratio
        return LevelBreakEven(
            level_pct=level,
            floor_pct=None,
            within_payoff_zone=level < terms.trigger_pct,
        )

    def _participation(self, terms: ProtectionNoteTerms):
        P = terms.capital_protection_pct
        K = terms.participation_start_pct
        a = terms.participation_rate_pct / 100.0

        if P >= 100.0 - self.tol:
            return AlwaysBreakEven(
                reason=f"Capital protection of {P:g}% is at or above par",
                min_return_pct=P,
            )

        if a <= 0:
            return ImpossibleBreakEven(
                reason=f"Participation rate is zero; only the {P:g}% floor is paid",
                max_return_pct=P,
            )

        max_payoff = max_protected_payoff_pct(terms)
        if max_payoff is not None and max_payoff + self.tol < 100.0:
            return ImpossibleBreakEven(
                reason=(
                    f"Cap at {terms.cap_level_pct:g}% limits the payoff to "
                    f"{max_payoff:.2f}%, below par"
                ),
                max_return_pct=max_payoff,
            )

        if terms.participation_direction == ParticipationDirection.UP:
            return LevelBreakEven(level_pct=K + (100.0 - P) / a, floor_pct=P)

        level = K - (100.0 - P) / a
        if not 0.0 < level <= K:
            return ImpossibleBreakEven(
                reason=(
                    f"Downside participation would need the level to fall to {level:.2f}%, "
                    f"outside (0, {K:g}]"
                ),
                max_return_pct=terms.protected_payoff_pct(0.0),
            )
        return LevelBreakEven(level_pct=level, floor_pct=P)

    def _knock_in(self, terms: ProtectionNoteTerms) -> KnockInConditionalBreakEven:
        KI = terms.knock_in_level_pct
        S = effective_downside_strike(terms)
        base = self._participation(terms)

        protected_level = None
        if isinstance(base, LevelBreakEven) and base.level_pct >= KI:
            protected_level = base.level_pct

        return KnockInConditionalBreakEven(
            protected_breakeven_pct=protected_level,
            protected_always=isinstance(base, AlwaysBreakEven),
            knock_in_level_pct=KI,
            downside_strike_pct=S,
            knocked_in_breakeven_pct=S if S < KI else None,
            capital_protection_pct=terms.capital_protection_pct,
            note=(
                f"Below the knock-in at {KI:g}% the {terms.capital_protection_pct:g}% floor "
                f"no longer applies and the payoff becomes 100 x level / {S:.2f}"
            ),
        )

    def _bonus(self, terms: ProtectionNoteTerms) -> BonusConditionalBreakEven:
        BL = terms.bonus_level_pct
        B = terms.bonus_barrier_pct

        surviving = None
        if BL < 100.0 - self.tol:
            base = self._participation(terms)
            if isinstance(base, LevelBreakEven) and base.level_pct >= B:
                surviving = base.level_pct

        return BonusConditionalBreakEven(
            bonus_floor_pct=BL,
            barrier_pct=B,
            surviving_breakeven_pct=surviving,
            breached_breakeven_pct=100.0,
            note=(
                f"At or above the {B:g}% barrier the note pays at least {BL:g}%; below it the "
                f"payoff tracks the underlying 1:1, so break-even is the underlying's own 100%"
            ),
        )


def solve_break_even(terms: IncomeNoteTerms | ProtectionNoteTerms):
    return BreakEvenSolver().solve(terms)
