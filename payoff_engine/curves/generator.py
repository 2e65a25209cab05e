"""Dense payoff-vs-level samples for charting."""

from __future__ import annotations

import math

import numpy as np

from payoff_engine.breakeven.solver import solve_break_even
from payoff_engine.models.errors import InvalidInput
from payoff_engine.models.schemas import (
    CurvePoint,
    IncomeNoteTerms,
    IncomeVariant,
    Landmark,
    LevelBreakEven,
    ProtectionNoteTerms,
)
from payoff_engine.payoff.evaluator import evaluate_payoff

# Offset of the extra sample placed just below a jump landmark
JUMP_EPS = 1e-6
_SAME_LEVEL = 1e-9


def landmarks(terms: IncomeNoteTerms | ProtectionNoteTerms) -> list[Landmark]:
    """Levels where the payoff changes shape, plus the reference level and break-even."""
    marks: list[Landmark] = [Landmark(label="Initial", level_pct=100.0)]

    if isinstance(terms, IncomeNoteTerms):
        label = "Barrier" if terms.variant == IncomeVariant.STANDARD_BARRIER else "Knock-in"
        marks.append(Landmark(label=label, level_pct=terms.trigger_pct, discontinuous=True))
        if terms.variant == IncomeVariant.LOW_STRIKE_GEARED_PUT:
            marks.append(Landmark(label="Strike", level_pct=terms.strike_pct))
        if terms.autocall_level_pct is not None:
            marks.append(Landmark(label="Autocall", level_pct=terms.autocall_level_pct))
    else:
        marks.append(Landmark(label="Participation start", level_pct=terms.participation_start_pct))
        if terms.capped:
            marks.append(Landmark(label="Cap", level_pct=terms.cap_level_pct))
        if terms.knock_in_enabled:
            marks.append(
                Landmark(label="Knock-in", level_pct=terms.knock_in_level_pct, discontinuous=True)
            )
        if terms.bonus_enabled:
            marks.append(
                Landmark(label="Bonus barrier", level_pct=terms.bonus_barrier_pct, discontinuous=True)
            )

    be = solve_break_even(terms)
    if isinstance(be, LevelBreakEven):
        marks.append(Landmark(label="Break-even", level_pct=be.level_pct))

    return sorted(marks, key=lambda m: m.level_pct)


def generate_curve(
    terms: IncomeNoteTerms | ProtectionNoteTerms,
    step_pct: float = 1.0,
    max_level_pct: float = 160.0,
) -> list[CurvePoint]:
    """Sample the payoff on a regular grid from 0 with exact landmark samples.

    The grid extends to at least 1.25x the highest landmark so every kink
    stays visible. Each jump landmark gets a second sample ``JUMP_EPS`` below
    it, so a discontinuity shows up as two adjacent points.
    """
    if not math.isfinite(step_pct) or step_pct <= 0:
        raise InvalidInput(f"Curve step must be a positive number, got {step_pct}")
    if not math.isfinite(max_level_pct) or max_level_pct <= 0:
        raise InvalidInput(f"Curve upper bound must be a positive number, got {max_level_pct}")

    marks = landmarks(terms)
    top = max(max_level_pct, 1.25 * max(m.level_pct for m in marks))
    n_steps = math.ceil(top / step_pct - _SAME_LEVEL)
    grid = np.linspace(0.0, n_steps * step_pct, n_steps + 1)

    # Exact landmark values always win over grid points within rounding noise.
    # Jump landmarks are taken first so their exact level survives a near tie.
    anchors: list[float] = []
    for m in sorted(marks, key=lambda m: not m.discontinuous):
        if all(abs(m.level_pct - a) > _SAME_LEVEL for a in anchors):
            anchors.append(m.level_pct)
    anchor_arr = np.asarray(anchors, dtype=float)
    near = np.abs(grid[:, None] - anchor_arr[None, :]).min(axis=1) <= _SAME_LEVEL

    jumps = [m.level_pct - JUMP_EPS for m in marks if m.discontinuous and m.level_pct > JUMP_EPS]
    levels = np.union1d(grid[~near], np.concatenate((anchor_arr, np.asarray(jumps, dtype=float))))

    points = []
    for x in levels:
        pv = evaluate_payoff(terms, float(x))
        labels = [m.label for m in marks if abs(m.level_pct - x) <= _SAME_LEVEL]
        points.append(
            CurvePoint(
                level_pct=pv.level_pct,
                redemption_pct=pv.redemption_pct,
                total_pct=pv.total_pct,
                coupon_pct=pv.coupon_pct,
                note=" / ".join(labels) or None,
            )
        )
    return points
