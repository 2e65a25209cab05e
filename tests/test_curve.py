"""Tests for curve sampling and landmarks."""

import numpy as np
import pytest

from payoff_engine.curves.generator import JUMP_EPS, generate_curve, landmarks
from payoff_engine.models.errors import InvalidInput
from payoff_engine.models.schemas import CapType, IncomeNoteTerms, ProtectionNoteTerms


def _at(points, level):
    matches = [p for p in points if abs(p.level_pct - level) < 1e-9]
    assert matches, f"no sample at {level}"
    return matches[0]


class TestLandmarks:
    def test_income_landmarks(self, standard_rc):
        marks = {m.label: m for m in landmarks(standard_rc)}
        assert marks["Barrier"].level_pct == 70.0
        assert marks["Barrier"].discontinuous is True
        assert marks["Break-even"].level_pct == pytest.approx(92.0)
        assert marks["Initial"].level_pct == 100.0

    def test_sorted_by_level(self, cppn_capped):
        levels = [m.level_pct for m in landmarks(cppn_capped)]
        assert levels == sorted(levels)
        assert 130.0 in levels

    def test_overlay_landmarks(self, knock_in_note, bonus_cert):
        ki = {m.label: m for m in landmarks(knock_in_note)}
        bonus = {m.label: m for m in landmarks(bonus_cert)}
        assert ki["Knock-in"].discontinuous is True
        assert bonus["Bonus barrier"].level_pct == 65.0
        # conditional results carry no single break-even level
        assert "Break-even" not in ki
        assert "Break-even" not in bonus


class TestGenerateCurve:
    def test_grid_covers_default_range(self, standard_rc):
        points = generate_curve(standard_rc)
        levels = np.array([p.level_pct for p in points])

        assert levels[0] == 0.0
        assert levels[-1] == pytest.approx(160.0)
        assert np.all(np.diff(levels) > 0)

    def test_jump_sampled_on_both_sides(self, standard_rc):
        points = generate_curve(standard_rc)
        at_barrier = _at(points, 70.0)
        below = _at(points, 70.0 - JUMP_EPS)

        assert at_barrier.total_pct == pytest.approx(108.0)
        assert below.total_pct == pytest.approx(78.0, abs=1e-4)
        assert at_barrier.note == "Barrier"

    def test_break_even_sampled_exactly(self, cppn_capped):
        points = generate_curve(cppn_capped)
        point = _at(points, 120.0)
        assert point.total_pct == pytest.approx(100.0)
        assert "Break-even" in point.note

    def test_top_extends_past_highest_landmark(self, single_basket):
        terms = ProtectionNoteTerms(
            tenor_months=12,
            basket=single_basket,
            capital_protection_pct=90.0,
            participation_rate_pct=50.0,
            cap_type=CapType.CAPPED,
            cap_level_pct=150.0,
        )
        points = generate_curve(terms)
        assert points[-1].level_pct == pytest.approx(188.0)

    def test_step(self, cppn_full):
        points = generate_curve(cppn_full, step_pct=0.5, max_level_pct=10.0)
        grid = [p.level_pct for p in points if p.level_pct <= 10.0]
        assert grid == pytest.approx([0.5 * i for i in range(21)])

    def test_coupon_included_in_total(self, geared_rc):
        for p in generate_curve(geared_rc):
            assert p.total_pct == pytest.approx(p.redemption_pct + 8.0)

    @pytest.mark.parametrize("step", [0.0, -1.0, float("nan")])
    def test_bad_step(self, standard_rc, step):
        with pytest.raises(InvalidInput):
            generate_curve(standard_rc, step_pct=step)

    @pytest.mark.parametrize("step", [0.1, 0.3, 0.7, 1.3, 1.7])
    def test_exact_barrier_sample_with_fractional_step(self, single_basket, step):
        for barrier in range(50, 100):
            terms = IncomeNoteTerms(
                tenor_months=12,
                basket=single_basket,
                barrier_pct=float(barrier),
                coupon_rate_pa=8.0,
            )
            points = generate_curve(terms, step_pct=step)
            at_barrier = [p for p in points if p.level_pct == float(barrier)]
            assert len(at_barrier) == 1, (step, barrier)
            assert at_barrier[0].total_pct == pytest.approx(108.0)
            assert "Barrier" in at_barrier[0].note
            # nothing else sits within rounding noise of the barrier
            close = [p for p in points if abs(p.level_pct - barrier) < 1e-9]
            assert close == at_barrier

    def test_knock_in_jump_sampled_on_both_sides(self, knock_in_note):
        points = generate_curve(knock_in_note, step_pct=0.7)
        at_ki = _at(points, 60.0)
        below = _at(points, 60.0 - JUMP_EPS)

        assert at_ki.redemption_pct == pytest.approx(90.0)
        assert below.redemption_pct < at_ki.redemption_pct
        assert at_ki.note == "Knock-in"

    def test_bonus_jump_sampled_on_both_sides(self, bonus_cert):
        points = generate_curve(bonus_cert, step_pct=1.3)
        at_barrier = _at(points, 65.0)
        below = _at(points, 65.0 - JUMP_EPS)

        assert at_barrier.redemption_pct == pytest.approx(108.0)
        assert below.redemption_pct == pytest.approx(65.0, abs=1e-4)
        assert at_barrier.note == "Bonus barrier"
