"""Tests for the scenario table generator."""

import pytest

from payoff_engine.curves.scenarios import (
    DEFAULT_INCOME_LEVELS,
    DEFAULT_PROTECTION_LEVELS,
    build_scenario_table,
    trigger_level_pct,
)
from payoff_engine.models.errors import InvalidInput
from payoff_engine.models.schemas import PayoffRegime, RedemptionType


class TestScenarioTable:
    def test_default_income_levels(self, standard_rc):
        rows = build_scenario_table(standard_rc)
        assert [r.level_pct for r in rows] == DEFAULT_INCOME_LEVELS

    def test_default_protection_levels(self, cppn_capped):
        rows = build_scenario_table(cppn_capped)
        assert [r.level_pct for r in rows] == DEFAULT_PROTECTION_LEVELS

    def test_cash_row(self, standard_rc):
        row = build_scenario_table(standard_rc, levels=[120.0])[0]
        assert row.redemption_type == RedemptionType.CASH
        assert row.redemption_amount == pytest.approx(100_000.0)
        assert row.coupons_amount == pytest.approx(8_000.0)
        assert row.ending_value == pytest.approx(108_000.0)
        assert row.total_return_pct == pytest.approx(8.0)

    def test_share_row(self, standard_rc):
        row = build_scenario_table(standard_rc, levels=[60.0])[0]
        assert row.redemption_type == RedemptionType.SHARES
        assert row.regime == PayoffRegime.SHARE_CONVERSION
        assert row.ending_value == pytest.approx(68_000.0)
        assert row.total_return_pct == pytest.approx(-32.0)

    def test_notional_override(self, standard_rc):
        row = build_scenario_table(standard_rc, notional=50_000.0, levels=[60.0])[0]
        assert row.redemption_amount == pytest.approx(30_000.0)

    def test_trigger_and_break_even_flags(self, standard_rc):
        rows = build_scenario_table(standard_rc, levels=[92.0, 90.0, 70.0, 69.0])
        assert [r.is_break_even for r in rows] == [True, False, False, False]
        assert [r.is_trigger for r in rows] == [False, False, True, False]

    def test_conditional_break_even_flags_nothing(self, knock_in_note):
        rows = build_scenario_table(knock_in_note)
        assert not any(r.is_break_even for r in rows)
        knocked = build_scenario_table(knock_in_note, levels=[50.0])[0]
        assert knocked.redemption_type == RedemptionType.SHARES

    def test_invalid_notional(self, standard_rc):
        with pytest.raises(InvalidInput):
            build_scenario_table(standard_rc, notional=0.0)

    def test_trigger_level(self, standard_rc, cppn_full, bonus_cert):
        assert trigger_level_pct(standard_rc) == 70.0
        assert trigger_level_pct(bonus_cert) == 65.0
        assert trigger_level_pct(cppn_full) is None
