"""Tests for the engine facade and its configuration."""

import logging

import numpy as np
import pytest

from payoff_engine.config import ENV_VARS, EngineConfig, load_config
from payoff_engine.engine import PayoffEngine
from payoff_engine.models.errors import InvalidInput, Unsolvable


@pytest.fixture
def engine():
    return PayoffEngine()


class TestPayoffEngine:
    def test_break_even_level(self, engine, standard_rc):
        assert engine.break_even_level(standard_rc) == pytest.approx(92.0)

    def test_break_even_level_unsolvable(self, engine, cppn_full, bonus_cert):
        with pytest.raises(Unsolvable, match="always reached"):
            engine.break_even_level(cppn_full)
        with pytest.raises(Unsolvable):
            engine.break_even_level(bonus_cert)

    def test_curve_uses_config(self, cppn_full):
        engine = PayoffEngine(EngineConfig(curve_step_pct=0.5, curve_max_level_pct=200.0))
        levels = np.array([p.level_pct for p in engine.generate_curve(cppn_full)])
        assert levels[-1] == pytest.approx(200.0)
        assert len(levels) == 401

    def test_settlement_uses_config_band(self, standard_rc):
        engine = PayoffEngine(EngineConfig(at_risk_band_pct=10.0))
        preview = engine.preview_settlement(standard_rc)
        assert preview.barrier_status.value == "at_risk"

    def test_evaluate_logs_at_debug(self, engine, standard_rc, caplog):
        with caplog.at_level(logging.DEBUG, logger="payoff_engine.engine"):
            engine.evaluate_payoff(standard_rc, 60.0)
        assert "share_conversion" in caplog.text

    def test_resolve_basket(self, engine, worst_of_basket):
        resolved = engine.resolve_basket(worst_of_basket, [200.0, 400.0, 50.0])
        assert resolved.level_pct == pytest.approx(50.0)


class TestBuildReport:
    def test_report_sections(self, engine, income_payload):
        report = engine.build_report(income_payload)
        assert "## Break-even" in report
        assert "Break-even at 92.00%" in report
        assert "## Scenarios" in report
        assert "Settlement preview" not in report

    def test_report_with_settlement(self, engine, income_payload):
        report = engine.build_report(income_payload, spots=[120.0])
        assert "## Settlement preview" in report
        assert "physical" in report

    def test_fraction_payload(self, engine, income_payload):
        payload = dict(income_payload, barrier_pct=0.7, coupon_rate_pa=0.08)
        assert "Break-even at 92.00%" in engine.build_report(payload, fractions=True)

    def test_invalid_terms_rendered(self, engine, income_payload):
        report = engine.build_report(dict(income_payload, barrier_pct=0.7))
        assert report.startswith("Invalid terms:")

    def test_ambiguous_terms_rendered(self, engine, income_payload):
        payload = {
            "family": "protection_note",
            "tenor_months": 12,
            "basket": income_payload["basket"],
            "knock_in_enabled": True,
            "knock_in_level_pct": 60.0,
            "bonus_enabled": True,
            "bonus_level_pct": 110.0,
            "bonus_barrier_pct": 65.0,
        }
        report = engine.build_report(payload)
        assert report.startswith("Invalid terms:")
        assert "mutually exclusive" in report

    def test_bad_spots_rendered(self, engine, income_payload):
        report = engine.build_report(income_payload, spots=[1.0, 2.0])
        assert report.startswith("Invalid terms:")


class TestLoadConfig:
    def test_defaults(self, monkeypatch, tmp_path):
        for var in ENV_VARS:
            monkeypatch.delenv(var, raising=False)
        config = load_config(tmp_path / "missing.env")
        assert config == EngineConfig()

    def test_from_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("PAYOFF_CURVE_STEP_PCT", "0.25")
        monkeypatch.setenv("PAYOFF_LOG_LEVEL", "debug")
        config = load_config(tmp_path / "missing.env")
        assert config.curve_step_pct == 0.25
        assert config.log_level == "DEBUG"

    def test_from_dotenv_file(self, monkeypatch, tmp_path):
        # set first so monkeypatch restores the unset state afterwards
        monkeypatch.setenv("PAYOFF_AT_RISK_BAND_PCT", "0")
        monkeypatch.delenv("PAYOFF_AT_RISK_BAND_PCT")
        env_file = tmp_path / ".env"
        env_file.write_text("PAYOFF_AT_RISK_BAND_PCT=2.5\n")

        assert load_config(env_file).at_risk_band_pct == 2.5

    @pytest.mark.parametrize(
        "var,value",
        [("PAYOFF_CURVE_STEP_PCT", "0"), ("PAYOFF_CURVE_STEP_PCT", "abc"), ("PAYOFF_LOG_LEVEL", "LOUD")],
    )
    def test_invalid_values(self, monkeypatch, tmp_path, var, value):
        monkeypatch.setenv(var, value)
        with pytest.raises(InvalidInput):
            load_config(tmp_path / "missing.env")
