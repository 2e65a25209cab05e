"""Shared test fixtures."""

import pytest

from payoff_engine.models.schemas import (
    BasketRule,
    BasketSpec,
    CapType,
    IncomeNoteTerms,
    IncomeVariant,
    ProtectionNoteTerms,
    Underlying,
)


@pytest.fixture
def single_basket():
    """AAPL fixed at 200, trading at 150 (level 75%)."""
    return BasketSpec(
        rule=BasketRule.SINGLE,
        underlyings=[Underlying(ticker="AAPL", name="Apple Inc.", initial_fixing=200.0, spot=150.0)],
    )


@pytest.fixture
def worst_of_basket():
    """Levels 75%, 110%, 62%: NVDA drives a worst-of."""
    return BasketSpec(
        rule=BasketRule.WORST_OF,
        underlyings=[
            Underlying(ticker="AAPL", initial_fixing=200.0, spot=150.0),
            Underlying(ticker="MSFT", initial_fixing=400.0, spot=440.0),
            Underlying(ticker="NVDA", initial_fixing=100.0, spot=62.0),
        ],
    )


@pytest.fixture
def standard_rc(single_basket):
    """Barrier 70%, 8% p.a. paid quarterly for 12 months."""
    return IncomeNoteTerms(
        tenor_months=12,
        basket=single_basket,
        barrier_pct=70.0,
        coupon_rate_pa=8.0,
        coupon_freq_per_year=4,
    )


@pytest.fixture
def geared_rc(single_basket):
    """Low strike 55%, 8% p.a. quarterly for 12 months."""
    return IncomeNoteTerms(
        tenor_months=12,
        basket=single_basket,
        variant=IncomeVariant.LOW_STRIKE_GEARED_PUT,
        strike_pct=55.0,
        coupon_rate_pa=8.0,
        coupon_freq_per_year=4,
    )


@pytest.fixture
def cppn_full(single_basket):
    """Full protection, 120% participation from 100%."""
    return ProtectionNoteTerms(
        tenor_months=36,
        basket=single_basket,
        capital_protection_pct=100.0,
        participation_rate_pct=120.0,
    )


@pytest.fixture
def cppn_capped(single_basket):
    """90% floor, 50% participation from 100%, capped at 130%."""
    return ProtectionNoteTerms(
        tenor_months=36,
        basket=single_basket,
        capital_protection_pct=90.0,
        participation_rate_pct=50.0,
        cap_type=CapType.CAPPED,
        cap_level_pct=130.0,
    )


@pytest.fixture
def bonus_cert(single_basket):
    """Bonus 108% while the 65% barrier holds, 1:1 upside."""
    return ProtectionNoteTerms(
        tenor_months=24,
        basket=single_basket,
        capital_protection_pct=100.0,
        participation_rate_pct=100.0,
        bonus_enabled=True,
        bonus_level_pct=108.0,
        bonus_barrier_pct=65.0,
    )


@pytest.fixture
def knock_in_note(single_basket):
    """90% floor, 50% participation, protection lost below 60%."""
    return ProtectionNoteTerms(
        tenor_months=36,
        basket=single_basket,
        capital_protection_pct=90.0,
        participation_rate_pct=50.0,
        knock_in_enabled=True,
        knock_in_level_pct=60.0,
    )


@pytest.fixture
def income_payload():
    """Plain-dict terms as they arrive from a form or JSON file."""
    return {
        "family": "income_note",
        "tenor_months": 12,
        "barrier_pct": 70.0,
        "coupon_rate_pa": 8.0,
        "coupon_freq_per_year": 4,
        "basket": {
            "rule": "single",
            "underlyings": [{"ticker": "AAPL", "initial_fixing": 200.0, "spot": 150.0}],
        },
    }
