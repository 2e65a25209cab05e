"""Public entry point tying the resolver, evaluator, solver and report layers together."""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from payoff_engine.basket import resolver
from payoff_engine.breakeven.solver import BreakEvenSolver
from payoff_engine.config import EngineConfig
from payoff_engine.curves import generator, scenarios
from payoff_engine.models.errors import PayoffEngineError, Unsolvable
from payoff_engine.models.schemas import (
    BasketSpec,
    CurvePoint,
    IncomeNoteTerms,
    LevelBreakEven,
    PayoffValue,
    ProtectionNoteTerms,
    ResolvedLevel,
    ScenarioRow,
    SettlementPreview,
    parse_terms,
)
from payoff_engine.monitoring import settlement
from payoff_engine.payoff import evaluator
from payoff_engine.report import formatters

logger = logging.getLogger(__name__)

Terms = IncomeNoteTerms | ProtectionNoteTerms


class PayoffEngine:
    """Stateless facade over the payoff math; holds only its config."""

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()
        self.solver = BreakEvenSolver()

    def resolve_basket(
        self,
        basket: BasketSpec,
        spots: Sequence[float],
        fixings: Optional[Sequence[float]] = None,
    ) -> ResolvedLevel:
        return resolver.resolve_basket(basket, spots, fixings)

    def evaluate_payoff(self, terms: Terms, level: float) -> PayoffValue:
        value = evaluator.evaluate_payoff(terms, level)
        logger.debug(
            "%s payoff at %.4f: %.4f (%s)",
            terms.family, level, value.total_pct, value.regime.value,
        )
        return value

    def solve_break_even(self, terms: Terms):
        result = self.solver.solve(terms)
        logger.debug("%s break-even: %s", terms.family, result)
        return result

    def break_even_level(self, terms: Terms) -> float:
        """The single break-even level, or :class:`Unsolvable` when there is none."""
        result = self.solve_break_even(terms)
        if not isinstance(result, LevelBreakEven):
            raise Unsolvable(formatters.format_break_even(result))
        return result.level_pct

    def generate_curve(self, terms: Terms) -> list[CurvePoint]:
        return generator.generate_curve(
            terms,
            step_pct=self.config.curve_step_pct,
            max_level_pct=self.config.curve_max_level_pct,
        )

    def build_scenario_table(
        self,
        terms: Terms,
        notional: Optional[float] = None,
        levels: Optional[Sequence[float]] = None,
    ) -> list[ScenarioRow]:
        return scenarios.build_scenario_table(terms, notional=notional, levels=levels)

    def preview_settlement(
        self,
        terms: Terms,
        spots: Optional[Sequence[float]] = None,
        fixings: Optional[Sequence[float]] = None,
        months_elapsed: Optional[float] = None,
    ) -> SettlementPreview:
        return settlement.preview_settlement(
            terms,
            spots=spots,
            fixings=fixings,
            at_risk_band_pct=self.config.at_risk_band_pct,
            months_elapsed=months_elapsed,
        )

    def build_report(
        self,
        payload: dict[str, Any],
        fractions: bool = False,
        notional: Optional[float] = None,
        levels: Optional[Sequence[float]] = None,
        spots: Optional[Sequence[float]] = None,
    ) -> str:
        """Markdown report for a terms dict. Invalid input renders as a message."""
        try:
            terms = parse_terms(payload, fractions=fractions)
            sections = [
                "## Break-even",
                formatters.format_break_even(self.solve_break_even(terms)),
                "## Scenarios",
                formatters.format_scenario_table(
                    self.build_scenario_table(terms, notional=notional, levels=levels),
                    terms.currency,
                ),
            ]
            if spots is not None:
                sections += [
                    "## Settlement preview",
                    formatters.format_settlement_preview(
                        self.preview_settlement(terms, spots=spots), terms.currency
                    ),
                ]
        except PayoffEngineError as exc:
            logger.warning("Report not built: %s", exc)
            return formatters.format_invalid_terms(exc)
        return "\n\n".join(sections)
