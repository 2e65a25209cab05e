"""Result display formatting utilities."""

from __future__ import annotations

import pandas as pd

from payoff_engine.models.schemas import (
    AlwaysBreakEven,
    BonusConditionalBreakEven,
    CurvePoint,
    ImpossibleBreakEven,
    KnockInConditionalBreakEven,
    LevelBreakEven,
    ScenarioRow,
    SettlementPreview,
)


def format_scenario_table(rows: list[ScenarioRow], currency: str = "USD") -> str:
    """Format the scenario rows as a markdown table."""
    lines = []
    for r in rows:
        tags = []
        if r.is_trigger:
            tags.append("barrier")
        if r.is_break_even:
            tags.append("break-even")
        level = f"{r.level_pct:.2f}%" + (f" ({', '.join(tags)})" if tags else "")
        lines.append(
            f"| {level} | {r.redemption_type.value} | {r.redemption_pct:.2f}% "
            f"| {r.coupons_amount:,.2f} | {r.ending_value:,.2f} | {r.total_return_pct:+.2f}% |"
        )

    header = (
        f"| Final level | Redemption | Payoff | Coupons ({currency}) "
        f"| Ending value ({currency}) | Total return |\n"
        "|-------------|------------|--------|---------|--------------|--------------|"
    )
    return header + "\n" + "\n".join(lines)


def format_break_even(result) -> str:
    """One human-readable line describing a break-even result."""
    if isinstance(result, AlwaysBreakEven):
        return (
            f"Break-even always reached: {result.reason} "
            f"(minimum payoff {result.min_return_pct:.2f}% of notional)"
        )

    if isinstance(result, LevelBreakEven):
        text = f"Break-even at {result.level_pct:.2f}% of the initial level"
        if result.floor_pct is not None:
            text += f" (protected floor {result.floor_pct:.2f}%)"
        if not result.within_payoff_zone:
            text += "; the note repays par above the barrier, so the return turns positive at the barrier"
        return text

    if isinstance(result, ImpossibleBreakEven):
        return f"Break-even not reachable: {result.reason}"

    if isinstance(result, KnockInConditionalBreakEven):
        if result.protected_always:
            first = (
                f"Capital protected at {result.capital_protection_pct:.2f}% "
                f"while the level stays at or above {result.knock_in_level_pct:.2f}%"
            )
        elif result.protected_breakeven_pct is not None:
            first = (
                f"Break-even at {result.protected_breakeven_pct:.2f}% "
                f"while the knock-in at {result.knock_in_level_pct:.2f}% holds"
            )
        else:
            first = (
                f"Break-even not reachable while the knock-in at "
                f"{result.knock_in_level_pct:.2f}% holds"
            )
        if result.knocked_in_breakeven_pct is not None:
            second = f"after knock-in, break-even at {result.knocked_in_breakeven_pct:.2f}%"
        else:
            second = "after knock-in, par is not reachable"
        return f"{first}; {second}"

    if isinstance(result, BonusConditionalBreakEven):
        if result.bonus_floor_pct >= 100.0:
            first = (
                f"Bonus of {result.bonus_floor_pct:.2f}% repays at least par while the "
                f"{result.barrier_pct:.2f}% barrier holds"
            )
        elif result.surviving_breakeven_pct is not None:
            first = (
                f"Break-even at {result.surviving_breakeven_pct:.2f}% while the "
                f"{result.barrier_pct:.2f}% barrier holds"
            )
        else:
            first = f"Break-even not reachable while the {result.barrier_pct:.2f}% barrier holds"
        return (
            f"{first}; if breached, break-even at {result.breached_breakeven_pct:.2f}% "
            f"(1:1 tracking)"
        )

    raise TypeError(f"Unknown break-even result: {type(result).__name__}")


def format_invalid_terms(error: Exception) -> str:
    return f"Invalid terms: {error}"


def format_settlement_preview(preview: SettlementPreview, currency: str = "USD") -> str:
    """Format a settlement preview as a metric/value markdown table."""
    lines = [
        "| Metric | Value |",
        "|--------|-------|",
        f"| Basket level | {preview.resolved.level_pct:.2f}% ({preview.resolved.rule.value}) |",
        f"| Outcome | {preview.payoff.regime.value} |",
        f"| Settlement | {preview.settlement_type.value} |",
        f"| Redemption | {preview.redemption_amount:,.2f} {currency} |",
        f"| Coupons | {preview.coupons_amount:,.2f} {currency} |",
    ]
    if preview.shares_delivered is not None:
        lines.append(
            f"| Shares delivered | {preview.shares_delivered:,.4f} {preview.delivered_ticker} "
            f"(worth {preview.shares_market_value:,.2f} {currency}) |"
        )
    if preview.monitored_barrier_pct is not None:
        lines.append(
            f"| Barrier | {preview.monitored_barrier_pct:.2f}% ({preview.barrier_status.value}) |"
        )
    if preview.bonus_status.value != "n/a":
        lines.append(f"| Bonus | {preview.bonus_status.value} |")
    if preview.autocall_triggered:
        lines.append("| Autocall | triggered |")
    return "\n".join(lines)


def scenarios_to_frame(rows: list[ScenarioRow]) -> pd.DataFrame:
    return pd.DataFrame([r.model_dump(mode="json") for r in rows])


def curve_to_frame(points: list[CurvePoint]) -> pd.DataFrame:
    return pd.DataFrame(
        [p.model_dump() for p in points],
        columns=["level_pct", "redemption_pct", "coupon_pct", "total_pct", "note"],
    )
