"""Reduce a basket of underlyings to one settlement level."""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from payoff_engine.models.errors import InvalidInput
from payoff_engine.models.schemas import BasketRule, BasketSpec, ResolvedLevel


def normalized_levels(spots: Sequence[float], fixings: Sequence[float]) -> np.ndarray:
    """Per-asset levels ``100 * spot_i / fixing_i``."""
    if len(spots) != len(fixings):
        raise InvalidInput(
            f"Spots and fixings must have the same length ({len(spots)} != {len(fixings)})"
        )
    if len(spots) == 0:
        raise InvalidInput("Spots and fixings cannot be empty")

    s = np.asarray(spots, dtype=float)
    f = np.asarray(fixings, dtype=float)

    if not (np.all(np.isfinite(s)) and np.all(np.isfinite(f))):
        raise InvalidInput("Spots and fixings must be finite numbers")
    if np.any(s < 0):
        raise InvalidInput(f"Spot prices cannot be negative: {s.tolist()}")
    bad = np.flatnonzero(f <= 0)
    if bad.size:
        raise InvalidInput(f"Initial fixing must be positive for underlying {int(bad[0])}")

    return 100.0 * s / f


def resolve_basket(
    basket: BasketSpec,
    spots: Sequence[float],
    fixings: Optional[Sequence[float]] = None,
) -> ResolvedLevel:
    """Settlement level for ``basket`` given spot prices.

    ``fixings`` defaults to the basket's own initial fixings.
    """
    if fixings is None:
        fixings = basket.fixings
    levels = normalized_levels(spots, fixings)
    if levels.size != len(basket.underlyings):
        raise InvalidInput(
            f"Basket has {len(basket.underlyings)} underlyings but {levels.size} prices were given"
        )

    # argmin/argmax return the first occurrence, so exact ties resolve to the lowest index
    if basket.rule == BasketRule.SINGLE:
        level, idx = levels[0], 0
    elif basket.rule == BasketRule.WORST_OF:
        idx = int(np.argmin(levels))
        level = levels[idx]
    elif basket.rule == BasketRule.BEST_OF:
        idx = int(np.argmax(levels))
        level = levels[idx]
    else:
        level, idx = levels.mean(), None

    return ResolvedLevel(
        level_pct=float(level),
        driving_index=idx,
        component_levels_pct=[float(x) for x in levels],
        rule=basket.rule,
    )


def resolve_from_underlyings(basket: BasketSpec) -> ResolvedLevel:
    """Resolve using the ``spot`` recorded on each underlying."""
    missing = [u.ticker for u in basket.underlyings if u.spot is None]
    if missing:
        raise InvalidInput(f"Missing spot price for {', '.join(missing)}")
    return resolve_basket(basket, [u.spot for u in basket.underlyings])
