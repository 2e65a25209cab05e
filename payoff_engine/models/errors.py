"""Error taxonomy for the payoff engine."""

from __future__ import annotations


class PayoffEngineError(ValueError):
    """Base class for every error raised by the engine."""


class InvalidInput(PayoffEngineError):
    """Malformed or contradictory terms, prices or levels."""


class Unsolvable(PayoffEngineError):
    """No single break-even level exists for the given terms."""


class DomainAmbiguous(PayoffEngineError):
    """Mutually exclusive overlays (bonus and knock-in) were both requested."""
