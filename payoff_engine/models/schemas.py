"""Canonical Pydantic data models for the structured-product payoff engine."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_validator,
)

from payoff_engine.models.errors import DomainAmbiguous, InvalidInput
from payoff_engine.models.units import Percent, looks_like_fraction, scale_fraction_fields
from payoff_engine.payoff.guards import continuity_strike_floor, floored_participation_pct


# ── Enums ────────────────────────────────────────────────────────────


class BasketRule(str, Enum):
    SINGLE = "single"
    WORST_OF = "worst_of"
    BEST_OF = "best_of"
    AVERAGE = "average"


class IncomeVariant(str, Enum):
    STANDARD_BARRIER = "standard_barrier"
    LOW_STRIKE_GEARED_PUT = "low_strike_geared_put"


class ParticipationDirection(str, Enum):
    UP = "up"
    DOWN = "down"


class CapType(str, Enum):
    NONE = "none"
    CAPPED = "capped"


class PayoffRegime(str, Enum):
    CASH_REDEMPTION = "cash_redemption"
    SHARE_CONVERSION = "share_conversion"
    PROTECTED = "protected"
    PARTICIPATING = "participating"
    CAPPED = "capped"
    KNOCKED_IN = "knocked_in"
    BONUS = "bonus"
    BONUS_BREACHED = "bonus_breached"


class RedemptionType(str, Enum):
    CASH = "cash"
    SHARES = "shares"


class SettlementType(str, Enum):
    CASH = "cash"
    PHYSICAL = "physical"


class BarrierStatus(str, Enum):
    SAFE = "safe"
    AT_RISK = "at_risk"
    BREACHED = "breached"
    NOT_APPLICABLE = "n/a"


class BonusStatus(str, Enum):
    ACTIVE = "active"
    LOST = "lost"
    NOT_APPLICABLE = "n/a"


# Payments per year -> label. 0 means a zero-coupon note.
COUPON_FREQUENCIES: dict[int, str] = {
    0: "None",
    1: "Annual",
    2: "Semi-Annual",
    4: "Quarterly",
    12: "Monthly",
}


def _reject_fraction(name: str, value: Optional[float]) -> Optional[float]:
    if looks_like_fraction(value):
        raise InvalidInput(
            f"{name}={value} looks like a 0-1 fraction; levels are expressed as 0-100 percent"
        )
    return value


# ── Basket ───────────────────────────────────────────────────────────


class Underlying(BaseModel):
    """One traded asset referenced by a note."""

    model_config = ConfigDict(frozen=True)

    ticker: str
    name: Optional[str] = None
    initial_fixing: float = Field(gt=0, allow_inf_nan=False)
    spot: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)


class BasketSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    rule: BasketRule = BasketRule.SINGLE
    underlyings: list[Underlying] = Field(min_length=1)

    @model_validator(mode="after")
    def check_rule_arity(self) -> BasketSpec:
        n = len(self.underlyings)
        if self.rule == BasketRule.SINGLE and n != 1:
            raise InvalidInput(f"Single basket requires exactly 1 underlying, got {n}")
        tickers = self.tickers
        if len(set(tickers)) != len(tickers):
            raise InvalidInput(f"Underlying tickers must be unique, got {tickers}")
        return self

    @property
    def tickers(self) -> list[str]:
        return [u.ticker for u in self.underlyings]

    @property
    def fixings(self) -> list[float]:
        return [u.initial_fixing for u in self.underlyings]


# ── Product Terms ────────────────────────────────────────────────────


class _NoteTerms(BaseModel):
    model_config = ConfigDict(frozen=True)

    notional: float = Field(default=100_000.0, gt=0, allow_inf_nan=False)
    currency: str = "USD"
    tenor_months: int = Field(gt=0)
    basket: BasketSpec


class IncomeNoteTerms(_NoteTerms):
    """Reverse convertible: coupons plus a barrier-contingent redemption.

    Constructing the model directly raises pydantic's ``ValidationError`` (a
    ``ValueError``) on bad terms. Use :func:`parse_terms` to get
    :class:`InvalidInput` or :class:`DomainAmbiguous` instead.
    """

    family: Literal["income_note"] = "income_note"
    variant: IncomeVariant = IncomeVariant.STANDARD_BARRIER
    barrier_pct: Optional[Percent] = None  # e.g. 70.0; geared put: knock-in trigger
    strike_pct: Optional[Percent] = None  # geared put only, e.g. 55.0
    coupon_rate_pa: Percent = 0.0  # e.g. 8.0 for 8% p.a.
    coupon_freq_per_year: int = 4
    conversion_ratio: float = Field(default=1.0, gt=0, allow_inf_nan=False)
    autocall_level_pct: Optional[Percent] = None

    @field_validator("barrier_pct", "strike_pct", "autocall_level_pct")
    @classmethod
    def levels_in_percent(cls, v: Optional[float], info: ValidationInfo) -> Optional[float]:
        return _reject_fraction(info.field_name, v)

    @field_validator("coupon_freq_per_year")
    @classmethod
    def known_frequency(cls, v: int) -> int:
        if v not in COUPON_FREQUENCIES:
            raise InvalidInput(
                f"Coupon frequency must be one of {sorted(COUPON_FREQUENCIES)}, got {v}"
            )
        return v

    @model_validator(mode="after")
    def check_variant_terms(self) -> IncomeNoteTerms:
        if self.variant == IncomeVariant.STANDARD_BARRIER:
            if self.barrier_pct is None:
                raise InvalidInput("Standard barrier note requires barrier_pct")
            if not 0 < self.barrier_pct <= 100:
                raise InvalidInput(f"Barrier must be in (0, 100], got {self.barrier_pct}")
        else:
            if self.strike_pct is None:
                raise InvalidInput("Geared put note requires strike_pct")
            if not 0 < self.strike_pct <= 100:
                raise InvalidInput(f"Strike must be in (0, 100], got {self.strike_pct}")
            if self.barrier_pct is not None and not 0 < self.barrier_pct <= self.strike_pct:
                raise InvalidInput(
                    f"Knock-in barrier ({self.barrier_pct}) must be in (0, strike={self.strike_pct}]"
                )

        if self.coupon_rate_pa > 0 and self.coupon_freq_per_year == 0:
            raise InvalidInput("A positive coupon rate needs a non-zero coupon frequency")

        if self.autocall_level_pct is not None and self.autocall_level_pct <= self.trigger_pct:
            raise InvalidInput(
                f"Autocall level ({self.autocall_level_pct}) must lie above the "
                f"barrier ({self.trigger_pct})"
            )
        return self

    @property
    def trigger_pct(self) -> float:
        """Level at or above which principal is repaid in cash."""
        if self.barrier_pct is not None:
            return self.barrier_pct
        return self.strike_pct

    @property
    def strike_level_pct(self) -> float:
        """Level at which delivered shares are priced (K in the break-even formula)."""
        if self.variant == IncomeVariant.LOW_STRIKE_GEARED_PUT:
            return self.strike_pct
        return 100.0


class ProtectionNoteTerms(_NoteTerms):
    """Capital-protected participation note, optionally with a knock-in or bonus overlay.

    As with :class:`IncomeNoteTerms`, direct construction reports bad terms as
    pydantic's ``ValidationError``; :func:`parse_terms` is the checked entry point.
    """

    family: Literal["protection_note"] = "protection_note"
    capital_protection_pct: Percent = Field(default=100.0, le=200)
    participation_start_pct: Percent = Field(default=100.0, le=300)
    participation_rate_pct: Percent = Field(default=100.0, le=500)
    participation_direction: ParticipationDirection = ParticipationDirection.UP

    cap_type: CapType = CapType.NONE
    cap_level_pct: Optional[Percent] = None

    knock_in_enabled: bool = False
    knock_in_level_pct: Optional[Percent] = Field(default=None, le=300)
    downside_strike_pct: Optional[Percent] = Field(default=None, le=300)

    bonus_enabled: bool = False
    bonus_level_pct: Optional[Percent] = None
    bonus_barrier_pct: Optional[Percent] = None

    @field_validator(
        "participation_start_pct",
        "cap_level_pct",
        "knock_in_level_pct",
        "downside_strike_pct",
        "bonus_level_pct",
        "bonus_barrier_pct",
    )
    @classmethod
    def levels_in_percent(cls, v: Optional[float], info: ValidationInfo) -> Optional[float]:
        return _reject_fraction(info.field_name, v)

    @model_validator(mode="after")
    def check_overlays(self) -> ProtectionNoteTerms:
        if self.bonus_enabled and self.knock_in_enabled:
            raise DomainAmbiguous(
                "Bonus and knock-in overlays are mutually exclusive; enable only one"
            )

        K = self.participation_start_pct
        if K <= 0:
            raise InvalidInput("Participation start must be greater than 0")

        if self.cap_type == CapType.CAPPED:
            C = self.cap_level_pct
            if C is None:
                raise InvalidInput("cap_level_pct is required when cap_type is 'capped'")
            if self.participation_direction == ParticipationDirection.UP and C <= K:
                raise InvalidInput(
                    f"Cap level ({C}) must be above participation start ({K}) for upward participation"
                )
            if self.participation_direction == ParticipationDirection.DOWN and C >= K:
                raise InvalidInput(
                    f"Cap level ({C}) must be below participation start ({K}) for downward participation"
                )

        if self.knock_in_enabled:
            KI = self.knock_in_level_pct
            if KI is None or KI <= 0:
                raise InvalidInput("knock_in_level_pct must be positive when the knock-in is enabled")
            S = self.downside_strike_pct
            if S is not None:
                if S <= 0:
                    raise InvalidInput("Downside strike must be greater than 0")
                s_min = self.continuity_strike_floor_pct
                if s_min is not None and S + 1e-6 < s_min:
                    raise InvalidInput(
                        f"Downside strike {S} would make the payoff jump up at the knock-in; "
                        f"use S >= {s_min:.2f} (protected payoff at KI={KI} is "
                        f"{self.protected_payoff_pct(KI):.2f})"
                    )

        if self.bonus_enabled:
            BL, B = self.bonus_level_pct, self.bonus_barrier_pct
            if BL is None or B is None:
                raise InvalidInput("bonus_level_pct and bonus_barrier_pct are required for a bonus")
            if BL < self.capital_protection_pct:
                raise InvalidInput(
                    f"Bonus level ({BL}) must be at least the protection floor "
                    f"({self.capital_protection_pct})"
                )
            if not 0 < B < 100:
                raise InvalidInput(f"Bonus barrier must be in (0, 100), got {B}")
        return self

    @property
    def capped(self) -> bool:
        return self.cap_type == CapType.CAPPED and self.cap_level_pct is not None

    def protected_payoff_pct(self, level: float) -> float:
        """Floored, optionally capped participation payoff with no overlay applied."""
        return floored_participation_pct(
            level,
            floor=self.capital_protection_pct,
            start=self.participation_start_pct,
            rate_pct=self.participation_rate_pct,
            direction=self.participation_direction.value,
            cap=self.cap_level_pct if self.capped else None,
        )

    @property
    def continuity_strike_floor_pct(self) -> Optional[float]:
        if self.knock_in_level_pct is None:
            return None
        KI = self.knock_in_level_pct
        return continuity_strike_floor(self.protected_payoff_pct(KI), KI)


ProductTerms = Annotated[
    Union[IncomeNoteTerms, ProtectionNoteTerms], Field(discriminator="family")
]

_TERMS_ADAPTER: TypeAdapter = TypeAdapter(ProductTerms)


def parse_terms(payload: dict[str, Any], fractions: bool = False) -> IncomeNoteTerms | ProtectionNoteTerms:
    """Build terms from a plain dict, converting 0-1 fractions when ``fractions`` is set.

    Validation failures surface as :class:`InvalidInput` or
    :class:`DomainAmbiguous` instead of pydantic's ``ValidationError``.
    """
    data = scale_fraction_fields(payload) if fractions else payload
    try:
        return _TERMS_ADAPTER.validate_python(data)
    except ValidationError as exc:
        for err in exc.errors():
            cause = (err.get("ctx") or {}).get("error")
            if isinstance(cause, DomainAmbiguous):
                raise DomainAmbiguous(str(cause)) from exc
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'terms'}: {err['msg']}"
            for err in exc.errors()
        )
        raise InvalidInput(details) from exc


# ── Engine Outputs ───────────────────────────────────────────────────


class ResolvedLevel(BaseModel):
    """Basket reduced to a single settlement level."""

    model_config = ConfigDict(frozen=True)

    level_pct: float
    driving_index: Optional[int] = None  # None for an average basket
    component_levels_pct: list[float]
    rule: BasketRule


class PayoffValue(BaseModel):
    model_config = ConfigDict(frozen=True)

    level_pct: float
    redemption_pct: float
    coupon_pct: float = 0.0
    total_pct: float
    regime: PayoffRegime


class CurvePoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    level_pct: float
    redemption_pct: float
    total_pct: float
    coupon_pct: float = 0.0
    note: Optional[str] = None


class Landmark(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    level_pct: float
    discontinuous: bool = False  # payoff jumps at this level


# ── Break-Even Results ───────────────────────────────────────────────


class AlwaysBreakEven(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["always"] = "always"
    reason: str
    min_return_pct: float


class LevelBreakEven(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["level"] = "level"
    level_pct: float
    floor_pct: Optional[float] = None
    # False when the solved level sits where a different formula pays out
    # (e.g. a reverse convertible break-even above its barrier).
    within_payoff_zone: bool = True


class ImpossibleBreakEven(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["impossible"] = "impossible"
    reason: str
    max_return_pct: Optional[float] = None


class KnockInConditionalBreakEven(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["knock_in_conditional"] = "knock_in_conditional"
    protected_breakeven_pct: Optional[float] = None
    protected_always: bool = False
    knock_in_level_pct: float
    downside_strike_pct: float
    knocked_in_breakeven_pct: Optional[float] = None
    capital_protection_pct: float
    note: str


class BonusConditionalBreakEven(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["bonus_conditional"] = "bonus_conditional"
    bonus_floor_pct: float
    barrier_pct: float
    surviving_breakeven_pct: Optional[float] = None
    breached_breakeven_pct: float = 100.0
    note: str


BreakEvenResult = Annotated[
    Union[
        AlwaysBreakEven,
        LevelBreakEven,
        ImpossibleBreakEven,
        KnockInConditionalBreakEven,
        BonusConditionalBreakEven,
    ],
    Field(discriminator="kind"),
]


# ── Reporting ────────────────────────────────────────────────────────


class ScenarioRow(BaseModel):
    """One illustrative outcome in the scenario table."""

    model_config = ConfigDict(frozen=True)

    level_pct: float
    regime: PayoffRegime
    redemption_type: RedemptionType
    redemption_pct: float
    coupon_pct: float
    coupons_amount: float
    redemption_amount: float
    ending_value: float
    total_return_pct: float
    is_trigger: bool = False
    is_break_even: bool = False


class SettlementPreview(BaseModel):
    """Projected settlement if today's prices were the final fixings."""

    model_config = ConfigDict(frozen=True)

    resolved: ResolvedLevel
    payoff: PayoffValue
    settlement_type: SettlementType
    redemption_amount: float
    coupons_amount: float
    shares_delivered: Optional[float] = None
    shares_market_value: Optional[float] = None
    delivered_ticker: Optional[str] = None
    monitored_barrier_pct: Optional[float] = None
    barrier_status: BarrierStatus = BarrierStatus.NOT_APPLICABLE
    bonus_status: BonusStatus = BonusStatus.NOT_APPLICABLE
    autocall_triggered: bool = False
