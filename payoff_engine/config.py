"""Engine settings, read from the environment (and a local .env file)."""

from __future__ import annotations

import logging
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from payoff_engine.models.errors import InvalidInput

# Environment variable -> EngineConfig field
ENV_VARS = {
    "PAYOFF_CURVE_STEP_PCT": "curve_step_pct",
    "PAYOFF_CURVE_MAX_LEVEL_PCT": "curve_max_level_pct",
    "PAYOFF_AT_RISK_BAND_PCT": "at_risk_band_pct",
    "PAYOFF_LOG_LEVEL": "log_level",
}


class EngineConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    curve_step_pct: float = Field(default=1.0, gt=0, allow_inf_nan=False)
    curve_max_level_pct: float = Field(default=160.0, gt=0, allow_inf_nan=False)
    at_risk_band_pct: float = Field(default=5.0, ge=0, allow_inf_nan=False)
    log_level: str = "WARNING"

    @field_validator("log_level")
    @classmethod
    def known_level(cls, v: str) -> str:
        v = v.strip().upper()
        if not isinstance(logging.getLevelName(v), int):
            raise ValueError(f"Unknown log level: {v}")
        return v


def load_config(env_file: Optional[str | os.PathLike] = None) -> EngineConfig:
    """Build an EngineConfig from ``PAYOFF_*`` environment variables.

    Variables already set in the process environment win over ``env_file``.
    """
    load_dotenv(env_file)
    values = {field: os.environ[var] for var, field in ENV_VARS.items() if os.environ.get(var)}
    try:
        return EngineConfig(**values)
    except ValidationError as exc:
        raise InvalidInput(f"Invalid engine configuration: {exc}") from exc
