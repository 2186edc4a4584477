"""Prediction models — raw store records and normalized tick ranges."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from cellar_rebalancer.models.token import Uint256

INT24_MIN = -(2**23)
INT24_MAX = 2**23 - 1
UINT32_MAX = 2**32 - 1


class RawRange(BaseModel):
    """A weighted price bound as stored by the prediction job.

    The job writes whatever numeric type its driver produced (int, float,
    Decimal128, numeric string); everything is coerced to float here.
    """

    lower: float = Field(allow_inf_nan=False)
    upper: float = Field(allow_inf_nan=False)
    weight: float = Field(allow_inf_nan=False)

    @field_validator("lower", "upper", "weight", mode="before")
    @classmethod
    def _coerce_numeric(cls, value: Any) -> float:
        if isinstance(value, bool) or value is None:
            raise ValueError("expected a number")
        return float(value)


class PredictionRecord(BaseModel):
    """The latest tick-range prediction for a pair."""

    id: str
    created_timestamp: datetime
    pair_id: Uint256
    symbol: str
    ranges: list[RawRange] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> str:
        return str(value)

    @field_validator("created_timestamp")
    @classmethod
    def _require_timezone(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            raise ValueError("created_timestamp must be timezone-aware")
        return value


class WeightedRange(BaseModel):
    """A tick interval with the share of liquidity it should hold."""

    model_config = ConfigDict(frozen=True)

    lower_tick: int = Field(ge=INT24_MIN, le=INT24_MAX)
    upper_tick: int = Field(ge=INT24_MIN, le=INT24_MAX)
    weight: int = Field(ge=0, le=UINT32_MAX)

    @model_validator(mode="after")
    def _ordered_bounds(self) -> WeightedRange:
        if self.lower_tick > self.upper_tick:
            raise ValueError(
                f"lower_tick {self.lower_tick} is above upper_tick {self.upper_tick}"
            )
        return self
