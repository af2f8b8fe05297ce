"""Indicator configuration models."""

from __future__ import annotations

from decimal import Decimal
from pydantic import BaseModel, Field, model_validator


class IndicatorConfig(BaseModel):
    """Indicator periods used when building a snapshot.

    Field names of ``IndicatorSnapshot`` reflect the default periods.
    """

    # Moving averages
    sma_short_period: int = Field(default=20, ge=1)
    sma_long_period: int = Field(default=50, ge=1)
    ema_fast_period: int = Field(default=12, ge=1)
    ema_slow_period: int = Field(default=26, ge=1)

    # Momentum
    rsi_period: int = Field(default=14, ge=1)

    # Volatility bands
    bollinger_period: int = Field(default=20, ge=1)
    bollinger_k: float = Field(default=2.0, gt=0)

    # Volume average
    volume_period: int = Field(default=20, ge=1)

    # No snapshot at all below this many observations
    min_history: int = Field(default=20, ge=1)

    @model_validator(mode="after")
    def _check_ema_order(self) -> "IndicatorConfig":
        if self.ema_fast_period >= self.ema_slow_period:
            raise ValueError(
                f"ema_fast_period ({self.ema_fast_period}) must be shorter "
                f"than ema_slow_period ({self.ema_slow_period})"
            )
        return self


class AlertConfig(BaseModel):
    """Alert evaluation parameters."""

    # Alert fires when |current - target| / target < tolerance
    tolerance: Decimal = Field(default=Decimal("0.01"), gt=0, lt=1)
