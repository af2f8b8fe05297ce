"""Indicator snapshot models.

A snapshot is derived data: it is rebuilt from the price history on every
update and replaced as a whole, never patched field by field.
"""

from pydantic import BaseModel, ConfigDict


class MacdResult(BaseModel):
    """MACD line plus the two EMAs it was derived from."""

    model_config = ConfigDict(frozen=True)

    macd: float
    ema12: float
    ema26: float

    @property
    def is_bullish(self) -> bool:
        return self.macd > 0


class BollingerBands(BaseModel):
    """Volatility envelope around a simple moving average."""

    model_config = ConfigDict(frozen=True)

    upper: float
    middle: float
    lower: float


class IndicatorSnapshot(BaseModel):
    """Latest indicator values for one instrument.

    Every field is optional: ``None`` means the history is still too short
    for that indicator.
    """

    model_config = ConfigDict(frozen=True)

    sma20: float | None = None
    sma50: float | None = None
    ema12: float | None = None
    ema26: float | None = None
    rsi: float | None = None
    macd: MacdResult | None = None
    bollinger: BollingerBands | None = None
    volume: int | None = None
    volume_avg: float | None = None
