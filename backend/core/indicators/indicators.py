"""Technical indicators for the price-history pipeline.

Each function takes an ordered series (oldest first) and returns the value
for the latest element, or ``None`` when the series is too short. ``None``
means "not yet computable" and must never be treated as zero.

Values are computed with NumPy in float64, following the same recurrences
as the streaming implementations in ``core.indicators.streaming`` so both
produce identical numbers over the same input.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Sequence

import numpy as np

from core.models.config import IndicatorConfig
from core.models.snapshot import BollingerBands, IndicatorSnapshot, MacdResult

Number = Decimal | float | int


def _to_array(values: Sequence[Number]) -> np.ndarray:
    return np.array([float(v) for v in values], dtype=np.float64)


def sma(values: Sequence[Number], period: int) -> float | None:
    """
    Calculate Simple Moving Average of the last ``period`` values.

    Args:
        values: Sequence of values, oldest first
        period: SMA period

    Returns:
        Arithmetic mean of the trailing window, or None if len(values) < period
    """
    if period <= 0 or len(values) < period:
        return None
    arr = _to_array(values[-period:])
    return float(np.mean(arr))


def ema(values: Sequence[Number], period: int) -> float | None:
    """
    Calculate Exponential Moving Average.

    The seed is the SMA of the *first* ``period`` values; the recurrence then
    runs forward through the rest of the series. EMA is order-dependent.

    Args:
        values: Sequence of values, oldest first
        period: EMA period

    Returns:
        EMA at the last value, or None if len(values) < period
    """
    if period <= 0 or len(values) < period:
        return None

    arr = _to_array(values)
    multiplier = 2.0 / (period + 1)

    result = float(np.mean(arr[:period]))
    for price in arr[period:]:
        result = float(price) * multiplier + result * (1 - multiplier)
    return result


def rsi_from_averages(avg_gain: float, avg_loss: float) -> float:
    """Convert smoothed average gain/loss into an RSI value in [0, 100].

    A zero average loss means gains dominate completely (or the series is
    flat); that is reported as 100 instead of a division by zero.
    """
    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - (100.0 / (1.0 + rs))


def rsi(values: Sequence[Number], period: int = 14) -> float | None:
    """
    Calculate Relative Strength Index with Wilder smoothing.

    The first ``period`` deltas are averaged simply; every later delta is
    folded in with ``avg = (avg * (period - 1) + value) / period``.

    Args:
        values: Sequence of prices, oldest first
        period: RSI period

    Returns:
        RSI in [0, 100], or None if len(values) < period + 1
    """
    if period <= 0 or len(values) < period + 1:
        return None

    arr = _to_array(values)

    gains = 0.0
    losses = 0.0
    for i in range(1, period + 1):
        change = float(arr[i] - arr[i - 1])
        if change > 0:
            gains += change
        else:
            losses -= change

    avg_gain = gains / period
    avg_loss = losses / period

    for i in range(period + 1, len(arr)):
        change = float(arr[i] - arr[i - 1])
        if change > 0:
            avg_gain = (avg_gain * (period - 1) + change) / period
            avg_loss = (avg_loss * (period - 1)) / period
        else:
            avg_gain = (avg_gain * (period - 1)) / period
            avg_loss = (avg_loss * (period - 1) - change) / period

    return rsi_from_averages(avg_gain, avg_loss)


def macd(
    values: Sequence[Number],
    fast_period: int = 12,
    slow_period: int = 26,
) -> MacdResult | None:
    """
    Calculate MACD line = EMA(fast) - EMA(slow).

    Returns:
        MacdResult with the line and both EMAs, or None if either EMA is
        not yet computable
    """
    fast = ema(values, fast_period)
    slow = ema(values, slow_period)
    if fast is None or slow is None:
        return None
    return MacdResult(macd=fast - slow, ema12=fast, ema26=slow)


def bollinger_bands(
    values: Sequence[Number],
    period: int = 20,
    k: float = 2.0,
) -> BollingerBands | None:
    """
    Calculate Bollinger Bands over the last ``period`` values.

    Uses the population standard deviation (variance divided by ``period``).

    Returns:
        BollingerBands(upper, middle, lower), or None if SMA is not computable
    """
    middle = sma(values, period)
    if middle is None:
        return None

    window = _to_array(values[-period:])
    if np.all(window == window[0]):
        # Constant window: collapse the bands exactly onto the middle
        sigma = 0.0
    else:
        sigma = float(np.sqrt(np.mean((window - middle) ** 2)))

    return BollingerBands(
        upper=middle + sigma * k,
        middle=middle,
        lower=middle - sigma * k,
    )


# =============================================================================
# IndicatorCalculator class
# =============================================================================

class IndicatorCalculator:
    """Builds an IndicatorSnapshot from a price and volume history."""

    def __init__(self, config: IndicatorConfig | None = None):
        self.config = config or IndicatorConfig()

    @property
    def min_history(self) -> int:
        return self.config.min_history

    def snapshot(
        self,
        prices: Sequence[Number],
        volumes: Sequence[Number],
    ) -> IndicatorSnapshot | None:
        """
        Calculate all indicators for the latest observation.

        Args:
            prices: Price series, oldest first
            volumes: Volume series aligned with ``prices``

        Returns:
            IndicatorSnapshot, or None if fewer than ``min_history`` prices
        """
        if len(prices) < self.config.min_history:
            return None

        cfg = self.config
        return IndicatorSnapshot(
            sma20=sma(prices, cfg.sma_short_period),
            sma50=sma(prices, cfg.sma_long_period),
            ema12=ema(prices, cfg.ema_fast_period),
            ema26=ema(prices, cfg.ema_slow_period),
            rsi=rsi(prices, cfg.rsi_period),
            macd=macd(prices, cfg.ema_fast_period, cfg.ema_slow_period),
            bollinger=bollinger_bands(prices, cfg.bollinger_period, cfg.bollinger_k),
            volume=int(volumes[-1]) if len(volumes) else None,
            volume_avg=sma(volumes, cfg.volume_period),
        )
