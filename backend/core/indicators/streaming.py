"""Incremental EMA/RSI that carry their running averages forward.

The batch functions in ``core.indicators.indicators`` rescan the whole
history on every call. These classes produce the same values one update
at a time, in O(1) per update after warm-up.
"""

from __future__ import annotations

from decimal import Decimal

import numpy as np

from core.indicators.indicators import rsi_from_averages


class StreamingEMA:
    """Exponential moving average updated one value at a time."""

    def __init__(self, period: int):
        if period <= 0:
            raise ValueError(f"period must be positive, got {period}")
        self.period = period
        self.multiplier = 2.0 / (period + 1)
        self._seed: list[float] = []
        self._value: float | None = None

    @property
    def value(self) -> float | None:
        return self._value

    @property
    def is_ready(self) -> bool:
        return self._value is not None

    def update(self, price: Decimal | float | int) -> float | None:
        """Fold in the next value; returns the current EMA or None."""
        price = float(price)
        if self._value is None:
            self._seed.append(price)
            if len(self._seed) == self.period:
                self._value = float(np.mean(np.array(self._seed, dtype=np.float64)))
                self._seed = []
            return self._value

        self._value = price * self.multiplier + self._value * (1 - self.multiplier)
        return self._value


class StreamingRSI:
    """Wilder-smoothed RSI updated one price at a time."""

    def __init__(self, period: int = 14):
        if period <= 0:
            raise ValueError(f"period must be positive, got {period}")
        self.period = period
        self._prev: float | None = None
        self._deltas = 0
        self._gains = 0.0
        self._losses = 0.0
        self._avg_gain: float | None = None
        self._avg_loss: float | None = None

    @property
    def value(self) -> float | None:
        if self._avg_gain is None or self._avg_loss is None:
            return None
        return rsi_from_averages(self._avg_gain, self._avg_loss)

    def update(self, price: Decimal | float | int) -> float | None:
        """Fold in the next price; returns the current RSI or None."""
        price = float(price)
        prev, self._prev = self._prev, price
        if prev is None:
            return None

        change = price - prev
        period = self.period

        if self._avg_gain is None or self._avg_loss is None:
            if change > 0:
                self._gains += change
            else:
                self._losses -= change
            self._deltas += 1
            if self._deltas == period:
                self._avg_gain = self._gains / period
                self._avg_loss = self._losses / period
            return self.value

        if change > 0:
            self._avg_gain = (self._avg_gain * (period - 1) + change) / period
            self._avg_loss = (self._avg_loss * (period - 1)) / period
        else:
            self._avg_gain = (self._avg_gain * (period - 1)) / period
            self._avg_loss = (self._avg_loss * (period - 1) - change) / period
        return self.value
