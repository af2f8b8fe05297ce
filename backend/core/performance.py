"""Windowed performance statistics over a price history.

Only observations inside the window are used: first/last/high/low, total
return in percent, and volatility as the population standard deviation of
per-step simple returns (a fraction, not a percentage).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Sequence

import numpy as np

from core.errors import InsufficientData
from core.models.observation import PriceObservation

logger = logging.getLogger(__name__)

MIN_REPORT_OBSERVATIONS = 2


@dataclass(frozen=True)
class PerformanceReport:
    """Performance statistics for one symbol over a time window."""

    symbol: str
    window: timedelta
    observations: int
    first_price: Decimal
    last_price: Decimal
    high_price: Decimal
    low_price: Decimal
    total_return_pct: float
    volatility: float

    @property
    def volatility_pct(self) -> float:
        return self.volatility * 100


def step_returns(prices: Sequence[Decimal | float]) -> np.ndarray:
    """Simple returns (p[i] - p[i-1]) / p[i-1] between consecutive prices."""
    arr = np.array([float(p) for p in prices], dtype=np.float64)
    if len(arr) < 2:
        return np.empty(0, dtype=np.float64)
    return np.diff(arr) / arr[:-1]


def volatility(prices: Sequence[Decimal | float]) -> float:
    """Population standard deviation of step returns (0.0 for < 2 prices)."""
    returns = step_returns(prices)
    if len(returns) == 0:
        return 0.0
    return float(np.std(returns))


class PerformanceAnalyzer:
    """Compute performance reports from an observation history."""

    def report(
        self,
        symbol: str,
        history: Sequence[PriceObservation],
        window: timedelta,
        now: datetime | None = None,
    ) -> PerformanceReport:
        """
        Build a report from observations with ``timestamp > now - window``.

        Args:
            symbol: Instrument symbol (for labelling and errors)
            history: Ordered observations, oldest first
            window: Look-back duration
            now: Reference time (defaults to current UTC time)

        Raises:
            InsufficientData: if fewer than two observations fall in the window
        """
        if now is None:
            now = datetime.now(timezone.utc)
        cutoff = now - window

        recent = [obs for obs in history if obs.timestamp > cutoff]
        if len(recent) < MIN_REPORT_OBSERVATIONS:
            raise InsufficientData(symbol, len(recent), MIN_REPORT_OBSERVATIONS)

        prices = [obs.price for obs in recent]
        first = prices[0]
        last = prices[-1]

        report = PerformanceReport(
            symbol=symbol,
            window=window,
            observations=len(recent),
            first_price=first,
            last_price=last,
            high_price=max(prices),
            low_price=min(prices),
            total_return_pct=float((last - first) / first * 100),
            volatility=volatility(prices),
        )
        logger.debug(
            "Performance %s: %d obs, return %.2f%%, volatility %.4f",
            symbol,
            report.observations,
            report.total_return_pct,
            report.volatility,
        )
        return report
