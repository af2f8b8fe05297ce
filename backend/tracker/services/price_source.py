"""Price sources feeding the tracker.

``SyntheticPriceSource`` stands in for a market-data feed: each symbol
starts from a fixed base price and takes a bounded random step scaled by a
per-symbol volatility coefficient. Swap in any object satisfying
``PriceSource`` for a real feed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Protocol, runtime_checkable

import numpy as np

from core.models.observation import PriceObservation, normalize_symbol

logger = logging.getLogger(__name__)

BASE_PRICES: dict[str, Decimal] = {
    "AAPL": Decimal("175"),
    "GOOGL": Decimal("140"),
    "MSFT": Decimal("380"),
    "TSLA": Decimal("250"),
    "AMZN": Decimal("145"),
    "META": Decimal("320"),
    "NVDA": Decimal("450"),
    "SPY": Decimal("440"),
    "BTC": Decimal("43000"),
    "ETH": Decimal("2500"),
}
DEFAULT_BASE_PRICE = Decimal("100")

VOLATILITIES: dict[str, float] = {
    "AAPL": 0.02,
    "GOOGL": 0.025,
    "MSFT": 0.02,
    "TSLA": 0.08,
    "AMZN": 0.03,
    "META": 0.04,
    "NVDA": 0.06,
    "SPY": 0.015,
    "BTC": 0.05,
    "ETH": 0.06,
}
DEFAULT_VOLATILITY = 0.03

MIN_PRICE = Decimal("0.01")
PRICE_QUANTUM = Decimal("0.01")
MIN_VOLUME = 100_000
VOLUME_SPAN = 1_000_000


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@runtime_checkable
class PriceSource(Protocol):
    """Anything that can produce the next observation for a symbol.

    Timestamps must be non-decreasing per symbol and prices positive.
    """

    def next_price(
        self, symbol: str, last_price: Decimal | None = None
    ) -> PriceObservation: ...


class SyntheticPriceSource:
    """Bounded random-walk price generator."""

    def __init__(
        self,
        seed: int | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._rng = np.random.default_rng(seed)
        self._clock = clock
        self._last_timestamp: dict[str, datetime] = {}

    @staticmethod
    def base_price(symbol: str) -> Decimal:
        return BASE_PRICES.get(normalize_symbol(symbol), DEFAULT_BASE_PRICE)

    @staticmethod
    def volatility(symbol: str) -> float:
        return VOLATILITIES.get(normalize_symbol(symbol), DEFAULT_VOLATILITY)

    def _timestamp(self, symbol: str) -> datetime:
        now = self._clock()
        last = self._last_timestamp.get(symbol)
        if last is not None and now < last:
            now = last
        self._last_timestamp[symbol] = now
        return now

    def next_price(
        self, symbol: str, last_price: Decimal | None = None
    ) -> PriceObservation:
        """Generate the next observation, stepping from *last_price*."""
        symbol = normalize_symbol(symbol)
        base = Decimal(last_price) if last_price else self.base_price(symbol)

        change = (self._rng.random() - 0.5) * self.volatility(symbol) * float(base)
        new_price = Decimal(repr(float(base) + change)).quantize(
            PRICE_QUANTUM, rounding=ROUND_HALF_UP
        )
        new_price = max(MIN_PRICE, new_price)

        return PriceObservation(
            symbol=symbol,
            price=new_price,
            timestamp=self._timestamp(symbol),
            volume=int(self._rng.integers(MIN_VOLUME, MIN_VOLUME + VOLUME_SPAN)),
            high=max(base, new_price),
            low=min(base, new_price),
            open=base,
        )


class ReplayPriceSource:
    """Replays pre-recorded observations per symbol, in order.

    Useful for deterministic runs and tests.
    """

    def __init__(self, observations: dict[str, list[PriceObservation]]):
        self._queues = {
            normalize_symbol(symbol): list(obs) for symbol, obs in observations.items()
        }

    def remaining(self, symbol: str) -> int:
        return len(self._queues.get(normalize_symbol(symbol), []))

    def next_price(
        self, symbol: str, last_price: Decimal | None = None
    ) -> PriceObservation:
        queue = self._queues.get(normalize_symbol(symbol))
        if not queue:
            raise LookupError(f"No more recorded prices for {symbol}")
        return queue.pop(0)
