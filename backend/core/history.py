"""Per-instrument bounded price history.

Each registered symbol owns a FIFO buffer of PriceObservation capped at
``max_length`` entries. Appending to a full buffer drops the oldest entry
and keeps the order of the rest.
"""

from __future__ import annotations

import logging
from collections import deque
from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterable, Sequence

from core.errors import NoData, UnknownInstrument
from core.models.observation import PriceObservation, normalize_symbol

logger = logging.getLogger(__name__)

# Default cap on history per symbol (matches the indicator look-back needs
# with room for the 50-period SMA several times over).
DEFAULT_MAX_HISTORY = 200


def prices_of(history: Iterable[PriceObservation]) -> list[Decimal]:
    """Project a history onto its price series, preserving order."""
    return [obs.price for obs in history]


def volumes_of(history: Iterable[PriceObservation]) -> list[int]:
    """Project a history onto its volume series, preserving order."""
    return [obs.volume for obs in history]


class PriceHistoryStore:
    """Bounded, insertion-ordered price histories keyed by symbol.

    Parameters
    ----------
    max_length : int
        Maximum observations kept per symbol. Older values are discarded
        (FIFO).
    """

    def __init__(self, max_length: int = DEFAULT_MAX_HISTORY):
        if max_length <= 0:
            raise ValueError(f"max_length must be positive, got {max_length}")
        self.max_length = max_length
        self._history: dict[str, deque[PriceObservation]] = {}

    def _buffer(self, symbol: str) -> deque[PriceObservation]:
        key = normalize_symbol(symbol)
        buf = self._history.get(key)
        if buf is None:
            raise UnknownInstrument(key)
        return buf

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, symbol: str) -> None:
        """Create an empty history for *symbol* (no-op if it exists)."""
        key = normalize_symbol(symbol)
        if key not in self._history:
            self._history[key] = deque(maxlen=self.max_length)

    def unregister(self, symbol: str) -> None:
        """Drop the history for *symbol* if present."""
        self._history.pop(normalize_symbol(symbol), None)

    def is_registered(self, symbol: str) -> bool:
        return normalize_symbol(symbol) in self._history

    def symbols(self) -> list[str]:
        return list(self._history)

    def __len__(self) -> int:
        return len(self._history)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def append(self, symbol: str, observation: PriceObservation) -> None:
        """Add an observation, evicting the oldest one when full.

        Raises:
            UnknownInstrument: if *symbol* was never registered
        """
        self._buffer(symbol).append(observation)

    def bulk_load(self, symbol: str, observations: Sequence[PriceObservation]) -> None:
        """Register *symbol* and load a batch of observations.

        If the batch exceeds ``max_length`` only the most recent values are
        kept.
        """
        self.register(symbol)
        buf = self._buffer(symbol)
        buf.extend(observations)
        logger.debug(
            "History load: %s loaded %d observations (kept %d)",
            normalize_symbol(symbol),
            len(observations),
            len(buf),
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def latest(self, symbol: str) -> PriceObservation:
        """Return the most recent observation.

        Raises:
            UnknownInstrument: if *symbol* was never registered
            NoData: if the history is empty
        """
        buf = self._buffer(symbol)
        if not buf:
            raise NoData(normalize_symbol(symbol))
        return buf[-1]

    def latest_or_none(self, symbol: str) -> PriceObservation | None:
        buf = self._buffer(symbol)
        return buf[-1] if buf else None

    def history(self, symbol: str) -> tuple[PriceObservation, ...]:
        """Return an immutable copy of the ordered history."""
        return tuple(self._buffer(symbol))

    def slice(
        self,
        symbol: str,
        predicate: Callable[[datetime], bool],
    ) -> list[PriceObservation]:
        """Return observations whose timestamp satisfies *predicate*, in order."""
        return [obs for obs in self._buffer(symbol) if predicate(obs.timestamp)]

    def count(self, symbol: str) -> int:
        return len(self._buffer(symbol))
