"""Watchlist tracker service.

Owns the watchlist, the per-symbol price histories, the latest indicator
snapshot per symbol and the alert log, and drives them on a fixed tick:

    price source -> history append -> snapshot recompute -> alert check

Ticking runs as an asyncio task. All mutation happens inside the tick
handler or in explicit add/remove calls between ticks, so no locking is
needed. Snapshots are immutable and replaced as a whole.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum
from typing import Callable, Mapping, Sequence

from core.alerts import evaluate_alert
from core.errors import UnknownInstrument
from core.history import PriceHistoryStore, prices_of, volumes_of
from core.indicators import IndicatorCalculator
from core.models.config import AlertConfig, IndicatorConfig
from core.models.observation import PriceObservation, normalize_symbol
from core.models.snapshot import IndicatorSnapshot
from core.models.watchlist import AlertEvent, WatchlistEntry
from core.performance import PerformanceAnalyzer, PerformanceReport
from tracker.services.price_source import PriceSource, SyntheticPriceSource

logger = logging.getLogger(__name__)

DEFAULT_UPDATE_INTERVAL = 5.0

TickCallback = Callable[["WatchlistTracker"], None]


class TrackerState(str, Enum):
    """Tick loop state."""

    STOPPED = "stopped"
    RUNNING = "running"


class WatchlistTracker:
    """Track prices, indicators and alerts for a set of instruments."""

    def __init__(
        self,
        price_source: PriceSource | None = None,
        update_interval: float = DEFAULT_UPDATE_INTERVAL,
        max_history_length: int = 200,
        indicator_config: IndicatorConfig | None = None,
        alert_config: AlertConfig | None = None,
    ):
        if update_interval <= 0:
            raise ValueError(f"update_interval must be positive, got {update_interval}")

        self.price_source: PriceSource = price_source or SyntheticPriceSource()
        self.update_interval = update_interval
        self.calculator = IndicatorCalculator(indicator_config)
        self.alert_config = alert_config or AlertConfig()
        self.analyzer = PerformanceAnalyzer()

        self._watchlist: dict[str, WatchlistEntry] = {}
        self._store = PriceHistoryStore(max_length=max_history_length)
        self._snapshots: dict[str, IndicatorSnapshot] = {}
        self._alerts: list[AlertEvent] = []

        self._state = TrackerState.STOPPED
        self._task: asyncio.Task | None = None
        self._tick_callbacks: list[TickCallback] = []
        self._tick_count = 0

    @classmethod
    def from_settings(cls, settings, price_source: PriceSource | None = None) -> "WatchlistTracker":
        """Build a tracker from application Settings."""
        if price_source is None:
            price_source = SyntheticPriceSource(seed=settings.price_seed)
        return cls(
            price_source=price_source,
            update_interval=settings.update_interval,
            max_history_length=settings.max_history_length,
            indicator_config=settings.indicator_config(),
            alert_config=settings.alert_config(),
        )

    # ------------------------------------------------------------------
    # Watchlist management
    # ------------------------------------------------------------------

    def add(self, symbol: str, alert_price: Decimal | float | None = None) -> WatchlistEntry:
        """Add (or overwrite) a watchlist entry and register its history.

        Raises:
            ValueError: on an empty symbol or a non-positive alert price
        """
        symbol = normalize_symbol(symbol)
        if alert_price is not None:
            alert_price = Decimal(str(alert_price))
            if alert_price <= 0:
                raise ValueError(f"alert_price must be positive, got {alert_price}")

        entry = WatchlistEntry(symbol=symbol, alert_price=alert_price)
        self._watchlist[symbol] = entry
        self._store.register(symbol)

        if alert_price is not None:
            logger.info("Added %s to watchlist with alert at $%s", symbol, alert_price)
        else:
            logger.info("Added %s to watchlist", symbol)
        return entry

    def remove(self, symbol: str) -> bool:
        """Remove a watchlist entry. Returns False if it was not present.

        The price history is kept so a later re-add continues the series.
        """
        symbol = normalize_symbol(symbol)
        if self._watchlist.pop(symbol, None) is not None:
            logger.info("Removed %s from watchlist", symbol)
            return True
        logger.info("%s not found in watchlist", symbol)
        return False

    @property
    def watchlist(self) -> dict[str, WatchlistEntry]:
        return dict(self._watchlist)

    @property
    def symbols(self) -> list[str]:
        return list(self._watchlist)

    def __contains__(self, symbol: str) -> bool:
        return normalize_symbol(symbol) in self._watchlist

    # ------------------------------------------------------------------
    # Tick processing
    # ------------------------------------------------------------------

    def on_tick(self, callback: TickCallback) -> None:
        """Register callback run after every tick (e.g. console rendering)."""
        self._tick_callbacks.append(callback)

    def update(self, symbol: str, observation: PriceObservation) -> AlertEvent | None:
        """Apply one observation to a watched symbol.

        Appends to history, recomputes the snapshot, then evaluates the
        alert target if one is set.

        Raises:
            UnknownInstrument: if *symbol* is not on the watchlist
            ValueError: if the observation belongs to another symbol
        """
        symbol = normalize_symbol(symbol)
        entry = self._watchlist.get(symbol)
        if entry is None:
            raise UnknownInstrument(symbol)
        if observation.symbol != symbol:
            raise ValueError(
                f"Observation for {observation.symbol} cannot update {symbol}"
            )

        self._store.append(symbol, observation)
        self._recompute(symbol)

        if entry.alert_price is None:
            return None

        alert = evaluate_alert(
            symbol,
            observation.price,
            entry.alert_price,
            observation.timestamp,
            tolerance=self.alert_config.tolerance,
        )
        if alert is not None:
            self._alerts.append(alert)
            logger.warning(alert.message)
        return alert

    def update_prices(self) -> list[AlertEvent]:
        """Run one tick across every watchlist entry.

        A failing price fetch for one symbol is logged and skipped so the
        other symbols still update.

        Returns:
            Alerts fired during this tick
        """
        fired: list[AlertEvent] = []
        for symbol in list(self._watchlist):
            last = self._store.latest_or_none(symbol)
            last_price = last.price if last is not None else None
            try:
                observation = self.price_source.next_price(symbol, last_price)
            except Exception as e:
                logger.warning("Price fetch failed for %s: %s", symbol, e)
                continue

            try:
                alert = self.update(symbol, observation)
            except ValueError as e:
                logger.warning("Rejected observation for %s: %s", symbol, e)
                continue
            if alert is not None:
                fired.append(alert)

        self._tick_count += 1
        for callback in self._tick_callbacks:
            callback(self)
        return fired

    def _recompute(self, symbol: str) -> None:
        history = self._store.history(symbol)
        snapshot = self.calculator.snapshot(prices_of(history), volumes_of(history))
        if snapshot is None:
            self._snapshots.pop(symbol, None)
        else:
            self._snapshots[symbol] = snapshot

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def snapshot(self, symbol: str) -> IndicatorSnapshot | None:
        """Latest indicator snapshot, or None while history is too short."""
        return self._snapshots.get(normalize_symbol(symbol))

    def latest(self, symbol: str) -> PriceObservation:
        """Most recent observation (raises UnknownInstrument / NoData)."""
        return self._store.latest(symbol)

    def history(self, symbol: str) -> tuple[PriceObservation, ...]:
        return self._store.history(symbol)

    @property
    def histories(self) -> dict[str, tuple[PriceObservation, ...]]:
        return {symbol: self._store.history(symbol) for symbol in self._store.symbols()}

    @property
    def alerts(self) -> list[AlertEvent]:
        return list(self._alerts)

    def recent_alerts(self, count: int = 3) -> list[AlertEvent]:
        if count <= 0:
            return []
        return self._alerts[-count:]

    @property
    def tick_count(self) -> int:
        return self._tick_count

    def performance_report(
        self,
        symbol: str,
        days: float = 7,
        now: datetime | None = None,
    ) -> PerformanceReport:
        """Windowed performance report over the last *days* days.

        Raises:
            UnknownInstrument: if *symbol* has no history
            InsufficientData: if fewer than two observations are in the window
        """
        symbol = normalize_symbol(symbol)
        if now is None:
            now = datetime.now(timezone.utc)
        window = timedelta(days=days)
        cutoff = now - window
        recent = self._store.slice(symbol, lambda ts: ts > cutoff)
        return self.analyzer.report(symbol, recent, window, now=now)

    # ------------------------------------------------------------------
    # Bulk state replacement (import)
    # ------------------------------------------------------------------

    def load_state(
        self,
        watchlist: Sequence[WatchlistEntry],
        histories: Mapping[str, Sequence[PriceObservation]],
        alerts: Sequence[AlertEvent],
    ) -> None:
        """Replace watchlist, histories and alert log wholesale.

        The new state is fully built before anything is swapped in, so a
        failure while building leaves the current state untouched.
        """
        store = PriceHistoryStore(max_length=self._store.max_length)
        for symbol, observations in histories.items():
            store.bulk_load(symbol, observations)

        new_watchlist: dict[str, WatchlistEntry] = {}
        for entry in watchlist:
            new_watchlist[entry.symbol] = entry
            store.register(entry.symbol)

        snapshots: dict[str, IndicatorSnapshot] = {}
        for symbol in store.symbols():
            history = store.history(symbol)
            snapshot = self.calculator.snapshot(prices_of(history), volumes_of(history))
            if snapshot is not None:
                snapshots[symbol] = snapshot

        self._watchlist = new_watchlist
        self._store = store
        self._snapshots = snapshots
        self._alerts = list(alerts)
        logger.info(
            "Loaded state: %d watchlist entries, %d histories, %d alerts",
            len(new_watchlist),
            len(store),
            len(self._alerts),
        )

    # ------------------------------------------------------------------
    # Tick loop
    # ------------------------------------------------------------------

    @property
    def state(self) -> TrackerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is TrackerState.RUNNING

    def start(self) -> TrackerState:
        """Start periodic ticking (must be called from a running event loop).

        Calling start while already running is a no-op.
        """
        if self._state is TrackerState.RUNNING:
            logger.info("Tracker is already running")
            return self._state

        logger.info(
            "Starting tracker: %d symbols, tick every %.1fs",
            len(self._watchlist),
            self.update_interval,
        )
        self._state = TrackerState.RUNNING
        self._task = asyncio.get_running_loop().create_task(self._run())
        return self._state

    def stop(self) -> TrackerState:
        """Stop scheduling further ticks. No-op while stopped."""
        if self._state is TrackerState.STOPPED:
            logger.info("Tracker is not running")
            return self._state

        logger.info("Stopping tracker after %d ticks", self._tick_count)
        self._state = TrackerState.STOPPED
        if self._task is not None:
            self._task.cancel()
        return self._state

    async def wait_stopped(self) -> None:
        """Wait until the tick task has exited."""
        task = self._task
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            pass
        finally:
            if self._task is task:
                self._task = None

    async def _run(self) -> None:
        """Tick loop: sleep, then tick, until stopped."""
        while self._state is TrackerState.RUNNING:
            await asyncio.sleep(self.update_interval)
            if self._state is not TrackerState.RUNNING:
                break
            try:
                self.update_prices()
            except Exception:
                logger.exception("Tick failed")
