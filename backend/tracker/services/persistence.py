"""JSON export/import of tracker state.

Export captures the watchlist, full price histories, the alert log and an
export timestamp. Import validates the whole payload before touching the
tracker; any problem raises MalformedData and leaves state as it was.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

import orjson
from pydantic import AwareDatetime, BaseModel, Field, ValidationError, model_validator

from core.errors import MalformedData
from core.models.observation import PriceObservation, normalize_symbol
from core.models.watchlist import AlertEvent, WatchlistEntry
from tracker.services.watchlist_tracker import WatchlistTracker

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ExportPayload(BaseModel):
    """Serialized tracker state."""

    watchlist: list[WatchlistEntry] = []
    price_history: dict[str, list[PriceObservation]] = {}
    alerts: list[AlertEvent] = []
    exported_at: AwareDatetime = Field(default_factory=_utcnow)

    @model_validator(mode="after")
    def _check_history_symbols(self) -> "ExportPayload":
        normalized: dict[str, list[PriceObservation]] = {}
        for key, observations in self.price_history.items():
            symbol = normalize_symbol(key)
            if symbol in normalized:
                raise ValueError(f"Duplicate history for {symbol}")
            for obs in observations:
                if obs.symbol != symbol:
                    raise ValueError(
                        f"Observation for {obs.symbol} found in history of {symbol}"
                    )
            for prev, cur in zip(observations, observations[1:]):
                if cur.timestamp < prev.timestamp:
                    raise ValueError(f"History of {symbol} is not in time order")
            normalized[symbol] = observations
        self.price_history = normalized

        symbols = [entry.symbol for entry in self.watchlist]
        if len(symbols) != len(set(symbols)):
            raise ValueError("Duplicate watchlist entries")
        return self


def build_payload(tracker: WatchlistTracker) -> ExportPayload:
    return ExportPayload(
        watchlist=list(tracker.watchlist.values()),
        price_history={
            symbol: list(history) for symbol, history in tracker.histories.items()
        },
        alerts=tracker.alerts,
    )


def export_data(tracker: WatchlistTracker) -> str:
    """Serialize tracker state to an indented JSON string."""
    payload = build_payload(tracker)
    data = orjson.dumps(payload.model_dump(mode="json"), option=orjson.OPT_INDENT_2)
    logger.info(
        "Exported %d watchlist entries, %d histories, %d alerts",
        len(payload.watchlist),
        len(payload.price_history),
        len(payload.alerts),
    )
    return data.decode("utf-8")


def parse_payload(raw: str | bytes) -> ExportPayload:
    """Parse and validate an export payload.

    Raises:
        MalformedData: on invalid JSON or a structurally invalid payload
    """
    try:
        data = orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        raise MalformedData(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise MalformedData("Import payload must be a JSON object")

    try:
        return ExportPayload.model_validate(data)
    except ValidationError as e:
        raise MalformedData(f"Invalid import payload: {e}") from e


def import_data(tracker: WatchlistTracker, raw: str | bytes) -> ExportPayload:
    """Replace tracker state with a previously exported payload.

    All-or-nothing: on MalformedData the tracker is left untouched.
    """
    payload = parse_payload(raw)
    try:
        tracker.load_state(payload.watchlist, payload.price_history, payload.alerts)
    except (ValueError, TypeError) as e:
        raise MalformedData(f"Could not load import payload: {e}") from e
    logger.info("Imported data exported at %s", payload.exported_at.isoformat())
    return payload


def save_to_file(tracker: WatchlistTracker, path: str | Path) -> Path:
    path = Path(path)
    path.write_text(export_data(tracker), encoding="utf-8")
    return path


def load_from_file(tracker: WatchlistTracker, path: str | Path) -> ExportPayload:
    """Import from a file (MalformedData if unreadable)."""
    try:
        raw = Path(path).read_bytes()
    except OSError as e:
        raise MalformedData(f"Cannot read {path}: {e}") from e
    return import_data(tracker, raw)
