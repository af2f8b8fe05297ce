"""Tests for JSON export/import of tracker state."""

import copy

import orjson
import pytest
from datetime import datetime, timedelta, timezone

from core.errors import MalformedData
from tracker.services.persistence import (
    export_data,
    import_data,
    load_from_file,
    parse_payload,
    save_to_file,
)
from tracker.services.price_source import SyntheticPriceSource
from tracker.services.watchlist_tracker import WatchlistTracker

BASE_TIME = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


class SteppingClock:
    def __init__(self):
        self.now = BASE_TIME

    def __call__(self):
        self.now += timedelta(seconds=5)
        return self.now


def populated_tracker(ticks: int = 25) -> WatchlistTracker:
    tracker = WatchlistTracker(price_source=SyntheticPriceSource(seed=11, clock=SteppingClock()))
    tracker.add("AAPL", 175)
    tracker.add("GOOGL")
    tracker.add("BTC", 43000)
    for _ in range(ticks):
        tracker.update_prices()
    return tracker


def state_of(tracker: WatchlistTracker) -> tuple:
    return (
        copy.deepcopy(tracker.watchlist),
        copy.deepcopy(tracker.histories),
        copy.deepcopy(tracker.alerts),
    )


class TestExport:

    def test_export_structure(self):
        tracker = populated_tracker(3)
        data = orjson.loads(export_data(tracker))

        assert set(data) == {"watchlist", "price_history", "alerts", "exported_at"}
        assert [e["symbol"] for e in data["watchlist"]] == ["AAPL", "GOOGL", "BTC"]
        assert len(data["price_history"]["AAPL"]) == 3

    def test_roundtrip_restores_state(self):
        source = populated_tracker()
        target = WatchlistTracker(price_source=SyntheticPriceSource(seed=1))

        import_data(target, export_data(source))

        assert state_of(target) == state_of(source)

    def test_import_recomputes_snapshots(self):
        source = populated_tracker()
        target = WatchlistTracker(price_source=SyntheticPriceSource(seed=1))

        import_data(target, export_data(source))

        assert target.snapshot("AAPL") == source.snapshot("AAPL")
        assert target.snapshot("AAPL") is not None

    def test_import_replaces_existing_state(self):
        target = WatchlistTracker(price_source=SyntheticPriceSource(seed=2))
        target.add("TSLA", 200)
        target.update_prices()

        import_data(target, export_data(populated_tracker(2)))

        assert "TSLA" not in target
        assert set(target.watchlist) == {"AAPL", "GOOGL", "BTC"}

    def test_file_roundtrip(self, tmp_path):
        source = populated_tracker(5)
        path = save_to_file(source, tmp_path / "state.json")

        target = WatchlistTracker()
        load_from_file(target, path)

        assert state_of(target) == state_of(source)


class TestMalformedImport:
    """Failed imports must leave state exactly as it was."""

    @pytest.mark.parametrize(
        "payload",
        [
            "not json at all",
            "[1, 2, 3]",
            '{"watchlist": "nope"}',
            '{"watchlist": [{"symbol": "AAPL", "alert_price": -5}]}',
            '{"price_history": {"AAPL": [{"symbol": "AAPL", "price": "0"}]}}',
        ],
    )
    def test_state_untouched(self, payload):
        tracker = populated_tracker()
        before = state_of(tracker)
        snapshot_before = tracker.snapshot("AAPL")

        with pytest.raises(MalformedData):
            import_data(tracker, payload)

        assert state_of(tracker) == before
        assert tracker.snapshot("AAPL") == snapshot_before

    def test_symbol_mismatch_rejected(self):
        source = populated_tracker(2)
        data = orjson.loads(export_data(source))
        data["price_history"]["GOOGL"] = data["price_history"]["AAPL"]

        tracker = populated_tracker()
        before = state_of(tracker)
        with pytest.raises(MalformedData):
            import_data(tracker, orjson.dumps(data))
        assert state_of(tracker) == before

    def test_out_of_order_history_rejected(self):
        data = orjson.loads(export_data(populated_tracker(3)))
        data["price_history"]["AAPL"].reverse()

        with pytest.raises(MalformedData):
            parse_payload(orjson.dumps(data))

    def test_duplicate_watchlist_rejected(self):
        data = orjson.loads(export_data(populated_tracker(1)))
        data["watchlist"].append(data["watchlist"][0])

        with pytest.raises(MalformedData):
            parse_payload(orjson.dumps(data))

    def test_missing_file(self, tmp_path):
        with pytest.raises(MalformedData):
            load_from_file(WatchlistTracker(), tmp_path / "missing.json")


def _naive_first_observation(data: dict) -> None:
    data["price_history"]["AAPL"][0]["timestamp"] = "2025-01-01T00:00:00"


def _naive_history(data: dict) -> None:
    for obs in data["price_history"]["AAPL"]:
        obs["timestamp"] = obs["timestamp"].replace("Z", "").replace("+00:00", "")


def _naive_added_at(data: dict) -> None:
    data["watchlist"][0]["added_at"] = "2025-01-01T00:00:00"


def _naive_alert(data: dict) -> None:
    data["alerts"].append(
        {
            "symbol": "AAPL",
            "current_price": "175",
            "alert_price": "175",
            "timestamp": "2025-01-01T00:00:00",
            "message": "ALERT: AAPL reached $175 (target: $175)",
        }
    )


def _naive_exported_at(data: dict) -> None:
    data["exported_at"] = "2025-01-01T00:00:00"


class TestNaiveTimestamps:
    """Timestamps without a UTC offset are rejected at import."""

    @pytest.mark.parametrize(
        "mutate",
        [
            _naive_first_observation,
            _naive_history,
            _naive_added_at,
            _naive_alert,
            _naive_exported_at,
        ],
    )
    def test_naive_timestamp_rejected(self, mutate):
        data = orjson.loads(export_data(populated_tracker(4)))
        mutate(data)

        tracker = populated_tracker()
        before = state_of(tracker)
        with pytest.raises(MalformedData):
            import_data(tracker, orjson.dumps(data))
        assert state_of(tracker) == before

    def test_report_still_works_after_rejected_import(self):
        data = orjson.loads(export_data(populated_tracker(4)))
        _naive_history(data)

        tracker = populated_tracker(4)
        with pytest.raises(MalformedData):
            import_data(tracker, orjson.dumps(data))

        last = tracker.latest("AAPL").timestamp
        report = tracker.performance_report("AAPL", now=last + timedelta(minutes=1))
        assert report.observations == 4
