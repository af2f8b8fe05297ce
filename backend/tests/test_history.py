"""Tests for the bounded per-symbol price history store."""

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pydantic import ValidationError

from core.errors import NoData, UnknownInstrument
from core.history import PriceHistoryStore, prices_of, volumes_of
from core.models.observation import PriceObservation

BASE_TIME = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_obs(
    price: str | int = "100",
    minute: int = 0,
    symbol: str = "AAPL",
    volume: int = 1000,
) -> PriceObservation:
    p = Decimal(str(price))
    return PriceObservation(
        symbol=symbol,
        price=p,
        timestamp=BASE_TIME + timedelta(minutes=minute),
        volume=volume,
        high=p,
        low=p,
        open=p,
    )


class TestRegistration:

    def test_append_requires_registration(self):
        store = PriceHistoryStore()
        with pytest.raises(UnknownInstrument):
            store.append("AAPL", make_obs())

    def test_register_is_idempotent(self):
        store = PriceHistoryStore()
        store.register("aapl")
        store.append("AAPL", make_obs())
        store.register("AAPL")

        assert store.count("AAPL") == 1
        assert store.symbols() == ["AAPL"]

    def test_symbols_are_normalized(self):
        store = PriceHistoryStore()
        store.register("  msft ")
        assert store.is_registered("MSFT")
        assert store.is_registered("msft")

    def test_empty_symbol_rejected(self):
        store = PriceHistoryStore()
        with pytest.raises(ValueError):
            store.register("   ")

    def test_unregister(self):
        store = PriceHistoryStore()
        store.register("AAPL")
        store.unregister("AAPL")
        assert not store.is_registered("AAPL")
        assert len(store) == 0


class TestEviction:

    def test_bounded_fifo(self):
        """Appending to a full history keeps the length and drops the oldest."""
        store = PriceHistoryStore(max_length=3)
        store.register("AAPL")
        for i in range(3):
            store.append("AAPL", make_obs(100 + i, minute=i))

        before = store.history("AAPL")
        store.append("AAPL", make_obs(200, minute=3))
        after = store.history("AAPL")

        assert len(after) == 3
        assert after[:2] == before[1:]
        assert after[-1].price == Decimal("200")

    def test_order_preserved_over_many_appends(self):
        store = PriceHistoryStore(max_length=10)
        store.register("AAPL")
        for i in range(25):
            store.append("AAPL", make_obs(100 + i, minute=i))

        assert prices_of(store.history("AAPL")) == [Decimal(100 + i) for i in range(15, 25)]

    def test_bulk_load_keeps_most_recent(self):
        store = PriceHistoryStore(max_length=5)
        store.bulk_load("ETH", [make_obs(i + 1, minute=i, symbol="ETH") for i in range(8)])

        assert store.count("ETH") == 5
        assert store.latest("ETH").price == Decimal("8")
        assert store.history("ETH")[0].price == Decimal("4")

    def test_invalid_max_length(self):
        with pytest.raises(ValueError):
            PriceHistoryStore(max_length=0)


class TestQueries:

    def test_latest(self):
        store = PriceHistoryStore()
        store.register("AAPL")
        store.append("AAPL", make_obs(100, minute=0))
        store.append("AAPL", make_obs(101, minute=1))

        assert store.latest("AAPL").price == Decimal("101")

    def test_latest_no_data(self):
        store = PriceHistoryStore()
        store.register("AAPL")

        with pytest.raises(NoData):
            store.latest("AAPL")
        assert store.latest_or_none("AAPL") is None

    def test_latest_unknown(self):
        with pytest.raises(UnknownInstrument):
            PriceHistoryStore().latest("NOPE")

    def test_slice_by_timestamp(self):
        store = PriceHistoryStore()
        store.register("AAPL")
        for i in range(10):
            store.append("AAPL", make_obs(100 + i, minute=i))

        cutoff = BASE_TIME + timedelta(minutes=6)
        recent = store.slice("AAPL", lambda ts: ts > cutoff)

        assert [obs.price for obs in recent] == [Decimal(107), Decimal(108), Decimal(109)]
        assert store.count("AAPL") == 10

    def test_history_is_a_copy(self):
        store = PriceHistoryStore()
        store.register("AAPL")
        store.append("AAPL", make_obs())

        history = store.history("AAPL")
        store.append("AAPL", make_obs(101, minute=1))

        assert len(history) == 1


class TestProjections:

    def test_prices_and_volumes(self):
        history = [make_obs(100, 0, volume=5), make_obs(102, 1, volume=7)]

        assert prices_of(history) == [Decimal("100"), Decimal("102")]
        assert volumes_of(history) == [5, 7]
        assert prices_of([]) == []


class TestObservationModel:

    def test_naive_timestamp_rejected(self):
        with pytest.raises(ValidationError):
            PriceObservation(
                symbol="AAPL",
                price=Decimal("100"),
                timestamp=datetime(2025, 6, 1, 12, 0),
                volume=1000,
                high=Decimal("100"),
                low=Decimal("100"),
                open=Decimal("100"),
            )
