"""Tracker services."""

from tracker.services.price_source import (
    PriceSource,
    ReplayPriceSource,
    SyntheticPriceSource,
)
from tracker.services.watchlist_tracker import TrackerState, WatchlistTracker

__all__ = [
    "PriceSource",
    "ReplayPriceSource",
    "SyntheticPriceSource",
    "TrackerState",
    "WatchlistTracker",
]
