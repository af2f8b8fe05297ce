"""Core data models."""

from core.models.config import AlertConfig, IndicatorConfig
from core.models.observation import PriceObservation, normalize_symbol
from core.models.snapshot import BollingerBands, IndicatorSnapshot, MacdResult
from core.models.watchlist import AlertEvent, WatchlistEntry

__all__ = [
    "AlertConfig",
    "IndicatorConfig",
    "PriceObservation",
    "normalize_symbol",
    "BollingerBands",
    "IndicatorSnapshot",
    "MacdResult",
    "AlertEvent",
    "WatchlistEntry",
]
