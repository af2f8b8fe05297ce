"""Initial watchlist loaded from watchlist.yaml.

Supports:
- A list of symbols, each with an optional alert price
- Disabling individual entries without deleting them
- Backward compatible: no YAML file = symbols from settings, no alerts
"""

import logging
from decimal import Decimal
from pathlib import Path
from typing import Annotated

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from core.models.observation import normalize_symbol

logger = logging.getLogger(__name__)


class WatchlistItem(BaseModel):
    """A single entry in the YAML watchlist."""

    symbol: str
    alert_price: Annotated[Decimal, Field(gt=0)] | None = None
    enabled: bool = True

    @field_validator("symbol")
    @classmethod
    def _normalize(cls, value: str) -> str:
        return normalize_symbol(value)


class WatchlistConfig(BaseModel):
    """Top-level watchlist.yaml configuration."""

    update_interval: Annotated[float, Field(gt=0)] | None = None
    items: list[WatchlistItem] = []

    @property
    def enabled_items(self) -> list[WatchlistItem]:
        return [item for item in self.items if item.enabled]


def default_watchlist(symbols: list[str]) -> WatchlistConfig:
    return WatchlistConfig(items=[WatchlistItem(symbol=s) for s in symbols])


def load_watchlist_config(
    path: str | Path | None = None,
    fallback_symbols: list[str] | None = None,
) -> WatchlistConfig:
    """Load the watchlist YAML, falling back to plain symbols if absent.

    Args:
        path: YAML file path (defaults to settings.watchlist_file)
        fallback_symbols: Symbols to watch when no file exists

    Raises:
        ValueError: if the file is not valid YAML or fails validation
    """
    load_dotenv()

    if path is None:
        from tracker.config import get_settings

        settings = get_settings()
        path = settings.watchlist_file
        if fallback_symbols is None:
            fallback_symbols = settings.symbols

    config_path = Path(path)
    if not config_path.exists():
        logger.info("No %s found, watching default symbols", config_path)
        return default_watchlist(fallback_symbols or [])

    with config_path.open("r", encoding="utf-8") as f:
        try:
            raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {config_path}: {e}") from e

    config = WatchlistConfig.model_validate(raw)
    logger.info(
        "Loaded watchlist from %s: %d entries (%d enabled)",
        config_path,
        len(config.items),
        len(config.enabled_items),
    )
    return config
