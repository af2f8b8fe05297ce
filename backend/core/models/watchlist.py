"""Watchlist and alert data models."""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, field_validator

from core.models.observation import normalize_symbol


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WatchlistEntry(BaseModel):
    """A tracked instrument with an optional alert target."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    alert_price: Annotated[Decimal, Field(gt=0)] | None = None
    added_at: AwareDatetime = Field(default_factory=_utcnow)

    @field_validator("symbol")
    @classmethod
    def _normalize(cls, value: str) -> str:
        return normalize_symbol(value)

    @property
    def has_alert(self) -> bool:
        return self.alert_price is not None


class AlertEvent(BaseModel):
    """Record of a price coming within tolerance of its alert target."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    current_price: Decimal
    alert_price: Decimal
    timestamp: AwareDatetime
    message: str
