"""Price observation data model."""

from decimal import Decimal

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, field_validator


def normalize_symbol(symbol: str) -> str:
    """Return the canonical (stripped, uppercase) form of a symbol."""
    normalized = symbol.strip().upper()
    if not normalized:
        raise ValueError("Symbol must not be empty")
    return normalized


class PriceObservation(BaseModel):
    """A single price tick for an instrument."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    price: Decimal = Field(gt=0)
    timestamp: AwareDatetime
    volume: int = Field(ge=0)
    high: Decimal = Field(gt=0)
    low: Decimal = Field(gt=0)
    open: Decimal = Field(gt=0)

    @field_validator("symbol")
    @classmethod
    def _normalize(cls, value: str) -> str:
        return normalize_symbol(value)
