"""Price alert evaluation.

Alerts are not deduplicated: every update where the price stays inside the
tolerance band produces a new event. Appending events to a log is the
caller's job; the functions here are pure.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from core.models.watchlist import AlertEvent

# Fire when the price is within 1% of the target, from either side
DEFAULT_TOLERANCE = Decimal("0.01")


def should_alert(
    current_price: Decimal,
    target_price: Decimal,
    tolerance: Decimal = DEFAULT_TOLERANCE,
) -> bool:
    """Return True iff |current - target| / target < tolerance."""
    current = Decimal(str(current_price))
    target = Decimal(str(target_price))
    if target <= 0:
        raise ValueError(f"target_price must be positive, got {target}")
    return abs(current - target) / target < tolerance


def format_alert_message(symbol: str, current_price: Decimal, alert_price: Decimal) -> str:
    return f"ALERT: {symbol} reached ${current_price} (target: ${alert_price})"


def evaluate_alert(
    symbol: str,
    current_price: Decimal,
    target_price: Decimal,
    timestamp: datetime,
    tolerance: Decimal = DEFAULT_TOLERANCE,
) -> AlertEvent | None:
    """Build an AlertEvent if the price is within tolerance of the target."""
    if not should_alert(current_price, target_price, tolerance):
        return None
    return AlertEvent(
        symbol=symbol,
        current_price=current_price,
        alert_price=target_price,
        timestamp=timestamp,
        message=format_alert_message(symbol, current_price, target_price),
    )
