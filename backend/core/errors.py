"""Error types raised by the core price-history pipeline.

Indicator warm-up is not an error: indicator functions return ``None``
until enough history exists. These exceptions cover the cases where an
operation has no meaningful result at all.
"""


class TrackerError(Exception):
    """Base class for all tracker errors."""


class UnknownInstrument(TrackerError):
    """Operation on a symbol that was never registered."""

    def __init__(self, symbol: str):
        super().__init__(f"Unknown instrument: {symbol}")
        self.symbol = symbol


class NoData(TrackerError):
    """Query made before any observation exists for a symbol."""

    def __init__(self, symbol: str):
        super().__init__(f"No data available for {symbol}")
        self.symbol = symbol


class InsufficientData(TrackerError):
    """Too few observations in the requested window to produce a report."""

    def __init__(self, symbol: str, available: int, required: int):
        super().__init__(
            f"Not enough data for {symbol}: {available} observations "
            f"(need {required})"
        )
        self.symbol = symbol
        self.available = available
        self.required = required


class MalformedData(TrackerError):
    """Import payload could not be parsed or failed validation."""
