"""Technical indicators (pure math, no I/O)."""

from core.indicators.indicators import (
    sma,
    ema,
    rsi,
    rsi_from_averages,
    macd,
    bollinger_bands,
    IndicatorCalculator,
)
from core.indicators.streaming import StreamingEMA, StreamingRSI

__all__ = [
    "sma",
    "ema",
    "rsi",
    "rsi_from_averages",
    "macd",
    "bollinger_bands",
    "IndicatorCalculator",
    "StreamingEMA",
    "StreamingRSI",
]
