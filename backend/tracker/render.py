"""Console rendering of tracker state.

Formatting only: everything here reads tracker state and returns text.
"""

from __future__ import annotations

from datetime import datetime, timezone

from core.errors import NoData
from core.performance import PerformanceReport
from tracker.services.watchlist_tracker import WatchlistTracker

RSI_OVERBOUGHT = 70
RSI_OVERSOLD = 30
WIDTH = 80


def rsi_signal(rsi: float | None) -> str:
    """Classify an RSI value as Overbought / Oversold / Neutral."""
    if rsi is None:
        return ""
    if rsi > RSI_OVERBOUGHT:
        return "Overbought"
    if rsi < RSI_OVERSOLD:
        return "Oversold"
    return "Neutral"


def _fmt(value: float | None, digits: int = 2) -> str:
    return "N/A" if value is None else f"{value:.{digits}f}"


class ReportFormatter:
    """Format tracker state and reports for display."""

    @staticmethod
    def format_portfolio(
        tracker: WatchlistTracker,
        now: datetime | None = None,
        recent_alerts: int = 3,
    ) -> str:
        lines = ["REAL-TIME STOCK TRACKER", "=" * WIDTH]

        if not tracker.symbols:
            lines.append("No stocks in watchlist. Add a symbol to start tracking.")
            return "\n".join(lines)

        for symbol in tracker.symbols:
            try:
                current = tracker.latest(symbol)
            except NoData:
                continue

            history = tracker.history(symbol)
            previous = history[-2] if len(history) > 1 else current
            change = current.price - previous.price
            change_pct = float(change / previous.price * 100)
            direction = "UP" if change >= 0 else "DOWN"

            lines.append("")
            lines.append(symbol)
            lines.append(
                f"   Price: ${current.price:.2f} {direction} "
                f"{change:+.2f} ({change_pct:.2f}%)"
            )
            lines.append(f"   Volume: {current.volume:,}")

            snapshot = tracker.snapshot(symbol)
            if snapshot is None:
                continue

            lines.append(f"   SMA20: ${_fmt(snapshot.sma20)}")
            lines.append(f"   RSI: {_fmt(snapshot.rsi)} {rsi_signal(snapshot.rsi)}".rstrip())

            if snapshot.bollinger is not None:
                bb = snapshot.bollinger
                price = float(current.price)
                if price > bb.upper:
                    position = "above"
                elif price < bb.lower:
                    position = "below"
                else:
                    position = "inside"
                lines.append(
                    f"   Bollinger: {position} Upper: ${bb.upper:.2f} Lower: ${bb.lower:.2f}"
                )

            if snapshot.macd is not None:
                trend = "bullish" if snapshot.macd.is_bullish else "bearish"
                lines.append(f"   MACD: {trend} {snapshot.macd.macd:.4f}")

        alerts = tracker.recent_alerts(recent_alerts)
        if alerts:
            lines.append("")
            lines.append("RECENT ALERTS:")
            for alert in alerts:
                lines.append(f"   [{alert.timestamp:%H:%M:%S}] {alert.message}")

        now = now or datetime.now(timezone.utc)
        lines.append("")
        lines.append(f"Last updated: {now:%H:%M:%S}")
        lines.append("=" * WIDTH)
        return "\n".join(lines)

    @staticmethod
    def format_report(report: PerformanceReport, days: float) -> str:
        return "\n".join(
            [
                f"{report.symbol} - {days:g} Day Performance Report",
                f"   Starting Price: ${report.first_price:.2f}",
                f"   Current Price: ${report.last_price:.2f}",
                f"   Total Return: {report.total_return_pct:+.2f}%",
                f"   High: ${report.high_price:.2f}",
                f"   Low: ${report.low_price:.2f}",
                f"   Volatility: {report.volatility_pct:.2f}%",
            ]
        )
