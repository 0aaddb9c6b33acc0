"""Timestamp alignment across symbols with heterogeneous trading calendars."""

from __future__ import annotations

from bisect import bisect_left, bisect_right
from typing import Iterable, Mapping

from folioengine.errors import InvalidConfiguration
from folioengine.models.prices import DividendEvent, PriceSeries
from folioengine.models.transaction import normalize_symbol


class PriceSeriesAligner:
    """Read-only index over a set of price series.

    Ceiling lookups return the close at the first timestamp >= the query
    time and run in O(log n) by bisecting the series' timestamp tuple.
    """

    def __init__(self, series_by_symbol: Mapping[str, PriceSeries]) -> None:
        self._series = {
            normalize_symbol(symbol): series for symbol, series in series_by_symbol.items()
        }
        self._dividend_dates = {
            symbol: tuple(d.date for d in series.dividends)
            for symbol, series in self._series.items()
        }

    def __contains__(self, symbol: str) -> bool:
        return self.has_data(symbol)

    @property
    def symbols(self) -> list[str]:
        return list(self._series)

    def series(self, symbol: str) -> PriceSeries | None:
        return self._series.get(symbol)

    def has_data(self, symbol: str) -> bool:
        series = self._series.get(symbol)
        return series is not None and len(series) > 0

    def common_window(self, symbols: Iterable[str] | None = None) -> tuple[int, int]:
        """(latest first timestamp, earliest last timestamp) across symbols.

        Inside this window every symbol with data has prices. Symbols with an
        empty or missing series are ignored.
        """
        wanted = self._series if symbols is None else symbols
        firsts: list[int] = []
        lasts: list[int] = []
        for symbol in wanted:
            if not self.has_data(symbol):
                continue
            series = self._series[symbol]
            firsts.append(series.timestamps[0])
            lasts.append(series.timestamps[-1])
        if not firsts:
            raise InvalidConfiguration("No price data available for any symbol")
        return max(firsts), min(lasts)

    def ceiling_index(self, symbol: str, timestamp: int) -> int | None:
        series = self._series.get(symbol)
        if series is None:
            return None
        idx = bisect_left(series.timestamps, timestamp)
        return idx if idx < len(series.timestamps) else None

    def ceiling_price(self, symbol: str, timestamp: int) -> float | None:
        idx = self.ceiling_index(symbol, timestamp)
        if idx is None:
            return None
        return self._series[symbol].close[idx]

    def first_price(self, symbol: str) -> float | None:
        series = self._series.get(symbol)
        return series.close[0] if series is not None and len(series) else None

    def timestamps_between(self, symbols: Iterable[str], start: int, end: int) -> list[int]:
        """Sorted union of distinct timestamps in [start, end] for the symbols."""
        merged: set[int] = set()
        for symbol in symbols:
            series = self._series.get(symbol)
            if series is None:
                continue
            lo = bisect_left(series.timestamps, start)
            hi = bisect_right(series.timestamps, end)
            merged.update(series.timestamps[lo:hi])
        return sorted(merged)

    def dividends_near(self, symbol: str, timestamp: int, window: int) -> tuple[DividendEvent, ...]:
        """Dividends dated strictly less than `window` seconds from timestamp."""
        series = self._series.get(symbol)
        if series is None or not series.dividends:
            return ()
        dates = self._dividend_dates[symbol]
        lo = bisect_right(dates, timestamp - window)
        hi = bisect_left(dates, timestamp + window)
        return series.dividends[lo:hi]
