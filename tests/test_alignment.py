from __future__ import annotations

import pytest

from folioengine.backtesting import PriceSeriesAligner
from folioengine.errors import InvalidConfiguration
from folioengine.models import DividendEvent, PriceSeries

DAY = 86_400


def _series(symbol: str, timestamps, closes=None, dividends=()) -> PriceSeries:
    closes = closes if closes is not None else [float(i + 1) for i in range(len(timestamps))]
    return PriceSeries(symbol=symbol, timestamps=tuple(timestamps), close=tuple(closes),
                       dividends=tuple(dividends))


class TestCommonWindow:
    def test_latest_start_earliest_end(self) -> None:
        aligner = PriceSeriesAligner({
            "A": _series("A", [0, DAY, 2 * DAY, 3 * DAY]),
            "B": _series("B", [DAY, 2 * DAY, 3 * DAY, 4 * DAY]),
        })
        assert aligner.common_window() == (DAY, 3 * DAY)

    def test_subset_of_symbols(self) -> None:
        aligner = PriceSeriesAligner({
            "A": _series("A", [0, 10]),
            "B": _series("B", [5, 20]),
        })
        assert aligner.common_window(["A"]) == (0, 10)

    def test_empty_series_ignored(self) -> None:
        aligner = PriceSeriesAligner({
            "A": _series("A", [0, 10]),
            "EMPTY": _series("EMPTY", []),
        })
        assert aligner.common_window() == (0, 10)
        assert "EMPTY" not in aligner
        assert "A" in aligner

    def test_lookups_ignore_symbol_case(self) -> None:
        aligner = PriceSeriesAligner({"spy": _series("spy", [0, 10], [1.0, 2.0])})
        assert aligner.symbols == ["SPY"]
        assert "SPY" in aligner
        assert aligner.ceiling_price("SPY", 5) == 2.0

    def test_no_data(self) -> None:
        with pytest.raises(InvalidConfiguration):
            PriceSeriesAligner({"EMPTY": _series("EMPTY", [])}).common_window()


class TestCeilingLookup:
    def setup_method(self) -> None:
        self.aligner = PriceSeriesAligner({
            "A": _series("A", [100, 200, 300], [1.0, 2.0, 3.0]),
        })

    def test_exact_hit(self) -> None:
        assert self.aligner.ceiling_price("A", 200) == 2.0

    def test_between_points_rounds_up(self) -> None:
        assert self.aligner.ceiling_index("A", 150) == 1
        assert self.aligner.ceiling_price("A", 150) == 2.0

    def test_before_first(self) -> None:
        assert self.aligner.ceiling_price("A", 0) == 1.0

    def test_after_last(self) -> None:
        assert self.aligner.ceiling_index("A", 301) is None
        assert self.aligner.ceiling_price("A", 301) is None

    def test_unknown_symbol(self) -> None:
        assert self.aligner.ceiling_price("ZZZ", 100) is None
        assert self.aligner.first_price("ZZZ") is None

    def test_matches_linear_scan(self) -> None:
        timestamps = [0, 3, 3, 7, 12, 40]
        aligner = PriceSeriesAligner({"S": _series("S", timestamps)})
        for t in range(-2, 45):
            expected = next((i for i, ts in enumerate(timestamps) if ts >= t), None)
            assert aligner.ceiling_index("S", t) == expected


class TestTimestampUnion:
    def test_union_within_range(self) -> None:
        aligner = PriceSeriesAligner({
            "A": _series("A", [1, 3, 5, 7]),
            "B": _series("B", [2, 3, 6, 8]),
            "C": _series("C", [4]),
        })
        assert aligner.timestamps_between(["A", "B"], 2, 7) == [2, 3, 5, 6, 7]
        assert aligner.timestamps_between(["A", "MISSING"], 0, 100) == [1, 3, 5, 7]


class TestDividendsNear:
    def test_window_is_strict(self) -> None:
        aligner = PriceSeriesAligner({
            "A": _series("A", [0, DAY, 2 * DAY], dividends=[
                DividendEvent(DAY - 3600, 0.5),
                DividendEvent(2 * DAY + DAY, 0.7),
            ]),
        })
        near = aligner.dividends_near("A", DAY, DAY)
        assert [d.amount for d in near] == [0.5]
        # Exactly one day away does not match
        assert aligner.dividends_near("A", 2 * DAY, DAY) == ()
        assert aligner.dividends_near("A", 2 * DAY + 1, DAY)[0].amount == 0.7

    def test_no_dividends(self) -> None:
        aligner = PriceSeriesAligner({"A": _series("A", [0])})
        assert aligner.dividends_near("A", 0, DAY) == ()
        assert aligner.dividends_near("NONE", 0, DAY) == ()
