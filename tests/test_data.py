"""Tests for chart payload parsing."""

from __future__ import annotations

import pytest

from folioengine.data.chart_payload import parse_chart_payload
from folioengine.errors import ValidationError


def _payload(**overrides) -> dict:
    result = {
        "meta": {"symbol": "SPY", "currency": "USD"},
        "timestamp": [1000, 2000, 3000],
        "indicators": {"quote": [{
            "open": [1.0, None, 3.0],
            "high": [1.5, 2.5, 3.5],
            "low": [0.5, 1.5, 2.5],
            "close": [1.2, 2.2, 3.2],
            "volume": [10, 20, 30],
        }]},
        "events": {
            "dividends": {"2500": {"amount": 0.5, "date": 2500}, "1500": {"amount": 0.4, "date": 1500}},
            "splits": {"2000": {"date": 2000, "numerator": 4, "denominator": 1, "splitRatio": "4:1"}},
        },
    }
    result.update(overrides)
    return {"chart": {"result": [result], "error": None}}


class TestParseChartPayload:
    def test_full_response(self) -> None:
        series = parse_chart_payload("SPY", _payload())
        assert series.timestamps == (1000, 2000, 3000)
        assert series.close == (1.2, 2.2, 3.2)
        # Missing open falls back to the close
        assert series.open == (1.0, 2.2, 3.0)
        assert [d.date for d in series.dividends] == [1500, 2500]
        assert series.splits[0].ratio == 4.0

    def test_drops_bars_without_close(self) -> None:
        payload = _payload()
        payload["chart"]["result"][0]["indicators"]["quote"][0]["close"] = [1.2, None, 3.2]
        series = parse_chart_payload("SPY", payload)
        assert series.timestamps == (1000, 3000)
        assert series.close == (1.2, 3.2)
        assert series.high == (1.5, 3.5)

    def test_flat_form(self) -> None:
        series = parse_chart_payload("QQQ", {
            "timestamp": [1, 2],
            "close": [5.0, 6.0],
            "open": [5.0, 6.0],
        })
        assert series.close == (5.0, 6.0)
        assert series.high == ()
        assert series.dividends == ()

    def test_zero_denominator_split_ignored(self) -> None:
        payload = _payload(events={"splits": {"2000": {"numerator": 2, "denominator": 0}}})
        assert parse_chart_payload("SPY", payload).splits == ()

    def test_empty_result(self) -> None:
        with pytest.raises(ValidationError):
            parse_chart_payload("SPY", {"chart": {"result": None, "error": "Not Found"}})

    def test_mismatched_arrays(self) -> None:
        with pytest.raises(ValidationError):
            parse_chart_payload("SPY", {"timestamp": [1, 2], "close": [1.0]})
