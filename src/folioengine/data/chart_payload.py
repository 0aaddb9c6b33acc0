"""Parse Yahoo-style chart responses into PriceSeries.

Accepts either the full response (``{"chart": {"result": [...]}}``), a single
result object, or the already-flattened form with top-level
``timestamp``/``open``/``high``/``low``/``close`` arrays.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from folioengine.errors import ValidationError
from folioengine.models.prices import DividendEvent, PriceSeries, SplitEvent

logger = logging.getLogger(__name__)


def _unwrap(payload: Mapping[str, Any]) -> Mapping[str, Any]:
    if "chart" in payload:
        results = (payload.get("chart") or {}).get("result") or []
        if not results:
            raise ValidationError("Chart payload has no result")
        return results[0]
    return payload


def _quote_arrays(result: Mapping[str, Any]) -> dict[str, list]:
    quotes = ((result.get("indicators") or {}).get("quote") or [None])[0]
    source = quotes if quotes else result
    return {key: list(source.get(key) or []) for key in ("open", "high", "low", "close")}


def parse_chart_payload(symbol: str, payload: Mapping[str, Any]) -> PriceSeries:
    """Build a PriceSeries, dropping bars that have no close."""
    result = _unwrap(payload)
    timestamps = list(result.get("timestamp") or result.get("timestamps") or [])
    arrays = _quote_arrays(result)
    closes = arrays["close"]
    if len(closes) != len(timestamps):
        raise ValidationError(
            f"{symbol}: {len(timestamps)} timestamps but {len(closes)} closes"
        )

    keep = [i for i, c in enumerate(closes) if c is not None]
    dropped = len(timestamps) - len(keep)
    if dropped:
        logger.debug("%s: dropped %d bars without a close", symbol, dropped)

    def pick(values: list) -> tuple:
        if len(values) != len(timestamps):
            return ()
        # Missing OHLC values fall back to the close
        return tuple(values[i] if values[i] is not None else closes[i] for i in keep)

    events = result.get("events") or {}
    dividends = [
        DividendEvent(date=int(d.get("date", key)), amount=float(d["amount"]))
        for key, d in (events.get("dividends") or {}).items()
    ]
    splits = []
    for key, s in (events.get("splits") or {}).items():
        denominator = float(s.get("denominator") or 0)
        if denominator == 0:
            logger.warning("%s: ignoring split with zero denominator at %s", symbol, key)
            continue
        splits.append(SplitEvent(
            date=int(s.get("date", key)),
            ratio=float(s.get("numerator") or 0) / denominator,
        ))

    return PriceSeries(
        symbol=symbol,
        timestamps=tuple(timestamps[i] for i in keep),
        close=tuple(closes[i] for i in keep),
        open=pick(arrays["open"]),
        high=pick(arrays["high"]),
        low=pick(arrays["low"]),
        dividends=tuple(dividends),
        splits=tuple(splits),
    )
