"""Per-symbol price history as consumed by the backtest engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from folioengine.errors import ValidationError
from folioengine.models.transaction import normalize_symbol


@dataclass(frozen=True)
class DividendEvent:
    date: int  # epoch seconds
    amount: float


@dataclass(frozen=True)
class SplitEvent:
    date: int  # epoch seconds
    ratio: float


def _coerce(symbol: str, name: str, values, kind) -> tuple:
    try:
        return tuple(kind(v) for v in values)
    except (TypeError, ValueError):
        raise ValidationError(f"{symbol}: {name} contains non-numeric values") from None


@dataclass(frozen=True)
class PriceSeries:
    """Ordered timestamps with parallel OHLC arrays plus corporate actions.

    Timestamps are integer epoch seconds in ascending order. Dividends and
    splits are kept sorted by date. Splits are carried for consumers but the
    simulator does not adjust for them (close prices are expected to be
    split-adjusted already).
    """

    symbol: str
    timestamps: tuple[int, ...]
    close: tuple[float, ...]
    open: tuple[float, ...] = ()
    high: tuple[float, ...] = ()
    low: tuple[float, ...] = ()
    dividends: tuple[DividendEvent, ...] = field(default_factory=tuple)
    splits: tuple[SplitEvent, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if isinstance(self.symbol, str):
            object.__setattr__(self, "symbol", normalize_symbol(self.symbol))
        timestamps = _coerce(self.symbol, "timestamps", self.timestamps, int)
        close = _coerce(self.symbol, "close", self.close, float)
        if len(close) != len(timestamps):
            raise ValidationError(
                f"{self.symbol}: {len(timestamps)} timestamps but {len(close)} closes"
            )
        for name in ("open", "high", "low"):
            values = _coerce(self.symbol, name, getattr(self, name), float)
            if values and len(values) != len(timestamps):
                raise ValidationError(
                    f"{self.symbol}: {name} has {len(values)} points, expected {len(timestamps)}"
                )
            object.__setattr__(self, name, values)
        if any(b < a for a, b in zip(timestamps, timestamps[1:])):
            raise ValidationError(f"{self.symbol}: timestamps are not in ascending order")

        object.__setattr__(self, "timestamps", timestamps)
        object.__setattr__(self, "close", close)
        object.__setattr__(
            self, "dividends", tuple(sorted(self.dividends, key=lambda d: d.date))
        )
        object.__setattr__(self, "splits", tuple(sorted(self.splits, key=lambda s: s.date)))

    def __len__(self) -> int:
        return len(self.timestamps)

    @property
    def first_timestamp(self) -> int | None:
        return self.timestamps[0] if self.timestamps else None

    @property
    def last_timestamp(self) -> int | None:
        return self.timestamps[-1] if self.timestamps else None

    @classmethod
    def from_dict(cls, symbol: str, raw: Mapping[str, Any]) -> PriceSeries:
        """Build from ``{timestamps, open, high, low, close, dividends, splits}``."""
        try:
            dividends = tuple(
                DividendEvent(date=int(d["date"]), amount=float(d["amount"]))
                for d in raw.get("dividends") or ()
            )
            splits = tuple(
                SplitEvent(date=int(s["date"]), ratio=float(s["ratio"]))
                for s in raw.get("splits") or ()
            )
            return cls(
                symbol=symbol,
                timestamps=tuple(raw.get("timestamps") or ()),
                close=tuple(raw.get("close") or ()),
                open=tuple(raw.get("open") or ()),
                high=tuple(raw.get("high") or ()),
                low=tuple(raw.get("low") or ()),
                dividends=dividends,
                splits=splits,
            )
        except (KeyError, TypeError, ValueError) as exc:
            if isinstance(exc, ValidationError):
                raise
            raise ValidationError(f"{symbol}: malformed price series ({exc})") from exc
