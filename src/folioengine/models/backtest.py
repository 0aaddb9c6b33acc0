"""Portfolio definitions, backtest settings and backtest results."""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum
from typing import Any, Mapping

from folioengine.errors import InvalidConfiguration, ValidationError
from folioengine.models.transaction import normalize_symbol

# Allowed float slack when checking that allocations add up to 100%
ALLOCATION_TOLERANCE = 1e-6


class CashflowFrequency(StrEnum):
    DAILY = "daily"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class ReinvestmentPolicy(StrEnum):
    REINVEST = "reinvest"  # dividends buy more synthetic shares
    CASH_OUT = "cash_out"  # dividends are counted, value is not touched


@dataclass(frozen=True)
class Allocation:
    symbol: str
    percent: float

    def __post_init__(self) -> None:
        if isinstance(self.symbol, str):
            object.__setattr__(self, "symbol", normalize_symbol(self.symbol))


@dataclass(frozen=True)
class Portfolio:
    id: str
    name: str
    allocations: tuple[Allocation, ...]

    @property
    def symbols(self) -> list[str]:
        return [a.symbol for a in self.allocations]

    def validate(self) -> None:
        """Raise ValidationError unless allocations are usable and sum to 100."""
        if not self.allocations:
            raise ValidationError(f"Portfolio {self.name!r} has no allocations")
        for alloc in self.allocations:
            if not alloc.symbol or not alloc.symbol.strip():
                raise ValidationError(f"Portfolio {self.name!r} has an allocation without a symbol")
            if not isinstance(alloc.percent, (int, float)) or isinstance(alloc.percent, bool):
                raise ValidationError(
                    f"Portfolio {self.name!r}: {alloc.symbol} percent must be numeric"
                )
            if math.isnan(alloc.percent) or alloc.percent < 0:
                raise ValidationError(
                    f"Portfolio {self.name!r}: {alloc.symbol} percent must be >= 0"
                )
        duplicates = [s for s, n in Counter(self.symbols).items() if n > 1]
        if duplicates:
            raise ValidationError(
                f"Portfolio {self.name!r} lists {', '.join(duplicates)} more than once"
            )
        total = sum(a.percent for a in self.allocations)
        if abs(total - 100.0) > ALLOCATION_TOLERANCE:
            raise ValidationError(
                f"Portfolio {self.name!r} allocations sum to {total:g}%, expected 100%"
            )

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> Portfolio:
        try:
            allocations = tuple(
                Allocation(
                    symbol=str(a["symbol"]),
                    percent=float(a.get("percent", a.get("allocation"))),
                )
                for a in raw["allocations"]
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ValidationError(f"Malformed portfolio {raw.get('name')!r}: {exc}") from exc
        return cls(
            id=str(raw.get("id", "")),
            name=str(raw.get("name") or f"Portfolio {raw.get('id', '')}".strip()),
            allocations=allocations,
        )


@dataclass(frozen=True)
class BacktestConfig:
    start_date: date | None = None
    end_date: date | None = None
    initial_value: float = 100_000.0
    reinvest_dividends: bool = True
    # Carried for callers; the simulation loop does not apply cashflows.
    cashflow: float = 0.0
    cashflow_frequency: CashflowFrequency = CashflowFrequency.YEARLY

    @property
    def policy(self) -> ReinvestmentPolicy:
        return ReinvestmentPolicy.REINVEST if self.reinvest_dividends else ReinvestmentPolicy.CASH_OUT

    def validate(self) -> None:
        if not self.initial_value > 0 or math.isinf(self.initial_value):
            raise InvalidConfiguration(
                f"initial_value must be positive, got {self.initial_value}"
            )
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise InvalidConfiguration(
                f"start_date {self.start_date} is after end_date {self.end_date}"
            )


@dataclass
class ValuePoint:
    time: int
    value: float


@dataclass
class YearlyReturn:
    year: int
    return_pct: float


@dataclass
class BacktestStatistics:
    ending_value: float
    cagr: float
    max_drawdown: float
    volatility: float
    sharpe_ratio: float
    total_return: float
    total_dividends: float
    max_drawdown_time: int | None = None


@dataclass
class DetailedMetrics:
    total_shares: dict[str, float] = field(default_factory=dict)
    total_dividends_received: dict[str, float] = field(default_factory=dict)
    estimated_annual_dividend: dict[str, float] = field(default_factory=dict)
    last_dividend_payment: dict[str, float] = field(default_factory=dict)


@dataclass
class PortfolioBacktestResult:
    portfolio_id: str
    portfolio_name: str
    time_series: list[ValuePoint]
    statistics: BacktestStatistics
    detailed_metrics: DetailedMetrics
    yearly_returns: list[YearlyReturn] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass
class BacktestResult:
    portfolios: list[PortfolioBacktestResult]
    actual_start_date: date
    actual_end_date: date
    start_time: int
    end_time: int
