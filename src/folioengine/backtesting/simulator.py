"""Multi-portfolio historical backtest over aligned price series.

Each portfolio is walked across the sorted union of its symbols' trading
timestamps. How dividends and value are handled is fixed once per run by the
ReinvestmentPolicy:

  - REINVEST: allocations become synthetic share counts at the start price;
    dividends buy more shares at the ex-date price and the value series is
    total return.
  - CASH_OUT: dividends are only tallied against the start share counts,
    which never grow. The value series stays at the initial value because
    the running value is never updated in this mode.
"""

from __future__ import annotations

import abc
import logging
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import Any, Iterable, Mapping

from folioengine.backtesting.alignment import PriceSeriesAligner
from folioengine.backtesting.statistics import (
    compute_statistics,
    estimated_annual_dividend,
    yearly_returns,
)
from folioengine.config import EngineConfig
from folioengine.errors import InvalidConfiguration, ValidationError
from folioengine.models.backtest import (
    Allocation,
    BacktestConfig,
    BacktestResult,
    DetailedMetrics,
    Portfolio,
    PortfolioBacktestResult,
    ReinvestmentPolicy,
    ValuePoint,
)
from folioengine.models.prices import PriceSeries
from folioengine.models.transaction import normalize_symbol

logger = logging.getLogger(__name__)


@dataclass
class _SimulationState:
    """Accumulators private to one portfolio simulation."""

    current_value: float
    shares: dict[str, float] = field(default_factory=dict)
    dividends_received: dict[str, float] = field(default_factory=dict)
    last_dividend: dict[str, float] = field(default_factory=dict)
    total_dividends: float = 0.0
    warnings: list[str] = field(default_factory=list)
    missing_prices: set[str] = field(default_factory=set)

    def warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)

    def record_dividend(self, symbol: str, amount: float, per_share: float) -> None:
        self.total_dividends += amount
        self.dividends_received[symbol] = self.dividends_received.get(symbol, 0.0) + amount
        self.last_dividend[symbol] = per_share


class _Policy(abc.ABC):
    """Per-mode valuation and dividend handling for one simulation."""

    def __init__(self, portfolio: Portfolio, aligner: PriceSeriesAligner, initial_value: float) -> None:
        self.portfolio = portfolio
        self.aligner = aligner
        self.initial_value = initial_value

    def _price(self, state: _SimulationState, symbol: str, timestamp: int) -> float | None:
        price = self.aligner.ceiling_price(symbol, timestamp)
        if price is None and symbol not in state.missing_prices:
            state.missing_prices.add(symbol)
            state.warn(f"{self.portfolio.name}: no {symbol} price at or after {timestamp}, contributing 0")
        return price

    def _start_shares(self, alloc: Allocation, start_time: int) -> float | None:
        """Synthetic share count bought with the allocation at the start price."""
        price = self.aligner.ceiling_price(alloc.symbol, start_time)
        if price is None or price <= 0:
            return None
        return self.initial_value * (alloc.percent / 100) / price

    def initialise(self, state: _SimulationState, start_time: int) -> None:
        for alloc in self.portfolio.allocations:
            state.shares[alloc.symbol] = 0.0
            state.dividends_received[alloc.symbol] = 0.0
            state.last_dividend[alloc.symbol] = 0.0

    @abc.abstractmethod
    def value_at(self, state: _SimulationState, timestamp: int) -> float:
        """Portfolio value at a timestamp, before same-bar dividends."""
        ...

    @abc.abstractmethod
    def apply_dividend(
        self, state: _SimulationState, alloc: Allocation, per_share: float, price: float
    ) -> None:
        """Book one dividend payment for an allocation."""
        ...

    @abc.abstractmethod
    def settle(self, state: _SimulationState, value: float) -> None:
        """Commit the value computed for the current timestamp."""
        ...


class _ReinvestPolicy(_Policy):
    def initialise(self, state: _SimulationState, start_time: int) -> None:
        super().initialise(state, start_time)
        for alloc in self.portfolio.allocations:
            shares = self._start_shares(alloc, start_time)
            if shares is None:
                state.missing_prices.add(alloc.symbol)
                state.warn(
                    f"{self.portfolio.name}: no usable {alloc.symbol} price at start, "
                    f"{alloc.percent:g}% allocation contributes 0"
                )
                continue
            state.shares[alloc.symbol] = shares

    def value_at(self, state: _SimulationState, timestamp: int) -> float:
        value = 0.0
        for alloc in self.portfolio.allocations:
            shares = state.shares[alloc.symbol]
            if not shares:
                continue
            price = self._price(state, alloc.symbol, timestamp)
            if price is not None:
                value += shares * price
        return value

    def apply_dividend(
        self, state: _SimulationState, alloc: Allocation, per_share: float, price: float
    ) -> None:
        shares = state.shares[alloc.symbol]
        if not shares:
            return
        amount = shares * per_share
        state.shares[alloc.symbol] = shares + amount / price
        state.record_dividend(alloc.symbol, amount, per_share)

    def settle(self, state: _SimulationState, value: float) -> None:
        state.current_value = value


class _CashOutPolicy(_Policy):
    def initialise(self, state: _SimulationState, start_time: int) -> None:
        super().initialise(state, start_time)
        for alloc in self.portfolio.allocations:
            # Reported and used for the dividend estimate only, never for value
            state.shares[alloc.symbol] = self._start_shares(alloc, start_time) or 0.0
            base = self.aligner.first_price(alloc.symbol)
            if base is None or base <= 0:
                state.missing_prices.add(alloc.symbol)
                state.warn(
                    f"{self.portfolio.name}: no usable {alloc.symbol} base price, "
                    f"{alloc.percent:g}% allocation contributes 0"
                )

    def value_at(self, state: _SimulationState, timestamp: int) -> float:
        # Proportional return tracker against each series' first close
        value = 0.0
        for alloc in self.portfolio.allocations:
            base = self.aligner.first_price(alloc.symbol)
            if base is None or base <= 0:
                continue
            price = self._price(state, alloc.symbol, timestamp)
            if price is not None:
                value += state.current_value * (alloc.percent / 100) * (price / base)
        return value

    def apply_dividend(
        self, state: _SimulationState, alloc: Allocation, per_share: float, price: float
    ) -> None:
        implied_shares = state.current_value * (alloc.percent / 100) / price
        state.record_dividend(alloc.symbol, implied_shares * per_share, per_share)

    def settle(self, state: _SimulationState, value: float) -> None:
        # current_value is not updated in cash-out mode
        pass


_POLICIES: dict[ReinvestmentPolicy, type[_Policy]] = {
    ReinvestmentPolicy.REINVEST: _ReinvestPolicy,
    ReinvestmentPolicy.CASH_OUT: _CashOutPolicy,
}


def simulate_portfolio(
    portfolio: Portfolio,
    aligner: PriceSeriesAligner,
    config: BacktestConfig,
    start_time: int,
    end_time: int,
    engine_config: EngineConfig | None = None,
) -> PortfolioBacktestResult:
    """Simulate one portfolio over [start_time, end_time]."""
    engine_config = engine_config or EngineConfig()
    portfolio.validate()
    config.validate()

    state = _SimulationState(current_value=config.initial_value)
    policy = _POLICIES[config.policy](portfolio, aligner, config.initial_value)
    policy.initialise(state, start_time)

    window = engine_config.dividend_window_seconds
    series: list[ValuePoint] = []
    for timestamp in aligner.timestamps_between(portfolio.symbols, start_time, end_time):
        value = policy.value_at(state, timestamp)

        for alloc in portfolio.allocations:
            for dividend in aligner.dividends_near(alloc.symbol, timestamp, window):
                price = aligner.ceiling_price(alloc.symbol, timestamp)
                if price is None or price <= 0:
                    continue
                policy.apply_dividend(state, alloc, dividend.amount, price)

        policy.settle(state, value)
        series.append(ValuePoint(time=timestamp, value=state.current_value))

    statistics = compute_statistics(
        series,
        config.initial_value,
        start_time,
        end_time,
        total_dividends=state.total_dividends,
        config=engine_config,
    )

    metrics = DetailedMetrics(
        total_shares=dict(state.shares),
        total_dividends_received=dict(state.dividends_received),
        last_dividend_payment=dict(state.last_dividend),
        estimated_annual_dividend={
            symbol: estimated_annual_dividend(
                state.shares.get(symbol, 0.0),
                state.last_dividend.get(symbol, 0.0),
                engine_config.dividends_per_year,
            )
            for symbol in portfolio.symbols
        },
    )

    logger.debug(
        "%s: %d points, ending value %.2f, dividends %.2f",
        portfolio.name, len(series), statistics.ending_value, state.total_dividends,
    )

    return PortfolioBacktestResult(
        portfolio_id=portfolio.id,
        portfolio_name=portfolio.name,
        time_series=series,
        statistics=statistics,
        detailed_metrics=metrics,
        yearly_returns=yearly_returns(series, config.initial_value),
        warnings=state.warnings,
    )


def to_epoch(day: date) -> int:
    """Midnight UTC of a calendar date as epoch seconds."""
    return int(datetime(day.year, day.month, day.day, tzinfo=UTC).timestamp())


def to_date(timestamp: int) -> date:
    return datetime.fromtimestamp(timestamp, UTC).date()


def _coerce_series(
    price_series_by_symbol: Mapping[str, PriceSeries | Mapping[str, Any]],
) -> dict[str, PriceSeries]:
    return {
        normalize_symbol(symbol): (
            data if isinstance(data, PriceSeries) else PriceSeries.from_dict(symbol, data)
        )
        for symbol, data in price_series_by_symbol.items()
    }


def resolve_window(
    config: BacktestConfig, aligner: PriceSeriesAligner, symbols: Iterable[str]
) -> tuple[int, int]:
    """Effective [start, end]: explicit dates win, else the common data window."""
    data_start, data_end = aligner.common_window(symbols)
    start_time = to_epoch(config.start_date) if config.start_date else data_start
    end_time = to_epoch(config.end_date) if config.end_date else data_end
    if start_time > end_time:
        raise InvalidConfiguration(
            f"Backtest window is empty: start {to_date(start_time)} is after end {to_date(end_time)}"
        )
    return start_time, end_time


def run_backtest(
    portfolios: Iterable[Portfolio | Mapping[str, Any]],
    price_series_by_symbol: Mapping[str, PriceSeries | Mapping[str, Any]],
    config: BacktestConfig,
    engine_config: EngineConfig | None = None,
) -> BacktestResult:
    """Backtest every portfolio over one shared window.

    All portfolios and the config are validated before anything is simulated.
    The window is derived across every symbol any portfolio references, so
    portfolios run together always share the same start and end.
    """
    config.validate()
    parsed = [p if isinstance(p, Portfolio) else Portfolio.from_dict(p) for p in portfolios]
    if not parsed:
        raise ValidationError("At least one portfolio is required")
    for portfolio in parsed:
        portfolio.validate()

    if config.cashflow:
        logger.debug(
            "Cashflow of %s (%s) is not applied by the simulation",
            config.cashflow, config.cashflow_frequency,
        )

    series = _coerce_series(price_series_by_symbol)
    symbols = list(dict.fromkeys(s for p in parsed for s in p.symbols))
    for symbol in symbols:
        if symbol not in series or not len(series[symbol]):
            logger.warning("No price data for %s, it will contribute 0", symbol)

    aligner = PriceSeriesAligner({s: series[s] for s in symbols if s in series})
    start_time, end_time = resolve_window(config, aligner, symbols)

    results = [
        simulate_portfolio(portfolio, aligner, config, start_time, end_time, engine_config)
        for portfolio in parsed
    ]

    return BacktestResult(
        portfolios=results,
        actual_start_date=to_date(start_time),
        actual_end_date=to_date(end_time),
        start_time=start_time,
        end_time=end_time,
    )
