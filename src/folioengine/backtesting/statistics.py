"""Performance statistics over a backtest value series.

Computes:
  - Total return and CAGR
  - Max drawdown (and when it bottomed)
  - Annualized volatility of point-to-point returns
  - Sharpe ratio against a fixed risk-free rate
  - Calendar-year returns and forward dividend estimates
"""

from __future__ import annotations

import math
from datetime import UTC, datetime
from typing import Sequence

from folioengine.config import EngineConfig
from folioengine.errors import InvalidConfiguration
from folioengine.models.backtest import BacktestStatistics, ValuePoint, YearlyReturn

SECONDS_PER_YEAR = 365.25 * 24 * 60 * 60


def total_return(initial_value: float, ending_value: float) -> float:
    if initial_value <= 0:
        raise InvalidConfiguration(f"initial value must be positive, got {initial_value}")
    return (ending_value - initial_value) / initial_value


def compute_cagr(initial_value: float, ending_value: float, elapsed_seconds: float) -> float:
    """Compound annual growth rate over elapsed_seconds.

    Raises InvalidConfiguration instead of returning NaN/inf for an empty
    time span or a non-positive starting value.
    """
    years = elapsed_seconds / SECONDS_PER_YEAR
    if years <= 0:
        raise InvalidConfiguration(f"CAGR needs a positive time span, got {years:.6f} years")
    if initial_value <= 0:
        raise InvalidConfiguration(f"CAGR needs a positive initial value, got {initial_value}")
    if ending_value < 0:
        raise InvalidConfiguration(f"CAGR undefined for negative ending value {ending_value}")
    return (ending_value / initial_value) ** (1 / years) - 1


def max_drawdown(values: Sequence[float], initial_value: float) -> tuple[float, int | None]:
    """Largest peak-to-trough decline as a fraction of the peak.

    The running peak starts at initial_value. Returns the drawdown and the
    index of the trough (None when there was no decline).
    """
    peak = initial_value
    worst = 0.0
    worst_idx: int | None = None
    for i, value in enumerate(values):
        if value > peak:
            peak = value
        if peak <= 0:
            continue
        dd = (peak - value) / peak
        if dd > worst:
            worst = dd
            worst_idx = i
    return worst, worst_idx


def periodic_returns(values: Sequence[float]) -> list[float]:
    return [
        (values[i] - values[i - 1]) / values[i - 1]
        for i in range(1, len(values))
        if values[i - 1] != 0
    ]


def annualized_volatility(returns: Sequence[float], periods_per_year: int = 252) -> float:
    """Population standard deviation of returns scaled by sqrt(periods_per_year)."""
    if not returns:
        return 0.0
    avg = sum(returns) / len(returns)
    variance = sum((r - avg) ** 2 for r in returns) / len(returns)
    return math.sqrt(variance * periods_per_year)


def sharpe_ratio(cagr: float, volatility: float, risk_free_rate: float = 0.02) -> float:
    if volatility == 0:
        return 0.0
    return (cagr - risk_free_rate) / volatility


def estimated_annual_dividend(
    shares: float, last_dividend_per_share: float, payments_per_year: int = 4
) -> float:
    return shares * last_dividend_per_share * payments_per_year


def yearly_returns(series: Sequence[ValuePoint], initial_value: float) -> list[YearlyReturn]:
    """Return per calendar year (UTC), chained from the previous year-end."""
    if not series:
        return []

    year_end: dict[int, float] = {}
    for point in series:
        year = datetime.fromtimestamp(point.time, UTC).year
        year_end[year] = point.value

    result = []
    prev_value = initial_value
    for year in sorted(year_end):
        value = year_end[year]
        ret = (value / prev_value - 1) * 100 if prev_value > 0 else 0.0
        result.append(YearlyReturn(year=year, return_pct=ret))
        prev_value = value
    return result


def compute_statistics(
    series: Sequence[ValuePoint],
    initial_value: float,
    start_time: int,
    end_time: int,
    total_dividends: float = 0.0,
    config: EngineConfig | None = None,
) -> BacktestStatistics:
    """Derive the statistics block for one simulated portfolio."""
    config = config or EngineConfig()
    values = [p.value for p in series]
    ending_value = values[-1] if values else initial_value

    cagr = compute_cagr(initial_value, ending_value, end_time - start_time)
    drawdown, trough_idx = max_drawdown(values, initial_value)
    volatility = annualized_volatility(periodic_returns(values), config.trading_days_per_year)

    return BacktestStatistics(
        ending_value=ending_value,
        cagr=cagr,
        max_drawdown=drawdown,
        volatility=volatility,
        sharpe_ratio=sharpe_ratio(cagr, volatility, config.risk_free_rate),
        total_return=total_return(initial_value, ending_value),
        total_dividends=total_dividends,
        max_drawdown_time=series[trough_idx].time if trough_idx is not None else None,
    )
