"""Format engine results into plain dicts for API/UI consumption."""

from __future__ import annotations

from folioengine.models.backtest import BacktestResult, PortfolioBacktestResult
from folioengine.models.position import LedgerEvent, PortfolioTotals, PositionSnapshot


def _portfolio_sheet(result: PortfolioBacktestResult) -> dict:
    stats = result.statistics
    metrics = result.detailed_metrics
    return {
        "portfolioId": result.portfolio_id,
        "portfolioName": result.portfolio_name,
        "statistics": {
            "endingValue": stats.ending_value,
            "cagr": stats.cagr,
            "maxDrawdown": stats.max_drawdown,
            "maxDrawdownTime": stats.max_drawdown_time,
            "volatility": stats.volatility,
            "sharpeRatio": stats.sharpe_ratio,
            "totalReturn": stats.total_return,
            "totalDividends": stats.total_dividends,
        },
        "portfolioValue": [{"time": p.time, "value": p.value} for p in result.time_series],
        "yearlyReturns": [{"year": y.year, "return": y.return_pct} for y in result.yearly_returns],
        "detailedMetrics": {
            "totalShares": metrics.total_shares,
            "totalDividendsReceived": metrics.total_dividends_received,
            "estimatedAnnualDividend": metrics.estimated_annual_dividend,
            "lastDividendPayment": metrics.last_dividend_payment,
        },
        "warnings": list(result.warnings),
    }


def generate_tearsheet(result: BacktestResult) -> dict:
    """Format a backtest result as a camelCase dict."""
    return {
        "actualStartDate": result.actual_start_date.isoformat(),
        "actualEndDate": result.actual_end_date.isoformat(),
        "portfolios": [_portfolio_sheet(p) for p in result.portfolios],
    }


def _event(event: LedgerEvent) -> dict:
    return {
        "transactionId": event.transaction_id,
        "amount": float(event.amount),
        "date": event.date.isoformat(),
        "description": event.description,
    }


def position_to_dict(snapshot: PositionSnapshot) -> dict:
    return {
        "totalShares": float(snapshot.total_shares),
        "totalCost": float(snapshot.total_cost),
        "totalFees": float(snapshot.total_fees),
        "realizedGainLoss": float(snapshot.realized_gain_loss),
        "unrealizedGainLoss": float(snapshot.unrealized_gain_loss),
        "totalGainLoss": float(snapshot.total_gain_loss),
        "currentValue": float(snapshot.current_value),
        "costBasis": float(snapshot.cost_basis),
        "averageCostPerShare": float(snapshot.average_cost_per_share),
        "currentPrice": float(snapshot.current_price) if snapshot.current_price is not None else None,
        "gainLossPercent": float(snapshot.gain_loss_percent),
        "realizedGainTransactions": [_event(e) for e in snapshot.realized_gain_events],
        "dividendCashTransactions": [_event(e) for e in snapshot.dividend_cash_events],
    }


def totals_to_dict(totals: PortfolioTotals) -> dict:
    return {
        "totalValue": float(totals.total_value),
        "totalCostBasis": float(totals.total_cost_basis),
        "totalRealizedGainLoss": float(totals.total_realized_gain_loss),
        "totalUnrealizedGainLoss": float(totals.total_unrealized_gain_loss),
        "totalGainLoss": float(totals.total_gain_loss),
        "totalGainLossPercent": float(totals.total_gain_loss_percent),
        "cashBalance": float(totals.cash_balance),
        "totalValueWithCash": float(totals.total_value_with_cash),
    }
