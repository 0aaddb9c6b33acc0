from __future__ import annotations

from folioengine.models.backtest import (
    Allocation,
    BacktestConfig,
    BacktestResult,
    BacktestStatistics,
    CashflowFrequency,
    DetailedMetrics,
    Portfolio,
    PortfolioBacktestResult,
    ReinvestmentPolicy,
    ValuePoint,
    YearlyReturn,
)
from folioengine.models.position import LedgerEvent, PortfolioTotals, PositionSnapshot
from folioengine.models.prices import DividendEvent, PriceSeries, SplitEvent
from folioengine.models.transaction import Transaction, TransactionType, ingest_transactions

__all__ = [
    # transaction
    "Transaction",
    "TransactionType",
    "ingest_transactions",
    # position
    "LedgerEvent",
    "PositionSnapshot",
    "PortfolioTotals",
    # prices
    "PriceSeries",
    "DividendEvent",
    "SplitEvent",
    # backtest
    "Allocation",
    "Portfolio",
    "BacktestConfig",
    "CashflowFrequency",
    "ReinvestmentPolicy",
    "ValuePoint",
    "YearlyReturn",
    "BacktestStatistics",
    "DetailedMetrics",
    "PortfolioBacktestResult",
    "BacktestResult",
]
