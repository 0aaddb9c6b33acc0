"""Backtesting module for weighted portfolios over historical price series."""

from folioengine.backtesting.alignment import PriceSeriesAligner
from folioengine.backtesting.simulator import run_backtest, simulate_portfolio
from folioengine.backtesting.statistics import compute_statistics
from folioengine.backtesting.tearsheet import generate_tearsheet

__all__ = [
    "PriceSeriesAligner",
    "run_backtest",
    "simulate_portfolio",
    "compute_statistics",
    "generate_tearsheet",
]
