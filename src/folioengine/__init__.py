"""Cost-basis accounting and portfolio backtesting engine."""

from folioengine.accounting.aggregate import aggregate_positions
from folioengine.accounting.positions import compute_position_metrics
from folioengine.backtesting.simulator import run_backtest
from folioengine.errors import (
    EngineError,
    InvalidConfiguration,
    OverdrawnPosition,
    ValidationError,
)

__version__ = "0.1.0"

__all__ = [
    "compute_position_metrics",
    "aggregate_positions",
    "run_backtest",
    "EngineError",
    "ValidationError",
    "InvalidConfiguration",
    "OverdrawnPosition",
]
