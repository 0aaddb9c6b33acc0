"""Cost-basis accounting for transaction histories."""

from folioengine.accounting.aggregate import aggregate_positions
from folioengine.accounting.cash import (
    CashTransaction,
    CashTransactionType,
    cash_balance,
    pending_cash_entries,
)
from folioengine.accounting.positions import (
    compute_position_metrics,
    compute_positions,
    group_transactions_by_symbol,
)

__all__ = [
    "compute_position_metrics",
    "compute_positions",
    "group_transactions_by_symbol",
    "aggregate_positions",
    "CashTransaction",
    "CashTransactionType",
    "cash_balance",
    "pending_cash_entries",
]
