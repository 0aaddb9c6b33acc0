from __future__ import annotations

from decimal import Decimal
from typing import Mapping

from folioengine.models.position import ZERO, PortfolioTotals, PositionSnapshot
from folioengine.models.transaction import to_decimal


def aggregate_positions(
    snapshots: Mapping[str, PositionSnapshot],
    cash_balance: Decimal = ZERO,
) -> PortfolioTotals:
    """Field-wise sum of per-symbol snapshots into portfolio totals."""
    total_value = sum((s.current_value for s in snapshots.values()), ZERO)
    total_cost_basis = sum((s.cost_basis for s in snapshots.values()), ZERO)
    total_realized = sum((s.realized_gain_loss for s in snapshots.values()), ZERO)
    total_unrealized = sum((s.unrealized_gain_loss for s in snapshots.values()), ZERO)

    total_gain_loss = total_realized + total_unrealized
    pct = total_gain_loss / total_cost_basis * 100 if total_cost_basis > 0 else ZERO

    return PortfolioTotals(
        total_value=total_value,
        total_cost_basis=total_cost_basis,
        total_realized_gain_loss=total_realized,
        total_unrealized_gain_loss=total_unrealized,
        total_gain_loss=total_gain_loss,
        total_gain_loss_percent=pct,
        cash_balance=to_decimal(cash_balance, "cash_balance"),
    )
