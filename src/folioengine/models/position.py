from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

ZERO = Decimal("0")


@dataclass(frozen=True)
class LedgerEvent:
    """A cash-affecting event derived from one transaction."""

    transaction_id: str
    amount: Decimal
    date: date
    description: str


@dataclass(frozen=True)
class PositionSnapshot:
    total_shares: Decimal
    total_cost: Decimal
    total_fees: Decimal
    realized_gain_loss: Decimal
    unrealized_gain_loss: Decimal
    total_gain_loss: Decimal
    current_value: Decimal
    cost_basis: Decimal  # total_cost + total_fees
    average_cost_per_share: Decimal
    gain_loss_percent: Decimal
    current_price: Decimal | None = None
    realized_gain_events: tuple[LedgerEvent, ...] = field(default_factory=tuple)
    dividend_cash_events: tuple[LedgerEvent, ...] = field(default_factory=tuple)

    @property
    def is_open(self) -> bool:
        return self.total_shares > 0


@dataclass(frozen=True)
class PortfolioTotals:
    total_value: Decimal
    total_cost_basis: Decimal
    total_realized_gain_loss: Decimal
    total_unrealized_gain_loss: Decimal
    total_gain_loss: Decimal
    total_gain_loss_percent: Decimal
    cash_balance: Decimal = ZERO

    @property
    def total_value_with_cash(self) -> Decimal:
        return self.total_value + self.cash_balance
