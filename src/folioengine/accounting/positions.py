"""Average-cost position accounting over a symbol's transaction history.

The snapshot is rebuilt from the full transaction list on every call:
  - buys and DRIP dividends add shares at cost
  - cash dividends leave the position alone and emit a cash event
  - sells realize gain against the running average cost
  - options realize their signed premium immediately
"""

from __future__ import annotations

import logging
from collections import defaultdict
from decimal import Decimal
from typing import Iterable, Mapping

from folioengine.config import OversellPolicy
from folioengine.errors import OverdrawnPosition
from folioengine.models.position import ZERO, LedgerEvent, PositionSnapshot
from folioengine.models.transaction import (
    Transaction,
    TransactionType,
    ingest_transactions,
    normalize_symbol,
    to_decimal,
)

logger = logging.getLogger(__name__)


def compute_position_metrics(
    transactions: Iterable[Transaction | Mapping],
    current_price: Decimal | float | None = None,
    *,
    oversell: OversellPolicy = OversellPolicy.CLAMP,
) -> PositionSnapshot:
    """Compute the position snapshot for one symbol's transactions."""
    txs = ingest_transactions(transactions)
    price = to_decimal(current_price, "current_price") if current_price is not None else None

    total_shares = ZERO
    total_cost = ZERO
    total_fees = ZERO
    realized = ZERO
    avg_cost = ZERO
    realized_events: list[LedgerEvent] = []
    dividend_events: list[LedgerEvent] = []

    # sorted() is stable, same-day transactions keep their input order
    for tx in sorted(txs, key=lambda t: t.date):
        total_fees += tx.fees

        if tx.type == TransactionType.BUY or (tx.type == TransactionType.DIVIDEND and tx.is_drip):
            total_cost += tx.amount
            total_shares += tx.shares
            if total_shares > 0:
                avg_cost = total_cost / total_shares

        elif tx.type == TransactionType.DIVIDEND:
            amount = tx.amount
            dividend_events.append(LedgerEvent(
                transaction_id=tx.id,
                amount=amount,
                date=tx.date,
                description=(
                    f"Dividend payment: {tx.shares} shares x ${tx.price:.4f} = ${amount:.2f}"
                ),
            ))

        elif tx.type == TransactionType.SELL:
            if tx.shares > total_shares and oversell == OversellPolicy.RAISE:
                raise OverdrawnPosition(tx.symbol, total_shares, tx.shares)

            cost_of_sold = tx.shares * avg_cost
            gain = tx.amount - cost_of_sold - tx.fees
            realized += gain
            realized_events.append(LedgerEvent(
                transaction_id=tx.id,
                amount=gain,
                date=tx.date,
                description=(
                    f"Realized {'gain' if gain >= 0 else 'loss'} from selling "
                    f"{tx.shares} shares at ${tx.price:.2f}"
                ),
            ))

            total_shares -= tx.shares
            total_cost -= cost_of_sold
            if total_shares < 0:
                logger.warning(
                    "%s: sell of %s shares on %s exceeds holdings, clamping position to zero",
                    tx.symbol, tx.shares, tx.date,
                )
                total_shares = ZERO
                total_cost = ZERO
                avg_cost = ZERO
            elif total_shares > 0:
                avg_cost = total_cost / total_shares
            else:
                total_cost = ZERO
                avg_cost = ZERO

        elif tx.type == TransactionType.OPTIONS:
            # Signed shares: positive closes/sells contracts for credit, negative buys them
            gain = tx.amount - tx.fees
            realized += gain
            realized_events.append(LedgerEvent(
                transaction_id=tx.id,
                amount=gain,
                date=tx.date,
                description=(
                    f"Options {'profit' if gain >= 0 else 'loss'}: "
                    f"{tx.notes or 'Options transaction'}"
                ),
            ))

    current_value = total_shares * (price or ZERO)
    cost_basis = total_cost + total_fees
    # A zero price is treated as "no quote"
    unrealized = current_value - cost_basis if price else ZERO
    gain_loss_pct = unrealized / cost_basis * 100 if cost_basis > 0 else ZERO

    return PositionSnapshot(
        total_shares=total_shares,
        total_cost=total_cost,
        total_fees=total_fees,
        realized_gain_loss=realized,
        unrealized_gain_loss=unrealized,
        total_gain_loss=realized + unrealized,
        current_value=current_value,
        cost_basis=cost_basis,
        average_cost_per_share=avg_cost,
        gain_loss_percent=gain_loss_pct,
        current_price=price,
        realized_gain_events=tuple(realized_events),
        dividend_cash_events=tuple(dividend_events),
    )


def group_transactions_by_symbol(
    transactions: Iterable[Transaction | Mapping],
) -> dict[str, list[Transaction]]:
    grouped: dict[str, list[Transaction]] = defaultdict(list)
    for tx in ingest_transactions(transactions):
        grouped[tx.symbol].append(tx)
    return dict(grouped)


def compute_positions(
    transactions_by_symbol: Mapping[str, Iterable[Transaction | Mapping]],
    prices_by_symbol: Mapping[str, Decimal | float | None] | None = None,
    *,
    oversell: OversellPolicy = OversellPolicy.CLAMP,
) -> dict[str, PositionSnapshot]:
    """Apply compute_position_metrics to every symbol."""
    prices = {normalize_symbol(s): p for s, p in (prices_by_symbol or {}).items()}
    return {
        normalize_symbol(symbol): compute_position_metrics(
            txs, prices.get(normalize_symbol(symbol)), oversell=oversell
        )
        for symbol, txs in transactions_by_symbol.items()
    }
