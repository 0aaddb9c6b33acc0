"""Cash ledger: deposits, withdrawals and cash produced by positions.

Realized gains and cash dividends computed by the accountant are mirrored
into the ledger as entries linked to the originating transaction id.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import StrEnum
from typing import Any, Iterable, Mapping

from folioengine.errors import ValidationError
from folioengine.models.position import ZERO, PositionSnapshot
from folioengine.models.transaction import to_date, to_decimal

logger = logging.getLogger(__name__)


class CashTransactionType(StrEnum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    REALIZED_GAIN = "realized_gain"
    DIVIDEND = "dividend"


@dataclass(frozen=True)
class CashTransaction:
    id: str
    date: date
    type: CashTransactionType
    amount: Decimal
    description: str = ""
    related_transaction_id: str | None = None

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> CashTransaction:
        try:
            tx_type = CashTransactionType(str(raw["type"]).lower())
        except (KeyError, ValueError):
            raise ValidationError(f"Unknown cash transaction type: {raw.get('type')!r}") from None
        return cls(
            id=str(raw.get("id", "")),
            date=to_date(raw.get("date")),
            type=tx_type,
            amount=to_decimal(raw.get("amount"), "amount"),
            description=raw.get("description") or "",
            related_transaction_id=raw.get("relatedTransactionId", raw.get("related_transaction_id")),
        )


_SIGN = {
    CashTransactionType.DEPOSIT: 1,
    CashTransactionType.REALIZED_GAIN: 1,
    CashTransactionType.DIVIDEND: 1,
    CashTransactionType.WITHDRAWAL: -1,
}


def cash_balance(entries: Iterable[CashTransaction]) -> Decimal:
    """Deposits, realized gains and dividends add; withdrawals subtract."""
    return sum((e.amount * _SIGN[e.type] for e in entries), ZERO)


def pending_cash_entries(
    snapshots: Mapping[str, PositionSnapshot],
    existing: Iterable[CashTransaction],
) -> list[CashTransaction]:
    """Ledger entries for realized gains and cash dividends not yet recorded.

    An event counts as recorded when an existing entry of the same type links
    to its transaction id. Generated ids are derived from the source so that
    running this twice over the same inputs yields the same entries.
    """
    linked: set[tuple[CashTransactionType, str]] = {
        (e.type, e.related_transaction_id)
        for e in existing
        if e.related_transaction_id
    }

    pending: list[CashTransaction] = []
    for symbol in sorted(snapshots):
        snap = snapshots[symbol]
        sources = (
            (CashTransactionType.REALIZED_GAIN, snap.realized_gain_events),
            (CashTransactionType.DIVIDEND, snap.dividend_cash_events),
        )
        for entry_type, events in sources:
            for event in events:
                if (entry_type, event.transaction_id) in linked:
                    continue
                pending.append(CashTransaction(
                    id=f"{entry_type.value}:{event.transaction_id}",
                    date=event.date,
                    type=entry_type,
                    amount=event.amount,
                    description=event.description,
                    related_transaction_id=event.transaction_id,
                ))

    if pending:
        logger.debug("%d cash ledger entries pending", len(pending))
    return pending
