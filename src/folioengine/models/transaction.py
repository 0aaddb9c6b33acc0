from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import StrEnum
from typing import Any, Mapping

from folioengine.errors import ValidationError


class TransactionType(StrEnum):
    BUY = "buy"
    SELL = "sell"
    DIVIDEND = "dividend"
    OPTIONS = "options"


def to_decimal(value: Any, field_name: str) -> Decimal:
    """Coerce a numeric field to Decimal, rejecting anything non-numeric."""
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field_name} must be numeric, got {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(f"{field_name} must be numeric, got {value!r}") from None
    else:
        raise ValidationError(f"{field_name} must be numeric, got {type(value).__name__}")
    if not result.is_finite():
        raise ValidationError(f"{field_name} must be finite, got {value!r}")
    return result


def normalize_symbol(symbol: str) -> str:
    """Ticker symbols compare case-insensitively and without padding."""
    return symbol.strip().upper()


def to_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            pass
    raise ValidationError(f"date must be an ISO calendar date, got {value!r}")


@dataclass(frozen=True)
class Transaction:
    id: str
    symbol: str
    date: date
    type: TransactionType
    shares: Decimal
    price: Decimal
    fees: Decimal = Decimal("0")
    notes: str = ""
    is_drip: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.symbol, str) or not self.symbol.strip():
            raise ValidationError(f"Transaction {self.id!r} has no symbol")
        try:
            tx_type = TransactionType(str(self.type).lower())
        except ValueError:
            raise ValidationError(
                f"Transaction {self.id!r} has unknown type {self.type!r}"
            ) from None
        # Frozen dataclass: normalise in place through object.__setattr__
        object.__setattr__(self, "symbol", normalize_symbol(self.symbol))
        object.__setattr__(self, "type", tx_type)
        object.__setattr__(self, "date", to_date(self.date))
        object.__setattr__(self, "shares", to_decimal(self.shares, "shares"))
        object.__setattr__(self, "price", to_decimal(self.price, "price"))
        object.__setattr__(self, "fees", to_decimal(self.fees, "fees"))
        object.__setattr__(self, "is_drip", bool(self.is_drip))

    @property
    def amount(self) -> Decimal:
        return self.shares * self.price

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> Transaction:
        """Build a transaction from its stored/JSON form.

        Accepts both ``isDrip`` and ``is_drip``. Missing fees count as zero,
        missing notes as empty.
        """
        for required in ("symbol", "date", "type", "shares", "price"):
            if required not in raw:
                raise ValidationError(f"Transaction is missing field: {required}")
        fees = raw.get("fees")
        return cls(
            id=str(raw.get("id", "")),
            symbol=raw["symbol"],
            date=raw["date"],
            type=raw["type"],
            shares=raw["shares"],
            price=raw["price"],
            fees=Decimal("0") if fees is None else fees,
            notes=raw.get("notes") or "",
            is_drip=raw.get("isDrip", raw.get("is_drip", False)),
        )


def ingest_transactions(items) -> list[Transaction]:
    """Validate a batch of transactions before any accounting runs."""
    return [
        item if isinstance(item, Transaction) else Transaction.from_dict(item)
        for item in items
    ]
