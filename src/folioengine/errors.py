"""Exceptions raised by the accounting and backtest engines."""

from __future__ import annotations


class EngineError(Exception):
    """Base class for every error raised by folioengine."""


class ValidationError(EngineError, ValueError):
    """Input data is malformed: transactions, allocations or price series."""


class InvalidConfiguration(EngineError, ValueError):
    """A computation was asked for with parameters it cannot honour."""


class OverdrawnPosition(EngineError):
    """A sell would take a position below zero shares."""

    def __init__(self, symbol: str, held, requested) -> None:
        self.symbol = symbol
        self.held = held
        self.requested = requested
        super().__init__(
            f"Cannot sell {requested} shares of {symbol}: only {held} held"
        )
