"""Exception hierarchy for the liquidator."""
from __future__ import annotations


class LiquidatorError(Exception):
    """Base class for liquidator errors."""


class ConfigurationGapError(LiquidatorError):
    """An asset lacks routing, a purchase cap or a price feed."""


class RemoteCallError(LiquidatorError):
    """An index query or on-chain read failed."""


class CycleFailedError(LiquidatorError):
    """No candidate data could be produced for a market this cycle."""


class PendingTransactionError(LiquidatorError):
    """A sent transaction has no receipt yet; its outcome is unknown."""

    def __init__(self, tx_hash: str, message: str = "") -> None:
        super().__init__(message or f"Transaction {tx_hash} still pending")
        self.tx_hash = tx_hash
