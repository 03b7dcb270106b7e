"""Data models: all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from .config import FlashLoanConfig, PoolConfig

MAX_UINT256 = 2**256 - 1


@dataclass(frozen=True)
class Asset:
    """Collateral asset supported by a Comet market."""

    address: str
    price_feed: str
    scale: int


@dataclass(frozen=True)
class LiquidatabilityResult:
    """Liquidatable flag for one address, observed at ``block_number``."""

    address: str
    liquidatable: bool
    block_number: int


@dataclass(frozen=True)
class BatchCheckResult:
    """Outcome of checking a whole address set chunk by chunk."""

    results: tuple[LiquidatabilityResult, ...] = ()
    unresolved: tuple[str, ...] = ()
    chunks: int = 0
    failed_chunks: int = 0

    @property
    def liquidatable(self) -> list[str]:
        return [r.address for r in self.results if r.liquidatable]


@dataclass(frozen=True)
class LiquidationAttempt:
    """One execution attempt against the on-chain liquidator.

    An empty ``targets`` tuple means arbitrage only: buy protocol collateral
    without absorbing any account.
    """

    targets: tuple[str, ...]
    assets: tuple[str, ...]
    pool_configs: tuple[PoolConfig, ...]
    max_amounts: tuple[int, ...]
    flash_loan: FlashLoanConfig
    liquidation_threshold: int

    def __post_init__(self) -> None:
        if not (len(self.assets) == len(self.pool_configs) == len(self.max_amounts)):
            raise ValueError(
                "assets, pool_configs and max_amounts must be the same length"
            )

    @property
    def arbitrage_only(self) -> bool:
        return not self.targets


@dataclass(frozen=True)
class ContractCall:
    """A contract function call ready to be submitted or simulated."""

    to: str
    abi: tuple[dict[str, Any], ...]
    function: str
    args: tuple[Any, ...] = ()


@dataclass(frozen=True)
class TierResult:
    tier: str
    success: bool
    asset: str | None = None
    amount: int | None = None


@dataclass(frozen=True)
class CascadeOutcome:
    """Ordered record of every attempt made for one target set."""

    targets: tuple[str, ...]
    results: tuple[TierResult, ...] = ()
    # Hash of a sent transaction whose receipt never arrived; the cascade
    # halted there.
    pending_tx: str | None = None

    @property
    def succeeded(self) -> bool:
        return any(r.success and r.tier != "absorb" for r in self.results)

    @property
    def decisions(self) -> tuple[tuple[str, str | None, int | None, bool], ...]:
        return tuple((r.tier, r.asset, r.amount, r.success) for r in self.results)


@dataclass(frozen=True)
class Holding:
    """Decimal-normalized balance of one reserve held by a borrower."""

    symbol: str
    asset: str
    amount: Decimal
    raw_amount: int
    decimals: int


@dataclass(frozen=True)
class BorrowerPosition:
    address: str
    debts: tuple[Holding, ...] = ()
    collaterals: tuple[Holding, ...] = ()


@dataclass(frozen=True)
class CycleReport:
    """Summary of one market's scan cycle, for auditing decisions."""

    market: str
    scanned: int = 0
    liquidatable: tuple[str, ...] = ()
    outcomes: tuple[CascadeOutcome, ...] = ()
    arbitrage_triggered: bool = False
    discretionary: dict[str, bool] = field(default_factory=dict)
