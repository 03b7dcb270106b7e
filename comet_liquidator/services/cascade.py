"""Liquidation cascade engine for Comet markets.

Each call to :meth:`LiquidationCascade.attempt_liquidation` walks the tiers
in order, each only after the previous one failed:

1. ``maximal``: one attempt over every routable asset with unbounded
   purchase amounts.
2. ``absorb``: absorb the targets directly through the market (skipped for
   arbitrage-only calls). Best effort; its failure never stops tier 3.
3. ``tiered``: per asset, try the configured cap, then half, then a tenth,
   stopping at the first success and moving on to the next asset either way.

A transaction left without a receipt halts the cascade: later tiers would
touch the same accounts while its outcome is unknown.
"""
from __future__ import annotations

import logging
from typing import Sequence

from ..chains.evm.calls import absorb_and_arbitrage_call, absorb_call
from ..config import GasPolicy, MarketConfig
from ..exceptions import ConfigurationGapError, PendingTransactionError
from ..interfaces.submitter import ExecutionSubmitter
from ..models import (
    MAX_UINT256,
    Asset,
    CascadeOutcome,
    LiquidationAttempt,
    TierResult,
)

logger = logging.getLogger(__name__)

TIER_MAXIMAL = "maximal"
TIER_ABSORB = "absorb"
TIER_TIERED = "tiered"


def tiered_amounts(max_amount: int) -> tuple[int, ...]:
    """Purchase amounts tried per asset, largest first. Zero amounts are dropped."""
    return tuple(
        amount for amount in (max_amount, max_amount // 2, max_amount // 10) if amount > 0
    )


class LiquidationCascade:
    """Drive the tiered liquidation attempts for one market."""

    def __init__(
        self,
        market: MarketConfig,
        submitter: ExecutionSubmitter,
        gas: GasPolicy,
        absorb_submitter: ExecutionSubmitter | None = None,
    ) -> None:
        self._market = market
        self._submitter = submitter
        self._absorb_submitter = absorb_submitter or submitter
        self._gas = gas

    # ------------------------------------------------------------------
    # Attempt construction
    # ------------------------------------------------------------------

    def _routable(self, assets: Sequence[Asset]) -> list[Asset]:
        routable: list[Asset] = []
        for asset in assets:
            if self._market.route_for(asset.address) is None:
                logger.warning(
                    "No pool config for asset %s on %s, excluding it",
                    asset.address, self._market.name,
                )
                continue
            routable.append(asset)
        return routable

    def _build_attempt(
        self, targets: Sequence[str], assets: Sequence[Asset], amounts: Sequence[int]
    ) -> LiquidationAttempt:
        pool_configs = []
        for asset in assets:
            route = self._market.route_for(asset.address)
            if route is None:
                raise ConfigurationGapError(f"No pool config found for {asset.address}")
            pool_configs.append(route.pool)
        return LiquidationAttempt(
            targets=tuple(targets),
            assets=tuple(a.address for a in assets),
            pool_configs=tuple(pool_configs),
            max_amounts=tuple(amounts),
            flash_loan=self._market.flash_loan,
            liquidation_threshold=self._market.liquidation_threshold,
        )

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def _submit_attempt(self, attempt: LiquidationAttempt) -> bool:
        """Submit one attempt; any exception counts as a failed attempt.

        :class:`PendingTransactionError` is the exception: it propagates so
        the cascade stops.
        """
        targets = list(attempt.targets) or "[] (arbitrage only)"
        logger.info(
            "Attempting to liquidate %s via liquidator @%s (assets=%s)",
            targets, self._market.liquidator, list(attempt.assets),
        )
        try:
            call = absorb_and_arbitrage_call(
                self._market.liquidator, self._market.address, attempt
            )
            success = await self._submitter.submit(call, self._gas)
        except PendingTransactionError:
            raise
        except Exception as e:
            logger.error(
                "Failed to liquidate %s via %s (assets=%s): %s",
                targets, self._market.liquidator, list(attempt.assets), e,
            )
            return False

        if success:
            logger.info("Successfully liquidated %s via %s", targets, self._market.liquidator)
        else:
            logger.error("Failed to liquidate %s via %s", targets, self._market.liquidator)
        return bool(success)

    async def _absorb(self, targets: Sequence[str]) -> bool:
        absorber = self._absorb_submitter.address
        try:
            call = absorb_call(self._market.address, absorber, targets)
            success = await self._absorb_submitter.submit(call, self._gas)
        except PendingTransactionError:
            raise
        except Exception as e:
            logger.error("Absorb of %s on %s failed: %s", list(targets), self._market.name, e)
            return False

        if success:
            logger.info("Absorbed %s on %s", list(targets), self._market.name)
        else:
            logger.warning("Absorb of %s on %s did not succeed", list(targets), self._market.name)
        return bool(success)

    # ------------------------------------------------------------------
    # Tiers
    # ------------------------------------------------------------------


    async def _attempt_maximal(
        self, targets: Sequence[str], assets: Sequence[Asset]
    ) -> bool | None:
        """None when there is nothing to attempt: no targets and no routable assets."""
        routable = self._routable(assets)
        if not targets and not routable:
            logger.warning(
                "No routable assets on %s for a collateral purchase, skipping",
                self._market.name,
            )
            return None
        attempt = self._build_attempt(targets, routable, [MAX_UINT256] * len(routable))
        return await self._submit_attempt(attempt)

    async def _attempt_tiered(
        self, targets: Sequence[str], assets: Sequence[Asset], results: list[TierResult]
    ) -> None:
        for asset in assets:
            route = self._market.route_for(asset.address)
            if route is None or route.max_purchase_amount is None:
                logger.warning(
                    "No max purchase amount for asset %s on %s, skipping",
                    asset.address, self._market.name,
                )
                continue

            for amount in tiered_amounts(route.max_purchase_amount):
                attempt = self._build_attempt(targets, [asset], [amount])
                success = await self._submit_attempt(attempt)
                results.append(
                    TierResult(TIER_TIERED, success, asset=asset.address, amount=amount)
                )
                if success:
                    break
            else:
                logger.warning(
                    "All purchase amounts failed for asset %s on %s",
                    asset.address, self._market.name,
                )

    async def _run_tiers(
        self, targets: tuple[str, ...], assets: Sequence[Asset], results: list[TierResult]
    ) -> None:
        success = await self._attempt_maximal(targets, assets)
        if success is None:
            return
        results.append(TierResult(TIER_MAXIMAL, success))
        if success:
            return

        if targets:
            absorbed = await self._absorb(targets)
            results.append(TierResult(TIER_ABSORB, absorbed))

        await self._attempt_tiered(targets, assets, results)

    async def attempt_liquidation(
        self, targets: Sequence[str], assets: Sequence[Asset]
    ) -> CascadeOutcome:
        """Run the full cascade for ``targets`` (empty = arbitrage only)."""
        targets = tuple(targets)
        results: list[TierResult] = []

        try:
            await self._run_tiers(targets, assets, results)
        except PendingTransactionError as e:
            logger.error(
                "Halting cascade for %s on %s: transaction %s has no receipt",
                list(targets) or "[]", self._market.name, e.tx_hash,
            )
            return CascadeOutcome(
                targets=targets, results=tuple(results), pending_tx=e.tx_hash
            )

        outcome = CascadeOutcome(targets=targets, results=tuple(results))
        if not outcome.succeeded:
            logger.warning(
                "Cascade exhausted for %s on %s", list(targets) or "[]", self._market.name
            )
        return outcome

    async def liquidate_underwater_borrowers(
        self, addresses: Sequence[str], assets: Sequence[Asset]
    ) -> list[CascadeOutcome]:
        """One cascade per address, strictly in sequence."""
        return [await self.attempt_liquidation([address], assets) for address in addresses]
