"""Scan-cycle orchestration: iterates configured markets."""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any

from eth_account import Account

from ..chains.evm import (
    AavePoolLiquidatableOracle,
    CometClient,
    CometLiquidatableOracle,
    EvmClient,
)
from ..config import ZERO_ADDRESS, AppConfig, MarketConfig
from ..exceptions import CycleFailedError
from ..execution import SimulatingSubmitter, Web3Submitter
from ..indexers import build_index
from ..interfaces.chain import CometReader
from ..interfaces.notifier import Notifier
from ..interfaces.submitter import ExecutionSubmitter
from ..models import CascadeOutcome, CycleReport
from ..notifications import TelegramNotifier
from ..oracles import ChainlinkPriceSource
from .arbitrage import CollateralArbitrage
from .batch_checker import BatchLiquidatabilityChecker
from .cascade import LiquidationCascade
from .discretionary import DiscretionaryLiquidator
from .profitability import ProfitabilityEvaluator
from .scanner import UnderwaterScanner

logger = logging.getLogger(__name__)


class LiquidationBot:
    """Runs scan cycles: discover, check, cascade, arbitrage, report."""

    def __init__(self, config: AppConfig) -> None:
        self._config = config
        self._gas = config.gas

        self._client = EvmClient(config.chain)
        self._reader: CometReader = CometClient(self._client)

        # Position indexes, selected per market by configured name
        self._indexes: dict[str, Any] = {
            name: build_index(index_cfg) for name, index_cfg in config.indexes.items()
        }

        # Batched liquidatability oracles keyed by protocol
        self._oracles: dict[str, Any] = {
            "comet": CometLiquidatableOracle(self._client),
            "aave": AavePoolLiquidatableOracle(self._client),
        }

        self._evaluator = ProfitabilityEvaluator(
            ChainlinkPriceSource(self._client, config.price_feeds)
        )

        self._submitter, self._absorb_submitter = self._build_submitters()

        self._notifiers: list[Notifier] = []
        if config.notifications.telegram.enabled:
            self._notifiers.append(TelegramNotifier(config.notifications.telegram))

    def _build_submitters(self) -> tuple[ExecutionSubmitter, ExecutionSubmitter]:
        signer = self._config.signer
        if signer.simulate:
            from_address = signer.simulate_from or (
                Account.from_key(signer.private_key).address
                if signer.private_key
                else ZERO_ADDRESS
            )
            logger.info("Simulation mode: transactions are simulated from %s", from_address)
            simulator = SimulatingSubmitter(self._client, from_address)
            return simulator, simulator

        main = Web3Submitter(self._client, signer.private_key)
        absorber = (
            Web3Submitter(self._client, signer.absorber_private_key)
            if signer.absorber_private_key
            else main
        )
        return main, absorber

    # ------------------------------------------------------------------
    # Component wiring
    # ------------------------------------------------------------------

    def _checker(self, market: MarketConfig) -> BatchLiquidatabilityChecker:
        return BatchLiquidatabilityChecker(
            self._oracles[market.protocol], self._config.runner.address_chunk_size
        )

    def _cascade(self, market: MarketConfig) -> LiquidationCascade:
        return LiquidationCascade(
            market, self._submitter, self._gas, absorb_submitter=self._absorb_submitter
        )

    # ------------------------------------------------------------------
    # Notification dispatch
    # ------------------------------------------------------------------

    @staticmethod
    def _now_str() -> str:
        return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

    async def _send_alert(self, message: str, subject: str = "") -> None:
        for notifier in self._notifiers:
            try:
                await notifier.send_alert(message, subject=subject)
            except Exception as e:
                logger.error("Notifier send_alert failed: %s", e)

    async def _send_log(self, message: str) -> None:
        for notifier in self._notifiers:
            try:
                await notifier.send_log(message, silent=True)
            except Exception as e:
                logger.error("Notifier send_log failed: %s", e)

    def _build_outcome_alert(self, market: MarketConfig, outcome: CascadeOutcome) -> str:
        targets = ", ".join(outcome.targets) or "none (collateral purchase)"
        attempts = "\n".join(
            f"  {tier}{f' {asset}' if asset else ''}{f' @ {amount}' if amount is not None else ''}: "
            f"{'ok' if success else 'failed'}"
            for tier, asset, amount, success in outcome.decisions
        )
        if outcome.pending_tx:
            attempts += f"\n  pending: {outcome.pending_tx}"
        return (
            f"Market: {market.name}\n"
            f"Targets: {targets}\n"
            f"\n"
            f"{attempts}\n"
            f"\n"
            f"{self._now_str()} UTC"
        )

    async def _report(self, market: MarketConfig, report: CycleReport) -> None:
        for outcome in report.outcomes:
            message = self._build_outcome_alert(market, outcome)
            if outcome.pending_tx:
                await self._send_alert(message, subject="Liquidation transaction pending")
            elif outcome.succeeded:
                await self._send_alert(message, subject="Liquidation executed")
            else:
                await self._send_alert(message, subject="Liquidation cascade exhausted")

        for address, success in report.discretionary.items():
            if success:
                await self._send_alert(
                    f"Market: {market.name}\nBorrower: {address}\n\n{self._now_str()} UTC",
                    subject="Liquidation executed",
                )

        await self._send_log(
            f"{market.name}: scanned {report.scanned}, "
            f"underwater {len(report.liquidatable)}, "
            f"arbitrage {'yes' if report.arbitrage_triggered else 'no'}"
        )

    # ------------------------------------------------------------------
    # Per-market cycles
    # ------------------------------------------------------------------

    async def run_comet_market(
        self, market: MarketConfig, arbitrage_only: bool = False
    ) -> CycleReport:
        try:
            assets = await self._reader.get_assets(market.address)
        except Exception as e:
            raise CycleFailedError(f"Could not load assets for {market.name}: {e}") from e

        cascade = self._cascade(market)
        scanned = 0
        underwater: list[str] = []
        outcomes: list[CascadeOutcome] = []

        if not arbitrage_only:
            scanner = UnderwaterScanner(self._indexes[market.index], self._checker(market))
            candidates = await scanner.list_candidates(market.address)
            scanned = len(candidates)
            underwater = await scanner.scan_candidates(market.address, candidates)
            outcomes = await cascade.liquidate_underwater_borrowers(underwater, assets)

        arbitrage_triggered = False
        try:
            arbitrage = await CollateralArbitrage(market, self._reader, cascade).run(assets)
        except Exception as e:
            logger.error("Purchasable collateral check failed on %s: %s", market.name, e)
        else:
            if arbitrage is not None:
                arbitrage_triggered = True
                outcomes.append(arbitrage)

        return CycleReport(
            market=market.name,
            scanned=scanned,
            liquidatable=tuple(underwater),
            outcomes=tuple(outcomes),
            arbitrage_triggered=arbitrage_triggered,
        )

    async def run_aave_market(self, market: MarketConfig) -> CycleReport:
        index = self._indexes[market.index]
        if not hasattr(index, "fetch_borrower_positions"):
            raise CycleFailedError(
                f"Index '{market.index}' cannot report borrower positions for {market.name}"
            )
        try:
            positions = await index.fetch_borrower_positions(market.address)
        except Exception as e:
            raise CycleFailedError(f"Position index failed for {market.name}: {e}") from e

        scanner = UnderwaterScanner(index, self._checker(market))
        underwater = await scanner.scan_candidates(market.address, set(positions))

        liquidator = DiscretionaryLiquidator(
            market, self._evaluator, self._submitter, self._gas
        )
        results: dict[str, bool] = {}
        for address in underwater:
            results[address] = await liquidator.liquidate(positions[address])

        return CycleReport(
            market=market.name,
            scanned=len(positions),
            liquidatable=tuple(underwater),
            discretionary=results,
        )

    # ------------------------------------------------------------------
    # Core workflows
    # ------------------------------------------------------------------

    async def run_cycle(self, arbitrage_only: bool = False) -> list[CycleReport]:
        """Run one scan cycle over every configured market."""
        reports: list[CycleReport] = []

        for market in self._config.markets:
            try:
                if market.protocol == "comet":
                    report = await self.run_comet_market(market, arbitrage_only)
                elif arbitrage_only:
                    continue
                else:
                    report = await self.run_aave_market(market)
            except CycleFailedError as e:
                logger.error("Cycle failed for %s: %s", market.name, e)
                await self._send_alert(str(e), subject=f"Cycle failed: {market.name}")
                continue

            logger.info(
                "Cycle summary: %s · scanned %d · underwater %d · cascades %d · arbitrage %s",
                report.market,
                report.scanned,
                len(report.liquidatable),
                len(report.outcomes),
                report.arbitrage_triggered,
            )
            reports.append(report)
            await self._report(market, report)

        return reports

    async def run_continuous(self, interval_seconds: int | None = None) -> None:
        """Run scan cycles forever."""
        interval = interval_seconds or self._config.runner.scan_interval_seconds
        logger.info("Starting liquidation loop (cycle every %d seconds)", interval)

        while True:
            try:
                await self.run_cycle()
                await asyncio.sleep(interval)
            except Exception as e:
                logger.error("Error in liquidation loop: %s", e)
                await asyncio.sleep(60)
