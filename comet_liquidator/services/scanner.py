"""Underwater borrower scan: index lookup followed by batched checks."""
from __future__ import annotations

import logging

from ..exceptions import CycleFailedError
from ..interfaces.position_index import PositionIndexClient
from .batch_checker import BatchLiquidatabilityChecker

logger = logging.getLogger(__name__)


class UnderwaterScanner:
    """Produce the ordered list of addresses to feed into the cascade."""

    def __init__(
        self, index: PositionIndexClient, checker: BatchLiquidatabilityChecker
    ) -> None:
        self._index = index
        self._checker = checker

    async def list_candidates(self, market: str) -> set[str]:
        try:
            return await self._index.list_position_holders(market)
        except Exception as e:
            raise CycleFailedError(
                f"Position index failed for {market}: {e}"
            ) from e

    async def scan(self, market: str) -> list[str]:
        return await self.scan_candidates(market, await self.list_candidates(market))

    async def scan_candidates(self, market: str, candidates: set[str]) -> list[str]:
        logger.info("Scanning %d unique addresses on %s", len(candidates), market)

        result = await self._checker.check(market, candidates)
        underwater = result.liquidatable
        for address in underwater:
            logger.info("Underwater borrower %s on %s", address, market)

        if result.unresolved:
            logger.warning(
                "%d addresses unresolved on %s (%d of %d chunks failed)",
                len(result.unresolved), market, result.failed_chunks, result.chunks,
            )
        logger.info(
            "Found %d underwater borrowers among %d addresses on %s",
            len(underwater), len(candidates), market,
        )
        return underwater
