"""Batch liquidatability checker: chunked, one remote call per chunk."""
from __future__ import annotations

import logging
from typing import Iterable, Sequence, TypeVar

from ..exceptions import CycleFailedError
from ..interfaces.liquidatable_oracle import LiquidatableOracle
from ..models import BatchCheckResult, LiquidatabilityResult

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1000

T = TypeVar("T")


def chunk_by(items: Sequence[T], chunk_size: int) -> list[list[T]]:
    """Split ``items`` into consecutive chunks of at most ``chunk_size``."""
    if chunk_size < 1:
        raise ValueError("chunk_size must be at least 1")
    return [
        list(items[i : i + chunk_size]) for i in range(0, len(items), chunk_size)
    ]


class BatchLiquidatabilityChecker:
    """Find the liquidatable subset of an address set.

    Addresses are sorted before chunking so an unchanged set always produces
    the same chunks. A chunk whose remote evaluation fails is logged and its
    addresses are reported as unresolved, never as healthy.
    """

    def __init__(
        self, oracle: LiquidatableOracle, chunk_size: int = DEFAULT_CHUNK_SIZE
    ) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        self._oracle = oracle
        self.chunk_size = chunk_size

    async def check(self, market: str, addresses: Iterable[str]) -> BatchCheckResult:
        ordered = sorted(set(addresses))
        chunks = chunk_by(ordered, self.chunk_size)

        results: list[LiquidatabilityResult] = []
        unresolved: list[str] = []
        failed = 0

        for chunk in chunks:
            logger.info(
                "Checking %d addresses [%s...]", len(chunk), ", ".join(chunk[:3])
            )
            try:
                block_number, flags = await self._oracle.check_liquidatable(
                    market, chunk
                )
                if len(flags) != len(chunk):
                    raise ValueError(
                        f"expected {len(chunk)} flags, got {len(flags)}"
                    )
            except Exception as e:
                failed += 1
                unresolved.extend(chunk)
                logger.error(
                    "Liquidatability check failed for chunk of %d addresses on %s: %s",
                    len(chunk), market, e,
                )
                continue

            for address, flag in zip(chunk, flags):
                if flag:
                    logger.info(
                        "%s isLiquidatable=True (block %d)", address, block_number
                    )
                results.append(
                    LiquidatabilityResult(
                        address=address,
                        liquidatable=bool(flag),
                        block_number=int(block_number),
                    )
                )

        if chunks and failed == len(chunks):
            raise CycleFailedError(
                f"All {failed} liquidatability chunks failed for {market}"
            )

        return BatchCheckResult(
            results=tuple(results),
            unresolved=tuple(unresolved),
            chunks=len(chunks),
            failed_chunks=failed,
        )

    async def underwater(self, market: str, addresses: Iterable[str]) -> list[str]:
        """Liquidatable addresses, in chunk order then intra-chunk order."""
        return (await self.check(market, addresses)).liquidatable
