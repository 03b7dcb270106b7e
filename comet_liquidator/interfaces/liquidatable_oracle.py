"""Batched liquidatability oracle protocol."""
from typing import Protocol, Sequence


class LiquidatableOracle(Protocol):
    """Evaluate many accounts in one remote call against a single block.

    Returns ``(block_number, flags)`` with ``flags`` aligned to ``addresses``.
    """

    async def check_liquidatable(
        self, market: str, addresses: Sequence[str]
    ) -> tuple[int, list[bool]]: ...
