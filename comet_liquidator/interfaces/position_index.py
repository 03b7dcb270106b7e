"""Position index protocols: who holds a position in a market."""
from typing import Protocol

from ..models import BorrowerPosition


class PositionIndexClient(Protocol):
    """Discover the addresses holding a position in a market."""

    async def list_position_holders(self, market: str) -> set[str]: ...


class BorrowerPositionSource(Protocol):
    """Index that also reports per-borrower debt and collateral holdings."""

    async def fetch_borrower_positions(
        self, market: str
    ) -> dict[str, BorrowerPosition]: ...
