"""Static position index: a fixed watch list from configuration."""
from __future__ import annotations

from web3 import Web3

from ..config import IndexConfig


class StaticPositionIndex:
    """Serve the configured addresses for every market."""

    def __init__(self, config: IndexConfig) -> None:
        self._addresses = frozenset(Web3.to_checksum_address(a) for a in config.addresses)

    async def list_position_holders(self, market: str) -> set[str]:
        return set(self._addresses)
