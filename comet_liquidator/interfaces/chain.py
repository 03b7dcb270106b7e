"""On-chain state reader protocol for Comet markets."""
from typing import Protocol

from ..models import Asset


class CometReader(Protocol):
    """Read-only view of a Comet market."""

    async def get_assets(self, market: str) -> list[Asset]: ...

    async def get_reserves(self, market: str) -> int: ...

    async def get_target_reserves(self, market: str) -> int: ...

    async def get_base_scale(self, market: str) -> int: ...

    async def get_collateral_reserves(self, market: str, asset: str) -> int: ...

    async def get_price(self, market: str, price_feed: str) -> int: ...
