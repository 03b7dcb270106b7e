"""Comet (Compound III) market reader."""
from __future__ import annotations

import asyncio
import logging

from ...models import Asset
from .abi import COMET_ABI
from .client import EvmClient

logger = logging.getLogger(__name__)


class CometClient:
    """Read market state from a Comet proxy."""

    def __init__(self, client: EvmClient) -> None:
        self._client = client

    async def get_assets(self, market: str) -> list[Asset]:
        """Supported collateral assets, in the market's own order."""
        num_assets = await self._client.call(market, COMET_ABI, "numAssets")
        infos = await asyncio.gather(
            *(
                self._client.call(market, COMET_ABI, "getAssetInfo", i)
                for i in range(num_assets)
            )
        )
        assets = [
            Asset(address=info[1], price_feed=info[2], scale=int(info[3]))
            for info in infos
        ]
        logger.debug("Market %s supports %d assets", market, len(assets))
        return assets

    async def get_reserves(self, market: str) -> int:
        return int(await self._client.call(market, COMET_ABI, "getReserves"))

    async def get_target_reserves(self, market: str) -> int:
        return int(await self._client.call(market, COMET_ABI, "targetReserves"))

    async def get_base_scale(self, market: str) -> int:
        return int(await self._client.call(market, COMET_ABI, "baseScale"))

    async def get_collateral_reserves(self, market: str, asset: str) -> int:
        return int(
            await self._client.call(market, COMET_ABI, "getCollateralReserves", asset)
        )

    async def get_price(self, market: str, price_feed: str) -> int:
        return int(await self._client.call(market, COMET_ABI, "getPrice", price_feed))
