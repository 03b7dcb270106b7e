"""Chainlink aggregator price source."""
from __future__ import annotations

import logging
from decimal import Decimal

from ..chains.evm.abi import AGGREGATOR_ABI
from ..chains.evm.client import EvmClient

logger = logging.getLogger(__name__)

FEED_DECIMALS = 8


class ChainlinkPriceSource:
    """Unit prices from ``latestAnswer()`` of per-symbol aggregator feeds."""

    def __init__(
        self, client: EvmClient, feeds: dict[str, str], decimals: int = FEED_DECIMALS
    ) -> None:
        self._client = client
        self.feeds = {symbol.upper(): feed for symbol, feed in feeds.items()}
        self.decimals = decimals

    async def get_price(self, asset: str) -> Decimal | None:
        """Price of ``asset`` (a symbol), or None if it has no feed.

        A non-positive answer is treated as missing.
        """
        feed = self.feeds.get(asset.upper())
        if not feed:
            logger.debug("No price feed configured for %s", asset)
            return None

        answer = int(await self._client.call(feed, AGGREGATOR_ABI, "latestAnswer"))
        if answer <= 0:
            logger.warning("Price feed %s for %s returned %d", feed, asset, answer)
            return None
        return Decimal(answer).scaleb(-self.decimals)
