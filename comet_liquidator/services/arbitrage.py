"""Purchasable-collateral arbitrage path.

When a Comet market's base reserves sit below its target reserves, the
protocol sells absorbed collateral at a discount. If any routable asset's
collateral reserves are worth at least the liquidation threshold, run the
cascade with no target accounts, which only buys collateral. Assets without a
pool config cannot be bought and are never valued.
"""
from __future__ import annotations

import logging
from typing import Sequence

from ..config import MarketConfig
from ..interfaces.chain import CometReader
from ..models import Asset, CascadeOutcome
from .cascade import LiquidationCascade

logger = logging.getLogger(__name__)

PRICE_SCALE = 10**8


async def has_purchasable_collateral(
    reader: CometReader, market: str, assets: Sequence[Asset], min_base_value: int
) -> bool:
    """True iff reserves are below target and some asset's reserves are worth enough.

    Values are in base-asset raw units:
    ``reserves * price * baseScale / assetScale / 1e8``.
    """
    base_reserves = await reader.get_reserves(market)
    target_reserves = await reader.get_target_reserves(market)

    if base_reserves >= target_reserves:
        logger.info(
            "Reserves %d >= target %d on %s, no collateral for sale",
            base_reserves, target_reserves, market,
        )
        return False

    base_scale = await reader.get_base_scale(market)

    for asset in assets:
        collateral_reserves = await reader.get_collateral_reserves(market, asset.address)
        price = await reader.get_price(market, asset.price_feed)
        value = collateral_reserves * price * base_scale // asset.scale // PRICE_SCALE
        logger.debug(
            "Collateral reserves of %s on %s worth %d (threshold %d)",
            asset.address, market, value, min_base_value,
        )
        if value >= min_base_value:
            return True
    return False


class CollateralArbitrage:
    """Buy discounted protocol collateral when it is worth buying."""

    def __init__(
        self, market: MarketConfig, reader: CometReader, cascade: LiquidationCascade
    ) -> None:
        self._market = market
        self._reader = reader
        self._cascade = cascade

    async def run(self, assets: Sequence[Asset]) -> CascadeOutcome | None:
        """Attempt an arbitrage-only cascade; None when nothing is purchasable."""
        logger.info("Checking for purchasable collateral on %s", self._market.name)

        routable = [a for a in assets if self._market.route_for(a.address) is not None]
        if not routable:
            logger.info("No routable collateral assets on %s", self._market.name)
            return None

        if await has_purchasable_collateral(
            self._reader,
            self._market.address,
            routable,
            self._market.liquidation_threshold,
        ):
            logger.info("There is purchasable collateral on %s", self._market.name)
            # Empty target list: buy collateral only, absorb nobody.
            return await self._cascade.attempt_liquidation([], routable)

        logger.info("No purchasable collateral found on %s", self._market.name)
        return None
