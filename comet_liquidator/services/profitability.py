"""Profitability evaluator for discretionary liquidations.

All arithmetic is ``Decimal``: prices and bonuses compound across assets of
very different scales and a rounding error can flip the decision.
"""
from __future__ import annotations

import logging
from decimal import Decimal

from ..interfaces.price_source import PriceSource

logger = logging.getLogger(__name__)


def is_profitable_at(
    debt_amount: Decimal,
    debt_price: Decimal,
    collateral_amount: Decimal,
    collateral_price: Decimal,
    liquidation_bonus: Decimal,
) -> bool:
    """True iff bonus-adjusted collateral value strictly exceeds debt value."""
    debt_value = Decimal(debt_amount) * Decimal(debt_price)
    collateral_value = (
        Decimal(collateral_amount) * Decimal(collateral_price) * Decimal(liquidation_bonus)
    )
    return collateral_value > debt_value


class ProfitabilityEvaluator:
    """Decide whether liquidating a debt/collateral pair is worth attempting."""

    def __init__(self, prices: PriceSource) -> None:
        self._prices = prices

    async def is_profitable(
        self,
        debt_amount: Decimal,
        collateral_amount: Decimal,
        debt_asset: str,
        collateral_asset: str,
        liquidation_bonus: Decimal,
    ) -> bool:
        """Fails closed when either asset has no price source."""
        debt_price = await self._prices.get_price(debt_asset)
        collateral_price = await self._prices.get_price(collateral_asset)

        if debt_price is None or collateral_price is None:
            logger.info(
                "No price source for %s/%s, treating as not profitable",
                debt_asset, collateral_asset,
            )
            return False

        profitable = is_profitable_at(
            debt_amount, debt_price, collateral_amount, collateral_price, liquidation_bonus
        )
        logger.debug(
            "Profitability %s→%s: debt %s @ %s, collateral %s @ %s x %s → %s",
            debt_asset, collateral_asset, debt_amount, debt_price,
            collateral_amount, collateral_price, liquidation_bonus, profitable,
        )
        return profitable

    async def value_of(self, amount: Decimal, asset: str) -> Decimal | None:
        """USD value of ``amount`` of ``asset``; None when it has no price source."""
        price = await self._prices.get_price(asset)
        if price is None:
            return None
        return Decimal(amount) * Decimal(price)
