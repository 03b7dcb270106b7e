"""Discretionary (Aave-style) liquidations gated by the profitability check."""
from __future__ import annotations

import logging
from decimal import Decimal

from ..chains.evm.calls import liquidate_and_arbitrage_call
from ..config import GasPolicy, MarketConfig
from ..interfaces.submitter import ExecutionSubmitter
from ..models import BorrowerPosition, Holding
from .profitability import ProfitabilityEvaluator

logger = logging.getLogger(__name__)


async def _most_valuable(
    evaluator: ProfitabilityEvaluator, holdings: tuple[Holding, ...]
) -> Holding | None:
    """Holding worth the most in USD. Unpriced holdings rank below priced ones, then by amount."""
    if len(holdings) <= 1:
        return holdings[0] if holdings else None
    ranked = []
    for holding in holdings:
        value = await evaluator.value_of(holding.amount, holding.symbol)
        ranked.append(((value is not None, value or Decimal(0), holding.amount), holding))
    return max(ranked, key=lambda item: item[0])[1]


class DiscretionaryLiquidator:
    """Liquidate one borrower's most valuable debt against its most valuable collateral."""

    def __init__(
        self,
        market: MarketConfig,
        evaluator: ProfitabilityEvaluator,
        submitter: ExecutionSubmitter,
        gas: GasPolicy,
    ) -> None:
        self._market = market
        self._evaluator = evaluator
        self._submitter = submitter
        self._gas = gas

    async def liquidate(self, position: BorrowerPosition) -> bool:
        """True iff a liquidation was submitted and succeeded."""
        try:
            debt = await _most_valuable(self._evaluator, position.debts)
            collateral = await _most_valuable(self._evaluator, position.collaterals)
        except Exception as e:
            logger.error("Pricing holdings of %s failed: %s", position.address, e)
            return False

        if debt is None or collateral is None:
            logger.info(
                "Skipping %s: incomplete borrow/collateral data", position.address
            )
            return False

        route = self._market.route_for(collateral.asset)
        if route is None:
            logger.warning(
                "Skipping %s: no pool config for collateral %s",
                position.address, collateral.symbol,
            )
            return False

        try:
            profitable = await self._evaluator.is_profitable(
                debt.amount,
                collateral.amount,
                debt.symbol,
                collateral.symbol,
                self._market.liquidation_bonus,
            )
        except Exception as e:
            logger.error("Profitability check for %s failed: %s", position.address, e)
            return False

        if not profitable:
            logger.info("Skipping %s: not profitable for liquidation", position.address)
            return False

        debt_to_cover = int(debt.raw_amount * self._market.close_factor)
        logger.info(
            "Liquidating %s: %s %s debt against %s collateral",
            position.address, debt_to_cover, debt.symbol, collateral.symbol,
        )
        try:
            call = liquidate_and_arbitrage_call(
                self._market.liquidator,
                collateral.asset,
                debt.asset,
                position.address,
                debt_to_cover,
                route.pool,
                self._submitter.address,
                self._market.flash_loan_provider,
            )
            success = await self._submitter.submit(call, self._gas)
        except Exception as e:
            logger.error("Error liquidating %s: %s", position.address, e)
            return False

        if success:
            logger.info("Successfully liquidated %s", position.address)
        else:
            logger.error("Failed to liquidate %s", position.address)
        return bool(success)
