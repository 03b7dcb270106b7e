"""Service modules"""
from .arbitrage import CollateralArbitrage
from .batch_checker import BatchLiquidatabilityChecker
from .cascade import LiquidationCascade
from .discretionary import DiscretionaryLiquidator
from .profitability import ProfitabilityEvaluator
from .runner import LiquidationBot
from .scanner import UnderwaterScanner

__all__ = [
    "BatchLiquidatabilityChecker",
    "CollateralArbitrage",
    "DiscretionaryLiquidator",
    "LiquidationBot",
    "LiquidationCascade",
    "ProfitabilityEvaluator",
    "UnderwaterScanner",
]
