"""EVM chain collaborators built on web3."""
from .client import EvmClient
from .comet import CometClient
from .multicall import AavePoolLiquidatableOracle, CometLiquidatableOracle

__all__ = [
    "AavePoolLiquidatableOracle",
    "CometClient",
    "CometLiquidatableOracle",
    "EvmClient",
]
