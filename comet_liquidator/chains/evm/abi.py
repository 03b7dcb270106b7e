"""Minimal ABIs for the contracts the liquidator talks to."""
from __future__ import annotations

from typing import Any


def _fn(
    name: str,
    inputs: list[tuple[str, str]],
    outputs: list[tuple[str, str]],
    mutability: str = "view",
) -> dict[str, Any]:
    return {
        "name": name,
        "type": "function",
        "stateMutability": mutability,
        "inputs": [{"name": n, "type": t} for n, t in inputs],
        "outputs": [{"name": n, "type": t} for n, t in outputs],
    }


_POOL_CONFIG_COMPONENTS = [
    {"name": "exchange", "type": "uint8"},
    {"name": "uniswapPoolFee", "type": "uint24"},
    {"name": "swapViaWeth", "type": "bool"},
    {"name": "balancerPoolId", "type": "bytes32"},
    {"name": "curvePool", "type": "address"},
]

COMET_ABI: tuple[dict[str, Any], ...] = (
    _fn("numAssets", [], [("", "uint8")]),
    {
        "name": "getAssetInfo",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "i", "type": "uint8"}],
        "outputs": [
            {
                "name": "",
                "type": "tuple",
                "components": [
                    {"name": "offset", "type": "uint8"},
                    {"name": "asset", "type": "address"},
                    {"name": "priceFeed", "type": "address"},
                    {"name": "scale", "type": "uint64"},
                    {"name": "borrowCollateralFactor", "type": "uint64"},
                    {"name": "liquidateCollateralFactor", "type": "uint64"},
                    {"name": "liquidationFactor", "type": "uint64"},
                    {"name": "supplyCap", "type": "uint128"},
                ],
            }
        ],
    },
    _fn("getReserves", [], [("", "int256")]),
    _fn("targetReserves", [], [("", "uint256")]),
    _fn("baseScale", [], [("", "uint256")]),
    _fn("getCollateralReserves", [("asset", "address")], [("", "uint256")]),
    _fn("getPrice", [("priceFeed", "address")], [("", "uint256")]),
    _fn("isLiquidatable", [("account", "address")], [("", "bool")]),
    _fn(
        "absorb",
        [("absorber", "address"), ("accounts", "address[]")],
        [],
        mutability="nonpayable",
    ),
)

ON_CHAIN_LIQUIDATOR_ABI: tuple[dict[str, Any], ...] = (
    {
        "name": "absorbAndArbitrage",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "comet", "type": "address"},
            {"name": "liquidatableAccounts", "type": "address[]"},
            {"name": "assets", "type": "address[]"},
            {
                "name": "poolConfigs",
                "type": "tuple[]",
                "components": _POOL_CONFIG_COMPONENTS,
            },
            {"name": "maxAmountsToPurchase", "type": "uint256[]"},
            {"name": "flashLoanPairToken", "type": "address"},
            {"name": "flashLoanPoolFee", "type": "uint24"},
            {"name": "liquidationThreshold", "type": "uint256"},
        ],
        "outputs": [],
    },
)

FLASH_LIQUIDATOR_ABI: tuple[dict[str, Any], ...] = (
    {
        "name": "liquidateAndArbitrage",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "collateralAsset", "type": "address"},
            {"name": "debtAsset", "type": "address"},
            {"name": "user", "type": "address"},
            {"name": "debtToCover", "type": "uint256"},
            {"name": "receiveAToken", "type": "bool"},
            {
                "name": "poolConfig",
                "type": "tuple",
                "components": _POOL_CONFIG_COMPONENTS,
            },
            {"name": "recipient", "type": "address"},
            {"name": "flashLoanProvider", "type": "uint8"},
        ],
        "outputs": [],
    },
)

MULTICALL3_ABI: tuple[dict[str, Any], ...] = (
    {
        "name": "aggregate",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {
                "name": "calls",
                "type": "tuple[]",
                "components": [
                    {"name": "target", "type": "address"},
                    {"name": "callData", "type": "bytes"},
                ],
            }
        ],
        "outputs": [
            {"name": "blockNumber", "type": "uint256"},
            {"name": "returnData", "type": "bytes[]"},
        ],
    },
)

AGGREGATOR_ABI: tuple[dict[str, Any], ...] = (
    _fn("latestAnswer", [], [("", "int256")]),
)
