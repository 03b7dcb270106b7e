"""Builders for the contract calls the liquidator submits."""
from __future__ import annotations

from typing import Sequence

from web3 import Web3

from ...config import FlashLoanProvider, PoolConfig, ZERO_ADDRESS
from ...models import ContractCall, LiquidationAttempt
from .abi import COMET_ABI, FLASH_LIQUIDATOR_ABI, ON_CHAIN_LIQUIDATOR_ABI


def _checksum(address: str) -> str:
    return Web3.to_checksum_address(address)


def _bytes32(value: str) -> bytes:
    raw = bytes.fromhex(value.removeprefix("0x")) if value else b""
    if len(raw) > 32:
        raise ValueError(f"Value does not fit in bytes32: {value}")
    return raw.rjust(32, b"\x00") if raw else b"\x00" * 32


def pool_config_tuple(pool: PoolConfig) -> tuple[int, int, bool, bytes, str]:
    """ABI tuple for the liquidator's PoolConfig struct."""
    return (
        int(pool.exchange),
        pool.uniswap_pool_fee,
        pool.swap_via_weth,
        _bytes32(pool.balancer_pool_id),
        _checksum(pool.curve_pool or ZERO_ADDRESS),
    )


def absorb_and_arbitrage_call(
    liquidator: str, market: str, attempt: LiquidationAttempt
) -> ContractCall:
    return ContractCall(
        to=_checksum(liquidator),
        abi=ON_CHAIN_LIQUIDATOR_ABI,
        function="absorbAndArbitrage",
        args=(
            _checksum(market),
            [_checksum(t) for t in attempt.targets],
            [_checksum(a) for a in attempt.assets],
            [pool_config_tuple(p) for p in attempt.pool_configs],
            list(attempt.max_amounts),
            _checksum(attempt.flash_loan.token),
            attempt.flash_loan.pool_fee,
            attempt.liquidation_threshold,
        ),
    )


def absorb_call(market: str, absorber: str, accounts: Sequence[str]) -> ContractCall:
    return ContractCall(
        to=_checksum(market),
        abi=COMET_ABI,
        function="absorb",
        args=(_checksum(absorber), [_checksum(a) for a in accounts]),
    )


def liquidate_and_arbitrage_call(
    liquidator: str,
    collateral_asset: str,
    debt_asset: str,
    user: str,
    debt_to_cover: int,
    pool: PoolConfig,
    recipient: str,
    provider: FlashLoanProvider,
) -> ContractCall:
    return ContractCall(
        to=_checksum(liquidator),
        abi=FLASH_LIQUIDATOR_ABI,
        function="liquidateAndArbitrage",
        args=(
            _checksum(collateral_asset),
            _checksum(debt_asset),
            _checksum(user),
            debt_to_cover,
            False,
            pool_config_tuple(pool),
            _checksum(recipient),
            int(provider),
        ),
    )
