"""Unit tests for contract call builders."""
from __future__ import annotations

import pytest
from web3 import Web3

from comet_liquidator.chains.evm.calls import (
    _bytes32,
    absorb_call,
    liquidate_and_arbitrage_call,
    pool_config_tuple,
)
from comet_liquidator.config import ZERO_ADDRESS, Exchange, FlashLoanProvider, PoolConfig


class TestPoolConfigTuple:
    def test_uniswap_route(self) -> None:
        pool = PoolConfig(exchange=Exchange.UNISWAP, uniswap_pool_fee=500, swap_via_weth=True)
        assert pool_config_tuple(pool) == (0, 500, True, b"\x00" * 32, ZERO_ADDRESS)

    def test_balancer_pool_id(self) -> None:
        pool_id = "0x" + "01" * 32
        pool = PoolConfig(exchange=Exchange.BALANCER, balancer_pool_id=pool_id)
        exchange, _, _, encoded, _ = pool_config_tuple(pool)
        assert exchange == 2
        assert encoded == bytes.fromhex("01" * 32)

    def test_curve_pool_is_checksummed(self) -> None:
        curve = "0x" + "de" * 20
        pool = PoolConfig(exchange=Exchange.CURVE, curve_pool=curve)
        assert pool_config_tuple(pool)[4] == Web3.to_checksum_address(curve)


class TestBytes32:
    def test_short_value_is_left_padded(self) -> None:
        assert _bytes32("0x01") == b"\x00" * 31 + b"\x01"

    def test_too_long_raises(self) -> None:
        with pytest.raises(ValueError):
            _bytes32("0x" + "ff" * 33)


class TestCallBuilders:
    def test_absorb_call(self) -> None:
        market = "0x" + "c3" * 20
        call = absorb_call(market, "0x" + "88" * 20, ["0x" + "11" * 20, "0x" + "22" * 20])
        assert call.function == "absorb"
        assert call.to == Web3.to_checksum_address(market)
        assert len(call.args[1]) == 2

    def test_liquidate_and_arbitrage_call(self) -> None:
        call = liquidate_and_arbitrage_call(
            "0x" + "1a" * 20,
            "0x" + "aa" * 20,
            "0x" + "bb" * 20,
            "0x" + "11" * 20,
            123,
            PoolConfig(exchange=Exchange.SUSHISWAP),
            "0x" + "99" * 20,
            FlashLoanProvider.UNISWAP,
        )
        assert call.function == "liquidateAndArbitrage"
        assert call.args[3] == 123
        assert call.args[4] is False
        assert call.args[5][0] == 1
        assert call.args[7] == 1
