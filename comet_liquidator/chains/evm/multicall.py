"""Batched liquidatability checks through Multicall3 ``aggregate``.

``aggregate`` executes every sub-call inside one ``eth_call`` and returns the
block number it ran against, so all flags in a batch share one block height.
"""
from __future__ import annotations

import logging
from typing import Any, Sequence

from eth_abi import decode, encode
from web3 import AsyncWeb3, Web3

from .abi import MULTICALL3_ABI
from .client import EvmClient

logger = logging.getLogger(__name__)

HEALTH_FACTOR_ONE = 10**18


def function_selector(signature: str) -> bytes:
    """First four bytes of the keccak hash of ``signature``."""
    return bytes(Web3.keccak(text=signature)[:4])


class MulticallLiquidatableOracle:
    """Base oracle: one encoded sub-call per address, one decoded flag back."""

    signature = ""

    def __init__(self, client: EvmClient) -> None:
        self._client = client
        self._selector = function_selector(self.signature)

    def encode_call(self, address: str) -> bytes:
        return self._selector + encode(
            ["address"], [AsyncWeb3.to_checksum_address(address)]
        )

    def decode_result(self, data: bytes) -> bool:
        raise NotImplementedError

    async def _aggregate(self, calls: list[tuple[str, bytes]]) -> tuple[int, list[Any]]:
        multicall_address = AsyncWeb3.to_checksum_address(self._client.multicall_address)

        async def _run(w3: AsyncWeb3) -> tuple[int, list[Any]]:
            multicall = w3.eth.contract(address=multicall_address, abi=list(MULTICALL3_ABI))
            return await multicall.functions.aggregate(calls).call()

        return await self._client.execute(_run)

    async def check_liquidatable(
        self, market: str, addresses: Sequence[str]
    ) -> tuple[int, list[bool]]:
        target = AsyncWeb3.to_checksum_address(market)
        calls = [(target, self.encode_call(address)) for address in addresses]
        block_number, return_data = await self._aggregate(calls)

        if len(return_data) != len(addresses):
            raise ValueError(
                f"Multicall returned {len(return_data)} results for {len(addresses)} calls"
            )
        return int(block_number), [self.decode_result(bytes(d)) for d in return_data]


class CometLiquidatableOracle(MulticallLiquidatableOracle):
    """Comet ``isLiquidatable(address)``."""

    signature = "isLiquidatable(address)"

    def decode_result(self, data: bytes) -> bool:
        (flag,) = decode(["bool"], data)
        return bool(flag)


class AavePoolLiquidatableOracle(MulticallLiquidatableOracle):
    """Aave pool ``getUserAccountData(address)``: liquidatable below HF 1."""

    signature = "getUserAccountData(address)"

    def decode_result(self, data: bytes) -> bool:
        values = decode(
            ["uint256", "uint256", "uint256", "uint256", "uint256", "uint256"], data
        )
        total_debt, health_factor = values[1], values[5]
        return total_debt > 0 and health_factor < HEALTH_FACTOR_ONE
