"""Execution submitters.

``Web3Submitter`` signs and broadcasts under a fixed gas policy and waits for
the receipt. ``SimulatingSubmitter`` runs the same call through ``eth_call``
so a deployment can validate decisions without spending gas.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any

from eth_account import Account
from web3 import AsyncWeb3
from web3.exceptions import ContractLogicError, TimeExhausted

from ..chains.evm.client import EvmClient
from ..config import GasPolicy
from ..exceptions import PendingTransactionError
from ..models import ContractCall

logger = logging.getLogger(__name__)


def _contract_function(w3: AsyncWeb3, call: ContractCall) -> Any:
    contract = w3.eth.contract(
        address=AsyncWeb3.to_checksum_address(call.to), abi=list(call.abi)
    )
    return contract.functions[call.function](*call.args)


class Web3Submitter:
    """Sign, send and confirm transactions from one private key."""

    def __init__(
        self, client: EvmClient, private_key: str, receipt_timeout: int = 120
    ) -> None:
        self._client = client
        self._account = Account.from_key(private_key)
        self._nonce_lock = asyncio.Lock()
        self.receipt_timeout = receipt_timeout

    @property
    def address(self) -> str:
        return self._account.address

    async def submit(self, call: ContractCall, gas: GasPolicy) -> bool:
        """Broadcast ``call``; True iff the mined receipt has status 1.

        Raises :class:`PendingTransactionError` when no receipt arrives in time.
        """
        w3 = self._client.w3
        tx_func = _contract_function(w3, call)

        async with self._nonce_lock:
            nonce = await w3.eth.get_transaction_count(self.address, "pending")
            tx = await tx_func.build_transaction(
                {
                    "from": self.address,
                    "nonce": nonce,
                    "gas": gas.gas_limit,
                    "gasPrice": gas.gas_price_wei,
                    "chainId": self._client.chain_id,
                }
            )
            signed = self._account.sign_transaction(tx)
            tx_hash = await w3.eth.send_raw_transaction(signed.raw_transaction)

        tx_hex = tx_hash.hex()
        logger.info("TX sent: %s (%s on %s)", tx_hex, call.function, call.to)

        try:
            receipt = await w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.receipt_timeout
            )
        except TimeExhausted as e:
            logger.error(
                "TX %s (%s on %s) still pending after %ds, not resubmitting",
                tx_hex, call.function, call.to, self.receipt_timeout,
            )
            raise PendingTransactionError(tx_hex) from e

        if receipt["status"] == 1:
            logger.info("TX confirmed: %s (gas used %d)", tx_hex, receipt["gasUsed"])
            return True

        logger.warning("TX reverted: %s", tx_hex)
        return False


class SimulatingSubmitter:
    """Dry-run submitter: ``eth_call`` from a fixed address, nothing is sent."""

    def __init__(self, client: EvmClient, from_address: str) -> None:
        self._client = client
        self._from = AsyncWeb3.to_checksum_address(from_address)

    @property
    def address(self) -> str:
        return self._from

    async def submit(self, call: ContractCall, gas: GasPolicy) -> bool:
        """True iff the call would not revert at the latest block."""
        tx_func = _contract_function(self._client.w3, call)
        try:
            await tx_func.call({"from": self._from, "gas": gas.gas_limit})
        except ContractLogicError as e:
            logger.warning("Simulation of %s reverted: %s", call.function, e)
            return False

        logger.info("Simulation of %s on %s passed", call.function, call.to)
        return True
