"""EVM RPC client with endpoint fallback support."""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, TypeVar

from web3 import AsyncWeb3

from ...config import ChainConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EvmClient:
    """Async web3 client that rotates through RPC endpoints on failure."""

    def __init__(self, config: ChainConfig) -> None:
        self.endpoints = list(config.rpc_endpoints)
        self.timeout = config.rpc_timeout
        self.chain_id = config.chain_id
        self.multicall_address = config.multicall_address
        self.current_rpc_index = 0
        self._providers: dict[str, AsyncWeb3] = {}

    def _web3(self, rpc_url: str) -> AsyncWeb3:
        w3 = self._providers.get(rpc_url)
        if w3 is None:
            w3 = AsyncWeb3(
                AsyncWeb3.AsyncHTTPProvider(
                    rpc_url, request_kwargs={"timeout": self.timeout}
                )
            )
            self._providers[rpc_url] = w3
        return w3

    @property
    def w3(self) -> AsyncWeb3:
        return self._web3(self.endpoints[self.current_rpc_index])

    async def execute(self, fn: Callable[[AsyncWeb3], Awaitable[T]]) -> T:
        """Run ``fn`` against the current endpoint, falling back to the others."""
        last_error: Exception | None = None
        for attempt in range(len(self.endpoints)):
            rpc_index = (self.current_rpc_index + attempt) % len(self.endpoints)
            rpc_url = self.endpoints[rpc_index]

            try:
                result = await fn(self._web3(rpc_url))
            except Exception as e:
                last_error = e
                logger.warning("RPC endpoint %s failed: %s", rpc_url, e)
                if attempt < len(self.endpoints) - 1:
                    logger.info("Trying next endpoint...")
                continue

            if rpc_index != self.current_rpc_index:
                logger.info("Switched to RPC endpoint: %s", rpc_url)
                self.current_rpc_index = rpc_index
            return result

        raise RuntimeError(f"All RPC endpoints failed. Last error: {last_error}")

    async def call(
        self, address: str, abi: Any, function: str, *args: Any
    ) -> Any:
        """Read-only contract call with endpoint fallback."""

        async def _call(w3: AsyncWeb3) -> Any:
            contract = w3.eth.contract(
                address=AsyncWeb3.to_checksum_address(address), abi=list(abi)
            )
            return await contract.functions[function](*args).call()

        return await self.execute(_call)
