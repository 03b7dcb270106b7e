"""Unit tests for the Chainlink price source."""
from __future__ import annotations

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from comet_liquidator.chains.evm.abi import AGGREGATOR_ABI
from comet_liquidator.oracles.chainlink import ChainlinkPriceSource

USDC_FEED = "0x" + "0f" * 20


def _client(answer: int) -> MagicMock:
    client = MagicMock()
    client.call = AsyncMock(return_value=answer)
    return client


class TestChainlinkPriceSource:
    @pytest.mark.asyncio
    async def test_scales_answer(self) -> None:
        client = _client(200012345678)
        source = ChainlinkPriceSource(client, {"WETH": USDC_FEED})

        assert await source.get_price("WETH") == Decimal("2000.12345678")
        client.call.assert_awaited_once_with(USDC_FEED, AGGREGATOR_ABI, "latestAnswer")

    @pytest.mark.asyncio
    async def test_symbol_lookup_is_case_insensitive(self) -> None:
        source = ChainlinkPriceSource(_client(100000000), {"usdc": USDC_FEED})
        assert await source.get_price("USDC") == Decimal("1")

    @pytest.mark.asyncio
    async def test_missing_feed_returns_none(self) -> None:
        client = _client(1)
        source = ChainlinkPriceSource(client, {})

        assert await source.get_price("WBTC") is None
        client.call.assert_not_called()

    @pytest.mark.asyncio
    async def test_non_positive_answer_returns_none(self) -> None:
        source = ChainlinkPriceSource(_client(0), {"USDC": USDC_FEED})
        assert await source.get_price("USDC") is None
