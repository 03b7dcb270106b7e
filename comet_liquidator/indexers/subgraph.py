"""Subgraph-backed position index clients (GraphQL over aiohttp)."""
from __future__ import annotations

import asyncio
import logging
import ssl
from decimal import Decimal
from typing import Any

import aiohttp
import certifi
from web3 import Web3

from ..config import IndexConfig
from ..exceptions import RemoteCallError
from ..models import BorrowerPosition, Holding

logger = logging.getLogger(__name__)

COMET_POSITIONS_QUERY = """\
query Positions($market: String!, $lastId: String!, $first: Int!) {
  positions(
    first: $first
    orderBy: id
    where: {id_gt: $lastId, market_: {cometProxy: $market}}
  ) {
    id
    account {
      address
    }
  }
}
"""

AAVE_USERS_QUERY = """\
query Users($lastId: String!, $first: Int!) {
  users(
    first: $first
    orderBy: id
    where: {id_gt: $lastId, borrowedReservesCount_gt: 0}
  ) {
    id
    reserves {
      currentATokenBalance
      currentTotalDebt
      usageAsCollateralEnabledOnUser
      reserve {
        symbol
        underlyingAsset
        decimals
      }
    }
  }
}
"""


class SubgraphClient:
    """Paginated GraphQL queries against a subgraph endpoint."""

    def __init__(self, config: IndexConfig) -> None:
        self.url = config.url
        self.page_size = config.page_size
        self.timeout = config.timeout

    async def query(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        """Run one query; raise ``RemoteCallError`` on HTTP or GraphQL errors."""
        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.post(
                    self.url,
                    json={"query": query, "variables": variables},
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    if response.status != 200:
                        raise RemoteCallError(
                            f"Subgraph query failed: HTTP {response.status}"
                        )
                    body = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise RemoteCallError(f"Subgraph query failed: {e}") from e

        if body.get("errors"):
            raise RemoteCallError(f"Subgraph returned errors: {body['errors']}")
        return body.get("data") or {}

    async def paginate(
        self, query: str, entity: str, variables: dict[str, Any]
    ) -> list[dict[str, Any]]:
        """Follow ``id_gt`` cursors until a short page is returned."""
        rows: list[dict[str, Any]] = []
        last_id = ""
        while True:
            data = await self.query(
                query, {**variables, "lastId": last_id, "first": self.page_size}
            )
            page = data.get(entity) or []
            rows.extend(page)
            if len(page) < self.page_size:
                return rows
            last_id = page[-1]["id"]


class CometSubgraphIndex:
    """Comet position holders, from a Compound III subgraph."""

    def __init__(self, config: IndexConfig) -> None:
        self._subgraph = SubgraphClient(config)

    async def list_position_holders(self, market: str) -> set[str]:
        positions = await self._subgraph.paginate(
            COMET_POSITIONS_QUERY, "positions", {"market": market.lower()}
        )
        holders = {
            Web3.to_checksum_address(p["account"]["address"]) for p in positions
        }
        logger.info(
            "Subgraph returned %d positions (%d unique holders) for %s",
            len(positions), len(holders), market,
        )
        return holders


def _holding(entry: dict[str, Any], raw_field: str) -> Holding:
    reserve = entry["reserve"]
    decimals = int(reserve.get("decimals", 18))
    raw_amount = int(entry.get(raw_field) or 0)
    return Holding(
        symbol=reserve.get("symbol", "").upper(),
        asset=Web3.to_checksum_address(reserve["underlyingAsset"]),
        amount=Decimal(raw_amount).scaleb(-decimals),
        raw_amount=raw_amount,
        decimals=decimals,
    )


def parse_aave_user(user: dict[str, Any]) -> BorrowerPosition:
    """Build a decimal-normalized position from one subgraph ``user`` row."""
    debts: list[Holding] = []
    collaterals: list[Holding] = []
    for entry in user.get("reserves", []):
        if int(entry.get("currentTotalDebt") or 0) > 0:
            debts.append(_holding(entry, "currentTotalDebt"))
        if (
            entry.get("usageAsCollateralEnabledOnUser")
            and int(entry.get("currentATokenBalance") or 0) > 0
        ):
            collaterals.append(_holding(entry, "currentATokenBalance"))
    return BorrowerPosition(
        address=Web3.to_checksum_address(user["id"]),
        debts=tuple(debts),
        collaterals=tuple(collaterals),
    )


class AaveSubgraphIndex:
    """Aave borrowers with their debt and collateral reserves."""

    def __init__(self, config: IndexConfig) -> None:
        self._subgraph = SubgraphClient(config)

    async def fetch_borrower_positions(self, market: str) -> dict[str, BorrowerPosition]:
        users = await self._subgraph.paginate(AAVE_USERS_QUERY, "users", {})
        positions = {p.address: p for p in map(parse_aave_user, users)}
        logger.info("Subgraph returned %d borrowers for %s", len(positions), market)
        return positions

    async def list_position_holders(self, market: str) -> set[str]:
        return set(await self.fetch_borrower_positions(market))
