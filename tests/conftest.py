"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from decimal import Decimal
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from comet_liquidator.config import (
    AppConfig,
    AssetRouteConfig,
    ChainConfig,
    Exchange,
    FlashLoanConfig,
    FlashLoanProvider,
    GasPolicy,
    IndexConfig,
    MarketConfig,
    NotificationsConfig,
    PoolConfig,
    RunnerConfig,
    SignerConfig,
    TelegramConfig,
)
from comet_liquidator.models import Asset, BorrowerPosition, Holding

# Well-known throwaway key, never funded.
TEST_PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"

COMET_MARKET = "0xc3d688b66703497daa19211eedff47f25384cdc3"
AAVE_POOL = "0x794a61358d6845594f94dc1db02a252b5b4814ad"
LIQUIDATOR = "0x1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a"
FLASH_TOKEN = "0xf1f1f1f1f1f1f1f1f1f1f1f1f1f1f1f1f1f1f1f1"

ASSET_A = "0xaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa"
ASSET_B = "0xbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbb"
ASSET_UNROUTED = "0xcccccccccccccccccccccccccccccccccccccccc"

USDC = "0x2791bca1f2de4661ed88a30c99a7a9449aa84174"
WETH = "0x7ceb23fd6bc0add59e62ac25578270cff1b9f619"

BORROWER_1 = "0x1111111111111111111111111111111111111111"
BORROWER_2 = "0x2222222222222222222222222222222222222222"
BORROWER_3 = "0x3333333333333333333333333333333333333333"


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_gas() -> GasPolicy:
    return GasPolicy(gas_limit=15_000_000, gas_price_wei=300 * 10**9)


@pytest.fixture()
def sample_chain_config() -> ChainConfig:
    return ChainConfig(
        name="polygon",
        chain_id=137,
        rpc_endpoints=("https://rpc1.example.com", "https://rpc2.example.com"),
        rpc_timeout=10,
    )


@pytest.fixture()
def sample_market() -> MarketConfig:
    return MarketConfig(
        name="cUSDCv3",
        protocol="comet",
        address=COMET_MARKET,
        liquidator=LIQUIDATOR,
        index="static",
        liquidation_threshold=10_000_000,
        flash_loan=FlashLoanConfig(token=FLASH_TOKEN, pool_fee=500),
        assets={
            ASSET_A: AssetRouteConfig(
                pool=PoolConfig(exchange=Exchange.UNISWAP, uniswap_pool_fee=500),
                max_purchase_amount=1000,
            ),
            ASSET_B: AssetRouteConfig(
                pool=PoolConfig(
                    exchange=Exchange.BALANCER, balancer_pool_id="0x" + "ab" * 32
                ),
                max_purchase_amount=None,
            ),
        },
    )


@pytest.fixture()
def sample_aave_market() -> MarketConfig:
    return MarketConfig(
        name="aave-v3",
        protocol="aave",
        address=AAVE_POOL,
        liquidator=LIQUIDATOR,
        index="aave",
        liquidation_bonus=Decimal("1.05"),
        close_factor=Decimal("0.5"),
        flash_loan_provider=FlashLoanProvider.BALANCER,
        default_pool=PoolConfig(exchange=Exchange.UNISWAP, uniswap_pool_fee=3000),
    )


@pytest.fixture()
def sample_app_config(
    sample_gas: GasPolicy,
    sample_chain_config: ChainConfig,
    sample_market: MarketConfig,
    sample_aave_market: MarketConfig,
) -> AppConfig:
    return AppConfig(
        runner=RunnerConfig(scan_interval_seconds=30, address_chunk_size=2),
        gas=sample_gas,
        chain=sample_chain_config,
        signer=SignerConfig(private_key=TEST_PRIVATE_KEY),
        indexes={
            "static": IndexConfig(
                kind="static", addresses=(BORROWER_1, BORROWER_2, BORROWER_3)
            ),
            "aave": IndexConfig(
                kind="aave_subgraph", url="https://subgraph.example.com/aave"
            ),
        },
        price_feeds={"USDC": "0x" + "0f" * 20, "WETH": "0x" + "0e" * 20},
        markets=(sample_market, sample_aave_market),
        notifications=NotificationsConfig(
            telegram=TelegramConfig(
                enabled=True,
                alert_bot_token="fake-alert-token",
                log_bot_token="fake-log-token",
                chat_id="12345",
            ),
        ),
    )


# ---------------------------------------------------------------------------
# Model fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_assets() -> list[Asset]:
    return [
        Asset(address=ASSET_A, price_feed="0x" + "a1" * 20, scale=10**18),
        Asset(address=ASSET_B, price_feed="0x" + "b1" * 20, scale=10**8),
        Asset(address=ASSET_UNROUTED, price_feed="0x" + "c1" * 20, scale=10**18),
    ]


@pytest.fixture()
def sample_borrower() -> BorrowerPosition:
    return BorrowerPosition(
        address=BORROWER_1,
        debts=(
            Holding(
                symbol="USDC",
                asset=USDC,
                amount=Decimal("1500"),
                raw_amount=1_500_000_000,
                decimals=6,
            ),
        ),
        collaterals=(
            Holding(
                symbol="WETH",
                asset=WETH,
                amount=Decimal("1"),
                raw_amount=10**18,
                decimals=18,
            ),
        ),
    )


# ---------------------------------------------------------------------------
# Collaborator fixtures
# ---------------------------------------------------------------------------


def make_submitter(address: str, results: list | None = None) -> MagicMock:
    """Submitter mock; ``results`` feeds ``submit`` in order (bools or exceptions)."""
    submitter = MagicMock()
    submitter.address = address
    if results is None:
        submitter.submit = AsyncMock(return_value=True)
    else:
        submitter.submit = AsyncMock(side_effect=results)
    return submitter


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    runner:
      scan_interval_seconds: 45
      address_chunk_size: 500
    gas:
      gas_limit: 12000000
      gas_price_gwei: 150
    chain:
      name: polygon
      chain_id: 137
      rpc_endpoints: ["https://rpc.example.com", ""]
      rpc_timeout: 10
    signer:
      private_key: "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
    indexes:
      compound:
        kind: comet_subgraph
        url: "https://subgraph.example.com/compound"
        page_size: 100
    price_feeds:
      usdc: "0x0f0f0f0f0f0f0f0f0f0f0f0f0f0f0f0f0f0f0f0f"
    markets:
      - name: cUSDCv3
        protocol: comet
        address: "0xc3d688B66703497DAA19211EEdff47f25384cdc3"
        liquidator: "0x1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a"
        index: compound
        liquidation_threshold: 10000000
        flash_loan:
          token: "0xf1f1f1f1f1f1f1f1f1f1f1f1f1f1f1f1f1f1f1f1"
          pool_fee: 500
        assets:
          "0xAAaaAAaaAAaaAAaaAAaaAAaaAAaaAAaaAAaaAAaa":
            exchange: uniswap
            uniswap_pool_fee: 500
            swap_via_weth: true
            max_purchase: 2.5
            decimals: 18
          "0xbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbb":
            exchange: curve
            curve_pool: "0xdddddddddddddddddddddddddddddddddddddddd"
    notifications:
      telegram:
        enabled: true
        alert_bot_token: "tok1"
        log_bot_token: "tok2"
        chat_id: 999
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
