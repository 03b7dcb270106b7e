"""Configuration loader: reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from decimal import Decimal
from enum import IntEnum
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
MULTICALL3_ADDRESS = "0xcA11bde05977b3631167028862bE2a173976CA11"

PROTOCOLS = ("comet", "aave")
INDEX_KINDS = ("comet_subgraph", "aave_subgraph", "static")


class Exchange(IntEnum):
    """Swap venue understood by the on-chain liquidator contracts."""

    UNISWAP = 0
    SUSHISWAP = 1
    BALANCER = 2
    CURVE = 3


class FlashLoanProvider(IntEnum):
    AAVE = 0
    UNISWAP = 1
    BALANCER = 2


# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RunnerConfig:
    scan_interval_seconds: int = 60
    address_chunk_size: int = 1000


@dataclass(frozen=True)
class GasPolicy:
    gas_limit: int = 15_000_000
    gas_price_wei: int = 300 * 10**9


@dataclass(frozen=True)
class ChainConfig:
    name: str = ""
    chain_id: int = 1
    rpc_endpoints: tuple[str, ...] = ()
    rpc_timeout: int = 30
    multicall_address: str = MULTICALL3_ADDRESS


@dataclass(frozen=True)
class SignerConfig:
    private_key: str = ""
    absorber_private_key: str = ""
    simulate: bool = False
    simulate_from: str = ""


@dataclass(frozen=True)
class IndexConfig:
    kind: str = "comet_subgraph"
    url: str = ""
    page_size: int = 1000
    timeout: int = 30
    addresses: tuple[str, ...] = ()


@dataclass(frozen=True)
class PoolConfig:
    """Swap routing for one collateral asset."""

    exchange: Exchange = Exchange.UNISWAP
    uniswap_pool_fee: int = 0
    swap_via_weth: bool = False
    balancer_pool_id: str = ""
    curve_pool: str = ZERO_ADDRESS


@dataclass(frozen=True)
class AssetRouteConfig:
    pool: PoolConfig = field(default_factory=PoolConfig)
    # Raw token units; None means the asset is never bought in tiered retries.
    max_purchase_amount: int | None = None


@dataclass(frozen=True)
class FlashLoanConfig:
    token: str = ""
    pool_fee: int = 0


@dataclass(frozen=True)
class MarketConfig:
    name: str = ""
    protocol: str = "comet"
    address: str = ""
    liquidator: str = ""
    index: str = ""
    liquidation_threshold: int = 1
    flash_loan: FlashLoanConfig = field(default_factory=FlashLoanConfig)
    assets: dict[str, AssetRouteConfig] = field(default_factory=dict)
    liquidation_bonus: Decimal = Decimal("1.1")
    close_factor: Decimal = Decimal("0.5")
    flash_loan_provider: FlashLoanProvider = FlashLoanProvider.BALANCER
    default_pool: PoolConfig | None = None

    def route_for(self, asset: str) -> AssetRouteConfig | None:
        """Routing for ``asset`` (case-insensitive), falling back to the default pool."""
        route = self.assets.get(asset.lower())
        if route is None and self.default_pool is not None:
            return AssetRouteConfig(pool=self.default_pool)
        return route


@dataclass(frozen=True)
class TelegramConfig:
    enabled: bool = False
    alert_bot_token: str = ""
    log_bot_token: str = ""
    chat_id: str = ""


@dataclass(frozen=True)
class NotificationsConfig:
    telegram: TelegramConfig = field(default_factory=TelegramConfig)


@dataclass(frozen=True)
class AppConfig:
    runner: RunnerConfig = field(default_factory=RunnerConfig)
    gas: GasPolicy = field(default_factory=GasPolicy)
    chain: ChainConfig = field(default_factory=ChainConfig)
    signer: SignerConfig = field(default_factory=SignerConfig)
    indexes: dict[str, IndexConfig] = field(default_factory=dict)
    price_feeds: dict[str, str] = field(default_factory=dict)
    markets: tuple[MarketConfig, ...] = ()
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _build_runner(raw: dict[str, Any]) -> RunnerConfig:
    return RunnerConfig(
        scan_interval_seconds=int(raw.get("scan_interval_seconds", 60)),
        address_chunk_size=int(raw.get("address_chunk_size", 1000)),
    )


def _build_gas(raw: dict[str, Any]) -> GasPolicy:
    gwei = Decimal(str(raw.get("gas_price_gwei", 300)))
    return GasPolicy(
        gas_limit=int(raw.get("gas_limit", 15_000_000)),
        gas_price_wei=int(gwei * 10**9),
    )


def _build_chain(raw: dict[str, Any]) -> ChainConfig:
    return ChainConfig(
        name=raw.get("name", ""),
        chain_id=int(raw.get("chain_id", 1)),
        rpc_endpoints=tuple(e for e in raw.get("rpc_endpoints", []) if e),
        rpc_timeout=int(raw.get("rpc_timeout", 30)),
        multicall_address=raw.get("multicall_address", MULTICALL3_ADDRESS),
    )


def _build_signer(raw: dict[str, Any], simulate: bool = False) -> SignerConfig:
    return SignerConfig(
        private_key=raw.get("private_key", ""),
        absorber_private_key=raw.get("absorber_private_key", ""),
        simulate=simulate or _to_bool(raw.get("simulate", False)),
        simulate_from=raw.get("simulate_from", ""),
    )


def _build_indexes(raw: dict[str, Any]) -> dict[str, IndexConfig]:
    indexes: dict[str, IndexConfig] = {}
    for name, cfg in raw.items():
        indexes[name] = IndexConfig(
            kind=cfg.get("kind", "comet_subgraph"),
            url=cfg.get("url", ""),
            page_size=int(cfg.get("page_size", 1000)),
            timeout=int(cfg.get("timeout", 30)),
            addresses=tuple(cfg.get("addresses", [])),
        )
    return indexes


def _parse_exchange(name: Any) -> Exchange:
    if isinstance(name, int):
        return Exchange(name)
    try:
        return Exchange[str(name).upper()]
    except KeyError:
        raise ValueError(f"Unknown exchange '{name}'") from None


def _build_pool(raw: dict[str, Any]) -> PoolConfig:
    return PoolConfig(
        exchange=_parse_exchange(raw.get("exchange", "uniswap")),
        uniswap_pool_fee=int(raw.get("uniswap_pool_fee", 0)),
        swap_via_weth=_to_bool(raw.get("swap_via_weth", False)),
        balancer_pool_id=raw.get("balancer_pool_id", ""),
        curve_pool=raw.get("curve_pool", ZERO_ADDRESS),
    )


def _build_asset_route(raw: dict[str, Any]) -> AssetRouteConfig:
    max_purchase = raw.get("max_purchase")
    amount = None
    if max_purchase is not None:
        decimals = int(raw.get("decimals", 18))
        amount = int(Decimal(str(max_purchase)) * 10**decimals)
    return AssetRouteConfig(pool=_build_pool(raw), max_purchase_amount=amount)


def _build_markets(raw: list[dict[str, Any]]) -> tuple[MarketConfig, ...]:
    markets: list[MarketConfig] = []
    for m in raw:
        flash = m.get("flash_loan", {})
        provider = str(m.get("flash_loan_provider", "balancer")).upper()
        if provider not in FlashLoanProvider.__members__:
            raise ValueError(
                f"Market '{m.get('name', '')}' has unknown flash loan provider '{provider}'"
            )
        default_pool = m.get("default_pool")
        markets.append(
            MarketConfig(
                name=m.get("name", ""),
                protocol=m.get("protocol", "comet"),
                address=m.get("address", ""),
                liquidator=m.get("liquidator", ""),
                index=m.get("index", ""),
                liquidation_threshold=int(m.get("liquidation_threshold", 1)),
                flash_loan=FlashLoanConfig(
                    token=flash.get("token", ""),
                    pool_fee=int(flash.get("pool_fee", 0)),
                ),
                assets={
                    addr.lower(): _build_asset_route(route or {})
                    for addr, route in m.get("assets", {}).items()
                },
                liquidation_bonus=Decimal(str(m.get("liquidation_bonus", "1.1"))),
                close_factor=Decimal(str(m.get("close_factor", "0.5"))),
                flash_loan_provider=FlashLoanProvider[provider],
                default_pool=_build_pool(default_pool) if default_pool else None,
            )
        )
    return tuple(markets)


def _build_notifications(raw: dict[str, Any]) -> NotificationsConfig:
    tg = raw.get("telegram", {})
    return NotificationsConfig(
        telegram=TelegramConfig(
            enabled=_to_bool(tg.get("enabled", False)),
            alert_bot_token=tg.get("alert_bot_token", ""),
            log_bot_token=tg.get("log_bot_token", ""),
            chat_id=str(tg.get("chat_id", "")),
        ),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    config_path: str | Path | None = None, simulate: bool = False
) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from the package).
        simulate: Force simulation mode regardless of the signer section.
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        runner=_build_runner(raw.get("runner", {})),
        gas=_build_gas(raw.get("gas", {})),
        chain=_build_chain(raw.get("chain", {})),
        signer=_build_signer(raw.get("signer", {}), simulate),
        indexes=_build_indexes(raw.get("indexes", {})),
        price_feeds={
            symbol.upper(): feed for symbol, feed in raw.get("price_feeds", {}).items()
        },
        markets=_build_markets(raw.get("markets", [])),
        notifications=_build_notifications(raw.get("notifications", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.markets:
        raise ValueError("At least one market must be configured")

    if not cfg.chain.rpc_endpoints:
        raise ValueError("At least one RPC endpoint must be configured")

    if cfg.runner.address_chunk_size < 1:
        raise ValueError("address_chunk_size must be at least 1")

    if not cfg.signer.simulate and not cfg.signer.private_key:
        raise ValueError("A signer private key is required unless simulating")

    for name, index in cfg.indexes.items():
        if index.kind not in INDEX_KINDS:
            raise ValueError(f"Index '{name}' has unknown kind '{index.kind}'")

    for market in cfg.markets:
        if not market.address:
            raise ValueError(f"Market '{market.name}' has no address")
        if market.protocol not in PROTOCOLS:
            raise ValueError(
                f"Market '{market.name}' references unknown protocol '{market.protocol}'"
            )
        if market.index not in cfg.indexes:
            raise ValueError(
                f"Market '{market.name}' references unknown index '{market.index}'"
            )
        if market.liquidation_bonus <= 1:
            raise ValueError(
                f"Market '{market.name}' liquidation_bonus must be greater than 1"
            )
