"""Load config.yaml, expand ${VAR} references from the environment and validate."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .constants import (
    LIQUIDATION_BONUS,
    LIQUIDATION_PRECISION,
    LIQUIDATION_THRESHOLD,
    MIN_HEALTH_FACTOR,
    STALENESS_WINDOW_SECONDS,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EngineSettings:
    liquidation_threshold: int = LIQUIDATION_THRESHOLD
    liquidation_precision: int = LIQUIDATION_PRECISION
    liquidation_bonus: int = LIQUIDATION_BONUS
    min_health_factor: int = MIN_HEALTH_FACTOR
    staleness_window_seconds: int = STALENESS_WINDOW_SECONDS


@dataclass(frozen=True)
class AssetConfig:
    symbol: str = ""
    decimals: int = 18
    feed_id: str = ""


@dataclass(frozen=True)
class PythConfig:
    hermes_url: str = "https://hermes.pyth.network/v2/updates/price/latest"
    timeout: int = 10


@dataclass(frozen=True)
class StaticFeedConfig:
    decimals: int = 8
    # symbol -> USD price as a decimal string, e.g. "2000.50"
    prices: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class PriceOracleConfig:
    provider: str = "static"
    pyth: PythConfig = field(default_factory=PythConfig)
    static: StaticFeedConfig = field(default_factory=StaticFeedConfig)


@dataclass(frozen=True)
class MonitorConfig:
    check_interval_minutes: int = 15
    warning_health_factor: str = "1.5"
    accounts: tuple[str, ...] = ()


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
    engine: EngineSettings = field(default_factory=EngineSettings)
    assets: tuple[AssetConfig, ...] = ()
    price_oracle: PriceOracleConfig = field(default_factory=PriceOracleConfig)
    monitor: MonitorConfig = field(default_factory=MonitorConfig)
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)


_PROVIDERS = ("pyth", "static")

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


def _build_engine(raw: dict[str, Any]) -> EngineSettings:
    defaults = EngineSettings()
    return EngineSettings(
        liquidation_threshold=int(
            raw.get("liquidation_threshold", defaults.liquidation_threshold)
        ),
        liquidation_precision=int(
            raw.get("liquidation_precision", defaults.liquidation_precision)
        ),
        liquidation_bonus=int(raw.get("liquidation_bonus", defaults.liquidation_bonus)),
        min_health_factor=int(raw.get("min_health_factor", defaults.min_health_factor)),
        staleness_window_seconds=int(
            raw.get("staleness_window_seconds", defaults.staleness_window_seconds)
        ),
    )


def _build_assets(raw: list[dict[str, Any]]) -> tuple[AssetConfig, ...]:
    assets: list[AssetConfig] = []
    for a in raw:
        assets.append(
            AssetConfig(
                symbol=str(a.get("symbol", "")),
                decimals=int(a.get("decimals", 18)),
                feed_id=str(a.get("feed_id", "")),
            )
        )
    return tuple(assets)


def _build_price_oracle(raw: dict[str, Any]) -> PriceOracleConfig:
    pyth_raw = raw.get("pyth", {})
    static_raw = raw.get("static", {})
    return PriceOracleConfig(
        provider=raw.get("provider", "static"),
        pyth=PythConfig(
            hermes_url=pyth_raw.get("hermes_url", PythConfig.hermes_url),
            timeout=int(pyth_raw.get("timeout", PythConfig.timeout)),
        ),
        static=StaticFeedConfig(
            decimals=int(static_raw.get("decimals", StaticFeedConfig.decimals)),
            prices={
                str(k): str(v) for k, v in static_raw.get("prices", {}).items()
            },
        ),
    )


def _build_monitor(raw: dict[str, Any]) -> MonitorConfig:
    return MonitorConfig(
        check_interval_minutes=int(raw.get("check_interval_minutes", 15)),
        warning_health_factor=str(raw.get("warning_health_factor", "1.5")),
        accounts=tuple(raw.get("accounts", [])),
    )


def _build_notifications(raw: dict[str, Any]) -> NotificationsConfig:
    tg = raw.get("telegram", {})
    return NotificationsConfig(
        telegram=TelegramConfig(
            enabled=bool(tg.get("enabled", False)),
            alert_bot_token=tg.get("alert_bot_token", ""),
            log_bot_token=tg.get("log_bot_token", ""),
            chat_id=str(tg.get("chat_id", "")),
        ),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from this package).
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
        engine=_build_engine(raw.get("engine", {})),
        assets=_build_assets(raw.get("assets", [])),
        price_oracle=_build_price_oracle(raw.get("price_oracle", {})),
        monitor=_build_monitor(raw.get("monitor", {})),
        notifications=_build_notifications(raw.get("notifications", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.assets:
        raise ValueError("At least one collateral asset must be configured")

    seen: set[str] = set()
    for asset in cfg.assets:
        if not asset.symbol:
            raise ValueError("Collateral asset has no symbol")
        if asset.symbol in seen:
            raise ValueError(f"Duplicate collateral asset '{asset.symbol}'")
        seen.add(asset.symbol)
        if asset.decimals <= 0:
            raise ValueError(f"Asset '{asset.symbol}' must have positive decimals")
        if not asset.feed_id:
            raise ValueError(f"Asset '{asset.symbol}' has no price feed")

    engine = cfg.engine
    if not 0 < engine.liquidation_threshold <= engine.liquidation_precision:
        raise ValueError("liquidation_threshold must be in (0, liquidation_precision]")
    if engine.staleness_window_seconds <= 0:
        raise ValueError("staleness_window_seconds must be positive")

    provider = cfg.price_oracle.provider
    if provider not in _PROVIDERS:
        raise ValueError(f"Unknown price oracle provider '{provider}'")
    if provider == "static":
        for asset in cfg.assets:
            if asset.symbol not in cfg.price_oracle.static.prices:
                raise ValueError(f"No static price configured for '{asset.symbol}'")
