"""Configuration loader: reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .constants import (
    DEFAULT_FEED_DECIMALS,
    DEFAULT_FEED_HEARTBEAT,
    DEFAULT_LIQUIDATION_BONUS,
    DEFAULT_LIQUIDATION_THRESHOLD,
    DEFAULT_MIN_HEALTH_FACTOR,
    LIQUIDATION_PRECISION,
    MAX_FEED_DECIMALS,
)

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ("pyth",)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SystemParameters:
    """Engine constants fixed at construction; there is no setter surface."""

    engine_address: str = "cdp-engine"
    liquidation_threshold: int = DEFAULT_LIQUIDATION_THRESHOLD
    liquidation_bonus: int = DEFAULT_LIQUIDATION_BONUS
    min_health_factor: int = DEFAULT_MIN_HEALTH_FACTOR
    feed_heartbeat: int = DEFAULT_FEED_HEARTBEAT
    feed_decimals: int = DEFAULT_FEED_DECIMALS


@dataclass(frozen=True)
class MonitorConfig:
    # Multiple of min_health_factor below which a position is flagged.
    health_factor_warning: float = 1.5


@dataclass(frozen=True)
class PythConfig:
    hermes_url: str = "https://hermes.pyth.network/v2/updates/price/latest"
    feed_id: str = ""
    request_timeout: int = 10


@dataclass(frozen=True)
class PriceOracleConfig:
    provider: str = "pyth"
    pyth: PythConfig = field(default_factory=PythConfig)


@dataclass(frozen=True)
class AppConfig:
    engine: SystemParameters = field(default_factory=SystemParameters)
    monitor: MonitorConfig = field(default_factory=MonitorConfig)
    price_oracle: PriceOracleConfig = field(default_factory=PriceOracleConfig)


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


def _as_int(value: Any) -> int:
    """Exact integer from YAML scalars; ``1e18`` arrives as a str or float."""
    return int(Decimal(str(value)))


def _build_engine(raw: dict[str, Any]) -> SystemParameters:
    return SystemParameters(
        engine_address=str(raw.get("address", SystemParameters.engine_address)),
        liquidation_threshold=int(
            raw.get("liquidation_threshold", DEFAULT_LIQUIDATION_THRESHOLD)
        ),
        liquidation_bonus=int(raw.get("liquidation_bonus", DEFAULT_LIQUIDATION_BONUS)),
        min_health_factor=_as_int(
            raw.get("min_health_factor", DEFAULT_MIN_HEALTH_FACTOR)
        ),
        feed_heartbeat=int(raw.get("feed_heartbeat_seconds", DEFAULT_FEED_HEARTBEAT)),
        feed_decimals=int(raw.get("feed_decimals", DEFAULT_FEED_DECIMALS)),
    )


def _build_monitor(raw: dict[str, Any]) -> MonitorConfig:
    return MonitorConfig(
        health_factor_warning=float(raw.get("health_factor_warning", 1.5)),
    )


def _build_price_oracle(raw: dict[str, Any]) -> PriceOracleConfig:
    pyth_raw = raw.get("pyth", {})
    return PriceOracleConfig(
        provider=raw.get("provider", "pyth"),
        pyth=PythConfig(
            hermes_url=pyth_raw.get("hermes_url", PythConfig.hermes_url),
            feed_id=pyth_raw.get("feed_id", ""),
            request_timeout=int(pyth_raw.get("request_timeout", 10)),
        ),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (two levels up from this file).
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
        monitor=_build_monitor(raw.get("monitor", {})),
        price_oracle=_build_price_oracle(raw.get("price_oracle", {})),
    )

    validate_parameters(cfg.engine)
    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def validate_parameters(params: SystemParameters) -> None:
    """Raise on engine parameters the health-factor math cannot work with."""
    if not params.engine_address:
        raise ValueError("Engine address must not be empty")
    if not 0 < params.liquidation_threshold <= LIQUIDATION_PRECISION:
        raise ValueError(
            f"liquidation_threshold must be in (0, 100], got {params.liquidation_threshold}"
        )
    if not 0 <= params.liquidation_bonus < LIQUIDATION_PRECISION:
        raise ValueError(
            f"liquidation_bonus must be in [0, 100), got {params.liquidation_bonus}"
        )
    if params.min_health_factor <= 0:
        raise ValueError("min_health_factor must be positive")
    if params.feed_heartbeat <= 0:
        raise ValueError("feed_heartbeat_seconds must be positive")
    if not 0 <= params.feed_decimals <= MAX_FEED_DECIMALS:
        raise ValueError(
            f"feed_decimals must be in [0, {MAX_FEED_DECIMALS}], got {params.feed_decimals}"
        )


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if cfg.price_oracle.provider not in SUPPORTED_PROVIDERS:
        raise ValueError(f"Unknown price oracle provider '{cfg.price_oracle.provider}'")
    if cfg.monitor.health_factor_warning < 1.0:
        raise ValueError("health_factor_warning must be at least 1.0")
