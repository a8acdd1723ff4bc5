"""Single-collateral debt engine with a stale-price guard."""
from .config import AppConfig, SystemParameters, load_config
from .engine import CollateralEngine, calculate_health_factor
from .oracles import OracleGuard, PythPriceFeed
from .services import RiskMonitor

__all__ = [
    "AppConfig",
    "CollateralEngine",
    "OracleGuard",
    "PythPriceFeed",
    "RiskMonitor",
    "SystemParameters",
    "calculate_health_factor",
    "load_config",
]
