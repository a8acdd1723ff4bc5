"""Engine components"""
from .core import CollateralEngine
from .health import HealthFactorEngine, calculate_health_factor
from .ledger import PositionLedger
from .liquidation import LiquidationEngine
from .coordinator import MintBurnCoordinator

__all__ = [
    "CollateralEngine",
    "HealthFactorEngine",
    "LiquidationEngine",
    "MintBurnCoordinator",
    "PositionLedger",
    "calculate_health_factor",
]
