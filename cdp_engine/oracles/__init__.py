"""Price oracle access: staleness guard and feed implementations."""
from .guard import OracleGuard
from .pyth import PythPriceFeed

__all__ = ["OracleGuard", "PythPriceFeed"]
