"""Protocol interfaces for the engine's external collaborators."""
from .collateral_token import CollateralToken
from .price_feed import PriceFeed
from .synthetic_token import SyntheticToken

__all__ = ["CollateralToken", "PriceFeed", "SyntheticToken"]
