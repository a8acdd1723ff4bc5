"""Fixed-point scales and engine defaults."""

# Fixed point scale factors
PRECISION = 10**18  # 18 decimals for amounts, USD values and health factors
LIQUIDATION_PRECISION = 100  # threshold and bonus are whole percentages
MAX_FEED_DECIMALS = 18

MAX_UINT256 = 2**256 - 1  # health factor of a debt-free position

# Engine defaults
DEFAULT_LIQUIDATION_THRESHOLD = 50  # 200% over-collateralization
DEFAULT_LIQUIDATION_BONUS = 10  # 10% of seized collateral
DEFAULT_MIN_HEALTH_FACTOR = PRECISION
DEFAULT_FEED_HEARTBEAT = 3 * 60 * 60  # 3 hours in seconds
DEFAULT_FEED_DECIMALS = 8


def additional_feed_precision(feed_decimals: int) -> int:
    """Factor lifting a feed answer with ``feed_decimals`` to PRECISION."""
    if not 0 <= feed_decimals <= MAX_FEED_DECIMALS:
        raise ValueError(f"Unsupported feed decimals: {feed_decimals}")
    return 10 ** (MAX_FEED_DECIMALS - feed_decimals)
