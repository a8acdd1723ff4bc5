"""Price feed protocol: single external price source."""
from typing import Protocol

from ..models import RoundData


class PriceFeed(Protocol):
    """Abstract interface for the raw collateral/USD price source."""

    async def latest_round_data(self) -> RoundData: ...
