"""Pyth Network price feed: Hermes REST API."""
from __future__ import annotations

import logging
import ssl

import aiohttp
import certifi

from ..config import PythConfig
from ..constants import DEFAULT_FEED_DECIMALS
from ..errors import PriceFeedError
from ..models import RoundData

logger = logging.getLogger(__name__)


def rescale_price(price_raw: int, expo: int, decimals: int) -> int:
    """Convert ``price_raw * 10**expo`` to an integer with ``decimals`` places."""
    shift = decimals + expo
    if shift >= 0:
        return price_raw * 10**shift
    return price_raw // 10**-shift


class PythPriceFeed:
    """Fetch the collateral/USD price from Pyth Network.

    Pyth has no rounds: the publish time stands in for the round id, so a
    reading is never reported as superseded and staleness is decided by
    age alone.
    """

    def __init__(self, config: PythConfig, decimals: int = DEFAULT_FEED_DECIMALS) -> None:
        self.hermes_url = config.hermes_url
        self.feed_id = config.feed_id
        self.request_timeout = config.request_timeout
        self.decimals = decimals

    async def latest_round_data(self) -> RoundData:
        """Fetch the latest price update for the configured feed."""
        if not self.feed_id:
            raise PriceFeedError("No Pyth feed id configured")

        url = f"{self.hermes_url}?ids[]={self.feed_id}"

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.get(
                    url, timeout=aiohttp.ClientTimeout(total=self.request_timeout)
                ) as response:
                    if response.status != 200:
                        logger.error(
                            "Error fetching price from Pyth: HTTP %s", response.status
                        )
                        raise PriceFeedError(f"Pyth returned HTTP {response.status}")

                    data = await response.json()
        except PriceFeedError:
            raise
        except Exception as e:
            logger.error("Error fetching price from Pyth: %s", e)
            raise PriceFeedError(f"Pyth request failed: {e}") from e

        return self._parse(data)

    def _parse(self, data: dict) -> RoundData:
        for item in data.get("parsed", []):
            if item.get("id", "").removeprefix("0x") != self.feed_id.removeprefix("0x"):
                continue

            price_data = item.get("price", {})
            price_raw = int(price_data.get("price", 0))
            expo = int(price_data.get("expo", 0))
            publish_time = int(price_data.get("publish_time", 0))

            answer = rescale_price(price_raw, expo, self.decimals)
            logger.debug(
                "Pyth price %s (expo %s) published at %s", price_raw, expo, publish_time
            )
            return RoundData(
                round_id=publish_time,
                answer=answer,
                started_at=publish_time,
                updated_at=publish_time,
                answered_in_round=publish_time,
            )

        logger.error("Feed %s missing from Pyth response", self.feed_id)
        raise PriceFeedError(f"Feed {self.feed_id} missing from Pyth response")
