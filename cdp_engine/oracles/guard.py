"""Price Oracle Guard: the one place staleness policy is enforced."""
from __future__ import annotations

import logging
import time
from typing import Callable

from ..errors import StalePriceError
from ..interfaces.price_feed import PriceFeed

logger = logging.getLogger(__name__)


class OracleGuard:
    """Wrap a single price feed and reject unusable readings.

    A reading is rejected when it was never updated, is older than the
    heartbeat, was answered in an earlier round than the one reported,
    or carries a non-positive price.
    """

    def __init__(
        self,
        feed: PriceFeed,
        heartbeat: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if heartbeat <= 0:
            raise ValueError("heartbeat must be positive")
        self._feed = feed
        self._heartbeat = heartbeat
        self._clock = clock

    @property
    def timeout(self) -> int:
        """Maximum accepted age of a reading, in seconds."""
        return self._heartbeat

    async def latest_valid_price(self) -> tuple[int, int]:
        """Return ``(price, updated_at)`` of a fresh reading."""
        data = await self._feed.latest_round_data()

        if data.updated_at == 0:
            self._reject("round %s has no update time", data.round_id)
        if data.answered_in_round < data.round_id:
            self._reject(
                "round %s superseded (answered in %s)",
                data.round_id,
                data.answered_in_round,
            )

        age = int(self._clock()) - data.updated_at
        if age > self._heartbeat:
            self._reject("reading is %ds old (heartbeat %ds)", age, self._heartbeat)
        if data.answer <= 0:
            self._reject("non-positive price %s", data.answer)

        return data.answer, data.updated_at

    @staticmethod
    def _reject(reason: str, *args: object) -> None:
        message = reason % args
        logger.warning("Rejecting price: %s", message)
        raise StalePriceError(message)
