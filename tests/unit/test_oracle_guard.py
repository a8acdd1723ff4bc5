"""Unit tests for the price oracle guard: staleness, superseded rounds, bad prices."""
from __future__ import annotations

import pytest

from cdp_engine.errors import StalePriceError
from cdp_engine.oracles.guard import OracleGuard
from tests.conftest import NOW, FakePriceFeed, usd_price

HEARTBEAT = 3 * 60 * 60


@pytest.fixture()
def feed() -> FakePriceFeed:
    return FakePriceFeed(usd_price(2000), updated_at=NOW - 60)


@pytest.fixture()
def guard(feed: FakePriceFeed) -> OracleGuard:
    return OracleGuard(feed, HEARTBEAT, clock=lambda: NOW)


class TestLatestValidPrice:
    @pytest.mark.asyncio
    async def test_fresh_reading_passes(self, guard: OracleGuard) -> None:
        price, updated_at = await guard.latest_valid_price()
        assert price == usd_price(2000)
        assert updated_at == NOW - 60

    @pytest.mark.asyncio
    async def test_reading_exactly_at_heartbeat_passes(
        self, guard: OracleGuard, feed: FakePriceFeed
    ) -> None:
        feed.updated_at = NOW - HEARTBEAT
        price, _ = await guard.latest_valid_price()
        assert price == usd_price(2000)

    @pytest.mark.asyncio
    async def test_reading_past_heartbeat_is_stale(
        self, guard: OracleGuard, feed: FakePriceFeed
    ) -> None:
        feed.updated_at = NOW - HEARTBEAT - 1
        with pytest.raises(StalePriceError, match="old"):
            await guard.latest_valid_price()

    @pytest.mark.asyncio
    async def test_superseded_round_is_stale(
        self, guard: OracleGuard, feed: FakePriceFeed
    ) -> None:
        feed.round_id = 5
        feed.answered_in_round = 4
        with pytest.raises(StalePriceError, match="superseded"):
            await guard.latest_valid_price()

    @pytest.mark.asyncio
    async def test_never_updated_round_is_stale(
        self, guard: OracleGuard, feed: FakePriceFeed
    ) -> None:
        feed.updated_at = 0
        with pytest.raises(StalePriceError):
            await guard.latest_valid_price()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("answer", [0, -1])
    async def test_non_positive_price_rejected(
        self, guard: OracleGuard, feed: FakePriceFeed, answer: int
    ) -> None:
        feed.answer = answer
        with pytest.raises(StalePriceError, match="non-positive"):
            await guard.latest_valid_price()

    @pytest.mark.asyncio
    async def test_reads_feed_every_call(
        self, guard: OracleGuard, feed: FakePriceFeed
    ) -> None:
        await guard.latest_valid_price()
        feed.set_price(usd_price(1500), updated_at=NOW)
        price, _ = await guard.latest_valid_price()
        assert price == usd_price(1500)
        assert feed.calls == 2


class TestTimeout:
    def test_timeout_is_heartbeat(self, guard: OracleGuard) -> None:
        assert guard.timeout == HEARTBEAT

    def test_non_positive_heartbeat_rejected(self, feed: FakePriceFeed) -> None:
        with pytest.raises(ValueError):
            OracleGuard(feed, 0)
