"""Shared test fixtures and in-memory collaborators."""
from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Any, Awaitable, Callable

import pytest

from cdp_engine.config import (
    AppConfig,
    MonitorConfig,
    PriceOracleConfig,
    PythConfig,
    SystemParameters,
)
from cdp_engine.engine import CollateralEngine
from cdp_engine.models import RoundData

ENGINE = "engine"
NOW = 1_700_000_000

ETHER = 10**18
FEED_DECIMALS = 8


def usd_price(dollars: int) -> int:
    """Feed answer for a whole-dollar price."""
    return dollars * 10**FEED_DECIMALS


# ---------------------------------------------------------------------------
# Fake collaborators
# ---------------------------------------------------------------------------


class FakeToken:
    """ERC20-like token client acting as ``account``."""

    def __init__(self, account: str = ENGINE) -> None:
        self.account = account
        self.balances: dict[str, int] = {}
        self.fail_transfers = False
        self.on_transfer: Callable[[], Awaitable[Any]] | None = None

    def balance_of(self, holder: str) -> int:
        return self.balances.get(holder, 0)

    def credit(self, holder: str, amount: int) -> None:
        self.balances[holder] = self.balance_of(holder) + amount

    def _move(self, sender: str, recipient: str, amount: int) -> bool:
        if self.fail_transfers or self.balance_of(sender) < amount:
            return False
        self.balances[sender] -= amount
        self.credit(recipient, amount)
        return True

    async def transfer_from(self, sender: str, recipient: str, amount: int) -> bool:
        if self.on_transfer is not None:
            await self.on_transfer()
        return self._move(sender, recipient, amount)

    async def transfer(self, recipient: str, amount: int) -> bool:
        if self.on_transfer is not None:
            await self.on_transfer()
        return self._move(self.account, recipient, amount)


class FakeSyntheticToken(FakeToken):
    """Pegged token whose mint rights belong to ``account``."""

    def __init__(self, account: str = ENGINE) -> None:
        super().__init__(account)
        self.fail_mints = False
        self.total_supply = 0

    async def mint(self, to: str, amount: int) -> bool:
        if self.fail_mints:
            return False
        self.credit(to, amount)
        self.total_supply += amount
        return True

    async def burn(self, amount: int) -> None:
        if self.balance_of(self.account) < amount:
            raise RuntimeError("burn amount exceeds balance")
        self.balances[self.account] -= amount
        self.total_supply -= amount


class FakePriceFeed:
    def __init__(self, answer: int, updated_at: int = NOW) -> None:
        self.answer = answer
        self.updated_at = updated_at
        self.round_id = 1
        self.answered_in_round = 1
        self.calls = 0

    def set_price(self, answer: int, updated_at: int = NOW) -> None:
        self.answer = answer
        self.updated_at = updated_at
        self.round_id += 1
        self.answered_in_round = self.round_id

    async def latest_round_data(self) -> RoundData:
        self.calls += 1
        return RoundData(
            round_id=self.round_id,
            answer=self.answer,
            started_at=self.updated_at,
            updated_at=self.updated_at,
            answered_in_round=self.answered_in_round,
        )


# ---------------------------------------------------------------------------
# Engine fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def params() -> SystemParameters:
    return SystemParameters(
        engine_address=ENGINE,
        liquidation_threshold=50,
        liquidation_bonus=10,
        min_health_factor=ETHER,
        feed_heartbeat=3 * 60 * 60,
        feed_decimals=FEED_DECIMALS,
    )


@pytest.fixture()
def collateral_token() -> FakeToken:
    return FakeToken()


@pytest.fixture()
def synthetic_token() -> FakeSyntheticToken:
    return FakeSyntheticToken()


@pytest.fixture()
def price_feed() -> FakePriceFeed:
    return FakePriceFeed(usd_price(2000))


@pytest.fixture()
def engine(
    params: SystemParameters,
    collateral_token: FakeToken,
    synthetic_token: FakeSyntheticToken,
    price_feed: FakePriceFeed,
) -> CollateralEngine:
    return CollateralEngine(
        params, collateral_token, synthetic_token, price_feed, clock=lambda: NOW
    )


@pytest.fixture()
def app_config(params: SystemParameters) -> AppConfig:
    return AppConfig(
        engine=params,
        monitor=MonitorConfig(health_factor_warning=1.5),
        price_oracle=PriceOracleConfig(
            provider="pyth",
            pyth=PythConfig(
                hermes_url="https://hermes.example.com/v2/updates/price/latest",
                feed_id="aaa111",
            ),
        ),
    )


async def open_position(
    engine: CollateralEngine,
    collateral_token: FakeToken,
    user: str,
    collateral: int,
    debt: int = 0,
) -> None:
    """Fund ``user`` with collateral tokens, deposit them and optionally mint."""
    collateral_token.credit(user, collateral)
    if debt:
        await engine.deposit_and_mint(user, collateral, debt)
    else:
        await engine.deposit_collateral(user, collateral)


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    engine:
      address: cdp-engine
      liquidation_threshold: 50
      liquidation_bonus: 10
      min_health_factor: 1e18
      feed_heartbeat_seconds: 3600
      feed_decimals: 8
    monitor:
      health_factor_warning: 2.0
    price_oracle:
      provider: pyth
      pyth:
        hermes_url: "https://hermes.example.com"
        feed_id: "aaa"
        request_timeout: 5
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
