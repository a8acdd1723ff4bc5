"""Collateral engine: public operations over ledger, oracle and tokens."""
from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable

from ..config import AppConfig, SystemParameters, validate_parameters
from ..errors import ReentrancyError
from ..interfaces.collateral_token import CollateralToken
from ..interfaces.price_feed import PriceFeed
from ..interfaces.synthetic_token import SyntheticToken
from ..models import AccountInfo
from ..oracles.guard import OracleGuard
from ..oracles.pyth import PythPriceFeed
from .coordinator import MintBurnCoordinator
from .health import HealthFactorEngine
from .ledger import PositionLedger
from .liquidation import LiquidationEngine
from .transaction import UnitOfWork

logger = logging.getLogger(__name__)

EventListener = Callable[[Any], None]

# Registry of price feed factories keyed by provider name.
_FEED_FACTORIES: dict[str, Any] = {
    "pyth": lambda cfg: PythPriceFeed(
        cfg.price_oracle.pyth, decimals=cfg.engine.feed_decimals
    ),
}


class CollateralEngine:
    """Single-collateral debt engine.

    Every state-mutating operation runs as one unit of work. Ledger writes
    are staged until commit and token calls are deferred until all checks
    pass. A failed token call undoes the ones before it, and a failed
    operation leaves the ledger untouched and drops its events. Views read
    committed state only. A lock flag rejects re-entry from collaborator
    callbacks or concurrent tasks.
    """

    def __init__(
        self,
        params: SystemParameters,
        collateral_token: CollateralToken,
        synthetic_token: SyntheticToken,
        price_feed: PriceFeed,
        clock: Callable[[], float] = time.time,
    ) -> None:
        validate_parameters(params)
        self._params = params
        self._guard = OracleGuard(price_feed, params.feed_heartbeat, clock=clock)

        self._ledger = PositionLedger(collateral_token, params.engine_address)
        self._health = HealthFactorEngine(self._ledger, self._guard, params)
        self._coordinator = MintBurnCoordinator(
            self._ledger, self._health, synthetic_token, params.engine_address
        )
        self._liquidation = LiquidationEngine(
            self._ledger, self._health, self._coordinator, params
        )

        self._entered = False
        self._events: list[Any] = []
        self._listeners: list[EventListener] = []

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        collateral_token: CollateralToken,
        synthetic_token: SyntheticToken,
        price_feed: PriceFeed | None = None,
    ) -> "CollateralEngine":
        """Build an engine, creating the configured feed when none is given."""
        if price_feed is None:
            factory = _FEED_FACTORIES.get(config.price_oracle.provider)
            if factory is None:
                raise ValueError(
                    f"No price feed factory for provider '{config.price_oracle.provider}'"
                )
            price_feed = factory(config)
        return cls(config.engine, collateral_token, synthetic_token, price_feed)

    # ------------------------------------------------------------------
    # Operation boundary
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _operation(self, name: str) -> AsyncIterator[UnitOfWork]:
        if self._entered:
            raise ReentrancyError(f"'{name}' called while another operation is running")
        self._entered = True
        uow = UnitOfWork(name)
        try:
            yield uow
            await uow.flush()
        except BaseException as e:
            logger.warning("%s rejected: %s", name, e)
            raise
        else:
            self._ledger.apply(uow)
            self._publish(uow.events)
        finally:
            self._entered = False

    def _publish(self, events: tuple[Any, ...]) -> None:
        for event in events:
            logger.info("Event: %s", event)
            self._events.append(event)
            for listener in self._listeners:
                try:
                    listener(event)
                except Exception as e:
                    logger.error("Event listener failed: %s", e)

    def subscribe(self, listener: EventListener) -> None:
        """Register a callback for committed events."""
        self._listeners.append(listener)

    # ------------------------------------------------------------------
    # State-mutating operations
    # ------------------------------------------------------------------

    async def deposit_collateral(self, caller: str, amount: int) -> None:
        async with self._operation("deposit_collateral") as uow:
            await self._ledger.deposit(uow, caller, amount)

    async def mint_debt(self, caller: str, amount: int) -> None:
        async with self._operation("mint_debt") as uow:
            await self._coordinator.mint_debt(uow, caller, amount)

    async def deposit_and_mint(self, caller: str, amount: int, debt_amount: int) -> None:
        async with self._operation("deposit_and_mint") as uow:
            await self._ledger.deposit(uow, caller, amount)
            await self._coordinator.mint_debt(uow, caller, debt_amount)

    async def burn_debt(self, caller: str, amount: int) -> None:
        async with self._operation("burn_debt") as uow:
            await self._coordinator.burn_debt(uow, amount, caller, caller)

    async def redeem_collateral(self, caller: str, amount: int) -> None:
        async with self._operation("redeem_collateral") as uow:
            await self._ledger.redeem(uow, caller, caller, amount)
            await self._health.assert_solvent(caller, uow)

    async def redeem_for_burn(
        self, caller: str, collateral_amount: int, debt_amount: int
    ) -> None:
        """Burn debt then redeem collateral, checking solvency once."""
        async with self._operation("redeem_for_burn") as uow:
            await self._coordinator.burn_debt(uow, debt_amount, caller, caller)
            await self._ledger.redeem(uow, caller, caller, collateral_amount)
            await self._health.assert_solvent(caller, uow)

    async def liquidate(self, liquidator: str, user: str, debt_to_cover: int) -> int:
        """Cover ``debt_to_cover`` of an insolvent ``user``; return collateral seized."""
        async with self._operation("liquidate") as uow:
            return await self._liquidation.liquidate(uow, liquidator, user, debt_to_cover)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    async def health_factor(self, user: str) -> int:
        return await self._health.health_factor(user)

    async def account_info(self, user: str) -> AccountInfo:
        return await self._health.account_info(user)

    async def collateral_value_usd(self, user: str) -> int:
        return await self._health.collateral_value_usd(user)

    async def usd_value(self, amount: int) -> int:
        return await self._health.usd_value(amount)

    async def token_amount_from_usd(self, usd_amount: int) -> int:
        return await self._health.token_amount_from_usd(usd_amount)

    def collateral_balance_of(self, user: str) -> int:
        return self._ledger.collateral_of(user)

    def debt_of(self, user: str) -> int:
        return self._ledger.debt_of(user)

    def users(self) -> list[str]:
        return self._ledger.users()

    def total_collateral(self) -> int:
        return self._ledger.total_collateral()

    @property
    def parameters(self) -> SystemParameters:
        return self._params

    @property
    def address(self) -> str:
        return self._params.engine_address

    @property
    def timeout(self) -> int:
        return self._guard.timeout

    @property
    def events(self) -> tuple[Any, ...]:
        return tuple(self._events)
