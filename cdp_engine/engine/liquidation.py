"""Liquidation Engine: seize collateral from insolvent positions."""
from __future__ import annotations

import logging

from ..config import SystemParameters
from ..constants import LIQUIDATION_PRECISION
from ..errors import HealthFactorNotImprovedError, HealthFactorOkError
from .coordinator import MintBurnCoordinator
from .health import HealthFactorEngine
from .ledger import PositionLedger, require_positive
from .transaction import UnitOfWork

logger = logging.getLogger(__name__)


class LiquidationEngine:
    """Run one liquidation of ``user`` by ``liquidator``.

    The liquidator repays ``debt_to_cover`` from their own token balance
    and receives the equivalent collateral plus the liquidation bonus.
    Seizure is capped at what the position still holds while the repaid
    debt is charged in full, so a deeply insolvent position pays out less
    than the nominal bonus.
    """

    def __init__(
        self,
        ledger: PositionLedger,
        health: HealthFactorEngine,
        coordinator: MintBurnCoordinator,
        params: SystemParameters,
    ) -> None:
        self._ledger = ledger
        self._health = health
        self._coordinator = coordinator
        self._params = params

    async def liquidate(
        self, uow: UnitOfWork, liquidator: str, user: str, debt_to_cover: int
    ) -> int:
        """Liquidate and return the collateral amount seized."""
        require_positive(debt_to_cover)

        starting_health_factor = await self._health.health_factor(user, uow)
        if starting_health_factor >= self._params.min_health_factor:
            raise HealthFactorOkError(user, starting_health_factor)

        token_amount = await self._health.token_amount_from_usd(debt_to_cover)
        bonus = token_amount * self._params.liquidation_bonus // LIQUIDATION_PRECISION

        nominal = token_amount + bonus
        seized = 0
        if nominal > 0:
            seized = await self._ledger.redeem(
                uow, user, liquidator, nominal, clamp=True
            )
        await self._coordinator.burn_debt(uow, debt_to_cover, user, liquidator)

        ending_health_factor = await self._health.health_factor(user, uow)
        if ending_health_factor <= starting_health_factor:
            raise HealthFactorNotImprovedError(
                user, starting_health_factor, ending_health_factor
            )

        await self._health.assert_solvent(liquidator, uow)

        logger.info(
            "Liquidated %s by %s: covered %d debt, seized %d collateral "
            "(nominal %d), health factor %d -> %d",
            user,
            liquidator,
            debt_to_cover,
            seized,
            nominal,
            starting_health_factor,
            ending_health_factor,
        )
        return seized
