"""Health Factor Engine: solvency ratio of a position.

    health_factor = collateral_usd * liquidation_threshold% / debt

scaled by PRECISION. Every USD valuation reads the price through the
oracle guard; the price is lifted to PRECISION before multiplying and
division always comes last.
"""
from __future__ import annotations

import logging

from ..config import SystemParameters
from ..constants import (
    LIQUIDATION_PRECISION,
    MAX_UINT256,
    PRECISION,
    additional_feed_precision,
)
from ..errors import HealthFactorBrokenError
from ..models import AccountInfo
from ..oracles.guard import OracleGuard
from .ledger import PositionLedger
from .transaction import UnitOfWork

logger = logging.getLogger(__name__)


def calculate_health_factor(
    total_debt: int,
    collateral_value_usd: int,
    liquidation_threshold: int,
) -> int:
    """Health factor from raw figures, without ledger or oracle access.

    A position without debt can never be liquidated and reports MAX_UINT256.
    """
    if total_debt == 0:
        return MAX_UINT256
    # One floor division instead of adjusting by the threshold first. The
    # result is never lower, and both agree on which side of 1.0 it lands.
    return (collateral_value_usd * liquidation_threshold * PRECISION) // (
        LIQUIDATION_PRECISION * total_debt
    )


class HealthFactorEngine:
    """Value positions and enforce the minimum health factor."""

    def __init__(
        self,
        ledger: PositionLedger,
        guard: OracleGuard,
        params: SystemParameters,
    ) -> None:
        self._ledger = ledger
        self._guard = guard
        self._params = params
        self._feed_precision = additional_feed_precision(params.feed_decimals)

    async def _price(self) -> int:
        price, _ = await self._guard.latest_valid_price()
        return price * self._feed_precision

    async def usd_value(self, amount: int) -> int:
        """USD value (PRECISION-scaled) of ``amount`` collateral base units."""
        price = await self._price()
        return (price * amount) // PRECISION

    async def token_amount_from_usd(self, usd_amount: int) -> int:
        """Collateral base units worth ``usd_amount`` (PRECISION-scaled) USD."""
        price = await self._price()
        return (usd_amount * PRECISION) // price

    async def collateral_value_usd(
        self, user: str, uow: UnitOfWork | None = None
    ) -> int:
        return await self.usd_value(self._ledger.collateral_of(user, uow))

    async def account_info(
        self, user: str, uow: UnitOfWork | None = None
    ) -> AccountInfo:
        return AccountInfo(
            total_debt_minted=self._ledger.debt_of(user, uow),
            collateral_value_usd=await self.collateral_value_usd(user, uow),
        )

    async def health_factor(self, user: str, uow: UnitOfWork | None = None) -> int:
        """Health factor of ``user``, including writes staged in ``uow``."""
        info = await self.account_info(user, uow)
        return calculate_health_factor(
            info.total_debt_minted,
            info.collateral_value_usd,
            self._params.liquidation_threshold,
        )

    async def assert_solvent(self, user: str, uow: UnitOfWork | None = None) -> int:
        """Raise HealthFactorBrokenError below the minimum; return the factor."""
        health_factor = await self.health_factor(user, uow)
        if health_factor < self._params.min_health_factor:
            logger.info("Health factor of %s broken: %d", user, health_factor)
            raise HealthFactorBrokenError(user, health_factor)
        return health_factor
