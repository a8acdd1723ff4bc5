"""Read-only risk monitor: values every position and flags liquidatable ones."""
from __future__ import annotations

import logging
from typing import Iterable

from ..config import MonitorConfig
from ..constants import MAX_UINT256, PRECISION
from ..engine.core import CollateralEngine
from ..engine.health import calculate_health_factor
from ..models import PositionSnapshot

logger = logging.getLogger(__name__)

STATUS_HEALTHY = "HEALTHY"
STATUS_WARNING = "WARNING"
STATUS_LIQUIDATABLE = "LIQUIDATABLE"


class RiskMonitor:
    """Scans engine positions without mutating them."""

    def __init__(self, engine: CollateralEngine, config: MonitorConfig) -> None:
        self._engine = engine
        params = engine.parameters
        self._min_health_factor = params.min_health_factor
        self._warning_health_factor = int(
            params.min_health_factor * config.health_factor_warning
        )

    def _get_status(self, health_factor: int) -> str:
        if health_factor < self._min_health_factor:
            return STATUS_LIQUIDATABLE
        if health_factor < self._warning_health_factor:
            return STATUS_WARNING
        return STATUS_HEALTHY

    @staticmethod
    def _format_health_factor(health_factor: int) -> str:
        if health_factor == MAX_UINT256:
            return "inf"
        return f"{health_factor / PRECISION:.4f}"

    async def snapshot(self, user: str) -> PositionSnapshot:
        """Value one position at the current oracle price."""
        info = await self._engine.account_info(user)
        health_factor = calculate_health_factor(
            info.total_debt_minted,
            info.collateral_value_usd,
            self._engine.parameters.liquidation_threshold,
        )
        return PositionSnapshot(
            user=user,
            collateral_deposited=self._engine.collateral_balance_of(user),
            debt_minted=info.total_debt_minted,
            collateral_value_usd=info.collateral_value_usd,
            health_factor=health_factor,
            status=self._get_status(health_factor),
        )

    async def scan(self, users: Iterable[str] | None = None) -> list[PositionSnapshot]:
        """Snapshot ``users`` (default: every known position), worst first."""
        if users is None:
            users = self._engine.users()

        snapshots: list[PositionSnapshot] = []
        for user in users:
            snap = await self.snapshot(user)
            logger.info(
                "Position %s · Collateral: %d ($%.2f)  Debt: %d  HF: %s  %s",
                user,
                snap.collateral_deposited,
                snap.collateral_value_usd / PRECISION,
                snap.debt_minted,
                self._format_health_factor(snap.health_factor),
                snap.status,
            )
            snapshots.append(snap)

        snapshots.sort(key=lambda s: s.health_factor)
        return snapshots

    async def liquidatable(
        self, users: Iterable[str] | None = None
    ) -> list[PositionSnapshot]:
        """Positions a liquidator may act on right now."""
        found = [s for s in await self.scan(users) if s.status == STATUS_LIQUIDATABLE]
        if found:
            logger.warning("%d liquidatable position(s)", len(found))
        return found
