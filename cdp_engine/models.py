"""Data models: all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Position:
    """Collateral and debt held by one user, in base units."""

    user: str
    collateral_deposited: int = 0
    debt_minted: int = 0

    @property
    def is_active(self) -> bool:
        return self.collateral_deposited > 0 or self.debt_minted > 0


@dataclass(frozen=True)
class RoundData:
    """Reply of a price feed's ``latest_round_data``."""

    round_id: int
    answer: int
    started_at: int
    updated_at: int
    answered_in_round: int


@dataclass(frozen=True)
class AccountInfo:
    total_debt_minted: int
    collateral_value_usd: int


@dataclass(frozen=True)
class CollateralDeposited:
    user: str
    amount: int


@dataclass(frozen=True)
class CollateralRedeemed:
    """Collateral leaving custody; ``redeemed_from != redeemed_to`` on liquidation."""

    redeemed_from: str
    redeemed_to: str
    amount: int

    @property
    def is_liquidation(self) -> bool:
        return self.redeemed_from != self.redeemed_to


@dataclass(frozen=True)
class PositionSnapshot:
    """Valued position as reported by the risk monitor."""

    user: str
    collateral_deposited: int
    debt_minted: int
    collateral_value_usd: int
    health_factor: int
    status: str
