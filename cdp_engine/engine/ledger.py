"""Position Ledger: per-user collateral and debt accounting."""
from __future__ import annotations

import logging
from dataclasses import replace

from ..errors import (
    DebtUnderflowError,
    InsufficientCollateralError,
    InvalidAmountError,
    TransferFailedError,
)
from ..interfaces.collateral_token import CollateralToken
from ..models import CollateralDeposited, CollateralRedeemed, Position
from .transaction import Phase, UnitOfWork

logger = logging.getLogger(__name__)


def require_positive(amount: object) -> int:
    """Reject zero, negative and non-integer amounts."""
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidAmountError(amount)
    return amount


class PositionLedger:
    """Owned store of positions keyed by user.

    Only the four mutation primitives write to it: ``deposit``, ``redeem``,
    ``add_debt`` and ``remove_debt``. They stage their writes in the unit
    of work; ``apply`` makes them visible once the operation commits.
    Reads given a unit of work see its staged writes, other reads see
    committed state only.
    """

    def __init__(self, collateral_token: CollateralToken, custodian: str) -> None:
        self._token = collateral_token
        self._custodian = custodian
        self._positions: dict[str, Position] = {}

    def apply(self, uow: UnitOfWork) -> None:
        """Commit the positions staged by ``uow``."""
        for position in uow.staged_positions:
            self._positions[position.user] = position
        logger.debug(
            "%s: applied %d position(s)", uow.operation, len(uow.staged_positions)
        )

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def position(self, user: str, uow: UnitOfWork | None = None) -> Position:
        if uow is not None:
            staged = uow.staged(user)
            if staged is not None:
                return staged
        return self._positions.get(user) or Position(user=user)

    def collateral_of(self, user: str, uow: UnitOfWork | None = None) -> int:
        return self.position(user, uow).collateral_deposited

    def debt_of(self, user: str, uow: UnitOfWork | None = None) -> int:
        return self.position(user, uow).debt_minted

    def users(self) -> list[str]:
        return list(self._positions)

    def total_collateral(self) -> int:
        return sum(p.collateral_deposited for p in self._positions.values())

    def total_debt(self) -> int:
        return sum(p.debt_minted for p in self._positions.values())

    # ------------------------------------------------------------------
    # Mutation primitives
    # ------------------------------------------------------------------

    async def deposit(self, uow: UnitOfWork, user: str, amount: int) -> None:
        """Credit collateral and pull the tokens into custody."""
        require_positive(amount)
        current = self.position(user, uow)
        uow.stage(
            replace(current, collateral_deposited=current.collateral_deposited + amount)
        )

        async def pull() -> None:
            if not await self._token.transfer_from(user, self._custodian, amount):
                raise TransferFailedError(
                    f"Collateral transfer of {amount} from '{user}' failed"
                )

        async def give_back() -> None:
            if not await self._token.transfer(user, amount):
                raise TransferFailedError(
                    f"Collateral refund of {amount} to '{user}' failed"
                )

        uow.enqueue(
            Phase.PULL, f"pull {amount} collateral from {user}", pull, undo=give_back
        )
        uow.emit(CollateralDeposited(user=user, amount=amount))

    async def redeem(
        self,
        uow: UnitOfWork,
        redeemed_from: str,
        redeemed_to: str,
        amount: int,
        clamp: bool = False,
    ) -> int:
        """Debit collateral and pay it out to ``redeemed_to``.

        With ``clamp`` the amount is capped at the deposited balance
        (liquidation sweep); otherwise over-redemption is an error.
        Returns the amount actually redeemed.
        """
        require_positive(amount)
        current = self.position(redeemed_from, uow)
        available = current.collateral_deposited

        if amount > available:
            if not clamp:
                raise InsufficientCollateralError(redeemed_from, amount, available)
            logger.info(
                "Clamping redemption from %s: requested %d, available %d",
                redeemed_from,
                amount,
                available,
            )
            amount = available

        if amount == 0:
            return 0
        uow.stage(replace(current, collateral_deposited=available - amount))

        async def pay_out() -> None:
            if not await self._token.transfer(redeemed_to, amount):
                raise TransferFailedError(
                    f"Collateral transfer of {amount} to '{redeemed_to}' failed"
                )

        async def take_back() -> None:
            if not await self._token.transfer_from(
                redeemed_to, self._custodian, amount
            ):
                raise TransferFailedError(
                    f"Collateral recovery of {amount} from '{redeemed_to}' failed"
                )

        uow.enqueue(
            Phase.PAYOUT,
            f"pay {amount} collateral to {redeemed_to}",
            pay_out,
            undo=take_back,
        )
        uow.emit(
            CollateralRedeemed(
                redeemed_from=redeemed_from, redeemed_to=redeemed_to, amount=amount
            )
        )
        return amount

    def add_debt(self, uow: UnitOfWork, user: str, amount: int) -> None:
        require_positive(amount)
        current = self.position(user, uow)
        uow.stage(replace(current, debt_minted=current.debt_minted + amount))

    def remove_debt(self, uow: UnitOfWork, user: str, amount: int) -> None:
        require_positive(amount)
        current = self.position(user, uow)
        if amount > current.debt_minted:
            raise DebtUnderflowError(user, amount, current.debt_minted)
        uow.stage(replace(current, debt_minted=current.debt_minted - amount))
