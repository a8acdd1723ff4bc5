"""Mint/Burn Coordinator: debt-side changes and the synthetic token."""
from __future__ import annotations

import logging

from ..errors import MintFailedError, TransferFailedError
from ..interfaces.synthetic_token import SyntheticToken
from .health import HealthFactorEngine
from .ledger import PositionLedger, require_positive
from .transaction import Phase, UnitOfWork

logger = logging.getLogger(__name__)


class MintBurnCoordinator:
    """Record debt in the ledger and drive the synthetic token."""

    def __init__(
        self,
        ledger: PositionLedger,
        health: HealthFactorEngine,
        token: SyntheticToken,
        custodian: str,
    ) -> None:
        self._ledger = ledger
        self._health = health
        self._token = token
        self._custodian = custodian

    async def mint_debt(self, uow: UnitOfWork, user: str, amount: int) -> None:
        """Record the debt, check solvency of the new state, then mint."""
        require_positive(amount)
        self._ledger.add_debt(uow, user, amount)
        await self._health.assert_solvent(user, uow)

        async def mint() -> None:
            if not await self._token.mint(user, amount):
                raise MintFailedError(f"Mint of {amount} to '{user}' failed")

        async def unmint() -> None:
            if not await self._token.transfer_from(user, self._custodian, amount):
                raise TransferFailedError(
                    f"Synthetic recovery of {amount} from '{user}' failed"
                )
            await self._token.burn(amount)

        uow.enqueue(Phase.PAYOUT, f"mint {amount} to {user}", mint, undo=unmint)

    async def burn_debt(
        self, uow: UnitOfWork, amount: int, on_behalf_of: str, payer: str
    ) -> None:
        """Retire ``amount`` of ``on_behalf_of``'s debt with ``payer``'s tokens."""
        require_positive(amount)
        self._ledger.remove_debt(uow, on_behalf_of, amount)

        async def pull() -> None:
            if not await self._token.transfer_from(payer, self._custodian, amount):
                raise TransferFailedError(
                    f"Synthetic transfer of {amount} from '{payer}' failed"
                )

        async def give_back() -> None:
            if not await self._token.transfer(payer, amount):
                raise TransferFailedError(
                    f"Synthetic refund of {amount} to '{payer}' failed"
                )

        async def burn() -> None:
            await self._token.burn(amount)

        async def reissue() -> None:
            if not await self._token.mint(self._custodian, amount):
                raise MintFailedError(f"Re-mint of {amount} burned tokens failed")

        uow.enqueue(
            Phase.PULL, f"pull {amount} synthetic from {payer}", pull, undo=give_back
        )
        uow.enqueue(
            Phase.SETTLE, f"burn {amount} for {on_behalf_of}", burn, undo=reissue
        )
