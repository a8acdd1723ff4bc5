"""Collateral token protocol: ERC20-style client acting as the engine."""
from typing import Protocol


class CollateralToken(Protocol):
    """Token client whose ``transfer`` spends the engine's own balance."""

    async def transfer_from(self, sender: str, recipient: str, amount: int) -> bool: ...

    async def transfer(self, recipient: str, amount: int) -> bool: ...
