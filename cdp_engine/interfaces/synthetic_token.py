"""Synthetic token protocol: mint authority is delegated to the engine."""
from typing import Protocol


class SyntheticToken(Protocol):
    """Pegged token client acting as the engine (owner of mint rights)."""

    async def mint(self, to: str, amount: int) -> bool: ...

    async def burn(self, amount: int) -> None: ...

    async def transfer_from(self, sender: str, recipient: str, amount: int) -> bool: ...

    async def transfer(self, recipient: str, amount: int) -> bool: ...
