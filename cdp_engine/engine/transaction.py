"""Unit of work: staged ledger writes, deferred collaborator calls, events."""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from ..models import Position

logger = logging.getLogger(__name__)

Call = Callable[[], Awaitable[None]]


class Phase(enum.IntEnum):
    """Execution order of interactions at commit."""

    PULL = 0  # tokens moving into custody
    SETTLE = 1  # burns of custodied tokens
    PAYOUT = 2  # tokens leaving custody, mints


@dataclass(frozen=True)
class Interaction:
    phase: Phase
    description: str
    call: Call
    undo: Call | None = None


class UnitOfWork:
    """Collect the effects of one engine operation.

    Ledger writes are staged here and only reach the ledger when the
    operation commits, so readers outside the operation never see them.
    Token calls and events wait until every check has passed. If a token
    call fails, the calls that already ran are undone in reverse order.
    """

    def __init__(self, operation: str) -> None:
        self.operation = operation
        self._staged: dict[str, Position] = {}
        self._interactions: list[Interaction] = []
        self._events: list[Any] = []

    def stage(self, position: Position) -> None:
        self._staged[position.user] = position

    def staged(self, user: str) -> Position | None:
        return self._staged.get(user)

    @property
    def staged_positions(self) -> tuple[Position, ...]:
        return tuple(self._staged.values())

    def enqueue(
        self,
        phase: Phase,
        description: str,
        call: Call,
        undo: Call | None = None,
    ) -> None:
        self._interactions.append(Interaction(phase, description, call, undo))

    def emit(self, event: Any) -> None:
        self._events.append(event)

    @property
    def events(self) -> tuple[Any, ...]:
        return tuple(self._events)

    async def flush(self) -> None:
        """Run interactions in phase order, enqueue order within a phase.

        On failure every interaction that already completed is undone,
        latest first, and the original error is re-raised.
        """
        done: list[Interaction] = []
        try:
            for interaction in sorted(self._interactions, key=lambda i: i.phase):
                logger.debug("%s: %s", self.operation, interaction.description)
                await interaction.call()
                done.append(interaction)
        except BaseException:
            await self._compensate(done)
            raise
        finally:
            self._interactions.clear()

    async def _compensate(self, done: list[Interaction]) -> None:
        for interaction in reversed(done):
            if interaction.undo is None:
                continue
            logger.info("%s: undoing %s", self.operation, interaction.description)
            try:
                await interaction.undo()
            except Exception:
                logger.exception(
                    "%s: could not undo %s", self.operation, interaction.description
                )
