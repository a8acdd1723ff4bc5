"""Engine error taxonomy: every failure aborts the whole operation."""
from __future__ import annotations


class EngineError(Exception):
    """Base error class for engine errors"""


class InvalidAmountError(EngineError, ValueError):
    """Amount is zero, negative or not an integer"""

    def __init__(self, amount: object) -> None:
        super().__init__(f"Amount must be a positive integer, got {amount!r}")
        self.amount = amount


class InsufficientCollateralError(EngineError):
    """Redeeming more collateral than the position holds"""

    def __init__(self, user: str, requested: int, available: int) -> None:
        super().__init__(
            f"Cannot redeem {requested} from '{user}': only {available} deposited"
        )
        self.user = user
        self.requested = requested
        self.available = available


class DebtUnderflowError(EngineError):
    """Burning more debt than the position owes"""

    def __init__(self, user: str, requested: int, owed: int) -> None:
        super().__init__(f"Cannot burn {requested} for '{user}': only {owed} owed")
        self.user = user
        self.requested = requested
        self.owed = owed


class HealthFactorBrokenError(EngineError):
    """Health factor below the minimum after an operation"""

    def __init__(self, user: str, health_factor: int) -> None:
        super().__init__(f"Health factor broken for '{user}': {health_factor}")
        self.user = user
        self.health_factor = health_factor


class HealthFactorOkError(EngineError):
    """Liquidation target is solvent"""

    def __init__(self, user: str, health_factor: int) -> None:
        super().__init__(f"Health factor of '{user}' is ok: {health_factor}")
        self.user = user
        self.health_factor = health_factor


class HealthFactorNotImprovedError(EngineError):
    """Liquidation did not raise the target's health factor"""

    def __init__(self, user: str, starting: int, ending: int) -> None:
        super().__init__(
            f"Health factor of '{user}' not improved: {starting} -> {ending}"
        )
        self.user = user
        self.starting = starting
        self.ending = ending


class TransferFailedError(EngineError):
    """Token collaborator reported a failed transfer"""


class MintFailedError(EngineError):
    """Synthetic token collaborator reported a failed mint"""


class StalePriceError(EngineError):
    """Price reading too old, superseded or non-positive"""


class PriceFeedError(EngineError):
    """Price feed could not be reached or returned no usable data"""


class ReentrancyError(EngineError):
    """State-mutating entry point re-entered while another is running"""
