"""Engine exception hierarchy.

Three families, all rooted at :class:`EngineError`:

* input validation, raised before any state is touched;
* solvency, carrying the computed health factor for diagnostics;
* collaborator, when a token transfer, mint or oracle read failed.

Every failure leaves the ledger exactly as it was before the operation.
"""
from __future__ import annotations


class EngineError(Exception):
    """Base class for all engine failures."""


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------


class InputValidationError(EngineError):
    pass


class NeedsMoreThanZero(InputValidationError):
    def __init__(self, amount: int) -> None:
        super().__init__(f"Amount must be more than zero, got {amount}")
        self.amount = amount


class TokenNotAllowed(InputValidationError):
    def __init__(self, asset: str) -> None:
        super().__init__(f"Token not allowed as collateral: {asset}")
        self.asset = asset


class TokenAddressesAndPriceFeedAddressesMustBeEqual(InputValidationError):
    def __init__(self, tokens: int, feeds: int) -> None:
        super().__init__(
            f"Got {tokens} collateral tokens but {feeds} price feeds"
        )


class InsufficientCollateral(InputValidationError):
    def __init__(self, account: str, asset: str, requested: int, available: int) -> None:
        super().__init__(
            f"{account} holds {available} {asset}, cannot remove {requested}"
        )
        self.account = account
        self.asset = asset
        self.requested = requested
        self.available = available


class RedeemAmountExceedsCollateral(InsufficientCollateral):
    pass


class BurnAmountExceedsBalance(InputValidationError):
    def __init__(self, account: str, requested: int, debt: int) -> None:
        super().__init__(f"{account} owes {debt} DSC, cannot burn {requested}")
        self.account = account
        self.requested = requested
        self.debt = debt


class ReentrantCall(EngineError):
    """An in-flight operation tried to mutate an account it already holds."""

    def __init__(self, account: str) -> None:
        super().__init__(f"Re-entrant mutation of account {account}")
        self.account = account


# ---------------------------------------------------------------------------
# Solvency
# ---------------------------------------------------------------------------


class SolvencyError(EngineError):
    def __init__(self, message: str, health_factor: int) -> None:
        super().__init__(message)
        self.health_factor = health_factor


class BreaksHealthFactor(SolvencyError):
    def __init__(self, health_factor: int) -> None:
        super().__init__(f"Health factor broken: {health_factor}", health_factor)


class HealthFactorOk(SolvencyError):
    def __init__(self, health_factor: int) -> None:
        super().__init__(
            f"Health factor is good, cannot liquidate: {health_factor}", health_factor
        )


class HealthFactorNotImproved(SolvencyError):
    def __init__(self, starting: int, ending: int) -> None:
        super().__init__(
            f"Health factor not improved: {starting} -> {ending}", ending
        )
        self.starting_health_factor = starting


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------


class CollaboratorError(EngineError):
    pass


class TransferFailed(CollaboratorError):
    pass


class MintFailed(CollaboratorError):
    pass


class OracleError(CollaboratorError):
    pass


class UnknownAsset(OracleError):
    def __init__(self, asset: str) -> None:
        super().__init__(f"No price feed registered for {asset}")
        self.asset = asset


class StalePrice(OracleError):
    def __init__(self, asset: str, reason: str) -> None:
        super().__init__(f"Price for {asset} rejected: {reason}")
        self.asset = asset


class FeedUnavailable(OracleError):
    """The feed transport failed or returned no quote."""
