"""Domain-specific exception classes for the marketplace.

Each error carries an HTTP ``status_code`` so the API layer can translate it
without a lookup table.
"""

from enum import StrEnum


class MarketplaceError(Exception):
    """Base class for all domain errors in the marketplace."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class AuthenticationError(MarketplaceError):
    """Raised when a request carries no valid access token."""

    status_code = 401


class PermissionDeniedError(MarketplaceError):
    """Raised when the caller may not act on a resource."""

    status_code = 403


class NotFoundError(MarketplaceError):
    """Raised when a referenced row does not exist."""

    status_code = 404


class ValidationFailedError(MarketplaceError):
    """Raised when a request violates a business rule."""

    status_code = 400


class ConflictError(MarketplaceError):
    """Raised when a write collides with existing state."""

    status_code = 409


class InsufficientBalanceError(ValidationFailedError):
    """Raised when a payout exceeds the available balance."""

    def __init__(self) -> None:
        super().__init__("Insufficient balance")


class PaymentVerificationError(ValidationFailedError):
    """Raised when Paystack does not confirm a transaction."""


class InvalidTransitionError(ValidationFailedError):
    """Raised when an invalid status transition is attempted.

    Attributes:
        current_state: The state the machine was in when the transition was attempted.
        event: The event that was rejected.
    """

    def __init__(self, current_state: StrEnum, event: str) -> None:
        self.current_state = current_state
        self.event = event
        super().__init__(f"Cannot apply event '{event}' in state '{current_state}'")
