"""
Domain exceptions - Semantic error types for registration and confirmation.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.
Adapters translate driver errors into these types.
"""

from .ports import ConfirmationState


class RegistrationError(Exception):
    """Base class for registration domain errors."""

    pass


class StoreError(RegistrationError):
    """User record store unreachable or rejected the operation."""

    pass


class UserNotFound(StoreError):
    """No user record exists for the requested id."""

    pass


class EmailAlreadyRegistered(RegistrationError):
    """Email is already attached to a user record."""

    pass


class UserCreationFailed(RegistrationError):
    """Persisting the new user record failed; nothing else was attempted."""

    pass


class CacheError(RegistrationError):
    """Invalidation store unreachable or timed out."""

    pass


class NotificationError(RegistrationError):
    """Rendering or delivering an email failed."""

    pass


class TokenError(RegistrationError):
    """Confirmation token rejected. Terminal for the request."""

    state = ConfirmationState.INVALID


class MalformedToken(TokenError):
    """Token could not be decoded or lacks required claims."""

    pass


class SignatureInvalid(TokenError):
    """Token signature does not verify against the public key."""

    pass


class PurposeMismatch(TokenError):
    """Token was issued for a different flow."""

    pass


class Expired(TokenError):
    """Token expiry has passed."""

    state = ConfirmationState.EXPIRED


class TokenAlreadyUsed(TokenError):
    """Token id was already consumed, superseded, or evicted from the store."""

    pass


class ActivationPersistError(RegistrationError):
    """
    Activation write failed after the token was consumed.

    The token is burned and the user remains inactive. Recovery is a
    resend, never an automatic retry.
    """

    state = ConfirmationState.CONSUMED_FAILED

    def __init__(self, user_id: str) -> None:
        super().__init__(user_id)
        self.user_id = user_id


class InvalidCredentials(RegistrationError):
    """Unknown email or wrong password."""

    pass


class AccountNotActivated(RegistrationError):
    """Credentials are correct but the email was never confirmed."""

    pass
