"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the domain types and the interfaces (ports) that the
domain requires from infrastructure. Adapters implement these protocols.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Protocol, TypedDict


class TokenPurpose(str, Enum):
    """
    Purpose tag embedded in every signed token.

    A token is only accepted by the flow it was issued for, so a
    confirmation token cannot be replayed against password reset.
    """

    CONFIRM = "confirm"
    PASSWORD_RESET = "password_reset"


class ConfirmationState(str, Enum):
    """
    Confirmation lifecycle per (user, token).

    State Transitions (forward-only):
    - ISSUED -> CONSUMED_SUCCESS (token consumed, user activated)
    - ISSUED -> CONSUMED_FAILED  (token consumed, activation write failed)
    - ISSUED -> EXPIRED          (validity window passed, store TTL evicts)
    - INVALID                    (never issued, malformed, forged, or reused)

    All states except ISSUED are terminal.
    """

    ISSUED = "ISSUED"
    CONSUMED_SUCCESS = "CONSUMED_SUCCESS"
    CONSUMED_FAILED = "CONSUMED_FAILED"
    EXPIRED = "EXPIRED"
    INVALID = "INVALID"


class NotificationPolicy(str, Enum):
    """What registration does when the confirmation email cannot be sent."""

    FATAL = "fatal"
    BEST_EFFORT = "best_effort"


@dataclass
class User:
    """User record as held by the user store."""

    email: str
    first_name: str
    last_name: str
    password_hash: str
    is_active: bool = False
    id: str | None = None


@dataclass(frozen=True)
class NewUser:
    """Registration input before normalization and hashing."""

    email: str
    password: str
    first_name: str
    last_name: str


@dataclass(frozen=True)
class Claims:
    """Authenticated contents of a signed token."""

    purpose: TokenPurpose
    subject_id: str
    token_id: str
    issued_at: int
    expires_at: int


class NotificationFields(TypedDict):
    """Template fields passed to the notification gateway."""

    user_id: str
    first_name: str
    last_name: str
    token: str
    subject_line: str


class UserRepository(Protocol):
    """Port interface for user record persistence."""

    def create(self, user: User) -> str:
        """
        Persist a new user record.

        Returns:
            The id assigned by the store

        Raises:
            EmailAlreadyRegistered: If the email is taken
            StoreError: On any other store failure
        """
        ...

    def get(self, user_id: str) -> User:
        """
        Load a user record by id.

        Raises:
            UserNotFound: If no record has this id
            StoreError: On any other store failure
        """
        ...

    def get_by_email(self, email: str) -> User | None:
        """Load a user record by normalized email, None if absent."""
        ...

    def update(self, user_id: str, user: User) -> None:
        """
        Overwrite the mutable fields of a user record.

        Raises:
            UserNotFound: If no record has this id
            StoreError: On any other store failure
        """
        ...


class InvalidationStore(Protocol):
    """Port interface for the single-use token store."""

    def record(self, token_id: str, ttl: int, subject_id: str | None = None) -> None:
        """
        Mark a token id as issued and not yet consumed.

        When subject_id is given, the previous outstanding token for that
        subject is deleted so only the latest token remains usable.

        Args:
            token_id: Random identifier from the token claims
            ttl: Seconds until the record evicts itself
            subject_id: Owner of the token

        Raises:
            CacheError: If the store cannot be written
        """
        ...

    def consume(self, token_id: str) -> bool:
        """
        Atomically check presence and delete.

        Returns:
            True on first use, False if already consumed, superseded,
            expired, or never recorded

        Raises:
            CacheError: If the store cannot be reached
        """
        ...

    def is_pending(self, token_id: str) -> bool:
        """Return True while the token id is recorded and unconsumed."""
        ...


class NotificationGateway(Protocol):
    """Port interface for email delivery."""

    def send(self, template_name: str, recipient_email: str, fields: NotificationFields) -> None:
        """
        Render a named email template and deliver it.

        Raises:
            NotificationError: If rendering or delivery fails
        """
        ...
