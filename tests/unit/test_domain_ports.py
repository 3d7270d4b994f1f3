"""
Unit tests for domain ports and exceptions.

Tests verify:
- Enum values used on the wire and in configuration
- Exception hierarchy and the confirmation state each error maps to
- Domain purity (no web, database, cache or mail imports)
"""

import subprocess
from dataclasses import FrozenInstanceError
from enum import Enum

import pytest

from src.domain.exceptions import (
    ActivationPersistError,
    CacheError,
    EmailAlreadyRegistered,
    Expired,
    MalformedToken,
    NotificationError,
    PurposeMismatch,
    RegistrationError,
    SignatureInvalid,
    StoreError,
    TokenAlreadyUsed,
    TokenError,
    UserCreationFailed,
    UserNotFound,
)
from src.domain.ports import (
    Claims,
    ConfirmationState,
    NewUser,
    NotificationPolicy,
    TokenPurpose,
    User,
)


class TestEnums:
    """Tests for domain enums."""

    def test_token_purpose_values(self) -> None:
        """Purpose tags are the strings carried in the pur claim."""
        assert issubclass(TokenPurpose, Enum)
        assert TokenPurpose.CONFIRM.value == "confirm"
        assert TokenPurpose.PASSWORD_RESET.value == "password_reset"

    def test_confirmation_states(self) -> None:
        """All lifecycle states exist."""
        assert {state.name for state in ConfirmationState} == {
            "ISSUED",
            "CONSUMED_SUCCESS",
            "CONSUMED_FAILED",
            "EXPIRED",
            "INVALID",
        }

    def test_notification_policy_parses_from_string(self) -> None:
        """Policy values match the configuration strings."""
        assert NotificationPolicy("fatal") is NotificationPolicy.FATAL
        assert NotificationPolicy("best_effort") is NotificationPolicy.BEST_EFFORT


class TestRecords:
    """Tests for domain dataclasses."""

    def test_user_defaults_inactive(self) -> None:
        """A new record is inactive and has no id."""
        user = User(email="a@example.com", first_name="Ada", last_name="Lovelace", password_hash="x")

        assert user.is_active is False
        assert user.id is None

    def test_claims_are_immutable(self) -> None:
        """Decoded claims cannot be altered."""
        claims = Claims(
            purpose=TokenPurpose.CONFIRM,
            subject_id="user-1",
            token_id="tok-1",
            issued_at=0,
            expires_at=60,
        )

        with pytest.raises(FrozenInstanceError):
            claims.subject_id = "user-2"  # type: ignore[misc]

    def test_new_user_is_immutable(self) -> None:
        """Registration input cannot be altered."""
        new_user = NewUser(email="a@example.com", password="pw", first_name="Ada", last_name="Lovelace")

        with pytest.raises(FrozenInstanceError):
            new_user.password = "other"  # type: ignore[misc]


class TestExceptions:
    """Tests for the exception hierarchy."""

    @pytest.mark.parametrize(
        "exc_type",
        [
            StoreError,
            EmailAlreadyRegistered,
            UserCreationFailed,
            CacheError,
            NotificationError,
            TokenError,
            ActivationPersistError,
        ],
    )
    def test_all_inherit_registration_error(self, exc_type: type) -> None:
        """Routes can catch every domain failure with one clause."""
        assert issubclass(exc_type, RegistrationError)

    def test_user_not_found_is_store_error(self) -> None:
        """A missing record is a store failure for activation."""
        assert issubclass(UserNotFound, StoreError)

    @pytest.mark.parametrize(
        "exc_type,state",
        [
            (MalformedToken, ConfirmationState.INVALID),
            (SignatureInvalid, ConfirmationState.INVALID),
            (PurposeMismatch, ConfirmationState.INVALID),
            (TokenAlreadyUsed, ConfirmationState.INVALID),
            (Expired, ConfirmationState.EXPIRED),
        ],
    )
    def test_token_errors_map_to_states(self, exc_type: type, state: ConfirmationState) -> None:
        """Each token failure names its terminal state."""
        assert issubclass(exc_type, TokenError)
        assert exc_type.state is state

    def test_activation_persist_error_carries_user_id(self) -> None:
        """The user id is kept for the operator log."""
        error = ActivationPersistError("user-1")

        assert error.user_id == "user-1"
        assert error.state is ConfirmationState.CONSUMED_FAILED
        assert not isinstance(error, TokenError)


class TestDomainPurity:
    """Tests for domain purity - no infrastructure imports."""

    @pytest.mark.parametrize("module", ["fastapi", "pydantic", "psycopg", "redis", "smtplib", "jinja2"])
    def test_no_infrastructure_imports_in_domain(self, module: str) -> None:
        """Domain layer imports none of the adapter libraries."""
        result = subprocess.run(
            ["grep", "-rE", f"^(from|import) {module}", "src/domain/"],
            capture_output=True,
            text=True,
        )
        assert result.returncode != 0, f"{module} import found: {result.stdout}"
