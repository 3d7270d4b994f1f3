"""
Registration domain service - Account creation and confirmation email.

Registration flow
=================
1. Persist the user record with is_active=False
   - duplicate email    -> EmailAlreadyRegistered
   - any other failure  -> UserCreationFailed, nothing else attempted
2. Issue a confirmation token
   - store failure      -> CacheError propagates; the inactive account is
                           left in place without a token (no rollback)
3. Send the confirmation email
   - NotificationPolicy.FATAL       -> NotificationError propagates
   - NotificationPolicy.BEST_EFFORT -> logged, registration still succeeds

Resending issues a fresh token; the previous one stops working.
"""

import logging
from dataclasses import dataclass

import bcrypt

from .confirmation import ConfirmationService
from .exceptions import CacheError, NotificationError, StoreError, UserCreationFailed
from .ports import NewUser, NotificationFields, NotificationGateway, NotificationPolicy, User, UserRepository

logger = logging.getLogger(__name__)

CONFIRMATION_TEMPLATE = "verification_email"


@dataclass
class RegistrationService:
    """
    Domain service for user registration.

    Orchestrates the registration flow: email normalization, password
    hashing, user creation, token issuance and email dispatch.
    """

    users: UserRepository
    confirmation: ConfirmationService
    notifications: NotificationGateway
    subject_line: str
    notification_policy: NotificationPolicy = NotificationPolicy.FATAL
    bcrypt_cost: int = 10

    def register(self, new_user: NewUser) -> str:
        """
        Register a new, inactive user and send the confirmation email.

        Args:
            new_user: Registration input (email is normalized, password hashed)

        Returns:
            Id of the created user

        Raises:
            EmailAlreadyRegistered: If the email is taken
            UserCreationFailed: If the user record could not be stored
            CacheError: If the confirmation token could not be recorded
            NotificationError: If the email failed under the fatal policy
        """
        user = User(
            email=self._normalize_email(new_user.email),
            first_name=new_user.first_name.strip(),
            last_name=new_user.last_name.strip(),
            password_hash=self._hash_password(new_user.password),
            is_active=False,
        )

        try:
            user_id = self.users.create(user)
        except StoreError as e:
            logger.error("Error creating user: %s", e)
            raise UserCreationFailed(user.email) from e
        user.id = user_id
        logger.info("User %s created", user_id)

        token = self._start_confirmation(user_id)
        self._send_confirmation(user_id, user, token)
        return user_id

    def resend_confirmation(self, email: str) -> None:
        """
        Issue a new confirmation token and email it.

        Unknown and already-active accounts are ignored without error so the
        caller cannot tell which emails are registered.
        """
        user = self.users.get_by_email(self._normalize_email(email))
        if user is None or user.id is None:
            logger.info("Resend requested for unknown email")
            return
        if user.is_active:
            logger.info("Resend requested for active user %s", user.id)
            return

        token = self._start_confirmation(user.id)
        self._send_confirmation(user.id, user, token)

    def _start_confirmation(self, user_id: str) -> str:
        try:
            return self.confirmation.start_confirmation(user_id)
        except CacheError:
            logger.error("Confirmation token not issued; user %s remains inactive without a token", user_id)
            raise

    def _send_confirmation(self, user_id: str, user: User, token: str) -> None:
        fields: NotificationFields = {
            "user_id": user_id,
            "first_name": user.first_name,
            "last_name": user.last_name,
            "token": token,
            "subject_line": self.subject_line,
        }
        try:
            self.notifications.send(CONFIRMATION_TEMPLATE, user.email, fields)
        except NotificationError as e:
            if self.notification_policy is NotificationPolicy.FATAL:
                logger.error("Error sending confirmation email to user %s: %s", user_id, e)
                raise
            logger.warning(
                "Confirmation email to user %s not sent, user must request a resend: %s",
                user_id,
                e,
            )
            return
        logger.info("Confirmation email sent to user %s", user_id)

    def _normalize_email(self, email: str) -> str:
        """
        Normalize email address for consistent storage and lookup.

        Applies: strip whitespace + lowercase
        """
        return email.strip().lower()

    def _hash_password(self, password: str) -> str:
        """Hash password using bcrypt with the configured cost factor."""
        return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=self.bcrypt_cost)).decode()
