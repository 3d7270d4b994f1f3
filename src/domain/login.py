"""
Login domain service - Password check for confirmed accounts.

bcrypt always runs, against a dummy hash when the email is unknown, so
response time does not reveal whether an account exists.
"""

import logging
from dataclasses import dataclass

import bcrypt

from .exceptions import AccountNotActivated, InvalidCredentials
from .ports import User, UserRepository

logger = logging.getLogger(__name__)

# Hash of a throwaway password, compared when the email has no account.
_DUMMY_BCRYPT_HASH = bcrypt.hashpw(b"dummy_password_for_timing_safety", bcrypt.gensalt(10)).decode()


@dataclass
class LoginService:
    """Authenticates users by email and password."""

    users: UserRepository

    def authenticate(self, email: str, password: str) -> User:
        """
        Check credentials and return the user.

        Raises:
            InvalidCredentials: Unknown email or wrong password
            AccountNotActivated: Password correct but email never confirmed
            StoreError: If the user store cannot be reached
        """
        user = self.users.get_by_email(email.strip().lower())
        stored_hash = user.password_hash if user is not None else _DUMMY_BCRYPT_HASH
        password_valid = bcrypt.checkpw(password.encode(), stored_hash.encode())

        if user is None or not password_valid:
            raise InvalidCredentials("Invalid email or password")
        if not user.is_active:
            logger.info("Login refused for inactive user %s", user.id)
            raise AccountNotActivated(user.email)

        logger.info("User %s logged in", user.id)
        return user
