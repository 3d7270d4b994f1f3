"""
Domain layer - Pure business logic with zero framework imports.

This package contains the registration and email confirmation logic:
signed single-use confirmation tokens, the confirmation state machine,
registration orchestration and login. It defines its own port interfaces
for infrastructure abstraction.
"""

from .confirmation import ConfirmationService
from .exceptions import (
    AccountNotActivated,
    ActivationPersistError,
    CacheError,
    EmailAlreadyRegistered,
    Expired,
    InvalidCredentials,
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
from .login import LoginService
from .ports import (
    Claims,
    ConfirmationState,
    InvalidationStore,
    NewUser,
    NotificationFields,
    NotificationGateway,
    NotificationPolicy,
    TokenPurpose,
    User,
    UserRepository,
)
from .registration import RegistrationService
from .tokens import TokenCodec

__all__ = [
    "AccountNotActivated",
    "ActivationPersistError",
    "CacheError",
    "Claims",
    "ConfirmationService",
    "ConfirmationState",
    "EmailAlreadyRegistered",
    "Expired",
    "InvalidCredentials",
    "InvalidationStore",
    "LoginService",
    "MalformedToken",
    "NewUser",
    "NotificationError",
    "NotificationFields",
    "NotificationGateway",
    "NotificationPolicy",
    "PurposeMismatch",
    "RegistrationError",
    "RegistrationService",
    "SignatureInvalid",
    "StoreError",
    "TokenAlreadyUsed",
    "TokenCodec",
    "TokenError",
    "TokenPurpose",
    "User",
    "UserCreationFailed",
    "UserNotFound",
    "UserRepository",
]
