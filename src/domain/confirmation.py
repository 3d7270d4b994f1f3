"""
Confirmation protocol - Single-use email confirmation tokens.

Issue
=====
start_confirmation() builds the claims, writes the invalidation record, and
only then signs the token. If the store write fails no token exists, so a
token is never handed out without its single-use record.

Complete
========
complete_confirmation() runs, in order:
1. Codec verification (malformed, signature, purpose, expiry)
2. Atomic consume of the invalidation record
3. Load user, set is_active, persist

A failure in step 3 leaves the token burned and the user inactive
(CONSUMED_FAILED). It is logged with the [ACTIVATION-FAILED] tag and not
retried; the user recovers through a resend.
"""

import logging
from dataclasses import dataclass

from .exceptions import ActivationPersistError, StoreError, TokenAlreadyUsed, TokenError
from .ports import ConfirmationState, InvalidationStore, TokenPurpose, UserRepository
from .tokens import TokenCodec

logger = logging.getLogger(__name__)


@dataclass
class ConfirmationService:
    """Issues confirmation tokens and activates users who present them."""

    codec: TokenCodec
    store: InvalidationStore
    users: UserRepository
    ttl_seconds: int
    grace_seconds: int = 0

    def start_confirmation(self, user_id: str) -> str:
        """
        Issue a confirmation token for user_id.

        Any earlier outstanding token for the same user stops working.

        Returns:
            Opaque token string for the confirmation link

        Raises:
            CacheError: If the invalidation record cannot be written
        """
        claims = self.codec.new_claims(TokenPurpose.CONFIRM, user_id, self.ttl_seconds)
        self.store.record(
            claims.token_id,
            self.ttl_seconds + max(self.grace_seconds, 0),
            subject_id=user_id,
        )
        logger.info("Confirmation token issued for user %s (state=%s)", user_id, ConfirmationState.ISSUED.value)
        return self.codec.encode(claims)

    def complete_confirmation(self, token: str) -> str:
        """
        Verify and consume a confirmation token, then activate its user.

        Returns:
            Id of the activated user

        Raises:
            TokenError: Malformed, forged, wrong purpose, expired, or already used
            CacheError: If the invalidation store cannot be reached
            ActivationPersistError: Token consumed but the user could not be activated
        """
        try:
            claims = self.codec.verify(token, TokenPurpose.CONFIRM)
        except TokenError as e:
            logger.info("Confirmation rejected: %s (state=%s)", type(e).__name__, e.state.value)
            raise

        if not self.store.consume(claims.token_id):
            logger.info(
                "Confirmation rejected for user %s: token already used or expired (state=%s)",
                claims.subject_id,
                ConfirmationState.INVALID.value,
            )
            raise TokenAlreadyUsed("Token already used or expired")

        user_id = claims.subject_id
        try:
            user = self.users.get(user_id)
            user.is_active = True
            self.users.update(user_id, user)
        except StoreError as e:
            logger.error(
                "[ACTIVATION-FAILED] Token %s consumed but user %s is still inactive (state=%s): %s",
                claims.token_id,
                user_id,
                ConfirmationState.CONSUMED_FAILED.value,
                e,
            )
            raise ActivationPersistError(user_id) from e

        logger.info("User %s activated (state=%s)", user_id, ConfirmationState.CONSUMED_SUCCESS.value)
        return user_id
