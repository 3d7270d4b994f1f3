"""
Credential codec - Signed, purpose-bound, time-limited tokens.

Tokens are JWTs signed with an Ed25519 key pair (algorithm EdDSA). Any node
holding only the public key can verify them, and forging one requires the
private key.

Claims carried:
- pur: purpose tag (TokenPurpose value)
- sub: subject user id
- jti: random token id, the key of the invalidation record
- iat: issued-at, epoch seconds
- exp: expiry, epoch seconds

Verification order: decode, signature, purpose, expiry. Expiry is checked
against the codec's own clock so it never depends on store state.
"""

import secrets
import time
from collections.abc import Callable
from pathlib import Path

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

from .exceptions import Expired, MalformedToken, PurposeMismatch, SignatureInvalid, TokenError
from .ports import Claims, TokenPurpose

ALGORITHM = "EdDSA"
_REQUIRED_CLAIMS = ["pur", "sub", "jti", "iat", "exp"]


class TokenCodec:
    """
    Issues and verifies signed tokens.

    A codec built without a private key is verify-only.
    """

    def __init__(
        self,
        public_key: Ed25519PublicKey,
        private_key: Ed25519PrivateKey | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._public_key = public_key
        self._private_key = private_key
        self._clock = clock

    @classmethod
    def generate(cls, clock: Callable[[], float] = time.time) -> "TokenCodec":
        """Build a codec around a fresh in-memory key pair."""
        private_key = Ed25519PrivateKey.generate()
        return cls(private_key.public_key(), private_key, clock=clock)

    @classmethod
    def from_pem_files(
        cls,
        private_key_file: Path | None,
        public_key_file: Path | None,
        clock: Callable[[], float] = time.time,
    ) -> "TokenCodec":
        """
        Load keys from PEM files.

        If only the private key is given the public key is derived from it.
        If only the public key is given the codec is verify-only.

        Raises:
            ValueError: If no file is given or a key is not Ed25519
        """
        private_key = None
        if private_key_file is not None:
            loaded = serialization.load_pem_private_key(private_key_file.read_bytes(), password=None)
            if not isinstance(loaded, Ed25519PrivateKey):
                raise ValueError(f"{private_key_file} is not an Ed25519 private key")
            private_key = loaded

        if public_key_file is not None:
            public_key = serialization.load_pem_public_key(public_key_file.read_bytes())
            if not isinstance(public_key, Ed25519PublicKey):
                raise ValueError(f"{public_key_file} is not an Ed25519 public key")
        elif private_key is not None:
            public_key = private_key.public_key()
        else:
            raise ValueError("At least one token key file is required")

        return cls(public_key, private_key, clock=clock)

    def new_claims(self, purpose: TokenPurpose, subject_id: str, ttl: int) -> Claims:
        """Build a fresh claim set with a random token id."""
        now = int(self._clock())
        return Claims(
            purpose=purpose,
            subject_id=subject_id,
            token_id=secrets.token_urlsafe(16),
            issued_at=now,
            expires_at=now + ttl,
        )

    def encode(self, claims: Claims) -> str:
        """Sign a claim set into an opaque URL-safe string."""
        if self._private_key is None:
            raise TokenError("Codec has no private key; cannot issue tokens")
        payload = {
            "pur": claims.purpose.value,
            "sub": claims.subject_id,
            "jti": claims.token_id,
            "iat": claims.issued_at,
            "exp": claims.expires_at,
        }
        return jwt.encode(payload, self._private_key, algorithm=ALGORITHM)

    def issue(self, purpose: TokenPurpose, subject_id: str, ttl: int) -> str:
        """Issue a signed token for subject_id valid for ttl seconds."""
        return self.encode(self.new_claims(purpose, subject_id, ttl))

    def verify(self, token: str, expected_purpose: TokenPurpose) -> Claims:
        """
        Authenticate a token and return its claims.

        Raises:
            MalformedToken: Not decodable, or required claims missing/ill-typed
            SignatureInvalid: Signature or algorithm rejected
            PurposeMismatch: Issued for a different purpose
            Expired: Current time is past the expiry
        """
        try:
            payload = jwt.decode(
                token,
                self._public_key,
                algorithms=[ALGORITHM],
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                    "require": _REQUIRED_CLAIMS,
                },
            )
        except jwt.InvalidSignatureError as e:
            raise SignatureInvalid("Token signature invalid") from e
        except jwt.InvalidAlgorithmError as e:
            raise SignatureInvalid("Token algorithm not accepted") from e
        except jwt.InvalidTokenError as e:
            raise MalformedToken(f"Token could not be decoded: {e}") from e

        purpose = payload["pur"]
        expires_at = payload["exp"]
        issued_at = payload["iat"]
        if not isinstance(purpose, str) or not isinstance(expires_at, int) or not isinstance(issued_at, int):
            raise MalformedToken("Token claims have unexpected types")

        if purpose != expected_purpose.value:
            raise PurposeMismatch(f"Expected purpose {expected_purpose.value}, got {purpose}")

        if self._clock() > expires_at:
            raise Expired("Token expired")

        return Claims(
            purpose=expected_purpose,
            subject_id=payload["sub"],
            token_id=payload["jti"],
            issued_at=issued_at,
            expires_at=expires_at,
        )
