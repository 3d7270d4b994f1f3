"""
Redis invalidation store adapter - Implements InvalidationStore protocol.

Key layout:
- confirm:token:<token_id>     -> expiry epoch seconds, EX = store TTL
- confirm:subject:<subject_id> -> latest token_id for that subject, EX = store TTL

Atomicity:
- consume() is a single GETDEL, so two concurrent callers holding the same
  token id cannot both see the key.
- record() with a subject runs one Lua script that writes the token key,
  swaps the subject pointer and deletes the token the pointer used to name.
  Redis runs scripts without interleaving, so a reissue either fully
  supersedes the old token or changes nothing.
"""

import logging
import time

import redis

from src.domain.exceptions import CacheError

logger = logging.getLogger(__name__)

TOKEN_PREFIX = "confirm:token:"
SUBJECT_PREFIX = "confirm:subject:"

# KEYS: token key, subject key. ARGV: expires_at, ttl, token_id, token prefix.
# Returns the superseded token id, or nil.
RECORD_SCRIPT = """
redis.call('SET', KEYS[1], ARGV[1], 'EX', ARGV[2])
local previous = redis.call('GET', KEYS[2])
redis.call('SET', KEYS[2], ARGV[3], 'EX', ARGV[2])
if previous and previous ~= ARGV[3] then
    redis.call('DEL', ARGV[4] .. previous)
    return previous
end
return nil
"""


class RedisInvalidationStore:
    """
    Implements InvalidationStore protocol via redis-py.

    Uses structural subtyping - no explicit inheritance from Protocol.
    The Redis client is thread safe; connections are taken from its pool
    per command.
    """

    def __init__(self, client: redis.Redis) -> None:
        """
        Initialize store with a Redis client.

        Args:
            client: redis.Redis created with decode_responses=True
        """
        self._redis = client
        self._record_script = client.register_script(RECORD_SCRIPT)

    @classmethod
    def from_url(cls, url: str, socket_timeout: float) -> "RedisInvalidationStore":
        """Create a store whose commands fail fast instead of hanging."""
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )
        return cls(client)

    def record(self, token_id: str, ttl: int, subject_id: str | None = None) -> None:
        """Store the token id with a TTL, superseding the subject's previous token."""
        expires_at = int(time.time()) + ttl
        token_key = TOKEN_PREFIX + token_id
        try:
            if subject_id is None:
                self._redis.set(token_key, expires_at, ex=ttl)
                return

            previous = self._record_script(
                keys=[token_key, SUBJECT_PREFIX + subject_id],
                args=[expires_at, ttl, token_id, TOKEN_PREFIX],
            )
        except redis.exceptions.RedisError as e:
            raise CacheError(f"Failed to record token: {e}") from e

        if previous:
            logger.info("Superseded token %s for subject %s", previous, subject_id)

    def consume(self, token_id: str) -> bool:
        """Delete the token id and report whether it was present."""
        try:
            value = self._redis.getdel(TOKEN_PREFIX + token_id)
        except redis.exceptions.RedisError as e:
            raise CacheError(f"Failed to consume token: {e}") from e
        return value is not None

    def is_pending(self, token_id: str) -> bool:
        """Check whether the token id is recorded and unconsumed."""
        try:
            return bool(self._redis.exists(TOKEN_PREFIX + token_id))
        except redis.exceptions.RedisError as e:
            raise CacheError(f"Failed to read token: {e}") from e

    def ping(self) -> None:
        """Round-trip to Redis, raising CacheError if it is unreachable."""
        try:
            self._redis.ping()
        except redis.exceptions.RedisError as e:
            raise CacheError(f"Redis unreachable: {e}") from e

    def close(self) -> None:
        """Release the client's connection pool."""
        self._redis.close()
