"""
In-memory invalidation store adapter - Implements InvalidationStore protocol.

Single-process replacement for Redis, used for local development
(INVALIDATION_BACKEND=memory) and tests. A lock serializes every
operation, which makes consume() atomic across threads. Expired entries
are evicted lazily on access.
"""

import threading
import time
from collections.abc import Callable


class InMemoryInvalidationStore:
    """
    Implements InvalidationStore protocol with a lock-guarded dict.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._tokens: dict[str, float] = {}
        self._subjects: dict[str, tuple[str, float]] = {}

    def record(self, token_id: str, ttl: int, subject_id: str | None = None) -> None:
        """Store the token id with a TTL, superseding the subject's previous token."""
        with self._lock:
            now = self._clock()
            self._evict_expired(now)
            deadline = now + ttl
            self._tokens[token_id] = deadline
            if subject_id is None:
                return
            previous = self._subjects.get(subject_id)
            self._subjects[subject_id] = (token_id, deadline)
            if previous is not None and previous[0] != token_id:
                self._tokens.pop(previous[0], None)

    def consume(self, token_id: str) -> bool:
        """Delete the token id and report whether it was present and unexpired."""
        with self._lock:
            deadline = self._tokens.pop(token_id, None)
            return deadline is not None and deadline > self._clock()

    def is_pending(self, token_id: str) -> bool:
        """Check whether the token id is recorded, unconsumed and unexpired."""
        with self._lock:
            deadline = self._tokens.get(token_id)
            if deadline is None:
                return False
            if deadline <= self._clock():
                del self._tokens[token_id]
                return False
            return True

    def _evict_expired(self, now: float) -> None:
        for token_id in [t for t, deadline in self._tokens.items() if deadline <= now]:
            del self._tokens[token_id]
        for subject_id in [s for s, (_, deadline) in self._subjects.items() if deadline <= now]:
            del self._subjects[subject_id]

    def __len__(self) -> int:
        with self._lock:
            now = self._clock()
            return sum(1 for deadline in self._tokens.values() if deadline > now)
