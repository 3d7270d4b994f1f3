"""Invalidation store adapters - Single-use token record implementations."""

from .memory import InMemoryInvalidationStore
from .redis_store import RedisInvalidationStore

__all__ = ["InMemoryInvalidationStore", "RedisInvalidationStore"]
