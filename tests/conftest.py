"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- A controllable clock for token expiry
- An in-memory user repository standing in for PostgreSQL
- Token codec, invalidation store and confirmation service wiring
"""

import pytest

from src.adapters.cache.memory import InMemoryInvalidationStore
from src.domain.confirmation import ConfirmationService
from src.domain.tokens import TokenCodec
from tests.support import TOKEN_TTL, FakeClock, InMemoryUserRepository


@pytest.fixture
def clock() -> FakeClock:
    """Clock shared by the codec under test."""
    return FakeClock()


@pytest.fixture
def codec(clock: FakeClock) -> TokenCodec:
    """Codec with a fresh Ed25519 key pair and the fake clock."""
    return TokenCodec.generate(clock=clock)


@pytest.fixture
def store() -> InMemoryInvalidationStore:
    """Invalidation store on the real monotonic clock."""
    return InMemoryInvalidationStore()


@pytest.fixture
def users() -> InMemoryUserRepository:
    """Empty in-memory user repository."""
    return InMemoryUserRepository()


@pytest.fixture
def confirmation(
    codec: TokenCodec, store: InMemoryInvalidationStore, users: InMemoryUserRepository
) -> ConfirmationService:
    """Confirmation service wired to real codec and store."""
    return ConfirmationService(codec=codec, store=store, users=users, ttl_seconds=TOKEN_TTL)
