"""Test doubles and helpers shared across test packages."""

import threading
import uuid
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from typing import Any

from src.domain.exceptions import EmailAlreadyRegistered, UserNotFound
from src.domain.ports import User

TOKEN_TTL = 3600


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class InMemoryUserRepository:
    """UserRepository double keeping copies of records in a dict."""

    def __init__(self) -> None:
        self.users: dict[str, User] = {}

    def create(self, user: User) -> str:
        if any(existing.email == user.email for existing in self.users.values()):
            raise EmailAlreadyRegistered(user.email)
        user_id = str(uuid.uuid4())
        self.users[user_id] = replace(user, id=user_id)
        return user_id

    def get(self, user_id: str) -> User:
        if user_id not in self.users:
            raise UserNotFound(user_id)
        return replace(self.users[user_id])

    def get_by_email(self, email: str) -> User | None:
        for user in self.users.values():
            if user.email == email:
                return replace(user)
        return None

    def update(self, user_id: str, user: User) -> None:
        if user_id not in self.users:
            raise UserNotFound(user_id)
        self.users[user_id] = replace(user, id=user_id)


def make_user(email: str = "a@example.com", is_active: bool = False) -> User:
    """Build an unsaved user record."""
    return User(
        email=email,
        first_name="Ada",
        last_name="Lovelace",
        password_hash="$2b$10$hashedpasswordvalue",
        is_active=is_active,
    )


ATTACKERS = 16


def run_concurrently(target: Callable[[], Any], count: int = ATTACKERS) -> list[Any]:
    """
    Run target in count threads started behind a barrier.

    Returns each call's result, or the exception it raised.
    """
    barrier = threading.Barrier(count)

    def attempt() -> Any:
        barrier.wait()
        try:
            return target()
        except Exception as e:
            return e

    with ThreadPoolExecutor(max_workers=count) as executor:
        futures = [executor.submit(attempt) for _ in range(count)]
        return [f.result() for f in futures]
