"""
PostgreSQL repository adapter - Implements UserRepository protocol.

This module provides the PostgreSQL implementation of the domain's
user store port using psycopg3 with raw SQL.

Driver errors never leave this module: they are translated into the
domain's StoreError family so the services stay driver-agnostic.
"""

import logging
from pathlib import Path

import psycopg
from psycopg import errors
from psycopg_pool import ConnectionPool, PoolTimeout

from src.domain.exceptions import EmailAlreadyRegistered, StoreError, UserNotFound
from src.domain.ports import User

logger = logging.getLogger(__name__)

_USER_COLUMNS = "id, email, first_name, last_name, password_hash, is_active"


def _row_to_user(row: tuple) -> User:
    return User(
        id=str(row[0]),
        email=row[1],
        first_name=row[2],
        last_name=row[3],
        password_hash=row[4],
        is_active=row[5],
    )


class PostgresUserRepository:
    """
    Implements UserRepository protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize repository with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    def create(self, user: User) -> str:
        """
        Insert a new user record.

        The UNIQUE constraint on email makes concurrent registrations of
        the same address race-free: exactly one INSERT wins.

        Returns:
            UUID assigned by the database, as a string

        Raises:
            EmailAlreadyRegistered: If the email is already stored
            StoreError: On connection or query failure
        """
        sql = """
            INSERT INTO users (email, first_name, last_name, password_hash, is_active)
            VALUES (%s, %s, %s, %s, %s)
            RETURNING id
        """
        try:
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(
                    sql,
                    (user.email, user.first_name, user.last_name, user.password_hash, user.is_active),
                )
                row = cursor.fetchone()
                conn.commit()
        except errors.UniqueViolation as e:
            raise EmailAlreadyRegistered(user.email) from e
        except (psycopg.Error, PoolTimeout) as e:
            raise StoreError(f"Failed to create user: {e}") from e
        return str(row[0])

    def get(self, user_id: str) -> User:
        """
        Fetch a user record by id.

        An id that is not a valid UUID cannot match any row and is
        reported as UserNotFound.
        """
        sql = f"SELECT {_USER_COLUMNS} FROM users WHERE id = %s"
        try:
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(sql, (user_id,))
                row = cursor.fetchone()
        except errors.InvalidTextRepresentation as e:
            raise UserNotFound(user_id) from e
        except (psycopg.Error, PoolTimeout) as e:
            raise StoreError(f"Failed to load user {user_id}: {e}") from e
        if row is None:
            raise UserNotFound(user_id)
        return _row_to_user(row)

    def get_by_email(self, email: str) -> User | None:
        """Fetch a user record by normalized email."""
        sql = f"SELECT {_USER_COLUMNS} FROM users WHERE email = %s"
        try:
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(sql, (email,))
                row = cursor.fetchone()
        except (psycopg.Error, PoolTimeout) as e:
            raise StoreError(f"Failed to load user by email: {e}") from e
        return _row_to_user(row) if row is not None else None

    def update(self, user_id: str, user: User) -> None:
        """
        Overwrite the mutable fields of a user record.

        Email is immutable here; it is the registration identity.
        """
        sql = """
            UPDATE users
            SET first_name = %s, last_name = %s, password_hash = %s,
                is_active = %s, updated_at = NOW()
            WHERE id = %s
        """
        try:
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(
                    sql,
                    (user.first_name, user.last_name, user.password_hash, user.is_active, user_id),
                )
                updated = cursor.rowcount
                conn.commit()
        except errors.InvalidTextRepresentation as e:
            raise UserNotFound(user_id) from e
        except (psycopg.Error, PoolTimeout) as e:
            raise StoreError(f"Failed to update user {user_id}: {e}") from e
        if updated != 1:
            raise UserNotFound(user_id)


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: src/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning(f"Migrations directory not found: {migrations_dir}")
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info(f"Running {len(sql_files)} migration(s)")

    for sql_file in sql_files:
        logger.info(f"Executing migration: {sql_file.name}")
        try:
            sql_content = sql_file.read_text()

            with pool.connection() as conn:
                conn.execute(sql_content)

            logger.info(f"Migration complete: {sql_file.name}")
        except Exception as e:
            logger.error(f"Migration failed: {sql_file.name} - {e}")
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
