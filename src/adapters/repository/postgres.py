"""
PostgreSQL adapters - Implement AccountRepository and ChallengeStore protocols.

This module provides the PostgreSQL implementations of the domain's
persistence ports using psycopg3 with raw SQL.

Atomicity:
---------
- insert() relies on the accounts primary key with ON CONFLICT DO NOTHING,
  so two concurrent signups for one email produce exactly one row.
- put() is an upsert: the last writer's challenge is the live one.
- remove() is a conditional DELETE on (email, code, issued_at), so a code
  is consumed at most once and a newer challenge is never deleted by a
  request that read an older one.
- redeem() runs that DELETE and the signup mark upsert in one
  transaction: either the code is consumed and the mark written, or neither.

Every psycopg error is logged and re-raised as StoreUnavailable; callers
never see driver exceptions.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

import psycopg
from psycopg_pool import ConnectionPool

from src.domain.exceptions import StoreUnavailable
from src.domain.ports import Account, OtpChallenge

logger = logging.getLogger(__name__)


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    """Translate driver and pool failures into StoreUnavailable."""
    try:
        yield
    except psycopg.Error as e:
        logger.error("Database operation failed: %s - %s", operation, e)
        raise StoreUnavailable(operation) from e


class PostgresAccountRepository:
    """
    Implements AccountRepository protocol via psycopg3.

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

    def exists(self, email: str) -> bool:
        sql = "SELECT 1 FROM accounts WHERE email = %s"

        with _store_errors("exists"), self._pool.connection() as conn:
            row = conn.execute(sql, (email,)).fetchone()
            return row is not None

    def insert(self, email: str, password_hash: str) -> Account | None:
        """
        Atomically create an account row.

        The primary key on email closes the window between a prior
        existence check and this insert.

        Returns:
            The created Account, or None if the email already exists
        """
        sql = """
            INSERT INTO accounts (email, password_hash, created_at)
            VALUES (%s, %s, NOW())
            ON CONFLICT (email) DO NOTHING
            RETURNING email, password_hash, created_at
        """

        with _store_errors("insert"), self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (email, password_hash))
            row = cursor.fetchone()
            conn.commit()

        if row is None:
            return None
        return Account(email=row[0], password_hash=row[1], created_at=row[2])

    def get_password_hash(self, email: str) -> str | None:
        sql = "SELECT password_hash FROM accounts WHERE email = %s"

        with _store_errors("get_password_hash"), self._pool.connection() as conn:
            row = conn.execute(sql, (email,)).fetchone()
            return row[0] if row is not None else None


class PostgresChallengeStore:
    """
    Implements ChallengeStore protocol via psycopg3.

    Challenges live in otp_challenges, verification marks in
    signup_verifications. Expiry is decided by the domain, not the SQL.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def get(self, email: str) -> OtpChallenge | None:
        sql = "SELECT code, issued_at FROM otp_challenges WHERE email = %s"

        with _store_errors("get_challenge"), self._pool.connection() as conn:
            row = conn.execute(sql, (email,)).fetchone()

        if row is None:
            return None
        return OtpChallenge(code=row[0], issued_at=row[1])

    def put(self, email: str, challenge: OtpChallenge) -> None:
        sql = """
            INSERT INTO otp_challenges (email, code, issued_at)
            VALUES (%s, %s, %s)
            ON CONFLICT (email) DO UPDATE
            SET code = EXCLUDED.code,
                issued_at = EXCLUDED.issued_at
        """

        with _store_errors("put_challenge"), self._pool.connection() as conn:
            conn.execute(sql, (email, challenge.code, challenge.issued_at))
            conn.commit()

    def remove(self, email: str, challenge: OtpChallenge) -> bool:
        sql = """
            DELETE FROM otp_challenges
            WHERE email = %s AND code = %s AND issued_at = %s
        """

        with _store_errors("remove_challenge"), self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (email, challenge.code, challenge.issued_at))
            conn.commit()
            return cursor.rowcount == 1

    def redeem(self, email: str, challenge: OtpChallenge, verified_at: datetime) -> bool:
        """Consume the challenge and write the signup mark in one transaction."""
        delete_sql = """
            DELETE FROM otp_challenges
            WHERE email = %s AND code = %s AND issued_at = %s
        """
        mark_sql = """
            INSERT INTO signup_verifications (email, verified_at)
            VALUES (%s, %s)
            ON CONFLICT (email) DO UPDATE
            SET verified_at = EXCLUDED.verified_at
        """

        with _store_errors("redeem_challenge"), self._pool.connection() as conn:
            with conn.transaction():
                cursor = conn.execute(delete_sql, (email, challenge.code, challenge.issued_at))
                if cursor.rowcount != 1:
                    return False
                conn.execute(mark_sql, (email, verified_at))
            return True

    def mark_verified(self, email: str, verified_at: datetime) -> None:
        sql = """
            INSERT INTO signup_verifications (email, verified_at)
            VALUES (%s, %s)
            ON CONFLICT (email) DO UPDATE
            SET verified_at = EXCLUDED.verified_at
        """

        with _store_errors("mark_verified"), self._pool.connection() as conn:
            conn.execute(sql, (email, verified_at))
            conn.commit()

    def get_verified(self, email: str) -> datetime | None:
        sql = "SELECT verified_at FROM signup_verifications WHERE email = %s"

        with _store_errors("get_verified"), self._pool.connection() as conn:
            row = conn.execute(sql, (email,)).fetchone()
            return row[0] if row is not None else None

    def clear_verified(self, email: str) -> None:
        sql = "DELETE FROM signup_verifications WHERE email = %s"

        with _store_errors("clear_verified"), self._pool.connection() as conn:
            conn.execute(sql, (email,))
            conn.commit()


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
