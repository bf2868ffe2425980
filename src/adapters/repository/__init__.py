"""Repository adapters - Database and in-memory implementations."""

from .memory import InMemoryAccountRepository, InMemoryChallengeStore
from .postgres import PostgresAccountRepository, PostgresChallengeStore, run_migrations

__all__ = [
    "InMemoryAccountRepository",
    "InMemoryChallengeStore",
    "PostgresAccountRepository",
    "PostgresChallengeStore",
    "run_migrations",
]
