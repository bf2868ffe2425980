"""
In-memory adapters - Process-local AccountRepository and ChallengeStore.

Used for development (challenge_backend=memory) and tests. Each instance
owns its own dicts, so lifetime is whatever the owner gives it; nothing
is module-global. A single lock per instance makes every method atomic,
matching the guarantees of the PostgreSQL adapters.
"""

import threading
from datetime import datetime, timezone

from src.domain.ports import Account, OtpChallenge


class InMemoryAccountRepository:
    """Implements AccountRepository protocol with a locked dict."""

    def __init__(self) -> None:
        self._accounts: dict[str, Account] = {}
        self._lock = threading.Lock()

    def exists(self, email: str) -> bool:
        with self._lock:
            return email in self._accounts

    def insert(self, email: str, password_hash: str) -> Account | None:
        with self._lock:
            if email in self._accounts:
                return None
            account = Account(
                email=email,
                password_hash=password_hash,
                created_at=datetime.now(timezone.utc),
            )
            self._accounts[email] = account
            return account

    def get_password_hash(self, email: str) -> str | None:
        with self._lock:
            account = self._accounts.get(email)
            return account.password_hash if account is not None else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._accounts)


class InMemoryChallengeStore:
    """Implements ChallengeStore protocol with locked dicts."""

    def __init__(self) -> None:
        self._challenges: dict[str, OtpChallenge] = {}
        self._verified: dict[str, datetime] = {}
        self._lock = threading.Lock()

    def get(self, email: str) -> OtpChallenge | None:
        with self._lock:
            return self._challenges.get(email)

    def put(self, email: str, challenge: OtpChallenge) -> None:
        with self._lock:
            self._challenges[email] = challenge

    def remove(self, email: str, challenge: OtpChallenge) -> bool:
        with self._lock:
            # Equality, not identity: values may be rebuilt by callers
            if self._challenges.get(email) != challenge:
                return False
            del self._challenges[email]
            return True

    def redeem(self, email: str, challenge: OtpChallenge, verified_at: datetime) -> bool:
        with self._lock:
            if self._challenges.get(email) != challenge:
                return False
            del self._challenges[email]
            self._verified[email] = verified_at
            return True

    def mark_verified(self, email: str, verified_at: datetime) -> None:
        with self._lock:
            self._verified[email] = verified_at

    def get_verified(self, email: str) -> datetime | None:
        with self._lock:
            return self._verified.get(email)

    def clear_verified(self, email: str) -> None:
        with self._lock:
            self._verified.pop(email, None)
