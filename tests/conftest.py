"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- In-memory adapters (no database required)
- A controllable clock for TTL tests
- Domain services wired to the in-memory adapters
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from src.adapters.repository.memory import InMemoryAccountRepository, InMemoryChallengeStore
from src.domain.credentials import CredentialStore
from src.domain.otp import OtpLedger
from src.domain.registration import RegistrationService

# Minimum bcrypt cost keeps hashing fast in tests that don't check the cost
FAST_BCRYPT_COST = 4


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def account_repository() -> InMemoryAccountRepository:
    return InMemoryAccountRepository()


@pytest.fixture
def challenge_store() -> InMemoryChallengeStore:
    return InMemoryChallengeStore()


@pytest.fixture
def credentials(account_repository: InMemoryAccountRepository) -> CredentialStore:
    return CredentialStore(repository=account_repository, bcrypt_cost=FAST_BCRYPT_COST)


@pytest.fixture
def ledger(challenge_store: InMemoryChallengeStore, clock: FakeClock) -> OtpLedger:
    return OtpLedger(store=challenge_store, ttl_seconds=300, signup_window_seconds=600, clock=clock)


@pytest.fixture
def email_sender() -> Mock:
    return Mock()


@pytest.fixture
def registration(
    credentials: CredentialStore, ledger: OtpLedger, email_sender: Mock
) -> RegistrationService:
    return RegistrationService(credentials=credentials, ledger=ledger, email_sender=email_sender)


@pytest.fixture
def sent_code(email_sender: Mock):
    """Return a getter for the code passed to the latest send_verification_code call."""

    def _sent_code() -> str:
        return email_sender.send_verification_code.call_args[0][1]

    return _sent_code
