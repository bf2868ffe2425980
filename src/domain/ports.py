"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure. Adapters implement these protocols.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Protocol


class SignupState(str, Enum):
    """
    Per-email signup progress.

    State Transitions:
    - NONE -> CODE_SENT (code issued)
    - CODE_SENT -> CODE_SENT (code re-issued, previous code invalidated)
    - CODE_SENT -> VERIFIED (correct code within TTL)
    - CODE_SENT -> NONE (code expired and purged)
    - VERIFIED -> NONE (account created, or signup window elapsed)

    The state is derived from the challenge store rather than persisted
    as a column: a fresh verification mark means VERIFIED, a stored
    challenge means CODE_SENT.
    """

    NONE = "NONE"
    CODE_SENT = "CODE_SENT"
    VERIFIED = "VERIFIED"


class VerifyResult(Enum):
    """
    Result of a code verification attempt.

    Used by OtpLedger.verify() to indicate success or specific failure.
    """

    SUCCESS = "success"
    INVALID_CODE = "invalid_code"
    EXPIRED = "expired"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class OtpChallenge:
    """An outstanding verification code for one email."""

    code: str
    issued_at: datetime


@dataclass(frozen=True)
class Account:
    """A registered identity. Never carries the plaintext password."""

    email: str
    password_hash: str
    created_at: datetime | None = None


class AccountRepository(Protocol):
    """Port interface for account persistence."""

    def exists(self, email: str) -> bool:
        """
        Check whether an account is registered for the email.

        Raises:
            StoreUnavailable: If the backing store cannot be reached
        """
        ...

    def insert(self, email: str, password_hash: str) -> Account | None:
        """
        Atomically create an account.

        Uniqueness must be enforced by the store itself (unique constraint
        or equivalent), not by a prior exists() call.

        Args:
            email: Normalized email address
            password_hash: bcrypt hashed password

        Returns:
            The created Account, or None if the email is already taken

        Raises:
            StoreUnavailable: If the backing store cannot be reached
        """
        ...

    def get_password_hash(self, email: str) -> str | None:
        """
        Load the stored bcrypt hash for an email.

        Returns:
            The hash, or None if no account exists

        Raises:
            StoreUnavailable: If the backing store cannot be reached
        """
        ...


class ChallengeStore(Protocol):
    """
    Port interface for verification code and signup mark storage.

    Keys are normalized email addresses. One challenge slot and one
    verification mark per email; writes are last-write-wins.
    """

    def get(self, email: str) -> OtpChallenge | None:
        """Return the stored challenge for the email, if any."""
        ...

    def put(self, email: str, challenge: OtpChallenge) -> None:
        """Store a challenge, replacing any previous one for the email."""
        ...

    def remove(self, email: str, challenge: OtpChallenge) -> bool:
        """
        Delete the challenge only if it is still the one given.

        Returns:
            True if this call removed it, False if it was already gone
            or had been replaced by a newer challenge
        """
        ...

    def redeem(self, email: str, challenge: OtpChallenge, verified_at: datetime) -> bool:
        """
        Atomically remove the challenge (as remove()) and record the mark.

        Returns:
            True if the challenge was consumed and the mark written, False
            if the challenge was already gone or replaced (nothing written)
        """
        ...

    def mark_verified(self, email: str, verified_at: datetime) -> None:
        """Record that the email passed code verification at verified_at."""
        ...

    def get_verified(self, email: str) -> datetime | None:
        """Return when the email was last verified, if a mark exists."""
        ...

    def clear_verified(self, email: str) -> None:
        """Drop the verification mark for the email."""
        ...


class EmailSender(Protocol):
    """Port interface for email delivery."""

    def send_verification_code(self, email: str, code: str) -> None:
        """
        Send verification code to email address.

        Args:
            email: Recipient email address
            code: 6-digit verification code

        Raises:
            DeliveryFailed: If the message could not be handed off
        """
        ...
