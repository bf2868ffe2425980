"""
OTP ledger - Issuance, expiry and single-use consumption of verification codes.

Challenge Lifecycle (per email)
===============================

    absent -> live                 issue()
    live   -> live                 issue() again (previous code replaced)
    live   -> absent               verify() with the right code (consumed)
    live   -> absent               verify() after the TTL (expired, purged)
    live   -> live                 verify() with a wrong code (retry allowed)

Expiry is lazy: an expired challenge stays in the store until the next
verify() or issue() for that email. Its code is useless by then.

Successful verification can also record a signup mark, which finalize
consumes. The mark has its own window (signup_window_seconds).
"""

import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from .ports import ChallengeStore, OtpChallenge, SignupState, VerifyResult

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class OtpLedger:
    """
    Tracks outstanding verification codes for emails.

    Emails are expected to be normalized by the caller.
    """

    store: ChallengeStore
    ttl_seconds: int = 300
    code_length: int = 6
    signup_window_seconds: int = 600
    clock: Callable[[], datetime] = field(default=utcnow)

    def issue(self, email: str) -> str:
        """
        Issue a fresh code for the email, replacing any live one.

        Returns:
            The code, zero-padded to code_length digits
        """
        code = self._generate_code()
        self.store.put(email, OtpChallenge(code=code, issued_at=self.clock()))
        logger.info("Verification code issued for %s", email)
        return code

    def verify(self, email: str, code: str, *, open_signup: bool = False) -> VerifyResult:
        """
        Check a supplied code against the live challenge.

        With open_signup, a successful check also records the signup mark
        in the same store operation that consumes the challenge, so a
        failed write leaves both untouched.

        Returns:
            SUCCESS: code matched within the TTL, challenge consumed
            EXPIRED: TTL exceeded, challenge purged
            INVALID_CODE: code mismatch, challenge kept
            NOT_FOUND: no live challenge (never issued, consumed or purged)
        """
        challenge = self.store.get(email)
        if challenge is None:
            return VerifyResult.NOT_FOUND

        if self.clock() - challenge.issued_at > timedelta(seconds=self.ttl_seconds):
            self.store.remove(email, challenge)
            logger.info("Verification code expired for %s", email)
            return VerifyResult.EXPIRED

        if not secrets.compare_digest(challenge.code.encode(), code.encode()):
            return VerifyResult.INVALID_CODE

        # Compare-and-delete: a concurrent verify or re-issue wins the slot
        if open_signup:
            consumed = self.store.redeem(email, challenge, self.clock())
        else:
            consumed = self.store.remove(email, challenge)
        if not consumed:
            return VerifyResult.NOT_FOUND

        return VerifyResult.SUCCESS

    def mark_verified(self, email: str) -> None:
        self.store.mark_verified(email, self.clock())

    def is_verified(self, email: str) -> bool:
        """True if the email passed verification within the signup window."""
        verified_at = self.store.get_verified(email)
        if verified_at is None:
            return False
        if self.clock() - verified_at > timedelta(seconds=self.signup_window_seconds):
            self.store.clear_verified(email)
            return False
        return True

    def clear_verified(self, email: str) -> None:
        self.store.clear_verified(email)

    def state(self, email: str) -> SignupState:
        if self.is_verified(email):
            return SignupState.VERIFIED
        if self.store.get(email) is not None:
            return SignupState.CODE_SENT
        return SignupState.NONE

    def _generate_code(self) -> str:
        """
        Generate a uniformly distributed numeric code.

        Uses secrets module for cryptographic randomness.
        Returns string to preserve leading zeros.
        """
        return f"{secrets.randbelow(10**self.code_length):0{self.code_length}d}"
