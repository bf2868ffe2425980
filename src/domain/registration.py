"""
Registration domain service - Email-verified signup state machine.

This module contains the core business logic for user registration:
an email is proven with a one-time code before a password may be set.

Signup State Machine
====================

Client-visible steps:
    precheck(email)                  Start -> EmailChecked
    request_code(email)              EmailChecked -> OtpSent
    confirm_code(email, code)        OtpSent -> OtpVerified
    finalize(email, pw, confirm)     OtpVerified -> AccountCreated

Rules:
- request_code refuses emails that already have an account.
- finalize refuses unless confirm_code succeeded for the same email
  within the signup window. The verification mark is consumed on success.
- A failed step leaves the state it started from. The one exception is
  a delivery failure in request_code: the issued code stays live and a
  retry simply replaces it.
- Re-entering the flow (precheck / request_code again) is always allowed.
"""

import logging
from dataclasses import dataclass

from .credentials import MAX_PASSWORD_BYTES, CredentialStore, normalize_email
from .exceptions import (
    AccountAlreadyExists,
    EmailNotVerified,
    InvalidPassword,
    PasswordMismatch,
    VerificationFailed,
)
from .otp import OtpLedger
from .ports import Account, EmailSender, SignupState, VerifyResult

logger = logging.getLogger(__name__)


@dataclass
class RegistrationService:
    """
    Domain service for user registration.

    Orchestrates the signup flow across the credential store, the OTP
    ledger and the email sender.
    """

    credentials: CredentialStore
    ledger: OtpLedger
    email_sender: EmailSender
    min_password_length: int = 6

    def precheck(self, email: str) -> bool:
        """
        Report whether an account already exists for the email.

        A True answer means the client should send the user to sign-in.
        """
        return self.credentials.account_exists(normalize_email(email))

    def request_code(self, email: str) -> str:
        """
        Issue a verification code and deliver it by email.

        Args:
            email: User's email address (will be normalized)

        Returns:
            Normalized email address

        Raises:
            AccountAlreadyExists: If the email is already registered
            DeliveryFailed: If the email could not be sent (code stays live)
            StoreUnavailable: If a store cannot be reached
        """
        normalized_email = normalize_email(email)
        if self.credentials.account_exists(normalized_email):
            raise AccountAlreadyExists(normalized_email)

        code = self.ledger.issue(normalized_email)
        self.email_sender.send_verification_code(normalized_email, code)
        return normalized_email

    def confirm_code(self, email: str, code: str) -> None:
        """
        Verify the code and open the signup window for the email.

        Raises:
            VerificationFailed: Carrying the VerifyResult of the failed check
            StoreUnavailable: If a store cannot be reached (code stays live)
        """
        normalized_email = normalize_email(email)
        result = self.ledger.verify(normalized_email, code, open_signup=True)
        if result != VerifyResult.SUCCESS:
            raise VerificationFailed(normalized_email, result)

        logger.info("Email verified for signup: %s", normalized_email)

    def finalize(self, email: str, password: str, confirm_password: str) -> Account:
        """
        Set the password and create the account.

        Validation happens before any store is touched.

        Raises:
            InvalidPassword: Password too short or too long
            PasswordMismatch: Confirmation differs from password
            EmailNotVerified: No fresh code verification for this email
            AccountAlreadyExists: If the email was registered meanwhile
            StoreUnavailable: If a store cannot be reached
        """
        self._validate_password(password, confirm_password)

        normalized_email = normalize_email(email)
        if not self.ledger.is_verified(normalized_email):
            raise EmailNotVerified(normalized_email)

        account = self.credentials.create_account(normalized_email, password)
        self.ledger.clear_verified(normalized_email)
        return account

    def signup_state(self, email: str) -> SignupState:
        return self.ledger.state(normalize_email(email))

    def _validate_password(self, password: str, confirm_password: str) -> None:
        if len(password) < self.min_password_length:
            raise InvalidPassword(
                f"Password must be at least {self.min_password_length} characters long"
            )
        if len(password.encode()) > MAX_PASSWORD_BYTES:
            raise InvalidPassword(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
        if password != confirm_password:
            raise PasswordMismatch("Passwords do not match")
