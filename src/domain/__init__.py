"""
Domain layer - Pure business logic with zero framework imports.

This package contains the core business logic for email-verified signup
and sign-in. It defines its own port interfaces for infrastructure
abstraction, ensuring true hexagonal architecture decoupling.
"""

from .authentication import SignInService
from .credentials import CredentialStore, normalize_email
from .exceptions import (
    AccountAlreadyExists,
    AuthenticationFailed,
    AuthError,
    DeliveryFailed,
    DependencyError,
    EmailNotVerified,
    InvalidPassword,
    PasswordMismatch,
    RegistrationError,
    StoreUnavailable,
    ValidationError,
    VerificationFailed,
)
from .otp import OtpLedger
from .ports import (
    Account,
    AccountRepository,
    ChallengeStore,
    EmailSender,
    OtpChallenge,
    SignupState,
    VerifyResult,
)
from .registration import RegistrationService

__all__ = [
    "Account",
    "AccountAlreadyExists",
    "AccountRepository",
    "AuthError",
    "AuthenticationFailed",
    "ChallengeStore",
    "CredentialStore",
    "DeliveryFailed",
    "DependencyError",
    "EmailNotVerified",
    "EmailSender",
    "InvalidPassword",
    "OtpChallenge",
    "OtpLedger",
    "PasswordMismatch",
    "RegistrationError",
    "RegistrationService",
    "SignInService",
    "SignupState",
    "StoreUnavailable",
    "ValidationError",
    "VerificationFailed",
    "VerifyResult",
    "normalize_email",
]
