"""
Domain exceptions - Semantic error types for signup and sign-in.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.

Hierarchy:
    RegistrationError
    ├── ValidationError        (bad input, raised before any side effect)
    │   ├── InvalidPassword
    │   └── PasswordMismatch
    ├── AccountAlreadyExists   (conflict)
    ├── AuthError              (never says which secret was wrong)
    │   ├── VerificationFailed
    │   ├── EmailNotVerified
    │   └── AuthenticationFailed
    └── DependencyError        (store or mail transport failure)
        ├── StoreUnavailable
        └── DeliveryFailed
"""

from .ports import VerifyResult


class RegistrationError(Exception):
    """Base class for registration domain errors."""

    pass


class ValidationError(RegistrationError):
    """Input rejected before touching any collaborator."""

    pass


class InvalidPassword(ValidationError):
    """Password does not satisfy the length policy."""

    pass


class PasswordMismatch(ValidationError):
    """Password and its confirmation differ."""

    pass


class AccountAlreadyExists(RegistrationError):
    """An account is already registered for this email."""

    pass


class AuthError(RegistrationError):
    """Base class for failed proofs (codes, passwords, verification marks)."""

    pass


class VerificationFailed(AuthError):
    """Verification code was missing, expired or wrong."""

    def __init__(self, email: str, result: VerifyResult) -> None:
        super().__init__(f"{email}: {result.value}")
        self.email = email
        self.result = result


class EmailNotVerified(AuthError):
    """Signup attempted without a fresh code verification for the email."""

    pass


class AuthenticationFailed(AuthError):
    """Unknown email or wrong password (deliberately indistinguishable)."""

    pass


class DependencyError(RegistrationError):
    """An external collaborator failed."""

    pass


class StoreUnavailable(DependencyError):
    """The persistence layer could not complete the operation."""

    pass


class DeliveryFailed(DependencyError):
    """The verification code could not be delivered."""

    pass
