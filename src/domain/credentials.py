"""
Credential store - Password hashing and verification over AccountRepository.

Security Design - Timing Oracle Prevention:
------------------------------------------
verify_credentials() always runs bcrypt.checkpw(), including for emails
with no account. A pre-computed dummy hash stands in for the missing one,
so "no such user" and "wrong password" cost the same and return the same
False to the caller.
"""

import logging
from dataclasses import dataclass
from functools import lru_cache

import bcrypt

from .exceptions import AccountAlreadyExists, InvalidPassword
from .ports import Account, AccountRepository

logger = logging.getLogger(__name__)

MAX_PASSWORD_BYTES = 72


@lru_cache(maxsize=None)
def _dummy_hash(cost: int) -> bytes:
    """Hash compared against when the email has no account, at the store's cost."""
    return bcrypt.hashpw(b"dummy_password_for_timing_safety", bcrypt.gensalt(rounds=cost))


def normalize_email(email: str) -> str:
    """
    Normalize email address for consistent storage and lookup.

    Applies: strip whitespace + lowercase
    """
    return email.strip().lower()


@dataclass
class CredentialStore:
    """
    Owns password hashing and verification for registered accounts.

    Emails passed in are normalized before reaching the repository.
    """

    repository: AccountRepository
    bcrypt_cost: int = 10

    def account_exists(self, email: str) -> bool:
        return self.repository.exists(normalize_email(email))

    def create_account(self, email: str, password: str) -> Account:
        """
        Hash the password and create the account.

        Raises:
            InvalidPassword: If the password exceeds bcrypt's input limit
            AccountAlreadyExists: If the store already holds this email
            StoreUnavailable: If the store cannot be reached
        """
        if len(password.encode()) > MAX_PASSWORD_BYTES:
            raise InvalidPassword(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")

        normalized_email = normalize_email(email)
        password_hash = self._hash_password(password)

        account = self.repository.insert(normalized_email, password_hash)
        if account is None:
            raise AccountAlreadyExists(normalized_email)

        logger.info("Account created: %s", normalized_email)
        return account

    def verify_credentials(self, email: str, password: str) -> bool:
        """
        Check a plaintext password against the stored hash.

        Returns False for unknown emails and wrong passwords alike.
        """
        stored_hash = self.repository.get_password_hash(normalize_email(email))
        secret = password.encode()

        # bcrypt rejects inputs past 72 bytes; such a password can never have been stored
        too_long = len(secret) > MAX_PASSWORD_BYTES
        if too_long:
            secret = secret[:MAX_PASSWORD_BYTES]

        # Always run bcrypt so both failure paths take the same time
        if stored_hash is not None:
            candidate = stored_hash.encode()
        else:
            candidate = _dummy_hash(self.bcrypt_cost)
        password_valid = bcrypt.checkpw(secret, candidate)

        return stored_hash is not None and not too_long and password_valid

    def _hash_password(self, password: str) -> str:
        return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=self.bcrypt_cost)).decode()
