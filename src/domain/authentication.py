"""
Sign-in domain service.

Independent of the signup flow: consults the credential store only and
never touches the OTP ledger.
"""

import logging
from dataclasses import dataclass

from .credentials import CredentialStore, normalize_email
from .exceptions import AuthenticationFailed

logger = logging.getLogger(__name__)


@dataclass
class SignInService:
    """Checks email + password against stored credentials."""

    credentials: CredentialStore

    def sign_in(self, email: str, password: str) -> str:
        """
        Authenticate a user.

        Returns:
            Normalized email address

        Raises:
            AuthenticationFailed: Unknown email or wrong password (same error)
            StoreUnavailable: If the store cannot be reached
        """
        normalized_email = normalize_email(email)
        if not self.credentials.verify_credentials(normalized_email, password):
            logger.info("Sign-in rejected for %s", normalized_email)
            raise AuthenticationFailed("Invalid email or password")
        return normalized_email
