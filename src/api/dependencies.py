"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.

The lifespan stores long-lived adapters on app.state:
- app.state.accounts: AccountRepository
- app.state.challenges: ChallengeStore
- app.state.email_sender: EmailSender
"""

from fastapi import Depends, Request

from src.config.settings import Settings, get_settings
from src.domain.authentication import SignInService
from src.domain.credentials import CredentialStore
from src.domain.otp import OtpLedger
from src.domain.ports import AccountRepository, ChallengeStore, EmailSender
from src.domain.registration import RegistrationService


def get_account_repository(request: Request) -> AccountRepository:
    """Get account repository from app state."""
    return request.app.state.accounts


def get_challenge_store(request: Request) -> ChallengeStore:
    """Get challenge store from app state."""
    return request.app.state.challenges


def get_email_sender(request: Request) -> EmailSender:
    """Get the configured email sender from app state."""
    return request.app.state.email_sender


def get_credential_store(
    repository: AccountRepository = Depends(get_account_repository),
    settings: Settings = Depends(get_settings),
) -> CredentialStore:
    return CredentialStore(repository=repository, bcrypt_cost=settings.bcrypt_cost)


def get_otp_ledger(
    store: ChallengeStore = Depends(get_challenge_store),
    settings: Settings = Depends(get_settings),
) -> OtpLedger:
    return OtpLedger(
        store=store,
        ttl_seconds=settings.otp_ttl_seconds,
        code_length=settings.otp_length,
        signup_window_seconds=settings.signup_window_seconds,
    )


def get_registration_service(
    credentials: CredentialStore = Depends(get_credential_store),
    ledger: OtpLedger = Depends(get_otp_ledger),
    email_sender: EmailSender = Depends(get_email_sender),
    settings: Settings = Depends(get_settings),
) -> RegistrationService:
    """
    Create registration service with injected dependencies.

    Wires together the credential store, OTP ledger and email sender.
    """
    return RegistrationService(
        credentials=credentials,
        ledger=ledger,
        email_sender=email_sender,
        min_password_length=settings.min_password_length,
    )


def get_sign_in_service(
    credentials: CredentialStore = Depends(get_credential_store),
) -> SignInService:
    return SignInService(credentials=credentials)
