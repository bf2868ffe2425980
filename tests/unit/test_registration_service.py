"""
Unit tests for RegistrationService domain logic.

Tests the signup state machine with in-memory adapters and a mocked
email sender to verify:
- Step ordering (check -> send -> verify -> signup)
- Server-side password validation
- Verification mark required and consumed by finalize
- Failure handling leaves the pre-step state
"""

from unittest.mock import Mock

import pytest

from src.domain.credentials import CredentialStore
from src.domain.exceptions import (
    AccountAlreadyExists,
    DeliveryFailed,
    EmailNotVerified,
    InvalidPassword,
    PasswordMismatch,
    StoreUnavailable,
    ValidationError,
    VerificationFailed,
)
from src.domain.otp import OtpLedger
from src.domain.ports import SignupState, VerifyResult
from src.domain.registration import RegistrationService

EMAIL = "a@x.com"


def verify_email(registration: RegistrationService, sent_code, email: str = EMAIL) -> None:
    registration.request_code(email)
    registration.confirm_code(email, sent_code())


class TestPrecheck:
    """Tests for precheck()."""

    def test_new_email_returns_false(self, registration: RegistrationService) -> None:
        assert registration.precheck(EMAIL) is False

    def test_existing_email_returns_true(
        self, registration: RegistrationService, credentials: CredentialStore
    ) -> None:
        credentials.create_account(EMAIL, "secret1")
        assert registration.precheck(" A@X.com ") is True


class TestRequestCode:
    """Tests for request_code()."""

    def test_sends_code_to_normalized_email(
        self, registration: RegistrationService, email_sender: Mock
    ) -> None:
        result = registration.request_code("  A@X.COM  ")

        assert result == EMAIL
        email_sender.send_verification_code.assert_called_once()
        assert email_sender.send_verification_code.call_args[0][0] == EMAIL

    def test_moves_to_code_sent(self, registration: RegistrationService) -> None:
        registration.request_code(EMAIL)
        assert registration.signup_state(EMAIL) == SignupState.CODE_SENT

    def test_refuses_existing_account(
        self,
        registration: RegistrationService,
        credentials: CredentialStore,
        email_sender: Mock,
    ) -> None:
        """No code is issued or sent for a registered email."""
        credentials.create_account(EMAIL, "secret1")

        with pytest.raises(AccountAlreadyExists):
            registration.request_code(EMAIL)

        email_sender.send_verification_code.assert_not_called()
        assert registration.signup_state(EMAIL) == SignupState.NONE

    def test_delivery_failure_leaves_live_code(
        self, registration: RegistrationService, email_sender: Mock, ledger: OtpLedger
    ) -> None:
        """A failed send still leaves the issued code usable."""
        email_sender.send_verification_code.side_effect = DeliveryFailed(EMAIL)

        with pytest.raises(DeliveryFailed):
            registration.request_code(EMAIL)

        code = email_sender.send_verification_code.call_args[0][1]
        assert registration.signup_state(EMAIL) == SignupState.CODE_SENT
        assert ledger.verify(EMAIL, code) == VerifyResult.SUCCESS

    def test_resend_invalidates_previous_code(
        self, registration: RegistrationService, sent_code
    ) -> None:
        registration.request_code(EMAIL)
        first = sent_code()
        registration.request_code(EMAIL)
        second = sent_code()

        if first != second:
            with pytest.raises(VerificationFailed):
                registration.confirm_code(EMAIL, first)
        registration.confirm_code(EMAIL, second)


class TestConfirmCode:
    """Tests for confirm_code()."""

    def test_correct_code_marks_verified(
        self, registration: RegistrationService, sent_code
    ) -> None:
        verify_email(registration, sent_code)
        assert registration.signup_state(EMAIL) == SignupState.VERIFIED

    def test_wrong_code_raises_invalid(
        self, registration: RegistrationService, sent_code
    ) -> None:
        registration.request_code(EMAIL)
        wrong = f"{(int(sent_code()) + 1) % 1_000_000:06d}"

        with pytest.raises(VerificationFailed) as exc_info:
            registration.confirm_code(EMAIL, wrong)

        assert exc_info.value.result == VerifyResult.INVALID_CODE
        assert registration.signup_state(EMAIL) == SignupState.CODE_SENT

    def test_expired_code_raises_expired(
        self, registration: RegistrationService, sent_code, clock
    ) -> None:
        registration.request_code(EMAIL)
        clock.advance(301)

        with pytest.raises(VerificationFailed) as exc_info:
            registration.confirm_code(EMAIL, sent_code())

        assert exc_info.value.result == VerifyResult.EXPIRED
        assert registration.signup_state(EMAIL) == SignupState.NONE

    def test_without_request_raises_not_found(self, registration: RegistrationService) -> None:
        with pytest.raises(VerificationFailed) as exc_info:
            registration.confirm_code(EMAIL, "123456")
        assert exc_info.value.result == VerifyResult.NOT_FOUND

    def test_code_single_use(self, registration: RegistrationService, sent_code) -> None:
        verify_email(registration, sent_code)

        with pytest.raises(VerificationFailed) as exc_info:
            registration.confirm_code(EMAIL, sent_code())
        assert exc_info.value.result == VerifyResult.NOT_FOUND

    def test_store_failure_keeps_code_live(
        self, registration: RegistrationService, sent_code, challenge_store, monkeypatch
    ) -> None:
        """A failed mark write consumes nothing; the same code works on retry."""
        registration.request_code(EMAIL)
        code = sent_code()

        def unavailable(*args) -> bool:
            raise StoreUnavailable("redeem_challenge")

        with monkeypatch.context() as m:
            m.setattr(challenge_store, "redeem", unavailable)
            with pytest.raises(StoreUnavailable):
                registration.confirm_code(EMAIL, code)

        assert registration.signup_state(EMAIL) == SignupState.CODE_SENT

        registration.confirm_code(EMAIL, code)
        assert registration.signup_state(EMAIL) == SignupState.VERIFIED


class TestFinalize:
    """Tests for finalize()."""

    def test_creates_account_after_verification(
        self, registration: RegistrationService, sent_code, credentials: CredentialStore
    ) -> None:
        verify_email(registration, sent_code)

        account = registration.finalize(EMAIL, "secret1", "secret1")

        assert account.email == EMAIL
        assert credentials.verify_credentials(EMAIL, "secret1") is True

    def test_consumes_verification_mark(
        self, registration: RegistrationService, sent_code
    ) -> None:
        verify_email(registration, sent_code)
        registration.finalize(EMAIL, "secret1", "secret1")
        assert registration.signup_state(EMAIL) == SignupState.NONE

    def test_refuses_without_verification(
        self, registration: RegistrationService, credentials: CredentialStore
    ) -> None:
        """Calling signup directly without verifying a code fails."""
        with pytest.raises(EmailNotVerified):
            registration.finalize(EMAIL, "secret1", "secret1")
        assert credentials.account_exists(EMAIL) is False

    def test_refuses_with_unverified_code_sent(
        self, registration: RegistrationService, credentials: CredentialStore
    ) -> None:
        registration.request_code(EMAIL)
        with pytest.raises(EmailNotVerified):
            registration.finalize(EMAIL, "secret1", "secret1")

    def test_refuses_after_signup_window(
        self, registration: RegistrationService, sent_code, clock
    ) -> None:
        verify_email(registration, sent_code)
        clock.advance(601)

        with pytest.raises(EmailNotVerified):
            registration.finalize(EMAIL, "secret1", "secret1")

    def test_verification_is_per_email(
        self, registration: RegistrationService, sent_code
    ) -> None:
        """Verifying one email does not unlock signup for another."""
        verify_email(registration, sent_code, "b@x.com")

        with pytest.raises(EmailNotVerified):
            registration.finalize(EMAIL, "secret1", "secret1")

    def test_short_password_rejected(
        self, registration: RegistrationService, sent_code
    ) -> None:
        verify_email(registration, sent_code)

        with pytest.raises(InvalidPassword):
            registration.finalize(EMAIL, "12345", "12345")

        # Validation failure does not consume the mark
        assert registration.signup_state(EMAIL) == SignupState.VERIFIED

    def test_password_of_exactly_6_accepted(
        self, registration: RegistrationService, sent_code
    ) -> None:
        verify_email(registration, sent_code)
        account = registration.finalize(EMAIL, "123456", "123456")
        assert account.email == EMAIL

    def test_mismatched_confirmation_rejected(
        self, registration: RegistrationService, sent_code
    ) -> None:
        verify_email(registration, sent_code)
        with pytest.raises(PasswordMismatch):
            registration.finalize(EMAIL, "secret1", "secret2")

    def test_validation_happens_before_any_store_call(self) -> None:
        """Invalid input never reaches the ledger or credential store."""
        credentials = Mock()
        ledger = Mock()
        service = RegistrationService(credentials=credentials, ledger=ledger, email_sender=Mock())

        with pytest.raises(ValidationError):
            service.finalize(EMAIL, "abc", "abc")

        ledger.is_verified.assert_not_called()
        credentials.create_account.assert_not_called()

    def test_min_password_length_configurable(
        self, credentials: CredentialStore, ledger: OtpLedger
    ) -> None:
        service = RegistrationService(
            credentials=credentials, ledger=ledger, email_sender=Mock(), min_password_length=10
        )
        with pytest.raises(InvalidPassword):
            service.finalize(EMAIL, "secret1", "secret1")

    def test_existing_account_raises_conflict(
        self, registration: RegistrationService, sent_code, credentials: CredentialStore
    ) -> None:
        """An account created between verify and signup wins."""
        verify_email(registration, sent_code)
        credentials.create_account(EMAIL, "first1")

        with pytest.raises(AccountAlreadyExists):
            registration.finalize(EMAIL, "secret1", "secret1")

        assert credentials.verify_credentials(EMAIL, "first1") is True

    def test_store_failure_keeps_verification_mark(self, ledger: OtpLedger) -> None:
        """A failed create leaves the email verified so the user can retry."""
        credentials = Mock()
        credentials.create_account.side_effect = StoreUnavailable("insert")
        service = RegistrationService(credentials=credentials, ledger=ledger, email_sender=Mock())
        ledger.mark_verified(EMAIL)

        with pytest.raises(StoreUnavailable):
            service.finalize(EMAIL, "secret1", "secret1")

        assert ledger.is_verified(EMAIL) is True


class TestEndToEnd:
    """Full signup scenario at the domain level."""

    def test_full_flow(
        self, registration: RegistrationService, sent_code, credentials: CredentialStore
    ) -> None:
        assert registration.precheck(EMAIL) is False
        registration.request_code(EMAIL)
        registration.confirm_code(EMAIL, sent_code())
        registration.finalize(EMAIL, "secret1", "secret1")

        assert registration.precheck(EMAIL) is True
        assert credentials.verify_credentials(EMAIL, "secret1") is True
        assert credentials.verify_credentials(EMAIL, "wrong") is False

        # Once registered, the flow cannot be restarted for this email
        with pytest.raises(AccountAlreadyExists):
            registration.request_code(EMAIL)
