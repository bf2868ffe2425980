"""
API v1 routes.

Defines REST endpoints for the email-verified signup API:
- POST /v1/check-email - Does an account exist for this email?
- POST /v1/send-otp    - Issue and deliver a verification code
- POST /v1/verify-otp  - Verify the code, open the signup window
- POST /v1/signup      - Set the password and create the account
- POST /v1/signin      - Email + password sign-in
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from src.api.dependencies import get_registration_service, get_sign_in_service
from src.api.models import (
    AccountResponse,
    CheckEmailResponse,
    EmailRequest,
    ErrorResponse,
    MessageResponse,
    SendOtpResponse,
    SignInRequest,
    SignupRequest,
    VerifyOtpRequest,
)
from src.config.settings import Settings, get_settings
from src.domain.authentication import SignInService
from src.domain.exceptions import (
    AccountAlreadyExists,
    AuthenticationFailed,
    DeliveryFailed,
    EmailNotVerified,
    StoreUnavailable,
    ValidationError,
    VerificationFailed,
)
from src.domain.registration import RegistrationService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["v1"])


@router.post(
    "/check-email",
    response_model=CheckEmailResponse,
    responses={
        500: {"model": ErrorResponse, "description": "Database error"},
        422: {"description": "Validation error"},
    },
    summary="Check whether an email is registered",
    description="Returns userExists=true when the email already has an account; "
    "clients should then switch to sign-in.",
)
def check_email(
    request_data: EmailRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> CheckEmailResponse:
    try:
        user_exists = service.precheck(request_data.email)
    except StoreUnavailable:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database error.",
        ) from None
    return CheckEmailResponse(user_exists=user_exists)


@router.post(
    "/send-otp",
    response_model=SendOtpResponse,
    responses={
        409: {"model": ErrorResponse, "description": "Email already registered"},
        500: {"model": ErrorResponse, "description": "Delivery or database error"},
        422: {"description": "Validation error"},
    },
    summary="Send a verification code",
    description="Issue a 6-digit verification code and email it. "
    "Calling again replaces the previous code.",
)
def send_otp(
    request_data: EmailRequest,
    service: RegistrationService = Depends(get_registration_service),
    settings: Settings = Depends(get_settings),
) -> SendOtpResponse:
    """
    Issue and deliver a verification code.

    - **email**: Address to verify

    Returns the code lifetime and the resend cooldown for the client timer.
    """
    try:
        normalized_email = service.request_code(request_data.email)
    except AccountAlreadyExists:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Registration failed",
        ) from None
    except DeliveryFailed:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to send OTP.",
        ) from None
    except StoreUnavailable:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database error.",
        ) from None
    return SendOtpResponse(
        message="OTP sent successfully.",
        email=normalized_email,
        expires_in_seconds=settings.otp_ttl_seconds,
        resend_after_seconds=settings.resend_cooldown_seconds,
    )


@router.post(
    "/verify-otp",
    response_model=MessageResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid or expired code"},
        500: {"model": ErrorResponse, "description": "Database error"},
        422: {"description": "Validation error"},
    },
    summary="Verify a code",
    description="Submit the 6-digit code received by email. "
    "On success the email may complete signup.",
)
def verify_otp(
    request_data: VerifyOtpRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> MessageResponse:
    try:
        service.confirm_code(request_data.email, request_data.otp)
    except VerificationFailed as e:
        logger.info("Code verification failed: %s", e.result.value)
        # Missing, expired and wrong codes share one message
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired OTP.",
        ) from None
    except StoreUnavailable:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database error.",
        ) from None
    return MessageResponse(message="OTP verified successfully.")


@router.post(
    "/signup",
    response_model=AccountResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Password rejected"},
        403: {"model": ErrorResponse, "description": "Email not verified"},
        409: {"model": ErrorResponse, "description": "Registration failed"},
        500: {"model": ErrorResponse, "description": "Database error"},
        422: {"description": "Validation error"},
    },
    summary="Create the account",
    description="Set the password for a freshly verified email and create the account.",
)
def signup(
    request_data: SignupRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> AccountResponse:
    """
    Create the account.

    - **email**: Email verified through /v1/verify-otp
    - **password**: Password (minimum 6 characters)
    - **confirmPassword**: Must equal password
    """
    try:
        account = service.finalize(
            request_data.email, request_data.password, request_data.confirm_password
        )
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from None
    except EmailNotVerified:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Email not verified",
        ) from None
    except AccountAlreadyExists:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Registration failed",
        ) from None
    except StoreUnavailable:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create account.",
        ) from None
    return AccountResponse(message="Account created successfully.", email=account.email)


@router.post(
    "/signin",
    response_model=AccountResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid email or password"},
        500: {"model": ErrorResponse, "description": "Database error"},
        422: {"description": "Validation error"},
    },
    summary="Sign in",
    description="Authenticate with email and password.",
)
def signin(
    request_data: SignInRequest,
    service: SignInService = Depends(get_sign_in_service),
) -> AccountResponse:
    try:
        email = service.sign_in(request_data.email, request_data.password)
    except AuthenticationFailed:
        # Unknown email and wrong password are indistinguishable
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password.",
        ) from None
    except StoreUnavailable:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database error.",
        ) from None
    return AccountResponse(message="Login successful.", email=email)
