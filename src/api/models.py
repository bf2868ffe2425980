"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
Password length is checked by the domain (400), not here, so the rule
lives in one place.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class EmailRequest(BaseModel):
    """Request model carrying only an email (check-email, send-otp)."""

    email: EmailStr


class CheckEmailResponse(BaseModel):
    """Response model for the account existence check."""

    model_config = ConfigDict(populate_by_name=True)

    user_exists: bool = Field(..., alias="userExists")


class SendOtpResponse(BaseModel):
    """Response model for a delivered verification code."""

    message: str
    email: str
    expires_in_seconds: int
    resend_after_seconds: int


class VerifyOtpRequest(BaseModel):
    """Request model for code verification."""

    email: EmailStr
    otp: str = Field(
        ...,
        min_length=6,
        max_length=6,
        pattern=r"^\d{6}$",
        description="6-digit verification code",
    )


class SignupRequest(BaseModel):
    """Request model for setting the password and creating the account."""

    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr
    password: str = Field(..., description="Account password (min 6 characters)")
    confirm_password: str = Field(..., alias="confirmPassword")


class SignInRequest(BaseModel):
    """Request model for sign-in."""

    email: EmailStr
    password: str


class AccountResponse(BaseModel):
    """Response model for account creation and sign-in."""

    message: str
    email: str


class MessageResponse(BaseModel):
    """Plain confirmation message."""

    message: str


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
