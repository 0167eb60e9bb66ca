"""Authentication schemas."""

from pydantic import EmailStr, Field

from learnpath.schemas.base import BaseSchema, SuccessResponse
from learnpath.schemas.user import SessionUser


class LoginRequest(BaseSchema):
    """Request schema for email/password login."""

    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class SignupRequest(BaseSchema):
    """Request schema for account creation."""

    name: str = Field(..., min_length=1, max_length=255)
    username: str = Field(..., min_length=1, max_length=64)
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


class AuthResponse(SuccessResponse):
    """Response for login, signup and the protected probe."""

    user: SessionUser


class HealthResponse(BaseSchema):
    status: str
    session: bool
    timestamp: str
