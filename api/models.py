"""
API request and response models for the auth service REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Transport-level validation lives here: required fields, the 72-byte bcrypt
input limit, the app_id "empty" value and the user_id encoding. The engine
assumes these checks have already passed.

Passwords and emails are never whitespace-stripped -- they are compared
exactly as typed.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from auth.models import EMPTY_APP_ID, NIL_USER_ID, parse_user_id
from auth.tokens import MAX_PASSWORD_BYTES

# ---------------------------------------------------------------------------
# Shared validators
# ---------------------------------------------------------------------------


def _check_password_bytes(value: str) -> str:
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes when UTF-8 encoded")
    return value


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/v1/auth/register."""

    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        return _check_password_bytes(value)


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login.

    app_id 0 is the "not supplied" value and is rejected here, before the
    engine or any store sees it.
    """

    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1)
    app_id: int

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        return _check_password_bytes(value)

    @field_validator("app_id")
    @classmethod
    def app_id_required(cls, value: int) -> int:
        if value == EMPTY_APP_ID:
            raise ValueError("app_id is required")
        return value


class IsAdminRequest(BaseModel):
    """Request body for POST /api/v1/auth/is-admin.

    user_id is the 32-character hex encoding returned by /register. The nil
    ID (all zeros) is the "empty" value and is rejected.
    """

    user_id: str = Field(min_length=32, max_length=32)

    @field_validator("user_id")
    @classmethod
    def user_id_well_formed(cls, value: str) -> str:
        try:
            parsed = parse_user_id(value)
        except ValueError as exc:
            raise ValueError("invalid user_id") from exc
        if parsed == NIL_USER_ID:
            raise ValueError("user_id is required")
        return parsed.hex


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class RegisterResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: str


class LoginResponse(BaseModel):
    """Bearer token for the requested app. expires_in mirrors the token's exp claim."""

    model_config = ConfigDict(frozen=True)

    token: str
    token_type: str = "bearer"
    expires_in: int


class IsAdminResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_admin: bool


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
