"""
api/routes/v1/auth.py -- HTTP transport for the auth engine.

Routes:
  POST /api/v1/auth/register   -- create a user; 201 {user_id}
  POST /api/v1/auth/login      -- verify credentials; 200 {token} scoped to app_id
  POST /api/v1/auth/is-admin   -- 200 {is_admin}

This module is the only place engine error kinds become status codes:

  InvalidCredentialsError  401 invalid_credentials
  UserExistsError          409 user_exists
  AppNotFoundError         400 invalid_app
  UserNotFoundError        404 user_not_found
  InternalError            500 internal_error
  deadline exceeded        504 deadline_exceeded

Request-shape validation (required fields, app_id != 0, user_id encoding)
happens in api/models.py before a handler runs; failures are 422.

Security:
  [C1] Unknown email and wrong password share one response body. Never add a
       branch here that tells them apart.
  [M5] Cache-Control: no-store on login responses.
"""

from __future__ import annotations

import asyncio
import uuid

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse

from api.models import (
    IsAdminRequest,
    IsAdminResponse,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
)
from auth.engine import AuthEngine
from auth.errors import (
    AppNotFoundError,
    AuthError,
    InternalError,
    InvalidCredentialsError,
    UserExistsError,
    UserNotFoundError,
)

router = APIRouter()

_ERROR_MAP: dict[type[AuthError], tuple[int, str, str]] = {
    InvalidCredentialsError: (401, "invalid_credentials", "Invalid email or password."),
    UserExistsError: (409, "user_exists", "A user with that email already exists."),
    AppNotFoundError: (400, "invalid_app", "Unknown app_id."),
    UserNotFoundError: (404, "user_not_found", "User not found."),
    InternalError: (500, "internal_error", "An unexpected error occurred."),
}


def _to_http(exc: AuthError) -> HTTPException:
    """Translate an engine error kind into an HTTPException with the shared envelope."""
    status, code, message = _ERROR_MAP.get(type(exc), _ERROR_MAP[InternalError])
    return HTTPException(status_code=status, detail={"code": code, "message": message})


async def _call(request: Request, coro):
    """Await an engine coroutine under the per-request deadline.

    On timeout asyncio.wait_for cancels the engine call; the cancellation
    unwinds through the engine untouched and surfaces here as TimeoutError.
    """
    timeout: float = request.app.state.request_timeout
    try:
        return await asyncio.wait_for(coro, timeout=timeout)
    except AuthError as exc:
        raise _to_http(exc) from exc
    except asyncio.TimeoutError as exc:
        raise HTTPException(
            status_code=504,
            detail={"code": "deadline_exceeded", "message": "The request took too long."},
        ) from exc


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("/auth/register", response_model=RegisterResponse, status_code=201)
async def register(request: Request, body: RegisterRequest) -> RegisterResponse:
    """Register a new user. Not idempotent: a second call with the same email is 409."""
    engine: AuthEngine = request.app.state.engine
    user_id = await _call(request, engine.register_new_user(body.email, body.password))
    return RegisterResponse(user_id=user_id.hex)


@router.post("/auth/login", response_model=LoginResponse)
async def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Exchange email + password for a token signed with app_id's secret."""
    engine: AuthEngine = request.app.state.engine
    token = await _call(request, engine.login(body.email, body.password, body.app_id))
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            token=token,
            token_type="bearer",  # noqa: S106 # nosec B106 -- OAuth token type, not a password
            expires_in=request.app.state.token_ttl_seconds,
        ).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"  # [M5]
    return resp


@router.post("/auth/is-admin", response_model=IsAdminResponse)
async def is_admin(request: Request, body: IsAdminRequest) -> IsAdminResponse:
    """Report whether user_id carries the admin flag. Unknown users are 404."""
    engine: AuthEngine = request.app.state.engine
    admin = await _call(request, engine.is_admin(uuid.UUID(hex=body.user_id)))
    return IsAdminResponse(is_admin=admin)
