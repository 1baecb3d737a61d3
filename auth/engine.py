"""
auth/engine.py -- AuthEngine: login, registration and admin checks.

The engine composes four collaborators injected at construction:

  UserStore     -- save_user / user_by_email / is_admin  (auth/store.py)
  AppRegistry   -- app                                    (auth/store.py)
  PasswordHasher, TokenIssuer                             (auth/tokens.py)

plus a logger. It owns no mutable state, so concurrent calls need no locking.
Email uniqueness is the store's job (unique index); the engine never does a
check-then-create.

Error classification [see auth/errors.py]:
  Every failure is classified exactly once and re-raised as an AuthError
  subclass. Anything unexpected becomes InternalError with the operation name,
  chained to the original exception. asyncio.CancelledError is a
  BaseException and passes through untouched -- a cancelled request is never
  reported as an internal error. No retries.

Enumeration resistance [C1]:
  An unknown email and a wrong password both raise InvalidCredentialsError,
  and both paths run one bcrypt verify, so neither the error kind nor the
  response time reveals whether the email is registered.

Blocking work (SQL round-trips, bcrypt) runs in worker threads via
asyncio.to_thread so the event loop stays free and the caller's deadline can
cancel the await.

Layer rule: no imports from api/ or core/. Settings reach the engine through
constructor arguments.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import timedelta
from typing import Protocol

from auth.errors import (
    AppNotFoundError,
    AppRecordNotFoundError,
    DuplicateEmailError,
    InternalError,
    InvalidCredentialsError,
    UserExistsError,
    UserNotFoundError,
    UserRecordNotFoundError,
)
from auth.models import EMPTY_APP_ID, App, User
from auth.tokens import PasswordHasher, PasswordTooLongError, TokenIssuer

# ---------------------------------------------------------------------------
# Capabilities
# ---------------------------------------------------------------------------


class UserStore(Protocol):
    def save_user(self, email: str, pass_hash: bytes) -> uuid.UUID: ...

    def user_by_email(self, email: str) -> User: ...

    def is_admin(self, user_id: uuid.UUID) -> bool: ...


class AppRegistry(Protocol):
    def app(self, app_id: int) -> App: ...


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class AuthEngine:
    """Credential verification and token issuance.

    Usage:
        engine = AuthEngine(logger, store, store, PasswordHasher(), TokenIssuer(), timedelta(hours=1))
        user_id = await engine.register_new_user("a@x.com", "secret1")
        token = await engine.login("a@x.com", "secret1", 42)
    """

    def __init__(
        self,
        log: logging.Logger,
        users: UserStore,
        apps: AppRegistry,
        hasher: PasswordHasher,
        issuer: TokenIssuer,
        token_ttl: timedelta,
    ) -> None:
        self._log = log
        self._users = users
        self._apps = apps
        self._hasher = hasher
        self._issuer = issuer
        self._token_ttl = token_ttl

    def _op_log(self, op: str, **fields) -> logging.LoggerAdapter:
        return logging.LoggerAdapter(self._log, {"op": op, **fields})

    async def login(self, email: str, password: str, app_id: int) -> str:
        """Verify credentials and return a token scoped to app_id.

        Raises:
            AppNotFoundError:        app_id is 0 or unknown.
            InvalidCredentialsError: email unknown or password wrong.
            InternalError:           any other store, hasher or signer fault.
        """
        op = "auth.login"
        log = self._op_log(op, email=email, app_id=app_id)
        log.info("attempting to login user")

        if app_id == EMPTY_APP_ID:
            log.warning("empty app id")
            raise AppNotFoundError(op)

        user: User | None
        try:
            user = await asyncio.to_thread(self._users.user_by_email, email)
        except UserRecordNotFoundError:
            user = None
        except Exception as exc:
            log.error("failed to get user: %s", type(exc).__name__)
            raise InternalError(op) from exc

        try:
            if user is None:
                await asyncio.to_thread(self._hasher.dummy_verify, password)
                matched = False
            else:
                matched = await asyncio.to_thread(self._hasher.verify, user.pass_hash, password)
        except Exception as exc:
            log.error("failed to verify password: %s", type(exc).__name__)
            raise InternalError(op) from exc
        if user is None:
            log.warning("user not found")
            raise InvalidCredentialsError(op)
        if not matched:
            log.info("invalid credentials")
            raise InvalidCredentialsError(op)

        try:
            app = await asyncio.to_thread(self._apps.app, app_id)
        except AppRecordNotFoundError:
            log.warning("app not found")
            raise AppNotFoundError(op) from None
        except Exception as exc:
            log.error("failed to get app: %s", type(exc).__name__)
            raise InternalError(op) from exc

        try:
            token = self._issuer.issue(user, app, self._token_ttl)
        except Exception as exc:
            log.error("failed to generate token: %s", type(exc).__name__)
            raise InternalError(op) from exc

        log.info("user logged in successfully")
        return token

    async def register_new_user(self, email: str, password: str) -> uuid.UUID:
        """Hash password and create the user. Returns the new user ID.

        Raises UserExistsError for a taken email. Not idempotent: a repeat call
        with the same email always fails and leaves the stored hash untouched.
        Raises InvalidCredentialsError for a password over 72 UTF-8 bytes,
        which bcrypt cannot hash without truncating.
        """
        op = "auth.register_new_user"
        log = self._op_log(op, email=email)
        log.info("registering user")

        try:
            pass_hash = await asyncio.to_thread(self._hasher.hash, password)
        except PasswordTooLongError:
            log.warning("password too long")
            raise InvalidCredentialsError(op) from None
        except Exception as exc:
            log.error("failed to generate password hash: %s", type(exc).__name__)
            raise InternalError(op) from exc

        try:
            user_id = await asyncio.to_thread(self._users.save_user, email, pass_hash)
        except DuplicateEmailError:
            log.warning("user already exists")
            raise UserExistsError(op) from None
        except Exception as exc:
            log.error("failed to save user: %s", type(exc).__name__)
            raise InternalError(op) from exc

        log.info("user registered: user_id=%s", user_id.hex)
        return user_id

    async def is_admin(self, user_id: uuid.UUID) -> bool:
        """Return the admin flag for user_id.

        Raises UserNotFoundError when the store has no such user. user_id is
        assumed well formed; the transport rejects malformed and nil IDs.
        """
        op = "auth.is_admin"
        log = self._op_log(op, user_id=user_id.hex)
        log.info("checking if user is admin")

        try:
            admin = await asyncio.to_thread(self._users.is_admin, user_id)
        except UserRecordNotFoundError:
            log.warning("user not found")
            raise UserNotFoundError(op) from None
        except Exception as exc:
            log.error("failed to check admin flag: %s", type(exc).__name__)
            raise InternalError(op) from exc

        log.info("checked if user is admin: is_admin=%s", admin)
        return admin
