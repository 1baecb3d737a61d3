"""
auth/errors.py -- Error taxonomy for the auth engine and its storage layer.

Two families live here:

  StorageError subclasses are raised by UserStore / AppRegistry
  implementations (auth/store.py, test fakes). They describe what the store
  saw: a duplicate email, a missing row.

  AuthError subclasses are raised by AuthEngine (auth/engine.py). They are the
  stable kinds the transport layer maps to status codes. The engine classifies
  every failure exactly once; nothing above it needs to inspect a StorageError.

Neither family knows about HTTP. api/routes/v1/auth.py owns the mapping.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Storage conditions
# ---------------------------------------------------------------------------


class StorageError(Exception):
    """Base class for conditions reported by a store implementation."""


class DuplicateEmailError(StorageError):
    """The unique index on users.email rejected an insert."""


class UserRecordNotFoundError(StorageError):
    """No user row matched the lookup key."""


class AppRecordNotFoundError(StorageError):
    """No app row matched the lookup key."""


# ---------------------------------------------------------------------------
# Engine kinds
# ---------------------------------------------------------------------------


class AuthError(Exception):
    """Base class for classified engine failures.

    op is the engine operation that failed ("auth.login", ...). It is carried
    for diagnostics only and never contains caller-supplied secrets.
    """

    def __init__(self, op: str, message: str) -> None:
        super().__init__(f"{op}: {message}")
        self.op = op
        self.message = message


class InvalidCredentialsError(AuthError):
    """Unknown email or wrong password. Deliberately indistinguishable."""

    def __init__(self, op: str) -> None:
        super().__init__(op, "invalid credentials")


class UserExistsError(AuthError):
    def __init__(self, op: str) -> None:
        super().__init__(op, "user already exists")


class AppNotFoundError(AuthError):
    def __init__(self, op: str) -> None:
        super().__init__(op, "invalid app id")


class UserNotFoundError(AuthError):
    def __init__(self, op: str) -> None:
        super().__init__(op, "user not found")


class InternalError(AuthError):
    """Unexpected store, hasher or signer failure.

    The original exception is chained (raise ... from exc) for server-side
    logs; message stays generic so it is safe to surface.
    """

    def __init__(self, op: str) -> None:
        super().__init__(op, "internal error")


__all__ = [
    "StorageError",
    "DuplicateEmailError",
    "UserRecordNotFoundError",
    "AppRecordNotFoundError",
    "AuthError",
    "InvalidCredentialsError",
    "UserExistsError",
    "AppNotFoundError",
    "UserNotFoundError",
    "InternalError",
]
