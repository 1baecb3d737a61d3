"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic beyond identifier
parsing). Dataclasses own domain shape; the store, engine and routes do the
work.

Identifiers: users are keyed by a UUID. The canonical string form is the
32-character lowercase hex encoding (uuid.UUID.hex). The all-zero UUID is the
reserved "empty" value and never identifies a stored user.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass

NIL_USER_ID = uuid.UUID(int=0)

# app_id 0 means "not supplied" and is never a valid app.
EMPTY_APP_ID = 0

_USER_ID_RE = re.compile(r"[0-9a-fA-F]{32}")


def new_user_id() -> uuid.UUID:
    return uuid.uuid4()


def parse_user_id(value: str) -> uuid.UUID:
    """Parse the hex transport encoding of a user ID.

    Raises ValueError for anything that is not exactly 32 hex characters.
    The nil sentinel parses successfully; callers decide whether to reject it.
    """
    # uuid.UUID(hex=...) tolerates signs, whitespace and underscores.
    if not _USER_ID_RE.fullmatch(value):
        raise ValueError("user id must be exactly 32 hex characters")
    return uuid.UUID(hex=value)


@dataclass
class User:
    """A registered identity.

    pass_hash is the bcrypt output (salt and cost embedded). The plaintext
    password is never stored or carried on this object.

    is_admin is set only by operator tooling (main.py set-admin); the engine
    reads it but never writes it.
    """

    email: str
    pass_hash: bytes
    id: uuid.UUID = NIL_USER_ID
    is_admin: bool = False
    created_at: str | None = None


@dataclass
class App:
    """A tenant application that session tokens are scoped to.

    Each app signs its tokens with its own secret, so a token minted for one
    app cannot be verified (or replayed) against another.
    """

    id: int
    name: str
    secret: str
    created_at: str | None = None


@dataclass
class TokenClaims:
    """Decoded claims of a verified session token."""

    user_id: uuid.UUID
    email: str
    app_id: int
    issued_at: int
    expires_at: int
