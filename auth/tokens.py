"""
auth/tokens.py -- Password hashing and per-app session token utilities.

Security design decisions:
  Passwords: bcrypt, used directly (no passlib wrapper). bcrypt is the right
       choice for low-entropy secrets because its cost factor makes brute-force
       expensive. The hash output embeds salt and cost, so verification needs
       nothing but the stored bytes. bcrypt.checkpw compares in constant time.

       PasswordHasher.dummy_verify() runs a full checkpw against a throwaway
       hash so the engine can spend the same time on an unknown email as on a
       wrong password [C1].

  Tokens: python-jose JWTs with HS256. Every token is signed with the secret
       of the app it was minted for and carries that app's id as the audience.
       A verifier holding app B's secret cannot validate app A's token, and a
       token replayed to app B fails the audience check even if the secrets
       collide. Expiry is an absolute timestamp; the issuer applies no leeway.

  No state: TokenIssuer holds only the algorithm name. It does not remember
       what it issued -- there is no revocation or renewal.

Layer rule: no imports from api/ or core/. Callers pass cost and TTL in.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt

from auth.models import App, TokenClaims, User

logger = logging.getLogger("sso.auth.tokens")

_ALGORITHM = "HS256"

DEFAULT_ROUNDS = 12

# bcrypt ignores (4.x) or rejects (5.x) input past this many bytes. The hasher
# enforces it itself so behaviour does not depend on the installed bcrypt.
MAX_PASSWORD_BYTES = 72


class PasswordTooLongError(ValueError):
    """Password exceeds MAX_PASSWORD_BYTES once UTF-8 encoded."""


# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


class PasswordHasher:
    """bcrypt hash/verify with a fixed cost factor.

    Usage:
        hasher = PasswordHasher(rounds=12)
        digest = hasher.hash("s3cret")
        hasher.verify(digest, "s3cret")   # True
    """

    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        self.rounds = rounds
        self._dummy_hash: bytes | None = None

    def hash(self, plain: str) -> bytes:
        """Return a salted bcrypt digest of plain.

        Raises PasswordTooLongError past MAX_PASSWORD_BYTES rather than letting
        bcrypt truncate the input.
        """
        raw = plain.encode("utf-8")
        if len(raw) > MAX_PASSWORD_BYTES:
            raise PasswordTooLongError(f"password exceeds {MAX_PASSWORD_BYTES} bytes")
        return bcrypt.hashpw(raw, bcrypt.gensalt(rounds=self.rounds))

    def verify(self, hashed: bytes, plain: str) -> bool:
        """Return True if plain matches hashed.

        A malformed stored hash raises ValueError from bcrypt. That is a data
        fault, not a wrong password, so it propagates to the caller.

        A password past MAX_PASSWORD_BYTES can never have been hashed, so it
        is a mismatch. One checkpw still runs to keep the timing.
        """
        raw = plain.encode("utf-8")
        if len(raw) > MAX_PASSWORD_BYTES:
            bcrypt.checkpw(raw[:MAX_PASSWORD_BYTES], hashed)
            return False
        return bcrypt.checkpw(raw, hashed)

    def dummy_verify(self, plain: str) -> None:
        """Burn one verify worth of CPU against a throwaway hash [C1].

        The dummy hash is built lazily at this hasher's cost so the timing
        matches a real verify.
        """
        if self._dummy_hash is None:
            self._dummy_hash = self.hash("sso_timing_dummy")
        bcrypt.checkpw(plain.encode("utf-8")[:MAX_PASSWORD_BYTES], self._dummy_hash)


# ---------------------------------------------------------------------------
# Token issue / verify
# ---------------------------------------------------------------------------


class TokenIssuer:
    """Mint and check per-app signed session tokens."""

    algorithm = _ALGORITHM

    def issue(self, user: User, app: App, ttl: timedelta, now: datetime | None = None) -> str:
        """Encode a signed JWT binding user and app for ttl from now.

        Args:
            user: The authenticated user. id and email become claims.
            app:  The resolved app. Its secret signs the token; its id is the
                  audience.
            ttl:  Token lifetime. exp = now + ttl.
            now:  Issue time. Defaults to the current UTC time; tests pass a
                  fixed value to produce already-expired tokens.
        """
        issued = now or datetime.now(timezone.utc)
        expire = issued + ttl
        payload = {
            "sub": user.id.hex,
            "email": user.email,
            "aud": str(app.id),
            "app_id": app.id,
            "iat": int(issued.timestamp()),
            "exp": int(expire.timestamp()),
        }
        return jwt.encode(payload, app.secret, algorithm=self.algorithm)

    def verify(self, token: str, app: App) -> TokenClaims | None:
        """Decode and verify a token for app. Returns the claims or None on any failure.

        Returning None (rather than raising) keeps relying parties simple: any
        invalid, expired or foreign token is treated as unauthenticated.
        """
        try:
            payload = jwt.decode(token, app.secret, algorithms=[self.algorithm], audience=str(app.id))
        except JWTError as exc:
            logger.debug("token rejected for app_id=%s: %s", app.id, type(exc).__name__)
            return None
        try:
            return TokenClaims(
                user_id=uuid.UUID(hex=payload["sub"]),
                email=payload["email"],
                app_id=int(payload["app_id"]),
                issued_at=int(payload["iat"]),
                expires_at=int(payload["exp"]),
            )
        except (KeyError, TypeError, ValueError):
            return None
