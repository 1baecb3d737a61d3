"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for the auth service happen here. No module
should call os.getenv() or os.environ.get() directly -- import get_settings()
instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. This is
      the official FastAPI dependency injection pattern for config.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. token_ttl_seconds -> TOKEN_TTL_SECONDS). Type coercion and
      validation are built in.

  @model_validator(mode="after"): Runs cross-field validation after all fields
      are resolved from environment.

Signing secrets are NOT configured here. Every app carries its own secret in
the apps table (see auth/store.py), so there is no process-wide signing key.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("sso.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'sso_auth.db'}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    log_level: str = "INFO"
    database_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    # Session token lifetime, applied to every app.
    token_ttl_seconds: int = 3600
    # bcrypt cost factor. 12 rounds is roughly 200ms on commodity hardware;
    # tests drop to 4 (the bcrypt minimum).
    bcrypt_rounds: int = 12

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    # Deadline applied to each engine call by the HTTP layer.
    request_timeout_seconds: float = 10.0

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_limits(self) -> "Settings":
        """Refuse to start with values that would break token or hash semantics."""
        if self.token_ttl_seconds <= 0:
            raise ValueError("TOKEN_TTL_SECONDS must be a positive number of seconds.")
        if not 4 <= self.bcrypt_rounds <= 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31.")
        if self.request_timeout_seconds <= 0:
            raise ValueError("REQUEST_TIMEOUT_SECONDS must be positive.")
        if not self.debug and self.bcrypt_rounds < 10:
            logger.warning("WARNING: bcrypt_rounds=%d is below the production floor of 10.", self.bcrypt_rounds)
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    Uses lru_cache so Settings() is instantiated exactly once -- at first call.
    All modules should call get_settings() rather than constructing Settings()
    directly.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
