"""
core/config.py -- Centralized configuration via pydantic-settings.

All environment variable reads for tokengate happen here. No module should
call os.getenv() or os.environ.get() directly.

Two layers:
  Settings (pydantic-settings BaseSettings): raw process configuration read
      from environment variables and an optional .env file. Field names map
      to env var names (secret_key -> SECRET_KEY).

  SigningConfig (frozen dataclass): the validated, read-only value the token
      service is constructed with. Built once at startup by
      SigningConfig.from_settings() and passed by reference -- nothing in
      auth/ reads Settings on its own.

Security notes:
  SECRET_KEY shorter than 32 chars is rejected outright. HMAC signing relies
  on key entropy -- a short key weakens every token.

  In production mode (DEBUG not set or false), a missing SECRET_KEY is a hard
  startup failure. A random key in production would silently invalidate
  every issued token on restart.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import timedelta
from functools import lru_cache
from typing import Literal

from jose.constants import ALGORITHMS
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("tokengate.config")

MIN_SECRET_LENGTH = 32


class ConfigurationError(ValueError):
    """Signing configuration is missing or malformed. Fatal at startup."""


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file. The model_validator enforces
    production-safety rules at startup.
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
    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    secret_key: str = ""
    database_url: str = "sqlite:///tokengate_users.db"

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    jwt_algorithm: str = "HS256"
    token_expire_seconds: int = 3600

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    # "plain": the user store holds directly comparable secrets.
    # "bcrypt": the user store holds bcrypt hashes.
    secret_scheme: Literal["plain", "bcrypt"] = "plain"

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Enforce SECRET_KEY policy.

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Tokens will not survive restart -- acceptable for local dev.

        Production mode (DEBUG=false or not set): refuse to start if
            SECRET_KEY is missing.

        Both modes: reject keys shorter than 32 characters.
        """
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning("Using auto-generated SECRET_KEY. Tokens will not survive a restart.")
            else:
                raise ValueError(
                    "SECRET_KEY is required in production mode. "
                    "Set SECRET_KEY in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.secret_key) < MIN_SECRET_LENGTH:
            raise ValueError(f"SECRET_KEY must be at least {MIN_SECRET_LENGTH} characters.")
        return self


@dataclass(frozen=True)
class SigningConfig:
    """Read-only signing parameters shared by every issue/verify call.

    Immutable after construction, so one instance can be read concurrently by
    any number of threads without locking.
    """

    secret: str
    algorithm: str
    expires_in: timedelta

    def __post_init__(self) -> None:
        if not isinstance(self.secret, str) or len(self.secret) < MIN_SECRET_LENGTH:
            raise ConfigurationError(f"Signing secret must be a string of at least {MIN_SECRET_LENGTH} characters.")
        # Only symmetric algorithms: the same secret signs and verifies.
        if self.algorithm not in ALGORITHMS.HMAC:
            raise ConfigurationError(
                f"Unsupported signing algorithm {self.algorithm!r}; expected one of {sorted(ALGORITHMS.HMAC)}."
            )
        if not isinstance(self.expires_in, timedelta) or self.expires_in <= timedelta(0):
            raise ConfigurationError("Token expiry must be a positive duration.")

    @classmethod
    def from_settings(cls, settings: Settings) -> "SigningConfig":
        return cls(
            secret=settings.secret_key,
            algorithm=settings.jwt_algorithm,
            expires_in=timedelta(seconds=settings.token_expire_seconds),
        )


@lru_cache
def get_settings() -> Settings:
    """Return the process Settings singleton.

    Only process entry points (asgi.py, main.py) call this. Everything below
    them receives Settings or SigningConfig as an argument.

    In tests: construct Settings(...) directly, or call
    get_settings.cache_clear() after changing environment variables.
    """
    return Settings()
