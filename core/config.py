"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for the Exam Adda API happen here. No module
should call os.getenv() or os.environ.get() directly -- import get_settings()
instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. This is
      the official FastAPI dependency injection pattern for config.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. jwt_secret -> JWT_SECRET). Type coercion and validation are built in.

  @model_validator(mode="after"): Runs cross-field validation after all fields
      are resolved from environment. Development mode generates a signing
      secret and falls back to a local SQLite file; every other environment
      refuses to start without JWT_SECRET and DATABASE_URL.

Security notes:
  JWT_SECRET shorter than 32 chars is rejected outright. HS256 signing relies
  on key entropy -- a short key weakens every issued token.

  A random per-process secret means tokens die with the process. That is
  acceptable on a laptop and never acceptable in a deployment.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/, or institutes/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("examadda.config")

_DEVELOPMENT_ENVIRONMENTS = {"development", "dev", "local"}

_DEV_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'examadda.db'}"


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

    environment: str = "production"
    # Empty string is the sentinel for "not configured". The model_validator
    # below either fills in a development value or raises.
    jwt_secret: str = ""
    database_url: str = ""

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    token_expire_seconds: int = 3600
    bcrypt_rounds: int = 12

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    login_rate_limit: str = "10/minute"
    rate_limit_enabled: bool = True
    cors_origins: list[str] = ["http://localhost:3001"]
    allowed_hosts: list[str] = ["*"]

    # ------------------------------------------------------------------
    # Admin CLI (python main.py seed-superadmin)
    # ------------------------------------------------------------------

    super_admin_email: str = ""
    super_admin_password: str = ""

    @property
    def is_development(self) -> bool:
        return self.environment.strip().lower() in _DEVELOPMENT_ENVIRONMENTS

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_required_secrets(self) -> "Settings":
        """Enforce the JWT_SECRET and DATABASE_URL policy.

        Development (ENVIRONMENT=development|dev|local): a missing secret is
            replaced by a random one, a missing database URL by a local
            SQLite file. Both emit a warning.

        Any other environment: a missing JWT_SECRET or DATABASE_URL is a
            start-up failure.

        All environments: secrets shorter than 32 characters are rejected.
        """
        self.jwt_secret = self.jwt_secret.strip()
        if not self.jwt_secret:
            if self.is_development:
                self.jwt_secret = secrets.token_hex(32)
                logger.warning("Using auto-generated JWT_SECRET. Tokens will not survive a restart.")
            else:
                raise ValueError(
                    "JWT_SECRET is required when ENVIRONMENT is not development. "
                    "Set JWT_SECRET in your environment or .env file."
                )
        if len(self.jwt_secret) < 32:
            raise ValueError("JWT_SECRET must be at least 32 characters.")

        self.database_url = self.database_url.strip()
        if not self.database_url:
            if self.is_development:
                self.database_url = _DEV_DB_URL
                logger.warning("DATABASE_URL not set -- using local SQLite database at %s", _DEV_DB_URL)
            else:
                raise ValueError("DATABASE_URL is required when ENVIRONMENT is not development.")

        if not 4 <= self.bcrypt_rounds <= 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
