"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for Taskboard happen here. No module should
call os.getenv() or os.environ.get() directly. The process builds one Settings
instance at startup and hands it to create_app(); everything downstream reads
it from app.state.settings.

Environment variables (field names uppercased):
  JWT_SECRET               signing secret for bearer tokens (required)
  TOKEN_EXPIRE_SECONDS     bearer token lifetime, default 1 hour
  BCRYPT_ROUNDS            bcrypt work factor, default 10
  DATABASE_URL             SQLAlchemy URL shared by the user and task stores
  HOST / PORT              bind address for `taskboard` (default port 3000)
  CORS_ORIGINS             JSON list of allowed browser origins
  REQUEST_TIMEOUT_SECONDS  per-request deadline enforced by middleware
  LOG_LEVEL                root logging level
  DEBUG                    dev mode; auto-generates JWT_SECRET when unset

Layer rule: core/ is the kernel. This module may not import from api/,
auth/, or tasks/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("taskboard.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'taskboard.db'}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields except jwt_secret have defaults. Tests construct Settings(...)
    directly with explicit values instead of going through get_settings().
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

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    # Empty string is the sentinel for "not configured". The validator
    # below either generates a dev secret or raises.
    jwt_secret: str = ""
    token_expire_seconds: int = Field(default=3600, gt=0)
    bcrypt_rounds: int = Field(default=10, ge=4, le=31)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    database_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # Server
    # ------------------------------------------------------------------

    host: str = "0.0.0.0"  # noqa: S104
    port: int = 3000
    cors_origins: list[str] = ["*"]
    request_timeout_seconds: float = Field(default=15.0, gt=0)

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_jwt_secret(self) -> "Settings":
        """Enforce the JWT_SECRET policy.

        DEBUG=true: a missing secret is replaced by a random one and a warning
            is logged. Tokens will not survive a restart.
        Otherwise: a missing secret is a startup failure.
        Both modes: secrets shorter than 32 characters are rejected.
        """
        if not self.jwt_secret:
            if self.debug:
                self.jwt_secret = secrets.token_hex(32)
                logger.warning("Using auto-generated JWT_SECRET. Tokens will not persist across restarts.")
            else:
                raise ValueError(
                    "JWT_SECRET is required. "
                    "Set JWT_SECRET in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.jwt_secret) < 32:
            raise ValueError("JWT_SECRET must be at least 32 characters.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide Settings instance, built on first call.

    Only the process entry points (asgi.py) call this. Library code receives
    the instance explicitly.
    """
    return Settings()
