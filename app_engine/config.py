"""Application configuration loaded from environment variables.

Uses ``pydantic-settings`` for automatic env-var loading, type coercion,
and ``.env`` file support.  Validates required settings on import -- fails
fast if critical vars are missing outside of tests.
"""

VERSION = "0.1.0"

import sys

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# ---------------------------------------------------------------------------
# Required var names -- checked after instantiation (not during), so tests
# that leave them blank still work.
# ---------------------------------------------------------------------------
_REQUIRED_VARS: list[str] = [
    "DATABASE_URL",
    "JWT_SECRET",
    "USERS_WEBHOOK_SECRET",
]


class Settings(BaseSettings):
    """Application settings -- sourced from environment / ``.env`` file.

    Required vars (must be set in production, may be blank in test):
      DATABASE_URL, JWT_SECRET, USERS_WEBHOOK_SECRET
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # -- required in production (default empty so tests don't fail) --
    DATABASE_URL: str = ""
    JWT_SECRET: str = ""
    USERS_WEBHOOK_SECRET: str = ""

    # -- external Users service --
    USERS_SERVICE_URL: str = "http://localhost:8000/users"
    USERS_SERVICE_TIMEOUT: float = 10.0
    JWT_AUDIENCE: str = "modepress"
    JWT_ISSUER: str = "modepress"

    # -- optional with sensible defaults --
    API_PREFIX: str = "/app-engine"
    FRONTEND_URL: str = "http://localhost:5174"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""

    # Plan ceiling given to freshly activated accounts.
    DEFAULT_MAX_PROJECTS: int = Field(default=5, ge=0, le=10_000)
    # Hard cap applied to ``limit`` on list endpoints (0 = unlimited).
    MAX_PAGE_LIMIT: int = Field(default=0, ge=0)
    # Identity events accepted per client IP per minute.
    EVENTS_RATE_LIMIT: int = Field(default=120, ge=1)

    # -- database pool --
    DB_POOL_MAX_SIZE: int = Field(default=10, ge=1)
    DB_STATEMENT_TIMEOUT_MS: int = Field(default=15_000, ge=0)


settings = Settings()


# Validate at import time -- but only when NOT running under pytest.
if "pytest" not in sys.modules:
    _missing = [v for v in _REQUIRED_VARS if not getattr(settings, v)]
    if _missing:
        print(
            f"[config] FATAL: missing required environment variables: "
            f"{', '.join(_missing)}",
            file=sys.stderr,
        )
        sys.exit(1)
