"""
Centralised application settings loaded from environment / .env file.

Uses pydantic-settings so every value can be overridden via env vars
or the .env file at the project root.
"""

from __future__ import annotations

import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings

_INSECURE_SECRET = "CHANGE-ME-TO-A-RANDOM-64-CHAR-HEX-STRING-IN-PRODUCTION"


class Settings(BaseSettings):
    # ── Project ──────────────────────────────────────────────────────
    PROJECT_NAME: str = "User Directory"
    VERSION: str = "1.0.0"
    PORT: int = 3001

    # ── Database ─────────────────────────────────────────────────────
    # A full URL (DATABASE_URL or DB_URI) wins over the individual parts.
    DATABASE_URL: str | None = None
    DB_URI: str | None = None
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_DATABASE: str = "users"
    DB_USER: str | None = None
    DB_PASSWORD: str | None = None

    # ── Session tokens ───────────────────────────────────────────────
    JWT_SECRET: str = _INSECURE_SECRET
    JWT_ALGORITHM: str = "HS256"
    TOKEN_EXPIRE_DAYS: int = 30
    BCRYPT_ROUNDS: int = 10

    # ── Rate limiting ────────────────────────────────────────────────
    RATE_LIMIT_ENABLED: bool = True
    LOGIN_RATE_LIMIT: str = "5/minute"

    # ── CORS ─────────────────────────────────────────────────────────
    CORS_ORIGINS: list[str] = ["*"]

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors(cls, v: object) -> list[str]:
        if isinstance(v, str):
            return [o.strip() for o in v.split(",") if o.strip()]
        return v  # type: ignore[return-value]

    # ── Logging ──────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"

    # ── First SUPERADMIN (seeded on startup when both are set) ──────
    FIRST_ADMIN_EMAIL: str | None = None
    FIRST_ADMIN_PASSWORD: str | None = None
    FIRST_ADMIN_NAME: str = "System Administrator"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore",
    }

    @property
    def database_url(self) -> str:
        """Resolve the SQLAlchemy URL from a full URL or its parts."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        if self.DB_URI:
            return self.DB_URI
        credentials = ""
        if self.DB_USER and self.DB_PASSWORD:
            credentials = f"{self.DB_USER}:{self.DB_PASSWORD}@"
        return (
            f"postgresql+asyncpg://{credentials}"
            f"{self.DB_HOST}:{self.DB_PORT}/{self.DB_DATABASE}"
        )


settings = Settings()

if settings.JWT_SECRET == _INSECURE_SECRET:
    logging.getLogger("user_directory.core.config").warning(
        "You are running with the default INSECURE JWT secret! "
        "Set JWT_SECRET in your environment or .env file."
    )
