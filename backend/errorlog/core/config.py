# errorlog/core/config.py
"""
Central configuration for the error log service.

This module defines a single `settings` object (Pydantic BaseSettings) that reads
configuration from environment variables and a local `.env` file.

Guiding principles:
- Config is declared once, imported everywhere.
- Sensible defaults for local dev.
- Secrets live in env vars; `.env` is never committed.
"""

from __future__ import annotations

from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables and optional `.env`.

    `.env` location:
      - uvicorn is run from `backend/`, so `.env` should live in `backend/.env`.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # -----------------------
    # Runtime
    # -----------------------
    ENV: str = Field(default="dev", description="Environment: dev|test|prod")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level (e.g., INFO, DEBUG)")

    # -----------------------
    # API / CORS
    # -----------------------
    # Reporting clients (mobile apps, other servers) post from anywhere.
    CORS_ALLOW_ORIGINS: List[str] = Field(
        default_factory=lambda: ["*"],
        description="Allowed CORS origins",
    )

    # -----------------------
    # Payload limits
    # -----------------------
    MAX_PAYLOAD_KB: int = Field(
        default=256,
        ge=1,
        le=10240,
        description="Max request body size in kilobytes",
    )

    @property
    def MAX_PAYLOAD_BYTES(self) -> int:
        """Derived payload size limit in bytes."""
        return int(self.MAX_PAYLOAD_KB) * 1024

    # -----------------------
    # Database
    # -----------------------
    DATABASE_URL: str = Field(
        default="sqlite+aiosqlite:///./data/errors.db",
        description="SQLAlchemy async database URL",
    )

    # -----------------------
    # Listing
    # -----------------------
    TIMEZONE: str = Field(
        default="UTC",
        description="Time zone used to turn startDate/endDate into whole calendar days",
    )
    DEFAULT_PAGE_SIZE: int = Field(default=50, ge=0, description="Page size when limit is absent")
    MAX_PAGE_SIZE: int = Field(default=500, ge=1, description="Upper bound applied to limit")

    # -----------------------
    # Ingestion / access policy
    # -----------------------
    DEFAULT_OWNER_ID: Optional[str] = Field(
        default=None,
        description="Owner assigned to ingested events that carry no userId (unset = reject)",
    )
    ALLOW_PUBLIC_EVENT_ACCESS: bool = Field(
        default=True,
        description="Allow reading/deleting a single event by id without a session",
    )

    # -----------------------
    # Auth
    # -----------------------
    SESSION_COOKIE_NAMES: List[str] = Field(
        default_factory=lambda: [
            "authjs.session-token",
            "__Secure-authjs.session-token",
            "next-auth.session-token",
            "__Secure-next-auth.session-token",
        ],
        description="Cookie names that may carry a session token",
    )

    # -----------------------
    # Seeding
    # -----------------------
    DEFAULT_USER_EMAIL: str = Field(default="admin@example.com")
    DEFAULT_USER_PASSWORD: str = Field(default="admin123")
    DEFAULT_USER_NAME: str = Field(default="Admin User")
    ANONYMOUS_USER_EMAIL: str = Field(default="anonymous@system.local")

    # -----------------------
    # Validators / normalizers
    # -----------------------
    @field_validator("ENV")
    @classmethod
    def _normalize_env(cls, v: str) -> str:
        return (v or "dev").strip().lower()

    @field_validator("LOG_LEVEL")
    @classmethod
    def _normalize_log_level(cls, v: str) -> str:
        return (v or "INFO").strip().upper()

    @field_validator("CORS_ALLOW_ORIGINS", "SESSION_COOKIE_NAMES")
    @classmethod
    def _clean_list(cls, v: List[str]) -> List[str]:
        cleaned = []
        for item in v or []:
            s = (item or "").strip()
            if s:
                cleaned.append(s)
        return cleaned

    @field_validator("TIMEZONE")
    @classmethod
    def _validate_timezone(cls, v: str) -> str:
        v = (v or "UTC").strip()
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown time zone: {v}") from e
        return v

    @field_validator("DEFAULT_OWNER_ID")
    @classmethod
    def _blank_owner_is_unset(cls, v: Optional[str]) -> Optional[str]:
        v = (v or "").strip()
        return v or None

    @field_validator("DATABASE_URL", "DEFAULT_USER_EMAIL", "ANONYMOUS_USER_EMAIL")
    @classmethod
    def _strip_strings(cls, v: str) -> str:
        return (v or "").strip()


# Singleton instance imported across the codebase.
settings = Settings()
