"""
Environment-driven configuration for the CaseRelay backend.

Values are read from ``CASERELAY_*`` environment variables (or a ``.env``
file next to ``manage.py``) and mapped onto Django settings in
``caserelay.settings``.  Nothing outside ``settings.py`` should import this
module; application code reads ``django.conf.settings`` instead.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent


class CaseRelaySettings(BaseSettings):
    """Application settings loaded from the environment."""

    model_config = SettingsConfigDict(
        env_prefix="CASERELAY_",
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Core ─────────────────────────────────────────────────────────
    secret_key: str = Field(
        default="django-insecure-caserelay-development-key-change-me",
        description="Django SECRET_KEY; also signs JWTs.",
    )
    debug: bool = Field(default=True)
    allowed_hosts: str = Field(
        default="localhost,127.0.0.1",
        description="Comma-separated host names.",
    )
    log_level: str = Field(default="INFO")

    # ── Database ─────────────────────────────────────────────────────
    database_engine: str = Field(default="django.db.backends.sqlite3")
    database_name: str = Field(default=str(BASE_DIR / "db.sqlite3"))
    database_user: str = ""
    database_password: str = ""
    database_host: str = ""
    database_port: str = ""

    # ── JWT ──────────────────────────────────────────────────────────
    jwt_access_minutes: int = Field(default=120, ge=1)
    jwt_refresh_days: int = Field(default=7, ge=1)

    # ── Account security ─────────────────────────────────────────────
    lockout_threshold: int = Field(
        default=5,
        ge=1,
        description="Failed login attempts before the account is locked.",
    )
    lockout_minutes: int = Field(default=30, ge=1)

    # ── Cases ────────────────────────────────────────────────────────
    unassigned_officer_id: str = Field(
        default="Unassigned",
        description="Sentinel stored on cases whose officer was deleted.",
    )

    # ── E-mail ───────────────────────────────────────────────────────
    email_backend: str = Field(
        default="django.core.mail.backends.console.EmailBackend",
    )
    email_host: str = "smtp.gmail.com"
    email_port: int = 465
    email_host_user: str = ""
    email_host_password: str = ""
    email_use_ssl: bool = True
    email_timeout: int = 10
    default_from_email: str = "CaseRelay <no-reply@caserelay.local>"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def allowed_hosts_list(self) -> list[str]:
        return [h.strip() for h in self.allowed_hosts.split(",") if h.strip()]


env = CaseRelaySettings()
