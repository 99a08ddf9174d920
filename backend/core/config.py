from __future__ import annotations

import re
from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic.aliases import AliasChoices
from pydantic_settings import BaseSettings, SettingsConfigDict


BACKEND_DIR = Path(__file__).resolve().parents[1]

_HHMM_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=BACKEND_DIR / ".env", env_file_encoding="utf-8", extra="ignore")

    database_url: str

    # Auth
    jwt_secret_key: str = Field(
        validation_alias=AliasChoices("jwt_secret_key", "jwt_secret", "JWT_SECRET_KEY", "JWT_SECRET")
    )
    jwt_algorithm: str = Field(default="HS256", validation_alias=AliasChoices("jwt_algorithm", "JWT_ALGORITHM"))
    access_token_expire_minutes: int = Field(
        default=480,
        validation_alias=AliasChoices("access_token_expire_minutes", "ACCESS_TOKEN_EXPIRE_MINUTES"),
    )

    cookie_samesite: str = Field(
        default="lax",
        validation_alias=AliasChoices("cookie_samesite", "COOKIE_SAMESITE"),
    )

    # Optional bootstrap: seed an initial admin user.
    # Only used if BOTH username + password are provided.
    seed_admin_username: str | None = Field(
        default=None,
        validation_alias=AliasChoices("seed_admin_username", "SEED_ADMIN_USERNAME"),
    )
    seed_admin_password: str | None = Field(
        default=None,
        validation_alias=AliasChoices("seed_admin_password", "SEED_ADMIN_PASSWORD"),
    )

    # Runtime
    environment: str = Field(default="development", validation_alias=AliasChoices("environment", "ENVIRONMENT"))
    frontend_origin: str = Field(
        default="http://localhost:5173",
        validation_alias=AliasChoices("frontend_origin", "FRONTEND_ORIGIN"),
    )

    # Data isolation
    # - shared: all admins see the same schedule (tenant_id IS NULL)
    # - per_tenant: data is scoped to current_user.tenant_id (one school per tenant)
    tenant_mode: str = Field(
        default="shared",
        validation_alias=AliasChoices("tenant_mode", "TENANT_MODE"),
    )

    # Slot catalog (the grid's time axis)
    slot_first_time: str = Field(default="08:00", validation_alias=AliasChoices("slot_first_time", "SLOT_FIRST_TIME"))
    slot_last_time: str = Field(default="22:30", validation_alias=AliasChoices("slot_last_time", "SLOT_LAST_TIME"))
    slot_minutes: int = Field(default=30, validation_alias=AliasChoices("slot_minutes", "SLOT_MINUTES"))

    # What to do with a start time that is not on the slot grid:
    # - reject: fail with a validation error
    # - snap: place the lesson on the slot that holds its start time
    off_grid_policy: str = Field(
        default="reject",
        validation_alias=AliasChoices("off_grid_policy", "OFF_GRID_POLICY"),
    )

    # Day index 0 of the grid maps to this weekday (0=Monday .. 6=Sunday).
    # Default is a Friday-first week.
    week_start_weekday: int = Field(
        default=4,
        validation_alias=AliasChoices("week_start_weekday", "WEEK_START_WEEKDAY"),
    )
    lesson_dates_weeks: int = Field(
        default=104,
        validation_alias=AliasChoices("lesson_dates_weeks", "LESSON_DATES_WEEKS"),
    )

    @field_validator("frontend_origin")
    @classmethod
    def _normalize_frontend_origin(cls, v: str) -> str:
        # Starlette CORS expects the Origin to match exactly (no trailing slash).
        return v.strip().rstrip("/")

    @field_validator("cookie_samesite")
    @classmethod
    def _normalize_cookie_samesite(cls, v: str) -> str:
        return (v or "lax").strip().lower()

    @field_validator("tenant_mode")
    @classmethod
    def _normalize_tenant_mode(cls, v: str) -> str:
        v = (v or "shared").strip().lower()
        if v not in {"shared", "per_tenant"}:
            raise ValueError("TENANT_MODE must be 'shared' or 'per_tenant'")
        return v

    @field_validator("off_grid_policy")
    @classmethod
    def _normalize_off_grid_policy(cls, v: str) -> str:
        v = (v or "reject").strip().lower()
        if v not in {"reject", "snap"}:
            raise ValueError("OFF_GRID_POLICY must be 'reject' or 'snap'")
        return v

    @field_validator("slot_first_time", "slot_last_time")
    @classmethod
    def _validate_slot_time(cls, v: str) -> str:
        v = (v or "").strip()
        if not _HHMM_RE.match(v):
            raise ValueError("slot times must be HH:MM (24-hour)")
        return v

    @field_validator("slot_minutes")
    @classmethod
    def _validate_slot_minutes(cls, v: int) -> int:
        if int(v) < 1 or int(v) > 240:
            raise ValueError("SLOT_MINUTES must be between 1 and 240")
        return int(v)

    @field_validator("week_start_weekday")
    @classmethod
    def _validate_week_start_weekday(cls, v: int) -> int:
        if int(v) < 0 or int(v) > 6:
            raise ValueError("WEEK_START_WEEKDAY must be 0..6 (0=Monday)")
        return int(v)

    @field_validator("lesson_dates_weeks")
    @classmethod
    def _validate_lesson_dates_weeks(cls, v: int) -> int:
        if int(v) < 1:
            raise ValueError("LESSON_DATES_WEEKS must be >= 1")
        return int(v)

    @field_validator("seed_admin_username")
    @classmethod
    def _normalize_seed_admin_username(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @model_validator(mode="after")
    def _check_slot_window(self) -> "Settings":
        if self.slot_last_time < self.slot_first_time:
            raise ValueError("SLOT_LAST_TIME must not be earlier than SLOT_FIRST_TIME")
        return self


settings = Settings()
