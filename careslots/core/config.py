from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env from project root so it loads regardless of cwd
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"

APPOINTMENT_STATUSES = ("scheduled", "pending", "confirmed", "completed", "cancelled")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(str(_ENV_FILE), ".env", "../.env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str
    database_ssl: bool = False

    # CORS
    cors_origins: str = "http://localhost:3000"

    # Scheduling rules. No default zone: every resolution is anchored to this one.
    provider_timezone: str
    default_appointment_duration_minutes: int = 60
    blocking_statuses: str = "scheduled,pending"

    # Env
    env: str = "development"

    @field_validator("provider_timezone")
    @classmethod
    def _known_timezone(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("provider_timezone is required")
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError, OSError) as e:
            raise ValueError(f"Unknown IANA time zone: {v!r}") from e
        return v

    @field_validator("default_appointment_duration_minutes")
    @classmethod
    def _positive_duration(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("default_appointment_duration_minutes must be positive")
        return v

    @field_validator("blocking_statuses")
    @classmethod
    def _known_statuses(cls, v: str) -> str:
        unknown = {s.strip() for s in v.split(",") if s.strip()} - set(APPOINTMENT_STATUSES)
        if unknown:
            raise ValueError(f"Unknown appointment status(es): {sorted(unknown)}")
        return v

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def blocking_status_set(self) -> frozenset[str]:
        return frozenset(s.strip() for s in self.blocking_statuses.split(",") if s.strip())


settings = Settings()
