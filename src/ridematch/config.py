"""Application configuration and settings management."""

from typing import Any, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="RIDEMATCH_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "RideMatch Route Timing API"
    api_prefix: str = "/api"
    log_level: str = Field(default="INFO", description="Root log level applied by create_app().")

    google_api_key: Optional[str] = Field(
        default=None,
        description="API key for the Google Maps directions, geocoding and places endpoints.",
    )
    directions_base_url: str = Field(
        default="https://maps.googleapis.com/maps/api",
        description="Base URL of the routing provider.",
    )
    use_directions_api: bool = Field(
        default=True,
        description="When False every scheduling pass uses the geometric estimate only.",
    )
    request_timeout_seconds: float = Field(default=30.0, gt=0.0)
    min_request_interval_seconds: float = Field(
        default=0.3,
        ge=0.0,
        description="Minimum gap between two provider calls made by one client.",
    )
    max_attempts: int = Field(default=3, ge=1)
    backoff_seconds: float = Field(default=1.0, ge=0.0)
    cache_max_entries: int = Field(default=512, ge=1)
    cache_ttl_seconds: Optional[float] = Field(
        default=None,
        description="Expiry for cached provider responses. None keeps entries until evicted by size.",
    )

    average_speed_kmh: float = Field(default=30.0, gt=0.0)
    default_target_time: str = Field(
        default="08:00",
        description="Arrival time used when the destination has no parseable target time.",
    )
    scheduler_max_workers: int = Field(default=1, ge=1)

    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()

    @field_validator("google_api_key", mode="before")
    @classmethod
    def _strip_api_key(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        cleaned = str(value).strip()
        return cleaned or None


settings = Settings()
