"""Application configuration and settings management."""

from datetime import time
from typing import Annotated, Any, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="SLOTFINDER_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Slot Finder API"
    api_prefix: str = "/api"
    frontend_allowed_origins: Annotated[tuple[str, ...], NoDecode] = Field(
        default=("http://localhost:3000", "http://127.0.0.1:3000"),
        description="Permitted web origins for browser clients (CORS).",
    )

    # Technician home base (start and end point of every day)
    home_base_lat: float = Field(default=55.7956, ge=-90.0, le=90.0)
    home_base_lng: float = Field(default=-3.7939, ge=-180.0, le=180.0)

    # Routing providers
    routing_providers: Annotated[tuple[str, ...], NoDecode] = Field(
        default=("google", "osrm"),
        description="Provider order for drive-time lookups. Unconfigured providers are skipped.",
    )
    google_maps_api_key: Optional[str] = Field(
        default=None,
        description="API key for the Google Distance Matrix service.",
    )
    osrm_base_url: Optional[str] = Field(
        default=None,
        description="Base URL for the OSRM routing service (e.g., http://localhost:5000).",
    )
    osrm_profile: str = Field(default="driving", description="OSRM profile used for drive times.")
    routing_timeout_seconds: float = Field(default=10.0, gt=0.0)
    routing_max_retries: int = Field(default=2, ge=0)
    routing_backoff_seconds: float = Field(default=0.5, ge=0.0)
    haversine_speed_kmh: float = Field(default=40.0, gt=0.0)
    drive_cache_ttl_seconds: float = Field(default=600.0, gt=0.0)

    # Slot search
    slot_step_mins: int = Field(default=15, ge=1)
    day_start: time = Field(default=time(9, 0), description="Assumed day start when no earlier appointment exists.")
    day_end: time = Field(default=time(17, 0), description="Assumed day end when no later appointment exists.")
    buffer_mins: int = Field(default=0, ge=0, description="Extra minutes reserved on top of each drive.")
    search_days: int = Field(default=7, ge=1)
    max_candidates_checked: int = Field(default=120, ge=1)
    min_feasible_results: int = Field(default=5, ge=0)
    validation_concurrency: int = Field(default=4, ge=1)

    # Supabase configuration
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL (e.g., https://xxx.supabase.co).",
    )
    supabase_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key for backend operations.",
    )

    @field_validator("frontend_allowed_origins", "routing_providers", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            # Try JSON first
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

    @field_validator("routing_providers")
    @classmethod
    def _normalize_provider_names(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        known = {"google", "osrm", "haversine"}
        names = tuple(name.strip().lower() for name in value)
        unknown = [name for name in names if name not in known]
        if unknown:
            raise ValueError(f"Unknown routing provider(s): {', '.join(unknown)}")
        return names


settings = Settings()
