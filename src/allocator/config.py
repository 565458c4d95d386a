"""Application configuration and settings management."""

from typing import Any, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="ALLOC_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Test Centre Allocator API"
    api_prefix: str = "/api"
    osrm_base_url: Optional[str] = Field(
        default=None,
        description="Base URL for the OSRM routing service (e.g., https://router.project-osrm.org).",
    )
    osrm_profile: str = Field(default="driving", description="OSRM profile used for route requests.")
    osrm_timeout_seconds: float = Field(default=15.0, gt=0.0)
    osrm_max_retries: int = Field(default=2, ge=0)
    osrm_backoff_seconds: float = Field(default=0.5, ge=0.0)

    capacity_per_center: int = Field(default=50, ge=1, description="Default seats per test center.")
    use_road_distances: bool = Field(
        default=True,
        description="Use road distances (grid search / OSRM) instead of straight-line Haversine.",
    )
    batch_size: int = Field(default=25, ge=1, description="Pairs processed per distance-matrix batch.")
    batch_delay_seconds: float = Field(default=0.1, ge=0.0, description="Pause between matrix batches.")
    max_parallel_requests: int = Field(default=4, ge=1, description="Concurrent routing calls within a batch.")
    cache_ttl_ms: int = Field(default=300_000, ge=0, description="Lifetime of cached distances.")

    grid_search_enabled: bool = Field(default=True, description="Use grid A* for pairs within range.")
    grid_resolution_deg: float = Field(default=0.001, gt=0.0, description="A* grid cell size (about 100 m).")
    grid_margin_deg: float = Field(default=0.005, ge=0.0, description="Margin around start/goal (about 500 m).")
    grid_max_range_km: float = Field(default=100.0, ge=0.0, description="Longest pair searched on the grid.")
    grid_max_expansions: int = Field(default=200_000, ge=1, description="A* expansion ceiling per search.")

    log_level: str = Field(default="INFO", description="Root logger level for the API process.")

    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:8080",
            "http://127.0.0.1:8080",
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

    @field_validator("osrm_base_url", mode="before")
    @classmethod
    def _strip_trailing_slash(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip()
        return text.rstrip("/") or None


settings = Settings()
