"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="ZPM_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Zone Price Matrix Configurator API"
    api_prefix: str = "/api"
    data_root: Path = Field(default=Path("data"), description="Root directory for static data and outputs.")
    pincode_file: Path = Field(
        default=Path("data/pincodes.json"),
        description="Geography dataset (JSON array, CSV or XLSX) with pincode/state/city/zone columns.",
    )
    sessions_dir: Path = Field(
        default=Path("data/sessions"),
        description="Directory holding one JSON snapshot per configurator session.",
    )
    max_zones: int = Field(default=28, ge=1, description="Upper bound on selected zone codes across all regions.")
    price_min: float = Field(default=0.0, ge=0.0)
    price_max: float = Field(default=999.0, ge=0.0)
    price_decimals: int = Field(default=3, ge=0)
    initial_visible_zones: dict[str, int] = Field(
        default={
            "North": 4,
            "South": 4,
            "East": 2,
            "West": 2,
            "Northeast": 2,
            "Central": 2,
        },
        description="Number of zone slots shown per region before the user reveals more.",
    )
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    # Supabase configuration
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL (e.g., https://xxx.supabase.co).",
    )
    supabase_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key for backend operations.",
    )
    supabase_table: str = Field(
        default="vendor_zone_matrices",
        description="Table receiving the finalized zone configuration and price matrix.",
    )

    @field_validator("data_root", "pincode_file", "sessions_dir", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

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

    @field_validator("initial_visible_zones", mode="before")
    @classmethod
    def _parse_visible_zones(cls, value: Any) -> dict[str, int]:
        """Accept a mapping or a `Region=count` comma-separated string."""
        if isinstance(value, dict):
            return {str(key): int(count) for key, count in value.items()}
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, dict):
                    return {str(key): int(count) for key, count in parsed.items()}
            except (json.JSONDecodeError, TypeError, ValueError):
                pass
            result: dict[str, int] = {}
            for item in value.split(","):
                if "=" not in item:
                    continue
                key, _, count = item.partition("=")
                result[key.strip()] = int(count.strip())
            return result
        return {}


settings = Settings()
