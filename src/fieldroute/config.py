"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Literal

import json
import re
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="FIELDROUTE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Field Route Sequencer API"
    api_prefix: str = "/api"
    data_root: Path = Field(default=Path("data"), description="Root directory for local data files.")
    store_file: str = Field(
        default="route_store.json",
        description="File name (under data_root) of the local key-value store.",
    )
    stops_file: Path = Field(
        default=Path("data/stops.json"),
        description="JSON array of stop records assigned to technicians.",
    )
    route_start_time: str = Field(default="09:00", description="Start-of-route time (24-hour HH:MM).")
    stop_duration_minutes: int = Field(default=60, ge=0, description="Minutes allotted per stop.")
    current_stop_grace_minutes: int = Field(
        default=30,
        ge=0,
        description="How far into the past a stop still counts as current.",
    )
    customer_time_seed: Literal["first", "last"] = Field(
        default="first",
        description="Which stop of a customer seeds its time during a reorder.",
    )
    min_stops_to_save: int = Field(default=2, ge=0)
    demo_stops_when_empty: bool = Field(
        default=True,
        description="Generate demo stops for a technician/date that has none.",
    )
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:8080",
            "capacitor://localhost",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("data_root", "stops_file", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

    @field_validator("route_start_time")
    @classmethod
    def _check_start_time(cls, value: str) -> str:
        value = value.strip()
        match = re.fullmatch(r"(\d{1,2}):(\d{2})", value)
        if not match or int(match.group(1)) > 23 or int(match.group(2)) > 59:
            raise ValueError(f"route_start_time must be HH:MM (24-hour), got '{value}'")
        return f"{int(match.group(1)):02d}:{match.group(2)}"

    @field_validator("frontend_allowed_origins", mode="before")
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

    @property
    def store_path(self) -> Path:
        return self.data_root / self.store_file


settings = Settings()
