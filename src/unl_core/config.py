"""
Runtime settings for unl-core.

Settings are read from environment variables:
- UNL_CORE_LOG_LEVEL: logging level (default INFO)
- UNL_CORE_LOG_JSON: render logs as JSON (default false)
- UNL_CORE_DEFAULT_PRECISION: precision used when none is given (default 9)
- UNL_CORE_GEOMETRY: geometry engine, "planar" or "duckdb" (default planar)
"""

import logging

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .alphabet import DEFAULT_PRECISION, MAX_PRECISION, MIN_PRECISION

GEOMETRY_ENGINES = ("planar", "duckdb")


class Settings(BaseSettings):
    """Settings pulled from UNL_CORE_* environment variables."""

    model_config = SettingsConfigDict(env_prefix="UNL_CORE_")

    log_level: str = Field(default="INFO", description="Logging level")
    log_json: bool = Field(default=False, description="Render logs as JSON")
    default_precision: int = Field(
        default=DEFAULT_PRECISION,
        ge=MIN_PRECISION,
        le=MAX_PRECISION,
        description="Location id precision used when none is given",
    )
    geometry: str = Field(default="planar", description="Geometry engine name")

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        value = value.upper()
        if not isinstance(logging.getLevelName(value), int):
            raise ValueError(f"Unknown log level: {value!r}")
        return value

    @field_validator("geometry")
    @classmethod
    def _check_geometry(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in GEOMETRY_ENGINES:
            raise ValueError(f"geometry must be one of {GEOMETRY_ENGINES}, got {value!r}")
        return value


def get_settings() -> Settings:
    """Settings from the current environment."""
    return Settings()
