"""Environment-backed configuration.

Values come from the process environment, optionally seeded from a ``.env``
file in the working directory.  Validation happens at load time so a bad
value fails before any command runs.
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Literal

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]


class StoreConfig(BaseModel):
    """Where readings live."""

    database_path: str = Field(default="corecare.db", description="SQLite database file")

    @field_validator("database_path")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("database path must not be empty")
        return v


class AnalyticsConfig(BaseModel):
    """Tunables for the per-subject analytics."""

    baseline_bpm: int = Field(
        default=72, ge=30, le=200, description="BPM assumed for BP estimation with no data"
    )
    stress_window: int = Field(
        default=30, gt=0, description="Number of most recent readings scored for stress"
    )


class AppConfig(BaseModel):
    store: StoreConfig = Field(default_factory=StoreConfig)
    analytics: AnalyticsConfig = Field(default_factory=AnalyticsConfig)
    log_level: LogLevel = "WARNING"


def load_config_from_env() -> AppConfig:
    """Build an AppConfig from ``CORECARE_*`` environment variables."""
    load_dotenv(find_dotenv(usecwd=True))

    level = os.getenv("CORECARE_LOG_LEVEL", "WARNING").upper()

    return AppConfig(
        store=StoreConfig(database_path=os.getenv("CORECARE_DB", "corecare.db")),
        analytics=AnalyticsConfig(
            baseline_bpm=os.getenv("CORECARE_BASELINE_BPM", "72"),  # type: ignore[arg-type]
            stress_window=os.getenv("CORECARE_STRESS_WINDOW", "30"),  # type: ignore[arg-type]
        ),
        log_level=level,  # type: ignore[arg-type]
    )


@lru_cache
def get_config() -> AppConfig:
    """Cached application config."""
    return load_config_from_env()
