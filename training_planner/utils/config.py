"""Environment-driven runtime settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


@dataclass(frozen=True)
class Settings:
    app_name: str = "Training Planner Scheduling Engine"
    app_version: str = "1.0.0"
    log_level: str = "INFO"
    log_format: str = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    database_path: Path = Path("data/training_planner.db")

    data_fetch_timeout_seconds: float = 10.0

    training_day_hours: int = 8
    default_lead_time_days: int = 14
    session_start_time: str = "09:00"
    session_end_time: str = "17:00"
    default_currency: str = "EUR"
    cost_optimization_max_distance_km: float = 100.0
    savings_threshold: float = 50.0

    grouping_max_group_size: int = 15
    grouping_time_window_days: int = 90
    grouping_expiry_buffer_days: int = 30
    grouping_min_group_size: int = 3
    default_priority_score: float = 50.0

    expiry_statuses_for_scheduling: tuple[str, ...] = ("expired", "renewal_due", "renewal_approaching")
    expiry_statuses_for_grouping: tuple[str, ...] = ("new", "expired", "renewal_due", "renewal_approaching")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build settings once per process from environment variables."""
    defaults = Settings()
    return Settings(
        log_level=os.getenv("LOG_LEVEL", defaults.log_level),
        log_format=os.getenv("LOG_FORMAT", defaults.log_format),
        database_path=Path(
            os.getenv("TRAINING_PLANNER_DB_PATH", str(defaults.database_path))
        ),
        data_fetch_timeout_seconds=_env_float(
            "DATA_FETCH_TIMEOUT_SECONDS", defaults.data_fetch_timeout_seconds
        ),
        default_lead_time_days=_env_int(
            "DEFAULT_LEAD_TIME_DAYS", defaults.default_lead_time_days
        ),
        default_currency=os.getenv("DEFAULT_CURRENCY", defaults.default_currency),
        grouping_max_group_size=_env_int(
            "GROUPING_MAX_GROUP_SIZE", defaults.grouping_max_group_size
        ),
        grouping_time_window_days=_env_int(
            "GROUPING_TIME_WINDOW_DAYS", defaults.grouping_time_window_days
        ),
        grouping_expiry_buffer_days=_env_int(
            "GROUPING_EXPIRY_BUFFER_DAYS", defaults.grouping_expiry_buffer_days
        ),
    )
