"""Domain-level validation rules for scheduling and grouping requests."""

from __future__ import annotations

from dataclasses import dataclass

from training_planner.domain.models import SchedulingConstraints


@dataclass(frozen=True)
class GroupingConfig:
    max_group_size: int = 15
    time_window_days: int = 90
    expiry_buffer_days: int = 30
    min_group_size: int = 3


def validate_grouping_config(config: GroupingConfig) -> None:
    if config.max_group_size < 1:
        raise ValueError("max_group_size must be >= 1")
    if config.time_window_days < 0:
        raise ValueError("time_window_days must be >= 0")
    if config.expiry_buffer_days < 0:
        raise ValueError("expiry_buffer_days must be >= 0")
    if config.min_group_size < 1:
        raise ValueError("min_group_size must be >= 1")


def validate_scheduling_constraints(constraints: SchedulingConstraints) -> None:
    if not constraints.course_id.strip():
        raise ValueError("course_id must be non-empty")
    if constraints.max_budget is not None and constraints.max_budget <= 0:
        raise ValueError("max_budget must be > 0")
    if constraints.max_travel_distance is not None and constraints.max_travel_distance < 0:
        raise ValueError("max_travel_distance must be >= 0")
    if constraints.max_participants is not None and constraints.max_participants <= 0:
        raise ValueError("max_participants must be > 0")
    if (
        constraints.preferred_start_date is not None
        and constraints.preferred_end_date is not None
        and constraints.preferred_end_date < constraints.preferred_start_date
    ):
        raise ValueError("preferred_end_date must not be before preferred_start_date")
    location = constraints.preferred_location
    if location is not None:
        if not -90.0 <= location.lat <= 90.0:
            raise ValueError("preferred_location.lat must be between -90 and 90")
        if not -180.0 <= location.lng <= 180.0:
            raise ValueError("preferred_location.lng must be between -180 and 180")
