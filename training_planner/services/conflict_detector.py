"""Advisory conflict warnings and explicit-date conflict checks."""

from __future__ import annotations

from datetime import date
from typing import Optional

from training_planner.domain.models import (
    ConflictType,
    ConflictWarning,
    EmployeeAvailabilityRecord,
    EmployeeAvailabilitySummary,
    ExistingSession,
    ProviderCandidate,
    SchedulingConflict,
    SchedulingConstraints,
    Severity,
    WarningType,
    WorkArrangement,
)


AVAILABILITY_WARNING_THRESHOLD = 50.0


def detect_conflicts(
    *,
    employees: list[EmployeeAvailabilitySummary],
    constraints: SchedulingConstraints,
    provider: ProviderCandidate,
    distance_km: float,
    work_arrangements: list[WorkArrangement],
) -> list[ConflictWarning]:
    """Build warnings for a recommendation. Warnings never reject a candidate."""
    warnings: list[ConflictWarning] = []

    unavailable = [
        employee
        for employee in employees
        if employee.availability_score < AVAILABILITY_WARNING_THRESHOLD
    ]
    if unavailable:
        warnings.append(
            ConflictWarning(
                type=WarningType.AVAILABILITY,
                message=f"{len(unavailable)} employees have availability conflicts",
                severity=Severity.HIGH,
            )
        )

    if constraints.max_participants is not None and len(employees) > constraints.max_participants:
        warnings.append(
            ConflictWarning(
                type=WarningType.CAPACITY,
                message=(
                    "More employees available than maximum capacity "
                    f"({constraints.max_participants})"
                ),
                severity=Severity.MEDIUM,
            )
        )

    if provider.max_group_size is not None and len(employees) > provider.max_group_size:
        warnings.append(
            ConflictWarning(
                type=WarningType.CAPACITY,
                message=(
                    f"{provider.name} accepts at most {provider.max_group_size} participants "
                    "per session"
                ),
                severity=Severity.LOW,
            )
        )

    restricted = _travel_restricted_employees(employees, work_arrangements, distance_km)
    if restricted:
        warnings.append(
            ConflictWarning(
                type=WarningType.LOCATION,
                message=(
                    f"{len(restricted)} employees cannot travel {distance_km:.2f} km "
                    "to the training location"
                ),
                severity=Severity.MEDIUM,
            )
        )

    return warnings


def _travel_restricted_employees(
    employees: list[EmployeeAvailabilitySummary],
    work_arrangements: list[WorkArrangement],
    distance_km: float,
) -> list[str]:
    if distance_km <= 0:
        return []
    limits: dict[str, float] = {}
    for arrangement in work_arrangements:
        if arrangement.max_travel_distance_km is not None:
            limits.setdefault(arrangement.employee_id, arrangement.max_travel_distance_km)
    return [
        employee.employee_id
        for employee in employees
        if employee.employee_id in limits and distance_km > limits[employee.employee_id]
    ]


def find_scheduling_conflicts(
    *,
    dates: list[date],
    employee_ids: list[str],
    availability: list[EmployeeAvailabilityRecord],
    provider_sessions: list[ExistingSession],
    provider: Optional[ProviderCandidate],
) -> list[SchedulingConflict]:
    """Check concrete session dates against leave, provider bookings and capacity."""
    conflicts: list[SchedulingConflict] = []
    requested = set(employee_ids)

    affected: dict[str, None] = {}
    for record in availability:
        if record.employee_id not in requested or not record.is_active:
            continue
        if any(record.start_date <= day <= record.end_date for day in dates):
            affected.setdefault(record.employee_id, None)
    if affected:
        conflicts.append(
            SchedulingConflict(
                type=ConflictType.EMPLOYEE_UNAVAILABLE,
                message=f"{len(affected)} employees have availability conflicts",
                affected_employee_ids=tuple(affected),
            )
        )

    requested_dates = set(dates)
    clashing = [session for session in provider_sessions if session.session_date in requested_dates]
    if clashing:
        conflicts.append(
            SchedulingConflict(
                type=ConflictType.PROVIDER_CONFLICT,
                message=f"Provider has {len(clashing)} conflicting training sessions",
            )
        )

    if (
        provider is not None
        and provider.max_group_size is not None
        and len(requested) > provider.max_group_size
    ):
        conflicts.append(
            SchedulingConflict(
                type=ConflictType.CAPACITY_EXCEEDED,
                message=(
                    f"{len(requested)} employees exceed the provider maximum group size "
                    f"of {provider.max_group_size}"
                ),
                affected_employee_ids=tuple(sorted(requested)),
            )
        )

    return conflicts
