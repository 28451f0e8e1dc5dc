"""Per-employee availability, learning-style and urgency scoring."""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Iterable, Optional

from training_planner.domain.models import (
    CertificateExpiryRecord,
    EmployeeAvailabilityRecord,
    EmployeeAvailabilitySummary,
    ImpactLevel,
    LearningProfile,
    SchedulingConstraints,
)


HIGH_IMPACT_PENALTY = 30.0
MATCHED_STYLE_SCORE = 100.0
UNMATCHED_STYLE_SCORE = 25.0
NEUTRAL_STYLE_SCORE = 50.0


def calculate_availability_score(
    records: Iterable[EmployeeAvailabilityRecord],
    window_start: date,
    window_end: Optional[date],
) -> float:
    """100 minus 30 per active high-impact record overlapping the window, floored at 0."""
    conflicts = sum(
        1
        for record in records
        if record.is_active
        and record.impact_level is ImpactLevel.HIGH
        and record.overlaps(window_start, window_end)
    )
    return max(0.0, 100.0 - conflicts * HIGH_IMPACT_PENALTY)


def calculate_compatibility_score(
    profile: Optional[LearningProfile],
    preferred_styles: frozenset[str],
) -> float:
    if profile is None or not preferred_styles:
        return NEUTRAL_STYLE_SCORE
    if profile.learning_style in preferred_styles:
        return MATCHED_STYLE_SCORE
    return UNMATCHED_STYLE_SCORE


def calculate_urgency_score(expiry: Optional[CertificateExpiryRecord]) -> float:
    if expiry is None or expiry.days_until_expiry is None:
        return 0.0
    days = expiry.days_until_expiry
    if days <= 0:
        return 100.0
    if days <= 30:
        return 80.0
    if days <= 90:
        return 60.0
    return 20.0


def resolve_relevant_employee_ids(
    constraints: SchedulingConstraints,
    certificate_expiry: list[CertificateExpiryRecord],
) -> list[str]:
    """Required ids when given, otherwise the expiry snapshot pool; exclusions always win."""
    if constraints.required_employee_ids:
        candidates = sorted(constraints.required_employee_ids)
    else:
        candidates = list(dict.fromkeys(row.employee_id for row in certificate_expiry))
    return [
        employee_id
        for employee_id in candidates
        if employee_id not in constraints.excluded_employee_ids
    ]


def analyze_employees(
    *,
    employee_ids: list[str],
    constraints: SchedulingConstraints,
    availability: list[EmployeeAvailabilityRecord],
    learning_profiles: list[LearningProfile],
    certificate_expiry: list[CertificateExpiryRecord],
    reference_date: date,
) -> list[EmployeeAvailabilitySummary]:
    availability_by_employee: dict[str, list[EmployeeAvailabilityRecord]] = defaultdict(list)
    for record in availability:
        availability_by_employee[record.employee_id].append(record)

    profile_by_employee: dict[str, LearningProfile] = {}
    for profile in learning_profiles:
        profile_by_employee.setdefault(profile.employee_id, profile)

    expiry_by_employee: dict[str, CertificateExpiryRecord] = {}
    for row in certificate_expiry:
        expiry_by_employee.setdefault(row.employee_id, row)

    window_start = constraints.preferred_start_date or reference_date
    window_end = constraints.preferred_end_date

    summaries: list[EmployeeAvailabilitySummary] = []
    for employee_id in employee_ids:
        records = availability_by_employee.get(employee_id, [])
        expiry = expiry_by_employee.get(employee_id)
        summaries.append(
            EmployeeAvailabilitySummary(
                employee_id=employee_id,
                name=_employee_name(employee_id, records, expiry),
                availability_score=calculate_availability_score(records, window_start, window_end),
                compatibility_score=calculate_compatibility_score(
                    profile_by_employee.get(employee_id),
                    constraints.learning_style_preferences,
                ),
                urgency_score=calculate_urgency_score(expiry),
                certificate_expiry_days=expiry.days_until_expiry if expiry else None,
            )
        )
    return summaries


def _employee_name(
    employee_id: str,
    records: list[EmployeeAvailabilityRecord],
    expiry: Optional[CertificateExpiryRecord],
) -> str:
    if expiry is not None and expiry.employee_name:
        return expiry.employee_name
    for record in records:
        if record.employee_name:
            return record.employee_name
    return employee_id
