"""Capacity-aware partitioning of employees into training groups.

Phase 1 tops up existing scheduled sessions that still have free seats, most
urgent employees first. Phase 2 splits everyone left over into new groups per
department, bounded by `max_group_size` and by the spread of days-until-expiry
inside a group (`time_window_days`).

Groups that would otherwise close below `min_group_size` keep absorbing
employees even past the time window. There is no upper bound on how far the
window can be exceeded in that case.
"""

from __future__ import annotations

import asyncio
import math
import re
from collections import defaultdict
from dataclasses import replace
from datetime import date, timedelta
from typing import Iterable, Optional, Protocol

import numpy as np
import pandas as pd

from training_planner.domain.constraints import GroupingConfig, validate_grouping_config
from training_planner.domain.models import (
    CertificateExpiryRecord,
    DepartmentSummary,
    EmployeeGroup,
    EmployeeStatus,
    ExistingSession,
    PriorityScore,
    PrioritySource,
    SessionLink,
)
from training_planner.repository.data_repository import DataRepository, SchedulingDataSource
from training_planner.services.recommendation_service import (
    DataFetchTimeoutError,
    SchedulingDataError,
)
from training_planner.utils.config import Settings, get_settings
from training_planner.utils.logger import get_logger


logger = get_logger(__name__)

UNKNOWN_EXPIRY_DAYS = 999
UNKNOWN_DEPARTMENT = "Unknown"
EXISTING_SESSION_PRIORITY = 100
BASE_GROUP_PRIORITY = 50


class GroupingValidationError(Exception):
    """Raised when grouping request inputs are invalid."""


class PriorityScorer(Protocol):
    """External per-employee priority scoring call."""

    def __call__(
        self,
        employee_id: str,
        license_id: str,
        expiry_date: date,
    ) -> Optional[float]: ...


def expiry_days(record: CertificateExpiryRecord) -> int:
    if record.days_until_expiry is None:
        return UNKNOWN_EXPIRY_DAYS
    return record.days_until_expiry


def department_of(record: CertificateExpiryRecord) -> str:
    return record.department or UNKNOWN_DEPARTMENT


def would_exceed_time_window(
    current_group: list[CertificateExpiryRecord],
    candidate: CertificateExpiryRecord,
    time_window_days: int,
) -> bool:
    if not current_group:
        return False
    days = [expiry_days(member) for member in current_group]
    days.append(expiry_days(candidate))
    return max(days) - min(days) > time_window_days


def is_eligible_for_session(
    record: CertificateExpiryRecord,
    session: ExistingSession,
    expiry_buffer_days: int,
) -> bool:
    """Session must fall before the expiry buffer, and expired employees never qualify."""
    if record.employee_status is EmployeeStatus.EXPIRED:
        return False
    if record.expiry_date is not None:
        latest_training_date = record.expiry_date - timedelta(days=expiry_buffer_days)
        if session.session_date > latest_training_date:
            return False
    return expiry_days(record) >= 0


def _average_days(members: Iterable[CertificateExpiryRecord]) -> float:
    values = [expiry_days(member) for member in members]
    return sum(values) / len(values)


def _rounded_average_days(members: Iterable[CertificateExpiryRecord]) -> int:
    # half rounds up, so 2.5 days reports as 3
    return math.floor(_average_days(members) + 0.5)


def _slugify(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")
    return slug or "group"


def classify_group(members: list[CertificateExpiryRecord]) -> tuple[int, str]:
    """Return (priority, label) for a new group."""
    has_expired = any(member.employee_status is EmployeeStatus.EXPIRED for member in members)
    has_urgent = any(expiry_days(member) <= 30 for member in members)
    has_new = any(member.employee_status is EmployeeStatus.NEW for member in members)
    average = _average_days(members)

    priority = BASE_GROUP_PRIORITY
    if has_expired:
        priority += 40
    if has_urgent:
        priority += 30
    if has_new:
        priority += 20
    if average <= 60:
        priority += 25

    if has_expired:
        label = "Urgent Expired"
    elif has_urgent:
        label = "Urgent Renewal"
    elif has_new:
        label = "New Employee"
    else:
        label = "Renewal"
    return priority, label


def _build_new_group(
    members: list[CertificateExpiryRecord],
    department: str,
    sequence: int,
) -> EmployeeGroup:
    priority, label = classify_group(members)
    return EmployeeGroup(
        id=f"{_slugify(department)}-{sequence}",
        name=f"{department} - {label} Group ({len(members)} employees)",
        members=tuple(members),
        average_days_until_expiry=_rounded_average_days(members),
        department=department,
        priority=priority,
    )


def fill_existing_sessions(
    employees: list[CertificateExpiryRecord],
    sessions: list[ExistingSession],
    config: GroupingConfig,
) -> tuple[list[EmployeeGroup], list[CertificateExpiryRecord]]:
    """Phase 1: seat employees in sessions with spare capacity, in session input order."""
    groups: list[EmployeeGroup] = []
    remaining = list(employees)
    remaining_spots: dict[str, int] = {}

    for session in sessions:
        spots = remaining_spots.setdefault(session.id, session.available_spots)
        if spots <= 0:
            continue

        suitable = [
            record
            for record in remaining
            if is_eligible_for_session(record, session, config.expiry_buffer_days)
        ]
        selected = sorted(suitable, key=expiry_days)[:spots]
        if not selected:
            continue

        remaining_spots[session.id] = spots - len(selected)
        selected_ids = {record.employee_id for record in selected}
        remaining = [record for record in remaining if record.employee_id not in selected_ids]
        groups.append(
            EmployeeGroup(
                id=f"existing-{session.id}",
                name=f"Add to: {session.title}",
                members=tuple(selected),
                average_days_until_expiry=_rounded_average_days(selected),
                department=selected[0].department,
                priority=EXISTING_SESSION_PRIORITY,
                existing_session=SessionLink(
                    session_id=session.id,
                    title=session.title,
                    session_date=session.session_date,
                    available_spots=spots,
                    max_participants=session.max_participants,
                    start_time=session.start_time,
                    location=session.location,
                ),
            )
        )
        logger.debug(
            "Session filled | session_id=%s | assigned=%s | spots_before=%s",
            session.id,
            len(selected),
            spots,
        )

    return groups, remaining


def partition_new_groups(
    employees: list[CertificateExpiryRecord],
    config: GroupingConfig,
) -> list[EmployeeGroup]:
    """Phase 2: department-cohesive groups bounded by size and expiry spread."""
    ordered = sorted(employees, key=lambda record: (department_of(record), expiry_days(record)))
    by_department: dict[str, list[CertificateExpiryRecord]] = defaultdict(list)
    for record in ordered:
        by_department[department_of(record)].append(record)

    groups: list[EmployeeGroup] = []
    for department, members in by_department.items():
        sequence = 0
        current_group: list[CertificateExpiryRecord] = []
        for index, employee in enumerate(members):
            if would_exceed_time_window(current_group, employee, config.time_window_days):
                if len(current_group) >= config.min_group_size:
                    sequence += 1
                    groups.append(_build_new_group(current_group, department, sequence))
                    current_group = [employee]
                else:
                    current_group.append(employee)
            else:
                current_group.append(employee)

            if len(current_group) >= config.max_group_size or index == len(members) - 1:
                sequence += 1
                groups.append(_build_new_group(current_group, department, sequence))
                current_group = []

    return groups


def _unique_employees(employees: list[CertificateExpiryRecord]) -> list[CertificateExpiryRecord]:
    seen: set[str] = set()
    unique: list[CertificateExpiryRecord] = []
    for record in employees:
        if record.employee_id in seen:
            continue
        seen.add(record.employee_id)
        unique.append(record)
    return unique


def partition_employees(
    employees: list[CertificateExpiryRecord],
    sessions: list[ExistingSession],
    config: GroupingConfig,
) -> list[EmployeeGroup]:
    """Assign every employee to exactly one group, highest priority first."""
    validate_grouping_config(config)
    unique = _unique_employees(employees)
    session_groups, remaining = fill_existing_sessions(unique, sessions, config)
    new_groups = partition_new_groups(remaining, config)
    return sorted(session_groups + new_groups, key=lambda group: group.priority, reverse=True)


def resolve_member_priority(
    scorer: PriorityScorer,
    record: CertificateExpiryRecord,
    default_score: float = 50.0,
) -> PriorityScore:
    """Call the external scorer, degrading to `default_score` instead of failing."""
    if record.expiry_date is None:
        return PriorityScore(
            employee_id=record.employee_id,
            value=0.0,
            source=PrioritySource.COMPUTED,
        )
    try:
        value = scorer(record.employee_id, record.license_id, record.expiry_date)
    except Exception as exc:
        logger.warning(
            "Priority scoring failed; using default | employee_id=%s | error=%s",
            record.employee_id,
            exc,
        )
        return PriorityScore(
            employee_id=record.employee_id,
            value=default_score,
            source=PrioritySource.DEFAULTED,
            error=str(exc),
        )
    if not value:
        return PriorityScore(
            employee_id=record.employee_id,
            value=default_score,
            source=PrioritySource.DEFAULTED,
            error="scorer returned no value",
        )
    return PriorityScore(
        employee_id=record.employee_id,
        value=float(value),
        source=PrioritySource.COMPUTED,
    )


def summarize_departments(records: list[CertificateExpiryRecord]) -> list[DepartmentSummary]:
    """Count new, renewal and urgent employees per department."""
    if not records:
        return []

    frame = pd.DataFrame(
        {
            "department": [department_of(record) for record in records],
            "status": [record.employee_status.value for record in records],
            "days": [record.days_until_expiry for record in records],
        }
    )
    days = frame["days"].astype("float64")
    frame["new"] = (frame["status"] == EmployeeStatus.NEW.value).astype(int)
    frame["renewal"] = frame["status"].isin(
        [EmployeeStatus.RENEWAL_DUE.value, EmployeeStatus.RENEWAL_APPROACHING.value]
    ).astype(int)
    frame["urgent"] = np.where(
        (frame["status"] == EmployeeStatus.EXPIRED.value)
        | ((days > 0) & (days <= 30)),
        1,
        0,
    )
    frame["total"] = 1

    grouped = frame.groupby("department", sort=True)[["total", "new", "renewal", "urgent"]].sum()
    return [
        DepartmentSummary(
            department=str(department),
            total=int(row["total"]),
            new=int(row["new"]),
            renewal=int(row["renewal"]),
            urgent=int(row["urgent"]),
        )
        for department, row in grouped.iterrows()
    ]


class GroupingService:
    """Loads expiry and session data for one license and partitions employees."""

    def __init__(
        self,
        repository: Optional[SchedulingDataSource] = None,
        settings: Optional[Settings] = None,
        priority_scorer: Optional[PriorityScorer] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)
        self._priority_scorer = priority_scorer

    def _build_config(
        self,
        max_group_size: Optional[int],
        time_window_days: Optional[int],
    ) -> GroupingConfig:
        config = GroupingConfig(
            max_group_size=(
                max_group_size
                if max_group_size is not None
                else self._settings.grouping_max_group_size
            ),
            time_window_days=(
                time_window_days
                if time_window_days is not None
                else self._settings.grouping_time_window_days
            ),
            expiry_buffer_days=self._settings.grouping_expiry_buffer_days,
            min_group_size=self._settings.grouping_min_group_size,
        )
        try:
            validate_grouping_config(config)
        except ValueError as exc:
            raise GroupingValidationError(str(exc)) from exc
        return config

    async def _load(
        self,
        license_id: str,
        reference_date: date,
        timeout_seconds: Optional[float],
    ) -> tuple[list[CertificateExpiryRecord], list[ExistingSession]]:
        deadline = (
            timeout_seconds
            if timeout_seconds is not None
            else self._settings.data_fetch_timeout_seconds
        )
        reads = [
            asyncio.to_thread(
                self._repository.list_certificate_expiry,
                statuses=self._settings.expiry_statuses_for_grouping,
                license_id=license_id,
            ),
            asyncio.to_thread(
                self._repository.list_scheduled_sessions,
                from_date=reference_date,
                license_id=license_id,
            ),
        ]
        try:
            employees, sessions = await asyncio.wait_for(asyncio.gather(*reads), timeout=deadline)
        except asyncio.TimeoutError as exc:
            logger.error("Grouping data load timed out | license_id=%s", license_id)
            raise DataFetchTimeoutError(f"Data gathering exceeded {deadline} seconds") from exc
        except Exception as exc:
            logger.error("Grouping data load failed | license_id=%s | error=%s", license_id, exc)
            raise SchedulingDataError(f"Failed to load grouping data: {exc}") from exc
        return employees, sessions

    async def suggest_groups(
        self,
        license_id: str,
        *,
        max_group_size: Optional[int] = None,
        time_window_days: Optional[int] = None,
        reference_date: Optional[date] = None,
        timeout_seconds: Optional[float] = None,
    ) -> list[EmployeeGroup]:
        if not license_id.strip():
            raise GroupingValidationError("license_id must be non-empty")
        config = self._build_config(max_group_size, time_window_days)
        employees, sessions = await self._load(
            license_id,
            reference_date or date.today(),
            timeout_seconds,
        )

        groups = partition_employees(employees, sessions, config)
        if self._priority_scorer is not None:
            groups = await asyncio.to_thread(
                lambda: [self._with_member_priorities(group) for group in groups]
            )

        logger.info(
            "Grouping completed | license_id=%s | employees=%s | sessions=%s | groups=%s",
            license_id,
            len(employees),
            len(sessions),
            len(groups),
        )
        return groups

    def _with_member_priorities(self, group: EmployeeGroup) -> EmployeeGroup:
        assert self._priority_scorer is not None
        priorities = tuple(
            resolve_member_priority(
                self._priority_scorer,
                member,
                self._settings.default_priority_score,
            )
            for member in group.members
        )
        return replace(group, member_priorities=priorities)

    async def department_summary(
        self,
        license_id: Optional[str] = None,
        *,
        timeout_seconds: Optional[float] = None,
    ) -> list[DepartmentSummary]:
        deadline = (
            timeout_seconds
            if timeout_seconds is not None
            else self._settings.data_fetch_timeout_seconds
        )
        try:
            records = await asyncio.wait_for(
                asyncio.to_thread(
                    self._repository.list_certificate_expiry,
                    statuses=self._settings.expiry_statuses_for_grouping,
                    license_id=license_id,
                ),
                timeout=deadline,
            )
        except asyncio.TimeoutError as exc:
            raise DataFetchTimeoutError(f"Data gathering exceeded {deadline} seconds") from exc
        except Exception as exc:
            logger.error("Department summary load failed | error=%s", exc)
            raise SchedulingDataError(f"Failed to load expiry data: {exc}") from exc
        return summarize_departments(records)
