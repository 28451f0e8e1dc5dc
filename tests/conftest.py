from __future__ import annotations

import time
from dataclasses import replace
from datetime import date
from typing import Optional, Sequence

import pytest

from training_planner.domain.models import (
    CertificateExpiryRecord,
    EmployeeAvailabilityRecord,
    ExistingSession,
    LearningProfile,
    ProviderCandidate,
    WorkArrangement,
)
from training_planner.utils.config import Settings, get_settings


class InMemoryDataSource:
    """Fake collaborator implementing the repository read surface."""

    def __init__(
        self,
        *,
        providers: Sequence[ProviderCandidate] = (),
        availability: Sequence[EmployeeAvailabilityRecord] = (),
        learning_profiles: Sequence[LearningProfile] = (),
        certificate_expiry: Sequence[CertificateExpiryRecord] = (),
        sessions: Sequence[ExistingSession] = (),
        work_arrangements: Sequence[WorkArrangement] = (),
        failing_call: Optional[str] = None,
        delay_seconds: float = 0.0,
    ) -> None:
        self.providers = list(providers)
        self.availability = list(availability)
        self.learning_profiles = list(learning_profiles)
        self.certificate_expiry = list(certificate_expiry)
        self.sessions = list(sessions)
        self.work_arrangements = list(work_arrangements)
        self.failing_call = failing_call
        self.delay_seconds = delay_seconds

    def _enter(self, name: str) -> None:
        if self.delay_seconds:
            time.sleep(self.delay_seconds)
        if name == self.failing_call:
            raise ConnectionError(f"{name} unavailable")

    def list_eligible_providers(self, course_id: str) -> list[ProviderCandidate]:
        self._enter("list_eligible_providers")
        return [provider for provider in self.providers if provider.offers(course_id)]

    def get_provider(self, provider_id: str) -> Optional[ProviderCandidate]:
        self._enter("get_provider")
        return next((p for p in self.providers if p.id == provider_id), None)

    def list_active_availability(self, reference_date: date) -> list[EmployeeAvailabilityRecord]:
        self._enter("list_active_availability")
        return [
            record
            for record in self.availability
            if record.is_active and record.end_date >= reference_date
        ]

    def list_availability_for_employees(
        self,
        employee_ids: Sequence[str],
    ) -> list[EmployeeAvailabilityRecord]:
        self._enter("list_availability_for_employees")
        wanted = set(employee_ids)
        return [r for r in self.availability if r.is_active and r.employee_id in wanted]

    def list_learning_profiles(self) -> list[LearningProfile]:
        self._enter("list_learning_profiles")
        return list(self.learning_profiles)

    def list_certificate_expiry(
        self,
        *,
        statuses: Sequence[str],
        license_id: Optional[str] = None,
    ) -> list[CertificateExpiryRecord]:
        self._enter("list_certificate_expiry")
        return [
            row
            for row in self.certificate_expiry
            if row.employee_status.value in statuses
            and (license_id is None or row.license_id == license_id)
        ]

    def list_scheduled_sessions(
        self,
        *,
        from_date: date,
        license_id: Optional[str] = None,
    ) -> list[ExistingSession]:
        self._enter("list_scheduled_sessions")
        return [
            session
            for session in self.sessions
            if session.session_date >= from_date
            and (license_id is None or license_id in session.license_ids)
        ]

    def list_provider_sessions(
        self,
        provider_id: str,
        dates: Sequence[date],
    ) -> list[ExistingSession]:
        self._enter("list_provider_sessions")
        return [
            session
            for session in self.sessions
            if session.provider_id == provider_id and session.session_date in set(dates)
        ]

    def list_work_arrangements(self) -> list[WorkArrangement]:
        self._enter("list_work_arrangements")
        return list(self.work_arrangements)


@pytest.fixture
def settings(tmp_path) -> Settings:
    get_settings.cache_clear()
    return replace(
        get_settings(),
        database_path=tmp_path / "training_planner.db",
        data_fetch_timeout_seconds=5.0,
    )


@pytest.fixture
def make_source():
    return InMemoryDataSource
