from __future__ import annotations

from datetime import date

from training_planner.domain.models import (
    EmployeeAvailabilityRecord,
    EmployeeStatus,
    GeoPoint,
    ImpactLevel,
    ProviderCandidate,
    ProviderCourse,
    WorkArrangement,
)
from training_planner.repository.data_repository import DataRepository


def _repository(settings) -> DataRepository:
    repository = DataRepository(settings)
    repository.initialize_database()
    for employee_id, department in [("emp-1", "Ops"), ("emp-2", "Ops"), ("emp-3", None)]:
        repository.add_employee(employee_id, "First", employee_id.upper(), department, "Rotterdam")
    return repository


def test_eligible_providers_filter_course_and_active_flag(settings) -> None:
    repository = _repository(settings)
    repository.add_provider(
        ProviderCandidate(
            id="prov-a",
            name="A",
            hourly_rate=90.0,
            base_location=GeoPoint(lat=51.9, lng=4.5),
            courses=(ProviderCourse(course_id="course-bhv", cost_breakdown={"materials": 25}),),
        )
    )
    repository.add_provider(
        ProviderCandidate(id="prov-b", name="B", courses=(ProviderCourse(course_id="course-vca"),))
    )
    repository.add_provider(
        ProviderCandidate(id="prov-c", name="C", courses=(ProviderCourse(course_id="course-bhv"),)),
        active=False,
    )

    providers = repository.list_eligible_providers("course-bhv")

    assert [provider.id for provider in providers] == ["prov-a"]
    assert providers[0].base_location == GeoPoint(lat=51.9, lng=4.5)
    assert providers[0].courses[0].cost_breakdown == {"materials": 25}
    assert providers[0].currency == "EUR"
    assert repository.get_provider("prov-c") is not None
    assert repository.get_provider("missing") is None


def test_certificate_expiry_is_ordered_with_unknown_last(settings) -> None:
    repository = _repository(settings)
    repository.add_certificate_expiry(
        employee_id="emp-1", license_id="lic-bhv", employee_status=EmployeeStatus.NEW
    )
    repository.add_certificate_expiry(
        employee_id="emp-2",
        license_id="lic-bhv",
        employee_status=EmployeeStatus.RENEWAL_DUE,
        days_until_expiry=12,
        expiry_date=date(2026, 3, 13),
    )
    repository.add_certificate_expiry(
        employee_id="emp-3",
        license_id="lic-bhv",
        employee_status=EmployeeStatus.VALID,
        days_until_expiry=300,
    )

    rows = repository.list_certificate_expiry(statuses=("new", "renewal_due"), license_id="lic-bhv")

    assert [row.employee_id for row in rows] == ["emp-2", "emp-1"]
    assert rows[0].expiry_date == date(2026, 3, 13)
    assert rows[0].department == "Ops"
    assert rows[0].employee_name == "First EMP-2"
    assert repository.list_certificate_expiry(statuses=("new",), license_id="lic-other") == []


def test_priority_score_bands_by_days_until_expiry(settings) -> None:
    repository = _repository(settings)
    repository.add_certificate_expiry(
        employee_id="emp-1", license_id="lic-bhv", employee_status=EmployeeStatus.RENEWAL_DUE
    )
    repository.add_certificate_expiry(
        employee_id="emp-2", license_id="lic-bhv", employee_status=EmployeeStatus.EXPIRED
    )
    today = date(2026, 3, 1)

    def score(employee_id: str, expiry: date):
        return repository.calculate_employee_priority_score(
            employee_id, "lic-bhv", expiry, reference_date=today
        )

    assert score("emp-1", date(2026, 3, 1)) == 100.0
    assert score("emp-1", date(2026, 3, 31)) == 90.0
    assert score("emp-1", date(2026, 4, 30)) == 75.0
    assert score("emp-1", date(2026, 5, 30)) == 60.0
    assert score("emp-1", date(2026, 6, 30)) == 40.0
    assert score("emp-2", date(2026, 6, 30)) == 100.0


def test_priority_score_is_none_without_expiry_row(settings) -> None:
    repository = _repository(settings)

    assert repository.calculate_employee_priority_score("emp-1", "lic-bhv", date(2026, 5, 1)) is None


def test_sessions_count_enrolled_participants_and_follow_license(settings) -> None:
    repository = _repository(settings)
    repository.link_course_certificate("course-bhv", "lic-bhv")
    repository.add_training(
        training_id="t-1",
        title="BHV Basis",
        course_id="course-bhv",
        session_date=date(2026, 4, 1),
        max_participants=10,
        provider_id="prov-a",
    )
    repository.add_training(
        training_id="t-2",
        title="VCA",
        course_id="course-vca",
        session_date=date(2026, 4, 2),
        max_participants=10,
    )
    repository.add_training(
        training_id="t-3",
        title="BHV Old",
        course_id="course-bhv",
        session_date=date(2026, 1, 5),
        max_participants=10,
    )
    repository.enroll_participant("t-1", "emp-1")
    repository.enroll_participant("t-1", "emp-2", status="attended")
    repository.enroll_participant("t-1", "emp-3", status="cancelled")

    sessions = repository.list_scheduled_sessions(from_date=date(2026, 3, 1), license_id="lic-bhv")

    assert [session.id for session in sessions] == ["t-1"]
    assert sessions[0].enrolled_count == 2
    assert sessions[0].available_spots == 8
    assert sessions[0].license_ids == frozenset({"lic-bhv"})
    assert [s.id for s in repository.list_scheduled_sessions(from_date=date(2026, 3, 1))] == [
        "t-1",
        "t-2",
    ]
    assert [s.id for s in repository.list_provider_sessions("prov-a", [date(2026, 4, 1)])] == ["t-1"]


def test_availability_reads_skip_inactive_and_finished_records(settings) -> None:
    repository = _repository(settings)
    repository.add_availability(
        EmployeeAvailabilityRecord(
            employee_id="emp-1",
            availability_type="leave",
            start_date=date(2026, 3, 10),
            end_date=date(2026, 3, 12),
            impact_level=ImpactLevel.HIGH,
        )
    )
    repository.add_availability(
        EmployeeAvailabilityRecord(
            employee_id="emp-2",
            availability_type="illness",
            start_date=date(2026, 2, 1),
            end_date=date(2026, 2, 3),
        )
    )
    repository.add_availability(
        EmployeeAvailabilityRecord(
            employee_id="emp-2",
            availability_type="leave",
            start_date=date(2026, 3, 10),
            end_date=date(2026, 3, 12),
            status="cancelled",
        )
    )

    active = repository.list_active_availability(date(2026, 3, 1))
    by_employee = repository.list_availability_for_employees(["emp-2"])

    assert [(r.employee_id, r.impact_level) for r in active] == [("emp-1", ImpactLevel.HIGH)]
    assert active[0].employee_name == "First EMP-1"
    assert [r.availability_type for r in by_employee] == ["illness"]
    assert repository.list_availability_for_employees([]) == []


def test_work_arrangements_round_trip_travel_limit(settings) -> None:
    repository = _repository(settings)
    repository.add_work_arrangement(
        WorkArrangement(employee_id="emp-1", work_schedule="full_time", max_travel_distance_km=40.0)
    )
    (arrangement,) = repository.list_work_arrangements()
    assert arrangement.max_travel_distance_km == 40.0


def test_demo_seed_runs_once(settings) -> None:
    repository = DataRepository(settings)
    repository.initialize_database()
    repository.seed_demo_data_if_empty()
    repository.seed_demo_data_if_empty()

    assert len(repository.list_eligible_providers("course-bhv")) == 2
    rows = repository.list_certificate_expiry(statuses=("new", "expired"), license_id="lic-bhv")
    assert {row.employee_id for row in rows} == {"emp-001", "emp-004"}
    (session,) = repository.list_scheduled_sessions(from_date=date.today(), license_id="lic-bhv")
    assert session.available_spots == 3
