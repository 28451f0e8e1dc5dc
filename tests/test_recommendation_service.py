from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import date

import pytest

from training_planner.domain.models import (
    CertificateExpiryRecord,
    ConflictType,
    EmployeeAvailabilityRecord,
    EmployeeStatus,
    ExistingSession,
    GeoPoint,
    ImpactLevel,
    LearningProfile,
    ProviderCandidate,
    ProviderCourse,
    SchedulingConstraints,
    Severity,
    WarningType,
    WorkArrangement,
)
from training_planner.services.recommendation_service import (
    DataFetchTimeoutError,
    SchedulingDataError,
    SchedulingRecommendationService,
    SchedulingValidationError,
)


REFERENCE_DATE = date(2026, 3, 1)
ORIGIN = GeoPoint(lat=0.0, lng=0.0)
# 0.9 degrees of longitude on the equator is a little over 100 km.
FAR_AWAY = GeoPoint(lat=0.0, lng=0.9)


def _provider(provider_id: str, **overrides) -> ProviderCandidate:
    defaults = {
        "id": provider_id,
        "name": provider_id.title(),
        "hourly_rate": 100.0,
        "courses": (ProviderCourse(course_id="course-bhv"),),
    }
    defaults.update(overrides)
    return ProviderCandidate(**defaults)


def _expiry(employee_id: str, days: int, status=EmployeeStatus.RENEWAL_APPROACHING):
    return CertificateExpiryRecord(
        employee_id=employee_id,
        license_id="lic-bhv",
        employee_status=status,
        days_until_expiry=days,
    )


def _recommend(service, constraints, **kwargs):
    return asyncio.run(
        service.get_recommendations(constraints, reference_date=REFERENCE_DATE, **kwargs)
    )


def test_score_is_clamped_to_100(make_source, settings) -> None:
    source = make_source(providers=[_provider("north")])
    service = SchedulingRecommendationService(repository=source, settings=settings)

    (recommendation,) = _recommend(
        service,
        SchedulingConstraints(course_id="course-bhv", max_budget=1000.0),
    )

    assert recommendation.score == 100.0
    assert recommendation.provider.total_estimated_cost == 800.0


def test_score_combines_distance_penalty_and_employee_averages(make_source, settings) -> None:
    absences = [
        EmployeeAvailabilityRecord(
            employee_id="emp-1",
            availability_type="leave",
            start_date=date(2026, 3, day),
            end_date=date(2026, 3, day),
            impact_level=ImpactLevel.HIGH,
        )
        for day in (5, 6, 7)
    ]
    source = make_source(
        providers=[_provider("remote", hourly_rate=None, base_location=FAR_AWAY)],
        availability=absences,
        learning_profiles=[LearningProfile(employee_id="emp-1", learning_style="reading")],
        certificate_expiry=[_expiry("emp-1", 120)],
    )
    service = SchedulingRecommendationService(repository=source, settings=settings)

    (recommendation,) = _recommend(
        service,
        SchedulingConstraints(
            course_id="course-bhv",
            preferred_location=ORIGIN,
            learning_style_preferences=frozenset({"visual"}),
        ),
    )

    # 100 - 30 (distance cap) + 10 * 0.30 + 25 * 0.15 + 20 * 0.10
    assert recommendation.score == pytest.approx(78.75)
    assert recommendation.provider.distance_km > 100.0
    assert [w.type for w in recommendation.conflict_warnings] == [WarningType.AVAILABILITY]


def test_no_employees_gives_zero_averages(make_source, settings) -> None:
    source = make_source(providers=[_provider("remote", hourly_rate=None, base_location=FAR_AWAY)])
    service = SchedulingRecommendationService(repository=source, settings=settings)

    (recommendation,) = _recommend(
        service,
        SchedulingConstraints(course_id="course-bhv", preferred_location=ORIGIN),
    )

    assert recommendation.score == 70.0
    assert recommendation.available_employees == []
    assert recommendation.business_impact.team_coverage_score == 0.0


def test_budget_below_every_provider_returns_empty_list(make_source, settings) -> None:
    source = make_source(providers=[_provider("north"), _provider("south", hourly_rate=90.0)])
    service = SchedulingRecommendationService(repository=source, settings=settings)

    assert _recommend(service, SchedulingConstraints(course_id="course-bhv", max_budget=500.0)) == []


def test_distance_cap_excludes_far_providers(make_source, settings) -> None:
    source = make_source(
        providers=[
            _provider("remote", base_location=FAR_AWAY),
            _provider("local", base_location=ORIGIN),
        ]
    )
    service = SchedulingRecommendationService(repository=source, settings=settings)

    recommendations = _recommend(
        service,
        SchedulingConstraints(
            course_id="course-bhv",
            preferred_location=ORIGIN,
            max_travel_distance=50.0,
        ),
    )

    assert [item.provider.id for item in recommendations] == ["local"]


def test_ranking_is_descending_and_stable_across_runs(make_source, settings) -> None:
    source = make_source(
        providers=[
            _provider("unrated", hourly_rate=None, base_location=FAR_AWAY),
            _provider("alpha", base_location=FAR_AWAY),
            _provider("beta", base_location=FAR_AWAY),
        ]
    )
    service = SchedulingRecommendationService(repository=source, settings=settings)
    constraints = SchedulingConstraints(course_id="course-bhv", preferred_location=ORIGIN)

    first = _recommend(service, constraints)
    second = _recommend(service, constraints)

    assert [item.provider.id for item in first] == ["alpha", "beta", "unrated"]
    assert [item.provider.id for item in second] == [item.provider.id for item in first]
    assert all(0.0 <= item.score <= 100.0 for item in first)
    assert first[0].score > first[-1].score


def test_provider_lead_time_drives_suggested_date(make_source, settings) -> None:
    source = make_source(
        providers=[
            _provider("booked", advance_booking_days=10),
            _provider("default"),
            _provider("instant", advance_booking_days=0),
        ]
    )
    service = SchedulingRecommendationService(repository=source, settings=settings)

    recommendations = _recommend(service, SchedulingConstraints(course_id="course-bhv"))
    dates = {item.provider.id: item.suggested_dates for item in recommendations}

    assert dates["booked"].start_date == date(2026, 3, 11)
    assert dates["default"].start_date == date(2026, 3, 15)
    assert dates["instant"].start_date == REFERENCE_DATE
    assert dates["booked"].sessions[0].start_time == "09:00"
    assert dates["booked"].sessions[0].end_time == "17:00"


def test_capacity_and_location_warnings(make_source, settings) -> None:
    source = make_source(
        providers=[_provider("remote", base_location=FAR_AWAY, max_group_size=1)],
        certificate_expiry=[_expiry("emp-1", 120), _expiry("emp-2", 130)],
        work_arrangements=[WorkArrangement(employee_id="emp-2", max_travel_distance_km=25.0)],
    )
    service = SchedulingRecommendationService(repository=source, settings=settings)

    (recommendation,) = _recommend(
        service,
        SchedulingConstraints(
            course_id="course-bhv",
            preferred_location=ORIGIN,
            max_participants=1,
        ),
    )

    warnings = [(w.type, w.severity) for w in recommendation.conflict_warnings]
    assert warnings == [
        (WarningType.CAPACITY, Severity.MEDIUM),
        (WarningType.CAPACITY, Severity.LOW),
        (WarningType.LOCATION, Severity.MEDIUM),
    ]


def test_business_impact_counts_expired_and_due(make_source, settings) -> None:
    source = make_source(
        providers=[_provider("north")],
        certificate_expiry=[
            _expiry("emp-1", -4, EmployeeStatus.EXPIRED),
            _expiry("emp-2", 12, EmployeeStatus.RENEWAL_DUE),
            _expiry("emp-3", 70),
        ],
    )
    service = SchedulingRecommendationService(repository=source, settings=settings)

    (recommendation,) = _recommend(service, SchedulingConstraints(course_id="course-bhv"))

    impact = recommendation.business_impact
    assert impact.team_coverage_score == 30.0
    assert impact.skill_gap_impact == 20.0
    assert impact.compliance_urgency == 50.0


def test_invalid_constraints_raise_validation_error(make_source, settings) -> None:
    service = SchedulingRecommendationService(repository=make_source(), settings=settings)
    with pytest.raises(SchedulingValidationError):
        _recommend(
            service,
            SchedulingConstraints(
                course_id="course-bhv",
                preferred_start_date=date(2026, 4, 1),
                preferred_end_date=date(2026, 3, 1),
            ),
        )


def test_collaborator_failure_aborts_request(make_source, settings) -> None:
    source = make_source(providers=[_provider("north")], failing_call="list_learning_profiles")
    service = SchedulingRecommendationService(repository=source, settings=settings)

    with pytest.raises(SchedulingDataError) as exc_info:
        _recommend(service, SchedulingConstraints(course_id="course-bhv"))

    assert isinstance(exc_info.value.__cause__, ConnectionError)


def test_slow_collaborators_raise_timeout(make_source, settings) -> None:
    source = make_source(providers=[_provider("north")], delay_seconds=0.3)
    service = SchedulingRecommendationService(repository=source, settings=settings)

    with pytest.raises(DataFetchTimeoutError):
        _recommend(service, SchedulingConstraints(course_id="course-bhv"), timeout_seconds=0.05)


def test_scheduling_conflicts_on_explicit_dates(make_source, settings) -> None:
    session_day = date(2026, 3, 20)
    source = make_source(
        providers=[_provider("north", max_group_size=2)],
        availability=[
            EmployeeAvailabilityRecord(
                employee_id="emp-1",
                availability_type="leave",
                start_date=date(2026, 3, 18),
                end_date=date(2026, 3, 22),
            ),
            EmployeeAvailabilityRecord(
                employee_id="emp-2",
                availability_type="leave",
                start_date=date(2026, 3, 18),
                end_date=date(2026, 3, 22),
                status="cancelled",
            ),
        ],
        sessions=[
            ExistingSession(
                id="train-1",
                title="Existing",
                course_id="course-bhv",
                session_date=session_day,
                max_participants=10,
                provider_id="north",
            )
        ],
    )
    service = SchedulingRecommendationService(repository=source, settings=settings)

    conflicts = asyncio.run(
        service.check_scheduling_conflicts(
            dates=[session_day],
            employee_ids=["emp-1", "emp-2", "emp-3"],
            provider_id="north",
        )
    )

    assert [conflict.type for conflict in conflicts] == [
        ConflictType.EMPLOYEE_UNAVAILABLE,
        ConflictType.PROVIDER_CONFLICT,
        ConflictType.CAPACITY_EXCEEDED,
    ]
    assert conflicts[0].affected_employee_ids == ("emp-1",)


def test_conflict_check_requires_dates(make_source, settings) -> None:
    service = SchedulingRecommendationService(repository=make_source(), settings=settings)
    with pytest.raises(SchedulingValidationError):
        asyncio.run(
            service.check_scheduling_conflicts(dates=[], employee_ids=["emp-1"], provider_id="north")
        )


def test_cost_optimization_picks_cheapest_and_reports_savings(make_source, settings) -> None:
    # 0.45 degrees on the equator is roughly 50 km.
    near = GeoPoint(lat=0.0, lng=0.45)
    source = make_source(
        providers=[
            _provider("pricey", travel_cost_per_km=2.0, base_location=near, setup_cost=200.0),
            _provider("cheap", travel_cost_per_km=2.0, base_location=near),
            _provider("distant", hourly_rate=10.0, base_location=GeoPoint(lat=0.0, lng=1.8)),
        ]
    )
    service = SchedulingRecommendationService(repository=source, settings=settings)

    result = asyncio.run(
        service.suggest_cost_optimizations(
            SchedulingConstraints(course_id="course-bhv", preferred_location=ORIGIN)
        )
    )

    assert result.cheapest_provider is not None
    assert result.cheapest_provider.id == "cheap"
    assert [item.component for item in result.cost_breakdown] == ["Training", "Travel", "Setup"]
    assert len(result.savings_opportunities) == 1
    assert result.savings_opportunities[0].potential_savings == 200.0


def test_cost_optimization_hourly_cap_from_budget(make_source, settings) -> None:
    source = make_source(providers=[_provider("north", hourly_rate=130.0)])
    service = SchedulingRecommendationService(repository=source, settings=settings)

    result = asyncio.run(
        service.suggest_cost_optimizations(
            SchedulingConstraints(course_id="course-bhv", max_budget=1000.0)
        )
    )

    assert result.cheapest_provider is None
    assert result.cost_breakdown == []
    assert result.savings_opportunities == []


def test_default_timeout_comes_from_settings(make_source, settings) -> None:
    source = make_source(providers=[_provider("north")], delay_seconds=0.3)
    service = SchedulingRecommendationService(
        repository=source,
        settings=replace(settings, data_fetch_timeout_seconds=0.05),
    )
    with pytest.raises(DataFetchTimeoutError):
        _recommend(service, SchedulingConstraints(course_id="course-bhv"))
