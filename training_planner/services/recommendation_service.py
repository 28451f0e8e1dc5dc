"""Provider recommendation scoring and snapshot orchestration."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Optional

from training_planner.domain.constraints import validate_scheduling_constraints
from training_planner.domain.models import (
    CostOptimization,
    EmployeeAvailabilitySummary,
    ProviderCandidate,
    ProviderSummary,
    Recommendation,
    SchedulingConflict,
    SchedulingConstraints,
    SchedulingSnapshot,
)
from training_planner.repository.data_repository import DataRepository, SchedulingDataSource
from training_planner.services.conflict_detector import detect_conflicts, find_scheduling_conflicts
from training_planner.services.cost_estimator import (
    CostEstimate,
    RankedCost,
    build_cost_breakdown,
    estimate_cost,
    find_savings_opportunities,
    provider_distance_km,
    rank_by_total_cost,
)
from training_planner.services.date_proposer import propose_dates
from training_planner.services.employee_analysis import (
    analyze_employees,
    resolve_relevant_employee_ids,
)
from training_planner.services.impact_analyzer import analyze_business_impact
from training_planner.utils.config import Settings, get_settings
from training_planner.utils.logger import get_logger


logger = get_logger(__name__)

BASE_SCORE = 100.0
PUBLISHED_RATE_BONUS = 20.0
DISTANCE_PENALTY_PER_KM = 0.5
MAX_DISTANCE_PENALTY = 30.0
BUDGET_EFFICIENCY_WEIGHT = 25.0
AVAILABILITY_WEIGHT = 0.30
COMPATIBILITY_WEIGHT = 0.15
URGENCY_WEIGHT = 0.10

ReadCall = tuple[Callable[..., Any], tuple[Any, ...], dict[str, Any]]


class SchedulingValidationError(Exception):
    """Raised when scheduling request inputs are invalid."""


class SchedulingDataError(Exception):
    """Raised when a collaborator read fails; the whole request is aborted."""


class DataFetchTimeoutError(SchedulingDataError):
    """Raised when snapshot gathering exceeds the request deadline."""


@dataclass(frozen=True)
class ScoringContext:
    reference_date: date
    default_lead_time_days: int = 14
    training_day_hours: int = 8
    session_start_time: str = "09:00"
    session_end_time: str = "17:00"


def _average(values: list[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def calculate_scheduling_score(
    *,
    provider: ProviderCandidate,
    employees: list[EmployeeAvailabilitySummary],
    distance_km: float,
    total_cost: float,
    max_budget: Optional[float],
) -> float:
    score = BASE_SCORE

    if provider.hourly_rate:
        score += PUBLISHED_RATE_BONUS

    if distance_km > 0:
        score -= min(distance_km * DISTANCE_PENALTY_PER_KM, MAX_DISTANCE_PENALTY)

    if max_budget:
        score += ((max_budget - total_cost) / max_budget) * BUDGET_EFFICIENCY_WEIGHT

    score += _average([employee.availability_score for employee in employees]) * AVAILABILITY_WEIGHT
    score += _average([employee.compatibility_score for employee in employees]) * COMPATIBILITY_WEIGHT
    score += _average([employee.urgency_score for employee in employees]) * URGENCY_WEIGHT

    return round(max(0.0, min(100.0, score)), 2)


def violates_hard_constraints(
    constraints: SchedulingConstraints,
    estimate: CostEstimate,
) -> bool:
    if constraints.max_budget is not None and estimate.total > constraints.max_budget:
        return True
    if (
        constraints.max_travel_distance is not None
        and estimate.distance_km > constraints.max_travel_distance
    ):
        return True
    return False


def analyze_provider(
    provider: ProviderCandidate,
    constraints: SchedulingConstraints,
    snapshot: SchedulingSnapshot,
    context: ScoringContext,
) -> Optional[Recommendation]:
    """Score one candidate; None means a hard constraint excluded it."""
    if not provider.offers(constraints.course_id):
        return None

    distance = provider_distance_km(provider, constraints.preferred_location)
    estimate = estimate_cost(provider, distance, context.training_day_hours)
    if violates_hard_constraints(constraints, estimate):
        logger.debug(
            "Provider excluded | provider_id=%s | total_cost=%.2f | distance_km=%.2f",
            provider.id,
            estimate.total,
            estimate.distance_km,
        )
        return None

    employee_ids = resolve_relevant_employee_ids(constraints, snapshot.certificate_expiry)
    employees = analyze_employees(
        employee_ids=employee_ids,
        constraints=constraints,
        availability=snapshot.availability,
        learning_profiles=snapshot.learning_profiles,
        certificate_expiry=snapshot.certificate_expiry,
        reference_date=context.reference_date,
    )
    score = calculate_scheduling_score(
        provider=provider,
        employees=employees,
        distance_km=estimate.distance_km,
        total_cost=estimate.total,
        max_budget=constraints.max_budget,
    )
    suggested_dates = propose_dates(
        provider,
        constraints,
        reference_date=context.reference_date,
        default_lead_time_days=context.default_lead_time_days,
        start_time=context.session_start_time,
        end_time=context.session_end_time,
    )
    warnings = detect_conflicts(
        employees=employees,
        constraints=constraints,
        provider=provider,
        distance_km=estimate.distance_km,
        work_arrangements=snapshot.work_arrangements,
    )
    impact = analyze_business_impact(employees, snapshot.certificate_expiry)

    return Recommendation(
        score=score,
        provider=_provider_summary(provider, estimate),
        suggested_dates=suggested_dates,
        available_employees=employees,
        conflict_warnings=warnings,
        business_impact=impact,
    )


def rank_recommendations(
    constraints: SchedulingConstraints,
    snapshot: SchedulingSnapshot,
    context: ScoringContext,
) -> list[Recommendation]:
    recommendations = [
        recommendation
        for recommendation in (
            analyze_provider(provider, constraints, snapshot, context)
            for provider in snapshot.providers
        )
        if recommendation is not None
    ]
    # Stable sort: ties keep provider input order.
    return sorted(recommendations, key=lambda item: item.score, reverse=True)


def _provider_summary(provider: ProviderCandidate, estimate: CostEstimate) -> ProviderSummary:
    return ProviderSummary(
        id=provider.id,
        name=provider.name,
        hourly_rate=provider.hourly_rate,
        travel_cost=round(estimate.travel_cost, 2),
        distance_km=estimate.distance_km,
        total_estimated_cost=round(estimate.total, 2),
        currency=provider.currency,
    )


class SchedulingRecommendationService:
    """Gathers a data snapshot concurrently and ranks provider candidates."""

    def __init__(
        self,
        repository: Optional[SchedulingDataSource] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)

    def _context(self, reference_date: Optional[date]) -> ScoringContext:
        return ScoringContext(
            reference_date=reference_date or date.today(),
            default_lead_time_days=self._settings.default_lead_time_days,
            training_day_hours=self._settings.training_day_hours,
            session_start_time=self._settings.session_start_time,
            session_end_time=self._settings.session_end_time,
        )

    async def _gather(self, timeout_seconds: Optional[float], *calls: ReadCall) -> list[Any]:
        """Run repository reads concurrently; any failure aborts the whole request."""
        deadline = (
            timeout_seconds
            if timeout_seconds is not None
            else self._settings.data_fetch_timeout_seconds
        )
        reads = [asyncio.to_thread(fn, *args, **kwargs) for fn, args, kwargs in calls]
        try:
            return await asyncio.wait_for(asyncio.gather(*reads), timeout=deadline)
        except asyncio.TimeoutError as exc:
            logger.error("Snapshot gathering timed out | timeout_seconds=%s", deadline)
            raise DataFetchTimeoutError(
                f"Data gathering exceeded {deadline} seconds"
            ) from exc
        except Exception as exc:
            logger.error("Snapshot gathering failed | error=%s", exc)
            raise SchedulingDataError(f"Failed to load scheduling data: {exc}") from exc

    async def load_snapshot(
        self,
        constraints: SchedulingConstraints,
        *,
        reference_date: date,
        timeout_seconds: Optional[float] = None,
    ) -> SchedulingSnapshot:
        repository = self._repository
        (
            providers,
            availability,
            learning_profiles,
            certificate_expiry,
            existing_sessions,
            work_arrangements,
        ) = await self._gather(
            timeout_seconds,
            (repository.list_eligible_providers, (constraints.course_id,), {}),
            (repository.list_active_availability, (reference_date,), {}),
            (repository.list_learning_profiles, (), {}),
            (
                repository.list_certificate_expiry,
                (),
                {"statuses": self._settings.expiry_statuses_for_scheduling},
            ),
            (repository.list_scheduled_sessions, (), {"from_date": reference_date}),
            (repository.list_work_arrangements, (), {}),
        )
        return SchedulingSnapshot(
            providers=providers,
            availability=availability,
            learning_profiles=learning_profiles,
            certificate_expiry=certificate_expiry,
            existing_sessions=existing_sessions,
            work_arrangements=work_arrangements,
        )

    async def get_recommendations(
        self,
        constraints: SchedulingConstraints,
        *,
        reference_date: Optional[date] = None,
        timeout_seconds: Optional[float] = None,
    ) -> list[Recommendation]:
        try:
            validate_scheduling_constraints(constraints)
        except ValueError as exc:
            raise SchedulingValidationError(str(exc)) from exc

        context = self._context(reference_date)
        snapshot = await self.load_snapshot(
            constraints,
            reference_date=context.reference_date,
            timeout_seconds=timeout_seconds,
        )
        recommendations = rank_recommendations(constraints, snapshot, context)
        logger.info(
            "Recommendations computed | course_id=%s | providers=%s | recommendations=%s",
            constraints.course_id,
            len(snapshot.providers),
            len(recommendations),
        )
        return recommendations

    async def check_scheduling_conflicts(
        self,
        *,
        dates: list[date],
        employee_ids: list[str],
        provider_id: str,
        timeout_seconds: Optional[float] = None,
    ) -> list[SchedulingConflict]:
        if not dates:
            raise SchedulingValidationError("dates must contain at least one date")
        repository = self._repository
        availability, provider_sessions, provider = await self._gather(
            timeout_seconds,
            (repository.list_availability_for_employees, (employee_ids,), {}),
            (repository.list_provider_sessions, (provider_id, dates), {}),
            (repository.get_provider, (provider_id,), {}),
        )
        conflicts = find_scheduling_conflicts(
            dates=dates,
            employee_ids=employee_ids,
            availability=availability,
            provider_sessions=provider_sessions,
            provider=provider,
        )
        logger.info(
            "Conflict check completed | provider_id=%s | dates=%s | conflicts=%s",
            provider_id,
            len(dates),
            len(conflicts),
        )
        return conflicts

    async def suggest_cost_optimizations(
        self,
        constraints: SchedulingConstraints,
        *,
        timeout_seconds: Optional[float] = None,
    ) -> CostOptimization:
        try:
            validate_scheduling_constraints(constraints)
        except ValueError as exc:
            raise SchedulingValidationError(str(exc)) from exc

        (providers,) = await self._gather(
            timeout_seconds,
            (self._repository.list_eligible_providers, (constraints.course_id,), {}),
        )
        max_distance = (
            constraints.max_travel_distance
            if constraints.max_travel_distance is not None
            else self._settings.cost_optimization_max_distance_km
        )
        max_hourly_rate = (
            constraints.max_budget / self._settings.training_day_hours
            if constraints.max_budget is not None
            else None
        )

        candidates: list[RankedCost] = []
        for provider in providers:
            if max_hourly_rate is not None and (provider.hourly_rate or 0.0) > max_hourly_rate:
                continue
            distance = provider_distance_km(provider, constraints.preferred_location)
            if distance is not None and distance > max_distance:
                continue
            estimate = estimate_cost(provider, distance, self._settings.training_day_hours)
            candidates.append(RankedCost(provider=provider, estimate=estimate))

        ranked = rank_by_total_cost(candidates)
        if not ranked:
            return CostOptimization(cheapest_provider=None, cost_breakdown=[], savings_opportunities=[])

        cheapest = ranked[0]
        return CostOptimization(
            cheapest_provider=_provider_summary(cheapest.provider, cheapest.estimate),
            cost_breakdown=build_cost_breakdown(cheapest.estimate, cheapest.provider.currency),
            savings_opportunities=find_savings_opportunities(
                ranked, self._settings.savings_threshold
            ),
        )
