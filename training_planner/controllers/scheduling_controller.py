"""HTTP controller layer for scheduling recommendations."""

from __future__ import annotations

from dataclasses import asdict
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from training_planner.controllers.dependencies import get_recommendation_service
from training_planner.domain.models import (
    ConflictType,
    GeoPoint,
    SchedulingConstraints,
    Severity,
    UrgencyLevel,
    WarningType,
)
from training_planner.services.recommendation_service import (
    DataFetchTimeoutError,
    SchedulingDataError,
    SchedulingRecommendationService,
    SchedulingValidationError,
)
from training_planner.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/scheduling", tags=["scheduling"])


class GeoPointRequest(BaseModel):
    lat: float = Field(ge=-90.0, le=90.0)
    lng: float = Field(ge=-180.0, le=180.0)


class SchedulingConstraintsRequest(BaseModel):
    """Input DTO validated before entering service layer."""

    course_id: str = Field(min_length=1)
    preferred_start_date: Optional[date] = None
    preferred_end_date: Optional[date] = None
    max_participants: Optional[int] = Field(default=None, gt=0)
    max_budget: Optional[float] = Field(default=None, gt=0.0)
    max_travel_distance: Optional[float] = Field(default=None, ge=0.0)
    preferred_location: Optional[GeoPointRequest] = None
    required_employee_ids: list[str] = Field(default_factory=list)
    excluded_employee_ids: list[str] = Field(default_factory=list)
    learning_style_preferences: list[str] = Field(default_factory=list)
    urgency_level: UrgencyLevel = UrgencyLevel.MEDIUM
    team_coverage_required: bool = False
    reference_date: Optional[date] = None
    timeout_seconds: Optional[float] = Field(default=None, gt=0.0)

    def to_constraints(self) -> SchedulingConstraints:
        location = self.preferred_location
        return SchedulingConstraints(
            course_id=self.course_id,
            preferred_start_date=self.preferred_start_date,
            preferred_end_date=self.preferred_end_date,
            max_participants=self.max_participants,
            max_budget=self.max_budget,
            max_travel_distance=self.max_travel_distance,
            preferred_location=GeoPoint(lat=location.lat, lng=location.lng) if location else None,
            required_employee_ids=frozenset(self.required_employee_ids),
            excluded_employee_ids=frozenset(self.excluded_employee_ids),
            learning_style_preferences=frozenset(self.learning_style_preferences),
            urgency_level=self.urgency_level,
            team_coverage_required=self.team_coverage_required,
        )


class ProviderSummaryResponse(BaseModel):
    id: str
    name: str
    hourly_rate: Optional[float] = None
    travel_cost: float = Field(ge=0.0)
    distance_km: float = Field(ge=0.0)
    total_estimated_cost: float = Field(ge=0.0)
    currency: str


class ProposedSessionResponse(BaseModel):
    date: date
    start_time: str
    end_time: str


class SessionScheduleResponse(BaseModel):
    start_date: date
    end_date: date
    sessions: list[ProposedSessionResponse]


class EmployeeAvailabilityResponse(BaseModel):
    employee_id: str
    name: str
    availability_score: float = Field(ge=0.0, le=100.0)
    compatibility_score: float = Field(ge=0.0, le=100.0)
    urgency_score: float = Field(ge=0.0, le=100.0)
    certificate_expiry_days: Optional[int] = None


class ConflictWarningResponse(BaseModel):
    type: WarningType
    message: str
    severity: Severity


class BusinessImpactResponse(BaseModel):
    team_coverage_score: float = Field(ge=0.0, le=100.0)
    skill_gap_impact: float = Field(ge=0.0)
    compliance_urgency: float = Field(ge=0.0)


class RecommendationResponse(BaseModel):
    """Output DTO constrained to score bounds."""

    score: float = Field(ge=0.0, le=100.0)
    provider: ProviderSummaryResponse
    suggested_dates: SessionScheduleResponse
    available_employees: list[EmployeeAvailabilityResponse]
    conflict_warnings: list[ConflictWarningResponse]
    business_impact: BusinessImpactResponse


class RecommendationsResponse(BaseModel):
    recommendations: list[RecommendationResponse]


class ConflictCheckRequest(BaseModel):
    dates: list[date]
    employee_ids: list[str] = Field(default_factory=list)
    provider_id: str = Field(min_length=1)
    timeout_seconds: Optional[float] = Field(default=None, gt=0.0)


class SchedulingConflictResponse(BaseModel):
    type: ConflictType
    message: str
    affected_employee_ids: list[str]


class ConflictCheckResponse(BaseModel):
    conflicts: list[SchedulingConflictResponse]


class CostComponentResponse(BaseModel):
    component: str
    amount: float = Field(ge=0.0)
    currency: str


class SavingsOpportunityResponse(BaseModel):
    description: str
    potential_savings: float = Field(gt=0.0)
    recommendation: str


class CostOptimizationResponse(BaseModel):
    cheapest_provider: Optional[ProviderSummaryResponse] = None
    cost_breakdown: list[CostComponentResponse]
    savings_opportunities: list[SavingsOpportunityResponse]


def _data_error_to_http(exc: SchedulingDataError) -> HTTPException:
    if isinstance(exc, DataFetchTimeoutError):
        return HTTPException(status_code=status.HTTP_504_GATEWAY_TIMEOUT, detail=str(exc))
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))


@router.post(
    "/recommendations",
    response_model=RecommendationsResponse,
    status_code=status.HTTP_200_OK,
)
async def recommend_schedules(
    payload: SchedulingConstraintsRequest,
    service: SchedulingRecommendationService = Depends(get_recommendation_service),
) -> RecommendationsResponse:
    """Rank eligible providers; an empty list means every candidate was excluded."""
    try:
        recommendations = await service.get_recommendations(
            payload.to_constraints(),
            reference_date=payload.reference_date,
            timeout_seconds=payload.timeout_seconds,
        )
        return RecommendationsResponse(
            recommendations=[RecommendationResponse(**asdict(item)) for item in recommendations]
        )
    except SchedulingValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except SchedulingDataError as exc:
        raise _data_error_to_http(exc) from exc
    except Exception as exc:  # pragma: no cover
        logger.exception("Unexpected recommendation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate recommendations",
        ) from exc


@router.post(
    "/conflicts",
    response_model=ConflictCheckResponse,
    status_code=status.HTTP_200_OK,
)
async def check_conflicts(
    payload: ConflictCheckRequest,
    service: SchedulingRecommendationService = Depends(get_recommendation_service),
) -> ConflictCheckResponse:
    try:
        conflicts = await service.check_scheduling_conflicts(
            dates=payload.dates,
            employee_ids=payload.employee_ids,
            provider_id=payload.provider_id,
            timeout_seconds=payload.timeout_seconds,
        )
        return ConflictCheckResponse(
            conflicts=[SchedulingConflictResponse(**asdict(item)) for item in conflicts]
        )
    except SchedulingValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except SchedulingDataError as exc:
        raise _data_error_to_http(exc) from exc
    except Exception as exc:  # pragma: no cover
        logger.exception("Unexpected conflict check failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to check scheduling conflicts",
        ) from exc


@router.post(
    "/cost_optimization",
    response_model=CostOptimizationResponse,
    status_code=status.HTTP_200_OK,
)
async def optimize_costs(
    payload: SchedulingConstraintsRequest,
    service: SchedulingRecommendationService = Depends(get_recommendation_service),
) -> CostOptimizationResponse:
    try:
        result = await service.suggest_cost_optimizations(
            payload.to_constraints(),
            timeout_seconds=payload.timeout_seconds,
        )
        return CostOptimizationResponse(**asdict(result))
    except SchedulingValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except SchedulingDataError as exc:
        raise _data_error_to_http(exc) from exc
    except Exception as exc:  # pragma: no cover
        logger.exception("Unexpected cost optimization failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to optimize costs",
        ) from exc
