"""Shared FastAPI dependency providers for controller layer."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from training_planner.services.grouping_service import GroupingService
from training_planner.services.recommendation_service import SchedulingRecommendationService


def get_recommendation_service(request: Request) -> SchedulingRecommendationService:
    service = getattr(request.app.state, "recommendation_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Recommendation service is not initialized",
        )
    return service


def get_grouping_service(request: Request) -> GroupingService:
    service = getattr(request.app.state, "grouping_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Grouping service is not initialized",
        )
    return service
