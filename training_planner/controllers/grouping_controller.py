"""HTTP controller layer for training group suggestions."""

from __future__ import annotations

from dataclasses import asdict
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from training_planner.controllers.dependencies import get_grouping_service
from training_planner.domain.models import EmployeeGroup, EmployeeStatus, PrioritySource
from training_planner.services.grouping_service import GroupingService, GroupingValidationError
from training_planner.services.recommendation_service import (
    DataFetchTimeoutError,
    SchedulingDataError,
)
from training_planner.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/grouping", tags=["grouping"])


class GroupingRequest(BaseModel):
    license_id: str = Field(min_length=1)
    max_group_size: Optional[int] = Field(default=None, gt=0)
    time_window_days: Optional[int] = Field(default=None, ge=0)
    reference_date: Optional[date] = None
    timeout_seconds: Optional[float] = Field(default=None, gt=0.0)


class GroupMemberResponse(BaseModel):
    employee_id: str
    employee_name: str
    employee_status: EmployeeStatus
    days_until_expiry: Optional[int] = None
    department: Optional[str] = None
    expiry_date: Optional[date] = None


class SessionLinkResponse(BaseModel):
    session_id: str
    title: str
    session_date: date
    available_spots: int = Field(ge=0)
    max_participants: int = Field(gt=0)
    start_time: Optional[str] = None
    location: Optional[str] = None


class PriorityScoreResponse(BaseModel):
    employee_id: str
    value: float = Field(ge=0.0)
    source: PrioritySource
    error: Optional[str] = None


class EmployeeGroupResponse(BaseModel):
    id: str
    name: str
    members: list[GroupMemberResponse]
    average_days_until_expiry: int
    department: Optional[str] = None
    priority: int = Field(ge=0)
    is_new_group: bool
    existing_session: Optional[SessionLinkResponse] = None
    member_priorities: list[PriorityScoreResponse]

    @classmethod
    def from_group(cls, group: EmployeeGroup) -> "EmployeeGroupResponse":
        session = group.existing_session
        return cls(
            id=group.id,
            name=group.name,
            members=[
                GroupMemberResponse(
                    employee_id=member.employee_id,
                    employee_name=member.employee_name,
                    employee_status=member.employee_status,
                    days_until_expiry=member.days_until_expiry,
                    department=member.department,
                    expiry_date=member.expiry_date,
                )
                for member in group.members
            ],
            average_days_until_expiry=group.average_days_until_expiry,
            department=group.department,
            priority=group.priority,
            is_new_group=group.is_new_group,
            existing_session=SessionLinkResponse(**asdict(session)) if session else None,
            member_priorities=[
                PriorityScoreResponse(**asdict(score)) for score in group.member_priorities
            ],
        )


class GroupingResponse(BaseModel):
    groups: list[EmployeeGroupResponse]
    total_employees: int = Field(ge=0)


class DepartmentSummaryResponse(BaseModel):
    department: str
    total: int = Field(ge=0)
    new: int = Field(ge=0)
    renewal: int = Field(ge=0)
    urgent: int = Field(ge=0)


class DepartmentSummariesResponse(BaseModel):
    departments: list[DepartmentSummaryResponse]


@router.post(
    "/suggestions",
    response_model=GroupingResponse,
    status_code=status.HTTP_200_OK,
)
async def suggest_groups(
    payload: GroupingRequest,
    service: GroupingService = Depends(get_grouping_service),
) -> GroupingResponse:
    """Partition employees needing the license into new or existing sessions."""
    try:
        groups = await service.suggest_groups(
            payload.license_id,
            max_group_size=payload.max_group_size,
            time_window_days=payload.time_window_days,
            reference_date=payload.reference_date,
            timeout_seconds=payload.timeout_seconds,
        )
        return GroupingResponse(
            groups=[EmployeeGroupResponse.from_group(group) for group in groups],
            total_employees=sum(len(group.members) for group in groups),
        )
    except GroupingValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except DataFetchTimeoutError as exc:
        raise HTTPException(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            detail=str(exc),
        ) from exc
    except SchedulingDataError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover
        logger.exception("Unexpected grouping failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to suggest groups",
        ) from exc


@router.get(
    "/departments",
    response_model=DepartmentSummariesResponse,
    status_code=status.HTTP_200_OK,
)
async def department_statistics(
    license_id: Optional[str] = Query(default=None, min_length=1),
    service: GroupingService = Depends(get_grouping_service),
) -> DepartmentSummariesResponse:
    try:
        summaries = await service.department_summary(license_id)
        return DepartmentSummariesResponse(
            departments=[DepartmentSummaryResponse(**asdict(item)) for item in summaries]
        )
    except DataFetchTimeoutError as exc:
        raise HTTPException(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            detail=str(exc),
        ) from exc
    except SchedulingDataError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover
        logger.exception("Unexpected department summary failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to summarize departments",
        ) from exc
