"""Domain models for training scheduling recommendations and grouping."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Mapping, Optional


class UrgencyLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class EmployeeStatus(str, Enum):
    NEW = "new"
    EXPIRED = "expired"
    RENEWAL_DUE = "renewal_due"
    RENEWAL_APPROACHING = "renewal_approaching"
    VALID = "valid"


class ImpactLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class WarningType(str, Enum):
    AVAILABILITY = "availability"
    CAPACITY = "capacity"
    COST = "cost"
    LOCATION = "location"


class ConflictType(str, Enum):
    EMPLOYEE_UNAVAILABLE = "employee_unavailable"
    PROVIDER_CONFLICT = "provider_conflict"
    CAPACITY_EXCEEDED = "capacity_exceeded"


class PrioritySource(str, Enum):
    COMPUTED = "computed"
    DEFAULTED = "defaulted"


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lng: float


@dataclass(frozen=True)
class SchedulingConstraints:
    course_id: str
    preferred_start_date: Optional[date] = None
    preferred_end_date: Optional[date] = None
    max_participants: Optional[int] = None
    max_budget: Optional[float] = None
    max_travel_distance: Optional[float] = None
    preferred_location: Optional[GeoPoint] = None
    required_employee_ids: frozenset[str] = frozenset()
    excluded_employee_ids: frozenset[str] = frozenset()
    learning_style_preferences: frozenset[str] = frozenset()
    urgency_level: UrgencyLevel = UrgencyLevel.MEDIUM
    team_coverage_required: bool = False


@dataclass(frozen=True)
class ProviderCourse:
    course_id: str
    cost_breakdown: Mapping[str, Any] = field(default_factory=dict)
    number_of_sessions: int = 1
    max_participants: Optional[int] = None


@dataclass(frozen=True)
class ProviderCandidate:
    id: str
    name: str
    hourly_rate: Optional[float] = None
    travel_cost_per_km: Optional[float] = None
    base_location: Optional[GeoPoint] = None
    min_group_size: Optional[int] = None
    max_group_size: Optional[int] = None
    setup_cost: float = 0.0
    cancellation_fee: float = 0.0
    advance_booking_days: Optional[int] = None
    currency: str = "EUR"
    courses: tuple[ProviderCourse, ...] = ()

    def offers(self, course_id: str) -> bool:
        return any(course.course_id == course_id for course in self.courses)


@dataclass(frozen=True)
class EmployeeAvailabilityRecord:
    employee_id: str
    availability_type: str
    start_date: date
    end_date: date
    status: str = "active"
    impact_level: ImpactLevel = ImpactLevel.LOW
    employee_name: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    def overlaps(self, window_start: date, window_end: Optional[date]) -> bool:
        if self.end_date < window_start:
            return False
        return window_end is None or self.start_date <= window_end


@dataclass(frozen=True)
class LearningProfile:
    employee_id: str
    learning_style: str
    training_capacity_per_month: Optional[int] = None
    language_preference: Optional[str] = None
    performance_level: Optional[str] = None
    previous_training_success_rate: Optional[float] = None


@dataclass(frozen=True)
class CertificateExpiryRecord:
    employee_id: str
    license_id: str
    employee_status: EmployeeStatus
    days_until_expiry: Optional[int] = None
    department: Optional[str] = None
    work_location: Optional[str] = None
    expiry_date: Optional[date] = None
    employee_name: str = ""


@dataclass(frozen=True)
class ExistingSession:
    id: str
    title: str
    course_id: str
    session_date: date
    max_participants: int
    enrolled_count: int = 0
    start_time: Optional[str] = None
    location: Optional[str] = None
    provider_id: Optional[str] = None
    license_ids: frozenset[str] = frozenset()

    @property
    def available_spots(self) -> int:
        return self.max_participants - self.enrolled_count


@dataclass(frozen=True)
class WorkArrangement:
    employee_id: str
    work_schedule: Optional[str] = None
    primary_work_location: Optional[str] = None
    travel_restrictions: Optional[str] = None
    mobility_limitations: Optional[str] = None
    max_travel_distance_km: Optional[float] = None


@dataclass(frozen=True)
class SchedulingSnapshot:
    """Everything one recommendation request reads from collaborators."""

    providers: list[ProviderCandidate]
    availability: list[EmployeeAvailabilityRecord]
    learning_profiles: list[LearningProfile]
    certificate_expiry: list[CertificateExpiryRecord]
    existing_sessions: list[ExistingSession]
    work_arrangements: list[WorkArrangement]


@dataclass(frozen=True)
class ProviderSummary:
    id: str
    name: str
    hourly_rate: Optional[float]
    travel_cost: float
    distance_km: float
    total_estimated_cost: float
    currency: str = "EUR"


@dataclass(frozen=True)
class ProposedSession:
    date: date
    start_time: str
    end_time: str


@dataclass(frozen=True)
class SessionSchedule:
    start_date: date
    end_date: date
    sessions: tuple[ProposedSession, ...]


@dataclass(frozen=True)
class EmployeeAvailabilitySummary:
    employee_id: str
    name: str
    availability_score: float
    compatibility_score: float
    urgency_score: float
    certificate_expiry_days: Optional[int] = None


@dataclass(frozen=True)
class ConflictWarning:
    type: WarningType
    message: str
    severity: Severity


@dataclass(frozen=True)
class BusinessImpact:
    team_coverage_score: float
    skill_gap_impact: float
    compliance_urgency: float


@dataclass(frozen=True)
class Recommendation:
    score: float
    provider: ProviderSummary
    suggested_dates: SessionSchedule
    available_employees: list[EmployeeAvailabilitySummary]
    conflict_warnings: list[ConflictWarning]
    business_impact: BusinessImpact


@dataclass(frozen=True)
class SchedulingConflict:
    type: ConflictType
    message: str
    affected_employee_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class CostComponent:
    component: str
    amount: float
    currency: str


@dataclass(frozen=True)
class SavingsOpportunity:
    description: str
    potential_savings: float
    recommendation: str


@dataclass(frozen=True)
class CostOptimization:
    cheapest_provider: Optional[ProviderSummary]
    cost_breakdown: list[CostComponent]
    savings_opportunities: list[SavingsOpportunity]


@dataclass(frozen=True)
class SessionLink:
    session_id: str
    title: str
    session_date: date
    available_spots: int
    max_participants: int
    start_time: Optional[str] = None
    location: Optional[str] = None


@dataclass(frozen=True)
class PriorityScore:
    employee_id: str
    value: float
    source: PrioritySource
    error: Optional[str] = None

    @property
    def defaulted(self) -> bool:
        return self.source is PrioritySource.DEFAULTED


@dataclass(frozen=True)
class EmployeeGroup:
    id: str
    name: str
    members: tuple[CertificateExpiryRecord, ...]
    average_days_until_expiry: int
    department: Optional[str]
    priority: int
    existing_session: Optional[SessionLink] = None
    member_priorities: tuple[PriorityScore, ...] = ()

    @property
    def is_new_group(self) -> bool:
        return self.existing_session is None

    @property
    def member_ids(self) -> list[str]:
        return [member.employee_id for member in self.members]


@dataclass(frozen=True)
class DepartmentSummary:
    department: str
    total: int
    new: int
    renewal: int
    urgent: int
