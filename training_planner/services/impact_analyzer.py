"""Business impact signals for a scheduling recommendation."""

from __future__ import annotations

from training_planner.domain.models import (
    BusinessImpact,
    CertificateExpiryRecord,
    EmployeeAvailabilitySummary,
    EmployeeStatus,
)


def analyze_business_impact(
    employees: list[EmployeeAvailabilitySummary],
    certificate_expiry: list[CertificateExpiryRecord],
) -> BusinessImpact:
    """Coverage is capped at 100; skill gap and urgency are relative, unbounded signals."""
    relevant_ids = {employee.employee_id for employee in employees}
    relevant_rows = [row for row in certificate_expiry if row.employee_id in relevant_ids]

    expired = sum(1 for row in relevant_rows if row.employee_status is EmployeeStatus.EXPIRED)
    renewal_due = sum(
        1 for row in relevant_rows if row.employee_status is EmployeeStatus.RENEWAL_DUE
    )
    return BusinessImpact(
        team_coverage_score=float(min(100, len(employees) * 10)),
        skill_gap_impact=float(expired * 20),
        compliance_urgency=float(expired * 30 + renewal_due * 20),
    )
