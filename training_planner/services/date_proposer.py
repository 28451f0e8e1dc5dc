"""Session date proposals from provider booking lead time."""

from __future__ import annotations

from datetime import date, timedelta

from training_planner.domain.models import (
    ProposedSession,
    ProviderCandidate,
    SchedulingConstraints,
    SessionSchedule,
)


def propose_dates(
    provider: ProviderCandidate,
    constraints: SchedulingConstraints,
    *,
    reference_date: date,
    default_lead_time_days: int = 14,
    start_time: str = "09:00",
    end_time: str = "17:00",
) -> SessionSchedule:
    """Propose a single full-day session once the provider's lead time has passed.

    Spreading a course over several sessions is not attempted yet; the schedule
    type already carries a tuple of sessions for that.
    """
    start = constraints.preferred_start_date or reference_date
    lead_time = (
        provider.advance_booking_days
        if provider.advance_booking_days is not None
        else default_lead_time_days
    )
    session_date = start + timedelta(days=lead_time)
    session = ProposedSession(date=session_date, start_time=start_time, end_time=end_time)
    return SessionSchedule(
        start_date=session_date,
        end_date=session_date,
        sessions=(session,),
    )
