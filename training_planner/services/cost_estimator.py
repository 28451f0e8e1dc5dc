"""Provider cost estimation and savings analysis."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from training_planner.domain.models import (
    CostComponent,
    GeoPoint,
    ProviderCandidate,
    SavingsOpportunity,
)
from training_planner.services.geo import haversine_distance_km


TRAINING_DAY_HOURS = 8


@dataclass(frozen=True)
class CostEstimate:
    distance_km: float
    base_cost: float
    setup_cost: float
    travel_cost: float

    @property
    def total(self) -> float:
        return self.base_cost + self.setup_cost + self.travel_cost


@dataclass(frozen=True)
class RankedCost:
    provider: ProviderCandidate
    estimate: CostEstimate


def provider_distance_km(
    provider: ProviderCandidate,
    preferred_location: Optional[GeoPoint],
) -> Optional[float]:
    """Distance to the provider base, or None when either side has no coordinates."""
    if preferred_location is None or provider.base_location is None:
        return None
    return haversine_distance_km(preferred_location, provider.base_location)


def estimate_cost(
    provider: ProviderCandidate,
    distance_km: Optional[float],
    training_day_hours: int = TRAINING_DAY_HOURS,
) -> CostEstimate:
    """Combine a full training day, setup fee and travel into one estimate.

    `distance_km` is None when no coordinates are available, which zeroes travel.
    """
    travel_cost = 0.0
    if distance_km is not None and provider.travel_cost_per_km:
        travel_cost = provider.travel_cost_per_km * distance_km

    base_cost = provider.hourly_rate * training_day_hours if provider.hourly_rate else 0.0
    return CostEstimate(
        distance_km=distance_km or 0.0,
        base_cost=float(base_cost),
        setup_cost=float(provider.setup_cost or 0.0),
        travel_cost=float(travel_cost),
    )


def build_cost_breakdown(estimate: CostEstimate, currency: str) -> list[CostComponent]:
    return [
        CostComponent(component="Training", amount=estimate.base_cost, currency=currency),
        CostComponent(component="Travel", amount=estimate.travel_cost, currency=currency),
        CostComponent(component="Setup", amount=estimate.setup_cost, currency=currency),
    ]


def rank_by_total_cost(ranked: list[RankedCost]) -> list[RankedCost]:
    # sorted() is stable so equal totals keep input order
    return sorted(ranked, key=lambda item: item.estimate.total)


def find_savings_opportunities(
    ranked: list[RankedCost],
    threshold: float,
) -> list[SavingsOpportunity]:
    """Compare the two cheapest candidates; `ranked` must already be cost-ordered."""
    if len(ranked) < 2:
        return []

    cheapest, runner_up = ranked[0], ranked[1]
    difference = runner_up.estimate.total - cheapest.estimate.total
    if difference <= threshold:
        return []
    return [
        SavingsOpportunity(
            description="Choose lower-cost provider",
            potential_savings=round(difference, 2),
            recommendation=(
                f"Select {cheapest.provider.name} instead of {runner_up.provider.name}"
            ),
        )
    ]
