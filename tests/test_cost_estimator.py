from __future__ import annotations

import pytest

from training_planner.domain.models import GeoPoint, ProviderCandidate, ProviderCourse
from training_planner.services.cost_estimator import (
    RankedCost,
    build_cost_breakdown,
    estimate_cost,
    find_savings_opportunities,
    provider_distance_km,
    rank_by_total_cost,
)
from training_planner.services.geo import haversine_distance_km


AMSTERDAM = GeoPoint(lat=52.3676, lng=4.9041)
ROTTERDAM = GeoPoint(lat=51.9225, lng=4.47917)


def _provider(provider_id: str, **overrides) -> ProviderCandidate:
    defaults = {
        "id": provider_id,
        "name": provider_id.title(),
        "hourly_rate": 100.0,
        "travel_cost_per_km": 2.0,
        "courses": (ProviderCourse(course_id="course-bhv"),),
    }
    defaults.update(overrides)
    return ProviderCandidate(**defaults)


def test_haversine_is_zero_for_same_point() -> None:
    assert haversine_distance_km(AMSTERDAM, AMSTERDAM) == 0.0


def test_haversine_is_symmetric() -> None:
    assert haversine_distance_km(AMSTERDAM, ROTTERDAM) == haversine_distance_km(ROTTERDAM, AMSTERDAM)


def test_haversine_matches_known_city_distance() -> None:
    assert haversine_distance_km(AMSTERDAM, ROTTERDAM) == pytest.approx(57.0, abs=2.0)


def test_full_day_rate_plus_travel_totals_900() -> None:
    estimate = estimate_cost(_provider("north"), 50.0)

    assert estimate.base_cost == 800.0
    assert estimate.travel_cost == 100.0
    assert estimate.setup_cost == 0.0
    assert estimate.total == 900.0


def test_missing_coordinates_zero_travel_cost() -> None:
    provider = _provider("north", base_location=ROTTERDAM)

    distance = provider_distance_km(provider, None)
    estimate = estimate_cost(provider, distance)

    assert distance is None
    assert estimate.distance_km == 0.0
    assert estimate.travel_cost == 0.0


def test_setup_cost_is_included_and_missing_rate_is_free() -> None:
    estimate = estimate_cost(_provider("north", hourly_rate=None, setup_cost=150.0), None)
    assert estimate.total == 150.0


def test_cost_breakdown_lists_training_travel_setup() -> None:
    breakdown = build_cost_breakdown(estimate_cost(_provider("north"), 50.0), "EUR")
    assert [(item.component, item.amount) for item in breakdown] == [
        ("Training", 800.0),
        ("Travel", 100.0),
        ("Setup", 0.0),
    ]


def test_rank_by_total_cost_keeps_input_order_on_ties() -> None:
    first = RankedCost(_provider("first"), estimate_cost(_provider("first"), 0.0))
    second = RankedCost(_provider("second"), estimate_cost(_provider("second"), 0.0))
    cheap = RankedCost(_provider("cheap", hourly_rate=50.0), estimate_cost(_provider("cheap", hourly_rate=50.0), 0.0))

    ranked = rank_by_total_cost([first, second, cheap])

    assert [item.provider.id for item in ranked] == ["cheap", "first", "second"]


def test_savings_opportunity_reported_above_threshold() -> None:
    cheap = _provider("cheap")
    pricey = _provider("pricey", setup_cost=100.0)
    ranked = rank_by_total_cost(
        [
            RankedCost(pricey, estimate_cost(pricey, 50.0)),
            RankedCost(cheap, estimate_cost(cheap, 50.0)),
        ]
    )

    opportunities = find_savings_opportunities(ranked, threshold=50.0)

    assert len(opportunities) == 1
    assert opportunities[0].potential_savings == 100.0
    assert opportunities[0].recommendation == "Select Cheap instead of Pricey"


def test_no_savings_opportunity_below_threshold() -> None:
    cheap = _provider("cheap")
    close = _provider("close", setup_cost=40.0)
    ranked = rank_by_total_cost(
        [RankedCost(cheap, estimate_cost(cheap, 0.0)), RankedCost(close, estimate_cost(close, 0.0))]
    )
    assert find_savings_opportunities(ranked, threshold=50.0) == []
    assert find_savings_opportunities(ranked[:1], threshold=50.0) == []
