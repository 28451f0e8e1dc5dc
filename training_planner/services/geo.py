"""Great-circle distance helpers."""

from __future__ import annotations

import math

from training_planner.domain.models import GeoPoint


EARTH_RADIUS_KM = 6371.0


def haversine_distance_km(origin: GeoPoint, destination: GeoPoint) -> float:
    """Return the haversine distance in kilometres, rounded to two decimals."""
    lat1 = math.radians(origin.lat)
    lat2 = math.radians(destination.lat)
    d_lat = math.radians(destination.lat - origin.lat)
    d_lng = math.radians(destination.lng - origin.lng)

    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return round(EARTH_RADIUS_KM * c, 2)
