"""Great-circle distance plus speed and pace derivation.

All functions are pure. Speed and pace return ``None`` where they are
undefined (no elapsed time, no distance) instead of raising.
"""

from __future__ import annotations

import math

from pylivetrack._constants import EARTH_RADIUS_M, METERS_PER_KM, MPS_TO_KMH
from pylivetrack.models.geo import GeoPoint


def distance_meters(a: GeoPoint, b: GeoPoint) -> float:
    """Compute great-circle distance in meters between two points (haversine)."""
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    dlat = lat2 - lat1
    dlon = math.radians(b.longitude - a.longitude)

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    # Rounding can push h marginally outside [0, 1] near antipodes.
    h = min(1.0, max(0.0, h))
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(h))


def speed_kmh(distance_m: float, elapsed_seconds: float) -> float | None:
    """Average speed in km/h, or ``None`` when no time has elapsed."""
    if elapsed_seconds <= 0:
        return None
    return distance_m / elapsed_seconds * MPS_TO_KMH


def pace_seconds_per_km(distance_m: float, elapsed_seconds: float) -> float | None:
    """Seconds needed per kilometer, or ``None`` before any distance is covered."""
    if distance_m <= 0:
        return None
    return elapsed_seconds / (distance_m / METERS_PER_KM)


def format_pace(pace_seconds: float) -> str:
    """Format a pace as ``M:SS``."""
    minutes = math.floor(pace_seconds / 60)
    seconds = math.floor(pace_seconds % 60)
    return f"{minutes}:{seconds:02d}"
