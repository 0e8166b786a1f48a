"""Constants used across pylivetrack."""

from __future__ import annotations

#: Mean Earth radius used by the haversine formula, in meters.
EARTH_RADIUS_M: float = 6_371_000.0

#: Inter-sample distances at or below this are treated as GPS noise.
DEFAULT_JITTER_THRESHOLD_M: float = 1.0

#: Location watch defaults (mirroring the browser geolocation options).
DEFAULT_HIGH_ACCURACY: bool = True
DEFAULT_MAX_STALENESS_MS: int = 1000
DEFAULT_TIMEOUT_MS: int = 10000

#: Map zoom applied when recentering on the first sample of a session.
DEFAULT_RECENTER_ZOOM: int = 16

MS_PER_SECOND: float = 1000.0
METERS_PER_KM: float = 1000.0
MPS_TO_KMH: float = 3.6

PERMISSION_WARNING: str = (
    "Motion access is blocked.\n"
    "On iOS: Settings → Safari → Advanced → Motion & Orientation Access → ON, "
    "then press Start again."
)

LOCATION_UNAVAILABLE_MESSAGE: str = "Geolocation not supported on this device/browser."
