"""Data models for pylivetrack."""

from pylivetrack.models._base import TrackerBaseModel
from pylivetrack.models.geo import GeoPoint, PositionSample
from pylivetrack.models.sensors import MotionReading, OrientationReading
from pylivetrack.models.session import PermissionStatus, SessionSnapshot, SessionStatus

__all__ = [
    "GeoPoint",
    "MotionReading",
    "OrientationReading",
    "PermissionStatus",
    "PositionSample",
    "SessionSnapshot",
    "SessionStatus",
    "TrackerBaseModel",
]
