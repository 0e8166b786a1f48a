"""pylivetrack - Live activity tracking: sensors, path, distance, speed and pace."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pylivetrack")
except PackageNotFoundError:
    __version__ = "0+local"
from pylivetrack.config import TrackerConfig
from pylivetrack.device import MqttDevicePlatform
from pylivetrack.display import DisplayField
from pylivetrack.exceptions import (
    LiveTrackError,
    LocationErrorCode,
    LocationSampleError,
    LocationUnavailableError,
    PermissionDeniedError,
    SensorAccessError,
    SensorUnavailableError,
    TrackerConfigError,
)
from pylivetrack.geo import distance_meters, format_pace, pace_seconds_per_km, speed_kmh
from pylivetrack.models import (
    GeoPoint,
    MotionReading,
    OrientationReading,
    PermissionStatus,
    PositionSample,
    SessionSnapshot,
    SessionStatus,
)
from pylivetrack.permissions import PermissionGate
from pylivetrack.platform import (
    ConsentResult,
    LocationOptions,
    LocationService,
    SensorEvent,
    SensorPlatform,
    ViewAdapter,
)
from pylivetrack.sensors import SensorFeed, SubscriptionHandle
from pylivetrack.tracking import TrackingSession
from pylivetrack.view import BroadcastView

__all__ = [
    "__version__",
    "BroadcastView",
    "ConsentResult",
    "DisplayField",
    "GeoPoint",
    "LiveTrackError",
    "LocationErrorCode",
    "LocationOptions",
    "LocationSampleError",
    "LocationService",
    "LocationUnavailableError",
    "MotionReading",
    "MqttDevicePlatform",
    "OrientationReading",
    "PermissionDeniedError",
    "PermissionGate",
    "PermissionStatus",
    "PositionSample",
    "SensorAccessError",
    "SensorEvent",
    "SensorFeed",
    "SensorPlatform",
    "SensorUnavailableError",
    "SessionSnapshot",
    "SessionStatus",
    "SubscriptionHandle",
    "TrackerConfig",
    "TrackingSession",
    "ViewAdapter",
    "distance_meters",
    "format_pace",
    "pace_seconds_per_km",
    "speed_kmh",
]
