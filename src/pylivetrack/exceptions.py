"""Custom exception hierarchy for pylivetrack."""

from __future__ import annotations

import enum


class LiveTrackError(Exception):
    """Base exception for all pylivetrack errors."""


class TrackerConfigError(LiveTrackError):
    """Invalid or missing configuration."""


class SensorAccessError(LiveTrackError):
    """A motion or orientation channel cannot be used."""

    def __init__(self, message: str, *, sensor: str = "") -> None:
        self.sensor = sensor
        super().__init__(message)


class PermissionDeniedError(SensorAccessError):
    """A sensor consent request was rejected or failed."""


class SensorUnavailableError(SensorAccessError):
    """The platform lacks the requested sensor event type.

    Handled exactly like :class:`PermissionDeniedError`: the channel
    simply never emits.
    """


class LocationUnavailableError(LiveTrackError):
    """The platform has no location service at all."""


class LocationErrorCode(enum.IntEnum):
    """Failure codes reported by a location service for a single sample."""

    PERMISSION_DENIED = 1
    POSITION_UNAVAILABLE = 2
    TIMEOUT = 3


class LocationSampleError(LiveTrackError):
    """A single location sample could not be acquired.

    Recovered locally: the session logs it and keeps waiting for the
    next sample.
    """

    def __init__(
        self,
        message: str,
        *,
        code: LocationErrorCode = LocationErrorCode.POSITION_UNAVAILABLE,
    ) -> None:
        self.code = code
        super().__init__(message)
