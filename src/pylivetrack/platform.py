"""Interfaces of the platform collaborators the tracker consumes.

The tracker never probes the platform ad hoc. Every capability is a
definite boolean answered by a :class:`SensorPlatform`, and rendering,
location sampling and sensor events are reached only through these
protocols, so test doubles and real bridges are interchangeable.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Protocol

from pylivetrack.exceptions import LocationSampleError
from pylivetrack.models.geo import GeoPoint, PositionSample

RawEventCallback = Callable[[Mapping[str, Any]], None]


class SensorEvent(StrEnum):
    DEVICE_MOTION = "devicemotion"
    DEVICE_ORIENTATION = "deviceorientation"
    DEVICE_ORIENTATION_ABSOLUTE = "deviceorientationabsolute"


class ConsentResult(StrEnum):
    GRANTED = "granted"
    DENIED = "denied"


@dataclass(frozen=True)
class LocationOptions:
    """Options passed to :meth:`LocationService.watch`."""

    high_accuracy: bool = True
    max_staleness_ms: int = 1000
    timeout_ms: int = 10000


class SensorPlatform(Protocol):
    """Capability queries, consent prompts and raw sensor event listeners."""

    def supports_event(self, event: SensorEvent) -> bool:
        ...

    def supports_motion_consent(self) -> bool:
        ...

    def supports_orientation_consent(self) -> bool:
        ...

    async def request_motion_access(self) -> ConsentResult | str:
        ...

    async def request_orientation_access(self) -> ConsentResult | str:
        ...

    def add_listener(self, event: SensorEvent, callback: RawEventCallback) -> Any:
        """Register *callback* and return an opaque token for :meth:`remove_listener`."""
        ...

    def remove_listener(self, token: Any) -> None:
        ...


class LocationService(Protocol):
    """Continuous position sampling."""

    def watch(
        self,
        on_sample: Callable[[PositionSample], None],
        on_error: Callable[[LocationSampleError], None],
        options: LocationOptions,
    ) -> Any:
        ...

    def cancel_watch(self, handle: Any) -> None:
        ...


class ViewAdapter(Protocol):
    """Map and readout rendering."""

    def reset_path(self) -> None:
        ...

    def append_path_point(self, point: GeoPoint) -> None:
        ...

    def place_or_move_marker(self, point: GeoPoint) -> None:
        ...

    def recenter(self, point: GeoPoint, zoom: int) -> None:
        ...

    def set_text(self, field_id: str, value: str) -> None:
        ...

    def set_controls(self, *, start_enabled: bool, stop_enabled: bool) -> None:
        ...

    def alert(self, message: str) -> None:
        ...
