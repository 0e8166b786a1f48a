from __future__ import annotations

import asyncio
import itertools
from collections.abc import Callable, Mapping
from typing import Any

import pytest

from pylivetrack.exceptions import LocationSampleError
from pylivetrack.models.geo import GeoPoint, PositionSample
from pylivetrack.platform import ConsentResult, LocationOptions, SensorEvent


class FakePlatform:
    """In-memory SensorPlatform with scriptable capabilities and consent."""

    def __init__(
        self,
        *,
        events: set[SensorEvent] | None = None,
        motion_consent: ConsentResult | str | Exception | None = None,
        orientation_consent: ConsentResult | str | Exception | None = None,
    ) -> None:
        self.events = (
            set(events)
            if events is not None
            else {SensorEvent.DEVICE_MOTION, SensorEvent.DEVICE_ORIENTATION}
        )
        # None means "no consent API on this platform".
        self.motion_consent = motion_consent
        self.orientation_consent = orientation_consent
        self.consent_gate: asyncio.Event | None = None
        self.consent_requests = 0
        self.listeners: dict[int, tuple[SensorEvent, Callable[[Mapping[str, Any]], None]]] = {}
        self.removed: list[int] = []
        self.captured: list[tuple[SensorEvent, Callable[[Mapping[str, Any]], None]]] = []
        self._ids = itertools.count(1)

    def supports_event(self, event: SensorEvent) -> bool:
        return event in self.events

    def supports_motion_consent(self) -> bool:
        return self.motion_consent is not None

    def supports_orientation_consent(self) -> bool:
        return self.orientation_consent is not None

    async def _consent(self, result: ConsentResult | str | Exception | None) -> ConsentResult | str:
        self.consent_requests += 1
        if self.consent_gate is not None:
            await self.consent_gate.wait()
        if isinstance(result, Exception):
            raise result
        assert result is not None
        return result

    async def request_motion_access(self) -> ConsentResult | str:
        return await self._consent(self.motion_consent)

    async def request_orientation_access(self) -> ConsentResult | str:
        return await self._consent(self.orientation_consent)

    def add_listener(self, event: SensorEvent, callback: Callable[[Mapping[str, Any]], None]) -> int:
        token = next(self._ids)
        self.listeners[token] = (event, callback)
        self.captured.append((event, callback))
        return token

    def remove_listener(self, token: Any) -> None:
        self.removed.append(token)
        self.listeners.pop(token, None)

    def emit(self, event: SensorEvent, payload: Mapping[str, Any]) -> None:
        for registered, callback in list(self.listeners.values()):
            if registered is event:
                callback(payload)

    def emit_late(self, event: SensorEvent, payload: Mapping[str, Any]) -> None:
        """Deliver to every callback ever registered, released or not."""
        for registered, callback in self.captured:
            if registered is event:
                callback(payload)


class FakeLocation:
    """LocationService that records watches and lets tests push samples."""

    def __init__(self) -> None:
        self.watches: dict[int, tuple[Callable[..., None], Callable[..., None], LocationOptions]] = {}
        self.all_watches: list[tuple[Callable[..., None], Callable[..., None], LocationOptions]] = []
        self.cancelled: list[int] = []
        self._ids = itertools.count(1)

    def watch(self, on_sample, on_error, options: LocationOptions) -> int:
        handle = next(self._ids)
        self.watches[handle] = (on_sample, on_error, options)
        self.all_watches.append((on_sample, on_error, options))
        return handle

    def cancel_watch(self, handle: Any) -> None:
        self.cancelled.append(handle)
        self.watches.pop(handle, None)

    def emit(self, latitude: float, longitude: float, accuracy: float = 5.0) -> None:
        sample = PositionSample(point=GeoPoint(latitude=latitude, longitude=longitude), accuracy_m=accuracy)
        for on_sample, _on_error, _options in list(self.watches.values()):
            on_sample(sample)

    def emit_late(self, latitude: float, longitude: float) -> None:
        sample = PositionSample(point=GeoPoint(latitude=latitude, longitude=longitude), accuracy_m=5.0)
        for on_sample, _on_error, _options in self.all_watches:
            on_sample(sample)

    def fail(self, error: LocationSampleError) -> None:
        for _on_sample, on_error, _options in list(self.watches.values()):
            on_error(error)


class RecordingView:
    """ViewAdapter that records every call."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, Any]] = []
        self.texts: dict[str, str] = {}
        self.path: list[GeoPoint] = []
        self.marker: GeoPoint | None = None
        self.centers: list[tuple[GeoPoint, int]] = []
        self.controls: tuple[bool, bool] | None = None
        self.alerts: list[str] = []

    def count(self, name: str) -> int:
        return sum(1 for call, _ in self.calls if call == name)

    def reset_path(self) -> None:
        self.calls.append(("reset_path", None))
        self.path.clear()
        self.marker = None

    def append_path_point(self, point: GeoPoint) -> None:
        self.calls.append(("append_path_point", point))
        self.path.append(point)

    def place_or_move_marker(self, point: GeoPoint) -> None:
        self.calls.append(("place_or_move_marker", point))
        self.marker = point

    def recenter(self, point: GeoPoint, zoom: int) -> None:
        self.calls.append(("recenter", (point, zoom)))
        self.centers.append((point, zoom))

    def set_text(self, field_id: str, value: str) -> None:
        self.calls.append(("set_text", (str(field_id), value)))
        self.texts[str(field_id)] = value

    def set_controls(self, *, start_enabled: bool, stop_enabled: bool) -> None:
        self.calls.append(("set_controls", (start_enabled, stop_enabled)))
        self.controls = (start_enabled, stop_enabled)

    def alert(self, message: str) -> None:
        self.calls.append(("alert", message))
        self.alerts.append(message)


class FakeClock:
    def __init__(self, now_ms: int = 1_700_000_000_000) -> None:
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, seconds: float) -> None:
        self.now_ms += int(seconds * 1000)


@pytest.fixture
def platform() -> FakePlatform:
    return FakePlatform()


@pytest.fixture
def location() -> FakeLocation:
    return FakeLocation()


@pytest.fixture
def view() -> RecordingView:
    return RecordingView()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
