"""Bridge to a phone that publishes its sensors and location over MQTT.

The device publishes JSON objects below a topic prefix::

    <prefix>/motion                 {"accelerationIncludingGravity": {"x": .., "y": .., "z": ..}}
    <prefix>/orientation            {"alpha": .., "beta": .., "gamma": ..}
    <prefix>/orientation/absolute   {"alpha": .., "beta": .., "gamma": .., "absolute": true}
    <prefix>/location               {"lat": .., "lon": .., "acc": .., "tst": ..}

:class:`MqttDevicePlatform` serves both as the
:class:`~pylivetrack.platform.SensorPlatform` and as the
:class:`~pylivetrack.platform.LocationService` of a tracking session.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from pylivetrack._mqtt import DeviceMqttRuntime, MqttEndpoint, MqttEvent
from pylivetrack.config import TrackerConfig
from pylivetrack.exceptions import (
    LiveTrackError,
    LocationErrorCode,
    LocationSampleError,
    LocationUnavailableError,
    SensorUnavailableError,
)
from pylivetrack.models.geo import PositionSample
from pylivetrack.platform import ConsentResult, LocationOptions, RawEventCallback, SensorEvent

_logger = logging.getLogger(__name__)

LOCATION_CHANNEL = "location"

CHANNEL_EVENTS: dict[str, SensorEvent] = {
    "motion": SensorEvent.DEVICE_MOTION,
    "orientation": SensorEvent.DEVICE_ORIENTATION,
    "orientation/absolute": SensorEvent.DEVICE_ORIENTATION_ABSOLUTE,
}


@dataclass(eq=False)
class _LocationWatch:
    on_sample: Callable[[PositionSample], None]
    on_error: Callable[[LocationSampleError], None]
    options: LocationOptions
    timer: asyncio.TimerHandle | None = None
    newest_ts_ms: int | None = None


class MqttDevicePlatform:
    """Sensor platform and location service backed by MQTT device topics.

    Usage::

        async with MqttDevicePlatform(config) as device:
            session = TrackingSession(device, device, view, config)
    """

    def __init__(self, config: TrackerConfig) -> None:
        self._config = config
        self._loop: asyncio.AbstractEventLoop | None = None
        self._runtime: DeviceMqttRuntime | None = None
        self._ids = itertools.count(1)
        self._listeners: dict[int, tuple[SensorEvent, RawEventCallback]] = {}
        self._watches: dict[int, _LocationWatch] = {}

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> MqttDevicePlatform:
        self._loop = asyncio.get_running_loop()
        try:
            endpoint = MqttEndpoint.from_config(self._config)
        except LiveTrackError:
            _logger.warning("MQTT device bridge not configured; location stays unavailable")
            return self
        runtime = DeviceMqttRuntime(
            loop=self._loop,
            on_event=self.dispatch,
            keepalive=self._config.mqtt_keepalive,
            logger=_logger,
        )
        try:
            await self._loop.run_in_executor(None, runtime.start, endpoint)
        except OSError:
            _logger.warning("MQTT device bridge connection failed", exc_info=True)
            return self
        self._runtime = runtime
        return self

    async def __aexit__(self, *exc: Any) -> None:
        for handle in list(self._watches):
            self.cancel_watch(handle)
        self._listeners.clear()
        runtime = self._runtime
        self._runtime = None
        if runtime is not None and self._loop is not None:
            try:
                await self._loop.run_in_executor(None, runtime.stop)
            except Exception:
                _logger.debug("MQTT runtime stop failed", exc_info=True)
        self._loop = None

    @property
    def is_running(self) -> bool:
        return self._runtime is not None and self._runtime.is_running

    # ------------------------------------------------------------------
    # SensorPlatform
    # ------------------------------------------------------------------

    def supports_event(self, event: SensorEvent) -> bool:
        return event in self._config.device_events

    def supports_motion_consent(self) -> bool:
        return False

    def supports_orientation_consent(self) -> bool:
        return False

    async def request_motion_access(self) -> ConsentResult:
        return ConsentResult.GRANTED if self.supports_event(SensorEvent.DEVICE_MOTION) else ConsentResult.DENIED

    async def request_orientation_access(self) -> ConsentResult:
        if self.supports_event(SensorEvent.DEVICE_ORIENTATION) or self.supports_event(
            SensorEvent.DEVICE_ORIENTATION_ABSOLUTE
        ):
            return ConsentResult.GRANTED
        return ConsentResult.DENIED

    def add_listener(self, event: SensorEvent, callback: RawEventCallback) -> int:
        if not self.supports_event(event):
            raise SensorUnavailableError(f"Device does not publish {event}", sensor=str(event))
        token = next(self._ids)
        self._listeners[token] = (event, callback)
        return token

    def remove_listener(self, token: Any) -> None:
        self._listeners.pop(token, None)

    # ------------------------------------------------------------------
    # LocationService
    # ------------------------------------------------------------------

    def watch(
        self,
        on_sample: Callable[[PositionSample], None],
        on_error: Callable[[LocationSampleError], None],
        options: LocationOptions,
    ) -> int:
        if not self.is_running or self._loop is None:
            raise LocationUnavailableError("MQTT device bridge is not connected")
        if options.high_accuracy:
            _logger.debug("High accuracy requested; accuracy is decided by the device")
        handle = next(self._ids)
        watch = _LocationWatch(on_sample=on_sample, on_error=on_error, options=options)
        self._watches[handle] = watch
        self._arm(handle, watch)
        return handle

    def cancel_watch(self, handle: Any) -> None:
        watch = self._watches.pop(handle, None)
        if watch is not None and watch.timer is not None:
            watch.timer.cancel()
            watch.timer = None

    # ------------------------------------------------------------------
    # Event dispatch (runs on the event loop)
    # ------------------------------------------------------------------

    def dispatch(self, event: MqttEvent) -> None:
        if event.channel == LOCATION_CHANNEL:
            if event.retained:
                # A retained fix is the broker's cached position, not a live one.
                _logger.warning("Dropping retained location fix topic=%s", event.topic)
                return
            self._dispatch_location(event.payload)
            return
        sensor_event = CHANNEL_EVENTS.get(event.channel)
        if sensor_event is None:
            _logger.debug("Ignoring device channel %s", event.channel)
            return
        for registered, callback in list(self._listeners.values()):
            if registered is sensor_event:
                callback(event.payload)

    def _dispatch_location(self, payload: dict[str, Any]) -> None:
        if not self._watches:
            return
        try:
            sample = PositionSample.model_validate(payload)
        except ValidationError as exc:
            _logger.debug("Malformed location payload", exc_info=True)
            error = LocationSampleError(
                f"Malformed location payload: {exc.error_count()} error(s)",
                code=LocationErrorCode.POSITION_UNAVAILABLE,
            )
            for watch in list(self._watches.values()):
                watch.on_error(error)
            return

        ts = sample.timestamp_ms
        for handle, watch in list(self._watches.items()):
            if handle not in self._watches:
                continue
            # Age is measured on the device clock: against the newest fix this
            # watch has accepted, so phone/server skew never matters.
            if ts is not None and watch.newest_ts_ms is not None:
                age_ms = watch.newest_ts_ms - ts
                if age_ms > watch.options.max_staleness_ms:
                    _logger.warning("Dropping stale location sample age_ms=%d", age_ms)
                    continue
                watch.newest_ts_ms = max(watch.newest_ts_ms, ts)
            elif ts is not None:
                watch.newest_ts_ms = ts
            self._arm(handle, watch)
            watch.on_sample(sample)

    def _arm(self, handle: int, watch: _LocationWatch) -> None:
        if watch.timer is not None:
            watch.timer.cancel()
        loop = self._loop
        if loop is None:
            watch.timer = None
            return
        watch.timer = loop.call_later(watch.options.timeout_ms / 1000, self._on_timeout, handle)

    def _on_timeout(self, handle: int) -> None:
        watch = self._watches.get(handle)
        if watch is None:
            return
        watch.timer = None
        # Keep retrying: report the timeout and wait for the next sample.
        self._arm(handle, watch)
        watch.on_error(
            LocationSampleError(
                f"No location sample within {watch.options.timeout_ms} ms",
                code=LocationErrorCode.TIMEOUT,
            )
        )
