"""Tracking session state machine.

A :class:`TrackingSession` owns the one :class:`SessionState` of a
tracking UI. It is Idle until :meth:`TrackingSession.start` succeeds and
returns to Idle on :meth:`TrackingSession.stop`. While Running, every
position sample updates cumulative distance, speed and pace and is
forwarded to the view.

Every start and stop advances a generation counter. Callbacks handed to
the sensor feed and the location service carry the generation that
created them, so anything delivered late (after a stop, or after a newer
start) is dropped instead of touching the state of another session.
"""

from __future__ import annotations

import functools
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from pylivetrack._constants import MS_PER_SECOND
from pylivetrack.config import TrackerConfig
from pylivetrack.display import (
    RESET_FIELDS,
    DisplayField,
    format_distance,
    format_pace_text,
    format_speed,
    motion_fields,
    orientation_fields,
    position_fields,
)
from pylivetrack.exceptions import LocationSampleError, LocationUnavailableError
from pylivetrack.geo import distance_meters, pace_seconds_per_km, speed_kmh
from pylivetrack.models.geo import GeoPoint, PositionSample
from pylivetrack.models.sensors import MotionReading, OrientationReading
from pylivetrack.models.session import PermissionStatus, SessionSnapshot, SessionStatus
from pylivetrack.permissions import PermissionGate
from pylivetrack.platform import LocationOptions, LocationService, SensorPlatform, ViewAdapter
from pylivetrack.sensors import SensorFeed

_logger = logging.getLogger(__name__)


def _now_ms() -> int:
    """Current epoch timestamp in milliseconds."""
    return int(time.time() * 1000)


@dataclass(eq=False)
class _Lease:
    """A subscription that must be released exactly once."""

    name: str
    release: Callable[[], None]


@dataclass
class SessionState:
    status: SessionStatus = SessionStatus.IDLE
    started_at_epoch_ms: int | None = None
    last_point: GeoPoint | None = None
    cumulative_distance_m: float = 0.0
    sample_count: int = 0
    subscription_handles: set[_Lease] = field(default_factory=set)
    permissions: PermissionStatus | None = None
    location_available: bool = False


class TrackingSession:
    """Start/stop state machine plus incremental distance, speed and pace.

    Usage::

        session = TrackingSession(platform, location, view, config)
        await session.start()   # from the Start action
        ...
        session.stop()
    """

    def __init__(
        self,
        platform: SensorPlatform,
        location: LocationService | None,
        view: ViewAdapter,
        config: TrackerConfig | None = None,
        *,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self._config = config or TrackerConfig()
        self._location = location
        self._view = view
        self._clock = clock
        self._gate = PermissionGate(
            platform,
            notify=view.alert,
            warning=self._config.permission_warning,
        )
        self._feed = SensorFeed(platform)
        self._state = SessionState()
        self._generation = 0
        self._start_pending = False
        view.set_controls(start_enabled=True, stop_enabled=False)

    @property
    def status(self) -> SessionStatus:
        return self._state.status

    @property
    def is_running(self) -> bool:
        return self._state.status is SessionStatus.RUNNING

    def snapshot(self) -> SessionSnapshot:
        state = self._state
        return SessionSnapshot(
            status=state.status,
            started_at_epoch_ms=state.started_at_epoch_ms,
            last_point=state.last_point,
            cumulative_distance_m=state.cumulative_distance_m,
            sample_count=state.sample_count,
            active_subscriptions=len(state.subscription_handles),
            permissions=state.permissions,
            location_available=state.location_available,
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Begin a new session (Idle → Running).

        Must be awaited directly from the user's Start action so that
        platform consent prompts run inside the gesture.
        """
        self._generation += 1
        generation = self._generation
        self._start_pending = True
        self._view.set_controls(start_enabled=False, stop_enabled=False)

        # A start while Running replaces the old session; its leases go first.
        self._release_all()
        state = self._state
        state.status = SessionStatus.IDLE
        state.cumulative_distance_m = 0.0
        state.last_point = None
        state.sample_count = 0
        state.started_at_epoch_ms = self._clock()
        state.permissions = None
        state.location_available = False

        self._view.reset_path()
        for field_id, value in RESET_FIELDS.items():
            self._view.set_text(field_id, value)

        permissions = await self._gate.request_access()
        if generation != self._generation:
            _logger.debug("Start %d superseded while awaiting sensor access", generation)
            return
        state.permissions = permissions

        try:
            handle = self._feed.subscribe(
                functools.partial(self._handle_motion, generation),
                functools.partial(self._handle_orientation, generation),
            )
            self._track(_Lease("sensors", functools.partial(self._feed.unsubscribe, handle)))
            self._watch_location(generation)
        except Exception:
            _logger.warning("Start %d failed while subscribing; back to idle", generation)
            self._start_pending = False
            self._release_all()
            self._view.set_controls(start_enabled=True, stop_enabled=False)
            raise

        state.status = SessionStatus.RUNNING
        self._start_pending = False
        self._view.set_controls(start_enabled=False, stop_enabled=True)
        _logger.debug(
            "Session %d running motion=%s orientation=%s location=%s",
            generation,
            permissions.motion_granted,
            permissions.orientation_granted,
            state.location_available,
        )

    def stop(self) -> None:
        """End the session (Running → Idle). Safe to call at any time.

        Distance and last position are kept (and stay on screen) until
        the next start.
        """
        if self._state.status is SessionStatus.IDLE and not self._start_pending:
            return

        # Also cancels a start still waiting on sensor access.
        self._generation += 1
        self._start_pending = False
        self._view.set_controls(start_enabled=False, stop_enabled=False)
        self._release_all()
        self._state.status = SessionStatus.IDLE
        self._view.set_controls(start_enabled=True, stop_enabled=False)
        _logger.debug(
            "Session stopped distance_m=%.1f samples=%d",
            self._state.cumulative_distance_m,
            self._state.sample_count,
        )

    # ------------------------------------------------------------------
    # Position samples
    # ------------------------------------------------------------------

    def on_position_sample(self, point: GeoPoint, accuracy_m: float) -> None:
        """Fold one position sample into the running session."""
        state = self._state
        if state.status is not SessionStatus.RUNNING:
            _logger.debug("Ignoring position sample while %s", state.status)
            return

        for field_id, value in position_fields(point, accuracy_m).items():
            self._view.set_text(field_id, value)

        if state.last_point is not None:
            d = distance_meters(state.last_point, point)
            if d > self._config.jitter_threshold_m:
                state.cumulative_distance_m += d
                self._view.set_text(DisplayField.DISTANCE, format_distance(state.cumulative_distance_m))
            else:
                _logger.debug("Discarding %.2f m as jitter", d)
        state.last_point = point

        if state.started_at_epoch_ms is not None:
            elapsed_seconds = (self._clock() - state.started_at_epoch_ms) / MS_PER_SECOND
            speed = speed_kmh(state.cumulative_distance_m, elapsed_seconds)
            if speed is not None:
                self._view.set_text(DisplayField.SPEED, format_speed(speed))
            pace = pace_seconds_per_km(state.cumulative_distance_m, elapsed_seconds)
            if pace is not None:
                self._view.set_text(DisplayField.PACE, format_pace_text(pace))

        self._view.place_or_move_marker(point)
        if state.sample_count == 0:
            self._view.recenter(point, self._config.recenter_zoom)
        self._view.append_path_point(point)
        state.sample_count += 1

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _watch_location(self, generation: int) -> None:
        state = self._state
        location = self._location
        if location is None:
            self._location_unavailable("no location service")
            return
        options = LocationOptions(
            high_accuracy=self._config.high_accuracy,
            max_staleness_ms=self._config.max_staleness_ms,
            timeout_ms=self._config.timeout_ms,
        )
        try:
            watch_handle = location.watch(
                functools.partial(self._handle_sample, generation),
                functools.partial(self._handle_location_error, generation),
                options,
            )
        except LocationUnavailableError as exc:
            self._location_unavailable(str(exc))
            return
        self._track(_Lease("location", functools.partial(location.cancel_watch, watch_handle)))
        state.location_available = True

    def _location_unavailable(self, reason: str) -> None:
        _logger.warning("Location unavailable: %s", reason)
        self._state.location_available = False
        self._view.alert(self._config.location_unavailable_message)

    def _track(self, lease: _Lease) -> None:
        self._state.subscription_handles.add(lease)

    def _release_all(self) -> None:
        handles = self._state.subscription_handles
        while handles:
            lease = handles.pop()
            try:
                lease.release()
            except Exception:
                _logger.warning("Releasing %s subscription failed", lease.name, exc_info=True)
            else:
                _logger.debug("Released %s subscription", lease.name)

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation and self._state.status is SessionStatus.RUNNING

    def _handle_sample(self, generation: int, sample: PositionSample) -> None:
        if not self._is_current(generation):
            _logger.debug("Dropping late position sample from session %d", generation)
            return
        self.on_position_sample(sample.point, sample.accuracy_m)

    def _handle_location_error(self, generation: int, error: LocationSampleError) -> None:
        if not self._is_current(generation):
            return
        _logger.warning("GPS error: %s (code=%s)", error, error.code.name)

    def _handle_motion(self, generation: int, reading: MotionReading) -> None:
        if not self._is_current(generation):
            return
        for field_id, value in motion_fields(reading).items():
            self._view.set_text(field_id, value)

    def _handle_orientation(self, generation: int, reading: OrientationReading) -> None:
        if not self._is_current(generation):
            return
        for field_id, value in orientation_fields(reading).items():
            self._view.set_text(field_id, value)
