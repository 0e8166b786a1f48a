"""Motion and orientation subscriptions.

A :class:`SensorFeed` turns raw platform events into normalized
:class:`~pylivetrack.models.MotionReading` and
:class:`~pylivetrack.models.OrientationReading` values and hands them to
consumer callbacks. Every :meth:`SensorFeed.subscribe` returns a
:class:`SubscriptionHandle` that is released exactly once.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from pylivetrack.exceptions import SensorUnavailableError
from pylivetrack.models.sensors import MotionReading, OrientationReading
from pylivetrack.platform import SensorEvent, SensorPlatform

_logger = logging.getLogger(__name__)

_handle_ids = itertools.count(1)


@dataclass(eq=False)
class SubscriptionHandle:
    """Tracks the platform listeners registered by one subscribe call."""

    orientation_event: SensorEvent | None
    listeners: list[Any] = field(default_factory=list)
    id: int = field(default_factory=lambda: next(_handle_ids))
    active: bool = True


class SensorFeed:
    """Subscribe/unsubscribe to motion and orientation events."""

    def __init__(self, platform: SensorPlatform) -> None:
        self._platform = platform

    def orientation_event(self) -> SensorEvent | None:
        """Pick the richest orientation event the platform offers."""
        if self._platform.supports_event(SensorEvent.DEVICE_ORIENTATION_ABSOLUTE):
            return SensorEvent.DEVICE_ORIENTATION_ABSOLUTE
        if self._platform.supports_event(SensorEvent.DEVICE_ORIENTATION):
            return SensorEvent.DEVICE_ORIENTATION
        return None

    def subscribe(
        self,
        on_motion: Callable[[MotionReading], None],
        on_orientation: Callable[[OrientationReading], None],
    ) -> SubscriptionHandle:
        # Fixed for the lifetime of this subscription.
        orientation_event = self.orientation_event()
        handle = SubscriptionHandle(orientation_event=orientation_event)

        self._listen(handle, SensorEvent.DEVICE_MOTION, _motion_dispatcher(on_motion))
        if orientation_event is not None:
            absolute = orientation_event is SensorEvent.DEVICE_ORIENTATION_ABSOLUTE
            self._listen(handle, orientation_event, _orientation_dispatcher(on_orientation, absolute=absolute))

        _logger.debug(
            "Sensor subscription %s opened listeners=%d orientation_event=%s",
            handle.id,
            len(handle.listeners),
            orientation_event,
        )
        return handle

    def unsubscribe(self, handle: SubscriptionHandle | None) -> None:
        """Release *handle*. Releasing twice (or ``None``) is a no-op."""
        if handle is None or not handle.active:
            return
        handle.active = False
        listeners = handle.listeners
        handle.listeners = []
        for token in listeners:
            self._platform.remove_listener(token)
        _logger.debug("Sensor subscription %s closed", handle.id)

    def _listen(self, handle: SubscriptionHandle, event: SensorEvent, callback: Callable[[Mapping[str, Any]], None]) -> None:
        if not self._platform.supports_event(event):
            _logger.debug("Sensor event %s not supported, channel stays silent", event)
            return
        try:
            token = self._platform.add_listener(event, callback)
        except SensorUnavailableError:
            _logger.debug("Sensor event %s unavailable", event, exc_info=True)
            return
        handle.listeners.append(token)


def _motion_dispatcher(on_motion: Callable[[MotionReading], None]) -> Callable[[Mapping[str, Any]], None]:
    def dispatch(raw: Mapping[str, Any]) -> None:
        try:
            reading = MotionReading.model_validate(raw)
        except ValidationError:
            _logger.debug("Dropping malformed motion event", exc_info=True)
            return
        on_motion(reading)

    return dispatch


def _orientation_dispatcher(
    on_orientation: Callable[[OrientationReading], None],
    *,
    absolute: bool,
) -> Callable[[Mapping[str, Any]], None]:
    def dispatch(raw: Mapping[str, Any]) -> None:
        try:
            reading = OrientationReading.model_validate({**raw, "absolute": absolute or raw.get("absolute") is True})
        except ValidationError:
            _logger.debug("Dropping malformed orientation event", exc_info=True)
            return
        on_orientation(reading)

    return dispatch
