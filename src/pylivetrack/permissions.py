"""Sensor permission acquisition.

Some platforms only expose motion and orientation events after an explicit
consent prompt, and that prompt is only honoured inside a user gesture.
:meth:`PermissionGate.request_access` must therefore be awaited directly
from the Start action, never from a timer or background task.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from pylivetrack.models.session import PermissionStatus
from pylivetrack.platform import ConsentResult, SensorEvent, SensorPlatform

_logger = logging.getLogger(__name__)


class PermissionGate:
    """Request motion/orientation access and report the aggregate status.

    Denial never aborts tracking: it only means the corresponding channel
    stays silent. When any sensor ends up not granted, *notify* is called
    once with *warning* so the user learns how to re-enable access.
    """

    def __init__(
        self,
        platform: SensorPlatform,
        *,
        notify: Callable[[str], None] | None = None,
        warning: str = "",
    ) -> None:
        self._platform = platform
        self._notify = notify
        self._warning = warning

    async def request_access(self) -> PermissionStatus:
        motion = await self._resolve(
            "motion",
            consent_supported=self._platform.supports_motion_consent(),
            request=self._platform.request_motion_access,
            events=(SensorEvent.DEVICE_MOTION,),
        )
        orientation = await self._resolve(
            "orientation",
            consent_supported=self._platform.supports_orientation_consent(),
            request=self._platform.request_orientation_access,
            events=(SensorEvent.DEVICE_ORIENTATION, SensorEvent.DEVICE_ORIENTATION_ABSOLUTE),
        )
        status = PermissionStatus(motion_granted=motion, orientation_granted=orientation)

        if not status.all_granted:
            _logger.warning(
                "Sensor access incomplete motion=%s orientation=%s",
                status.motion_granted,
                status.orientation_granted,
            )
            if self._notify is not None and self._warning:
                self._notify(self._warning)
        return status

    async def _resolve(
        self,
        sensor: str,
        *,
        consent_supported: bool,
        request: Callable[[], Awaitable[ConsentResult | str]],
        events: tuple[SensorEvent, ...],
    ) -> bool:
        if not consent_supported:
            # No consent API: the sensor is usable iff its event type exists.
            available = any(self._platform.supports_event(event) for event in events)
            _logger.debug("No %s consent API, implicit grant=%s", sensor, available)
            return available
        try:
            result = await request()
        except Exception:
            _logger.debug("%s consent request failed", sensor, exc_info=True)
            return False
        granted = str(result) == ConsentResult.GRANTED
        _logger.debug("%s consent result=%s", sensor, result)
        return granted
