"""Tracker configuration for pylivetrack."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pylivetrack._constants import (
    DEFAULT_HIGH_ACCURACY,
    DEFAULT_JITTER_THRESHOLD_M,
    DEFAULT_MAX_STALENESS_MS,
    DEFAULT_RECENTER_ZOOM,
    DEFAULT_TIMEOUT_MS,
    LOCATION_UNAVAILABLE_MESSAGE,
    PERMISSION_WARNING,
)
from pylivetrack.exceptions import TrackerConfigError
from pylivetrack.platform import SensorEvent

_DEFAULT_DEVICE_EVENTS: tuple[SensorEvent, ...] = (
    SensorEvent.DEVICE_MOTION,
    SensorEvent.DEVICE_ORIENTATION,
)


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _parse_events(value: Any) -> tuple[SensorEvent, ...]:
    if isinstance(value, str):
        value = [part for part in (p.strip() for p in value.split(",")) if part]
    try:
        return tuple(SensorEvent(item) for item in value)
    except ValueError as exc:
        raise TrackerConfigError(f"Unknown sensor event type: {exc}") from exc


@dataclasses.dataclass(frozen=True)
class TrackerConfig:
    """Tracker configuration.

    Parameters
    ----------
    jitter_threshold_m : float
        Inter-sample distances at or below this many meters are
        discarded as GPS noise.
    high_accuracy : bool
        Request high-accuracy positioning from the location service.
    max_staleness_ms : int
        Oldest acceptable age of a delivered position sample.
    timeout_ms : int
        Per-request timeout for a position sample.
    recenter_zoom : int
        Zoom level used when recentering on the first sample.
    permission_warning : str
        Remediation text surfaced when sensor access is blocked.
    location_unavailable_message : str
        Text surfaced when no location service exists.
    mqtt_host : str or None
        Broker host of the MQTT device bridge. ``None`` disables it.
    mqtt_port : int
        Broker port.
    mqtt_topic : str
        Topic prefix the device publishes under.
    mqtt_username, mqtt_password : str or None
        Broker credentials.
    mqtt_tls : bool
        Connect with TLS.
    mqtt_keepalive : int
        MQTT keepalive in seconds.
    mqtt_client_id : str
        MQTT client id.
    device_events : tuple of SensorEvent
        Sensor event types the bridged device publishes.
    view_host, view_port :
        Bind address of the websocket view bridge.
    """

    jitter_threshold_m: float = DEFAULT_JITTER_THRESHOLD_M
    high_accuracy: bool = DEFAULT_HIGH_ACCURACY
    max_staleness_ms: int = DEFAULT_MAX_STALENESS_MS
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    recenter_zoom: int = DEFAULT_RECENTER_ZOOM
    permission_warning: str = PERMISSION_WARNING
    location_unavailable_message: str = LOCATION_UNAVAILABLE_MESSAGE
    mqtt_host: str | None = None
    mqtt_port: int = 1883
    mqtt_topic: str = "livetrack/device"
    mqtt_username: str | None = None
    mqtt_password: str | None = None
    mqtt_tls: bool = False
    mqtt_keepalive: int = 120
    mqtt_client_id: str = "pylivetrack"
    device_events: tuple[SensorEvent, ...] = _DEFAULT_DEVICE_EVENTS
    view_host: str = "127.0.0.1"
    view_port: int = 8080

    def __post_init__(self) -> None:
        if self.jitter_threshold_m < 0:
            raise TrackerConfigError("jitter_threshold_m must be >= 0")
        if self.max_staleness_ms <= 0:
            raise TrackerConfigError("max_staleness_ms must be > 0")
        if self.timeout_ms <= 0:
            raise TrackerConfigError("timeout_ms must be > 0")
        for port_name in ("mqtt_port", "view_port"):
            port = getattr(self, port_name)
            if not 0 < port < 65536:
                raise TrackerConfigError(f"{port_name} out of range: {port}")
        object.__setattr__(self, "device_events", _parse_events(self.device_events))
        topic = self.mqtt_topic.strip().rstrip("/")
        if not topic:
            raise TrackerConfigError("mqtt_topic must be non-empty")
        object.__setattr__(self, "mqtt_topic", topic)

    @classmethod
    def from_env(cls, **overrides: Any) -> TrackerConfig:
        """Create configuration from environment variables.

        Reads optional ``LIVETRACK_*`` variables. Explicit keyword
        arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        TrackerConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_STR_MAP = {
            "LIVETRACK_PERMISSION_WARNING": "permission_warning",
            "LIVETRACK_MQTT_HOST": "mqtt_host",
            "LIVETRACK_MQTT_TOPIC": "mqtt_topic",
            "LIVETRACK_MQTT_USERNAME": "mqtt_username",
            "LIVETRACK_MQTT_PASSWORD": "mqtt_password",
            "LIVETRACK_MQTT_CLIENT_ID": "mqtt_client_id",
            "LIVETRACK_DEVICE_EVENTS": "device_events",
            "LIVETRACK_VIEW_HOST": "view_host",
        }
        _ENV_INT_MAP = {
            "LIVETRACK_MAX_STALENESS_MS": "max_staleness_ms",
            "LIVETRACK_TIMEOUT_MS": "timeout_ms",
            "LIVETRACK_RECENTER_ZOOM": "recenter_zoom",
            "LIVETRACK_MQTT_PORT": "mqtt_port",
            "LIVETRACK_MQTT_KEEPALIVE": "mqtt_keepalive",
            "LIVETRACK_VIEW_PORT": "view_port",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val
        try:
            for env_key, field_name in _ENV_INT_MAP.items():
                val = env.get(env_key)
                if val is not None and field_name not in overrides:
                    config_kwargs[field_name] = int(val)

            jitter_env = env.get("LIVETRACK_JITTER_THRESHOLD_M")
            if jitter_env is not None and "jitter_threshold_m" not in overrides:
                config_kwargs["jitter_threshold_m"] = float(jitter_env)
        except ValueError as exc:
            raise TrackerConfigError(f"Invalid numeric environment value: {exc}") from exc

        if "high_accuracy" not in overrides:
            config_kwargs["high_accuracy"] = _env_bool(env.get("LIVETRACK_HIGH_ACCURACY"), DEFAULT_HIGH_ACCURACY)
        if "mqtt_tls" not in overrides:
            config_kwargs["mqtt_tls"] = _env_bool(env.get("LIVETRACK_MQTT_TLS"), False)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
