"""Internal MQTT connection, parsing, and runtime helpers."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, cast

import paho.mqtt.client as mqtt

from pylivetrack.config import TrackerConfig
from pylivetrack.exceptions import LiveTrackError


@dataclass(frozen=True)
class MqttEndpoint:
    """Broker details required to follow one device's topics."""

    broker_host: str
    broker_port: int
    topic_prefix: str
    client_id: str
    username: str | None = None
    password: str | None = None
    tls: bool = False

    @property
    def subscription(self) -> str:
        return f"{self.topic_prefix}/#"

    @classmethod
    def from_config(cls, config: TrackerConfig) -> MqttEndpoint:
        if not config.mqtt_host:
            raise LiveTrackError("MQTT bridge disabled: mqtt_host is not configured")
        return cls(
            broker_host=config.mqtt_host,
            broker_port=config.mqtt_port,
            topic_prefix=config.mqtt_topic,
            client_id=config.mqtt_client_id,
            username=config.mqtt_username,
            password=config.mqtt_password,
            tls=config.mqtt_tls,
        )


@dataclass(frozen=True)
class MqttEvent:
    """Decoded device message.

    ``channel`` is the topic path below the device prefix, e.g.
    ``"motion"`` or ``"orientation/absolute"``.
    """

    channel: str
    topic: str
    payload: dict[str, Any]
    retained: bool = False


def channel_for_topic(topic: str, prefix: str) -> str | None:
    """Return the part of *topic* below *prefix*, or ``None`` if outside it."""
    head = prefix.rstrip("/") + "/"
    if not topic.startswith(head):
        return None
    channel = topic[len(head) :].strip("/")
    return channel or None


def decode_mqtt_payload(payload: bytes) -> dict[str, Any]:
    """Parse MQTT payload bytes into a JSON object."""
    parsed = json.loads(payload.decode("utf-8"))
    if not isinstance(parsed, dict):
        raise LiveTrackError("MQTT payload is not a JSON object")
    return parsed


class DeviceMqttRuntime:
    """Threaded paho-mqtt runtime that emits parsed events onto an asyncio loop."""

    def __init__(
        self,
        *,
        loop: asyncio.AbstractEventLoop,
        on_event: Callable[[MqttEvent], None],
        keepalive: int = 120,
        logger: logging.Logger | None = None,
    ) -> None:
        self._loop = loop
        self._on_event = on_event
        self._keepalive = keepalive
        self._logger = logger or logging.getLogger(__name__)
        self._client: mqtt.Client | None = None
        self._running = False
        self._endpoint: MqttEndpoint | None = None

    @property
    def is_running(self) -> bool:
        """Whether the MQTT runtime is actively running."""
        return self._running

    def start(self, endpoint: MqttEndpoint) -> None:
        """Connect and subscribe to the device topics."""
        self.stop()
        self._logger.debug(
            "MQTT runtime start requested host=%s port=%s topic=%s client_id=%s",
            endpoint.broker_host,
            endpoint.broker_port,
            endpoint.subscription,
            endpoint.client_id,
        )

        client = mqtt.Client(
            callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
            client_id=endpoint.client_id,
            protocol=mqtt.MQTTv5,
        )
        client.enable_logger(self._logger)
        if endpoint.username:
            client.username_pw_set(endpoint.username, endpoint.password)
        if endpoint.tls:
            client.tls_set()

        self._endpoint = endpoint

        def on_connect(
            c: mqtt.Client,
            _userdata: Any,
            _flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if reason_code.value != 0:
                self._logger.warning("MQTT connect failed: %s", reason_code)
                return
            self._logger.debug("MQTT connected successfully reason=%s", reason_code)
            if self._endpoint is not None:
                self._logger.debug("MQTT subscribing topic=%s", self._endpoint.subscription)
                c.subscribe(self._endpoint.subscription, qos=0)

        def on_message(_c: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
            endpoint_now = self._endpoint
            if endpoint_now is None:
                return
            channel = channel_for_topic(msg.topic, endpoint_now.topic_prefix)
            if channel is None:
                return
            try:
                payload = decode_mqtt_payload(msg.payload)
            except (UnicodeDecodeError, ValueError, LiveTrackError):
                self._logger.debug("MQTT payload parse failure topic=%s", msg.topic, exc_info=True)
                return
            event = MqttEvent(channel=channel, topic=msg.topic, payload=payload, retained=bool(msg.retain))
            self._loop.call_soon_threadsafe(self._on_event, event)

        def on_disconnect(
            _client: mqtt.Client,
            _userdata: Any,
            _disconnect_flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if self._running:
                self._logger.debug("MQTT disconnected: %s", reason_code)

        client.on_connect = on_connect
        client.on_message = on_message
        client.on_disconnect = on_disconnect

        client.connect(endpoint.broker_host, endpoint.broker_port, keepalive=self._keepalive)
        client.loop_start()

        self._client = client
        self._running = True
        self._logger.debug("MQTT network loop started")

    def stop(self) -> None:
        """Stop and disconnect current MQTT client if running."""
        client = self._client
        self._client = None
        was_running = self._running
        self._running = False
        self._endpoint = None

        if client is None:
            return
        try:
            if was_running:
                self._logger.debug("MQTT disconnect requested")
                client.disconnect()
        finally:
            client.loop_stop()
            self._logger.debug("MQTT network loop stopped")
