"""Websocket fan-out of render instructions.

:class:`BroadcastView` implements :class:`~pylivetrack.platform.ViewAdapter`
by turning each call into a JSON message such as
``{"op": "appendPathPoint", "lat": .., "lon": ..}`` and sending it to every
connected client at ``/ws``. It also keeps the current render state so a
client that connects mid-session first receives a replay of the path,
marker, readouts and controls.

Clients drive the session by sending ``{"action": "start"}`` or
``{"action": "stop"}``.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import aiohttp
from aiohttp import web

from pylivetrack.models.geo import GeoPoint

_logger = logging.getLogger(__name__)

ControlHandler = Callable[[str], Awaitable[None]]

CONTROL_ACTIONS = frozenset({"start", "stop"})


def _point(point: GeoPoint) -> dict[str, float]:
    return {"lat": point.latitude, "lon": point.longitude}


class BroadcastView:
    """ViewAdapter that mirrors render state to websocket clients."""

    def __init__(self, *, on_control: ControlHandler | None = None) -> None:
        self._on_control = on_control
        self._clients: dict[web.WebSocketResponse, asyncio.Queue[dict[str, Any]]] = {}
        self._path: list[GeoPoint] = []
        self._marker: GeoPoint | None = None
        self._center: tuple[GeoPoint, int] | None = None
        self._texts: dict[str, str] = {}
        self._controls: dict[str, bool] = {"startEnabled": True, "stopEnabled": False}

    def set_control_handler(self, on_control: ControlHandler) -> None:
        self._on_control = on_control

    @property
    def path(self) -> list[GeoPoint]:
        return list(self._path)

    @property
    def marker(self) -> GeoPoint | None:
        return self._marker

    @property
    def texts(self) -> dict[str, str]:
        return dict(self._texts)

    @property
    def client_count(self) -> int:
        return len(self._clients)

    # ------------------------------------------------------------------
    # ViewAdapter
    # ------------------------------------------------------------------

    def reset_path(self) -> None:
        self._path.clear()
        self._marker = None
        self._broadcast({"op": "resetPath"})

    def append_path_point(self, point: GeoPoint) -> None:
        self._path.append(point)
        self._broadcast({"op": "appendPathPoint", **_point(point)})

    def place_or_move_marker(self, point: GeoPoint) -> None:
        self._marker = point
        self._broadcast({"op": "placeOrMoveMarker", **_point(point)})

    def recenter(self, point: GeoPoint, zoom: int) -> None:
        self._center = (point, zoom)
        self._broadcast({"op": "recenter", **_point(point), "zoom": zoom})

    def set_text(self, field_id: str, value: str) -> None:
        self._texts[str(field_id)] = value
        self._broadcast({"op": "setText", "field": str(field_id), "value": value})

    def set_controls(self, *, start_enabled: bool, stop_enabled: bool) -> None:
        self._controls = {"startEnabled": start_enabled, "stopEnabled": stop_enabled}
        self._broadcast({"op": "setControls", **self._controls})

    def alert(self, message: str) -> None:
        # Alerts are one-shot and not replayed.
        self._broadcast({"op": "alert", "message": message})

    # ------------------------------------------------------------------
    # Replay + transport
    # ------------------------------------------------------------------

    def replay_messages(self) -> list[dict[str, Any]]:
        """Messages that bring a fresh client up to the current state."""
        messages: list[dict[str, Any]] = [{"op": "resetPath"}]
        if self._center is not None:
            point, zoom = self._center
            messages.append({"op": "recenter", **_point(point), "zoom": zoom})
        messages.extend({"op": "appendPathPoint", **_point(p)} for p in self._path)
        if self._marker is not None:
            messages.append({"op": "placeOrMoveMarker", **_point(self._marker)})
        messages.extend({"op": "setText", "field": k, "value": v} for k, v in self._texts.items())
        messages.append({"op": "setControls", **self._controls})
        return messages

    def _broadcast(self, message: dict[str, Any]) -> None:
        for ws, queue in list(self._clients.items()):
            if ws.closed:
                self.detach(ws)
                continue
            queue.put_nowait(message)

    def attach(self, ws: web.WebSocketResponse) -> asyncio.Queue[dict[str, Any]]:
        """Register *ws* with its replay already queued.

        Registration and the replay snapshot happen in one synchronous step,
        so every later instruction lands in the same queue behind the replay.
        """
        queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        for message in self.replay_messages():
            queue.put_nowait(message)
        self._clients[ws] = queue
        return queue

    def detach(self, ws: web.WebSocketResponse) -> None:
        self._clients.pop(ws, None)

    async def pump(self, ws: web.WebSocketResponse, queue: asyncio.Queue[dict[str, Any]]) -> None:
        """Send queued messages to *ws* in order until it fails or is cancelled."""
        while True:
            message = await queue.get()
            try:
                await ws.send_json(message)
            except (ConnectionResetError, RuntimeError):
                _logger.debug("Dropping websocket client after send failure", exc_info=True)
                self.detach(ws)
                return

    async def handle_control(self, raw: str) -> None:
        """Route one client message to the control handler."""
        try:
            message = json.loads(raw)
        except ValueError:
            _logger.debug("Ignoring non-JSON client message")
            return
        action = message.get("action") if isinstance(message, dict) else None
        if action not in CONTROL_ACTIONS:
            _logger.debug("Ignoring unknown client action %r", action)
            return
        if self._on_control is None:
            _logger.warning("No control handler registered for action %s", action)
            return
        await self._on_control(action)

    async def websocket_handler(self, request: web.Request) -> web.WebSocketResponse:
        ws = web.WebSocketResponse(heartbeat=30.0)
        await ws.prepare(request)
        sender = asyncio.ensure_future(self.pump(ws, self.attach(ws)))
        _logger.debug("View client connected clients=%d", len(self._clients))
        try:
            async for msg in ws:
                if msg.type == aiohttp.WSMsgType.TEXT:
                    await self.handle_control(msg.data)
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    _logger.debug("View client error: %s", ws.exception())
        finally:
            self.detach(ws)
            sender.cancel()
            _logger.debug("View client disconnected clients=%d", len(self._clients))
        return ws

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/ws", self.websocket_handler)
        return app
