from __future__ import annotations

import asyncio
from typing import Any

import pytest

from pylivetrack.display import DisplayField
from pylivetrack.models import GeoPoint
from pylivetrack.view import BroadcastView


def test_render_state_tracks_calls() -> None:
    view = BroadcastView()
    a = GeoPoint(latitude=1.0, longitude=2.0)
    b = GeoPoint(latitude=1.5, longitude=2.5)

    view.append_path_point(a)
    view.place_or_move_marker(a)
    view.reset_path()
    view.place_or_move_marker(b)
    view.recenter(b, 16)
    view.append_path_point(b)
    view.set_text(DisplayField.DISTANCE, "0.00 km")

    assert view.path == [b]
    assert view.marker == b
    assert view.texts == {"dist": "0.00 km"}
    assert view.client_count == 0


def test_replay_rebuilds_current_state() -> None:
    view = BroadcastView()
    a = GeoPoint(latitude=1.0, longitude=2.0)
    view.set_controls(start_enabled=False, stop_enabled=True)
    view.recenter(a, 16)
    view.place_or_move_marker(a)
    view.append_path_point(a)
    view.set_text("speed", "3.2 km/h")
    view.alert("Motion access is blocked.")

    assert view.replay_messages() == [
        {"op": "resetPath"},
        {"op": "recenter", "lat": 1.0, "lon": 2.0, "zoom": 16},
        {"op": "appendPathPoint", "lat": 1.0, "lon": 2.0},
        {"op": "placeOrMoveMarker", "lat": 1.0, "lon": 2.0},
        {"op": "setText", "field": "speed", "value": "3.2 km/h"},
        {"op": "setControls", "startEnabled": False, "stopEnabled": True},
    ]


@pytest.mark.asyncio
async def test_handle_control_routes_known_actions() -> None:
    actions: list[str] = []

    async def on_control(action: str) -> None:
        actions.append(action)

    view = BroadcastView(on_control=on_control)

    await view.handle_control('{"action": "start"}')
    await view.handle_control('{"action": "stop"}')
    await view.handle_control('{"action": "reboot"}')
    await view.handle_control("not json")
    await view.handle_control("[1]")

    assert actions == ["start", "stop"]


@pytest.mark.asyncio
async def test_handle_control_without_handler_is_ignored() -> None:
    view = BroadcastView()

    await view.handle_control('{"action": "start"}')


def test_build_app_routes_websocket() -> None:
    app = BroadcastView().build_app()

    paths = {resource.canonical for resource in app.router.resources()}
    assert "/ws" in paths


class _SlowSocket:
    """Websocket stand-in whose sends yield to the loop."""

    def __init__(self) -> None:
        self.closed = False
        self.sent: list[dict[str, Any]] = []

    async def send_json(self, message: dict[str, Any]) -> None:
        await asyncio.sleep(0)
        self.sent.append(message)


async def _drain(queue: asyncio.Queue) -> None:
    while not queue.empty():
        await asyncio.sleep(0)
    await asyncio.sleep(0)
    await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_instruction_during_replay_reaches_new_client() -> None:
    view = BroadcastView()
    a = GeoPoint(latitude=1.0, longitude=2.0)
    b = GeoPoint(latitude=1.1, longitude=2.0)
    view.append_path_point(a)
    view.set_text(DisplayField.DISTANCE, "0.00 km")

    ws = _SlowSocket()
    queue = view.attach(ws)  # type: ignore[arg-type]
    sender = asyncio.ensure_future(view.pump(ws, queue))  # type: ignore[arg-type]
    await asyncio.sleep(0)
    assert len(ws.sent) < len(view.replay_messages())

    # A sample arrives while the replay is still being sent.
    view.append_path_point(b)
    view.set_text(DisplayField.DISTANCE, "0.01 km")
    await _drain(queue)
    sender.cancel()

    path_ops = [(m["lat"], m["lon"]) for m in ws.sent if m["op"] == "appendPathPoint"]
    assert path_ops == [(1.0, 2.0), (1.1, 2.0)]
    assert ws.sent[-1] == {"op": "setText", "field": "dist", "value": "0.01 km"}
    assert view.client_count == 1


@pytest.mark.asyncio
async def test_detached_and_closed_clients_stop_receiving() -> None:
    view = BroadcastView()
    kept, gone, closed = _SlowSocket(), _SlowSocket(), _SlowSocket()
    kept_queue = view.attach(kept)  # type: ignore[arg-type]
    gone_queue = view.attach(gone)  # type: ignore[arg-type]
    view.attach(closed)  # type: ignore[arg-type]
    assert view.client_count == 3

    view.detach(gone)  # type: ignore[arg-type]
    closed.closed = True
    view.alert("Location is unavailable.")

    assert view.client_count == 1
    assert kept_queue.qsize() == len(view.replay_messages()) + 1
    assert gone_queue.qsize() == len(view.replay_messages())
