#!/usr/bin/env python3
"""Run a live tracking session bridged from an MQTT-publishing phone.

The phone publishes motion, orientation and location JSON under
``LIVETRACK_MQTT_TOPIC`` (see ``pylivetrack.device``). Browser clients
connect to ``ws://<host>:<port>/ws``, receive render instructions, and
press Start/Stop by sending ``{"action": "start"}`` / ``{"action": "stop"}``.

Configuration comes from ``LIVETRACK_*`` environment variables; the
flags below override them.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from aiohttp import web  # noqa: E402

from pylivetrack import BroadcastView, MqttDevicePlatform, TrackerConfig, TrackingSession  # noqa: E402
from pylivetrack.exceptions import TrackerConfigError  # noqa: E402


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--mqtt-host", help="Broker host (LIVETRACK_MQTT_HOST)")
    parser.add_argument("--mqtt-port", type=int, help="Broker port (LIVETRACK_MQTT_PORT)")
    parser.add_argument("--topic", help="Device topic prefix (LIVETRACK_MQTT_TOPIC)")
    parser.add_argument("--host", help="View bind host (LIVETRACK_VIEW_HOST)")
    parser.add_argument("--port", type=int, help="View bind port (LIVETRACK_VIEW_PORT)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable DEBUG logging")
    return parser


def _overrides(args: argparse.Namespace) -> dict[str, object]:
    mapping = {
        "mqtt_host": args.mqtt_host,
        "mqtt_port": args.mqtt_port,
        "mqtt_topic": args.topic,
        "view_host": args.host,
        "view_port": args.port,
    }
    return {key: value for key, value in mapping.items() if value is not None}


async def _run(config: TrackerConfig) -> None:
    view = BroadcastView()
    async with MqttDevicePlatform(config) as device:
        location = device if device.is_running else None
        session = TrackingSession(device, location, view, config)

        async def on_control(action: str) -> None:
            if action == "start":
                await session.start()
            elif action == "stop":
                session.stop()

        view.set_control_handler(on_control)

        runner = web.AppRunner(view.build_app())
        await runner.setup()
        site = web.TCPSite(runner, config.view_host, config.view_port)
        await site.start()
        logging.getLogger(__name__).info(
            "Serving view on ws://%s:%d/ws", config.view_host, config.view_port
        )
        try:
            await asyncio.Event().wait()
        finally:
            session.stop()
            await runner.cleanup()


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        config = TrackerConfig.from_env(**_overrides(args))
    except TrackerConfigError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2
    try:
        asyncio.run(_run(config))
    except KeyboardInterrupt:
        return 0
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
