"""Ingestion layer.

This package contains helpers that turn raw platform payloads (browser-style
sensor events, bridged device messages) into normalized readings.
"""

__all__: list[str] = []
