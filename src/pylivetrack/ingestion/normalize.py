"""Normalization helpers.

Centralizes defensive parsing of raw sensor and location payloads.
"""

from __future__ import annotations

import math
from typing import Any

# Threshold to distinguish seconds from milliseconds.
_MS_THRESHOLD = 1e11


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or value == "--":
        return None
    if isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def zero_if_missing(value: Any) -> float:
    """Return *value* as a float, or ``0.0`` when absent or unparseable.

    Sensors may report partial data transiently; a missing axis reads as zero.
    """
    parsed = safe_float(value)
    return 0.0 if parsed is None else parsed


def normalize_timestamp_ms(value: Any) -> int | None:
    """Normalize payload timestamps to epoch milliseconds.

    - Empty/missing -> None
    - <= 0 -> None
    - Seconds (< 1e11) -> milliseconds
    """

    ts = safe_float(value)
    if ts is None or ts <= 0:
        return None
    if ts < _MS_THRESHOLD:
        ts *= 1000.0
    return int(ts)
