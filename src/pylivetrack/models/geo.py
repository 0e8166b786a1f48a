"""Geographic point and position sample models."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, Field, field_validator, model_validator

from pylivetrack.ingestion.normalize import normalize_timestamp_ms, safe_float
from pylivetrack.models._base import TrackerBaseModel


class GeoPoint(TrackerBaseModel):
    """A latitude/longitude pair in decimal degrees.

    Parameters
    ----------
    latitude : float
        Latitude in degrees, within ``[-90, 90]``.
    longitude : float
        Longitude in degrees, within ``[-180, 180]``.
    """

    latitude: float = Field(ge=-90.0, le=90.0, validation_alias=AliasChoices("latitude", "lat"))
    longitude: float = Field(ge=-180.0, le=180.0, validation_alias=AliasChoices("longitude", "lon", "lng"))


class PositionSample(TrackerBaseModel):
    """One reading delivered by a location service.

    Accepts browser-style payloads (``{"coords": {...}, "timestamp": ...}``)
    as well as flat OwnTracks-style ones (``lat``/``lon``/``acc``/``tst``).

    Parameters
    ----------
    point : GeoPoint
        Reported position.
    accuracy_m : float
        Reported horizontal accuracy radius in meters (``0`` when absent).
    timestamp_ms : int or None
        Epoch milliseconds at which the fix was taken, when known.
    """

    point: GeoPoint
    accuracy_m: float = Field(default=0.0, ge=0.0)
    timestamp_ms: int | None = None

    @model_validator(mode="before")
    @classmethod
    def _flatten_payload(cls, values: Any) -> Any:
        if not isinstance(values, dict) or "point" in values:
            return values
        coords = values.get("coords")
        source: dict[str, Any] = dict(coords) if isinstance(coords, dict) else dict(values)
        return {
            "point": {
                "latitude": source.get("latitude", source.get("lat")),
                "longitude": source.get("longitude", source.get("lon", source.get("lng"))),
            },
            "accuracy_m": source.get("accuracy", source.get("acc")),
            "timestamp_ms": values.get("timestamp", values.get("tst")),
        }

    @field_validator("accuracy_m", mode="before")
    @classmethod
    def _coerce_accuracy(cls, value: Any) -> float:
        parsed = safe_float(value)
        return 0.0 if parsed is None else parsed

    @field_validator("timestamp_ms", mode="before")
    @classmethod
    def _coerce_timestamp(cls, value: Any) -> int | None:
        return normalize_timestamp_ms(value)
