"""Motion and orientation readings.

Both models are produced per event and never retained. Every axis is
normalized to ``0.0`` when the event omits it.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import AliasChoices, Field, field_validator, model_validator

from pylivetrack.ingestion.normalize import zero_if_missing
from pylivetrack.models._base import TrackerBaseModel


class MotionReading(TrackerBaseModel):
    """Acceleration (including gravity) along the device axes, in m/s².

    Raw motion events nest the axes under ``accelerationIncludingGravity``;
    that wrapper is unwrapped before validation.
    """

    axis_x: float = Field(default=0.0, validation_alias=AliasChoices("x", "axisX", "axis_x"))
    axis_y: float = Field(default=0.0, validation_alias=AliasChoices("y", "axisY", "axis_y"))
    axis_z: float = Field(default=0.0, validation_alias=AliasChoices("z", "axisZ", "axis_z"))

    @model_validator(mode="before")
    @classmethod
    def _unwrap_acceleration(cls, values: Any) -> Any:
        if not isinstance(values, Mapping):
            return {}
        values = dict(values)
        nested = values.get("accelerationIncludingGravity")
        if nested is None and "accelerationIncludingGravity" in values:
            return {}
        if isinstance(nested, dict):
            return dict(nested)
        return values

    @field_validator("axis_x", "axis_y", "axis_z", mode="before")
    @classmethod
    def _zero_missing(cls, value: Any) -> float:
        return zero_if_missing(value)


class OrientationReading(TrackerBaseModel):
    """Device orientation in degrees.

    ``heading`` maps to the event's ``alpha``, ``pitch`` to ``beta`` and
    ``roll`` to ``gamma``.
    """

    heading: float = Field(default=0.0, validation_alias=AliasChoices("alpha", "heading"))
    pitch: float = Field(default=0.0, validation_alias=AliasChoices("beta", "pitch"))
    roll: float = Field(default=0.0, validation_alias=AliasChoices("gamma", "roll"))
    absolute: bool = False

    @model_validator(mode="before")
    @classmethod
    def _require_mapping(cls, values: Any) -> Any:
        return dict(values) if isinstance(values, Mapping) else {}

    @field_validator("heading", "pitch", "roll", mode="before")
    @classmethod
    def _zero_missing(cls, value: Any) -> float:
        return zero_if_missing(value)

    @field_validator("absolute", mode="before")
    @classmethod
    def _coerce_absolute(cls, value: Any) -> bool:
        return value is True
