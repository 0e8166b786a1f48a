"""Displayed field ids and their string formatting."""

from __future__ import annotations

import math
from enum import StrEnum

from pylivetrack._constants import METERS_PER_KM
from pylivetrack.geo import format_pace
from pylivetrack.models.geo import GeoPoint
from pylivetrack.models.sensors import MotionReading, OrientationReading

ACCELERATION_DECIMALS = 2
ORIENTATION_DECIMALS = 1
COORDINATE_DECIMALS = 6


class DisplayField(StrEnum):
    ACCEL_X = "ax"
    ACCEL_Y = "ay"
    ACCEL_Z = "az"
    ALPHA = "alpha"
    BETA = "beta"
    GAMMA = "gamma"
    LATITUDE = "lat"
    LONGITUDE = "lon"
    ACCURACY = "acc"
    DISTANCE = "dist"
    SPEED = "speed"
    PACE = "pace"


def fixed(value: float, decimals: int) -> str:
    return f"{value:.{decimals}f}"


def format_accuracy(accuracy_m: float) -> str:
    # Round half up, like the browser readout.
    return str(math.floor(accuracy_m + 0.5))


def format_distance(distance_m: float) -> str:
    return f"{fixed(distance_m / METERS_PER_KM, 2)} km"


def format_speed(speed: float) -> str:
    return f"{fixed(speed, 1)} km/h"


def format_pace_text(pace_seconds: float) -> str:
    return f"{format_pace(pace_seconds)} min/km"


def motion_fields(reading: MotionReading) -> dict[DisplayField, str]:
    return {
        DisplayField.ACCEL_X: fixed(reading.axis_x, ACCELERATION_DECIMALS),
        DisplayField.ACCEL_Y: fixed(reading.axis_y, ACCELERATION_DECIMALS),
        DisplayField.ACCEL_Z: fixed(reading.axis_z, ACCELERATION_DECIMALS),
    }


def orientation_fields(reading: OrientationReading) -> dict[DisplayField, str]:
    return {
        DisplayField.ALPHA: fixed(reading.heading, ORIENTATION_DECIMALS),
        DisplayField.BETA: fixed(reading.pitch, ORIENTATION_DECIMALS),
        DisplayField.GAMMA: fixed(reading.roll, ORIENTATION_DECIMALS),
    }


def position_fields(point: GeoPoint, accuracy_m: float) -> dict[DisplayField, str]:
    return {
        DisplayField.LATITUDE: fixed(point.latitude, COORDINATE_DECIMALS),
        DisplayField.LONGITUDE: fixed(point.longitude, COORDINATE_DECIMALS),
        DisplayField.ACCURACY: format_accuracy(accuracy_m),
    }


#: Readouts written at the start of every session.
RESET_FIELDS: dict[DisplayField, str] = {
    DisplayField.DISTANCE: format_distance(0.0),
    DisplayField.SPEED: format_speed(0.0),
    DisplayField.PACE: format_pace_text(0.0),
}
