"""Tests for pydantic model parsing and normalization."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from pylivetrack.ingestion.normalize import normalize_timestamp_ms, safe_float, zero_if_missing
from pylivetrack.models import GeoPoint, MotionReading, OrientationReading, PermissionStatus, PositionSample

# ------------------------------------------------------------------
# Normalization helpers
# ------------------------------------------------------------------


def test_safe_float_rejects_placeholders() -> None:
    assert safe_float(None) is None
    assert safe_float("") is None
    assert safe_float("--") is None
    assert safe_float("abc") is None
    assert safe_float(float("nan")) is None
    assert safe_float(True) is None
    assert safe_float("1.5") == 1.5


def test_zero_if_missing() -> None:
    assert zero_if_missing(None) == 0.0
    assert zero_if_missing("x") == 0.0
    assert zero_if_missing(-9.81) == -9.81


def test_normalize_timestamp_seconds_to_ms() -> None:
    assert normalize_timestamp_ms(1_700_000_000) == 1_700_000_000_000
    assert normalize_timestamp_ms(1_700_000_000_123) == 1_700_000_000_123
    assert normalize_timestamp_ms(0) is None
    assert normalize_timestamp_ms("") is None


# ------------------------------------------------------------------
# GeoPoint
# ------------------------------------------------------------------


class TestGeoPoint:
    def test_aliases(self) -> None:
        assert GeoPoint.model_validate({"lat": 1.5, "lon": 2.5}) == GeoPoint(latitude=1.5, longitude=2.5)
        assert GeoPoint.model_validate({"latitude": 1.5, "lng": 2.5}).longitude == 2.5

    @pytest.mark.parametrize(("lat", "lon"), [(91, 0), (-91, 0), (0, 181), (0, -181)])
    def test_out_of_range_rejected(self, lat: float, lon: float) -> None:
        with pytest.raises(ValidationError):
            GeoPoint(latitude=lat, longitude=lon)

    def test_frozen(self) -> None:
        point = GeoPoint(latitude=1, longitude=2)
        with pytest.raises(ValidationError):
            point.latitude = 3  # type: ignore[misc]


# ------------------------------------------------------------------
# Sensor readings
# ------------------------------------------------------------------


class TestMotionReading:
    def test_nested_acceleration(self) -> None:
        reading = MotionReading.model_validate({"accelerationIncludingGravity": {"x": 0.1, "y": -9.8, "z": 1}})
        assert (reading.axis_x, reading.axis_y, reading.axis_z) == (0.1, -9.8, 1.0)

    def test_missing_axes_are_zero(self) -> None:
        reading = MotionReading.model_validate({"accelerationIncludingGravity": {"x": 2.0, "y": None}})
        assert (reading.axis_x, reading.axis_y, reading.axis_z) == (2.0, 0.0, 0.0)

    def test_missing_wrapper_is_all_zero(self) -> None:
        reading = MotionReading.model_validate({"accelerationIncludingGravity": None})
        assert (reading.axis_x, reading.axis_y, reading.axis_z) == (0.0, 0.0, 0.0)

    def test_flat_payload(self) -> None:
        assert MotionReading.model_validate({"x": 1, "y": 2, "z": 3}).axis_z == 3.0


class TestOrientationReading:
    def test_browser_keys(self) -> None:
        reading = OrientationReading.model_validate({"alpha": 359.5, "beta": -12.25, "gamma": 45})
        assert (reading.heading, reading.pitch, reading.roll) == (359.5, -12.25, 45.0)
        assert reading.absolute is False

    def test_partial_event(self) -> None:
        reading = OrientationReading.model_validate({"beta": 10, "absolute": True})
        assert (reading.heading, reading.pitch, reading.roll) == (0.0, 10.0, 0.0)
        assert reading.absolute is True


# ------------------------------------------------------------------
# PositionSample / PermissionStatus
# ------------------------------------------------------------------


class TestPositionSample:
    def test_browser_payload(self) -> None:
        sample = PositionSample.model_validate(
            {"coords": {"latitude": 52.1, "longitude": 4.3, "accuracy": 7.6}, "timestamp": 1_700_000_000_500}
        )
        assert sample.point == GeoPoint(latitude=52.1, longitude=4.3)
        assert sample.accuracy_m == 7.6
        assert sample.timestamp_ms == 1_700_000_000_500

    def test_owntracks_payload(self) -> None:
        sample = PositionSample.model_validate({"_type": "location", "lat": 52.1, "lon": 4.3, "acc": 12, "tst": 1_700_000_000})
        assert sample.point.latitude == 52.1
        assert sample.accuracy_m == 12.0
        assert sample.timestamp_ms == 1_700_000_000_000

    def test_missing_accuracy_is_zero(self) -> None:
        assert PositionSample.model_validate({"lat": 1, "lon": 1}).accuracy_m == 0.0

    def test_missing_coordinates_rejected(self) -> None:
        with pytest.raises(ValidationError):
            PositionSample.model_validate({"lat": 52.1, "acc": 3})


def test_permission_status_all_granted() -> None:
    assert PermissionStatus(motion_granted=True, orientation_granted=True).all_granted
    assert not PermissionStatus(motion_granted=True, orientation_granted=False).all_granted
