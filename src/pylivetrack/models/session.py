"""Tracking session status, permission status and read-only snapshots."""

from __future__ import annotations

from enum import StrEnum

from pydantic import Field

from pylivetrack.models._base import TrackerBaseModel
from pylivetrack.models.geo import GeoPoint


class SessionStatus(StrEnum):
    IDLE = "idle"
    RUNNING = "running"


class PermissionStatus(TrackerBaseModel):
    """Aggregate sensor grant status, recomputed on every start attempt."""

    motion_granted: bool = False
    orientation_granted: bool = False

    @property
    def all_granted(self) -> bool:
        return self.motion_granted and self.orientation_granted


class SessionSnapshot(TrackerBaseModel):
    """Immutable copy of the session state at one instant."""

    status: SessionStatus = SessionStatus.IDLE
    started_at_epoch_ms: int | None = None
    last_point: GeoPoint | None = None
    cumulative_distance_m: float = Field(default=0.0, ge=0.0)
    sample_count: int = 0
    active_subscriptions: int = 0
    permissions: PermissionStatus | None = None
    location_available: bool = False
