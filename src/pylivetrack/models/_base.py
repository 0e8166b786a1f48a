"""Base model for pylivetrack value objects.

Every reading and snapshot is immutable once produced, so the shared
configuration freezes instances and lets snake_case fields be populated
from the camelCase keys browser payloads use.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class TrackerBaseModel(BaseModel):
    """Frozen base for pylivetrack models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )
