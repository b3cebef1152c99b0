"""Trigger events describing state changes for downstream consumers."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from .enums import AccessMode, EventName


class TriggerEvent(BaseModel):
    """A notification scoped by access mode and organization.

    Consumers must only deliver the event to recipients who may see facts with
    ``access_mode`` in ``organization``.
    """
    id: UUID = Field(default_factory=uuid4)
    name: EventName
    organization: UUID | None = None
    access_mode: AccessMode
    timestamp: datetime = Field(default_factory=lambda: datetime.now(tz=timezone.utc))
    context_parameters: dict[str, Any] = Field(default_factory=dict)

    def context_dump(self) -> dict[str, Any]:
        """JSON-safe view of the context parameters."""
        return {
            key: value.model_dump(mode="json", by_alias=True) if isinstance(value, BaseModel) else value
            for key, value in self.context_parameters.items()
        }
