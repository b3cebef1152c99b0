"""Documents held by the derived search index."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from .enums import AccessMode, Direction


class ObjectDocument(BaseModel):
    id: UUID
    direction: Direction


class FactDocument(BaseModel):
    """Searchable, denormalized copy of a fact.

    Not authoritative: rebuilt from storage whenever needed. ``retracted`` only
    exists here, storage never records it.
    """
    id: UUID
    type_id: UUID
    type_name: str = ""
    value: str = ""
    in_reference_to_id: UUID | None = None
    organization_id: UUID
    source_id: UUID
    added_by_id: UUID | None = None
    access_mode: AccessMode
    timestamp: datetime
    last_seen_timestamp: datetime
    retracted: bool = False
    acl: list[UUID] = Field(default_factory=list)
    objects: list[ObjectDocument] = Field(default_factory=list)
