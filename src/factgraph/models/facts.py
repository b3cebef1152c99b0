"""API-facing fact projection and the retraction request."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .enums import AccessMode, Direction


class Info(BaseModel):
    """Short reference to a named entity (type, organization, source, subject)."""
    model_config = ConfigDict(frozen=True)

    id: UUID
    name: str = ""


class ObjectInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    direction: Direction


class Fact(BaseModel):
    """Immutable projection of a ``FactEntity`` returned to callers."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: UUID
    type: Info
    value: str
    in_reference_to: UUID | None = Field(default=None, alias="inReferenceTo")
    organization: Info | None = None
    source: Info | None = None
    added_by: Info | None = Field(default=None, alias="addedBy")
    access_mode: AccessMode = Field(alias="accessMode")
    timestamp: datetime
    last_seen_timestamp: datetime = Field(alias="lastSeenTimestamp")
    objects: tuple[ObjectInfo, ...] = ()


class RetractFactRequest(BaseModel):
    """Retract ``fact``; every other field overrides a default."""
    model_config = ConfigDict(populate_by_name=True)

    fact: UUID
    organization: str | None = None       # id or name
    source: str | None = None             # id or name
    access_mode: AccessMode | None = Field(default=None, alias="accessMode")
    acl: list[UUID] = Field(default_factory=list)
    comment: str | None = None
