"""Storage representations of the fact graph.

These are the authoritative records the stores read and write. A
``FactEntity`` is built once, persisted once and never changed afterwards
(apart from ``last_seen_timestamp`` bumps, which nothing here performs).
"""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from .enums import AccessMode, Direction


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


# ── Facts ───────────────────────────────────────────────
class FactObjectBinding(BaseModel):
    """An object a fact is bound to, stored on the fact itself."""
    object_id: UUID
    direction: Direction = Direction.NONE


class FactEntity(BaseModel):
    id: UUID
    type_id: UUID
    value: str = ""
    in_reference_to_id: UUID | None = None    # fact this one supersedes / retracts
    organization_id: UUID
    source_id: UUID
    added_by_id: UUID | None = None
    access_mode: AccessMode = AccessMode.ROLE_BASED
    bindings: list[FactObjectBinding] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=_now)
    last_seen_timestamp: datetime = Field(default_factory=_now)


class ObjectFactBinding(BaseModel):
    """Lookup record from an object to a fact bound to it."""
    object_id: UUID
    fact_id: UUID
    direction: Direction = Direction.NONE


class FactTypeEntity(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    name: str


# ── Access control & annotations ───────────────────────
class FactAclEntry(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    fact_id: UUID
    subject_id: UUID
    origin_id: UUID                           # subject who granted access
    timestamp: datetime = Field(default_factory=_now)


class FactComment(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    fact_id: UUID
    comment: str
    origin_id: UUID
    timestamp: datetime = Field(default_factory=_now)


# ── Directory ──────────────────────────────────────────
class Organization(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    name: str


class Source(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    name: str
    organization_id: UUID | None = None


class Subject(BaseModel):
    """A caller of the service together with the functions it was granted."""
    id: UUID = Field(default_factory=uuid4)
    name: str
    organization_id: UUID
    # organization id (as str) -> granted function names
    permissions: dict[str, list[str]] = Field(default_factory=dict)
