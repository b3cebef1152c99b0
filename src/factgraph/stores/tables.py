"""SQLAlchemy ORM tables for the fact graph, its directory and derived index."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


def as_utc(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; every stored timestamp is UTC."""
    if value is not None and value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


# ── Directory ───────────────────────────────────────────
class OrganizationRow(Base):
    __tablename__ = "organizations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(200), unique=True, index=True)


class SourceRow(Base):
    __tablename__ = "sources"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(200), unique=True, index=True)
    organization_id: Mapped[str | None] = mapped_column(String(36), nullable=True)


class SubjectRow(Base):
    __tablename__ = "subjects"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(200), index=True)
    organization_id: Mapped[str] = mapped_column(String(36), ForeignKey("organizations.id"))
    permissions: Mapped[dict] = mapped_column(JSON, default=dict)   # org id -> [function]


# ── Facts ───────────────────────────────────────────────
class FactTypeRow(Base):
    __tablename__ = "fact_types"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(200), unique=True, index=True)


class FactRow(Base):
    __tablename__ = "facts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)   # client generated
    type_id: Mapped[str] = mapped_column(String(36), ForeignKey("fact_types.id"), index=True)
    value: Mapped[str] = mapped_column(Text, default="")
    in_reference_to_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    organization_id: Mapped[str] = mapped_column(String(36))
    source_id: Mapped[str] = mapped_column(String(36))
    added_by_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    access_mode: Mapped[str] = mapped_column(String(20), default="RoleBased")
    bindings: Mapped[list] = mapped_column(JSON, default=list)
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(tz=timezone.utc))
    last_seen_timestamp: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(tz=timezone.utc))


class ObjectFactBindingRow(Base):
    __tablename__ = "object_fact_bindings"

    object_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    fact_id: Mapped[str] = mapped_column(String(36), ForeignKey("facts.id"), primary_key=True)
    direction: Mapped[str] = mapped_column(String(30), default="None")


class FactAclRow(Base):
    __tablename__ = "fact_acl"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    fact_id: Mapped[str] = mapped_column(String(36), ForeignKey("facts.id"), index=True)
    subject_id: Mapped[str] = mapped_column(String(36), index=True)
    origin_id: Mapped[str] = mapped_column(String(36))
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(tz=timezone.utc))


class FactCommentRow(Base):
    __tablename__ = "fact_comments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    fact_id: Mapped[str] = mapped_column(String(36), ForeignKey("facts.id"), index=True)
    comment: Mapped[str] = mapped_column(Text)
    origin_id: Mapped[str] = mapped_column(String(36))
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(tz=timezone.utc))


# ── Derived search index ───────────────────────────────
class FactDocumentRow(Base):
    __tablename__ = "fact_documents"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    type_id: Mapped[str] = mapped_column(String(36), index=True)
    type_name: Mapped[str] = mapped_column(String(200), default="")
    value: Mapped[str] = mapped_column(Text, default="")
    in_reference_to_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    organization_id: Mapped[str] = mapped_column(String(36), index=True)
    source_id: Mapped[str] = mapped_column(String(36))
    added_by_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    access_mode: Mapped[str] = mapped_column(String(20))
    timestamp: Mapped[datetime] = mapped_column(DateTime)
    last_seen_timestamp: Mapped[datetime] = mapped_column(DateTime)
    retracted: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    acl: Mapped[list] = mapped_column(JSON, default=list)
    objects: Mapped[list] = mapped_column(JSON, default=list)


# ── Trigger event log ──────────────────────────────────
class TriggerEventRow(Base):
    __tablename__ = "trigger_events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(100), index=True)
    organization_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    access_mode: Mapped[str] = mapped_column(String(20))
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(tz=timezone.utc))
    context: Mapped[dict] = mapped_column(JSON, default=dict)
