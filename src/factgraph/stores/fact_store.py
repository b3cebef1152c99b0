"""Entity storage for facts, fact types, ACL entries, comments and bindings."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from factgraph.models.entities import (
    FactAclEntry,
    FactComment,
    FactEntity,
    FactObjectBinding,
    FactTypeEntity,
    ObjectFactBinding,
)
from factgraph.models.enums import AccessMode, Direction
from factgraph.stores.tables import (
    FactAclRow,
    FactCommentRow,
    FactRow,
    FactTypeRow,
    ObjectFactBindingRow,
    as_utc,
)


def _fact_from_row(row: FactRow) -> FactEntity:
    return FactEntity(
        id=UUID(row.id),
        type_id=UUID(row.type_id),
        value=row.value,
        in_reference_to_id=UUID(row.in_reference_to_id) if row.in_reference_to_id else None,
        organization_id=UUID(row.organization_id),
        source_id=UUID(row.source_id),
        added_by_id=UUID(row.added_by_id) if row.added_by_id else None,
        access_mode=AccessMode(row.access_mode),
        bindings=[FactObjectBinding.model_validate(b) for b in row.bindings or []],
        timestamp=as_utc(row.timestamp),
        last_seen_timestamp=as_utc(row.last_seen_timestamp),
    )


class FactManager:
    """Reads and writes fact entities and the records hanging off them."""

    def __init__(self, session: AsyncSession):
        self._session = session

    # ── Facts ───────────────────────────────────────────
    async def get_fact(self, fact_id: UUID) -> FactEntity | None:
        row = await self._session.get(FactRow, str(fact_id))
        return _fact_from_row(row) if row else None

    async def save_fact(self, fact: FactEntity) -> FactEntity:
        """Persist a new fact and return it as stored."""
        row = FactRow(
            id=str(fact.id),
            type_id=str(fact.type_id),
            value=fact.value,
            in_reference_to_id=str(fact.in_reference_to_id) if fact.in_reference_to_id else None,
            organization_id=str(fact.organization_id),
            source_id=str(fact.source_id),
            added_by_id=str(fact.added_by_id) if fact.added_by_id else None,
            access_mode=fact.access_mode.value,
            bindings=[b.model_dump(mode="json") for b in fact.bindings],
            timestamp=fact.timestamp,
            last_seen_timestamp=fact.last_seen_timestamp,
        )
        self._session.add(row)
        await self._session.flush()
        return _fact_from_row(row)

    async def get_facts_referencing(self, fact_id: UUID) -> list[FactEntity]:
        """Return facts whose ``in_reference_to_id`` points at ``fact_id``."""
        stmt = (
            select(FactRow)
            .where(FactRow.in_reference_to_id == str(fact_id))
            .order_by(FactRow.timestamp)
        )
        result = await self._session.execute(stmt)
        return [_fact_from_row(r) for r in result.scalars().all()]

    # ── Fact types ──────────────────────────────────────
    async def get_fact_type(self, type_id: UUID) -> FactTypeEntity | None:
        row = await self._session.get(FactTypeRow, str(type_id))
        return FactTypeEntity(id=UUID(row.id), name=row.name) if row else None

    async def get_fact_type_by_name(self, name: str) -> FactTypeEntity | None:
        stmt = select(FactTypeRow).where(FactTypeRow.name == name)
        result = await self._session.execute(stmt)
        row = result.scalar_one_or_none()
        return FactTypeEntity(id=UUID(row.id), name=row.name) if row else None

    async def save_fact_type(self, fact_type: FactTypeEntity) -> FactTypeEntity:
        self._session.add(FactTypeRow(id=str(fact_type.id), name=fact_type.name))
        await self._session.flush()
        return fact_type

    # ── ACL ─────────────────────────────────────────────
    async def save_acl_entry(self, entry: FactAclEntry) -> FactAclEntry:
        self._session.add(FactAclRow(
            id=str(entry.id),
            fact_id=str(entry.fact_id),
            subject_id=str(entry.subject_id),
            origin_id=str(entry.origin_id),
            timestamp=entry.timestamp,
        ))
        await self._session.flush()
        return entry

    async def get_acl(self, fact_id: UUID) -> list[FactAclEntry]:
        stmt = select(FactAclRow).where(FactAclRow.fact_id == str(fact_id)).order_by(FactAclRow.timestamp)
        result = await self._session.execute(stmt)
        return [
            FactAclEntry(
                id=UUID(r.id),
                fact_id=UUID(r.fact_id),
                subject_id=UUID(r.subject_id),
                origin_id=UUID(r.origin_id),
                timestamp=as_utc(r.timestamp),
            )
            for r in result.scalars().all()
        ]

    # ── Comments ────────────────────────────────────────
    async def save_comment(self, comment: FactComment) -> FactComment:
        self._session.add(FactCommentRow(
            id=str(comment.id),
            fact_id=str(comment.fact_id),
            comment=comment.comment,
            origin_id=str(comment.origin_id),
            timestamp=comment.timestamp,
        ))
        await self._session.flush()
        return comment

    async def get_comments(self, fact_id: UUID) -> list[FactComment]:
        stmt = select(FactCommentRow).where(FactCommentRow.fact_id == str(fact_id)).order_by(FactCommentRow.timestamp)
        result = await self._session.execute(stmt)
        return [
            FactComment(
                id=UUID(r.id),
                fact_id=UUID(r.fact_id),
                comment=r.comment,
                origin_id=UUID(r.origin_id),
                timestamp=as_utc(r.timestamp),
            )
            for r in result.scalars().all()
        ]


class ObjectManager:
    """Object-side lookup records for facts."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def save_object_fact_binding(self, binding: ObjectFactBinding) -> ObjectFactBinding:
        await self._session.merge(ObjectFactBindingRow(
            object_id=str(binding.object_id),
            fact_id=str(binding.fact_id),
            direction=binding.direction.value,
        ))
        await self._session.flush()
        return binding

    async def get_bindings_for_object(self, object_id: UUID) -> list[ObjectFactBinding]:
        stmt = select(ObjectFactBindingRow).where(ObjectFactBindingRow.object_id == str(object_id))
        result = await self._session.execute(stmt)
        return [
            ObjectFactBinding(object_id=UUID(r.object_id), fact_id=UUID(r.fact_id), direction=Direction(r.direction))
            for r in result.scalars().all()
        ]

    async def get_bindings_for_fact(self, fact_id: UUID) -> list[ObjectFactBinding]:
        stmt = select(ObjectFactBindingRow).where(ObjectFactBindingRow.fact_id == str(fact_id))
        result = await self._session.execute(stmt)
        return [
            ObjectFactBinding(object_id=UUID(r.object_id), fact_id=UUID(r.fact_id), direction=Direction(r.direction))
            for r in result.scalars().all()
        ]
