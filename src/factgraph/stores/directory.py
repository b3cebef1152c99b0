"""Directory of organizations, sources and subjects."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from factgraph.models.entities import Organization, Source, Subject
from factgraph.stores.tables import OrganizationRow, SourceRow, SubjectRow


def _as_uuid(ref: str) -> UUID | None:
    try:
        return UUID(ref)
    except (ValueError, TypeError):
        return None


class Directory:
    """Lookups by id or by name; writes are used for provisioning only."""

    def __init__(self, session: AsyncSession):
        self._session = session

    # ── Organizations ───────────────────────────────────
    async def get_organization(self, org_id: UUID) -> Organization | None:
        row = await self._session.get(OrganizationRow, str(org_id))
        return Organization(id=UUID(row.id), name=row.name) if row else None

    async def find_organization(self, ref: str) -> Organization | None:
        """Resolve an organization from its id or its name."""
        ref_id = _as_uuid(ref)
        if ref_id is not None:
            return await self.get_organization(ref_id)
        stmt = select(OrganizationRow).where(OrganizationRow.name == ref)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return Organization(id=UUID(row.id), name=row.name) if row else None

    async def save_organization(self, org: Organization) -> Organization:
        self._session.add(OrganizationRow(id=str(org.id), name=org.name))
        await self._session.flush()
        return org

    # ── Sources ─────────────────────────────────────────
    async def get_source(self, source_id: UUID) -> Source | None:
        row = await self._session.get(SourceRow, str(source_id))
        return self._source(row) if row else None

    async def find_source(self, ref: str) -> Source | None:
        ref_id = _as_uuid(ref)
        if ref_id is not None:
            return await self.get_source(ref_id)
        stmt = select(SourceRow).where(SourceRow.name == ref)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return self._source(row) if row else None

    async def save_source(self, source: Source) -> Source:
        self._session.add(SourceRow(
            id=str(source.id),
            name=source.name,
            organization_id=str(source.organization_id) if source.organization_id else None,
        ))
        await self._session.flush()
        return source

    @staticmethod
    def _source(row: SourceRow) -> Source:
        return Source(
            id=UUID(row.id),
            name=row.name,
            organization_id=UUID(row.organization_id) if row.organization_id else None,
        )

    # ── Subjects ────────────────────────────────────────
    async def get_subject(self, subject_id: UUID) -> Subject | None:
        row = await self._session.get(SubjectRow, str(subject_id))
        if not row:
            return None
        return Subject(
            id=UUID(row.id),
            name=row.name,
            organization_id=UUID(row.organization_id),
            permissions=row.permissions or {},
        )

    async def save_subject(self, subject: Subject) -> Subject:
        self._session.add(SubjectRow(
            id=str(subject.id),
            name=subject.name,
            organization_id=str(subject.organization_id),
            permissions=subject.permissions,
        ))
        await self._session.flush()
        return subject
