"""Test fixtures and configuration."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import AsyncGenerator

import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from factgraph.models.documents import FactDocument, ObjectDocument
from factgraph.models.entities import (
    FactAclEntry,
    FactEntity,
    FactObjectBinding,
    FactTypeEntity,
    Organization,
    Source,
    Subject,
)
from factgraph.models.enums import AccessMode, Direction
from factgraph.stores.directory import Directory
from factgraph.stores.fact_store import FactManager
from factgraph.stores.search_index import FactSearchManager
from factgraph.stores.tables import Base


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Provide an in-memory SQLite session for tests."""
    async with session_factory() as session:
        yield session


@dataclass
class World:
    """Directory records shared by most tests."""
    org: Organization
    other_org: Organization
    source: Source
    analyst: Subject      # may view and add facts in ``org``
    viewer: Subject       # may view facts in ``org`` but not add any
    outsider: Subject     # no permissions at all
    fact_type: FactTypeEntity


@pytest_asyncio.fixture
async def world(db_session: AsyncSession) -> World:
    directory = Directory(db_session)
    org = await directory.save_organization(Organization(name="Acme"))
    other_org = await directory.save_organization(Organization(name="Globex"))
    source = await directory.save_source(Source(name="sensor-feed", organization_id=org.id))
    analyst = await directory.save_subject(Subject(
        name="analyst",
        organization_id=org.id,
        permissions={str(org.id): ["viewFactObjects", "addFactObjects"]},
    ))
    viewer = await directory.save_subject(Subject(
        name="viewer",
        organization_id=org.id,
        permissions={str(org.id): ["viewFactObjects"]},
    ))
    outsider = await directory.save_subject(Subject(name="outsider", organization_id=other_org.id))
    fact_type = await FactManager(db_session).save_fact_type(FactTypeEntity(name="resolve"))
    await db_session.commit()
    return World(org, other_org, source, analyst, viewer, outsider, fact_type)


async def store_fact(
    session: AsyncSession,
    world: World,
    *,
    access_mode: AccessMode = AccessMode.ROLE_BASED,
    bindings: list[tuple[uuid.UUID, Direction]] | None = None,
    acl: list[uuid.UUID] | None = None,
) -> FactEntity:
    """Persist and index a regular fact the way fact creation would."""
    facts = FactManager(session)
    fact = await facts.save_fact(FactEntity(
        id=uuid.uuid4(),
        type_id=world.fact_type.id,
        value="example.org",
        organization_id=world.org.id,
        source_id=world.source.id,
        added_by_id=world.analyst.id,
        access_mode=access_mode,
        bindings=[FactObjectBinding(object_id=o, direction=d) for o, d in bindings or []],
    ))
    for subject_id in acl or []:
        await facts.save_acl_entry(FactAclEntry(fact_id=fact.id, subject_id=subject_id, origin_id=world.analyst.id))
    await FactSearchManager(session).index_fact(FactDocument(
        id=fact.id,
        type_id=fact.type_id,
        type_name=world.fact_type.name,
        value=fact.value,
        organization_id=fact.organization_id,
        source_id=fact.source_id,
        added_by_id=fact.added_by_id,
        access_mode=fact.access_mode,
        timestamp=fact.timestamp,
        last_seen_timestamp=fact.last_seen_timestamp,
        acl=list(acl or []),
        objects=[ObjectDocument(id=b.object_id, direction=b.direction) for b in fact.bindings],
    ))
    await session.commit()
    return fact


async def count_rows(session: AsyncSession) -> dict[str, int]:
    """Row count per table, used to assert that nothing was written."""
    counts = {}
    for table in Base.metadata.sorted_tables:
        result = await session.execute(select(func.count()).select_from(table))
        counts[table.name] = result.scalar_one()
    return counts


class RecordingCollection:
    """Stands in for a ChromaDB collection and remembers every upsert."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.attempts = 0
        self.upserts: list[tuple[list, list, list]] = []

    def upsert(self, ids, documents, metadatas):
        self.attempts += 1
        if self.fail:
            raise ConnectionError("vector store unavailable")
        self.upserts.append((ids, documents, metadatas))

    @property
    def ids(self) -> list[str]:
        return [i for ids, _, _ in self.upserts for i in ids]
