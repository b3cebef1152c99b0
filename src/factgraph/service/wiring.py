"""Assembles the service and its per-request context around one DB session."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from factgraph.models.entities import Subject
from factgraph.service.context import RequestContext, SecurityContext
from factgraph.service.helpers import (
    FactConverter,
    FactStorageHelper,
    FactTypeResolver,
    OrganizationResolver,
    SourceResolver,
)
from factgraph.service.retract import FactRetractService
from factgraph.stores.directory import Directory
from factgraph.stores.fact_store import FactManager, ObjectManager
from factgraph.stores.search_index import FactSearchManager


def open_retraction(
    session: AsyncSession,
    subject: Subject | None,
    chroma_collection=None,
) -> tuple[FactRetractService, RequestContext]:
    fact_manager = FactManager(session)
    directory = Directory(session)
    security = SecurityContext(subject, fact_manager)

    service = FactRetractService(
        type_resolver=FactTypeResolver(fact_manager),
        storage_helper=FactStorageHelper(fact_manager, directory, security),
        organization_resolver=OrganizationResolver(directory, security),
        source_resolver=SourceResolver(directory, security),
    )
    ctx = RequestContext(
        security=security,
        fact_manager=fact_manager,
        object_manager=ObjectManager(session),
        search_manager=FactSearchManager(session, chroma_collection),
        converter=FactConverter(fact_manager, directory),
    )
    return service, ctx
