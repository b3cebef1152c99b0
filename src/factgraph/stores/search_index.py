"""Derived search index of fact documents.

The SQL table is the index of record. When a ChromaDB collection is supplied
every indexed document is also mirrored into it for text search. Mirror
writes are queued with the session and only sent by ``flush_mirror`` once the
caller has committed, so a rolled back request never reaches ChromaDB. The
mirror may lag behind if ChromaDB keeps failing.
"""

from __future__ import annotations

import asyncio
from typing import Callable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from tenacity import retry, stop_after_attempt, wait_exponential

from factgraph.logging import get_logger
from factgraph.models.documents import FactDocument, ObjectDocument
from factgraph.models.enums import AccessMode
from factgraph.stores.tables import FactDocumentRow, as_utc

log = get_logger("search_index")


def _document_from_row(row: FactDocumentRow) -> FactDocument:
    return FactDocument(
        id=UUID(row.id),
        type_id=UUID(row.type_id),
        type_name=row.type_name,
        value=row.value,
        in_reference_to_id=UUID(row.in_reference_to_id) if row.in_reference_to_id else None,
        organization_id=UUID(row.organization_id),
        source_id=UUID(row.source_id),
        added_by_id=UUID(row.added_by_id) if row.added_by_id else None,
        access_mode=AccessMode(row.access_mode),
        timestamp=as_utc(row.timestamp),
        last_seen_timestamp=as_utc(row.last_seen_timestamp),
        retracted=row.retracted,
        acl=[UUID(s) for s in row.acl or []],
        objects=[ObjectDocument.model_validate(o) for o in row.objects or []],
    )


class FactSearchManager:
    """Index and re-index fact documents."""

    def __init__(self, session: AsyncSession, chroma_collection=None):
        self._session = session
        self._chroma = chroma_collection
        self._pending: dict[UUID, FactDocument] = {}

    async def get_fact(self, fact_id: UUID) -> FactDocument | None:
        row = await self._session.get(FactDocumentRow, str(fact_id))
        return _document_from_row(row) if row else None

    async def index_fact(self, document: FactDocument) -> FactDocument:
        """Insert or fully replace the document with the same id."""
        row = FactDocumentRow(
            id=str(document.id),
            type_id=str(document.type_id),
            type_name=document.type_name,
            value=document.value,
            in_reference_to_id=str(document.in_reference_to_id) if document.in_reference_to_id else None,
            organization_id=str(document.organization_id),
            source_id=str(document.source_id),
            added_by_id=str(document.added_by_id) if document.added_by_id else None,
            access_mode=document.access_mode.value,
            timestamp=document.timestamp,
            last_seen_timestamp=document.last_seen_timestamp,
            retracted=document.retracted,
            acl=[str(s) for s in document.acl],
            objects=[o.model_dump(mode="json") for o in document.objects],
        )
        await self._session.merge(row)
        await self._session.flush()

        if self._chroma is not None:
            self._pending[document.id] = document
        log.debug("fact_indexed", fact_id=str(document.id), retracted=document.retracted)
        return document

    async def reindex_existing_fact(
        self,
        fact_id: UUID,
        update: Callable[[FactDocument], FactDocument],
    ) -> FactDocument | None:
        """Apply ``update`` to the stored document and index the result.

        A fact that was never indexed is left alone; the next full re-index
        picks it up.
        """
        document = await self.get_fact(fact_id)
        if document is None:
            log.warning("reindex_missing_document", fact_id=str(fact_id))
            return None
        return await self.index_fact(update(document))

    async def flush_mirror(self) -> int:
        """Send queued documents to ChromaDB. Call only after a successful commit.

        Returns how many documents were mirrored. A document that still fails
        after retrying is logged and dropped; the SQL index stays authoritative.
        """
        pending, self._pending = list(self._pending.values()), {}
        mirrored = 0
        for document in pending:
            try:
                await self._mirror(document)
            except Exception as exc:
                log.error("mirror_failed", fact_id=str(document.id), error=str(exc))
                continue
            mirrored += 1
        return mirrored

    def discard_mirror(self) -> None:
        """Drop queued mirror writes after a rollback."""
        self._pending.clear()

    @retry(stop=stop_after_attempt(3), wait=wait_exponential(min=1, max=10), reraise=True)
    async def _mirror(self, document: FactDocument) -> None:
        await asyncio.to_thread(
            self._chroma.upsert,
            ids=[str(document.id)],
            documents=[f"[{document.type_name}] {document.value}"],
            metadatas=[{
                "type_name": document.type_name,
                "organization_id": str(document.organization_id),
                "access_mode": document.access_mode.value,
                "retracted": document.retracted,
                "acl": ",".join(str(s) for s in document.acl),
                "in_reference_to_id": str(document.in_reference_to_id or ""),
            }],
        )
