"""Dependency injection helpers for FastAPI routes."""

from __future__ import annotations

from uuid import UUID

import chromadb
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from factgraph.config import get_settings
from factgraph.logging import get_logger
from factgraph.models.entities import Subject
from factgraph.service.dispatch import TriggerEventDispatcher, event_log_handler
from factgraph.stores.database import get_session, get_session_factory
from factgraph.stores.directory import Directory

log = get_logger("deps")

_chroma_collection = None
_dispatcher: TriggerEventDispatcher | None = None


def get_chroma_collection():
    """Shared ChromaDB collection mirroring the fact index, or None when disabled."""
    global _chroma_collection
    settings = get_settings()
    if not settings.enable_vector_index:
        return None
    if _chroma_collection is None:
        client = chromadb.PersistentClient(path=settings.chroma_persist_dir)
        _chroma_collection = client.get_or_create_collection(
            name=settings.chroma_collection,
            metadata={"hnsw:space": "cosine"},
        )
    return _chroma_collection


def get_dispatcher() -> TriggerEventDispatcher:
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = TriggerEventDispatcher([event_log_handler(get_session_factory())])
    return _dispatcher


async def get_subject(
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> Subject | None:
    """Resolve the calling subject from the subject header.

    Returns None for a missing, malformed or unknown id; the service turns
    that into an authentication failure.
    """
    raw = request.headers.get(get_settings().subject_header)
    if not raw:
        return None
    try:
        subject_id = UUID(raw)
    except ValueError:
        log.info("malformed_subject_header", value=raw[:64])
        return None
    return await Directory(session).get_subject(subject_id)
