"""API routes – the REST surface of the fact graph."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from factgraph.api.deps import get_chroma_collection, get_dispatcher, get_session, get_subject
from factgraph.api.schemas import FactResponse, HealthResponse, RetractFactBody
from factgraph.logging import bind_request
from factgraph.models.entities import Subject
from factgraph.models.facts import RetractFactRequest
from factgraph.service.dispatch import TriggerEventDispatcher
from factgraph.service.wiring import open_retraction

router = APIRouter()


# ── Health ──────────────────────────────────────────────
@router.get("/health", response_model=HealthResponse)
async def health():
    from factgraph import __version__
    return HealthResponse(status="ok", version=__version__)


# ── Facts ───────────────────────────────────────────────
@router.post("/fact/uuid/{fact}/retract", response_model=FactResponse, status_code=201)
async def retract_fact(
    fact: UUID,
    body: RetractFactBody,
    session: AsyncSession = Depends(get_session),
    subject: Subject | None = Depends(get_subject),
    dispatcher: TriggerEventDispatcher = Depends(get_dispatcher),
    chroma_collection=Depends(get_chroma_collection),
):
    """Retract a fact by creating a Retraction fact referencing it."""
    bind_request(fact_id=str(fact), subject=str(subject.id) if subject else None)
    service, ctx = open_retraction(session, subject, chroma_collection)
    request = RetractFactRequest(
        fact=fact,
        organization=body.organization,
        source=body.source,
        access_mode=body.access_mode,
        acl=body.acl,
        comment=body.comment,
    )
    try:
        retraction = await service.handle(request, ctx)
        await session.commit()
    except Exception:
        await session.rollback()
        ctx.search_manager.discard_mirror()
        raise

    await ctx.search_manager.flush_mirror()
    await dispatcher.dispatch(ctx.triggers.drain())
    return FactResponse(data=retraction)
