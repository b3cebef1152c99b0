"""Retraction of facts.

A fact is never deleted. Retracting it creates a new fact of the reserved
``Retraction`` type which points back at the original through
``in_reference_to_id``, is bound to the same objects, and flips the original's
``retracted`` flag in the search index.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from uuid import UUID

from factgraph.exceptions import InvalidArgumentError, ObjectNotFoundError
from factgraph.logging import get_logger
from factgraph.models.documents import FactDocument, ObjectDocument
from factgraph.models.entities import FactEntity, FactObjectBinding, FactTypeEntity, ObjectFactBinding
from factgraph.models.enums import AccessMode, ContextParameter, Direction, EventName, Function
from factgraph.models.events import TriggerEvent
from factgraph.models.facts import Fact, RetractFactRequest
from factgraph.service.context import RequestContext
from factgraph.service.helpers import (
    FactStorageHelper,
    FactTypeResolver,
    OrganizationResolver,
    SourceResolver,
)

log = get_logger("retract")


def resolve_access_mode(requested: AccessMode | None, retracted: AccessMode) -> AccessMode:
    """Access mode for a retraction of a fact with ``retracted`` access mode.

    Defaults to the retracted fact's mode. A retraction may be more restrictive
    than what it retracts but never less.
    """
    mode = requested if requested is not None else retracted
    if mode < retracted:
        raise InvalidArgumentError().add_validation_error(
            "Requested AccessMode cannot be less restrictive than AccessMode of the Fact to retract.",
            "access.mode.too.wide", "accessMode", mode.value,
        )
    return mode


class FactRetractService:
    """Handles ``RetractFactRequest``s."""

    def __init__(
        self,
        type_resolver: FactTypeResolver,
        storage_helper: FactStorageHelper,
        organization_resolver: OrganizationResolver,
        source_resolver: SourceResolver,
    ):
        for name, value in (
            ("type_resolver", type_resolver),
            ("storage_helper", storage_helper),
            ("organization_resolver", organization_resolver),
            ("source_resolver", source_resolver),
        ):
            if value is None:
                raise ValueError(f"Cannot instantiate FactRetractService without '{name}'.")
        self._types = type_resolver
        self._storage = storage_helper
        self._organizations = organization_resolver
        self._sources = source_resolver

    async def handle(self, request: RetractFactRequest, ctx: RequestContext) -> Fact:
        ctx.security.check_authenticated()
        # Existence is checked before access, so unknown ids answer 404 even to
        # callers who could not read the fact anyway.
        fact_to_retract = await self._fetch_existing_fact(request.fact, ctx)

        await ctx.security.check_read_permission(fact_to_retract)
        organization_id = await self._organizations.resolve(request.organization)
        ctx.security.check_permission(Function.ADD_FACT_OBJECTS, organization_id)

        access_mode = resolve_access_mode(request.access_mode, fact_to_retract.access_mode)
        source_id = await self._sources.resolve(request.source)
        acl = await self._storage.resolve_acl(request.acl)

        retraction_type = await self._types.resolve_retraction_fact_type()
        now = datetime.now(tz=timezone.utc)
        retraction_fact = FactEntity(
            id=uuid.uuid4(),
            type_id=retraction_type.id,
            value=f"Retracted Fact with id = {fact_to_retract.id}.",
            in_reference_to_id=fact_to_retract.id,
            organization_id=organization_id,
            source_id=source_id,
            added_by_id=ctx.security.current_user_id,
            access_mode=access_mode,
            bindings=[
                FactObjectBinding(object_id=b.object_id, direction=Direction.NONE)
                for b in fact_to_retract.bindings
            ],
            timestamp=now,
            last_seen_timestamp=now,
        )

        retraction_fact = await self._save(retraction_fact, fact_to_retract, acl, request.comment,
                                           retraction_type, ctx)

        retraction = await ctx.converter.convert(retraction_fact)
        retracted = await ctx.converter.convert(fact_to_retract)
        self._register_trigger_event(retraction, retracted, ctx)

        log.info(
            "fact_retracted",
            fact_id=str(fact_to_retract.id),
            retraction_id=str(retraction_fact.id),
            access_mode=retraction_fact.access_mode.value,
        )
        return retraction

    async def _fetch_existing_fact(self, fact_id: UUID, ctx: RequestContext) -> FactEntity:
        fact = await ctx.fact_manager.get_fact(fact_id)
        if fact is None:
            raise ObjectNotFoundError(f"Fact with id = {fact_id} does not exist.").add_validation_error(
                f"Fact with id = {fact_id} does not exist.", "fact.not.exist", "fact", fact_id,
            )
        return fact

    async def _save(
        self,
        retraction_fact: FactEntity,
        fact_to_retract: FactEntity,
        acl: list[UUID],
        comment: str | None,
        retraction_type: FactTypeEntity,
        ctx: RequestContext,
    ) -> FactEntity:
        retraction_fact = await ctx.fact_manager.save_fact(retraction_fact)

        for binding in fact_to_retract.bindings:
            await ctx.object_manager.save_object_fact_binding(ObjectFactBinding(
                object_id=binding.object_id,
                fact_id=retraction_fact.id,
                direction=Direction.NONE,
            ))

        subjects_added_to_acl = await self._storage.save_initial_acl_for_new_fact(retraction_fact, acl)
        await self._storage.save_comment_for_fact(retraction_fact, comment)

        await ctx.search_manager.index_fact(FactDocument(
            id=retraction_fact.id,
            type_id=retraction_type.id,
            type_name=retraction_type.name,
            value=retraction_fact.value,
            in_reference_to_id=retraction_fact.in_reference_to_id,
            organization_id=retraction_fact.organization_id,
            source_id=retraction_fact.source_id,
            added_by_id=retraction_fact.added_by_id,
            access_mode=retraction_fact.access_mode,
            timestamp=retraction_fact.timestamp,
            last_seen_timestamp=retraction_fact.last_seen_timestamp,
            acl=subjects_added_to_acl,
            objects=[ObjectDocument(id=b.object_id, direction=b.direction) for b in retraction_fact.bindings],
        ))
        await ctx.search_manager.reindex_existing_fact(
            fact_to_retract.id, lambda document: document.model_copy(update={"retracted": True}),
        )
        return retraction_fact

    @staticmethod
    def _register_trigger_event(retraction: Fact, retracted: Fact, ctx: RequestContext) -> None:
        # The retraction is never less restrictive than the retracted fact, so
        # anyone allowed to see this event may also see both facts.
        ctx.triggers.register_trigger_event(TriggerEvent(
            name=EventName.FACT_RETRACTED,
            organization=retraction.organization.id if retraction.organization else None,
            access_mode=retraction.access_mode,
            context_parameters={
                ContextParameter.RETRACTION_FACT.value: retraction,
                ContextParameter.RETRACTED_FACT.value: retracted,
            },
        ))
