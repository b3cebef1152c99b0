"""Per-request collaborators handed explicitly to the service layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING
from uuid import UUID

from factgraph.exceptions import AccessDeniedError, AuthenticationFailedError
from factgraph.logging import get_logger
from factgraph.models.entities import FactEntity, Subject
from factgraph.models.enums import AccessMode, Function
from factgraph.models.events import TriggerEvent
from factgraph.stores.fact_store import FactManager, ObjectManager
from factgraph.stores.search_index import FactSearchManager

if TYPE_CHECKING:
    from factgraph.service.helpers import FactConverter

log = get_logger("security")


class SecurityContext:
    """Answers permission questions for the subject making the request.

    ``subject`` is ``None`` when the caller could not be identified; every
    check then fails with ``AuthenticationFailedError``.
    """

    def __init__(self, subject: Subject | None, fact_manager: FactManager):
        self._subject = subject
        self._facts = fact_manager

    def check_authenticated(self) -> None:
        if self._subject is None:
            raise AuthenticationFailedError("Could not authenticate user.")

    @property
    def subject(self) -> Subject:
        self.check_authenticated()
        return self._subject

    @property
    def current_user_id(self) -> UUID:
        return self.subject.id

    @property
    def current_user_organization_id(self) -> UUID:
        return self.subject.organization_id

    def has_permission(self, function: Function, organization_id: UUID | None = None) -> bool:
        """Check ``function`` in ``organization_id``, or in any organization if omitted."""
        granted = self.subject.permissions
        if organization_id is None:
            return any(function.value in functions for functions in granted.values())
        return function.value in granted.get(str(organization_id), [])

    def check_permission(self, function: Function, organization_id: UUID | None = None) -> None:
        if not self.has_permission(function, organization_id):
            log.info("permission_denied", subject=str(self.current_user_id),
                     function=function.value, organization=str(organization_id))
            raise AccessDeniedError(f"User is not allowed to perform operation '{function.value}'.")

    async def check_read_permission(self, fact: FactEntity) -> None:
        if fact.access_mode == AccessMode.PUBLIC:
            self.check_permission(Function.VIEW_FACT_OBJECTS)
            return

        if await self._in_acl(fact):
            return

        if fact.access_mode == AccessMode.ROLE_BASED and self.has_permission(
            Function.VIEW_FACT_OBJECTS, fact.organization_id,
        ):
            return

        log.info("read_denied", subject=str(self.current_user_id), fact_id=str(fact.id),
                 access_mode=fact.access_mode.value)
        raise AccessDeniedError("User is not allowed to access Fact.")

    async def _in_acl(self, fact: FactEntity) -> bool:
        user_id = self.current_user_id
        return any(entry.subject_id == user_id for entry in await self._facts.get_acl(fact.id))


@dataclass
class TriggerContext:
    """Collects trigger events registered while a request runs.

    Events are only handed to a dispatcher once the request has succeeded.
    """
    events: list[TriggerEvent] = field(default_factory=list)

    def register_trigger_event(self, event: TriggerEvent) -> None:
        self.events.append(event)

    def drain(self) -> list[TriggerEvent]:
        events, self.events = self.events, []
        return events


@dataclass
class RequestContext:
    """Everything one request needs, passed explicitly instead of looked up globally."""
    security: SecurityContext
    fact_manager: FactManager
    object_manager: ObjectManager
    search_manager: FactSearchManager
    converter: FactConverter
    triggers: TriggerContext = field(default_factory=TriggerContext)
