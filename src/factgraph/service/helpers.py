"""Collaborators the retraction workflow delegates to.

Each helper wraps one store and answers one kind of question: which fact type
is the retraction type, which organization or source a request refers to,
how ACL entries and comments are written for a new fact, and how a storage
entity is presented to callers.
"""

from __future__ import annotations

from uuid import UUID

from factgraph.exceptions import InvalidArgumentError
from factgraph.logging import get_logger
from factgraph.models.entities import FactAclEntry, FactComment, FactEntity, FactTypeEntity
from factgraph.models.enums import AccessMode
from factgraph.models.facts import Fact, Info, ObjectInfo
from factgraph.service.context import SecurityContext
from factgraph.stores.directory import Directory
from factgraph.stores.fact_store import FactManager

log = get_logger("helpers")

RETRACTION_FACT_TYPE_ID = UUID("00000000-0000-0000-0000-000000000001")
RETRACTION_FACT_TYPE_NAME = "Retraction"


class FactTypeResolver:
    """Resolves system fact types."""

    def __init__(self, fact_manager: FactManager):
        self._facts = fact_manager
        self._retraction_type: FactTypeEntity | None = None

    async def resolve_retraction_fact_type(self) -> FactTypeEntity:
        """Return the reserved Retraction type, creating it on first use."""
        if self._retraction_type is not None:
            return self._retraction_type
        fact_type = await self._facts.get_fact_type_by_name(RETRACTION_FACT_TYPE_NAME)
        if fact_type is None:
            fact_type = await self._facts.save_fact_type(
                FactTypeEntity(id=RETRACTION_FACT_TYPE_ID, name=RETRACTION_FACT_TYPE_NAME)
            )
            log.info("retraction_type_created", type_id=str(fact_type.id))
        self._retraction_type = fact_type
        return fact_type


class OrganizationResolver:
    def __init__(self, directory: Directory, security: SecurityContext):
        self._directory = directory
        self._security = security

    async def resolve(self, ref: str | None) -> UUID:
        """Requested organization, or the caller's own when none was given."""
        if ref is None:
            return self._security.current_user_organization_id
        org = await self._directory.find_organization(ref)
        if org is None:
            raise InvalidArgumentError().add_validation_error(
                "Organization does not exist.", "organization.not.exist", "organization", ref,
            )
        return org.id


class SourceResolver:
    def __init__(self, directory: Directory, security: SecurityContext):
        self._directory = directory
        self._security = security

    async def resolve(self, ref: str | None) -> UUID:
        """Requested source, or the caller itself when none was given."""
        if ref is None:
            return self._security.current_user_id
        source = await self._directory.find_source(ref)
        if source is None:
            raise InvalidArgumentError().add_validation_error(
                "Source does not exist.", "source.not.exist", "source", ref,
            )
        return source.id


class FactStorageHelper:
    """Writes the ACL entries and comments that accompany a new fact."""

    def __init__(self, fact_manager: FactManager, directory: Directory, security: SecurityContext):
        self._facts = fact_manager
        self._directory = directory
        self._security = security

    async def resolve_acl(self, acl: list[UUID]) -> list[UUID]:
        """De-duplicate requested subjects and verify each one exists."""
        subjects: list[UUID] = []
        for subject_id in acl:
            if subject_id in subjects:
                continue
            if await self._directory.get_subject(subject_id) is None:
                raise InvalidArgumentError().add_validation_error(
                    "Subject does not exist.", "subject.not.exist", "acl", subject_id,
                )
            subjects.append(subject_id)
        return subjects

    async def save_initial_acl_for_new_fact(self, fact: FactEntity, acl: list[UUID]) -> list[UUID]:
        """Grant access to ``acl`` on a new fact and return who was added.

        Public facts need no ACL. Explicit facts always include the caller,
        otherwise the caller could not read what it just created.
        """
        if fact.access_mode == AccessMode.PUBLIC:
            return []

        current_user = self._security.current_user_id
        subjects = list(dict.fromkeys(acl))
        if fact.access_mode == AccessMode.EXPLICIT and current_user not in subjects:
            subjects.append(current_user)

        for subject_id in subjects:
            await self._facts.save_acl_entry(FactAclEntry(
                fact_id=fact.id,
                subject_id=subject_id,
                origin_id=current_user,
            ))
        return subjects

    async def save_comment_for_fact(self, fact: FactEntity, comment: str | None) -> None:
        if not comment or not comment.strip():
            return
        await self._facts.save_comment(FactComment(
            fact_id=fact.id,
            comment=comment,
            origin_id=self._security.current_user_id,
        ))


class FactConverter:
    """Turns storage entities into the ``Fact`` projection returned to callers."""

    def __init__(self, fact_manager: FactManager, directory: Directory):
        self._facts = fact_manager
        self._directory = directory

    async def convert(self, entity: FactEntity) -> Fact:
        fact_type = await self._facts.get_fact_type(entity.type_id)
        return Fact(
            id=entity.id,
            type=Info(id=entity.type_id, name=fact_type.name if fact_type else ""),
            value=entity.value,
            in_reference_to=entity.in_reference_to_id,
            organization=await self._organization(entity.organization_id),
            source=await self._source(entity.source_id),
            added_by=await self._subject(entity.added_by_id),
            access_mode=entity.access_mode,
            timestamp=entity.timestamp,
            last_seen_timestamp=entity.last_seen_timestamp,
            objects=tuple(ObjectInfo(id=b.object_id, direction=b.direction) for b in entity.bindings),
        )

    async def _organization(self, org_id: UUID) -> Info:
        org = await self._directory.get_organization(org_id)
        return Info(id=org_id, name=org.name if org else "")

    async def _source(self, source_id: UUID) -> Info:
        # A fact added without an explicit source uses its author as source.
        source = await self._directory.get_source(source_id)
        if source is not None:
            return Info(id=source_id, name=source.name)
        subject = await self._directory.get_subject(source_id)
        return Info(id=source_id, name=subject.name if subject else "")

    async def _subject(self, subject_id: UUID | None) -> Info | None:
        if subject_id is None:
            return None
        subject = await self._directory.get_subject(subject_id)
        return Info(id=subject_id, name=subject.name if subject else "")
