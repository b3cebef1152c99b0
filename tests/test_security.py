"""Tests for permission checks in the security context."""

from __future__ import annotations

import uuid

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import World, store_fact
from factgraph.exceptions import AccessDeniedError, AuthenticationFailedError
from factgraph.models.enums import AccessMode, Function
from factgraph.service.context import SecurityContext
from factgraph.stores.fact_store import FactManager


class TestPermissions:
    @pytest.mark.asyncio
    async def test_unauthenticated(self, db_session: AsyncSession):
        security = SecurityContext(None, FactManager(db_session))
        with pytest.raises(AuthenticationFailedError):
            security.check_authenticated()
        with pytest.raises(AuthenticationFailedError):
            security.check_permission(Function.ADD_FACT_OBJECTS, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_function_scoped_to_organization(self, db_session: AsyncSession, world: World):
        security = SecurityContext(world.analyst, FactManager(db_session))
        assert security.has_permission(Function.ADD_FACT_OBJECTS, world.org.id)
        assert not security.has_permission(Function.ADD_FACT_OBJECTS, world.other_org.id)
        assert security.has_permission(Function.VIEW_FACT_OBJECTS)
        with pytest.raises(AccessDeniedError):
            security.check_permission(Function.ADD_FACT_OBJECTS, world.other_org.id)


class TestReadPermission:
    @pytest.mark.asyncio
    async def test_public_needs_view_anywhere(self, db_session: AsyncSession, world: World):
        fact = await store_fact(db_session, world, access_mode=AccessMode.PUBLIC)
        facts = FactManager(db_session)

        await SecurityContext(world.viewer, facts).check_read_permission(fact)
        with pytest.raises(AccessDeniedError):
            await SecurityContext(world.outsider, facts).check_read_permission(fact)

    @pytest.mark.asyncio
    async def test_role_based_via_organization_or_acl(self, db_session: AsyncSession, world: World):
        fact = await store_fact(db_session, world, access_mode=AccessMode.ROLE_BASED, acl=[world.outsider.id])
        facts = FactManager(db_session)

        await SecurityContext(world.viewer, facts).check_read_permission(fact)
        await SecurityContext(world.outsider, facts).check_read_permission(fact)

    @pytest.mark.asyncio
    async def test_explicit_requires_acl(self, db_session: AsyncSession, world: World):
        fact = await store_fact(db_session, world, access_mode=AccessMode.EXPLICIT, acl=[world.viewer.id])
        facts = FactManager(db_session)

        await SecurityContext(world.viewer, facts).check_read_permission(fact)
        # Organization-wide view permission is not enough for Explicit facts.
        with pytest.raises(AccessDeniedError):
            await SecurityContext(world.analyst, facts).check_read_permission(fact)
