"""Tests for the FastAPI API routes."""

from __future__ import annotations

import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from conftest import RecordingCollection, World, count_rows, store_fact
from factgraph.app import create_app
from factgraph.models.enums import AccessMode, Direction
from factgraph.service.dispatch import TriggerEventDispatcher, event_log_handler
from factgraph.stores.event_log import TriggerEventLog
from factgraph.stores.search_index import FactSearchManager


@pytest.fixture
def mirror() -> RecordingCollection:
    return RecordingCollection()


@pytest_asyncio.fixture
async def app_client(session_factory, world: World, mirror: RecordingCollection):
    """Create a test client bound to the in-memory database."""
    app = create_app()

    from factgraph.api.deps import get_chroma_collection, get_dispatcher, get_session

    async def override_session():
        async with session_factory() as session:
            yield session

    dispatcher = TriggerEventDispatcher([event_log_handler(session_factory)])
    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    app.dependency_overrides[get_chroma_collection] = lambda: mirror

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


def _headers(subject) -> dict[str, str]:
    return {"X-Subject-ID": str(subject.id)}


class TestHealthEndpoint:
    @pytest.mark.asyncio
    async def test_health(self, app_client: AsyncClient):
        resp = await app_client.get("/v1/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"


class TestRetractAPI:
    @pytest.mark.asyncio
    async def test_retract(self, app_client: AsyncClient, db_session, world: World, session_factory):
        object_id = uuid.uuid4()
        original = await store_fact(db_session, world, bindings=[(object_id, Direction.FACT_IS_SOURCE)])

        resp = await app_client.post(
            f"/v1/fact/uuid/{original.id}/retract",
            json={"comment": "wrong", "acl": [str(world.viewer.id)]},
            headers=_headers(world.analyst),
        )

        assert resp.status_code == 201
        data = resp.json()["data"]
        assert data["inReferenceTo"] == str(original.id)
        assert data["accessMode"] == "RoleBased"
        assert data["type"]["name"] == "Retraction"
        assert data["objects"] == [{"id": str(object_id), "direction": "None"}]

        async with session_factory() as session:
            index = FactSearchManager(session)
            assert (await index.get_fact(original.id)).retracted is True
            assert (await index.get_fact(uuid.UUID(data["id"]))).acl == [world.viewer.id]
            [event] = await TriggerEventLog(session).query(name="FactRetracted")
            assert event["access_mode"] == "RoleBased"
            assert event["context"]["RetractionFact"]["id"] == data["id"]
            assert event["context"]["RetractedFact"]["id"] == str(original.id)

    @pytest.mark.asyncio
    async def test_retract_mirrors_index_after_commit(
        self, app_client: AsyncClient, db_session, world: World, mirror: RecordingCollection,
    ):
        original = await store_fact(db_session, world)

        resp = await app_client.post(
            f"/v1/fact/uuid/{original.id}/retract", json={}, headers=_headers(world.analyst),
        )

        assert resp.status_code == 201
        assert set(mirror.ids) == {resp.json()["data"]["id"], str(original.id)}
        retracted = {ids[0]: metadatas[0]["retracted"] for ids, _, metadatas in mirror.upserts}
        assert retracted[str(original.id)] is True
        assert retracted[resp.json()["data"]["id"]] is False

    @pytest.mark.asyncio
    async def test_failure_after_save_rolls_back_everything(
        self, app_client: AsyncClient, db_session, world: World, mirror: RecordingCollection,
        session_factory, monkeypatch,
    ):
        original = await store_fact(db_session, world)
        async with session_factory() as session:
            before = await count_rows(session)

        async def broken_reindex(self, fact_id, update):
            raise RuntimeError("index unavailable")

        monkeypatch.setattr(FactSearchManager, "reindex_existing_fact", broken_reindex)

        with pytest.raises(RuntimeError):
            await app_client.post(
                f"/v1/fact/uuid/{original.id}/retract", json={"comment": "wrong"}, headers=_headers(world.analyst),
            )

        async with session_factory() as session:
            assert await count_rows(session) == before
            assert (await FactSearchManager(session).get_fact(original.id)).retracted is False
        assert mirror.attempts == 0
    @pytest.mark.asyncio
    async def test_missing_subject_header(self, app_client: AsyncClient, db_session, world: World):
        original = await store_fact(db_session, world)
        resp = await app_client.post(f"/v1/fact/uuid/{original.id}/retract", json={})
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_unknown_subject(self, app_client: AsyncClient, db_session, world: World):
        original = await store_fact(db_session, world)
        resp = await app_client.post(
            f"/v1/fact/uuid/{original.id}/retract", json={}, headers={"X-Subject-ID": str(uuid.uuid4())},
        )
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_access_denied(self, app_client: AsyncClient, db_session, world: World):
        original = await store_fact(db_session, world)
        resp = await app_client.post(
            f"/v1/fact/uuid/{original.id}/retract", json={}, headers=_headers(world.outsider),
        )
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_not_found(self, app_client: AsyncClient, world: World):
        resp = await app_client.post(
            f"/v1/fact/uuid/{uuid.uuid4()}/retract", json={}, headers=_headers(world.analyst),
        )
        assert resp.status_code == 404
        assert resp.json()["messages"][0]["messageTemplate"] == "fact.not.exist"

    @pytest.mark.asyncio
    async def test_access_mode_too_wide(self, app_client: AsyncClient, db_session, world: World, session_factory):
        original = await store_fact(db_session, world, access_mode=AccessMode.EXPLICIT, acl=[world.analyst.id])

        resp = await app_client.post(
            f"/v1/fact/uuid/{original.id}/retract",
            json={"accessMode": "Public"},
            headers=_headers(world.analyst),
        )

        assert resp.status_code == 412
        [message] = resp.json()["messages"]
        assert message["messageTemplate"] == "access.mode.too.wide"
        assert message["field"] == "accessMode"
        assert message["parameter"] == "Public"
        async with session_factory() as session:
            assert (await FactSearchManager(session).get_fact(original.id)).retracted is False
            assert await TriggerEventLog(session).count() == 0

    @pytest.mark.asyncio
    async def test_invalid_body(self, app_client: AsyncClient, world: World):
        resp = await app_client.post(
            f"/v1/fact/uuid/{uuid.uuid4()}/retract",
            json={"accessMode": "Secret"},
            headers=_headers(world.analyst),
        )
        assert resp.status_code == 412
        assert resp.json()["messages"][0]["field"] == "accessMode"
