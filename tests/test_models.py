"""Tests for core domain models."""

import uuid
from datetime import datetime, timezone

import pytest

from factgraph.exceptions import InvalidArgumentError, ObjectNotFoundError
from factgraph.models.enums import AccessMode, ContextParameter, Direction, EventName
from factgraph.models.events import TriggerEvent
from factgraph.models.facts import Fact, Info, RetractFactRequest


class TestAccessMode:
    def test_order(self):
        assert AccessMode.PUBLIC < AccessMode.ROLE_BASED < AccessMode.EXPLICIT
        assert AccessMode.EXPLICIT > AccessMode.PUBLIC
        assert AccessMode.ROLE_BASED >= AccessMode.ROLE_BASED
        assert AccessMode.ROLE_BASED <= AccessMode.EXPLICIT

    def test_order_is_not_alphabetical(self):
        # As plain strings "Explicit" < "Public" would hold.
        assert not AccessMode.EXPLICIT < AccessMode.PUBLIC
        assert max(AccessMode) is AccessMode.EXPLICIT
        assert sorted([AccessMode.EXPLICIT, AccessMode.PUBLIC, AccessMode.ROLE_BASED]) == list(AccessMode)

    def test_values(self):
        assert AccessMode("RoleBased") is AccessMode.ROLE_BASED
        assert Direction.NONE.value == "None"

    def test_compare_with_other_type(self):
        with pytest.raises(TypeError):
            AccessMode.PUBLIC < 1  # noqa: B015


class TestRequests:
    def test_retract_request_accepts_camel_case(self):
        fact_id = uuid.uuid4()
        req = RetractFactRequest.model_validate({"fact": str(fact_id), "accessMode": "Explicit"})
        assert req.fact == fact_id
        assert req.access_mode is AccessMode.EXPLICIT
        assert req.acl == []
        assert req.comment is None

    def test_fact_serializes_with_aliases(self):
        now = datetime.now(tz=timezone.utc)
        fact = Fact(
            id=uuid.uuid4(),
            type=Info(id=uuid.uuid4(), name="Retraction"),
            value="Retracted",
            in_reference_to=uuid.uuid4(),
            access_mode=AccessMode.PUBLIC,
            timestamp=now,
            last_seen_timestamp=now,
        )
        data = fact.model_dump(mode="json", by_alias=True)
        assert data["accessMode"] == "Public"
        assert "inReferenceTo" in data
        assert "lastSeenTimestamp" in data

    def test_fact_is_immutable(self):
        now = datetime.now(tz=timezone.utc)
        fact = Fact(
            id=uuid.uuid4(), type=Info(id=uuid.uuid4()), value="v",
            access_mode=AccessMode.PUBLIC, timestamp=now, last_seen_timestamp=now,
        )
        with pytest.raises(Exception):
            fact.value = "changed"  # type: ignore[misc]


class TestTriggerEvent:
    def test_context_dump_serializes_models(self):
        now = datetime.now(tz=timezone.utc)
        fact = Fact(
            id=uuid.uuid4(), type=Info(id=uuid.uuid4()), value="v",
            access_mode=AccessMode.EXPLICIT, timestamp=now, last_seen_timestamp=now,
        )
        event = TriggerEvent(
            name=EventName.FACT_RETRACTED,
            access_mode=AccessMode.EXPLICIT,
            context_parameters={ContextParameter.RETRACTION_FACT.value: fact, "note": "x"},
        )
        dumped = event.context_dump()
        assert dumped["RetractionFact"]["id"] == str(fact.id)
        assert dumped["RetractionFact"]["accessMode"] == "Explicit"
        assert dumped["note"] == "x"
        assert event.organization is None


class TestErrors:
    def test_validation_errors_accumulate(self):
        err = InvalidArgumentError()
        err.add_validation_error("first", "first.template", "a", 1)
        err.add_validation_error("second", "second.template", "b", "x")
        assert err.message == "first"
        assert [e.field for e in err.validation_errors] == ["a", "b"]
        assert err.validation_errors[0].parameter == "1"

    def test_explicit_message_kept(self):
        err = ObjectNotFoundError("missing").add_validation_error("other", "t", "fact", "id")
        assert err.message == "missing"
        assert err.validation_errors[0].to_dict()["messageTemplate"] == "t"
