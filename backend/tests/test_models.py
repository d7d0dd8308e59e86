"""
EventHub Backend — Document Model & Schema Tests
==================================================

What:  Id parsing, document construction, public projection, request schemas.
"""

import pytest
from bson import ObjectId
from pydantic import ValidationError as PydanticValidationError

from eventhub.exceptions import ValidationError
from eventhub.models.event import (
    UID_UPPER_BOUND,
    build_event_document,
    image_url,
    parse_object_id,
    to_public,
)
from eventhub.schemas.event import EventCreate, EventResponse, EventUpdate, parse_attendees


class TestParseObjectId:

    def test_valid_hex_id(self):
        oid = ObjectId()
        assert parse_object_id(str(oid)) == oid

    @pytest.mark.parametrize("value", ["", "123", "z" * 24, "64b7f0c2a1b2c3d4e5f6071", "abcdefghijkl"])
    def test_malformed_ids_rejected(self, value):
        with pytest.raises(ValidationError, match="Invalid event ID format"):
            parse_object_id(value)


class TestBuildEventDocument:

    def test_defaults(self):
        document = build_event_document({"name": "Launch", "tagline": None})

        assert document["type"] == "event"
        assert 0 <= document["uid"] < UID_UPPER_BOUND
        assert document["attendees"] == []
        assert document["image"] == ""
        assert "tagline" not in document
        assert "image_content_type" not in document

    def test_image_content_type_kept_with_image(self):
        document = build_event_document({}, image="aGk=", image_content_type="image/gif")
        assert document["image"] == "aGk="
        assert document["image_content_type"] == "image/gif"

    def test_uid_spread(self):
        uids = {build_event_document({})["uid"] for _ in range(200)}
        assert all(0 <= uid < UID_UPPER_BOUND for uid in uids)
        assert len(uids) > 1


class TestPublicProjection:

    def test_image_replaced_and_private_fields_dropped(self):
        oid = ObjectId()
        document = {
            "_id": oid,
            "type": "event",
            "image": "aGVsbG8=",
            "image_content_type": "image/png",
        }

        public = to_public(document, "/api/v3/app")

        assert public["_id"] == str(oid)
        assert public["image"] == image_url("/api/v3/app", oid)
        assert public["image"] == f"/api/v3/app/events/{oid}/image"
        assert "image_content_type" not in public
        assert document["image"] == "aGVsbG8="

    def test_response_model_accepts_projection(self):
        oid = ObjectId()
        public = to_public({"_id": oid, "type": "event", "image": ""}, "/api/v3/app")

        response = EventResponse.model_validate(public)

        assert response.id == str(oid)
        assert response.model_dump(by_alias=True)["_id"] == str(oid)


class TestAttendees:

    def test_list_passthrough(self):
        assert parse_attendees(["a", "b"]) == ["a", "b"]

    def test_json_string(self):
        assert parse_attendees('["a", "b"]') == ["a", "b"]

    def test_single_form_value_holding_json(self):
        assert parse_attendees(['["a", "b"]']) == ["a", "b"]

    def test_invalid_json_rejected(self):
        with pytest.raises(PydanticValidationError):
            EventUpdate(attendees="[not json")

    def test_json_object_rejected(self):
        with pytest.raises(PydanticValidationError):
            EventUpdate(attendees='{"a": 1}')


class TestEventSchemas:

    def test_create_parses_types(self):
        payload = EventCreate(schedule="2024-01-02T03:04:05Z", rigor_rank="4")
        assert payload.schedule.year == 2024
        assert payload.rigor_rank == 4
        assert payload.attendees is None

    def test_update_changes_only_truthy(self):
        update = EventUpdate(name="n", tagline="", uid=0, attendees=[], category=None)
        assert update.changes() == {"name": "n"}

    def test_update_empty_strings_on_typed_fields_are_dropped(self):
        update = EventUpdate(name="X", schedule="", rigor_rank="", uid="", attendees="", type="")
        assert update.changes() == {"name": "X"}

    def test_update_type_must_be_event(self):
        assert EventUpdate(type="event").changes() == {"type": "event"}
        with pytest.raises(PydanticValidationError):
            EventUpdate(type="workshop")
