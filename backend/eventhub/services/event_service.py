"""
EventHub Backend — Event Service (Business Logic)
===================================================

What:  Create, read, list, update and delete events in MongoDB.
How:   Each method performs one collection call through the Motor collection
       it is handed, translating missing documents into NotFoundError and
       driver failures into DatabaseError.
Who:   Called by the route handlers in routes/events.py.

Flow (POST /events):
    ┌──────────┐    ┌─────────────┐    ┌──────────────┐    ┌──────────┐
    │  Form +  │───▶│  Schema     │───▶│  Image codec │───▶│ insert   │
    │  upload  │    │  (EventCreate)   │  (base64)    │    │ _one     │
    └──────────┘    └─────────────┘    └──────────────┘    └──────────┘

EventService is stateless: it receives the collection on every call, so
tests can hand it an in-memory collection and no connection state lives on
the service.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from bson.errors import BSONError
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import DESCENDING
from pymongo.errors import PyMongoError

from eventhub.config import settings
from eventhub.exceptions import (
    DatabaseError,
    ImageError,
    NotFoundError,
    ValidationError,
)
from eventhub.models.event import (
    build_event_document,
    parse_object_id,
    to_public,
)
from eventhub.schemas.event import EventCreate, EventUpdate
from eventhub.services.image_service import image_service

logger = logging.getLogger(__name__)

# The only supported listing mode
LIST_MODE_LATEST = "latest"

# Newest schedule first; _id breaks ties so pages never overlap
LATEST_SORT = [("schedule", DESCENDING), ("_id", DESCENDING)]

# Driver-side failures wrapped into DatabaseError
DRIVER_ERRORS = (PyMongoError, BSONError)


class EventService:
    """
    Business logic layer for event operations.

    Responsibilities:
        - create_event(): build the document and insert it
        - get_event(): single event with the image swapped for its URL
        - get_event_image(): decoded image bytes and content type
        - list_events(): "latest" listing with skip/limit pagination
        - update_event(): partial $set of present, truthy fields
        - delete_event(): remove by id
    """

    def __init__(self, api_prefix: Optional[str] = None, max_page_size: Optional[int] = None):
        self.api_prefix = settings.api_prefix if api_prefix is None else api_prefix
        self.max_page_size = max_page_size or settings.max_page_size

    async def create_event(
        self,
        collection: AsyncIOMotorCollection,
        payload: EventCreate,
        image: Optional[bytes] = None,
        image_filename: Optional[str] = None,
        image_content_type: Optional[str] = None,
    ) -> str:
        """
        Insert a new event.

        Args:
            collection: events collection (injected by the route)
            payload: validated form fields
            image: raw uploaded bytes, None when no file was sent

        Returns:
            The new event id as a string.

        Raises:
            ImageError: upload exceeds max_image_size
            DatabaseError: insert failed
        """
        encoded, content_type = "", None
        if image is not None:
            encoded, content_type = image_service.encode_upload(
                image,
                filename=image_filename,
                content_type=image_content_type,
            )

        document = build_event_document(
            payload.model_dump(),
            image=encoded,
            image_content_type=content_type,
        )

        try:
            result = await collection.insert_one(document)
        except DRIVER_ERRORS as e:
            logger.error("Error creating event: %s", str(e), exc_info=True)
            raise DatabaseError(message="Error creating event", reason=str(e))

        event_id = str(result.inserted_id)
        logger.info(
            "Event created: %s (uid=%s, image=%d chars)",
            event_id,
            document["uid"],
            len(encoded),
        )
        return event_id

    async def get_event(
        self,
        collection: AsyncIOMotorCollection,
        event_id: str,
    ) -> Dict[str, Any]:
        """
        Retrieve one event in its public form.

        Raises:
            ValidationError: malformed id (→ 400)
            NotFoundError: no such event (→ 404)
            DatabaseError: query failed (→ 500)
        """
        oid = parse_object_id(event_id)
        try:
            document = await collection.find_one({"_id": oid})
        except DRIVER_ERRORS as e:
            logger.error("Error retrieving event %s: %s", event_id, str(e))
            raise DatabaseError(message="Error retrieving event", reason=str(e))

        if document is None:
            raise NotFoundError(message="Event not found", resource_id=event_id)

        return to_public(document, self.api_prefix)

    async def get_event_image(
        self,
        collection: AsyncIOMotorCollection,
        event_id: str,
    ) -> Tuple[bytes, str]:
        """
        Decode the image embedded in an event.

        Returns:
            (image_bytes, content_type)

        Raises:
            NotFoundError: event missing or has no image
        """
        oid = parse_object_id(event_id)
        try:
            document = await collection.find_one(
                {"_id": oid},
                projection={"image": 1, "image_content_type": 1},
            )
        except DRIVER_ERRORS as e:
            logger.error("Error retrieving image for %s: %s", event_id, str(e))
            raise DatabaseError(message="Error retrieving image", reason=str(e))

        if not document or not document.get("image"):
            raise NotFoundError(message="Image not found for this event", resource_id=event_id)

        try:
            content = image_service.decode(document["image"])
        except ImageError as e:
            # Stored data is corrupt; that is a server-side problem, not a 400
            logger.error("Stored image for %s is not valid base64", event_id)
            raise DatabaseError(message="Error retrieving image", reason=e.message)

        content_type = document.get("image_content_type") or image_service.default_content_type
        return content, content_type

    async def list_events(
        self,
        collection: AsyncIOMotorCollection,
        list_type: Optional[str],
        page: int,
        limit: int,
    ) -> List[Dict[str, Any]]:
        """
        Page through events, most recent schedule first.

        `limit` is capped at max_page_size; skip = (page - 1) * limit.

        Raises:
            ValidationError: list_type is not "latest", or page/limit < 1
            DatabaseError: query failed
        """
        if list_type != LIST_MODE_LATEST:
            raise ValidationError(
                message="Invalid type. Only 'latest' is supported.",
                field="type",
                context={"value": list_type},
            )
        if page < 1 or limit < 1:
            raise ValidationError(
                message="page and limit must be positive integers",
                context={"page": page, "limit": limit},
            )

        limit = min(limit, self.max_page_size)
        skip = (page - 1) * limit
        try:
            cursor = collection.find().sort(LATEST_SORT).skip(skip).limit(limit)
            documents = await cursor.to_list(length=limit)
        except DRIVER_ERRORS as e:
            logger.error("Error retrieving events: %s", str(e), exc_info=True)
            raise DatabaseError(message="Error retrieving events", reason=str(e))

        return [to_public(document, self.api_prefix) for document in documents]

    async def update_event(
        self,
        collection: AsyncIOMotorCollection,
        event_id: str,
        payload: EventUpdate,
    ) -> None:
        """
        Apply a partial update.

        Only present, truthy fields are written; the id is validated before
        the database is touched.

        Raises:
            ValidationError: malformed id, or image is not valid base64
            NotFoundError: nothing matched the id
            DatabaseError: update failed
        """
        oid = parse_object_id(event_id)
        changes = payload.changes()
        if "image" in changes:
            changes["image"] = image_service.validate_encoded(changes["image"])
            # A new image never inherits the previous image's type
            changes["image_content_type"] = image_service.resolve_content_type(
                changes.get("image_content_type")
            )

        try:
            if changes:
                result = await collection.update_one({"_id": oid}, {"$set": changes})
                matched = result.matched_count
            else:
                # MongoDB rejects an empty $set; only confirm the event exists
                matched = int(await collection.find_one({"_id": oid}, projection={"_id": 1}) is not None)
        except DRIVER_ERRORS as e:
            logger.error("Error updating event %s: %s", event_id, str(e))
            raise DatabaseError(message="Error updating event", reason=str(e))

        if matched == 0:
            raise NotFoundError(message="Event not found", resource_id=event_id)

        logger.info("Event %s updated: %s", event_id, sorted(changes))

    async def delete_event(
        self,
        collection: AsyncIOMotorCollection,
        event_id: str,
    ) -> None:
        """
        Raises:
            ValidationError: malformed id
            NotFoundError: nothing was deleted
            DatabaseError: delete failed
        """
        oid = parse_object_id(event_id)
        try:
            result = await collection.delete_one({"_id": oid})
        except DRIVER_ERRORS as e:
            logger.error("Error deleting event %s: %s", event_id, str(e))
            raise DatabaseError(message="Error deleting event", reason=str(e))

        if result.deleted_count == 0:
            raise NotFoundError(message="Event not found", resource_id=event_id)

        logger.info("Event %s deleted", event_id)


event_service = EventService()
