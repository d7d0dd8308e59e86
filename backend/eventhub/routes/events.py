"""
EventHub Backend — Event Route Handlers
=========================================

What:  The events resource: create, get-one, get-image, list, update, delete.
How:   Extracts path/query/form/body parameters, delegates to EventService,
       and returns JSON (or raw image bytes) with the right status code.
Who:   API clients of the events backend.

Routes (all under settings.api_prefix, default /api/v3/app):
    POST   /events                          create (multipart form + optional image)
    GET    /events?type=latest&page=&limit= paginated list
    GET    /events/{event_id}               single event, image as URL
    GET    /events/{event_id}/image         raw image bytes
    PUT    /events/{event_id}               partial update (JSON)
    DELETE /events/{event_id}               delete

Errors are raised as EventHub exceptions and rendered by the global
handlers in main.py.
"""

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile
from motor.motor_asyncio import AsyncIOMotorCollection
from pydantic import ValidationError as PydanticValidationError

from eventhub.config import settings
from eventhub.database import get_events_collection
from eventhub.exceptions import ValidationError
from eventhub.schemas.event import (
    ErrorResponse,
    EventCreate,
    EventCreatedResponse,
    EventResponse,
    EventUpdate,
    MessageResponse,
)
from eventhub.services.event_service import event_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix=settings.api_prefix, tags=["Events"])

_ERRORS = {
    400: {"description": "Invalid input", "model": ErrorResponse},
    404: {"description": "Event not found", "model": ErrorResponse},
    500: {"description": "Server error", "model": ErrorResponse},
}


@router.post(
    "/events",
    status_code=201,
    response_model=EventCreatedResponse,
    responses={400: _ERRORS[400], 500: _ERRORS[500]},
    summary="Create an event",
    description=(
        "Multipart form with the event fields and an optional `image` file. "
        "The image is stored base64-encoded inside the event document."
    ),
)
async def create_event(
    name: Optional[str] = Form(default=None),
    tagline: Optional[str] = Form(default=None),
    schedule: Optional[datetime] = Form(default=None),
    description: Optional[str] = Form(default=None),
    moderator: Optional[str] = Form(default=None),
    category: Optional[str] = Form(default=None),
    sub_category: Optional[str] = Form(default=None),
    rigor_rank: Optional[int] = Form(default=None),
    attendees: Optional[List[str]] = Form(
        default=None,
        description="Repeated field, or a single JSON-encoded list",
    ),
    image: Optional[UploadFile] = File(default=None, description="Event image"),
    collection: AsyncIOMotorCollection = Depends(get_events_collection),
) -> EventCreatedResponse:
    try:
        payload = EventCreate(
            name=name,
            tagline=tagline,
            schedule=schedule,
            description=description,
            moderator=moderator,
            category=category,
            sub_category=sub_category,
            rigor_rank=rigor_rank,
            attendees=attendees,
        )
    except PydanticValidationError as e:
        raise ValidationError(
            message="Invalid event fields",
            context={"errors": e.errors(include_url=False, include_context=False)},
        )

    content = None
    filename = content_type = None
    if image is not None:
        try:
            content = await image.read()
            filename, content_type = image.filename, image.content_type
        finally:
            await image.close()
        logger.info(
            "Received image upload: filename=%s, size=%d bytes",
            filename or "unknown",
            len(content),
        )

    event_id = await event_service.create_event(
        collection,
        payload,
        image=content,
        image_filename=filename,
        image_content_type=content_type,
    )
    return EventCreatedResponse(event_id=event_id)


@router.get(
    "/events",
    response_model=List[EventResponse],
    responses={400: _ERRORS[400], 500: _ERRORS[500]},
    summary="List events, most recent schedule first",
)
async def list_events(
    list_type: Optional[str] = Query(
        default=None,
        alias="type",
        description="Listing mode; only 'latest' is supported",
    ),
    page: int = Query(..., ge=1, description="1-based page number"),
    limit: int = Query(..., ge=1, description="Events per page, capped at max_page_size"),
    collection: AsyncIOMotorCollection = Depends(get_events_collection),
) -> List[dict]:
    return await event_service.list_events(collection, list_type, page, limit)


@router.get(
    "/events/{event_id}",
    response_model=EventResponse,
    responses=_ERRORS,
    summary="Get a single event",
    description="The embedded image is replaced by the URL that serves it.",
)
async def get_event(
    event_id: str,
    collection: AsyncIOMotorCollection = Depends(get_events_collection),
) -> dict:
    return await event_service.get_event(collection, event_id)


@router.get(
    "/events/{event_id}/image",
    response_class=Response,
    responses={
        200: {"description": "Image bytes", "content": {"image/*": {}}},
        **_ERRORS,
    },
    summary="Get the image of an event",
)
async def get_event_image(
    event_id: str,
    collection: AsyncIOMotorCollection = Depends(get_events_collection),
) -> Response:
    content, content_type = await event_service.get_event_image(collection, event_id)
    return Response(content=content, media_type=content_type)


@router.put(
    "/events/{event_id}",
    response_model=MessageResponse,
    responses=_ERRORS,
    summary="Partially update an event",
    description="Only fields present and non-empty in the body are changed.",
)
async def update_event(
    event_id: str,
    payload: EventUpdate,
    collection: AsyncIOMotorCollection = Depends(get_events_collection),
) -> MessageResponse:
    await event_service.update_event(collection, event_id, payload)
    return MessageResponse(message="Event updated successfully")


@router.delete(
    "/events/{event_id}",
    response_model=MessageResponse,
    responses=_ERRORS,
    summary="Delete an event",
)
async def delete_event(
    event_id: str,
    collection: AsyncIOMotorCollection = Depends(get_events_collection),
) -> MessageResponse:
    await event_service.delete_event(collection, event_id)
    return MessageResponse(message="Event deleted successfully")
