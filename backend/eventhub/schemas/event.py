"""
EventHub Backend — Pydantic Request/Response Schemas
======================================================

What:  Pydantic models defining the API contract for the events resource.
How:   FastAPI validates request bodies against these models before any
       business logic runs, serializes responses through them, and builds the
       OpenAPI docs from them.
Who:   Route handlers (input/output) and EventService (field extraction).

Request bodies are explicit: every accepted field is declared here with its
type, and unparsable values are rejected with a 400 instead of being stored.
"""

import json
from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import BaseModel, BeforeValidator, Field, model_validator


def parse_attendees(value: Any) -> Any:
    """
    Accept attendees as a list or as a JSON-serialized list.

    Multipart forms deliver repeated fields as a list of strings, so a single
    form value holding '["a", "b"]' arrives as ['["a", "b"]'] and is unwrapped.
    """
    if isinstance(value, list) and len(value) == 1 and isinstance(value[0], str):
        candidate = value[0].strip()
        if candidate.startswith("["):
            value = candidate
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            raise ValueError("attendees must be a list or a JSON-encoded list")
        if not isinstance(value, list):
            raise ValueError("attendees must be a list or a JSON-encoded list")
    return value


AttendeeList = Annotated[List[str], BeforeValidator(parse_attendees)]


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class EventCreate(BaseModel):
    """
    Fields accepted by POST /events (multipart form, image handled separately).

    Every field is optional; missing fields stay out of the stored document.
    """
    name: Optional[str] = None
    tagline: Optional[str] = None
    schedule: Optional[datetime] = None
    description: Optional[str] = None
    moderator: Optional[str] = None
    category: Optional[str] = None
    sub_category: Optional[str] = None
    rigor_rank: Optional[int] = None
    attendees: Optional[AttendeeList] = None


class EventUpdate(BaseModel):
    """
    JSON body for PUT /events/{id}.

    Partial update semantics: only fields that are present AND truthy are
    written (see `changes()`); everything else on the stored document is
    left alone.
    """
    type: Optional[Literal["event"]] = None
    uid: Optional[int] = None
    name: Optional[str] = None
    tagline: Optional[str] = None
    schedule: Optional[datetime] = None
    description: Optional[str] = None
    moderator: Optional[str] = None
    category: Optional[str] = None
    sub_category: Optional[str] = None
    rigor_rank: Optional[int] = None
    attendees: Optional[AttendeeList] = None
    image: Optional[str] = Field(
        default=None,
        description="Replacement image as base64 text",
    )
    image_content_type: Optional[str] = Field(
        default=None,
        description="MIME type of the replacement image",
    )

    @model_validator(mode="before")
    @classmethod
    def drop_empty_strings(cls, data: Any) -> Any:
        # "" means "leave unchanged" for every field, typed ones included
        if isinstance(data, dict):
            return {key: (None if value == "" else value) for key, value in data.items()}
        return data

    def changes(self) -> Dict[str, Any]:
        """Fields to `$set`: present and truthy only."""
        return {key: value for key, value in self.model_dump().items() if value}


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class EventResponse(BaseModel):
    """
    Public representation of an event.

    `image` is the derived URL `{api_prefix}/events/{id}/image`, never the
    embedded bytes.
    """
    id: str = Field(alias="_id", description="Event identifier (ObjectId hex)")
    type: str = Field(default="event")
    uid: Optional[int] = None
    name: Optional[str] = None
    tagline: Optional[str] = None
    schedule: Optional[datetime] = None
    description: Optional[str] = None
    moderator: Optional[str] = None
    category: Optional[str] = None
    sub_category: Optional[str] = None
    rigor_rank: Optional[int] = None
    attendees: List[Any] = Field(default_factory=list)
    image: str = Field(description="URL path serving the event image")

    model_config = {"populate_by_name": True}


class EventCreatedResponse(BaseModel):
    message: str = Field(default="Event created successfully")
    event_id: str = Field(serialization_alias="eventId")


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    """
    Error envelope shared by every endpoint.

    Example:
        {
            "error": "Error creating event",
            "details": "connection refused",
            "request_id": "1f2e3d4c"
        }
    """
    error: str = Field(description="Human-readable error description")
    details: Optional[Any] = Field(default=None, description="Underlying cause or field context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="MongoDB connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
