"""
EventHub Backend — Event Document Model
=========================================

What:  Shape of an event document in the `events` collection, plus the
       helpers that translate between documents and the API.
How:   MongoDB is schema-less, so the "model" is a set of field constants and
       pure functions: id parsing, document construction, and the public
       projection that swaps the embedded image for a URL.
Who:   Used by EventService for every read and write.

Document layout:
    {
        "_id": ObjectId,
        "type": "event",
        "uid": 42,
        "name": "...", "tagline": "...", "description": "...",
        "moderator": "...", "category": "...", "sub_category": "...",
        "schedule": datetime,
        "rigor_rank": 3,
        "attendees": ["..."],
        "image": "<base64>",            # "" when no image was uploaded
        "image_content_type": "image/png"
    }
"""

import random
from typing import Any, Dict, Optional

from bson import ObjectId
from bson.errors import InvalidId

from eventhub.exceptions import ValidationError

EVENT_TYPE = "event"

# uid is a placeholder drawn from [0, UID_UPPER_BOUND); it is not unique
UID_UPPER_BOUND = 100

# Text fields copied verbatim from the request when present
TEXT_FIELDS = (
    "name",
    "tagline",
    "description",
    "moderator",
    "category",
    "sub_category",
)

# Never returned to clients
PRIVATE_FIELDS = ("image_content_type",)


def parse_object_id(event_id: str) -> ObjectId:
    """
    Convert a path parameter into an ObjectId.

    Raises:
        ValidationError: the value is not a 24-character hex ObjectId (→ 400)
    """
    if not isinstance(event_id, str) or not ObjectId.is_valid(event_id):
        raise ValidationError(
            message="Invalid event ID format",
            field="id",
            context={"value": str(event_id)},
        )
    try:
        return ObjectId(event_id)
    except (InvalidId, TypeError):
        raise ValidationError(
            message="Invalid event ID format",
            field="id",
            context={"value": str(event_id)},
        )


def generate_uid() -> int:
    return random.randrange(UID_UPPER_BOUND)


def build_event_document(
    fields: Dict[str, Any],
    image: str = "",
    image_content_type: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Assemble a new event document.

    Fields missing from `fields` (or None) are left out of the document,
    except attendees (→ []) and the generated `type` / `uid`.
    """
    document: Dict[str, Any] = {
        "type": EVENT_TYPE,
        "uid": generate_uid(),
    }
    for key, value in fields.items():
        if value is not None:
            document[key] = value
    document["attendees"] = list(fields.get("attendees") or [])
    document["image"] = image
    if image and image_content_type:
        document["image_content_type"] = image_content_type
    return document


def image_url(api_prefix: str, event_id: Any) -> str:
    """Derived URL that replaces the embedded image in event JSON."""
    return f"{api_prefix}/events/{event_id}/image"


def to_public(document: Dict[str, Any], api_prefix: str) -> Dict[str, Any]:
    """
    Project a stored document into its API representation.

    - `_id` becomes a string
    - `image` becomes the derived image URL (raw base64 is never returned)
    - private bookkeeping fields are dropped
    """
    data = {k: v for k, v in document.items() if k not in PRIVATE_FIELDS}
    event_id = str(document["_id"])
    data["_id"] = event_id
    data["image"] = image_url(api_prefix, event_id)
    return data
