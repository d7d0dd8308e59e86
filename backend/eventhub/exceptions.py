"""
EventHub Backend — Custom Exception Hierarchy
===============================================

What:  Application-specific exceptions for the different failure scenarios.
How:   Each exception carries a message and an optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return a JSON error envelope with the matching HTTP status code.
Who:   Raised by services and routes; caught by the global handlers.

Exception Hierarchy:
    EventHubError (base)      → 500 Internal Server Error
    ├── ValidationError       → 400 Bad Request (client can fix)
    ├── ImageError            → 400 Bad Request (bad upload or base64 payload)
    ├── NotFoundError         → 404 Not Found
    └── DatabaseError         → 500 Internal Server Error

Error envelope:
    {"error": "<message>", "details": <context or driver message>, "request_id": "..."}
"""

from typing import Any, Dict, Optional


class EventHubError(Exception):
    """
    Base exception for all EventHub application errors.

    Attributes:
        message:  Human-readable error description, returned as `error`
        context:  Extra information, returned as `details` when non-empty
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)

    @property
    def details(self) -> Any:
        """Payload for the `details` key of the error envelope."""
        return self.context or None


class ValidationError(EventHubError):
    """
    Raised when client input fails validation.

    When:    Malformed event id, unsupported list mode, unparsable field.
    HTTP:    400 Bad Request

    Example response:
        {
            "error": "Invalid type. Only 'latest' is supported.",
            "details": {"field": "type", "value": "oldest"}
        }
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class ImageError(ValidationError):
    """
    Raised when an image payload cannot be accepted.

    When:    Upload exceeds max_image_size, or an update carries text that
             is not valid base64.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "Invalid image",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, field="image", context=context)


class NotFoundError(EventHubError):
    """
    Raised when a requested event (or its image) does not exist.

    The driver returns None / zero counts for missing documents; services
    convert those into NotFoundError so routes never branch on them.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        message: str = "Event not found",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)
        self.resource_id = resource_id

    @property
    def details(self) -> Any:
        # The id is already in the request path
        return None


class DatabaseError(EventHubError):
    """
    Raised when a MongoDB operation fails.

    What:    The driver raised (connection lost, server selection timeout,
             write error, ...).
    HTTP:    500 Internal Server Error

    The underlying driver message is kept in `reason` and returned as
    `details`, so API consumers see what went wrong.
    """

    def __init__(
        self,
        message: str = "A database error occurred",
        reason: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
        self.reason = reason

    @property
    def details(self) -> Any:
        return self.reason
