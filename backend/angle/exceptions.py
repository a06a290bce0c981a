"""
Angle Backend — Custom Exception Hierarchy
===========================================

What:  Application-specific exceptions for the service's failure modes.
How:   Each exception carries a user-facing message and an optional context
       dict. Global handlers (registered in main.py) turn them into the
       `{"success": false, "error": ...}` envelope with the right status.
Who:   Raised by services; caught by global handlers, or by the HTML and
       image routes, which apply their own fallback policies.

Exception Hierarchy:
    AngleError (base)
    ├── InvalidInputError       → 400 Bad Request
    ├── NotFoundError           → 404 Not Found (302 to "/" for HTML pages)
    ├── UpstreamError           → 500 Internal Server Error
    ├── RenderUnavailableError  → 500 Internal Server Error
    └── ImageRenderError        → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class AngleError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, and returned only in development)
    """

    status_code = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class InvalidInputError(AngleError):
    """
    Raised when a required identifier is missing or blank.

    When:    /api/og-image/%20, /api/render/episode/%20 and similar.
    HTTP:    400 Bad Request
    """

    status_code = 400

    def __init__(
        self,
        message: str = "Invalid request",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(AngleError):
    """
    Raised when an episode or category does not exist (or is not completed).

    The data layer returns None for absent rows; routes and the page renderer
    convert that None into this exception.
    """

    status_code = 404

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = f"{resource.capitalize()} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)
        self.resource = resource
        self.resource_id = resource_id


class UpstreamError(AngleError):
    """
    Raised when a read against the hosted database fails.

    What:    Connection lost, query rejected, driver error, etc.
    HTTP:    500 Internal Server Error

    The message returned to the client is generic ("Failed to fetch episodes").
    The driver error is logged server-side and kept in `context`.
    """

    def __init__(
        self,
        message: str = "Failed to fetch data",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RenderUnavailableError(AngleError):
    """
    Raised when the static HTML shell cannot be read from any known location.

    HTTP:    500 in development; HTML routes otherwise redirect to "/".
    """

    def __init__(
        self,
        message: str = "Page shell is unavailable",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ImageRenderError(AngleError):
    """
    Raised when even the default preview image cannot be produced.

    Episode and category image failures degrade to the default image; only a
    failure of that last fallback reaches the client.
    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "Failed to generate OG image",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
