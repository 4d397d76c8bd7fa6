"""
PadPress Backend — Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions for every failure the note handlers
       can produce.
How:   Each exception carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       hand them to the error responder, which renders the error page,
       redirects, or answers in plain text.
Who:   Raised by services and middleware; caught by global handlers.

Exception Hierarchy:
    PadPressError (base)
    ├── ForbiddenError           → 403 (or login redirect when anonymous)
    ├── NotFoundError            → 404
    ├── BadRequestError          → 400
    ├── PayloadTooLargeError     → 413
    ├── InternalError            → 500
    │   ├── DatabaseError        → 500 (data store failure)
    │   └── NoteCreateError      → 500 (note creation failure)
    ├── NoteIdDecodeError        → collapses to 500 (or 400, configurable)
    └── ExternalServiceError     → collapses to 403 for gist export,
                                   degrades to partial data for GitLab

The `context` dict is logged server-side and never rendered to the client.
"""

from typing import Any, Dict, Optional


class PadPressError(Exception):
    """
    Base exception for all PadPress application errors.

    Attributes:
        message:  User-facing error description
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ForbiddenError(PadPressError):
    """
    Raised when the caller may not see or act on a note.

    HTTP:    403 Forbidden for signed-in callers. Anonymous callers are
             redirected to the sign-in page with a `next` parameter and a
             flash notice instead.
    """

    def __init__(
        self,
        message: str = "You are not allowed to access this page",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(PadPressError):
    """
    Raised when a requested resource does not exist.

    When:    A note token matches nothing (and free URL does not apply), or the
             signed-in user's record has vanished.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class BadRequestError(PadPressError):
    """Raised when client input cannot be used. HTTP 400."""

    def __init__(
        self,
        message: str = "Bad request",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PayloadTooLargeError(PadPressError):
    """
    Raised when a note body exceeds the configured maximum length.

    When:    Checked before any store write on note creation.
    HTTP:    413 Payload Too Large
    """

    def __init__(
        self,
        max_length: int,
        actual_length: int,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["max_length"] = max_length
        ctx["actual_length"] = actual_length
        super().__init__(
            message=f"Note is {actual_length} characters long; the limit is {max_length}",
            context=ctx,
        )
        self.max_length = max_length
        self.actual_length = actual_length


class InternalError(PadPressError):
    """
    Raised for system faults. HTTP 500.

    Always logged before the error page is rendered.
    """

    def __init__(
        self,
        message: str = "An internal error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(InternalError):
    """
    Raised when a data store query fails.

    Security Note:
        Details (SQL, constraint names) go to the log only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NoteCreateError(InternalError):
    """
    Raised when a note (and its first revision) could not be written.

    When:    Includes the unique-alias race between two simultaneous
             free-URL creations of the same token.
    """

    def __init__(
        self,
        message: str = "The note could not be created",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NoteIdDecodeError(PadPressError):
    """
    Raised by the identifier codec when a token cannot be turned into a key.

    Never reaches the client as-is: the resolver logs it and raises
    InternalError (or BadRequestError when configured).
    """

    def __init__(
        self,
        token: str,
        message: str = "Note identifier could not be decoded",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["token"] = token
        super().__init__(message=message, context=ctx)
        self.token = token


class ExternalServiceError(PadPressError):
    """
    Raised when a call to GitHub or GitLab fails.

    Covers network errors, unexpected status codes and missing tokens.
    `status_code` is None when no response was received.
    """

    def __init__(
        self,
        service: str,
        message: str = "External service call failed",
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["service"] = service
        if status_code is not None:
            ctx["status_code"] = status_code
        super().__init__(message=message, context=ctx)
        self.service = service
        self.status_code = status_code
