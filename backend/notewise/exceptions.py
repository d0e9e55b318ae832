"""
Notewise Backend — Custom Exception Hierarchy
===============================================

What:  Application-specific exceptions for the different failure scenarios.
How:   Each exception carries a user-safe message and an optional context dict.
       Global handlers (registered in main.py) turn the ones that escape a
       route into structured JSON with the matching HTTP status code.
Who:   Raised by services, the Generation Client and middleware.

Exception Hierarchy:
    NotewiseError (base)
    ├── ValidationError          → 400 Bad Request
    ├── NotFoundError            → 404 Not Found
    ├── ConfigurationError       → startup failure (never an HTTP response)
    ├── GenerationError          → 503 Service Unavailable
    ├── DatabaseError            → 500 Internal Server Error
    ├── RateLimitExceededError   → 429 Too Many Requests
    └── AuthenticationError      → 401 Unauthorized

Orchestrators (summary/tags) catch GenerationError and DatabaseError and
return failure results instead, so those two rarely reach the handlers.
"""

from enum import Enum
from typing import Any, Dict, Optional


class NotewiseError(Exception):
    """
    Base exception for all Notewise application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
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


class ValidationError(NotewiseError):
    """
    Raised when client input fails a business rule.

    When:  Empty prompt, empty note id, malformed tag list.
    HTTP:  400 Bad Request (schema-level problems are FastAPI's 422)
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


class NotFoundError(NotewiseError):
    """
    Raised when a requested resource does not exist for the caller.

    Ownership failures raise this too: a note that belongs to someone else is
    reported exactly like a note that does not exist.
    HTTP:  404 Not Found
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


class ConfigurationError(NotewiseError):
    """
    Raised when required configuration is missing or out of bounds.

    When:  Building the Generation Client without GEMINI_API_KEY, or with
           max tokens / timeout / rate limit outside their ranges.
    This is a programmer/deployment error and is allowed to crash startup.
    """

    def __init__(
        self,
        message: str = "Configuration is invalid",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class GenerationErrorKind(str, Enum):
    """Machine-readable classification of a text-generation failure."""

    CREDENTIAL_INVALID = "credential_invalid"
    QUOTA_EXCEEDED = "quota_exceeded"
    TIMEOUT = "timeout"
    CONTENT_FILTERED = "content_filtered"
    NETWORK_ERROR = "network_error"
    UNKNOWN = "unknown"


class GenerationError(NotewiseError):
    """
    A classified failure of the external text-generation API.

    What:  Produced once, at the Generation Client boundary, from whatever the
           SDK or transport raised. Callers read `kind` for policy and
           `message` for display; they never inspect the provider error.
    HTTP:  503 Service Unavailable when it escapes a route.

    Attributes:
        kind:      GenerationErrorKind
        original:  The raw exception (logged, never returned to the client)
    """

    def __init__(
        self,
        kind: GenerationErrorKind = GenerationErrorKind.UNKNOWN,
        message: str = "The AI service failed to respond.",
        original: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["kind"] = kind.value
        if original is not None:
            ctx["original_error"] = type(original).__name__
        super().__init__(message=message, context=ctx)
        self.kind = kind
        self.original = original


class DatabaseError(NotewiseError):
    """
    Raised when database operations fail unexpectedly.

    The message returned to the client is always generic; the SQL error is
    logged server-side only.
    HTTP:  500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(NotewiseError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    HTTP:  429 Too Many Requests (with Retry-After header)
    """

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class AuthenticationError(NotewiseError):
    """
    Raised when a request carries no user identity.

    The X-User-ID header is the seam where a session layer plugs in; without
    it no note can be owned or looked up.
    HTTP:  401 Unauthorized
    """

    def __init__(
        self,
        message: str = "Authentication required.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
