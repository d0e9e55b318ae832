"""
Notewise Backend — Generation Error Classification
====================================================

What:  Maps whatever the Gemini SDK or the network stack raised to one
       GenerationErrorKind, and turns it into a GenerationError carrying the
       user-facing message for that kind.
How:   Priority order:
           1. Already a GenerationError → keep its kind
           2. HTTP-like status code (401, 429, 408, 400+safety, ≥500)
           3. Built-in exception types (TimeoutError, ConnectionError)
           4. Case-insensitive substring match on the message
           5. UNKNOWN
Who:   The Retry Executor (is this worth another attempt?) and the Generation
       Client (what does the caller see?). This is the only place in the
       codebase that inspects provider error text.

Status codes:
    google.api_core exceptions expose `.code` (an int, e.g. 429 for
    ResourceExhausted); httpx-style errors expose `.response.status_code`;
    some wrappers use `.status_code` or `.status`.
"""

import asyncio
from typing import Optional, Tuple

from notewise.exceptions import GenerationError, GenerationErrorKind

Kind = GenerationErrorKind

RETRYABLE_KINDS = frozenset({Kind.TIMEOUT, Kind.NETWORK_ERROR, Kind.QUOTA_EXCEEDED})

# ── Message keywords, checked in this order ───────────────────────────────
_KEYWORD_RULES: Tuple[Tuple[Kind, Tuple[str, ...]], ...] = (
    (Kind.CREDENTIAL_INVALID, ("api key", "api_key", "unauthorized", "authentication", "permission denied")),
    (Kind.QUOTA_EXCEEDED, ("quota", "rate limit", "resource exhausted", "resource_exhausted", "too many requests")),
    (Kind.TIMEOUT, ("timeout", "timed out", "deadline")),
    (Kind.CONTENT_FILTERED, ("safety", "filtered", "blocked")),
    (Kind.NETWORK_ERROR, ("network", "connection", "fetch", "unavailable")),
)

_SAFETY_KEYWORDS = ("safety", "filter", "blocked")

# ── User-facing messages, one per kind ────────────────────────────────────
USER_MESSAGES = {
    Kind.CREDENTIAL_INVALID: "AI service authentication failed. Please contact the administrator.",
    Kind.QUOTA_EXCEEDED: "AI service usage limit exceeded. Please try again shortly.",
    Kind.TIMEOUT: "The AI service took too long to respond. Please check your connection and try again.",
    Kind.CONTENT_FILTERED: "The request was blocked by the AI service's content policy.",
    Kind.NETWORK_ERROR: "There was a problem connecting to the AI service. Please try again shortly.",
    Kind.UNKNOWN: "An unexpected error occurred in the AI service. Please try again shortly.",
}

# ── Orchestrator failures that are not provider errors ────────────────────
PARAMETER_MISSING = "parameter_missing"
NOT_FOUND = "not_found"
TOO_LONG = "too_long"
GENERATION_FAILED = "generation_failed"
STORAGE_FAILED = "storage_failed"
SUMMARY_NOT_FOUND = "summary_not_found"

# GenerationError context reason for a reply with no text
EMPTY_RESPONSE = "empty_response"

FAILURE_MESSAGES = {
    PARAMETER_MISSING: "Required parameters are missing.",
    NOT_FOUND: "Note not found or you do not have permission to access it.",
    TOO_LONG: "The note is too long to process. Please shorten it and try again.",
    GENERATION_FAILED: "Failed to generate a result. Please try again.",
    STORAGE_FAILED: "Failed to save the result. Please try again.",
    SUMMARY_NOT_FOUND: "Summary not found.",
}


def extract_status_code(error: BaseException) -> Optional[int]:
    """Best-effort HTTP status code from an SDK or transport exception."""
    for attr in ("code", "status_code", "status"):
        value = getattr(error, attr, None)
        # grpc StatusCode enums and strings are not HTTP codes
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    response = getattr(error, "response", None)
    status = getattr(response, "status_code", None)
    if isinstance(status, int):
        return status
    return None


def classify_error(error: Optional[BaseException]) -> GenerationErrorKind:
    """Map a raw error to a GenerationErrorKind. Never raises."""
    if error is None:
        return Kind.UNKNOWN
    if isinstance(error, GenerationError):
        return error.kind

    message = str(error).lower()
    code = extract_status_code(error)

    if code == 401:
        return Kind.CREDENTIAL_INVALID
    if code == 429:
        return Kind.QUOTA_EXCEEDED
    if code == 408:
        return Kind.TIMEOUT
    if code == 400 and any(k in message for k in _SAFETY_KEYWORDS):
        return Kind.CONTENT_FILTERED
    if code is not None and code >= 500:
        return Kind.NETWORK_ERROR

    if isinstance(error, (TimeoutError, asyncio.TimeoutError)):
        return Kind.TIMEOUT
    if isinstance(error, ConnectionError):
        return Kind.NETWORK_ERROR

    for kind, keywords in _KEYWORD_RULES:
        if any(k in message for k in keywords):
            return kind
    return Kind.UNKNOWN


def is_retryable(kind: GenerationErrorKind) -> bool:
    """Only transient conditions (timeout, network, quota) are retried."""
    return kind in RETRYABLE_KINDS


def is_retryable_error(error: BaseException) -> bool:
    return is_retryable(classify_error(error))


def to_generation_error(error: BaseException) -> GenerationError:
    """Wrap a raw error as a GenerationError with the message for its kind."""
    if isinstance(error, GenerationError):
        return error
    kind = classify_error(error)
    return GenerationError(kind=kind, message=USER_MESSAGES[kind], original=error)
