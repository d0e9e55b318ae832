"""
Notewise Backend — Note Request/Response Schemas
==================================================

What:  Pydantic models defining the shape of note API requests and responses.
How:   FastAPI validates request bodies against these models and serializes
       responses through them (OpenAPI docs are generated from them too).
Who:   Note routes and NoteService.

Why separate from SQLAlchemy models:
    The ORM model holds ownership and soft-delete bookkeeping (user_id,
    deleted_by) that the API does not expose, and request models must not
    let the client set ids or timestamps.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class NoteSort(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    TITLE_ASC = "title_asc"
    TITLE_DESC = "title_desc"


class NoteCreate(BaseModel):
    """Body of POST /api/notes. A blank title is stored as "Untitled"."""

    title: str = Field(default="", max_length=255, description="Note title")
    content: Optional[str] = Field(default=None, description="Note body (plain text or markdown)")


class NoteUpdate(BaseModel):
    """Body of PUT /api/notes/{id}. Omitted fields are left unchanged."""

    title: Optional[str] = Field(default=None, max_length=255)
    content: Optional[str] = None


class NoteResponse(BaseModel):
    """
    Full note representation.

    Example:
        {
            "id": "550e8400-e29b-41d4-a716-446655440000",
            "title": "Weekly sync",
            "content": "Discussed the Q3 roadmap...",
            "created_at": "2024-01-15T10:30:00Z",
            "updated_at": "2024-01-15T11:02:00Z",
            "deleted_at": null
        }
    """

    id: uuid.UUID = Field(description="Unique note identifier (UUID)")
    title: str
    content: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = Field(default=None, description="Set while the note is in the trash")

    model_config = {"from_attributes": True}


class NoteListResponse(BaseModel):
    """Page of notes plus pagination state."""

    notes: List[NoteResponse]
    total_count: int = Field(description="Notes matching the query across all pages")
    page: int
    limit: int
    has_more: bool


class ErrorResponse(BaseModel):
    """
    Standard error response format for every error returned by the API.

    Example:
        {
            "error": "not_found",
            "message": "Note with ID '...' was not found",
            "request_id": "a1b2c3d4-..."
        }
    """

    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Lightweight liveness response for GET /health."""

    status: str = Field(description="Overall service status: healthy or unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    generation: str = Field(description="Generation client: configured, not_configured")
    background_queue: str = Field(description="Background generation: running, stopped")
    uptime_seconds: float = Field(description="Seconds since service started")
