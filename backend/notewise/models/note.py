"""
Notewise Backend — Note SQLAlchemy Model
==========================================

What:  ORM model representing the `notes` table.
How:   Inherits from the shared DeclarativeBase; Alembic reads it for migrations.
Who:   NoteService for CRUD/trash; ai_queries for ownership-scoped lookups.

Table Design:
    - UUID primary key, generated in Python (portable across PostgreSQL/SQLite)
    - user_id: opaque owner identifier issued by the auth layer
    - title: never empty; blank titles are stored as "Untitled"
    - content: nullable; notes without content get no AI artifacts
    - deleted_at / deleted_by: soft delete; a non-null deleted_at means
      "in the trash" and hides the note from every ownership-scoped read

    Index on (user_id, updated_at) serves the dashboard listing.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Index, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from notewise.database import Base

UNTITLED = "Untitled"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Note(Base):
    """
    A user-authored note.

    Lifecycle:
        1. Created by the owner (summary + tags generated in the background)
        2. Updated any number of times (artifacts regenerated in the background)
        3. Soft-deleted into the trash (deleted_at set), restorable
        4. Permanently deleted, together with its summary and tags
    """

    __tablename__ = "notes"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    user_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="Owner identifier from the authentication layer",
    )

    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default=UNTITLED,
    )

    content: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        default=None,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    # ── Soft Delete ───────────────────────────────────────────────────────
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
    )

    deleted_by: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
        default=None,
    )

    __table_args__ = (
        Index("idx_notes_user_updated_at", "user_id", "updated_at"),
    )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def __repr__(self) -> str:
        return (
            f"<Note(id={self.id}, user_id='{self.user_id}', "
            f"deleted={self.is_deleted})>"
        )
