"""
Notewise Backend — Note Tag SQLAlchemy Model
==============================================

What:  ORM model for the `note_tags` table: one row per (note, tag).
Who:   Written by the Tag Orchestrator; read by `GET /api/notes/{id}/tags`.

Composite primary key (note_id, tag) means a tag appears at most once per
note. The whole set is replaced on every write; rows are never merged.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from notewise.database import Base


class NoteTag(Base):
    __tablename__ = "note_tags"

    note_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True)
    tag: Mapped[str] = mapped_column(String(100), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<NoteTag(note_id={self.note_id}, tag='{self.tag}')>"
