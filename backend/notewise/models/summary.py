"""
Notewise Backend — Summary SQLAlchemy Model
=============================================

What:  ORM model for the `summaries` table: the single current summary of a note.
Who:   Written by the Summary Orchestrator (generated or manual edit) and the
       full health check; read by `GET /api/notes/{id}/summary`.

Invariant:
    At most one live row per note_id. note_id is indexed but not unique and
    has no foreign key; `ai_queries.upsert_summary` enforces the invariant by
    deleting every row for the note before inserting. The health check writes a summary for
    a sentinel note id that has no `notes` row, which is why there is no FK.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from notewise.database import Base

# Model identifier stored when a human edited the summary
MANUAL_EDIT_MODEL = "manual-edit"


class Summary(Base):
    __tablename__ = "summaries"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    note_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)

    model: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Generation model id, or 'manual-edit' for human-authored summaries",
    )

    content: Mapped[str] = mapped_column(Text, nullable=False)

    # A replace inserts a fresh row, so this reads as "current summary written at"
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_summaries_note_id", "note_id"),
    )

    @property
    def is_manual(self) -> bool:
        return self.model == MANUAL_EDIT_MODEL

    def __repr__(self) -> str:
        return f"<Summary(note_id={self.note_id}, model='{self.model}')>"
