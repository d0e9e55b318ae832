"""
Notewise Backend — AI Artifact Storage Queries
================================================

What:  Persistence for note summaries and tags, plus the ownership-scoped
       note lookup the orchestrators validate against.
How:   Plain async functions over an AsyncSession. They flush but never
       commit; the caller owns the transaction (request session, background
       job session, or the health check).
Who:   SummaryService, TagService, NoteService (permanent delete) and the
       full health check.

Conventions:
    - Ids arrive as strings from HTTP paths; a string that is not a UUID
      resolves to "not found" rather than an error.
    - Ownership-scoped reads return None when the note is missing, trashed,
      or belongs to someone else. The three cases are indistinguishable.
    - SQLAlchemy failures are wrapped in DatabaseError (SQL is logged, not
      returned).
"""

import logging
from typing import List, Optional, Union
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from notewise.exceptions import DatabaseError, NotFoundError
from notewise.models.note import Note
from notewise.models.summary import Summary
from notewise.models.tag import NoteTag

logger = logging.getLogger(__name__)

NoteId = Union[str, UUID]


def parse_note_id(note_id: NoteId) -> Optional[UUID]:
    """UUID for `note_id`, or None if it is not a valid UUID."""
    if isinstance(note_id, UUID):
        return note_id
    try:
        return UUID(str(note_id))
    except (ValueError, TypeError):
        return None


def _require_note_id(note_id: NoteId) -> UUID:
    parsed = parse_note_id(note_id)
    if parsed is None:
        raise NotFoundError(resource="Note", resource_id=str(note_id))
    return parsed


def _database_error(operation: str, note_id: NoteId, exc: Exception) -> DatabaseError:
    logger.error("Database error in %s for note %s: %s", operation, note_id, str(exc))
    return DatabaseError(context={"operation": operation, "note_id": str(note_id)})


# ══════════════════════════════════════════════════════════════════════════
# Notes
# ══════════════════════════════════════════════════════════════════════════

async def get_note_by_id(db: AsyncSession, note_id: NoteId, user_id: str) -> Optional[Note]:
    """The live (not trashed) note with this id owned by `user_id`, else None."""
    parsed = parse_note_id(note_id)
    if parsed is None:
        return None
    try:
        result = await db.execute(
            select(Note).where(
                Note.id == parsed,
                Note.user_id == user_id,
                Note.deleted_at.is_(None),
            )
        )
    except SQLAlchemyError as e:
        raise _database_error("get_note_by_id", note_id, e) from e
    return result.scalar_one_or_none()


# ══════════════════════════════════════════════════════════════════════════
# Summaries
# ══════════════════════════════════════════════════════════════════════════

async def upsert_summary(db: AsyncSession, note_id: NoteId, model: str, content: str) -> Summary:
    """
    Replace the note's summary, or create it.

    Every existing row for the note is deleted before the new one is added,
    in the same transaction, so a duplicate left by overlapping writers is
    cleared by the next replace.
    """
    parsed = _require_note_id(note_id)
    summary = Summary(note_id=parsed, model=model, content=content)
    try:
        await db.execute(delete(Summary).where(Summary.note_id == parsed))
        db.add(summary)
        await db.flush()
    except SQLAlchemyError as e:
        raise _database_error("upsert_summary", note_id, e) from e

    logger.debug("Summary stored for note %s (model=%s)", parsed, model)
    return summary


async def get_summary_by_note_id(
    db: AsyncSession, note_id: NoteId, user_id: str
) -> Optional[Summary]:
    """The current summary of a note the user owns, else None."""
    note = await get_note_by_id(db, note_id, user_id)
    if note is None:
        return None
    try:
        result = await db.execute(
            select(Summary)
            .where(Summary.note_id == note.id)
            .order_by(Summary.created_at.desc())
            .limit(1)
        )
    except SQLAlchemyError as e:
        raise _database_error("get_summary_by_note_id", note_id, e) from e
    return result.scalar_one_or_none()


async def delete_summary(db: AsyncSession, note_id: NoteId) -> int:
    """Delete every summary row of the note. Returns the number deleted."""
    parsed = parse_note_id(note_id)
    if parsed is None:
        return 0
    try:
        result = await db.execute(delete(Summary).where(Summary.note_id == parsed))
        await db.flush()
    except SQLAlchemyError as e:
        raise _database_error("delete_summary", note_id, e) from e
    return result.rowcount or 0


# ══════════════════════════════════════════════════════════════════════════
# Tags
# ══════════════════════════════════════════════════════════════════════════

async def upsert_tags(db: AsyncSession, note_id: NoteId, tags: List[str]) -> List[str]:
    """
    Replace the note's whole tag set with `tags`.

    An empty list clears the set. Duplicates collapse to their first occurrence.
    """
    parsed = _require_note_id(note_id)
    unique = list(dict.fromkeys(tags))
    try:
        await db.execute(delete(NoteTag).where(NoteTag.note_id == parsed))
        db.add_all([NoteTag(note_id=parsed, tag=tag) for tag in unique])
        await db.flush()
    except SQLAlchemyError as e:
        raise _database_error("upsert_tags", note_id, e) from e

    logger.debug("Stored %d tags for note %s", len(unique), parsed)
    return unique


async def get_tags_by_note_id(
    db: AsyncSession, note_id: NoteId, user_id: str
) -> Optional[List[str]]:
    """Tags of a note the user owns, alphabetically. None if not accessible."""
    note = await get_note_by_id(db, note_id, user_id)
    if note is None:
        return None
    try:
        result = await db.execute(
            select(NoteTag.tag).where(NoteTag.note_id == note.id).order_by(NoteTag.tag.asc())
        )
    except SQLAlchemyError as e:
        raise _database_error("get_tags_by_note_id", note_id, e) from e
    return list(result.scalars().all())


async def delete_tags(db: AsyncSession, note_id: NoteId) -> int:
    parsed = parse_note_id(note_id)
    if parsed is None:
        return 0
    try:
        result = await db.execute(delete(NoteTag).where(NoteTag.note_id == parsed))
        await db.flush()
    except SQLAlchemyError as e:
        raise _database_error("delete_tags", note_id, e) from e
    return result.rowcount or 0
