"""
Notewise Backend — Note Service (CRUD & Trash)
================================================

What:  Business logic for notes: create, read, list, update, soft delete,
       restore, permanent delete and the trash listing.
How:   Ownership-scoped SQLAlchemy queries; saving a note with content hands
       it to the background generation queue for summary and tags.
Who:   Called by the note route handlers.

Lifecycle:
    create/update ──▶ commit ──▶ enqueue(note) ──▶ (background) summary + tags
    soft delete   ──▶ note disappears from lists and AI lookups
    restore       ──▶ back in lists, artifacts intact
    permanent     ──▶ note, summary and tags removed

Design Decision:
    NoteService is stateless. It receives the db session (and the queue, when
    background generation is wanted) per call, so tests can pass a session
    and a mock queue directly.

    The commit before enqueue matters: the background job reads the note in
    its own session and must see the saved row.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import asc, delete, desc, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from notewise.exceptions import DatabaseError, NotFoundError
from notewise.models.note import UNTITLED, Note
from notewise.schemas.note import (
    NoteCreate,
    NoteListResponse,
    NoteResponse,
    NoteSort,
    NoteUpdate,
)
from notewise.services import ai_queries
from notewise.services.background import GenerationQueue

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

_SORT_ORDER = {
    NoteSort.NEWEST: desc(Note.updated_at),
    NoteSort.OLDEST: asc(Note.updated_at),
    NoteSort.TITLE_ASC: asc(Note.title),
    NoteSort.TITLE_DESC: desc(Note.title),
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _normalize_title(title: Optional[str]) -> str:
    title = (title or "").strip()
    return title or UNTITLED


def _normalize_paging(page: int, limit: int):
    page = page if page and page >= 1 else 1
    if not limit or limit < 1:
        limit = DEFAULT_PAGE_SIZE
    return page, min(limit, MAX_PAGE_SIZE)


class NoteService:
    """
    Business logic layer for note operations.

    Error Handling Strategy:
        A note that is missing, trashed (for live operations) or owned by
        someone else raises NotFoundError. SQLAlchemy failures are rolled
        back and wrapped in DatabaseError.
    """

    # ── Create / Read ─────────────────────────────────────────────────────

    async def create_note(
        self,
        db: AsyncSession,
        user_id: str,
        data: NoteCreate,
        queue: Optional[GenerationQueue] = None,
    ) -> NoteResponse:
        note = Note(
            user_id=user_id,
            title=_normalize_title(data.title),
            content=data.content,
        )
        try:
            db.add(note)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error creating note: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not save the note. Please try again.",
                context={"operation": "create_note"},
            ) from e

        logger.info("Note %s created for user %s", note.id, user_id)
        self._schedule_generation(queue, note)
        return NoteResponse.model_validate(note)

    async def get_note(self, db: AsyncSession, note_id: str, user_id: str) -> NoteResponse:
        note = await ai_queries.get_note_by_id(db, note_id, user_id)
        if note is None:
            raise NotFoundError(resource="Note", resource_id=str(note_id))
        return NoteResponse.model_validate(note)

    async def list_notes(
        self,
        db: AsyncSession,
        user_id: str,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        sort: NoteSort = NoteSort.NEWEST,
    ) -> NoteListResponse:
        """Live notes of the user, one page at a time."""
        condition = (Note.user_id == user_id) & Note.deleted_at.is_(None)
        return await self._page(db, condition, _SORT_ORDER[NoteSort(sort)], page, limit)

    async def list_trash(
        self,
        db: AsyncSession,
        user_id: str,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> NoteListResponse:
        """Trashed notes of the user, most recently deleted first."""
        condition = (Note.user_id == user_id) & Note.deleted_at.is_not(None)
        return await self._page(db, condition, desc(Note.deleted_at), page, limit)

    async def _page(self, db, condition, order_by, page: int, limit: int) -> NoteListResponse:
        page, limit = _normalize_paging(page, limit)
        try:
            total_count = (
                await db.execute(select(func.count(Note.id)).where(condition))
            ).scalar() or 0
            result = await db.execute(
                select(Note)
                .where(condition)
                .order_by(order_by, desc(Note.id))
                .limit(limit)
                .offset((page - 1) * limit)
            )
            notes = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing notes: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve notes. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e

        return NoteListResponse(
            notes=[NoteResponse.model_validate(n) for n in notes],
            total_count=total_count,
            page=page,
            limit=limit,
            has_more=page < math.ceil(total_count / limit),
        )

    # ── Update ────────────────────────────────────────────────────────────

    async def update_note(
        self,
        db: AsyncSession,
        note_id: str,
        user_id: str,
        data: NoteUpdate,
        queue: Optional[GenerationQueue] = None,
    ) -> NoteResponse:
        """Apply a partial update; changed content triggers regeneration."""
        note = await ai_queries.get_note_by_id(db, note_id, user_id)
        if note is None:
            raise NotFoundError(resource="Note", resource_id=str(note_id))

        content_changed = data.content is not None and data.content != note.content
        if data.title is not None:
            note.title = _normalize_title(data.title)
        if data.content is not None:
            note.content = data.content
        note.updated_at = _utcnow()

        await self._commit(db, "update_note", note_id)
        logger.info("Note %s updated", note.id)
        if content_changed:
            self._schedule_generation(queue, note)
        return NoteResponse.model_validate(note)

    # ── Trash ─────────────────────────────────────────────────────────────

    async def soft_delete_note(self, db: AsyncSession, note_id: str, user_id: str) -> NoteResponse:
        note = await ai_queries.get_note_by_id(db, note_id, user_id)
        if note is None:
            raise NotFoundError(resource="Note", resource_id=str(note_id))

        now = _utcnow()
        note.deleted_at = now
        note.deleted_by = user_id
        note.updated_at = now
        await self._commit(db, "soft_delete_note", note_id)
        logger.info("Note %s moved to trash", note.id)
        return NoteResponse.model_validate(note)

    async def restore_note(self, db: AsyncSession, note_id: str, user_id: str) -> NoteResponse:
        note = await self._get_trashed(db, note_id, user_id)
        note.deleted_at = None
        note.deleted_by = None
        note.updated_at = _utcnow()
        await self._commit(db, "restore_note", note_id)
        logger.info("Note %s restored from trash", note.id)
        return NoteResponse.model_validate(note)

    async def permanent_delete_note(self, db: AsyncSession, note_id: str, user_id: str) -> None:
        """Delete a note (live or trashed) together with its summary and tags."""
        parsed = ai_queries.parse_note_id(note_id)
        if parsed is None:
            raise NotFoundError(resource="Note", resource_id=str(note_id))
        try:
            result = await db.execute(
                delete(Note).where(Note.id == parsed, Note.user_id == user_id)
            )
            if not result.rowcount:
                raise NotFoundError(resource="Note", resource_id=str(note_id))
            await ai_queries.delete_summary(db, parsed)
            await ai_queries.delete_tags(db, parsed)
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error deleting note %s: %s", note_id, str(e), exc_info=True)
            raise DatabaseError(context={"operation": "permanent_delete_note"}) from e

        await self._commit(db, "permanent_delete_note", note_id)
        logger.info("Note %s permanently deleted", parsed)

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _get_trashed(self, db: AsyncSession, note_id: str, user_id: str) -> Note:
        parsed = ai_queries.parse_note_id(note_id)
        if parsed is None:
            raise NotFoundError(resource="Note", resource_id=str(note_id))
        try:
            result = await db.execute(
                select(Note).where(
                    Note.id == parsed,
                    Note.user_id == user_id,
                    Note.deleted_at.is_not(None),
                )
            )
        except SQLAlchemyError as e:
            raise DatabaseError(context={"operation": "get_trashed_note"}) from e
        note = result.scalar_one_or_none()
        if note is None:
            raise NotFoundError(resource="Note", resource_id=str(note_id))
        return note

    async def _commit(self, db: AsyncSession, operation: str, note_id) -> None:
        try:
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error in %s for note %s: %s", operation, note_id, str(e))
            raise DatabaseError(context={"operation": operation}) from e

    def _schedule_generation(self, queue: Optional[GenerationQueue], note: Note) -> None:
        if queue is None or not note.content or not note.content.strip():
            return
        if not queue.enqueue(str(note.id), note.content, note.user_id):
            logger.warning("AI generation not scheduled for note %s", note.id)


# ── Singleton Instance ────────────────────────────────────────────────────
note_service = NoteService()
