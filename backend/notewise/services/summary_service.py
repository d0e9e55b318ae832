"""
Notewise Backend — Summary Orchestrator
=========================================

What:  Generates, previews, edits and reads the bullet-point summary of a note.
How:   Validates the request, asks the Generation Client for 3-6 bullets,
       and replaces the note's stored summary with the trimmed result.
Who:   Summary routes, the preview route and the background generation queue.

Result shape:
    SummaryResult(success=True,  summary="- point one\n- point two", model=...)
    SummaryResult(success=False, error="<user-facing>", error_code="too_long")
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from notewise.exceptions import DatabaseError, GenerationError
from notewise.models.summary import MANUAL_EDIT_MODEL
from notewise.schemas.ai import SummaryResult
from notewise.services import ai_queries
from notewise.services.error_classifier import (
    GENERATION_FAILED,
    NOT_FOUND,
    PARAMETER_MISSING,
    STORAGE_FAILED,
    SUMMARY_NOT_FOUND,
)
from notewise.services.orchestrator import PREVIEW_NOTE_ID, GenerationOrchestrator, is_blank

logger = logging.getLogger(__name__)

SUMMARY_PROMPT = (
    "Summarize the following note content into 3-6 bullet points, each concise:\n\n{content}"
)
SUMMARY_MAX_TOKENS = 1000


class SummaryService(GenerationOrchestrator):
    artifact = "summary"
    result_class = SummaryResult

    async def _summarize(self, note_id: str, content: str) -> SummaryResult:
        """Generate a summary for already-validated content. Nothing is stored."""
        self._transition(note_id, "generating")
        try:
            text = await self._generate(
                SUMMARY_PROMPT.format(content=content), SUMMARY_MAX_TOKENS
            )
        except GenerationError as e:
            return self._generation_failure(note_id, e)

        summary = (text or "").strip()
        if not summary:
            logger.warning("Empty summary generated for note %s", note_id)
            return self._failure(note_id, GENERATION_FAILED)
        return SummaryResult(success=True, summary=summary, model=self.client.model_name)

    async def generate_summary(
        self, db: AsyncSession, note_id: str, content: str, user_id: str
    ) -> SummaryResult:
        """
        Generate and store a summary for a note the user owns.

        Never raises for expected failures; see SummaryResult.error_code.
        """
        self._transition(note_id, "validating")
        if is_blank(note_id) or is_blank(user_id):
            return self._failure(note_id, PARAMETER_MISSING)
        code = self._check_content(note_id, content)
        if code:
            return self._failure(note_id, code)

        try:
            note = await ai_queries.get_note_by_id(db, note_id, user_id)
            if note is None:
                return self._failure(note_id, NOT_FOUND)

            result = await self._summarize(note_id, content)
            if not result.success:
                return result

            self._transition(note_id, "persisting")
            await ai_queries.upsert_summary(db, note.id, result.model, result.summary)
        except DatabaseError:
            await self._rollback(db)
            return self._failure(note_id, STORAGE_FAILED)
        except Exception as e:
            logger.error("Unexpected error summarizing note %s: %s", note_id, str(e), exc_info=True)
            await self._rollback(db)
            return self._failure(note_id, GENERATION_FAILED)

        self._transition(note_id, "done")
        logger.info("Summary generated for note %s", note_id)
        return result

    async def regenerate_summary(
        self, db: AsyncSession, note_id: str, user_id: str
    ) -> SummaryResult:
        """Generate from the note's stored content (on-demand regeneration)."""
        if is_blank(note_id) or is_blank(user_id):
            return self._failure(note_id, PARAMETER_MISSING)
        try:
            note = await ai_queries.get_note_by_id(db, note_id, user_id)
        except DatabaseError:
            return self._failure(note_id, STORAGE_FAILED)
        if note is None:
            return self._failure(note_id, NOT_FOUND)
        return await self.generate_summary(db, note_id, note.content, user_id)

    async def preview_summary(self, content: str) -> SummaryResult:
        """Summarize raw content without an owning note. Nothing is stored."""
        self._transition(PREVIEW_NOTE_ID, "validating")
        code = self._check_content(PREVIEW_NOTE_ID, content)
        if code:
            return self._failure(PREVIEW_NOTE_ID, code)
        try:
            result = await self._summarize(PREVIEW_NOTE_ID, content)
        except Exception as e:
            logger.error("Unexpected error in summary preview: %s", str(e), exc_info=True)
            return self._failure(PREVIEW_NOTE_ID, GENERATION_FAILED)
        if result.success:
            self._transition(PREVIEW_NOTE_ID, "done")
        return result

    async def update_summary(
        self, db: AsyncSession, note_id: str, content: str, user_id: str
    ) -> SummaryResult:
        """Store a human-written summary, recorded with model "manual-edit"."""
        if is_blank(note_id) or is_blank(content) or is_blank(user_id):
            return self._failure(note_id, PARAMETER_MISSING)

        summary = content.strip()
        try:
            note = await ai_queries.get_note_by_id(db, note_id, user_id)
            if note is None:
                return self._failure(note_id, NOT_FOUND)
            await ai_queries.upsert_summary(db, note.id, MANUAL_EDIT_MODEL, summary)
        except DatabaseError:
            await self._rollback(db)
            return self._failure(note_id, STORAGE_FAILED)

        logger.info("Summary manually edited for note %s", note_id)
        return SummaryResult(success=True, summary=summary, model=MANUAL_EDIT_MODEL)

    async def get_summary(
        self, db: AsyncSession, note_id: str, user_id: Optional[str]
    ) -> SummaryResult:
        if is_blank(note_id) or is_blank(user_id):
            return self._failure(note_id, PARAMETER_MISSING)
        try:
            note = await ai_queries.get_note_by_id(db, note_id, user_id)
            if note is None:
                return self._failure(note_id, NOT_FOUND)
            summary = await ai_queries.get_summary_by_note_id(db, note.id, user_id)
        except DatabaseError:
            return self._failure(note_id, STORAGE_FAILED)

        if summary is None:
            return self._failure(note_id, SUMMARY_NOT_FOUND)
        return SummaryResult(success=True, summary=summary.content, model=summary.model)
