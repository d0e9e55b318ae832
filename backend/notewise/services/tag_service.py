"""
Notewise Backend — Tag Orchestrator
=====================================

What:  Generates, previews, edits and reads the tag set of a note.
How:   Same validation as the summary orchestrator; the model answers with a
       comma-separated line which parse_tags() turns into at most 6 tags.
       Every write replaces the whole set.
Who:   Tag routes, the preview route and the background generation queue.
"""

import logging
from typing import Iterable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from notewise.exceptions import DatabaseError, GenerationError
from notewise.schemas.ai import TagResult
from notewise.services import ai_queries
from notewise.services.error_classifier import (
    GENERATION_FAILED,
    NOT_FOUND,
    PARAMETER_MISSING,
    STORAGE_FAILED,
)
from notewise.services.orchestrator import PREVIEW_NOTE_ID, GenerationOrchestrator, is_blank

logger = logging.getLogger(__name__)

TAGS_PROMPT = (
    "Analyze the following note content and produce up to 6 relevant tags, "
    "comma-separated on one line:\n\n{content}"
)
TAGS_MAX_TOKENS = 200

MAX_GENERATED_TAGS = 6
MAX_MANUAL_TAGS = 10
MAX_TAG_LENGTH = 100


def clean_tags(tags: Iterable[str], limit: int) -> List[str]:
    """Trim, drop empties, de-duplicate (first occurrence wins), cap at `limit`."""
    cleaned: List[str] = []
    for tag in tags:
        tag = (tag or "").strip()[:MAX_TAG_LENGTH].strip()
        if tag and tag not in cleaned:
            cleaned.append(tag)
        if len(cleaned) >= limit:
            break
    return cleaned


def parse_tags(response: str, limit: int = MAX_GENERATED_TAGS) -> List[str]:
    """
    Tags from a comma-separated model response.

    >>> parse_tags("AI, , Machine Learning, , Technology")
    ['AI', 'Machine Learning', 'Technology']
    """
    if not response:
        return []
    return clean_tags(response.split(","), limit)


class TagService(GenerationOrchestrator):
    artifact = "tags"
    result_class = TagResult

    async def _extract(self, note_id: str, content: str) -> TagResult:
        self._transition(note_id, "generating")
        try:
            text = await self._generate(TAGS_PROMPT.format(content=content), TAGS_MAX_TOKENS)
        except GenerationError as e:
            return self._generation_failure(note_id, e)

        tags = parse_tags(text)
        if not tags:
            logger.warning("No tags parsed from model response for note %s", note_id)
            return self._failure(note_id, GENERATION_FAILED)
        return TagResult(success=True, tags=tags)

    async def generate_tags(
        self, db: AsyncSession, note_id: str, content: str, user_id: str
    ) -> TagResult:
        """Generate tags for a note the user owns and replace its stored set."""
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

            result = await self._extract(note_id, content)
            if not result.success:
                return result

            self._transition(note_id, "persisting")
            await ai_queries.upsert_tags(db, note.id, result.tags)
        except DatabaseError:
            await self._rollback(db)
            return self._failure(note_id, STORAGE_FAILED)
        except Exception as e:
            logger.error("Unexpected error tagging note %s: %s", note_id, str(e), exc_info=True)
            await self._rollback(db)
            return self._failure(note_id, GENERATION_FAILED)

        self._transition(note_id, "done")
        logger.info("Generated %d tags for note %s", len(result.tags), note_id)
        return result

    async def regenerate_tags(self, db: AsyncSession, note_id: str, user_id: str) -> TagResult:
        if is_blank(note_id) or is_blank(user_id):
            return self._failure(note_id, PARAMETER_MISSING)
        try:
            note = await ai_queries.get_note_by_id(db, note_id, user_id)
        except DatabaseError:
            return self._failure(note_id, STORAGE_FAILED)
        if note is None:
            return self._failure(note_id, NOT_FOUND)
        return await self.generate_tags(db, note_id, note.content, user_id)

    async def preview_tags(self, content: str) -> TagResult:
        self._transition(PREVIEW_NOTE_ID, "validating")
        code = self._check_content(PREVIEW_NOTE_ID, content)
        if code:
            return self._failure(PREVIEW_NOTE_ID, code)
        try:
            result = await self._extract(PREVIEW_NOTE_ID, content)
        except Exception as e:
            logger.error("Unexpected error in tag preview: %s", str(e), exc_info=True)
            return self._failure(PREVIEW_NOTE_ID, GENERATION_FAILED)
        if result.success:
            self._transition(PREVIEW_NOTE_ID, "done")
        return result

    async def update_tags(
        self, db: AsyncSession, note_id: str, tags: Optional[List[str]], user_id: str
    ) -> TagResult:
        """
        Replace the tag set with user-supplied tags (cleaned, at most 10).

        An empty list is valid and clears the set.
        """
        if is_blank(note_id) or is_blank(user_id) or tags is None:
            return self._failure(note_id, PARAMETER_MISSING)

        cleaned = clean_tags(tags, MAX_MANUAL_TAGS)
        try:
            note = await ai_queries.get_note_by_id(db, note_id, user_id)
            if note is None:
                return self._failure(note_id, NOT_FOUND)
            stored = await ai_queries.upsert_tags(db, note.id, cleaned)
        except DatabaseError:
            await self._rollback(db)
            return self._failure(note_id, STORAGE_FAILED)

        logger.info("Tags manually updated for note %s (%d tags)", note_id, len(stored))
        return TagResult(success=True, tags=stored)

    async def get_tags(self, db: AsyncSession, note_id: str, user_id: Optional[str]) -> TagResult:
        if is_blank(note_id) or is_blank(user_id):
            return self._failure(note_id, PARAMETER_MISSING)
        try:
            tags = await ai_queries.get_tags_by_note_id(db, note_id, user_id)
        except DatabaseError:
            return self._failure(note_id, STORAGE_FAILED)
        if tags is None:
            return self._failure(note_id, NOT_FOUND)
        return TagResult(success=True, tags=tags)
