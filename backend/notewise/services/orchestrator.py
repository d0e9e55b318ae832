"""
Notewise Backend — Generation Orchestrator Base
=================================================

What:  The validate → generate → persist skeleton shared by the summary and
       tag orchestrators.
How:   Subclasses supply the prompt and the persistence step; this base owns
       parameter checks, the content-size cap, ownership lookup, failure
       results and the DEBUG-level state trail.
Who:   SummaryService and TagService.

States (logged at DEBUG, one line per transition):
    idle → validating → generating → persisting → done
                    ↘            ↘             ↘
                                 error

A failure never raises out of an orchestrator. It becomes a result with
`success=False`, a user-facing `error` and a machine-readable `error_code`.
Provider failures arrive already classified as GenerationError; their
message is shown as-is, except a blank reply, which is a plain generation
failure.
"""

import logging
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from notewise.exceptions import GenerationError, ValidationError
from notewise.services.error_classifier import (
    EMPTY_RESPONSE,
    FAILURE_MESSAGES,
    GENERATION_FAILED,
    PARAMETER_MISSING,
    TOO_LONG,
)
from notewise.services.llm_base import GenerationOptions, LLMService
from notewise.services.tokens import estimate_tokens

logger = logging.getLogger(__name__)

# Product cap on note content sent for summary/tag generation
MAX_CONTENT_TOKENS = 8000

# Note id reported for previews, which have no stored note
PREVIEW_NOTE_ID = "test-note-id"

# Low temperature keeps summaries and tags stable across regenerations
ARTIFACT_TEMPERATURE = 0.3


def is_blank(value: Any) -> bool:
    return value is None or not str(value).strip()


class GenerationOrchestrator:
    """Base for orchestrators that turn note content into a stored artifact."""

    artifact = "artifact"
    result_class: Any = None

    def __init__(self, client: LLMService):
        self.client = client

    # ── Result helpers ────────────────────────────────────────────────────

    def _transition(self, note_id: Any, state: str) -> None:
        logger.debug("[%s %s] → %s", self.artifact, note_id, state)

    def _failure(self, note_id: Any, code: str, message: Optional[str] = None):
        self._transition(note_id, "error")
        return self.result_class(
            success=False,
            error=message or FAILURE_MESSAGES[code],
            error_code=code,
        )

    def _generation_failure(self, note_id: Any, error: GenerationError):
        logger.warning(
            "%s generation failed for note %s: %s",
            self.artifact.capitalize(),
            note_id,
            error.kind.value,
        )
        if error.context.get("reason") == EMPTY_RESPONSE:
            return self._failure(note_id, GENERATION_FAILED)
        return self._failure(note_id, error.kind.value, error.message)

    # ── Steps ─────────────────────────────────────────────────────────────

    def _check_content(self, note_id: Any, content: Optional[str]) -> Optional[str]:
        """Error code if the content cannot be sent for generation, else None."""
        if is_blank(content):
            return PARAMETER_MISSING
        tokens = estimate_tokens(content)
        if tokens > MAX_CONTENT_TOKENS:
            logger.info(
                "Note %s content too long for %s generation (~%d tokens)",
                note_id,
                self.artifact,
                tokens,
            )
            return TOO_LONG
        return None

    async def _generate(self, prompt: str, max_tokens: int) -> str:
        """
        Run the prompt through the client.

        Raises:
            GenerationError: provider failure, or an empty prompt slipping
                through (reported as a generic generation failure).
        """
        try:
            return await self.client.generate_text(
                prompt,
                GenerationOptions(max_tokens=max_tokens, temperature=ARTIFACT_TEMPERATURE),
            )
        except ValidationError as e:
            raise GenerationError(message=FAILURE_MESSAGES[GENERATION_FAILED], original=e) from e

    async def _rollback(self, db: AsyncSession) -> None:
        try:
            await db.rollback()
        except Exception as e:
            logger.error("Rollback after %s persistence failure failed: %s", self.artifact, str(e))
