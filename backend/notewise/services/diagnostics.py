"""
Notewise Backend — End-to-End Health Check
============================================

What:  Verifies the three things AI features need: a valid generation config,
       a working generation round trip and a writable summaries table.
How:   Runs each check independently, so one failing check never hides the
       others. `success` is true only when all three pass.
Who:   GET /health/full (operators; costs a few tokens of quota per call).

Checks:
    config      validate_config() reports no problems
    generation  client.health_check() (a "Hello" prompt, 10 output tokens)
    storage     upsert + delete a summary for a sentinel note id, committed
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from notewise.config import GenerationConfig, validate_config
from notewise.schemas.ai import HealthCheckResult
from notewise.services import ai_queries
from notewise.services.llm_base import LLMService

logger = logging.getLogger(__name__)

# No `notes` row has this id, so the check never touches a real summary
HEALTH_CHECK_NOTE_ID = uuid.UUID(int=0)
HEALTH_CHECK_MODEL = "health-check"


async def _check_storage(db: AsyncSession) -> None:
    await ai_queries.upsert_summary(db, HEALTH_CHECK_NOTE_ID, HEALTH_CHECK_MODEL, "Health check")
    await ai_queries.delete_summary(db, HEALTH_CHECK_NOTE_ID)
    await db.commit()


async def health_check_full(
    db: AsyncSession,
    client: LLMService,
    config: Optional[GenerationConfig] = None,
) -> HealthCheckResult:
    """
    Run all checks. Never raises; failures are reported in the result.

    `config` defaults to the client's own config.
    """
    checks = {"config": False, "generation": False, "storage": False}
    problems: List[str] = []

    config = config or getattr(client, "config", None)
    if config is None:
        problems.append("config: no generation config available")
    else:
        config_errors = validate_config(config)
        checks["config"] = not config_errors
        problems.extend(f"config: {e}" for e in config_errors)

    try:
        checks["generation"] = await client.health_check()
    except Exception as e:
        logger.warning("Generation health check raised: %s", str(e))
    if not checks["generation"]:
        problems.append("generation: AI service did not respond")

    try:
        await _check_storage(db)
        checks["storage"] = True
    except Exception as e:
        logger.warning("Storage health check failed: %s", str(e))
        problems.append("storage: summary round trip failed")
        try:
            await db.rollback()
        except Exception as rollback_error:
            logger.error("Rollback after storage health check failed: %s", str(rollback_error))

    success = all(checks.values())
    if not success:
        logger.warning("Full health check failed: %s", "; ".join(problems))
    return HealthCheckResult(
        success=success,
        checks=checks,
        error=None if success else "; ".join(problems),
    )
