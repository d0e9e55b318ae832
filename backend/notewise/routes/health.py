"""
Notewise Backend — Health Check Routes
========================================

What:  Liveness (`/health`) and end-to-end (`/health/full`) checks.
Who:   Docker health checks and load balancers use /health; operators use
       /health/full, which spends a few tokens of Gemini quota per call.

Status levels (/health):
    healthy    database reachable and generation client configured (200)
    unhealthy  otherwise (503)
"""

import logging
import time

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from notewise import __version__
from notewise.database import engine, get_db_session
from notewise.schemas.ai import HealthCheckResult
from notewise.schemas.note import HealthResponse
from notewise.services.diagnostics import health_check_full
from notewise.services.gemini_service import get_generation_client
from notewise.services.llm_base import LLMService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/health", response_model=HealthResponse, summary="Service liveness check")
async def health_check(request: Request, response: Response) -> HealthResponse:
    """
    Cheap checks only: SELECT 1 and whether the client and queue exist.
    No Gemini call, so liveness checks cost no quota.
    """
    db_status = "connected"
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        logger.warning("Health check: database unreachable: %s", str(e))

    state = request.app.state
    generation = "configured" if getattr(state, "generation_client", None) else "not_configured"
    queue = getattr(state, "generation_queue", None)
    queue_status = "running" if queue is not None and queue.running else "stopped"

    healthy = db_status == "connected" and generation == "configured"
    if not healthy:
        response.status_code = 503

    return HealthResponse(
        status="healthy" if healthy else "unhealthy",
        version=__version__,
        database=db_status,
        generation=generation,
        background_queue=queue_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )


@router.get(
    "/health/full",
    response_model=HealthCheckResult,
    summary="End-to-end AI pipeline check",
    description="Validates config, makes a minimal Gemini call and round-trips a summary row.",
)
async def health_check_full_route(
    response: Response,
    client: LLMService = Depends(get_generation_client),
    db: AsyncSession = Depends(get_db_session),
) -> HealthCheckResult:
    result = await health_check_full(db, client)
    if not result.success:
        response.status_code = 503
    return result
