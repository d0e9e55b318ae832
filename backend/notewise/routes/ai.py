"""
Notewise Backend — AI Route Handlers
======================================

What:  Summary and tag endpoints per note, previews, ad-hoc generation and
       usage statistics.
How:   Orchestrator endpoints always answer 200 with a `{success, ...}` body;
       the client renders `error` as-is. Only /api/ai/generate lets a
       GenerationError escape (→ 503 via the global handler).

Routes:
    POST/GET/PUT  /api/notes/{id}/summary    regenerate / read / manual edit
    POST/GET/PUT  /api/notes/{id}/tags       regenerate / read / manual edit
    POST          /api/ai/generate           raw prompt → text
    POST          /api/ai/summary/preview    summary for unsaved content
    POST          /api/ai/tags/preview       tags for unsaved content
    GET/DELETE    /api/ai/usage              usage statistics / reset
"""

import logging

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from notewise.database import get_db_session
from notewise.routes.deps import get_current_user_id, get_summary_service, get_tag_service
from notewise.schemas.ai import (
    GenerateRequest,
    GenerateResponse,
    PreviewRequest,
    SummaryResult,
    SummaryUpdateRequest,
    TagResult,
    TagsUpdateRequest,
    UsageStatsResponse,
)
from notewise.services.gemini_service import GeminiService, get_generation_client
from notewise.services.llm_base import GenerationOptions, LLMService
from notewise.services.summary_service import SummaryService
from notewise.services.tag_service import TagService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["AI"])


# ══════════════════════════════════════════════════════════════════════════
# Summaries
# ══════════════════════════════════════════════════════════════════════════

@router.post("/notes/{note_id}/summary", response_model=SummaryResult)
async def regenerate_summary(
    note_id: str,
    user_id: str = Depends(get_current_user_id),
    service: SummaryService = Depends(get_summary_service),
    db: AsyncSession = Depends(get_db_session),
) -> SummaryResult:
    return await service.regenerate_summary(db, note_id, user_id)


@router.get("/notes/{note_id}/summary", response_model=SummaryResult)
async def get_summary(
    note_id: str,
    user_id: str = Depends(get_current_user_id),
    service: SummaryService = Depends(get_summary_service),
    db: AsyncSession = Depends(get_db_session),
) -> SummaryResult:
    return await service.get_summary(db, note_id, user_id)


@router.put("/notes/{note_id}/summary", response_model=SummaryResult)
async def update_summary(
    note_id: str,
    body: SummaryUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    service: SummaryService = Depends(get_summary_service),
    db: AsyncSession = Depends(get_db_session),
) -> SummaryResult:
    return await service.update_summary(db, note_id, body.content, user_id)


# ══════════════════════════════════════════════════════════════════════════
# Tags
# ══════════════════════════════════════════════════════════════════════════

@router.post("/notes/{note_id}/tags", response_model=TagResult)
async def regenerate_tags(
    note_id: str,
    user_id: str = Depends(get_current_user_id),
    service: TagService = Depends(get_tag_service),
    db: AsyncSession = Depends(get_db_session),
) -> TagResult:
    return await service.regenerate_tags(db, note_id, user_id)


@router.get("/notes/{note_id}/tags", response_model=TagResult)
async def get_tags(
    note_id: str,
    user_id: str = Depends(get_current_user_id),
    service: TagService = Depends(get_tag_service),
    db: AsyncSession = Depends(get_db_session),
) -> TagResult:
    return await service.get_tags(db, note_id, user_id)


@router.put("/notes/{note_id}/tags", response_model=TagResult)
async def update_tags(
    note_id: str,
    body: TagsUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    service: TagService = Depends(get_tag_service),
    db: AsyncSession = Depends(get_db_session),
) -> TagResult:
    return await service.update_tags(db, note_id, body.tags, user_id)


# ══════════════════════════════════════════════════════════════════════════
# Generation & Previews
# ══════════════════════════════════════════════════════════════════════════

@router.post("/ai/generate", response_model=GenerateResponse)
async def generate(
    body: GenerateRequest,
    user_id: str = Depends(get_current_user_id),
    client: LLMService = Depends(get_generation_client),
) -> GenerateResponse:
    options = GenerationOptions(
        max_tokens=body.max_tokens,
        temperature=body.temperature,
        top_p=body.top_p,
        top_k=body.top_k,
    )
    text = await client.generate_text(body.prompt, options)
    return GenerateResponse(text=text, model=client.model_name)


@router.post("/ai/summary/preview", response_model=SummaryResult)
async def preview_summary(
    body: PreviewRequest,
    user_id: str = Depends(get_current_user_id),
    service: SummaryService = Depends(get_summary_service),
) -> SummaryResult:
    return await service.preview_summary(body.content)


@router.post("/ai/tags/preview", response_model=TagResult)
async def preview_tags(
    body: PreviewRequest,
    user_id: str = Depends(get_current_user_id),
    service: TagService = Depends(get_tag_service),
) -> TagResult:
    return await service.preview_tags(body.content)


# ══════════════════════════════════════════════════════════════════════════
# Usage
# ══════════════════════════════════════════════════════════════════════════

@router.get("/ai/usage", response_model=UsageStatsResponse)
async def get_usage(
    recent: int = Query(default=20, ge=0, le=1000, description="How many latest entries to include"),
    client: GeminiService = Depends(get_generation_client),
) -> UsageStatsResponse:
    stats = client.get_usage_stats()
    entries = [e.to_dict() for e in client.recent_usage(recent)] if recent else []
    return UsageStatsResponse(**stats.to_dict(), recent=entries)


@router.delete("/ai/usage", status_code=204)
async def clear_usage(client: GeminiService = Depends(get_generation_client)) -> Response:
    client.clear_usage_logs()
    return Response(status_code=204)
