"""
Notewise Backend — AI Request/Response Schemas
================================================

What:  Pydantic models for the summary, tag and generation endpoints, and the
       result objects the orchestrators return.
How:   Orchestrator results are `{success, <payload>?, error?, error_code?}`:
       a failure is data, not an exception, so the endpoints always answer 200.

error_code values:
    parameter_missing, not_found, too_long, generation_failed,
    storage_failed, summary_not_found, or a GenerationErrorKind value
    (credential_invalid, quota_exceeded, timeout, content_filtered,
    network_error, unknown).
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Orchestrator Results
# ══════════════════════════════════════════════════════════════════════════

class SummaryResult(BaseModel):
    success: bool
    summary: Optional[str] = None
    model: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None


class TagResult(BaseModel):
    success: bool
    tags: Optional[List[str]] = None
    error: Optional[str] = None
    error_code: Optional[str] = None


class HealthCheckResult(BaseModel):
    """Outcome of the end-to-end health check; `success` only if every check passed."""

    success: bool
    checks: Dict[str, bool] = Field(
        default_factory=lambda: {"config": False, "generation": False, "storage": False}
    )
    error: Optional[str] = None


# ══════════════════════════════════════════════════════════════════════════
# Requests
# ══════════════════════════════════════════════════════════════════════════

class SummaryUpdateRequest(BaseModel):
    """Body of PUT /api/notes/{id}/summary (manual edit)."""

    content: str = Field(..., description="Human-authored summary text")


class TagsUpdateRequest(BaseModel):
    """Body of PUT /api/notes/{id}/tags. An empty list clears the tag set."""

    tags: List[str] = Field(default_factory=list, description="Tags to store (at most 10 kept)")


class PreviewRequest(BaseModel):
    """Body of the preview endpoints: generate for raw content, store nothing."""

    content: str = Field(..., description="Note content to summarize or tag")


class GenerateRequest(BaseModel):
    """Body of POST /api/ai/generate."""

    prompt: str
    max_tokens: Optional[int] = Field(default=None, ge=1, le=32768)
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    top_p: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    top_k: Optional[int] = Field(default=None, ge=1)


# ══════════════════════════════════════════════════════════════════════════
# Responses
# ══════════════════════════════════════════════════════════════════════════

class GenerateResponse(BaseModel):
    text: str
    model: str


class UsageLogEntryResponse(BaseModel):
    input_tokens: int
    output_tokens: int
    latency_ms: float
    success: bool
    model: str
    error: Optional[str] = None
    timestamp: datetime


class UsageStatsResponse(BaseModel):
    """Aggregates over the client's in-memory usage log, plus the latest entries."""

    total_requests: int
    successful_requests: int
    failed_requests: int
    error_rate_percent: float
    average_latency_ms: float
    total_tokens: int
    estimated_cost_usd: float
    recent: List[UsageLogEntryResponse] = Field(default_factory=list)
