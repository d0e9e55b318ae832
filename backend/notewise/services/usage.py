"""
Notewise Backend — Usage Recorder
===================================

What:  In-memory log of generation calls and the aggregate statistics over it.
How:   A bounded deque (oldest entries evicted past capacity). Append is the
       only mutation besides clear(), so no lock is needed under asyncio.
Who:   Owned by one GeminiService; read by `GET /api/ai/usage`.

Nothing here is persisted; a restart starts from zero.
"""

from collections import deque
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Deque, List, Optional

from notewise.services.tokens import estimate_cost

DEFAULT_CAPACITY = 1000


@dataclass(frozen=True)
class UsageLogEntry:
    """One generation attempt as seen by the caller (retries included)."""

    input_tokens: int
    output_tokens: int
    latency_ms: float
    success: bool
    model: str
    error: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    def to_dict(self) -> dict:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data


@dataclass(frozen=True)
class UsageStats:
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    error_rate_percent: float = 0.0
    average_latency_ms: float = 0.0
    total_tokens: int = 0
    estimated_cost_usd: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


class UsageRecorder:
    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        self._entries: Deque[UsageLogEntry] = deque(maxlen=capacity)

    def __len__(self) -> int:
        return len(self._entries)

    def record(self, entry: UsageLogEntry) -> None:
        self._entries.append(entry)

    def stats(self) -> UsageStats:
        """Aggregate over the retained entries; all zeros when there are none."""
        total = len(self._entries)
        if total == 0:
            return UsageStats()

        successful = sum(1 for e in self._entries if e.success)
        failed = total - successful
        input_tokens = sum(e.input_tokens for e in self._entries)
        output_tokens = sum(e.output_tokens for e in self._entries)

        return UsageStats(
            total_requests=total,
            successful_requests=successful,
            failed_requests=failed,
            error_rate_percent=round(failed / total * 100, 2),
            average_latency_ms=round(sum(e.latency_ms for e in self._entries) / total, 2),
            total_tokens=input_tokens + output_tokens,
            estimated_cost_usd=round(estimate_cost(input_tokens, output_tokens), 6),
        )

    def recent(self, n: int = 100) -> List[UsageLogEntry]:
        """The latest `n` entries, oldest first."""
        if n <= 0:
            return []
        return list(self._entries)[-n:]

    def clear(self) -> None:
        self._entries.clear()
