"""
Notewise Backend — Abstract Text Generation Interface
=======================================================

What:  The contract the summary/tag orchestrators depend on.
How:   Concrete clients inherit from LLMService and implement generate_text()
       and health_check(). GeminiService is the production implementation;
       tests substitute an AsyncMock with the same surface.
Who:   SummaryService, TagService, the full health check.

Contract:
    - generate_text() returns non-empty text or raises
    - Provider failures surface as GenerationError (already classified)
    - Empty prompts surface as ValidationError, before any network traffic
    - model_name identifies the model, stored alongside generated summaries
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

DEFAULT_TEMPERATURE = 0.7
DEFAULT_TOP_P = 0.8
DEFAULT_TOP_K = 40


@dataclass(frozen=True)
class GenerationOptions:
    """
    Per-call overrides. Fields left as None fall back to the defaults,
    and max_tokens falls back to the client's configured limit.
    """

    max_tokens: Optional[int] = None
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    top_k: Optional[int] = None


class LLMService(ABC):
    """Abstract interface for prompt-in, text-out generation providers."""

    @property
    @abstractmethod
    def model_name(self) -> str:
        ...

    @abstractmethod
    async def generate_text(
        self, prompt: str, options: Optional[GenerationOptions] = None
    ) -> str:
        """
        Generate text for `prompt`.

        Raises:
            ValidationError: prompt is empty or whitespace
            GenerationError: the provider failed (after any retries)
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """True if a minimal generation round trip succeeds. Never raises."""
        ...
