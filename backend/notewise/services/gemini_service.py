"""
Notewise Backend — Google Gemini Generation Client
====================================================

What:  Concrete LLMService backed by the Google Gemini API.
How:   Sends a text prompt to `GenerativeModel.generate_content_async` through
       the Retry Executor, records a usage entry for every call, and converts
       any failure into a classified GenerationError.
Who:   Built once in the FastAPI lifespan and stored on `app.state`; handed
       to routes through the `get_generation_client` dependency.
When:  Every summary, tag, preview or ad-hoc generation request.

Call flow:
    1. Reject an empty prompt (ValidationError, no network, no usage entry)
    2. If the prompt leaves no room for output, truncate it once and recurse
    3. Call Gemini via RetryExecutor (timeouts, 5xx and 429 retried)
    4. Record UsageLogEntry (success or failure, latency, token estimates)
    5. Return the text, or raise GenerationError(kind, user-facing message)

Resilience:
    The transport timeout (`request_options={"timeout": ...}`) bounds each
    attempt; the Retry Executor is the only source of delay.
"""

import logging
import time
import uuid
from typing import Any, Dict, List, Optional

import google.generativeai as genai
from fastapi import Request

from notewise.config import GenerationConfig
from notewise.exceptions import GenerationError, GenerationErrorKind, ValidationError
from notewise.services.error_classifier import EMPTY_RESPONSE, USER_MESSAGES, to_generation_error
from notewise.services.llm_base import (
    DEFAULT_TEMPERATURE,
    DEFAULT_TOP_K,
    DEFAULT_TOP_P,
    GenerationOptions,
    LLMService,
)
from notewise.services.retry import RetryExecutor
from notewise.services.tokens import estimate_tokens, truncate_text, validate_token_budget
from notewise.services.usage import UsageLogEntry, UsageRecorder, UsageStats

logger = logging.getLogger(__name__)

# Tokens kept free for the response when an oversized prompt is truncated
TRUNCATION_HEADROOM = 1000

HEALTH_CHECK_PROMPT = "Hello"


class GeminiService(LLMService):
    """
    Google Gemini text generation with retries and usage accounting.

    One instance per application. It owns its usage log, so statistics are
    per-process and reset on restart.
    """

    def __init__(
        self,
        config: GenerationConfig,
        retry_executor: Optional[RetryExecutor] = None,
        usage: Optional[UsageRecorder] = None,
    ):
        self.config = config
        self.retry = retry_executor or RetryExecutor()
        self.usage = usage or UsageRecorder()
        self._configure_sdk()

        logger.info(
            "GeminiService initialized with model=%s, max_tokens=%d, timeout=%dms",
            config.model,
            config.max_tokens,
            config.timeout_ms,
        )
        if config.debug:
            logger.info("Generation config: %s", config.masked())

    def _configure_sdk(self) -> None:
        # The SDK keeps the API key in module-level state
        genai.configure(api_key=self.config.api_key)
        self.model = genai.GenerativeModel(self.config.model)

    @property
    def model_name(self) -> str:
        return self.config.model

    # ── Generation ────────────────────────────────────────────────────────

    def _resolve_options(self, options: Optional[GenerationOptions]) -> Dict[str, Any]:
        options = options or GenerationOptions()

        def pick(value, default):
            return default if value is None else value

        return {
            "max_output_tokens": pick(options.max_tokens, self.config.max_tokens),
            "temperature": pick(options.temperature, DEFAULT_TEMPERATURE),
            "top_p": pick(options.top_p, DEFAULT_TOP_P),
            "top_k": pick(options.top_k, DEFAULT_TOP_K),
        }

    async def generate_text(
        self,
        prompt: str,
        options: Optional[GenerationOptions] = None,
        _truncated: bool = False,
    ) -> str:
        """
        Generate text for `prompt`.

        Args:
            prompt:     Non-empty prompt text.
            options:    Per-call overrides; see GenerationOptions.
            _truncated: Internal. Set on the single recursive call after
                        truncation so an oversized prompt is cut at most once.

        Raises:
            ValidationError: empty or whitespace-only prompt.
            GenerationError: classified provider failure after retries.
        """
        if not prompt or not prompt.strip():
            raise ValidationError("Prompt must not be empty.", field="prompt")

        input_tokens = estimate_tokens(prompt)
        if not _truncated and not validate_token_budget(input_tokens, self.config.max_tokens):
            logger.warning(
                "Prompt of ~%d tokens exceeds the budget for max_tokens=%d; truncating",
                input_tokens,
                self.config.max_tokens,
            )
            shortened = truncate_text(prompt, self.config.max_tokens - TRUNCATION_HEADROOM)
            return await self.generate_text(shortened, options, _truncated=True)

        generation_config = self._resolve_options(options)
        call_id = str(uuid.uuid4())[:8]
        start_time = time.perf_counter()

        try:
            text = await self.retry.execute(
                lambda: self._call_model(prompt, generation_config, call_id)
            )
        except Exception as e:
            latency_ms = (time.perf_counter() - start_time) * 1000
            error = to_generation_error(e)
            self._record(input_tokens, 0, latency_ms, success=False, error=error.kind.value)
            logger.error(
                "[%s] Gemini generation failed after %.0fms (%s): %s",
                call_id,
                latency_ms,
                error.kind.value,
                str(e),
            )
            if error is e:
                raise
            raise error from e

        latency_ms = (time.perf_counter() - start_time) * 1000
        self._record(input_tokens, estimate_tokens(text), latency_ms, success=True)
        return text

    async def _call_model(
        self, prompt: str, generation_config: Dict[str, Any], call_id: str
    ) -> str:
        """One attempt against the Gemini API. Retries happen around this."""
        start_time = time.perf_counter()
        try:
            response = await self.model.generate_content_async(
                prompt,
                generation_config=generation_config,
                request_options={"timeout": self.config.timeout_ms / 1000},
            )
            text = response.text
        except Exception as e:
            logger.warning(
                "[%s] Gemini API call failed after %.0fms: %s",
                call_id,
                (time.perf_counter() - start_time) * 1000,
                str(e),
            )
            raise

        if not text or not text.strip():
            raise GenerationError(
                kind=GenerationErrorKind.UNKNOWN,
                message=USER_MESSAGES[GenerationErrorKind.UNKNOWN],
                context={"reason": EMPTY_RESPONSE},
            )
        return text

    def _record(
        self,
        input_tokens: int,
        output_tokens: int,
        latency_ms: float,
        success: bool,
        error: Optional[str] = None,
    ) -> None:
        entry = UsageLogEntry(
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            latency_ms=round(latency_ms, 2),
            success=success,
            model=self.config.model,
            error=error,
        )
        self.usage.record(entry)
        logger.log(
            logging.INFO if self.config.debug else logging.DEBUG,
            "Gemini usage: model=%s success=%s input_tokens=%d output_tokens=%d latency=%.0fms",
            entry.model,
            entry.success,
            entry.input_tokens,
            entry.output_tokens,
            entry.latency_ms,
        )

    # ── Health & Administration ───────────────────────────────────────────

    async def health_check(self) -> bool:
        """
        Minimal generation round trip ("Hello", 10 output tokens).

        Consumes a few tokens of quota, which is the price of checking the key,
        the model name and connectivity together.
        """
        try:
            await self.generate_text(HEALTH_CHECK_PROMPT, GenerationOptions(max_tokens=10))
            return True
        except Exception as e:
            logger.warning("Gemini health check failed: %s", str(e))
            return False

    def get_usage_stats(self) -> UsageStats:
        return self.usage.stats()

    def recent_usage(self, n: int = 100) -> List[UsageLogEntry]:
        return self.usage.recent(n)

    def clear_usage_logs(self) -> None:
        self.usage.clear()
        logger.info("Gemini usage log cleared")

    def update_config(self, **changes: Any) -> GenerationConfig:
        """
        Merge `changes` into the current config without re-validating.

        Model or key changes rebuild the SDK model object. Returns the new config.
        """
        self.config = self.config.model_copy(update=changes)
        if "model" in changes or "api_key" in changes:
            self._configure_sdk()
        logger.info("Generation config updated: %s", sorted(changes))
        return self.config


# ── FastAPI Dependency ────────────────────────────────────────────────────

def get_generation_client(request: Request) -> LLMService:
    """The client built in the lifespan. Tests override this dependency."""
    return request.app.state.generation_client
