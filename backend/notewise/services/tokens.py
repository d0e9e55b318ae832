"""
Notewise Backend — Token Estimation
=====================================

What:  Local heuristics for how many model tokens a text will consume.
How:   Blends a word-based estimate (1.3 tokens per word) with a
       character-based one (1 token per 4 characters) and rounds the average
       up. For text without reliable word boundaries (CJK, long URLs) the
       word count collapses and the character figure dominates.
Who:   The Generation Client (input budget, truncation, usage accounting) and
       both orchestrators (the 8000-token product cap on note content).

These are estimates, not the provider's tokenizer; every limit that uses them
keeps a margin.
"""

import math

TOKENS_PER_WORD = 1.3
CHARS_PER_TOKEN = 4

# Reserved for the model's own output when checking an input budget
MAX_RESERVED_TOKENS = 2000
RESERVED_FRACTION = 0.2

# Truncation keeps 10% less than the proportional cut
TRUNCATION_SAFETY = 0.9
TRUNCATION_SUFFIX = "..."

# Approximate Gemini Flash pricing, USD per 1K tokens
INPUT_PRICE_PER_1K = 0.000075
OUTPUT_PRICE_PER_1K = 0.0003


def estimate_tokens(text: str) -> int:
    """
    Approximate token count of `text`. Never raises; empty input → 0.

    >>> estimate_tokens("")
    0
    >>> estimate_tokens("hello world")   # words=2 → 2.6, chars=11 → 2.75
    3
    """
    if not text:
        return 0
    words = len(text.split())
    word_based = words * TOKENS_PER_WORD
    char_based = len(text) / CHARS_PER_TOKEN
    return math.ceil((word_based + char_based) / 2)


def validate_token_budget(input_tokens: int, max_tokens: int = 8192) -> bool:
    """
    Whether `input_tokens` leaves room for output within `max_tokens`.

    Reserves min(2000, 20% of max_tokens) for the response.
    """
    reserved = min(MAX_RESERVED_TOKENS, max_tokens * RESERVED_FRACTION)
    return input_tokens <= max_tokens - reserved


def truncate_text(text: str, max_tokens: int) -> str:
    """
    Cut `text` down to roughly `max_tokens`, proportionally to the overage.

    Unchanged if it already fits. Otherwise keeps
    floor(len(text) * max_tokens / estimate * 0.9) characters and appends "...".
    """
    estimated = estimate_tokens(text)
    if estimated <= max_tokens:
        return text

    ratio = max(max_tokens, 0) / estimated
    target_length = math.floor(len(text) * ratio * TRUNCATION_SAFETY)
    return text[:target_length] + TRUNCATION_SUFFIX


def estimate_cost(input_tokens: int, output_tokens: int) -> float:
    """Rough USD cost of a call, for usage reporting only."""
    return (input_tokens / 1000) * INPUT_PRICE_PER_1K + (
        output_tokens / 1000
    ) * OUTPUT_PRICE_PER_1K
