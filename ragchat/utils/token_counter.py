from typing import Dict, NamedTuple
import math
import re

_CJK_RE = re.compile(r"[\u4e00-\u9fa5]")

# Checked in order; more specific ids come first so "gpt-4o" does not match "gpt-4"
CONTEXT_WINDOW_LIMITS: Dict[str, int] = {
    "gpt-4o": 128000,
    "gpt-4-turbo": 128000,
    "gpt-4-32k": 32768,
    "gpt-4": 8192,
    "gpt-3.5-turbo": 16384,
    "claude-3-opus": 200000,
    "claude-3-sonnet": 200000,
    "claude-3-haiku": 200000,
    "claude-3.5-sonnet": 200000,
}
DEFAULT_CONTEXT_WINDOW = 128000

_SENTENCE_ENDINGS = ["。", "！", "？", ".", "!", "?", "\n\n", "\n"]


class TruncationResult(NamedTuple):
    text: str
    truncated: bool
    original_tokens: int
    final_tokens: int


class ContextWindowCheck(NamedTuple):
    within_limit: bool
    tokens: int
    max_tokens: int


def estimate_token_count(text: str) -> int:
    """
    Rough token estimate: CJK ideographs at 1.5 characters per token,
    everything else at 4 characters per token.
    """
    if not text:
        return 0
    cjk_chars = len(_CJK_RE.findall(text))
    other_chars = len(text) - cjk_chars
    return math.ceil(cjk_chars / 1.5 + other_chars / 4)


def truncate_text_by_tokens(text: str, max_tokens: int = 25000, add_suffix: bool = True) -> TruncationResult:
    """
    Cut text down to roughly ``max_tokens`` tokens.

    The cut is moved back to the last sentence boundary when that boundary lies
    in the final 10% of the kept text, so the attachment does not end mid-sentence.

    Args:
        text: Full extracted text
        max_tokens: Token budget for the kept text
        add_suffix: Append a notice saying how much was dropped

    Returns:
        TruncationResult with the kept text and before/after token counts
    """
    original_tokens = estimate_token_count(text)
    if original_tokens <= max_tokens:
        return TruncationResult(text, False, original_tokens, original_tokens)

    avg_chars_per_token = len(text) / original_tokens
    max_chars = math.floor(max_tokens * avg_chars_per_token)
    truncated_text = text[:max_chars]

    for ending in _SENTENCE_ENDINGS:
        last_index = truncated_text.rfind(ending)
        if last_index > max_chars * 0.9:
            truncated_text = truncated_text[:last_index + len(ending)]
            break

    if add_suffix:
        remaining_tokens = original_tokens - estimate_token_count(truncated_text)
        truncated_text += (
            f"\n\n[... Content truncated because it is too long. "
            f"About {math.ceil(remaining_tokens / 1000)}k tokens not shown ...]"
        )

    return TruncationResult(truncated_text, True, original_tokens, estimate_token_count(truncated_text))


def format_token_count(tokens: int) -> str:
    if tokens < 1000:
        return f"{tokens} tokens"
    if tokens < 10000:
        return f"{tokens / 1000:.1f}k tokens"
    return f"{round(tokens / 1000)}k tokens"


def is_within_context_window(text: str, model_id: str) -> ContextWindowCheck:
    """Compare the estimated size of ``text`` with 80% of the model's context window."""
    tokens = estimate_token_count(text)
    max_tokens = DEFAULT_CONTEXT_WINDOW
    for key, limit in CONTEXT_WINDOW_LIMITS.items():
        if key in model_id:
            max_tokens = limit
            break
    effective_limit = max_tokens * 0.8
    return ContextWindowCheck(tokens <= effective_limit, tokens, math.floor(effective_limit))
