"""Unit tests for token estimation and truncation."""

from ragchat.utils.token_counter import (
    estimate_token_count,
    format_token_count,
    is_within_context_window,
    truncate_text_by_tokens,
)


def test_estimate_token_count() -> None:
    assert estimate_token_count("") == 0
    assert estimate_token_count("abcd") == 1
    assert estimate_token_count("abcde") == 2
    # Two CJK characters at 1.5 characters per token
    assert estimate_token_count("中文") == 2


def test_short_text_is_not_truncated() -> None:
    result = truncate_text_by_tokens("short text", max_tokens=100)

    assert result.truncated is False
    assert result.text == "short text"
    assert result.original_tokens == result.final_tokens


def test_truncation_backs_off_to_sentence_end() -> None:
    text = "Sentence one. " * 100

    result = truncate_text_by_tokens(text, max_tokens=50)

    assert result.truncated is True
    body, _, suffix = result.text.partition("\n\n[...")
    assert body.endswith(".")
    assert "tokens not shown" in suffix
    assert result.original_tokens == 350
    assert result.final_tokens < result.original_tokens


def test_truncation_without_suffix() -> None:
    text = "x" * 1000

    result = truncate_text_by_tokens(text, max_tokens=50, add_suffix=False)

    assert result.truncated is True
    assert result.text == "x" * 200
    assert result.final_tokens == 50


def test_format_token_count() -> None:
    assert format_token_count(999) == "999 tokens"
    assert format_token_count(1500) == "1.5k tokens"
    assert format_token_count(25000) == "25k tokens"


def test_context_window_uses_most_specific_model() -> None:
    assert is_within_context_window("hello", "gpt-4o-mini").max_tokens == 102400
    assert is_within_context_window("hello", "gpt-4").max_tokens == 6553
    assert is_within_context_window("hello", "unknown-model").max_tokens == 102400


def test_context_window_limit_exceeded() -> None:
    check = is_within_context_window("x" * 30000, "gpt-4")

    assert check.within_limit is False
    assert check.tokens == 7500
