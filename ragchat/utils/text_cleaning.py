from typing import Optional
import re

_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_ZERO_WIDTH_RE = re.compile(r"[\u200b-\u200d\ufeff]")
_DECORATIVE_RE = re.compile(r"[※★☆◆◇○●△▲▽▼■□]")
_DOUBLE_QUOTES_RE = re.compile(r"[“”]")
_SINGLE_QUOTES_RE = re.compile(r"[‘’]")
_DOTS_RE = re.compile(r"\.{4,}")
_DASHES_RE = re.compile(r"-{3,}")
_UNDERSCORES_RE = re.compile(r"_{3,}")
_HORIZONTAL_WS_RE = re.compile(r"[ \t]+")
_NEWLINE_RUN_RE = re.compile(r"\n{3,}")
_BLANK_LINES_RE = re.compile(r"\n\s*\n\s*\n")
_QUERY_EMPHASIS_RE = re.compile(r"[?!]{3,}")


def clean_text_for_embedding(text: Optional[str]) -> str:
    """
    Strip characters that carry no meaning for semantic search.

    Removes control and zero-width characters and decorative glyphs, normalizes
    smart quotes and runs of dots/dashes/underscores, collapses horizontal
    whitespace and blank lines, and trims every line. Symbols are removed before
    whitespace is collapsed so that running the cleaner twice changes nothing.
    """
    if not text:
        return ""

    cleaned = _CONTROL_CHARS_RE.sub("", text)
    cleaned = _ZERO_WIDTH_RE.sub("", cleaned)
    cleaned = _DECORATIVE_RE.sub("", cleaned)

    cleaned = _DOUBLE_QUOTES_RE.sub('"', cleaned)
    cleaned = _SINGLE_QUOTES_RE.sub("'", cleaned)

    cleaned = _DOTS_RE.sub("...", cleaned)
    cleaned = _DASHES_RE.sub("--", cleaned)
    cleaned = _UNDERSCORES_RE.sub("__", cleaned)

    cleaned = _HORIZONTAL_WS_RE.sub(" ", cleaned)
    cleaned = _NEWLINE_RUN_RE.sub("\n\n", cleaned)

    cleaned = "\n".join(line.strip() for line in cleaned.split("\n"))
    cleaned = _BLANK_LINES_RE.sub("\n\n", cleaned)

    return cleaned.strip()


def clean_query_text(text: Optional[str]) -> str:
    """Embedding cleanup plus collapsing ``???``/``!!!`` style emphasis to two characters."""
    if not text:
        return ""

    cleaned = clean_text_for_embedding(text)
    return _QUERY_EMPHASIS_RE.sub(lambda match: match.group(0)[:2], cleaned)
