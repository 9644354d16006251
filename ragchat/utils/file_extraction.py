from pathlib import Path
from typing import Any, Dict, Tuple
import asyncio
import logging
import os
import tempfile

import pdfplumber

from ragchat.core.exceptions import UnsupportedFileTypeError
from ragchat.models.document import ExtractedText

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"
TEXT_MIME_TYPES = ("text/plain", "text/markdown")
TEXT_EXTENSIONS = (".txt", ".md")


def is_pdf(file_name: str, mime_type: str) -> bool:
    return mime_type == PDF_MIME_TYPE or file_name.lower().endswith(".pdf")


def is_text(file_name: str, mime_type: str) -> bool:
    return mime_type in TEXT_MIME_TYPES or file_name.lower().endswith(TEXT_EXTENSIONS)


def _load_pdf(path: str) -> Tuple[str, Dict[str, Any]]:
    with pdfplumber.open(path) as pdf:
        pages = [page.extract_text() or "" for page in pdf.pages]
        metadata: Dict[str, Any] = {"page_count": len(pages)}
        metadata.update({key: value for key, value in (pdf.metadata or {}).items() if isinstance(value, (str, int, float))})
    return "\n".join(pages), metadata


def _load_text(path: str) -> Tuple[str, Dict[str, Any]]:
    with open(path, "r", encoding="utf-8", errors="replace") as handle:
        lines = [line.rstrip("\r\n") for line in handle]
    return "\n".join(lines), {"line_count": len(lines)}


def _extract_sync(file_bytes: bytes, file_name: str, mime_type: str) -> ExtractedText:
    if is_pdf(file_name, mime_type):
        loader = _load_pdf
    elif is_text(file_name, mime_type):
        loader = _load_text
    else:
        raise UnsupportedFileTypeError(f"Unsupported file type: {mime_type}")

    # Parsers read from disk, so the upload lives in a temp file for the duration of the call
    fd, temp_path = tempfile.mkstemp(prefix="upload-", suffix=Path(file_name).suffix)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(file_bytes)
        text, metadata = loader(temp_path)
        logger.info(f"Extracted {len(text)} characters from {file_name} ({mime_type})")
        return ExtractedText(text=text, metadata=metadata)
    finally:
        try:
            os.unlink(temp_path)
        except OSError as e:
            logger.warning(f"Could not remove temporary file {temp_path}: {e}")


async def extract_text_from_file(file_bytes: bytes, file_name: str, mime_type: str) -> ExtractedText:
    """
    Extract raw text from an uploaded PDF, TXT or Markdown file.

    Args:
        file_bytes: Uploaded file content
        file_name: Original file name, used as a fallback type hint
        mime_type: Declared MIME type

    Returns:
        ExtractedText with the text and loader metadata

    Raises:
        UnsupportedFileTypeError: If neither MIME type nor extension is PDF/TXT/MD
    """
    return await asyncio.to_thread(_extract_sync, file_bytes, file_name, mime_type)
