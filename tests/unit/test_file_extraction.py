"""Unit tests for upload text extraction."""

import os
import tempfile

import pytest

from ragchat.core.exceptions import UnsupportedFileTypeError
from ragchat.utils import file_extraction
from ragchat.utils.file_extraction import extract_text_from_file


@pytest.fixture
def created_temp_files(monkeypatch):
    """Record every temp file the extractor creates."""
    created = []
    real_mkstemp = tempfile.mkstemp

    def recording_mkstemp(*args, **kwargs):
        fd, path = real_mkstemp(*args, **kwargs)
        created.append(path)
        return fd, path

    monkeypatch.setattr(file_extraction.tempfile, "mkstemp", recording_mkstemp)
    return created


async def test_extracts_plain_text(created_temp_files) -> None:
    result = await extract_text_from_file(b"line one\r\nline two\n", "notes.txt", "text/plain")

    assert result.text == "line one\nline two"
    assert result.metadata == {"line_count": 2}


async def test_markdown_detected_by_extension(created_temp_files) -> None:
    result = await extract_text_from_file(b"# Title\n\nBody", "README.md", "application/octet-stream")

    assert result.text == "# Title\n\nBody"


async def test_pdf_uses_pdf_loader(monkeypatch, created_temp_files) -> None:
    monkeypatch.setattr(file_extraction, "_load_pdf", lambda path: ("pdf text", {"page_count": 1}))

    result = await extract_text_from_file(b"%PDF-1.4", "paper.pdf", "application/pdf")

    assert result.text == "pdf text"
    assert result.metadata["page_count"] == 1


async def test_unsupported_type_is_rejected_before_any_io(monkeypatch) -> None:
    def fail_mkstemp(*args, **kwargs):
        raise AssertionError("no temp file should be written")

    monkeypatch.setattr(file_extraction.tempfile, "mkstemp", fail_mkstemp)

    with pytest.raises(UnsupportedFileTypeError):
        await extract_text_from_file(b"\x89PNG", "image.png", "image/png")


async def test_temp_file_is_removed(created_temp_files) -> None:
    await extract_text_from_file(b"hello", "hello.txt", "text/plain")

    assert len(created_temp_files) == 1
    assert not os.path.exists(created_temp_files[0])


async def test_temp_file_is_removed_when_parsing_fails(monkeypatch, created_temp_files) -> None:
    def broken_loader(path):
        raise RuntimeError("parser crashed")

    monkeypatch.setattr(file_extraction, "_load_text", broken_loader)

    with pytest.raises(RuntimeError, match="parser crashed"):
        await extract_text_from_file(b"hello", "hello.txt", "text/plain")

    assert len(created_temp_files) == 1
    assert not os.path.exists(created_temp_files[0])
