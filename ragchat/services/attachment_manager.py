from typing import List, Optional
import logging
import uuid

from ragchat.core.config import settings
from ragchat.core.exceptions import EmptyDocumentError, FileCacheError, FileTooLargeError, UnsupportedFileTypeError
from ragchat.models.chat import ChatMessage, index_of_message, insert_context
from ragchat.models.document import AttachmentUploadResult
from ragchat.services import file_cache
from ragchat.utils.file_extraction import extract_text_from_file
from ragchat.utils.token_counter import estimate_token_count, truncate_text_by_tokens

logger = logging.getLogger(__name__)

ATTACHMENT_MIME_TYPES = ("application/pdf", "text/plain", "text/markdown")


async def upload_attachment(file_bytes: bytes, filename: str, mime_type: str) -> AttachmentUploadResult:
    """
    Extract text from a chat attachment and park it in the cache until the
    next chat turn picks it up.

    Size and type are checked before any I/O. A cache failure is logged and
    the upload still succeeds; the chat turn will then report the content as
    unavailable.
    """
    if len(file_bytes) > settings.MAX_ATTACHMENT_SIZE:
        raise FileTooLargeError(f"File size must not exceed {settings.MAX_ATTACHMENT_SIZE // 1024}KB")
    if mime_type not in ATTACHMENT_MIME_TYPES:
        raise UnsupportedFileTypeError("Only PDF, TXT and MD files are supported")

    logger.info(f"Processing attachment upload: {filename} ({len(file_bytes)} bytes)")
    extracted = await extract_text_from_file(file_bytes, filename, mime_type)
    if not extracted.text or not extracted.text.strip():
        raise EmptyDocumentError("Could not extract text content from the file")

    original_tokens = estimate_token_count(extracted.text)
    truncation = truncate_text_by_tokens(extracted.text, settings.MAX_ATTACHMENT_TOKENS)
    if truncation.truncated:
        logger.info(f"Text truncated: {original_tokens} -> {truncation.final_tokens} tokens")

    file_id = str(uuid.uuid4())
    try:
        await file_cache.set_file_content(file_id, truncation.text, settings.FILE_CONTENT_TTL)
    except FileCacheError as e:
        logger.warning(f"Failed to cache attachment {file_id}, continuing without cache: {e}")

    return AttachmentUploadResult(
        file_id=file_id,
        file_name=filename,
        content_type=mime_type,
        size=len(file_bytes),
        text_length=len(truncation.text),
        estimated_tokens=truncation.final_tokens,
        was_truncated=truncation.truncated,
    )


async def inject_attachments(
    message: Optional[ChatMessage],
    ui_messages: List[ChatMessage],
    is_tool_approval_flow: bool = False,
) -> List[ChatMessage]:
    """
    Resolve cached attachment text for the current user message.

    Each document attachment becomes a user message placed right before the
    current message; an expired attachment adds a notice at the end instead.
    Returns a new list, ``ui_messages`` is left untouched.
    """
    updated = list(ui_messages)
    if message is None or message.role != "user" or is_tool_approval_flow:
        return updated

    file_parts = [
        part for part in message.parts
        if part.type == "file" and part.file_id and part.media_type in ATTACHMENT_MIME_TYPES
    ]
    if not file_parts:
        return updated

    logger.info(f"Processing {len(file_parts)} file attachment(s)")
    for part in file_parts:
        file_name = part.name or part.file_id
        try:
            content = await file_cache.get_file_content(part.file_id)
        except Exception as e:
            logger.error(f"Error retrieving file content for {part.file_id}: {e}", exc_info=True)
            continue

        if content:
            attachment_message = ChatMessage.from_text(
                "user", f"[Attachment: {file_name}]\n\n{content}\n\n[End of attachment]", synthetic=True
            )
            updated = insert_context(updated, index_of_message(updated, message), attachment_message)
            logger.info(f"Added {len(content)} characters of {file_name} to the message context")
        else:
            logger.info(f"File content not found in cache for fileId: {part.file_id}")
            updated.append(
                ChatMessage.from_text(
                    "user",
                    f'[Notice: the content of file "{file_name}" has expired or is unavailable, please upload it again]',
                    synthetic=True,
                )
            )
    return updated
