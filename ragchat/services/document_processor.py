from typing import List, Optional, Tuple
from pathlib import PurePath
import logging
import uuid

from ragchat.core.config import settings
from ragchat.core.exceptions import (
    DocumentAccessDeniedError,
    DocumentNotFoundError,
    EmptyDocumentError,
    FileTooLargeError,
    UnsupportedFileTypeError,
)
from ragchat.models.document import DocumentEmbedding, IndexingResult, UploadResult
from ragchat.services.embedding_service import EmbeddingService, embedding_service
from ragchat.services.relational_db_manager import RelationalDBManager
from ragchat.services.vector_db_manager import VectorDBManager, qdrant_manager
from ragchat.utils.file_extraction import extract_text_from_file, is_pdf, is_text
from ragchat.utils.text_cleaning import clean_text_for_embedding
from ragchat.utils.text_splitters import chunk_text

logging.basicConfig(level=settings.LOG_LEVEL) # Set logging level for better visibility
logger = logging.getLogger(__name__)

NOTHING_TO_INDEX = "too_short"
EMPTY_AFTER_CLEANING = "empty_after_cleaning"

def document_title_from_filename(filename: str) -> str:
    """File name without its extension."""
    name = PurePath(filename).name
    stem = name.rsplit(".", 1)[0] if "." in name.lstrip(".") else name
    return stem or name

def validate_upload(file_bytes: bytes, filename: str, mime_type: str, max_size: int = settings.MAX_UPLOAD_SIZE) -> None:
    """Reject oversized or unsupported files before anything is written anywhere."""
    if len(file_bytes) > max_size:
        raise FileTooLargeError(f"File size should be less than {max_size // (1024 * 1024) or 1}MB")
    if not (is_pdf(filename, mime_type) or is_text(filename, mime_type)):
        raise UnsupportedFileTypeError("File type should be PDF, TXT, or MD")

def prepare_chunks(text: str, chunk_size: int, overlap: int) -> Tuple[List[str], Optional[str]]:
    """
    Chunk, deduplicate and clean document text for embedding.

    Returns:
        (cleaned chunk texts in order, None) or ([], reason) when nothing is left to index
    """
    chunks = chunk_text(text, max_chunk_size=chunk_size, overlap=overlap)

    # Remove duplicate chunks (same trimmed text), keeping the first occurrence
    seen = set()
    unique_texts = []
    for chunk in chunks:
        key = chunk.text.strip()
        if key in seen:
            continue
        seen.add(key)
        unique_texts.append(chunk.text)
    logger.info(f"Document split into {len(chunks)} chunks, {len(unique_texts)} unique chunks after deduplication")

    if not unique_texts:
        return [], NOTHING_TO_INDEX

    cleaned = [clean_text_for_embedding(t) for t in unique_texts]
    cleaned = [t for t in cleaned if t]
    if not cleaned:
        return [], EMPTY_AFTER_CLEANING
    return cleaned, None

class DocumentProcessor:
    """Upload and (re-)indexing pipeline: extract, persist, chunk, clean, embed, store."""

    def __init__(
        self,
        embedding_service: EmbeddingService,
        vector_db_manager: VectorDBManager,
    ):
        self.embedding_service = embedding_service
        self.vector_db_manager = vector_db_manager

    async def index_text(
        self,
        document_id: str,
        title: str,
        user_id: str,
        text: str,
        chunk_size: int,
        overlap: int,
        knowledge_base_id: Optional[str] = None,
    ) -> Tuple[int, Optional[str]]:
        """
        Replace all embeddings of a document with freshly computed ones.

        Old rows are deleted first, so a re-index never leaves stale or
        duplicate chunks behind even when the chunk count changes.

        Returns:
            (number of chunks stored, reason when zero)

        Raises:
            Embedding or vector store errors; the caller decides how to report them.
        """
        await self.vector_db_manager.delete_document_embeddings(document_id)

        texts, reason = prepare_chunks(text, chunk_size, overlap)
        if not texts:
            return 0, reason

        logger.info(f"Generating embeddings for {len(texts)} chunks...")
        vectors = await self.embedding_service.embed_batch(texts)

        rows = [
            DocumentEmbedding(
                document_id=document_id,
                knowledge_base_id=knowledge_base_id,
                chunk_index=index,
                content=chunk,
                embedding=vector,
                document_title=title,
                user_id=user_id,
            )
            for index, (chunk, vector) in enumerate(zip(texts, vectors))
        ]
        await self.vector_db_manager.save_document_embeddings(rows)
        logger.info(f"Successfully indexed document: {document_id} ({len(rows)} chunks)")
        return len(rows), None

    async def upload_document(
        self,
        db_manager: RelationalDBManager,
        file_bytes: bytes,
        filename: str,
        mime_type: str,
        user_id: str,
        knowledge_base_id: Optional[str] = None,
    ) -> UploadResult:
        """
        Extract, persist and index an uploaded file.

        Validation and extraction errors are raised before anything is saved.
        Once the Document row exists, an indexing failure is reported as a
        success with a warning: the document stays usable, just not searchable.
        """
        validate_upload(file_bytes, filename, mime_type)

        extracted = await extract_text_from_file(file_bytes, filename, mime_type)
        text = extracted.text
        if not text or not text.strip():
            raise EmptyDocumentError("File content is empty or could not be extracted")

        document_id = str(uuid.uuid4())
        title = document_title_from_filename(filename)
        await db_manager.save_document(id=document_id, title=title, content=text, user_id=user_id)

        try:
            logger.info(f"Starting indexing for document: {document_id}, text length: {len(text)}")
            count, reason = await self.index_text(
                document_id=document_id,
                title=title,
                user_id=user_id,
                text=text,
                chunk_size=settings.UPLOAD_CHUNK_SIZE,
                overlap=settings.UPLOAD_CHUNK_OVERLAP,
                knowledge_base_id=knowledge_base_id,
            )
        except Exception as e:
            logger.error(f"Failed to index document {document_id}: {e}", exc_info=True)
            return UploadResult(
                document_id=document_id,
                title=title,
                chunks_indexed=0,
                message="Document uploaded but indexing failed",
                warning="Document was saved but could not be indexed for search",
                error=str(e),
            )

        if reason == NOTHING_TO_INDEX:
            message = "Document uploaded but content is too short to index"
        elif reason == EMPTY_AFTER_CLEANING:
            message = "Document uploaded but content is empty after cleaning"
        else:
            message = f'Successfully uploaded and indexed {count} chunks from "{title}"'
        return UploadResult(document_id=document_id, title=title, chunks_indexed=count, message=message)

    async def index_existing_document(
        self,
        db_manager: RelationalDBManager,
        document_id: str,
        user_id: str,
        knowledge_base_id: Optional[str] = None,
    ) -> IndexingResult:
        """
        Re-index a stored document with the larger indexing chunk size.

        Raises:
            DocumentNotFoundError: If the document does not exist or has no content
            DocumentAccessDeniedError: If the document belongs to another user
        """
        document = await db_manager.get_document_by_id(document_id)
        if document is None or not document.content:
            raise DocumentNotFoundError("Document not found or has no content")
        if document.user_id != user_id:
            raise DocumentAccessDeniedError("You don't have permission to index this document")

        try:
            count, reason = await self.index_text(
                document_id=document.id,
                title=document.title,
                user_id=user_id,
                text=document.content,
                chunk_size=settings.INDEX_CHUNK_SIZE,
                overlap=settings.INDEX_CHUNK_OVERLAP,
                knowledge_base_id=knowledge_base_id,
            )
        except Exception as e:
            logger.error(f"Error indexing document {document_id}: {e}", exc_info=True)
            return IndexingResult(success=False, error="Failed to index document")

        if reason == NOTHING_TO_INDEX:
            return IndexingResult(success=False, error="Document content is too short to index")
        if reason == EMPTY_AFTER_CLEANING:
            return IndexingResult(success=False, error="Document content is empty after cleaning")
        return IndexingResult(
            success=True,
            chunks_indexed=count,
            message=f'Successfully indexed {count} chunks from document "{document.title}"',
        )

# Initialize document processor globally or via dependency injection
document_processor = DocumentProcessor(
    embedding_service=embedding_service,
    vector_db_manager=qdrant_manager,
)
