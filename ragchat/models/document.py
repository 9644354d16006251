from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
import uuid

class TextChunk(BaseModel):
    text: str
    start_index: int
    end_index: int

class ExtractedText(BaseModel):
    text: str
    metadata: Dict[str, Any] = {}

class DocumentEmbedding(BaseModel):
    """One indexed chunk of a document, as stored in the vector store."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Unique ID for the chunk.")
    document_id: str
    knowledge_base_id: Optional[str] = None
    chunk_index: int
    content: str
    embedding: List[float]
    document_title: Optional[str] = None
    user_id: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

class RetrievedDocument(BaseModel):
    """A search hit; lives only for the duration of one retrieval call."""
    document_id: str
    document_title: str
    content: str
    similarity: float
    chunk_index: int

class IndexingResult(BaseModel):
    success: bool
    chunks_indexed: int = 0
    message: Optional[str] = None
    error: Optional[str] = None

class UploadResult(BaseModel):
    success: bool = True
    document_id: str
    title: str
    chunks_indexed: int = 0
    message: str
    warning: Optional[str] = None
    error: Optional[str] = None

class AttachmentUploadResult(BaseModel):
    file_id: str
    file_name: str
    content_type: str
    size: int
    text_length: int
    estimated_tokens: int
    was_truncated: bool
    success: bool = True
