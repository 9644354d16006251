from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from ragchat.models.chat import ChatMessage
from ragchat.models.document import RetrievedDocument

class SearchRequest(BaseModel):
    query: str = Field(..., description="The search query to find relevant documents")
    limit: int = Field(5, ge=1, le=10, description="Maximum number of results to return")
    knowledge_base_id: Optional[str] = Field(None, description="Optional knowledge base ID to search within")

class SearchResultSchema(BaseModel):
    document_id: str
    document_title: str
    content: str
    similarity: float
    chunk_index: int

class SearchResponse(BaseModel):
    results: List[SearchResultSchema] = []
    count: int = 0
    query: Optional[str] = None
    error: Optional[str] = None

class IndexRequest(BaseModel):
    knowledge_base_id: Optional[str] = Field(None, description="Optional knowledge base ID to organize documents")

class KnowledgeBaseCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None

class KnowledgeBaseSchema(BaseModel):
    id: str
    user_id: str
    name: str
    description: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}

class ChatContextRequest(BaseModel):
    """Either a single new user message (fresh turn) or the full message list (tool-approval replay)."""
    message: Optional[ChatMessage] = None
    messages: List[ChatMessage] = Field(default_factory=list, description="In-memory history, current message excluded")
    is_tool_approval_flow: bool = False

class ChatContextResponse(BaseModel):
    messages: List[ChatMessage]
    retrieved_documents: List[RetrievedDocument] = []
    retrieval_state: str
