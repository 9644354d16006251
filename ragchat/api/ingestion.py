from fastapi import APIRouter, UploadFile, File, Form, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
import logging

from ragchat.api.dependencies import get_current_user_id
from ragchat.core.exceptions import DocumentAccessDeniedError, DocumentNotFoundError, DocumentValidationError
from ragchat.database.connection import get_db
from ragchat.models.document import IndexingResult, UploadResult
from ragchat.schemas import IndexRequest, SearchRequest, SearchResponse
from ragchat.services.document_processor import document_processor
from ragchat.services.rag_manager import rag_manager
from ragchat.services.relational_db_manager import RelationalDBManager

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/upload", response_model=UploadResult, status_code=status.HTTP_201_CREATED)
async def upload_document(
    file: UploadFile = File(...),
    knowledge_base_id: Optional[str] = Form(None),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """
    Uploads .pdf, .txt or .md files, stores the extracted text and indexes it
    for retrieval. An indexing failure still returns 201 with a warning.
    """
    file_content = await file.read()
    try:
        return await document_processor.upload_document(
            db_manager=RelationalDBManager(db),
            file_bytes=file_content,
            filename=file.filename or "untitled",
            mime_type=file.content_type or "",
            user_id=user_id,
            knowledge_base_id=knowledge_base_id,
        )
    except DocumentValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"An unexpected error occurred during upload: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to process upload")

@router.post("/{document_id}/index", response_model=IndexingResult)
async def index_document(
    document_id: str,
    request: Optional[IndexRequest] = None,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Re-index a stored document owned by the caller."""
    try:
        result = await document_processor.index_existing_document(
            db_manager=RelationalDBManager(db),
            document_id=document_id,
            user_id=user_id,
            knowledge_base_id=request.knowledge_base_id if request else None,
        )
    except DocumentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except DocumentAccessDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))

    if not result.success:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=result.error)
    return result

@router.post("/search", response_model=SearchResponse)
async def search_documents(
    request: SearchRequest,
    user_id: str = Depends(get_current_user_id)
):
    """Search the caller's knowledge base for chunks relevant to a query."""
    return await rag_manager.search_documents(
        query=request.query,
        user_id=user_id,
        limit=request.limit,
        knowledge_base_id=request.knowledge_base_id,
    )
