from fastapi import APIRouter, UploadFile, File, Depends, HTTPException, status
import logging

from ragchat.api.dependencies import get_current_user_id
from ragchat.core.exceptions import DocumentValidationError
from ragchat.models.document import AttachmentUploadResult
from ragchat.services.attachment_manager import upload_attachment

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/upload", response_model=AttachmentUploadResult)
async def upload_chat_attachment(
    file: UploadFile = File(...),
    user_id: str = Depends(get_current_user_id)
):
    """
    Extracts text from a chat attachment and caches it for the next chat turn.
    The returned file_id goes into the message's file part.
    """
    file_content = await file.read()
    try:
        return await upload_attachment(file_content, file.filename or "untitled", file.content_type or "")
    except DocumentValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to process attachment for user {user_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to process file")
