from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ragchat.api.dependencies import get_current_user_id
from ragchat.schemas import ChatContextRequest, ChatContextResponse
from ragchat.services.attachment_manager import inject_attachments
from ragchat.services.llm_service import llm_service
from ragchat.services.rag_manager import rag_manager

router = APIRouter()

class TitleRequest(BaseModel):
    message: str = Field(..., min_length=1, description="First user message of the chat")

class TitleResponse(BaseModel):
    title: str

@router.post("/context", response_model=ChatContextResponse)
async def build_chat_context(
    request: ChatContextRequest,
    user_id: str = Depends(get_current_user_id)
):
    """
    Prepares the message list for generation: cached attachments are resolved
    first, then knowledge-base context is retrieved and spliced in before the
    user message. Retrieval failures never fail the request.
    """
    ui_messages = list(request.messages)
    if request.message is not None and all(m.id != request.message.id for m in ui_messages):
        ui_messages.append(request.message)

    with_attachments = await inject_attachments(
        request.message, ui_messages, is_tool_approval_flow=request.is_tool_approval_flow
    )
    outcome = await rag_manager.retrieve_relevant_context(
        message=request.message,
        ui_messages=with_attachments,
        user_id=user_id,
        is_tool_approval_flow=request.is_tool_approval_flow,
    )
    return ChatContextResponse(
        messages=outcome.updated_messages,
        retrieved_documents=outcome.retrieved_documents,
        retrieval_state=outcome.state.value,
    )

@router.post("/title", response_model=TitleResponse)
async def generate_chat_title(
    request: TitleRequest,
    user_id: str = Depends(get_current_user_id)
):
    return TitleResponse(title=await llm_service.generate_title(request.message))
