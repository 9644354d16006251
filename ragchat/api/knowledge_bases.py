from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from ragchat.api.dependencies import get_current_user_id
from ragchat.database.connection import get_db
from ragchat.schemas import KnowledgeBaseCreate, KnowledgeBaseSchema
from ragchat.services.relational_db_manager import RelationalDBManager

router = APIRouter()

@router.post("", response_model=KnowledgeBaseSchema, status_code=status.HTTP_201_CREATED)
async def create_knowledge_base(
    request: KnowledgeBaseCreate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    return await RelationalDBManager(db).create_knowledge_base(
        user_id=user_id, name=request.name, description=request.description
    )

@router.get("", response_model=List[KnowledgeBaseSchema])
async def list_knowledge_bases(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    return await RelationalDBManager(db).list_knowledge_bases(user_id)
