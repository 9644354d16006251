from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from ragchat.database.connection import Document, KnowledgeBase # Import models
from typing import List, Optional

class RelationalDBManager:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def save_document(self, id: str, title: str, content: str, user_id: str, kind: str = "text") -> Document:
        db_doc = Document(
            id=id,
            title=title,
            kind=kind,
            content=content,
            user_id=user_id,
        )
        self.db.add(db_doc)
        await self.db.commit()
        await self.db.refresh(db_doc)
        return db_doc

    async def get_document_by_id(self, document_id: str) -> Optional[Document]:
        return await self.db.get(Document, document_id)

    async def get_documents_by_user_id(self, user_id: str) -> List[Document]:
        result = await self.db.execute(
            select(Document).where(Document.user_id == user_id).order_by(Document.created_at)
        )
        return list(result.scalars().all())

    async def create_knowledge_base(self, user_id: str, name: str, description: Optional[str] = None) -> KnowledgeBase:
        knowledge_base = KnowledgeBase(user_id=user_id, name=name, description=description)
        self.db.add(knowledge_base)
        await self.db.commit()
        await self.db.refresh(knowledge_base)
        return knowledge_base

    async def list_knowledge_bases(self, user_id: str) -> List[KnowledgeBase]:
        result = await self.db.execute(
            select(KnowledgeBase).where(KnowledgeBase.user_id == user_id).order_by(KnowledgeBase.created_at)
        )
        return list(result.scalars().all())
