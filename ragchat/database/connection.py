# ragchat/database/connection.py
from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from datetime import datetime, timezone
from ragchat.core.config import settings
import uuid


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# SQLAlchemy async engine
engine = create_async_engine(settings.DATABASE_URL, pool_pre_ping=True)
SessionLocal = async_sessionmaker(engine, expire_on_commit=False, autoflush=False)
Base = declarative_base()

# Full extracted text of an uploaded file. Content is never rewritten once saved;
# re-indexing only touches the vector store.
class Document(Base):
    __tablename__ = "documents"
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String, nullable=False)
    kind = Column(String, nullable=False, default="text")
    content = Column(Text, nullable=True)
    user_id = Column(String, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    def __repr__(self):
        return f"<Document(id='{self.id}', title='{self.title}')>"

class KnowledgeBase(Base):
    __tablename__ = "knowledge_bases"
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    def __repr__(self):
        return f"<KnowledgeBase(id='{self.id}', name='{self.name}')>"


async def get_db():
    async with SessionLocal() as db:
        yield db

# Create tables
async def create_db_and_tables():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
