"""Shared pytest fixtures for all test suites."""

from typing import AsyncGenerator, Callable, Dict, List, Optional

import httpx
import pytest
import pytest_asyncio
from qdrant_client import AsyncQdrantClient
from sqlalchemy import StaticPool
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from ragchat.database.connection import Base
from ragchat.services.vector_db_manager import VectorDBManager

VECTOR_SIZE = 4


class FakeEmbeddingService:
    """Stands in for EmbeddingService: a vector per keyword, a default vector otherwise."""

    def __init__(self, vectors: Optional[Dict[str, List[float]]] = None, default: Optional[List[float]] = None):
        self.vectors = vectors or {}
        self.default = default or [1.0, 0.0, 0.0, 0.0]
        self.error: Optional[Exception] = None
        self.embed_calls: List[str] = []
        self.batch_calls: List[List[str]] = []

    def _vector(self, text: str) -> List[float]:
        for keyword, vector in self.vectors.items():
            if keyword in text:
                return vector
        return self.default

    async def embed(self, text: str) -> List[float]:
        self.embed_calls.append(text)
        if self.error:
            raise self.error
        return self._vector(text)

    async def embed_batch(self, texts: List[str]) -> List[List[float]]:
        self.batch_calls.append(list(texts))
        if self.error:
            raise self.error
        return [self._vector(text) for text in texts]


@pytest.fixture
def fake_embedding_service() -> FakeEmbeddingService:
    return FakeEmbeddingService()


@pytest.fixture
def http_client_factory() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    """Build an httpx.AsyncClient whose requests are answered by ``handler``."""

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return factory


@pytest_asyncio.fixture
async def vector_db() -> AsyncGenerator[VectorDBManager, None]:
    """VectorDBManager on an embedded in-memory Qdrant instance."""
    client = AsyncQdrantClient(location=":memory:")
    manager = VectorDBManager(client=client, collection_name="test_embeddings", vector_size=VECTOR_SIZE)
    await manager.ensure_collection_exists()
    yield manager
    await client.close()


@pytest_asyncio.fixture
async def async_engine():
    """Create an async SQLite engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for testing."""
    session_maker = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        yield session
        await session.rollback()
