from contextlib import asynccontextmanager
from fastapi import FastAPI
from redis.exceptions import RedisError
import logging

from ragchat.api import conversation, files, ingestion, knowledge_bases
from ragchat.core.config import settings
from ragchat.core.exceptions import ConfigurationError
from ragchat.database.connection import create_db_and_tables
from ragchat.services.file_cache import close_redis_client, get_redis_client
from ragchat.services.vector_db_manager import qdrant_manager


logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting up application...")
    await create_db_and_tables()
    logger.info("Database tables ensured.")

    await qdrant_manager.ensure_collection_exists()
    logger.info(f"Collection '{qdrant_manager.collection_name}' ensured in Qdrant.")

    try:
        redis_client = await get_redis_client()
        await redis_client.ping()
        logger.info("Redis connection successful")
    except (RedisError, ConfigurationError) as e:
        logger.warning(f"Redis connection failed - {e}. Chat attachments may not work properly")

    yield

    await close_redis_client()
    logger.info("Application shut down.")

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Backend for document ingestion and retrieval-augmented chat context.",
    lifespan=lifespan,
)

@app.get("/")
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}!",
        "documentation": "/docs",
        "version": settings.APP_VERSION
    }

app.include_router(ingestion.router, prefix="/documents", tags=["Documents"])
app.include_router(knowledge_bases.router, prefix="/knowledge-bases", tags=["Knowledge Bases"])
app.include_router(files.router, prefix="/files", tags=["Chat Attachments"])
app.include_router(conversation.router, prefix="/chat", tags=["Chat Context"])
