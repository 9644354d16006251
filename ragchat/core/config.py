from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path
from typing import Optional
import os
from dotenv import load_dotenv
# Load environment variables from .env file
load_dotenv()

BASE_DIR = Path(__file__).parent.parent.parent

class Settings(BaseSettings):
    # Application settings
    APP_NAME: str = "RAG Chat Backend"
    APP_VERSION: str = "0.2.0"
    LOG_LEVEL: str = "INFO"

    # Relational DB settings (async SQLAlchemy URL; SQLite for local runs, PostgreSQL in production)
    DATABASE_URL: str = f"sqlite+aiosqlite:///{BASE_DIR}/data/metadata.db"

    # Vector DB settings (Qdrant). QDRANT_LOCATION=":memory:" runs an embedded instance.
    QDRANT_HOST: str = "localhost"
    QDRANT_PORT: int = 6333
    QDRANT_LOCATION: Optional[str] = None
    QDRANT_COLLECTION_NAME: str = "document_embeddings"

    # Embedding endpoint settings (OpenAI-compatible API, base URL without the /embeddings path)
    EMBEDDING_API_KEY: Optional[str] = os.getenv("EMBEDDING_API_KEY")
    EMBEDDING_BASE_URL: str = "https://open.bigmodel.cn/api/paas/v4"
    EMBEDDING_MODEL: str = "embedding-3"
    EMBEDDING_DIMENSION: int = 1024  # must match the Qdrant collection size
    EMBEDDING_BATCH_SIZE: int = 64  # upstream limit per request
    EMBEDDING_TIMEOUT: float = 30.0

    # LLM settings (OpenAI-compatible API, base URL without the /chat/completions path), used for query rewriting and titles
    LLM_API_KEY: Optional[str] = os.getenv("LLM_API_KEY")
    LLM_BASE_URL: str = "https://open.bigmodel.cn/api/paas/v4"
    LLM_MODEL: str = "GLM-4-Flash"
    LLM_TIMEOUT: float = 15.0
    REWRITE_TEMPERATURE: float = 0.3
    REWRITE_MAX_TOKENS: int = 200
    REWRITE_MAX_HISTORY_MESSAGES: int = 5
    TITLE_MAX_LENGTH: int = 80

    # Redis settings for attachment content
    REDIS_URL: Optional[str] = os.getenv("REDIS_URL")
    FILE_CONTENT_TTL: int = 3600  # 1 hour

    # Chunking defaults
    UPLOAD_CHUNK_SIZE: int = 500
    UPLOAD_CHUNK_OVERLAP: int = 50
    INDEX_CHUNK_SIZE: int = 1000
    INDEX_CHUNK_OVERLAP: int = 200

    # Upload limits
    MAX_UPLOAD_SIZE: int = 5 * 1024 * 1024
    MAX_ATTACHMENT_SIZE: int = 500 * 1024
    MAX_ATTACHMENT_TOKENS: int = 25000

    # RAG settings
    RAG_TOP_K: int = 3
    RAG_QUERY_REWRITE_ENABLED: bool = True
    RAG_CONTEXT_ROLE: str = "system"
    RAG_MIN_DISPLAY_SIMILARITY: float = 0.6
    # Search-time floors by cleaned query length (short queries embed less precisely)
    RAG_SHORT_QUERY_LENGTH: int = 10
    RAG_MEDIUM_QUERY_LENGTH: int = 30
    RAG_SHORT_QUERY_THRESHOLD: float = 0.3
    RAG_MEDIUM_QUERY_THRESHOLD: float = 0.4
    RAG_LONG_QUERY_THRESHOLD: float = 0.5
    SEARCH_TOOL_SIMILARITY_THRESHOLD: float = 0.7

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()

# Create data directory if it doesn't exist
os.makedirs(BASE_DIR / "data", exist_ok=True)
