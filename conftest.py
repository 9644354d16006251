"""Global pytest configuration."""

import os

# Settings are read at import time; point every backend at a local fake before any ragchat import
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("QDRANT_LOCATION", ":memory:")
os.environ.setdefault("EMBEDDING_API_KEY", "test-embedding-key")
os.environ.setdefault("LLM_API_KEY", "test-llm-key")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
