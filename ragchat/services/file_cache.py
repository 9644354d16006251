from typing import Optional
import logging

import redis.asyncio as redis
from redis.exceptions import RedisError

from ragchat.core.config import settings
from ragchat.core.exceptions import ConfigurationError, FileCacheError

logger = logging.getLogger(__name__)

# Process-wide client, created on first use. redis-py reconnects pooled
# connections by itself; close_redis_client() drops the client entirely.
_redis_client: Optional[redis.Redis] = None

async def get_redis_client() -> redis.Redis:
    """Return the shared Redis client, creating it lazily."""
    global _redis_client
    if not settings.REDIS_URL:
        raise ConfigurationError("REDIS_URL environment variable is not set")
    if _redis_client is None:
        _redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)
        logger.info("Created Redis client")
    return _redis_client

async def close_redis_client() -> None:
    """Close and forget the shared client; the next call to get_redis_client reconnects."""
    global _redis_client
    if _redis_client is None:
        return
    client, _redis_client = _redis_client, None
    try:
        await client.aclose()
    except RedisError as e:
        logger.warning(f"Error while closing Redis client: {e}")

def _get_key(file_id: str) -> str:
    """Generate Redis key for a cached attachment."""
    return f"file_content:{file_id}"

async def set_file_content(file_id: str, content: str, ttl: int = settings.FILE_CONTENT_TTL) -> None:
    """
    Store extracted attachment text with an expiry.

    Args:
        file_id: Unique id handed back to the client
        content: Extracted (possibly truncated) text
        ttl: Time-to-live in seconds

    Raises:
        FileCacheError: If the write fails
    """
    try:
        client = await get_redis_client()
        await client.setex(_get_key(file_id), ttl, content)
        logger.info(f"File content cached in Redis: {_get_key(file_id)} (TTL: {ttl}s)")
    except (RedisError, ConfigurationError) as e:
        logger.error(f"Failed to set file content in Redis: {e}")
        raise FileCacheError("Failed to cache file content") from e

async def get_file_content(file_id: str) -> Optional[str]:
    """Cached text for ``file_id``, or None if missing, expired or Redis is unavailable."""
    try:
        client = await get_redis_client()
        content = await client.get(_get_key(file_id))
    except (RedisError, ConfigurationError) as e:
        logger.error(f"Failed to get file content from Redis: {e}")
        return None

    if content:
        logger.info(f"File content retrieved from Redis: {_get_key(file_id)}")
    else:
        logger.info(f"File content not found or expired: {_get_key(file_id)}")
    return content

async def delete_file_content(file_id: str) -> None:
    try:
        client = await get_redis_client()
        await client.delete(_get_key(file_id))
        logger.info(f"File content deleted from Redis: {_get_key(file_id)}")
    except (RedisError, ConfigurationError) as e:
        logger.error(f"Failed to delete file content from Redis: {e}")
        raise FileCacheError("Failed to delete file content") from e

async def has_file_content(file_id: str) -> bool:
    try:
        client = await get_redis_client()
        return await client.exists(_get_key(file_id)) == 1
    except (RedisError, ConfigurationError) as e:
        logger.error(f"Failed to check file content existence in Redis: {e}")
        return False

async def extend_file_content_ttl(file_id: str, ttl: int = settings.FILE_CONTENT_TTL) -> None:
    try:
        client = await get_redis_client()
        await client.expire(_get_key(file_id), ttl)
        logger.info(f"File content TTL extended: {_get_key(file_id)} (TTL: {ttl}s)")
    except (RedisError, ConfigurationError) as e:
        logger.error(f"Failed to extend file content TTL in Redis: {e}")
        raise FileCacheError("Failed to extend file content TTL") from e
