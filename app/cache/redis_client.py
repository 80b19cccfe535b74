"""
Redis client configuration and connection management.
Provides JSON document storage for the lookup cache and analytics records.
"""

import asyncio
import json
from typing import Any, Optional
import redis.asyncio as redis
from redis.asyncio import ConnectionPool
import structlog

from app.core.config import settings

logger = structlog.get_logger(__name__)


class RedisClient:
    """Async Redis client with connection pooling and error handling."""

    def __init__(self, url: Optional[str] = None):
        self.url = url or settings.redis_url
        self.pool: Optional[ConnectionPool] = None
        self.client: Optional[redis.Redis] = None
        self._connect_lock = asyncio.Lock()

    async def connect(self):
        """Initialize Redis connection pool."""
        pool = ConnectionPool.from_url(
            self.url,
            max_connections=20,
            retry_on_timeout=True,
            socket_keepalive=True,
            health_check_interval=30,
        )
        client = redis.Redis(
            connection_pool=pool,
            decode_responses=False,  # We'll handle encoding manually
        )

        try:
            # Test connection
            await client.ping()
        except Exception as e:
            logger.error("Failed to connect to Redis", error=str(e))
            await client.aclose()
            await pool.disconnect()
            raise

        self.pool = pool
        self.client = client
        logger.info("Redis connection established successfully")

    async def _ensure_client(self) -> redis.Redis:
        """Connect on first use; concurrent first callers share one pool."""
        if self.client is None:
            async with self._connect_lock:
                if self.client is None:
                    await self.connect()
        return self.client

    async def disconnect(self):
        """Close Redis connections gracefully."""
        if self.client:
            await self.client.aclose()
        if self.pool:
            await self.pool.disconnect()
        self.client = None
        self.pool = None
        logger.info("Redis connections closed")

    async def get(self, key: str) -> Optional[Any]:
        """Get a JSON value from Redis, None when absent or unreadable."""
        try:
            client = await self._ensure_client()
            value = await client.get(key)
            if value is None:
                return None

            return json.loads(value.decode("utf-8"))

        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("Unreadable Redis value", key=key, error=str(e))
            return None
        except Exception as e:
            logger.error("Redis GET error", key=key, error=str(e))
            return None

    async def set(self, key: str, value: Any) -> bool:
        """Store a value as JSON, overwriting any previous value."""
        try:
            client = await self._ensure_client()
            await client.set(key, json.dumps(value, default=str))
            return True

        except Exception as e:
            logger.error("Redis SET error", key=key, error=str(e))
            return False

    async def push(self, key: str, value: Any) -> bool:
        """Append a JSON value to a Redis list."""
        try:
            client = await self._ensure_client()
            await client.rpush(key, json.dumps(value, default=str))
            return True

        except Exception as e:
            logger.error("Redis RPUSH error", key=key, error=str(e))
            return False


# Global Redis client instance
redis_client = RedisClient()


# Cache key generators
class CacheKeys:
    """Cache key generators for stored documents."""

    @staticmethod
    def document(collection: str, key: str) -> str:
        return f"{collection}:{key}"

    @staticmethod
    def collection_log(collection: str) -> str:
        return f"{collection}:log"


class Collections:
    """Document collections used by the lookup core."""

    BARCODE_CACHE = "barcode_cache"
    PRODUCT_IDENTIFICATIONS = "product_identifications"
