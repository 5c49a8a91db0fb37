# madrasah_admin/core/cache.py
"""Redis connection shared by tenant locks and health checks."""
import logging
from typing import Optional
import redis.asyncio as redis

from .config import settings

logger = logging.getLogger(__name__)

class CacheManager:
    def __init__(self, url: Optional[str] = None):
        self.url = url
        self.redis: Optional[redis.Redis] = None

    @property
    def enabled(self) -> bool:
        return bool(self.url)

    async def connect(self) -> Optional[redis.Redis]:
        """Initialize Redis connection. Returns None when Redis is not configured."""
        if not self.enabled:
            return None
        if not self.redis:
            self.redis = redis.from_url(
                self.url,
                encoding="utf-8",
                decode_responses=False
            )
        return self.redis

    async def disconnect(self):
        """Close Redis connection."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None

    async def ping(self) -> bool:
        client = await self.connect()
        if client is None:
            return False
        try:
            return bool(await client.ping())
        except redis.RedisError as e:
            logger.error(f"Redis ping failed: {e}")
            return False

# Global cache instance
cache_manager = CacheManager(settings.redis_url)
