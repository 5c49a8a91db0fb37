# madrasah_admin/core/locks.py
"""Per-tenant mutual exclusion for backup and restore."""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from redis.exceptions import LockError

from .cache import CacheManager, cache_manager
from .config import settings
from .exceptions import TenantBusyError

logger = logging.getLogger(__name__)

class TenantLockManager:
    """
    Serialises backup/restore per madrasah.

    Uses a Redis lock when Redis is configured so that several API workers
    and the Celery scheduler share one lock; otherwise falls back to
    process-local asyncio locks.
    """

    def __init__(
        self,
        cache: CacheManager,
        timeout: int = settings.tenant_lock_timeout_seconds,
        wait: float = settings.tenant_lock_wait_seconds,
    ):
        self.cache = cache
        self.timeout = timeout
        self.wait = wait
        self._local: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    @staticmethod
    def key_for(madrasah_id: Any) -> str:
        return f"madrasah:{madrasah_id}:data-lock"

    @asynccontextmanager
    async def hold(self, madrasah_id: Any, wait: Optional[float] = None):
        wait = self.wait if wait is None else wait
        key = self.key_for(madrasah_id)
        client = await self.cache.connect()
        if client is None:
            async with self._hold_local(key, madrasah_id, wait):
                yield
            return

        lock = client.lock(key, timeout=self.timeout, blocking_timeout=wait)
        if not await lock.acquire():
            logger.warning(f"Tenant lock busy for madrasah {madrasah_id}")
            raise TenantBusyError(madrasah_id)
        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError:
                logger.warning(f"Tenant lock for madrasah {madrasah_id} expired before release")

    @asynccontextmanager
    async def _hold_local(self, key: str, madrasah_id: Any, wait: float):
        lock = self._local.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            try:
                await asyncio.wait_for(lock.acquire(), timeout=wait)
            except asyncio.TimeoutError:
                logger.warning(f"Tenant lock busy for madrasah {madrasah_id}")
                raise TenantBusyError(madrasah_id)
            try:
                yield
            finally:
                lock.release()
        finally:
            self._forget(key)

    def _forget(self, key: str):
        # Drop the lock once nobody holds or waits for it
        remaining = self._users.get(key, 1) - 1
        if remaining > 0:
            self._users[key] = remaining
        else:
            self._users.pop(key, None)
            self._local.pop(key, None)

    def is_held(self, madrasah_id: Any) -> bool:
        """Process-local view only; used by tests and diagnostics."""
        lock = self._local.get(self.key_for(madrasah_id))
        return bool(lock and lock.locked())

    def reset(self):
        self._local.clear()
        self._users.clear()

tenant_locks = TenantLockManager(cache_manager)
