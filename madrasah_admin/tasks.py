# madrasah_admin/tasks.py
"""Celery tasks. Run with: celery -A madrasah_admin.celery_worker worker --beat"""
import asyncio
import logging

from sqlalchemy import pool
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from .celery_worker import celery_app
from .core.cache import cache_manager
from .core.config import settings
from .core.locks import tenant_locks
from .services.backup_service import run_scheduled_backups

logger = logging.getLogger(__name__)

async def _backup_all_madrasahs():
    # Each task run gets its own event loop, so nothing pooled may outlive it
    engine = create_async_engine(settings.database_url, poolclass=pool.NullPool)
    session_factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession, autoflush=False)
    try:
        return await run_scheduled_backups(session_factory, tenant_locks)
    finally:
        await cache_manager.disconnect()
        await engine.dispose()

@celery_app.task(name="madrasah_admin.tasks.auto_backup_all")
def auto_backup_all():
    """Daily ``auto`` backup of every madrasah."""
    logger.info("Scheduled auto backup started")
    return asyncio.run(_backup_all_madrasahs())
