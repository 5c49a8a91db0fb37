# madrasah_admin/services/backup_service.py
"""Snapshot all business tables of one madrasah into a single backup record."""
import logging
from typing import Any, Dict, Iterable, List, Optional, Union
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.exceptions import NotFoundError, StoreError, ValidationException
from ..core.locks import TenantLockManager, tenant_locks
from ..models import Backup, BackupType, Madrasah
from .backup_tables import BACKUP_TABLES, missing_tables
from .data_store import TenantDataStore

logger = logging.getLogger(__name__)

# Kinds that retention may prune; manual backups are only deleted by an admin
PRUNABLE_TYPES = (BackupType.AUTO, BackupType.PRE_RESTORE)


def parse_madrasah_id(value: Any) -> UUID:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationException("Madrasah ID is required")
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value).strip())
    except ValueError:
        raise ValidationException("Madrasah ID must be a valid UUID")


def parse_backup_id(value: Any) -> Optional[UUID]:
    """UUID form of a backup id, or None when it cannot name any backup."""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value).strip())
    except ValueError:
        return None


def parse_backup_type(value: Union[str, BackupType, None]) -> BackupType:
    if value is None:
        return BackupType.MANUAL
    try:
        return BackupType(value)
    except ValueError:
        raise ValidationException(
            f"Invalid backup type '{value}'; expected one of: "
            + ", ".join(kind.value for kind in BackupType)
        )


def summarize_backup(backup: Backup) -> Dict[str, Any]:
    """Backup metadata without the payload, as shown in backup history."""
    data = backup.backup_data if isinstance(backup.backup_data, dict) else {}
    table_counts = {
        name: len(rows) if isinstance(rows, list) else 0
        for name, rows in data.items()
        if name in BACKUP_TABLES
    }
    return {
        "id": str(backup.id),
        "madrasah_id": str(backup.madrasah_id),
        "backup_date": backup.backup_date.isoformat() if backup.backup_date else None,
        "backup_type": backup.backup_type,
        "notes": backup.notes,
        "table_counts": table_counts,
        "total_records": sum(table_counts.values()),
        "is_complete": not missing_tables(data),
    }


class BackupService:
    def __init__(self, db: AsyncSession, locks: TenantLockManager = tenant_locks):
        self.db = db
        self.locks = locks

    async def create_backup(
        self,
        madrasah_id: Any,
        backup_type: Union[str, BackupType, None] = BackupType.MANUAL,
        notes: Optional[str] = None,
        actor: Optional[Any] = None,
    ) -> Backup:
        """Validate input, take the tenant lock and write one backup record."""
        tenant_id = parse_madrasah_id(madrasah_id)
        kind = parse_backup_type(backup_type)
        async with self.locks.hold(tenant_id):
            return await self.snapshot(tenant_id, kind, notes, actor)

    async def snapshot(
        self,
        madrasah_id: UUID,
        backup_type: BackupType,
        notes: Optional[str] = None,
        actor: Optional[Any] = None,
        keep_ids: Iterable[UUID] = (),
    ) -> Backup:
        """
        Read every backup table for the tenant and persist the result.

        The caller must hold the tenant lock. Nothing is written unless all
        reads succeed; the insert is committed on its own so the record is
        durable when this returns. Retention never deletes the new record or
        any id in ``keep_ids``.
        """
        logger.info(f"Starting backup for madrasah: {madrasah_id}, type: {backup_type.value}")
        store = TenantDataStore(self.db, madrasah_id, actor)

        backup_data: Dict[str, List[Dict[str, Any]]] = {}
        try:
            for table in BACKUP_TABLES:
                rows = await store.fetch_rows(table)
                backup_data[table] = rows
                logger.info(f"Backed up {len(rows)} records from {table}")
        except Exception:
            await self.db.rollback()
            raise

        backup = Backup(
            madrasah_id=madrasah_id,
            backup_type=backup_type.value,
            backup_data=backup_data,
            notes=notes or f"{backup_type.value} backup",
        )
        try:
            self.db.add(backup)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Error storing backup for madrasah {madrasah_id}: {e}")
            raise StoreError("backups", "insert", e) from e

        logger.info(f"Backup completed successfully: {backup.id}")
        await self.prune_backups(madrasah_id, backup_type, keep_ids={backup.id, *keep_ids})
        return backup

    async def prune_backups(self, madrasah_id: UUID, backup_type: BackupType, keep_ids: Iterable[UUID] = ()) -> int:
        """Delete the tenant's oldest backups of ``backup_type`` beyond the retention count."""
        limit = settings.backup_retention_count
        protected = set(keep_ids)
        if limit <= 0 or backup_type not in PRUNABLE_TYPES:
            return 0

        stmt = (
            select(Backup.id)
            .where(Backup.madrasah_id == madrasah_id, Backup.backup_type == backup_type.value)
            .order_by(Backup.backup_date.desc(), Backup.created_at.desc())
            .offset(limit)
        )
        try:
            result = await self.db.execute(stmt)
            stale_ids = [backup_id for backup_id in result.scalars().all() if backup_id not in protected]
            if not stale_ids:
                return 0
            await self.db.execute(
                delete(Backup).where(Backup.madrasah_id == madrasah_id, Backup.id.in_(stale_ids))
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            # The new backup is already committed; retention retries on the next run
            await self.db.rollback()
            logger.error(f"Backup retention failed for madrasah {madrasah_id}: {e}")
            return 0

        logger.info(f"Pruned {len(stale_ids)} {backup_type.value} backups for madrasah {madrasah_id}")
        return len(stale_ids)

    async def get_backup(self, madrasah_id: UUID, backup_id: Any) -> Backup:
        """Fetch a backup by id, scoped to the madrasah."""
        backup_uuid = parse_backup_id(backup_id)
        if backup_uuid is None:
            raise NotFoundError("Backup not found")

        stmt = select(Backup).where(Backup.id == backup_uuid, Backup.madrasah_id == madrasah_id)
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"Error fetching backup {backup_id}: {e}")
            raise StoreError("backups", "read", e) from e

        backup = result.scalar_one_or_none()
        if backup is None:
            raise NotFoundError("Backup not found")
        return backup

    async def list_backups(self, madrasah_id: UUID, page: int = 1, size: int = 20) -> Dict[str, Any]:
        """Paginated backup history, newest first."""
        offset = (page - 1) * size
        count_stmt = select(func.count()).select_from(Backup).where(Backup.madrasah_id == madrasah_id)
        stmt = (
            select(Backup)
            .where(Backup.madrasah_id == madrasah_id)
            .order_by(Backup.backup_date.desc(), Backup.created_at.desc())
            .offset(offset)
            .limit(size)
        )
        try:
            total = (await self.db.execute(count_stmt)).scalar() or 0
            items = (await self.db.execute(stmt)).scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"Error listing backups for madrasah {madrasah_id}: {e}")
            raise StoreError("backups", "read", e) from e

        return {
            "items": [summarize_backup(backup) for backup in items],
            "total": total,
            "page": page,
            "size": size,
            "total_pages": (total + size - 1) // size,
            "has_next": page * size < total,
            "has_previous": page > 1,
        }

    async def delete_backup(self, madrasah_id: UUID, backup_id: Any) -> None:
        backup = await self.get_backup(madrasah_id, backup_id)
        try:
            await self.db.delete(backup)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Error deleting backup {backup_id}: {e}")
            raise StoreError("backups", "delete", e) from e
        logger.info(f"Deleted backup {backup_id} for madrasah {madrasah_id}")


async def run_scheduled_backups(session_factory, locks: TenantLockManager = tenant_locks) -> Dict[str, Any]:
    """Take an ``auto`` backup of every madrasah. One failure does not stop the rest."""
    async with session_factory() as db:
        result = await db.execute(select(Madrasah.id).order_by(Madrasah.created_at))
        madrasah_ids = list(result.scalars().all())

    succeeded: List[str] = []
    failed: Dict[str, str] = {}
    for madrasah_id in madrasah_ids:
        async with session_factory() as db:
            try:
                backup = await BackupService(db, locks).create_backup(madrasah_id, BackupType.AUTO, "Scheduled auto backup")
                succeeded.append(str(backup.id))
            except Exception as e:
                logger.error(f"Scheduled backup failed for madrasah {madrasah_id}: {e}")
                failed[str(madrasah_id)] = str(e)

    logger.info(f"Scheduled backups finished: {len(succeeded)} succeeded, {len(failed)} failed")
    return {"succeeded": succeeded, "failed": failed}
