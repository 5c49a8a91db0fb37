# madrasah_admin/services/restore_service.py
"""Replace one madrasah's business data with the contents of a backup."""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import BackupCorruptedError, MadrasahAdminException, RestoreFailedError, ValidationException
from ..core.locks import TenantLockManager, tenant_locks
from ..models import BackupType
from .backup_service import BackupService, parse_backup_id, parse_madrasah_id
from .backup_tables import BACKUP_TABLES, RESTORE_DELETE_ORDER, TENANT_COLUMN, get_table
from .data_store import TenantDataStore
from .row_codec import RowDecodeError, decode_row

logger = logging.getLogger(__name__)


@dataclass
class RestoreResult:
    pre_restore_backup_id: UUID
    records_restored: int
    restored_tables: Dict[str, int] = field(default_factory=dict)


class RestoreService:
    def __init__(self, db: AsyncSession, locks: TenantLockManager = tenant_locks):
        self.db = db
        self.locks = locks
        self.backups = BackupService(db, locks)

    async def restore_backup(self, madrasah_id: Any, backup_id: Any, actor: Optional[Any] = None) -> RestoreResult:
        if madrasah_id in (None, "") or backup_id in (None, ""):
            raise ValidationException("Madrasah ID and Backup ID are required")
        tenant_id = parse_madrasah_id(madrasah_id)

        logger.info(f"Starting restore for madrasah: {tenant_id}, backup: {backup_id}")
        async with self.locks.hold(tenant_id):
            # Safety snapshot first; if it fails nothing below runs.
            # Its retention pass must not delete the backup being restored.
            source_id = parse_backup_id(backup_id)
            logger.info("Creating pre-restore backup...")
            pre_restore = await self.backups.snapshot(
                tenant_id,
                BackupType.PRE_RESTORE,
                notes=f"Auto backup before restoring backup {backup_id}",
                actor=actor,
                keep_ids=[source_id] if source_id else (),
            )
            logger.info(f"Pre-restore backup created: {pre_restore.id}")

            try:
                backup = await self.backups.get_backup(tenant_id, backup_id)
                payload = self.prepare_payload(tenant_id, backup.backup_data)
            except MadrasahAdminException as e:
                # Nothing deleted yet, but the caller still gets the snapshot id
                e.pre_restore_backup_id = pre_restore.id
                raise

            store = TenantDataStore(self.db, tenant_id, actor)
            try:
                restored = await self._replace_tenant_data(store, payload)
                await self.db.commit()
            except Exception as e:
                await self.db.rollback()
                logger.error(
                    f"Restore of backup {backup_id} failed for madrasah {tenant_id}: {e}. "
                    f"Pre-restore backup: {pre_restore.id}"
                )
                message = getattr(e, "message", None) or str(e) or "Restore failed"
                raise RestoreFailedError(message, pre_restore.id) from e

        total = sum(restored.values())
        logger.info(f"Restore completed successfully. Total records restored: {total}")
        return RestoreResult(
            pre_restore_backup_id=pre_restore.id,
            records_restored=total,
            restored_tables=restored,
        )

    @staticmethod
    def prepare_payload(madrasah_id: UUID, backup_data: Any) -> Dict[str, List[Dict[str, Any]]]:
        """
        Decode and check a stored payload before anything is deleted.

        Missing table keys are empty tables. Every row must belong to
        ``madrasah_id``.
        """
        if not isinstance(backup_data, dict):
            raise BackupCorruptedError("Backup data is not a table mapping")

        unknown = sorted(set(backup_data) - set(BACKUP_TABLES))
        if unknown:
            logger.warning(f"Ignoring unknown tables in backup: {', '.join(unknown)}")

        prepared: Dict[str, List[Dict[str, Any]]] = {}
        for table_name in BACKUP_TABLES:
            rows = backup_data.get(table_name) or []
            if not isinstance(rows, list):
                raise BackupCorruptedError(f"Backup data for {table_name} is not a list")

            table = get_table(table_name)
            decoded_rows = []
            for index, row in enumerate(rows):
                if not isinstance(row, dict):
                    raise BackupCorruptedError(f"Row {index} of {table_name} is not an object")
                try:
                    decoded = decode_row(table, row)
                except RowDecodeError as e:
                    raise BackupCorruptedError(f"Row {index} of {table_name}: {e}")
                if decoded.get(TENANT_COLUMN) != madrasah_id:
                    raise BackupCorruptedError(f"Row {index} of {table_name} belongs to another madrasah")
                decoded_rows.append(decoded)
            prepared[table_name] = decoded_rows
        return prepared

    async def _replace_tenant_data(self, store: TenantDataStore, payload: Dict[str, List[Dict[str, Any]]]) -> Dict[str, int]:
        # Dependents before the tables they reference
        for table in RESTORE_DELETE_ORDER:
            await store.delete_rows(table)
            logger.info(f"Deleted existing data from {table}")

        restored: Dict[str, int] = {}
        for table in BACKUP_TABLES:
            rows = payload.get(table) or []
            if not rows:
                continue
            restored[table] = await store.insert_rows(table, rows)
            logger.info(f"Restored {len(rows)} records to {table}")
        return restored
