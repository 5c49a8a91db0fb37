# madrasah_admin/routers/backups.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import require_capability
from ..core.locks import tenant_locks
from ..core.permissions import Capability
from ..schemas.backup_schemas import AdminBackupCreate
from ..services.access_control import SessionContext
from ..services.backup_service import BackupService, summarize_backup
from ..services.restore_service import RestoreService

router = APIRouter(prefix="/api/v1/backups", tags=["Backups"])

manage_backups = require_capability(Capability.MANAGE_BACKUPS)

@router.get("/", response_model=dict)
async def list_backups(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    context: SessionContext = Depends(manage_backups),
    db: AsyncSession = Depends(get_db)
):
    """Backup history of the session's madrasah, newest first"""
    return await BackupService(db, tenant_locks).list_backups(context.madrasah_id, page=page, size=size)

@router.post("/", response_model=dict, status_code=201)
async def create_backup(
    body: AdminBackupCreate,
    context: SessionContext = Depends(manage_backups),
    db: AsyncSession = Depends(get_db)
):
    backup = await BackupService(db, tenant_locks).create_backup(
        context.madrasah_id, body.backup_type, body.notes, actor=context
    )
    return summarize_backup(backup)

@router.get("/{backup_id}", response_model=dict)
async def get_backup(
    backup_id: str,
    context: SessionContext = Depends(manage_backups),
    db: AsyncSession = Depends(get_db)
):
    backup = await BackupService(db, tenant_locks).get_backup(context.madrasah_id, backup_id)
    return summarize_backup(backup)

@router.post("/{backup_id}/restore", response_model=dict)
async def restore_backup(
    backup_id: str,
    context: SessionContext = Depends(manage_backups),
    db: AsyncSession = Depends(get_db)
):
    """Restore a backup; a pre_restore snapshot is taken first"""
    result = await RestoreService(db, tenant_locks).restore_backup(context.madrasah_id, backup_id, actor=context)
    return {
        "pre_restore_backup_id": str(result.pre_restore_backup_id),
        "records_restored": result.records_restored,
        "restored_tables": result.restored_tables,
        "message": "Data restored successfully. A backup of your previous data was created.",
    }

@router.delete("/{backup_id}", response_model=dict)
async def delete_backup(
    backup_id: str,
    context: SessionContext = Depends(manage_backups),
    db: AsyncSession = Depends(get_db)
):
    await BackupService(db, tenant_locks).delete_backup(context.madrasah_id, backup_id)
    return {"message": "Backup deleted successfully", "id": backup_id}
