# madrasah_admin/routers/functions.py
"""
Backup and restore function endpoints.

These keep the JSON contract of the hosted functions the settings screen
calls: camelCase bodies, permissive CORS, and every failure rendered as
status 500 with an ``error`` message.
"""
import json
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.database import get_db
from ..core.dependencies import resolve_function_invoker
from ..core.exceptions import MadrasahAdminException, ValidationException
from ..core.locks import tenant_locks
from ..core.rate_limiter import rate_limiter
from ..schemas.backup_schemas import BackupRequest, RestoreRequest
from ..services.backup_service import BackupService, parse_madrasah_id
from ..services.restore_service import RestoreService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/functions/v1", tags=["Backup Functions"])

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}

async def _read_body(request: Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationException("Request body must be valid JSON")
    if not isinstance(body, dict):
        raise ValidationException("Request body must be a JSON object")
    return body

def _error_response(exc: Exception) -> JSONResponse:
    if isinstance(exc, MadrasahAdminException):
        message = exc.message
    elif isinstance(exc, ValidationError):
        message = "Invalid request body"
    else:
        logger.exception(f"Unexpected function error: {exc}")
        message = str(exc) or "Internal error"

    content = {"error": message}
    pre_restore_backup_id = getattr(exc, "pre_restore_backup_id", None)
    if pre_restore_backup_id is not None:
        content["preRestoreBackupId"] = str(pre_restore_backup_id)
    return JSONResponse(status_code=500, content=content, headers=CORS_HEADERS)

@router.options("/backup-data")
@router.options("/restore-data")
async def preflight():
    """CORS preflight for browser callers"""
    return Response(content="ok", headers=CORS_HEADERS)

@router.post("/backup-data")
async def backup_data(request: Request, db: AsyncSession = Depends(get_db)):
    """Snapshot every business table of one madrasah"""
    await rate_limiter.check_rate_limit(request, max_requests=settings.function_rate_limit, window=60)
    try:
        payload = BackupRequest.model_validate(await _read_body(request))
        madrasah_id = parse_madrasah_id(payload.madrasah_id)
        actor = await resolve_function_invoker(request, db, madrasah_id)

        backup = await BackupService(db, tenant_locks).create_backup(
            madrasah_id,
            payload.backup_type,
            payload.notes,
            actor=actor,
        )
    except Exception as e:
        logger.error(f"Backup error: {e}")
        return _error_response(e)

    return JSONResponse(
        content={
            "success": True,
            "backupId": str(backup.id),
            "backupDate": backup.backup_date.isoformat(),
            "message": "Backup completed successfully",
        },
        headers=CORS_HEADERS,
    )

@router.post("/restore-data")
async def restore_data(request: Request, db: AsyncSession = Depends(get_db)):
    """Replace one madrasah's data with a backup, after a safety snapshot"""
    await rate_limiter.check_rate_limit(request, max_requests=settings.function_rate_limit, window=60)
    try:
        payload = RestoreRequest.model_validate(await _read_body(request))
        if not payload.madrasah_id or not payload.backup_id:
            raise ValidationException("Madrasah ID and Backup ID are required")
        madrasah_id = parse_madrasah_id(payload.madrasah_id)
        actor = await resolve_function_invoker(request, db, madrasah_id)

        result = await RestoreService(db, tenant_locks).restore_backup(madrasah_id, payload.backup_id, actor=actor)
    except Exception as e:
        logger.error(f"Restore error: {e}")
        return _error_response(e)

    return JSONResponse(
        content={
            "success": True,
            "preRestoreBackupId": str(result.pre_restore_backup_id),
            "recordsRestored": result.records_restored,
            "message": "Data restored successfully. A backup of your previous data was created.",
        },
        headers=CORS_HEADERS,
    )
