# madrasah_admin/core/exceptions.py
"""Custom exceptions for the madrasah administration service."""
from typing import Any, Dict, Optional


class MadrasahAdminException(Exception):
    """Base exception; carries the HTTP status used by the admin routes."""
    status_code = 500
    # Set once a restore has taken its safety snapshot
    pre_restore_backup_id: Any = None

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        data = {"error": self.message, "type": self.__class__.__name__}
        if self.pre_restore_backup_id is not None:
            data["preRestoreBackupId"] = str(self.pre_restore_backup_id)
        return data


class ValidationException(MadrasahAdminException):
    """Missing or malformed input."""
    status_code = 422


class NotFoundError(MadrasahAdminException):
    status_code = 404


class AuthenticationError(MadrasahAdminException):
    status_code = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class PermissionDenied(MadrasahAdminException):
    status_code = 403

    def __init__(self, message: str = "Permission denied"):
        super().__init__(message)


class ConflictError(MadrasahAdminException):
    status_code = 409


class TenantNotProvisioned(ConflictError):
    """Authenticated user has no madrasah yet and must go through setup."""

    def __init__(self, message: str = "No madrasah is linked to this account; complete setup first"):
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["setup_required"] = True
        return data


class TenantBusyError(ConflictError):
    """Another backup or restore holds the tenant lock."""

    def __init__(self, madrasah_id: Any):
        super().__init__(f"Another backup or restore is running for madrasah {madrasah_id}")
        self.madrasah_id = madrasah_id


class StoreError(MadrasahAdminException):
    """A read, write or delete against one table failed."""
    status_code = 500

    def __init__(self, table: str, operation: str, cause: Exception):
        super().__init__(f"Error during {operation} on {table}")
        self.table = table
        self.operation = operation
        self.cause = cause


class BackupCorruptedError(MadrasahAdminException):
    """Backup payload cannot be restored safely."""
    status_code = 422


class RestoreFailedError(MadrasahAdminException):
    """Destructive phase failed; the tenant was rolled back or needs the safety backup."""
    status_code = 500

    def __init__(self, message: str, pre_restore_backup_id: Any):
        super().__init__(message)
        self.pre_restore_backup_id = pre_restore_backup_id
