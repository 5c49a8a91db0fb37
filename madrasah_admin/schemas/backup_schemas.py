# madrasah_admin/schemas/backup_schemas.py
"""Request bodies for the backup and restore routes."""
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models import BackupType

class BackupRequest(BaseModel):
    """Body of the backup function; camelCase on the wire."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    madrasah_id: Optional[str] = Field(default=None, alias="madrasahId")
    backup_type: Optional[str] = Field(default=BackupType.MANUAL.value, alias="backupType")
    notes: Optional[str] = Field(default=None, max_length=1000)

    @field_validator('madrasah_id', 'backup_type', mode='before')
    @classmethod
    def stringify(cls, v):
        # Identifiers are validated by the services so that every failure has one message shape
        if v is None:
            return v
        return str(v)

class RestoreRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    madrasah_id: Optional[str] = Field(default=None, alias="madrasahId")
    backup_id: Optional[str] = Field(default=None, alias="backupId")

    @field_validator('madrasah_id', 'backup_id', mode='before')
    @classmethod
    def stringify(cls, v):
        if v is None:
            return v
        return str(v)

class AdminBackupCreate(BaseModel):
    """Admin API body; the madrasah comes from the session."""
    backup_type: BackupType = Field(default=BackupType.MANUAL, description="manual, auto or pre_restore")
    notes: Optional[str] = Field(default=None, max_length=1000)
