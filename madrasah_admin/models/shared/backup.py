# madrasah_admin/models/shared/backup.py
"""Backup snapshot of one madrasah's business tables."""
import enum
from sqlalchemy import Column, String, Text, DateTime, JSON, ForeignKey, Uuid, CheckConstraint, Index
from ..base import Base, utcnow

class BackupType(str, enum.Enum):
    MANUAL = "manual"
    AUTO = "auto"
    PRE_RESTORE = "pre_restore"

class Backup(Base):
    __tablename__ = "backups"

    madrasah_id = Column(Uuid, ForeignKey("madrasah.id", ondelete="CASCADE"), nullable=False, index=True)
    backup_date = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    backup_type = Column(String(20), nullable=False, default=BackupType.MANUAL.value)
    # {table_name: [row, ...]}; written once, never updated
    backup_data = Column(JSON, nullable=False)
    notes = Column(Text)

    __table_args__ = (
        CheckConstraint("backup_type IN ('manual', 'auto', 'pre_restore')", name='ck_backup_type'),
        Index('idx_backups_madrasah_date', 'madrasah_id', 'backup_date'),
    )
