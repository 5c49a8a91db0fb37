# madrasah_admin/services/backup_tables.py
"""Fixed set of tenant tables covered by backup and restore, in dependency order."""
from typing import Tuple
from sqlalchemy import Table

from ..models import Base

# Referenced tables come before the tables that reference them. Restore
# inserts in this order and deletes in the reverse order.
BACKUP_TABLES: Tuple[str, ...] = (
    "students",
    "teachers",
    "classes",
    "class_teachers",
    "attendance",
    "fees",
    "income",
    "expense",
    "salaries",
    "loans",
    "learning_reports",
)

RESTORE_DELETE_ORDER: Tuple[str, ...] = tuple(reversed(BACKUP_TABLES))

TENANT_COLUMN = "madrasah_id"


def get_table(name: str) -> Table:
    if name not in BACKUP_TABLES:
        raise KeyError(f"{name} is not a backup table")
    return Base.metadata.tables[name]


def missing_tables(payload: dict) -> Tuple[str, ...]:
    """Backup table keys absent from a stored payload."""
    if not isinstance(payload, dict):
        return BACKUP_TABLES
    return tuple(name for name in BACKUP_TABLES if name not in payload)
