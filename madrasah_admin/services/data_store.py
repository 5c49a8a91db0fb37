# madrasah_admin/services/data_store.py
"""Tenant-scoped query/insert/delete over the backup tables."""
import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import delete, insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import PermissionDenied, StoreError
from ..core.permissions import TableAction, table_action_allowed
from .backup_tables import TENANT_COLUMN, get_table
from .row_codec import encode_row

logger = logging.getLogger(__name__)


class TenantDataStore:
    """
    Every statement issued here is filtered by (or stamped with) one
    madrasah id. When ``actor`` is given, the table policy is checked
    first; ``actor=None`` is the trusted service role.
    """

    def __init__(self, db: AsyncSession, madrasah_id: UUID, actor: Optional[Any] = None):
        self.db = db
        self.madrasah_id = madrasah_id
        self.actor = actor

    def _authorize(self, table_name: str, action: TableAction):
        if self.actor is None:
            return
        if getattr(self.actor, "madrasah_id", None) != self.madrasah_id:
            raise PermissionDenied("Cannot act on another madrasah's data")
        if not table_action_allowed(self.actor.role, table_name, action):
            raise PermissionDenied(f"Role not allowed to {action.value} {table_name}")

    async def fetch_rows(self, table_name: str) -> List[Dict[str, Any]]:
        """All rows of the tenant in stable order, encoded as JSON-safe dicts."""
        self._authorize(table_name, TableAction.READ)
        table = get_table(table_name)
        stmt = (
            select(table)
            .where(table.c[TENANT_COLUMN] == self.madrasah_id)
            .order_by(table.c.created_at, table.c.id)
        )
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"Error reading {table_name} for madrasah {self.madrasah_id}: {e}")
            raise StoreError(table_name, "read", e) from e
        return [encode_row(table, row) for row in result.mappings()]

    async def delete_rows(self, table_name: str) -> int:
        self._authorize(table_name, TableAction.DELETE)
        table = get_table(table_name)
        stmt = delete(table).where(table.c[TENANT_COLUMN] == self.madrasah_id)
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"Error deleting from {table_name} for madrasah {self.madrasah_id}: {e}")
            raise StoreError(table_name, "delete", e) from e
        return result.rowcount or 0

    async def insert_rows(self, table_name: str, rows: List[Dict[str, Any]]) -> int:
        """Insert already-decoded rows; rows belonging to another tenant are refused."""
        if not rows:
            return 0
        self._authorize(table_name, TableAction.WRITE)
        table = get_table(table_name)
        for row in rows:
            if row.get(TENANT_COLUMN) != self.madrasah_id:
                raise PermissionDenied(f"Refusing to write a row of another madrasah into {table_name}")
        try:
            # executemany needs one key set per statement
            for group in _group_by_keys(rows):
                await self.db.execute(insert(table), group)
        except SQLAlchemyError as e:
            logger.error(f"Error inserting into {table_name} for madrasah {self.madrasah_id}: {e}")
            raise StoreError(table_name, "insert", e) from e
        return len(rows)


def _group_by_keys(rows: List[Dict[str, Any]]) -> List[List[Dict[str, Any]]]:
    groups: Dict[frozenset, List[Dict[str, Any]]] = {}
    for row in rows:
        groups.setdefault(frozenset(row), []).append(row)
    return list(groups.values())
