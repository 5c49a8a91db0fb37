# madrasah_admin/services/row_codec.py
"""Conversion between database rows and the JSON rows stored in backups."""
import logging
import uuid
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Mapping

from sqlalchemy import Boolean, Date, DateTime, Float, Integer, Numeric, Table, Uuid

logger = logging.getLogger(__name__)


class RowDecodeError(ValueError):
    def __init__(self, table: str, column: str, value: Any):
        super().__init__(f"Invalid value for {table}.{column}: {value!r}")
        self.table = table
        self.column = column


def encode_value(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    return value


def encode_row(table: Table, row: Mapping[str, Any]) -> Dict[str, Any]:
    return {column.key: encode_value(row[column.key]) for column in table.columns}


def _decode_value(column_type: Any, value: Any) -> Any:
    # DateTime is checked before Date; Float before Numeric (Float subclasses Numeric)
    if isinstance(column_type, Uuid):
        return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))
    if isinstance(column_type, DateTime):
        return value if isinstance(value, datetime) else datetime.fromisoformat(str(value))
    if isinstance(column_type, Date):
        if isinstance(value, datetime):
            return value.date()
        return value if isinstance(value, date) else date.fromisoformat(str(value)[:10])
    if isinstance(column_type, Float):
        return float(value)
    if isinstance(column_type, Numeric):
        return Decimal(str(value))
    if isinstance(column_type, Boolean):
        if isinstance(value, str):
            return value.lower() in ("true", "1", "t", "yes")
        return bool(value)
    if isinstance(column_type, Integer):
        if isinstance(value, bool):
            raise ValueError("boolean is not an integer")
        return int(value)
    return value


def decode_row(table: Table, data: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Decode one stored row against the table's current columns.

    Keys that are no longer columns are dropped; columns missing from the
    stored row are left to their defaults.
    """
    decoded: Dict[str, Any] = {}
    for key, value in data.items():
        if key not in table.c:
            logger.warning(f"Dropping unknown column {table.name}.{key} from backup row")
            continue
        if value is None:
            decoded[key] = None
            continue
        try:
            decoded[key] = _decode_value(table.c[key].type, value)
        except (TypeError, ValueError, InvalidOperation):
            raise RowDecodeError(table.name, key, value)
    return decoded
