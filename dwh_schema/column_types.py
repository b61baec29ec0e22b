"""Descriptor column type name -> SQL column type."""

from __future__ import annotations

from typing import Dict, Optional

DEFAULT_SQL_TYPE = "VARCHAR(256)"

SQL_TYPE_MAP: Dict[str, str] = {
    "DateTime": "DATETIME",
    "Double": "Decimal",
    "Decimal": "Decimal",
    "Boolean": "Bit",
}


def map_column_type(type_name: Optional[str]) -> str:
    """Return the SQL type for *type_name* (exact match, else ``VARCHAR(256)``)."""
    if type_name is None:
        return DEFAULT_SQL_TYPE
    return SQL_TYPE_MAP.get(type_name, DEFAULT_SQL_TYPE)
