"""Table-structure descriptor model.

A descriptor blob is a JSON document of the form::

    {"Tables": [
        {"TableName": "Trades",
         "AzureBlobFolder": "trades/",
         "Columns": [{"ColumnName": "Date", "ColumnType": "DateTime"}]}
    ]}

Older descriptors spell the column list ``Colums``.  Both spellings are
accepted; :func:`_normalize_columns` picks one so the rest of the package
only ever sees :attr:`TableStructure.columns`.  Keys are matched
case-insensitively.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple


class DescriptorError(ValueError):
    """Raised when a descriptor blob cannot be turned into a TablesStructure."""


@dataclass(frozen=True)
class ColumnInfo:
    column_name: str
    column_type: str


@dataclass(frozen=True)
class TableStructure:
    table_name: str
    blob_folder: str
    columns: Tuple[ColumnInfo, ...]


@dataclass(frozen=True)
class TablesStructure:
    tables: Tuple[TableStructure, ...]

    @property
    def table_names(self) -> List[str]:
        return [t.table_name for t in self.tables]


def _lower_keys(obj: Any, where: str) -> Dict[str, Any]:
    if not isinstance(obj, dict):
        raise DescriptorError(f"{where} must be an object, got {type(obj).__name__}")
    return {str(k).lower(): v for k, v in obj.items()}


def _normalize_columns(raw_table: Dict[str, Any]) -> List[Any]:
    """Return the first non-empty of ``Columns`` / ``Colums`` (or ``[]``)."""
    for key in ("columns", "colums"):
        value = raw_table.get(key)
        if value:
            return value
    return []


def _parse_column(raw: Any, where: str) -> ColumnInfo:
    col = _lower_keys(raw, where)
    name = col.get("columnname")
    if not name:
        raise DescriptorError(f"{where} has no ColumnName")
    col_type = col.get("columntype")
    return ColumnInfo(str(name), "" if col_type is None else str(col_type))


def _parse_table(raw: Any, index: int) -> TableStructure:
    where = f"Tables[{index}]"
    table = _lower_keys(raw, where)
    name = table.get("tablename")
    if not name:
        raise DescriptorError(f"{where} has no TableName")
    folder: Optional[str] = table.get("azureblobfolder")
    raw_columns = _normalize_columns(table)
    if not isinstance(raw_columns, list):
        raise DescriptorError(f"{where} columns must be a list")
    columns = tuple(
        _parse_column(c, f"{where}.Columns[{i}]") for i, c in enumerate(raw_columns)
    )
    return TableStructure(str(name), folder or "", columns)


def parse_tables_structure(text: str) -> TablesStructure:
    """Deserialize descriptor *text* into a :class:`TablesStructure`."""
    try:
        raw = json.loads(text.lstrip("\ufeff"))
    except json.JSONDecodeError as exc:
        raise DescriptorError(f"Descriptor is not valid JSON: {exc}") from exc

    root = _lower_keys(raw, "Descriptor")
    tables = root.get("tables")
    if tables is None:
        raise DescriptorError("Descriptor has no Tables list")
    if not isinstance(tables, list):
        raise DescriptorError("Descriptor Tables must be a list")
    return TablesStructure(tuple(_parse_table(t, i) for i, t in enumerate(tables)))
