"""SQL text for the external-table schema procedure.

All command rendering is isolated here so it can be tested independently
from the blob and execution layers.  Column names and parameter values are
inserted verbatim; descriptors are trusted input.
"""

from __future__ import annotations

from typing import Dict, Iterable

from ._constants import SCHEMA_PROCEDURE
from .column_types import map_column_type
from .structure import ColumnInfo, TablesStructure


def build_column_list(columns: Iterable[ColumnInfo]) -> str:
    """Render ``[name] TYPE`` for each column, joined by ``", "``."""
    return ", ".join(
        f"[{c.column_name}] {map_column_type(c.column_type)}" for c in columns
    )


def build_column_lists(structure: TablesStructure) -> Dict[str, str]:
    """Return ``{table_name: column_list}`` for every table in *structure*."""
    return {t.table_name: build_column_list(t.columns) for t in structure.tables}


def build_schema_command(
    account_name: str,
    account_key: str,
    table_name: str,
    container_name: str,
    blob_folder: str,
    column_list: str,
) -> str:
    """Return the ``exec`` statement that (re)creates one external table.

    ``@FileFormat`` is always ``NULL`` so the destination infers it.
    """
    return (
        f"exec {SCHEMA_PROCEDURE} @StorageAccountName='{account_name}', "
        f"@StorageAccountKey='{account_key}', @containername='{container_name}', "
        f"@TableName='{table_name}', @AzureBlobFolder='{blob_folder}', "
        f"@ColumnList='{column_list}', @FileFormat=NULL"
    )
