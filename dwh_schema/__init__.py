"""dwh_schema -- sync external-table schemas from blob structure descriptors."""

from .client import SchemaUpdater
from .config import UpdaterSettings
from .connection import AzureSQLConnection
from .executor import RetryingExecutor, SchemaExecutionError
from .storage import BlobMarker, BlobStore
from .structure import ColumnInfo, DescriptorError, TableStructure, TablesStructure
from .sync import sync_container

__all__ = [
    "SchemaUpdater",
    "UpdaterSettings",
    "AzureSQLConnection",
    "RetryingExecutor",
    "SchemaExecutionError",
    "BlobMarker",
    "BlobStore",
    "ColumnInfo",
    "DescriptorError",
    "TableStructure",
    "TablesStructure",
    "sync_container",
]
