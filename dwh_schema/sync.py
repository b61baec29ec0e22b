"""Per-container schema synchronization.

For one container:

1. read and parse the descriptor blob (absent -> nothing to manage);
2. ask :func:`~dwh_schema.markers.needs_update` whether the descriptor
   changed since the last successful sync;
3. render one column list per table;
4. execute the schema procedure for each table, in descriptor order;
5. stamp the update marker once every table succeeded.

A table whose command exhausts its retries aborts the remaining tables of
the container and the error propagates.  Tables applied before the failure
stay applied and the marker is not written, so the next run retries the
whole container.
"""

from __future__ import annotations

import logging
import time
from typing import Any, List, Optional

from . import markers, queries
from .config import UpdaterSettings
from .executor import RetryingExecutor
from .structure import parse_tables_structure

logger = logging.getLogger(__name__)

STATUS_UPDATED = "updated"
STATUS_UP_TO_DATE = "up_to_date"
STATUS_NO_DESCRIPTOR = "no_descriptor"
STATUS_ERROR = "error"


def _result(
    container: str, status: str, tables: Optional[List[dict]] = None, t0: Optional[float] = None,
) -> dict:
    elapsed = time.monotonic() - t0 if t0 is not None else 0.0
    return {
        "container": container,
        "status": status,
        "tables": tables or [],
        "duration_seconds": round(elapsed, 2),
    }


def sync_container(
    store: Any,
    executor: RetryingExecutor,
    container: str,
    account_name: str,
    account_key: str,
    settings: Optional[UpdaterSettings] = None,
) -> dict:
    """Synchronize the external-table schemas described in *container*.

    Args:
        store:        Blob store (see :class:`~dwh_schema.storage.BlobStore`).
        executor:     Executor used for every schema command.
        container:    Container name.
        account_name: Storage account name passed to the procedure.
        account_key:  Storage account key passed to the procedure.
        settings:     Blob names; defaults to :class:`UpdaterSettings()`.

    Returns:
        Summary dict with ``container``, ``status``, ``tables`` and
        ``duration_seconds``.
    """
    settings = settings or UpdaterSettings()
    t0 = time.monotonic()
    logger.info("Processing container - %s", container)

    text = store.read_text(container, settings.structure_blob_name)
    if text is None:
        logger.debug("%s: no %s, skipping", container, settings.structure_blob_name)
        return _result(container, STATUS_NO_DESCRIPTOR, t0=t0)
    structure = parse_tables_structure(text)

    if not markers.needs_update(store, container, settings):
        logger.info("%s: schema is up to date", container)
        return _result(container, STATUS_UP_TO_DATE, t0=t0)

    column_lists = queries.build_column_lists(structure)

    applied: List[dict] = []
    for table in structure.tables:
        logger.info("Setting schema for table %s", table.table_name)
        sql = queries.build_schema_command(
            account_name,
            account_key,
            table.table_name,
            container,
            table.blob_folder,
            column_lists[table.table_name],
        )
        attempts = executor.execute(sql, label=f"{container}/{table.table_name}")
        applied.append({
            "table": table.table_name,
            "columns": len(table.columns),
            "attempts": attempts,
        })

    markers.stamp_update(store, container, settings)
    logger.info("%s: %d table(s) updated", container, len(applied))
    return _result(container, STATUS_UPDATED, applied, t0)
