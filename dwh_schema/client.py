"""High-level facade for the external-table schema updater.

``SchemaUpdater`` is the primary user-facing entry point::

    from dwh_schema import SchemaUpdater

    updater = SchemaUpdater("mystorage", "base64key==", "Server=...;Password=...")

    # Every container in the storage account:
    results = updater.run()

    # A single container:
    results = updater.run("trades")

Containers are processed one at a time in listing order.  A failure in one
container is logged and reported as an ``error`` result; the run carries on
with the next container.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any, Callable, Iterator, List, Optional, Union

from .config import UpdaterSettings, expand_env, load_config_file, settings_from_config
from .connection import AzureSQLConnection, load_dotenv
from .executor import RetryingExecutor
from .storage import BlobStore
from .sync import STATUS_ERROR, sync_container

logger = logging.getLogger(__name__)


class SchemaUpdater:
    """Synchronize external-table schemas for one storage account.

    Args:
        account_name:    Storage account name.
        account_key:     Storage account shared key.
        sql_credentials: Connection string for the SQL endpoint (ADO.NET or
                         ODBC form).
        container:       Default container for :meth:`run`; ``None`` means
                         every container in the account.
        settings:        Retry policy, timeouts and blob names.
        store:           Blob store override (defaults to :class:`BlobStore`).
        sleep:           Sleep function used between retries.
    """

    def __init__(
        self,
        account_name: str,
        account_key: str,
        sql_credentials: str,
        *,
        container: Optional[str] = None,
        settings: Optional[UpdaterSettings] = None,
        store: Any = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.account_name = account_name
        self._account_key = account_key
        self._sql_credentials = sql_credentials
        self.container = container
        self.settings = settings or UpdaterSettings()
        self.store = store or BlobStore(account_name, account_key, self.settings)
        self.executor = RetryingExecutor(self._connect, self.settings, sleep=sleep)

    # -- factory ------------------------------------------------------------

    @classmethod
    def from_config(
        cls,
        config: Union[str, Path, dict],
        *,
        account_name: Optional[str] = None,
        account_key: Optional[str] = None,
        sql_credentials: Optional[str] = None,
        container: Optional[str] = None,
    ) -> "SchemaUpdater":
        """Create a ``SchemaUpdater`` from a YAML/JSON file or parsed dict.

        Keyword arguments override values from the file.  ``${VAR}``
        references in string values are expanded from the environment.

        .. code-block:: yaml

            blob:
              account_name: mystorage
              account_key: ${BLOB_ACCOUNT_KEY}
            sql:
              credentials: ${SQL_CREDENTIALS}
            retry:
              max_retries: 5
        """
        load_dotenv()

        if isinstance(config, (str, Path)):
            config = load_config_file(config)

        blob = config.get("blob") or {}
        sql = config.get("sql") or {}

        def _opt(value: Any) -> Optional[str]:
            return expand_env(value) if value else None

        name = account_name or _opt(blob.get("account_name"))
        key = account_key or _opt(blob.get("account_key"))
        creds = sql_credentials or _opt(sql.get("credentials"))
        missing = [
            label for label, value in (
                ("blob.account_name", name),
                ("blob.account_key", key),
                ("sql.credentials", creds),
            ) if not value
        ]
        if missing:
            raise ValueError(f"Missing required config value(s): {', '.join(missing)}")

        return cls(
            name,
            key,
            creds,
            container=container or _opt(blob.get("container")),
            settings=settings_from_config(config),
        )

    # -- sql ----------------------------------------------------------------

    def _connect(self) -> AzureSQLConnection:
        return AzureSQLConnection(connection_string=self._sql_credentials)

    # -- containers ---------------------------------------------------------

    def containers(self) -> Iterator[str]:
        """Yield container names to process, in listing order."""
        if self.container:
            yield self.container
            return
        yield from self.store.list_containers()

    def sync_container(self, container: str) -> dict:
        """Synchronize a single container; errors propagate."""
        return sync_container(
            self.store,
            self.executor,
            container,
            self.account_name,
            self._account_key,
            self.settings,
        )

    def run(self, container: Optional[str] = None) -> List[dict]:
        """Synchronize *container*, or every container when ``None``.

        Returns one result dict per container.  Failed containers produce
        ``{"container": ..., "status": "error", "error": ...}``.
        """
        if container is not None:
            names: Iterator[str] = iter([container])
        else:
            names = self.containers()

        results: List[dict] = []
        for name in names:
            try:
                results.append(self.sync_container(name))
            except Exception as exc:
                logger.error("Failed to sync container %s: %s", name, exc)
                results.append({"container": name, "status": STATUS_ERROR, "error": str(exc)})
        return results

    def __repr__(self) -> str:
        return (
            f"SchemaUpdater(account_name={self.account_name!r}, "
            f"container={self.container!r}, max_retries={self.settings.max_retries})"
        )
