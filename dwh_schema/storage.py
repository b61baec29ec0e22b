"""Azure Blob Storage access for descriptor and marker blobs.

:class:`BlobStore` wraps a ``BlobServiceClient`` authenticated with the
storage account's shared key.  Retry policy and per-operation timeouts come
from :class:`~dwh_schema.config.UpdaterSettings`; this module performs no
retries of its own.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Iterator, Optional

from azure.core.exceptions import ResourceNotFoundError
from azure.storage.blob import BlobServiceClient, ExponentialRetry

from .config import UpdaterSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BlobMarker:
    """A blob reference whose timestamps may not have been fetched yet."""

    container: str
    name: str
    last_modified: Optional[datetime] = None
    creation_time: Optional[datetime] = None

    @property
    def properties_loaded(self) -> bool:
        return self.last_modified is not None or self.creation_time is not None

    @property
    def timestamp(self) -> Optional[datetime]:
        """``last_modified`` if known, else ``creation_time``."""
        return self.last_modified or self.creation_time


class BlobStore:
    """Shared-key blob access for one storage account.

    Usage::

        store = BlobStore("mystorage", "base64key==")
        for container in store.list_containers():
            text = store.read_text(container, "TableStructure.str2")
    """

    def __init__(
        self,
        account_name: str,
        account_key: str,
        settings: Optional[UpdaterSettings] = None,
        *,
        service_client: Any = None,
    ) -> None:
        self.account_name = account_name
        self._account_key = account_key
        self.settings = settings or UpdaterSettings()
        self._service = service_client

    @property
    def account_url(self) -> str:
        return f"https://{self.account_name}.blob.core.windows.net"

    def _get_service(self) -> Any:
        """Return the ``BlobServiceClient`` (created on first use)."""
        if self._service is None:
            retry = ExponentialRetry(
                initial_backoff=self.settings.blob_retry_initial_backoff,
                retry_total=self.settings.blob_retry_total,
            )
            self._service = BlobServiceClient(
                account_url=self.account_url,
                credential={
                    "account_name": self.account_name,
                    "account_key": self._account_key,
                },
                retry_policy=retry,
            )
            logger.debug("BlobServiceClient initialized for %s", self.account_url)
        return self._service

    def _blob_client(self, container: str, blob_name: str) -> Any:
        return self._get_service().get_blob_client(container=container, blob=blob_name)

    # -- listing ------------------------------------------------------------

    def list_containers(self) -> Iterator[str]:
        """Yield every container name, one listing page at a time."""
        pages = self._get_service().list_containers(
            timeout=self.settings.blob_timeout_seconds,
        ).by_page()
        for page_no, page in enumerate(pages, 1):
            names = [props.name for props in page]
            logger.debug("Container listing page %d: %d container(s)", page_no, len(names))
            yield from names

    # -- markers ------------------------------------------------------------

    def get_marker(self, container: str, blob_name: str) -> Optional[BlobMarker]:
        """Return an unloaded :class:`BlobMarker` if the blob exists, else ``None``."""
        client = self._blob_client(container, blob_name)
        if not client.exists(timeout=self.settings.blob_timeout_seconds):
            return None
        return BlobMarker(container, blob_name)

    def fetch_properties(self, marker: BlobMarker) -> BlobMarker:
        """Return a copy of *marker* with its timestamps loaded."""
        client = self._blob_client(marker.container, marker.name)
        props = client.get_blob_properties(timeout=self.settings.blob_timeout_seconds)
        return replace(
            marker,
            last_modified=props.last_modified,
            creation_time=getattr(props, "creation_time", None),
        )

    # -- content ------------------------------------------------------------

    def read_text(self, container: str, blob_name: str) -> Optional[str]:
        """Download *blob_name* as UTF-8 text, or ``None`` if it does not exist."""
        client = self._blob_client(container, blob_name)
        try:
            downloader = client.download_blob(
                encoding="UTF-8", timeout=self.settings.blob_timeout_seconds,
            )
            return downloader.readall()
        except ResourceNotFoundError:
            logger.debug("%s/%s not found", container, blob_name)
            return None

    def write_empty(self, container: str, blob_name: str) -> None:
        """Create or overwrite *blob_name* with zero-length content."""
        client = self._blob_client(container, blob_name)
        client.upload_blob(
            b"", overwrite=True, timeout=self.settings.blob_timeout_seconds,
        )
        logger.debug("Wrote empty blob %s/%s", container, blob_name)

    def __repr__(self) -> str:
        return f"BlobStore(account_name={self.account_name!r})"
