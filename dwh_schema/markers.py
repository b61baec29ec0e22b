"""Change detection between the descriptor blob and the update marker.

Each container holds two blobs whose timestamps matter:

* the descriptor (``TableStructure.str2``) -- last edited at time *D*;
* the update marker (``TableStructure.updated``) -- empty, last written by
  this tool at time *U* after a successful schema sync.

A container is up to date iff the marker exists and ``U >= D``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from .config import UpdaterSettings
from .storage import BlobMarker

logger = logging.getLogger(__name__)

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def _effective_timestamp(store: Any, marker: BlobMarker) -> datetime:
    """Return the marker's timestamp, fetching properties if not yet loaded."""
    if not marker.properties_loaded:
        marker = store.fetch_properties(marker)
    ts = marker.timestamp
    if ts is None:
        logger.warning("%s/%s has no timestamp; treating as oldest", marker.container, marker.name)
        return _OLDEST
    return ts


def needs_update(
    store: Any, container: str, settings: Optional[UpdaterSettings] = None,
) -> bool:
    """Return ``True`` if *container*'s schema must be (re-)synchronized."""
    settings = settings or UpdaterSettings()

    update_marker = store.get_marker(container, settings.update_marker_blob_name)
    if update_marker is None:
        logger.debug("%s: no update marker, update required", container)
        return True

    descriptor = store.get_marker(container, settings.structure_blob_name)
    if descriptor is None:
        return False

    updated_at = _effective_timestamp(store, update_marker)
    edited_at = _effective_timestamp(store, descriptor)
    logger.debug(
        "%s: descriptor edited %s, schema updated %s", container, edited_at, updated_at,
    )
    return edited_at > updated_at


def stamp_update(
    store: Any, container: str, settings: Optional[UpdaterSettings] = None,
) -> None:
    """Write the empty update marker, recording a successful sync now."""
    settings = settings or UpdaterSettings()
    store.write_empty(container, settings.update_marker_blob_name)
