"""Runtime settings and config-file loading.

:class:`UpdaterSettings` carries the retry policy and blob timeouts that the
executor and blob store are constructed with.  Config files may be YAML or
JSON (chosen by extension); string values may reference environment
variables as ``${VAR}``.

Example YAML::

    blob:
      account_name: mystorage
      account_key: ${BLOB_ACCOUNT_KEY}
      container: trades          # optional
    sql:
      credentials: ${SQL_CREDENTIALS}
    retry:
      max_retries: 5
      backoff_seconds: 1
"""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Union

from ._constants import (
    DEFAULT_BACKOFF_SECONDS,
    DEFAULT_BLOB_RETRY_INITIAL_BACKOFF,
    DEFAULT_BLOB_RETRY_TOTAL,
    DEFAULT_BLOB_TIMEOUT_SECONDS,
    DEFAULT_MAX_RETRIES,
    STRUCTURE_BLOB_NAME,
    UPDATE_MARKER_BLOB_NAME,
)


@dataclass(frozen=True)
class UpdaterSettings:
    """Retry policy, timeouts and blob names for one updater run."""

    max_retries: int = DEFAULT_MAX_RETRIES
    backoff_seconds: float = DEFAULT_BACKOFF_SECONDS
    blob_timeout_seconds: int = DEFAULT_BLOB_TIMEOUT_SECONDS
    blob_retry_initial_backoff: int = DEFAULT_BLOB_RETRY_INITIAL_BACKOFF
    blob_retry_total: int = DEFAULT_BLOB_RETRY_TOTAL
    structure_blob_name: str = STRUCTURE_BLOB_NAME
    update_marker_blob_name: str = UPDATE_MARKER_BLOB_NAME

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.backoff_seconds < 0:
            raise ValueError(
                f"backoff_seconds must be >= 0, got {self.backoff_seconds}"
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UpdaterSettings":
        """Build settings from a flat mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


def expand_env(value: str) -> str:
    """Expand ``${VAR}`` references in *value* with environment variables."""

    def _repl(m):
        name = m.group(1)
        if name not in os.environ:
            raise KeyError(
                f"Environment variable {name!r} is not set "
                f"(referenced in config as ${{{name}}})"
            )
        return os.environ[name]

    return re.sub(r"\$\{(\w+)}", _repl, str(value))


def load_config_file(path: Union[str, Path]) -> dict:
    """Load a YAML or JSON config file, chosen by extension."""
    p = Path(path)
    text = p.read_text()
    if p.suffix in (".yaml", ".yml"):
        import yaml

        data = yaml.safe_load(text)
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"Config file {p} must contain a mapping at the top level")
    return data


def settings_from_config(config: dict) -> UpdaterSettings:
    """Merge the ``retry`` and ``blob`` sections of *config* into settings."""
    merged: Dict[str, Any] = {}
    retry = config.get("retry") or {}
    blob = config.get("blob") or {}
    if "max_retries" in retry:
        merged["max_retries"] = int(retry["max_retries"])
    if "backoff_seconds" in retry:
        merged["backoff_seconds"] = float(retry["backoff_seconds"])
    if "timeout_seconds" in blob:
        merged["blob_timeout_seconds"] = int(blob["timeout_seconds"])
    if "retry_initial_backoff" in blob:
        merged["blob_retry_initial_backoff"] = int(blob["retry_initial_backoff"])
    if "retry_total" in blob:
        merged["blob_retry_total"] = int(blob["retry_total"])
    if "structure_blob" in blob:
        merged["structure_blob_name"] = str(blob["structure_blob"])
    if "update_marker_blob" in blob:
        merged["update_marker_blob_name"] = str(blob["update_marker_blob"])
    return UpdaterSettings.from_dict(merged)
