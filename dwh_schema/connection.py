"""Azure SQL connection helper.

Provides :class:`AzureSQLConnection`, a connection wrapper with
context-manager support, and :func:`normalize_connection_string`, which turns
the ADO.NET-style credentials string accepted on the command line into an
ODBC connection string.

The connection string is resolved in order: explicit argument >
``SQL_CREDENTIALS`` environment variable.  A ``.env`` file is loaded
automatically (if present) via :func:`load_dotenv`.

Env vars:
    SQL_CREDENTIALS -- full connection string (ADO.NET or ODBC form)
    ODBC_DRIVER     -- ODBC driver name (default: ODBC Driver 18 for SQL Server)
"""

from __future__ import annotations

import logging
import os
from types import TracebackType
from typing import Dict, List, Optional, Tuple, Type

import pyodbc

from ._constants import DEFAULT_ODBC_DRIVER

logger = logging.getLogger(__name__)

# ADO.NET keyword -> ODBC keyword
_KEYWORD_ALIASES: Dict[str, str] = {
    "data source": "Server",
    "address": "Server",
    "addr": "Server",
    "network address": "Server",
    "server": "Server",
    "initial catalog": "Database",
    "database": "Database",
    "user id": "Uid",
    "user": "Uid",
    "uid": "Uid",
    "password": "Pwd",
    "pwd": "Pwd",
    "encrypt": "Encrypt",
    "trustservercertificate": "TrustServerCertificate",
    "connection timeout": "Connection Timeout",
    "connect timeout": "Connection Timeout",
    "driver": "Driver",
}

# Keywords with no ODBC equivalent; dropped rather than passed through.
_IGNORED_KEYWORDS = frozenset({
    "persist security info",
    "multipleactiveresultsets",
    "pooling",
    "application name",
})

_dotenv_loaded: set = set()


def load_dotenv(path: Optional[str] = None) -> None:
    """Read a simple key=value .env file into ``os.environ`` (no dependencies).

    Subsequent calls with the same resolved *path* are no-ops.
    """
    if path is None:
        path = os.path.join(os.getcwd(), ".env")
    resolved = os.path.abspath(path)
    if resolved in _dotenv_loaded:
        return
    if not os.path.isfile(resolved):
        return
    with open(resolved) as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#") and "=" in line:
                k, v = line.split("=", 1)
                os.environ.setdefault(k.strip(), v.strip().strip("'\""))
    _dotenv_loaded.add(resolved)
    logger.debug("Loaded environment from %s", resolved)


def _split_pairs(conn_str: str) -> List[Tuple[str, str]]:
    pairs: List[Tuple[str, str]] = []
    for part in conn_str.split(";"):
        part = part.strip()
        if not part:
            continue
        if "=" not in part:
            raise ValueError(f"Malformed connection string segment: {part!r}")
        k, v = part.split("=", 1)
        pairs.append((k.strip(), v.strip()))
    return pairs


def normalize_connection_string(
    conn_str: str, driver: str = DEFAULT_ODBC_DRIVER,
) -> str:
    """Translate an ADO.NET or ODBC connection string into ODBC form.

    Known ADO.NET keywords are renamed, ADO.NET-only keywords are dropped,
    anything else passes through.  A ``Driver`` entry is added when absent.
    """
    out: Dict[str, str] = {}
    for key, value in _split_pairs(conn_str):
        lowered = key.lower()
        if lowered in _IGNORED_KEYWORDS:
            continue
        out[_KEYWORD_ALIASES.get(lowered, key)] = value
    if "Driver" not in out:
        out = {"Driver": f"{{{driver}}}", **out}
    return "".join(f"{k}={v};" for k, v in out.items())


class AzureSQLConnection:
    """Managed connection to an Azure SQL database.

    Usage as a context manager::

        with AzureSQLConnection(connection_string="Server=...;Password=...") as conn:
            cur = conn.cursor()
            cur.execute("SELECT 1")
    """

    def __init__(
        self,
        connection_string: Optional[str] = None,
        driver: Optional[str] = None,
        *,
        dotenv_path: Optional[str] = None,
    ) -> None:
        load_dotenv(dotenv_path)

        self.driver = driver or os.environ.get("ODBC_DRIVER", DEFAULT_ODBC_DRIVER)
        self._raw = connection_string or os.environ.get("SQL_CREDENTIALS")
        self._conn: Optional[pyodbc.Connection] = None

    @property
    def connection_string(self) -> str:
        """Build the ODBC connection string (raises if no credentials)."""
        if not self._raw:
            raise ValueError(
                "No SQL credentials supplied. Pass --sqlCredentials or set "
                "SQL_CREDENTIALS in your environment or .env file."
            )
        return normalize_connection_string(self._raw, self.driver)

    @property
    def server(self) -> Optional[str]:
        """The ``Server`` entry of the connection string, if any."""
        if not self._raw:
            return None
        for key, value in _split_pairs(self._raw):
            if _KEYWORD_ALIASES.get(key.lower()) == "Server":
                return value
        return None

    def connect(self) -> pyodbc.Connection:
        """Open and return a ``pyodbc.Connection``.

        Subsequent calls return the same connection unless :meth:`close` has
        been called.
        """
        if self._conn is not None:
            return self._conn
        logger.debug("Connecting to SQL endpoint %s", self.server or "<unknown server>")
        self._conn = pyodbc.connect(self.connection_string)
        return self._conn

    def close(self) -> None:
        """Close the underlying connection if open."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> pyodbc.Connection:
        return self.connect()

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"AzureSQLConnection(server={self.server!r}, driver={self.driver!r})"
