"""Run schema commands against the SQL endpoint with bounded retry.

Every attempt opens its own connection and closes it before the next one
starts, whether the attempt succeeded or not.  Backoff is linear: after the
*n*-th failure the executor sleeps ``n * backoff_seconds``.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

from .config import UpdaterSettings

logger = logging.getLogger(__name__)


class SchemaExecutionError(RuntimeError):
    """A schema command still failed after the configured number of retries."""

    def __init__(self, command_label: str, attempts: int) -> None:
        super().__init__(
            f"Schema command for {command_label} failed after {attempts} attempt(s)"
        )
        self.command_label = command_label
        self.attempts = attempts


class RetryingExecutor:
    """Execute SQL commands, retrying transient failures.

    Args:
        connect:  Zero-argument factory returning a context manager that
                  yields an open DB-API connection, e.g.
                  ``lambda: AzureSQLConnection(connection_string=...)``.
        settings: Retry policy (``max_retries``, ``backoff_seconds``).
        sleep:    Sleep function; injectable for tests.
    """

    def __init__(
        self,
        connect: Callable[[], Any],
        settings: Optional[UpdaterSettings] = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._connect = connect
        self.settings = settings or UpdaterSettings()
        self._sleep = sleep

    def _run_once(self, command: str) -> None:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(command)
            conn.commit()

    def execute(self, command: str, label: str = "command") -> int:
        """Execute *command*, returning the number of attempts it took.

        Raises :class:`SchemaExecutionError` once ``max_retries`` retries
        have failed; the last underlying error is chained as ``__cause__``.
        """
        attempt = 0
        while True:
            try:
                self._run_once(command)
            except Exception as exc:
                attempt += 1
                logger.warning(
                    "Executing %s failed (attempt %d): %s", label, attempt, exc,
                )
                if attempt > self.settings.max_retries:
                    raise SchemaExecutionError(label, attempt) from exc
                delay = attempt * self.settings.backoff_seconds
                logger.info("Retrying %s in %.1fs", label, delay)
                self._sleep(delay)
            else:
                return attempt + 1
