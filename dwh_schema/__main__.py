"""CLI entry-point:  python -m dwh_schema [OPTIONS]

Examples:
    python -m dwh_schema --blobAccountName acct --blobAccountKey KEY \\
        --sqlCredentials "Server=...;Database=...;User ID=...;Password=..."
    python -m dwh_schema --config updater.yaml --blobContainer trades -v

Missing required values print the usage line and exit normally, the same
way a completed run does.
"""

import argparse
import logging
import os
from typing import List, Optional

from .client import SchemaUpdater
from .connection import load_dotenv
from .sync import STATUS_ERROR

logger = logging.getLogger(__name__)

USAGE = (
    "Usage: --blobAccountName %account_name% --blobAccountKey %account_key% "
    "--sqlCredentials %sql_credentials% [--blobContainer %blob_container%]"
)


def _log_summary(results: list) -> None:
    """Log a human-readable summary of per-container results."""
    errors = [r for r in results if r.get("status") == STATUS_ERROR]
    updated = 0

    logger.info("=" * 72)
    logger.info("SCHEMA UPDATE SUMMARY")
    logger.info("=" * 72)

    for r in results:
        if r.get("status") == STATUS_ERROR:
            logger.error("  %-40s  ERROR: %s", r["container"], r.get("error", "unknown"))
            continue
        tables = r.get("tables", [])
        if tables:
            updated += 1
        logger.info(
            "  %-40s  %-14s | %d table(s) | %6.1fs",
            r["container"], r["status"], len(tables), r.get("duration_seconds", 0),
        )

    logger.info("-" * 72)
    logger.info(
        "Processed: %d container(s) | %d updated", len(results) - len(errors), updated,
    )
    if errors:
        logger.warning("Failed: %d container(s)", len(errors))
    logger.info("=" * 72)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dwh_schema",
        description="Synchronize external-table schemas from blob descriptors.",
    )
    parser.add_argument("--blobAccountName", default=None, help="Storage account name")
    parser.add_argument("--blobAccountKey", default=None, help="Storage account key")
    parser.add_argument(
        "--sqlCredentials", default=None, help="SQL endpoint connection string",
    )
    parser.add_argument(
        "--blobContainer",
        default=None,
        help="Only process this container (default: every container)",
    )
    parser.add_argument(
        "--config", default=None, help="Path to YAML or JSON settings file",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug-level logging",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    try:
        args, extras = _build_parser().parse_known_args(argv)
    except SystemExit as exc:
        # --help exits 0; a flag missing its value exits non-zero.
        if exc.code:
            print(USAGE)
        return

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if extras:
        logger.debug("Ignoring unrecognized arguments: %s", extras)

    try:
        load_dotenv()
        account_name = args.blobAccountName or os.environ.get("BLOB_ACCOUNT_NAME")
        account_key = args.blobAccountKey or os.environ.get("BLOB_ACCOUNT_KEY")
        sql_credentials = args.sqlCredentials or os.environ.get("SQL_CREDENTIALS")
        container = args.blobContainer or os.environ.get("BLOB_CONTAINER")

        if args.config:
            try:
                updater = SchemaUpdater.from_config(
                    args.config,
                    account_name=account_name,
                    account_key=account_key,
                    sql_credentials=sql_credentials,
                    container=container,
                )
            except ValueError as exc:
                logger.error("Invalid config %s: %s", args.config, exc)
                print(USAGE)
                return
        elif not (account_name and account_key and sql_credentials):
            print(USAGE)
            return
        else:
            updater = SchemaUpdater(
                account_name, account_key, sql_credentials, container=container,
            )

        logger.info("Updater: %s", updater)
        results = updater.run()
        _log_summary(results)
    except Exception as exc:
        logger.exception("Schema update failed: %s", exc)

    logger.info("Schema update finished")


if __name__ == "__main__":
    main()
