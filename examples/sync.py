#!/usr/bin/env python3
"""Update external-table schemas using settings from updater.yaml.

Usage:
    python examples/sync.py [container]
"""

import logging
import sys

from dwh_schema import SchemaUpdater

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

if __name__ == "__main__":
    updater = SchemaUpdater.from_config("examples/updater.yaml")
    print(updater)
    container = sys.argv[1] if len(sys.argv) > 1 else None
    for r in updater.run(container):
        tables = ", ".join(t["table"] for t in r.get("tables", []))
        print(f"  {r['container']}: {r['status']} {tables or r.get('error', '')}")
