"""Shared constants for the dwh_schema package."""

STRUCTURE_BLOB_NAME = "TableStructure.str2"
UPDATE_MARKER_BLOB_NAME = "TableStructure.updated"

# Name is misspelled on the database side; must match verbatim.
SCHEMA_PROCEDURE = "CreateOrRepalceExternalTablev2"

DEFAULT_MAX_RETRIES = 5
DEFAULT_BACKOFF_SECONDS = 1.0

DEFAULT_BLOB_TIMEOUT_SECONDS = 60 * 60
DEFAULT_BLOB_RETRY_INITIAL_BACKOFF = 5
DEFAULT_BLOB_RETRY_TOTAL = 5

DEFAULT_ODBC_DRIVER = "ODBC Driver 18 for SQL Server"
