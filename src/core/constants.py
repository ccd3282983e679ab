"""Core constants used across docshift modules.

This module centralizes defaults and wire-format names.
Keeping values here avoids magic literals in pipeline logic.
"""

from __future__ import annotations

IDENTIFIER_FIELD = "_id"
DEFAULT_COUCHDB_URL = "http://localhost:5984"
COUCHDB_UUIDS_PATH = "/_uuids"
TABS_INDENT_OPTION = "tabs"
TAB_INDENT = "\t"
DEFAULT_CHUNK_SIZE = 64 * 1024
DEFAULT_HIGH_WATER_MARK = 16 * 1024
DEFAULT_PROGRESS_INTERVAL = 100
MAX_IDENTIFIER_BATCH_SIZE = 5000
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0
SOURCE_ENCODING = "utf-8"
TARGET_ENCODING = "utf-8"
ARRAY_OPEN = "["
ARRAY_CLOSE = "\n]\n"
ARRAY_FIRST_SEPARATOR = "\n"
ARRAY_SEPARATOR = ",\n"
CLEAR_IDS_TRANSFORMATION = "clear-ids"
ADD_IDS_TRANSFORMATION = "add-ids"
CSV_TRANSFORMATION = "csv"
