"""
Database reader layer for the local portal store.

Provides read-only access to Direct Hire applications and their documents
with connection management and deterministic query ordering. Query helpers
take a connection so the writer can reuse them inside its transaction.
"""

import json
import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional

from models.errors import (
    create_db_error,
    create_db_not_found_error,
)

# Default database path relative to repository root
DEFAULT_DB_PATH = "data/portal.db"

APPLICATION_COLUMNS = (
    "id",
    "control_number",
    "name",
    "sex",
    "salary",
    "raw_salary",
    "salary_currency",
    "jobsite",
    "position",
    "job_type",
    "evaluator",
    "employer",
    "status",
    "status_checklist",
    "documents_completed",
    "completed_at",
    "created_at",
    "updated_at",
    "deleted_at",
)

DOCUMENT_COLUMNS = (
    "id",
    "application_id",
    "application_type",
    "document_type",
    "file_name",
    "file_path",
    "file_size",
    "mime_type",
    "meta",
    "created_at",
)


def resolve_db_path(db_path: Optional[str] = None) -> Path:
    """
    Resolve the database path with support for overrides and defaults.

    Resolution order:
    1. Provided db_path parameter
    2. BALIKBAYANI_DB environment variable
    3. BALIKBAYANI_ROOT/data/portal.db
    4. Default path: data/portal.db

    Args:
        db_path: Optional database path override

    Returns:
        Resolved absolute Path to the database
    """
    if db_path is not None:
        path_str = db_path
    else:
        db_env = os.getenv("BALIKBAYANI_DB")
        if db_env:
            path_str = db_env
        else:
            root_env = os.getenv("BALIKBAYANI_ROOT")
            if root_env:
                return Path(root_env) / "data" / "portal.db"
            path_str = DEFAULT_DB_PATH

    path = Path(path_str)

    # If relative, resolve from repository root
    if not path.is_absolute():
        repo_root = Path(__file__).resolve().parents[1]  # db/ -> repo/
        path = repo_root / path

    return path


@contextmanager
def get_connection(db_path: Optional[str] = None):
    """
    Context manager for read-only SQLite connections.

    Args:
        db_path: Optional database path override

    Yields:
        sqlite3.Connection: Database connection

    Raises:
        PortalError: If database file doesn't exist or connection fails
    """
    resolved_path = resolve_db_path(db_path)

    if not resolved_path.exists() or not resolved_path.is_file():
        raise create_db_not_found_error(str(resolved_path))

    conn = None
    try:
        # URI mode allows the read-only flag
        uri = f"file:{resolved_path}?mode=ro"
        conn = sqlite3.connect(uri, uri=True)
        conn.row_factory = sqlite3.Row

        yield conn

    except sqlite3.OperationalError as e:
        error_msg = str(e)
        if "unable to open database" in error_msg.lower():
            raise create_db_not_found_error(str(resolved_path)) from e
        raise create_db_error(error_msg, retryable=True, original_error=e) from e

    except sqlite3.Error as e:
        raise create_db_error(str(e), retryable=False, original_error=e) from e

    finally:
        if conn is not None:
            conn.close()


def _decode_json(value: Optional[str]) -> Any:
    if not value:
        return None
    try:
        return json.loads(value)
    except ValueError:
        return None


def row_to_application(row: sqlite3.Row) -> Dict[str, Any]:
    """Convert an application row, decoding the status_checklist JSON column."""
    record = {column: row[column] for column in APPLICATION_COLUMNS}
    record["status_checklist"] = _decode_json(record["status_checklist"]) or {}
    return record


def row_to_document(row: sqlite3.Row) -> Dict[str, Any]:
    """Convert a document row, decoding the meta JSON column."""
    record = {column: row[column] for column in DOCUMENT_COLUMNS}
    record["meta"] = _decode_json(record["meta"]) or {}
    return record


def query_application(
    conn: sqlite3.Connection, application_id: str, include_deleted: bool = False
) -> Optional[Dict[str, Any]]:
    """
    Fetch one application by id.

    Soft-deleted applications are hidden unless ``include_deleted`` is set.
    """
    query = f"SELECT {', '.join(APPLICATION_COLUMNS)} FROM direct_hire_applications WHERE id = ?"
    if not include_deleted:
        query += " AND deleted_at IS NULL"

    try:
        row = conn.execute(query, (application_id,)).fetchone()
    except sqlite3.Error as e:
        raise create_db_error(str(e), retryable=False, original_error=e) from e

    return row_to_application(row) if row is not None else None


def query_documents(
    conn: sqlite3.Connection,
    application_id: str,
    application_type: str,
    document_type: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    Documents of an application, newest first (created_at DESC, id DESC).

    Args:
        conn: Database connection
        application_id: Owning application
        application_type: Application type discriminator
        document_type: Optional filter on a single document type
    """
    query = (
        f"SELECT {', '.join(DOCUMENT_COLUMNS)} FROM documents "
        "WHERE application_id = ? AND application_type = ?"
    )
    params: List[Any] = [str(application_id), application_type]
    if document_type is not None:
        query += " AND document_type = ?"
        params.append(document_type)
    query += " ORDER BY created_at DESC, id DESC"

    try:
        rows = conn.execute(query, params).fetchall()
    except sqlite3.Error as e:
        raise create_db_error(str(e), retryable=False, original_error=e) from e

    return [row_to_document(row) for row in rows]


def count_applications_between(conn: sqlite3.Connection, start: str, end: str) -> int:
    """
    Count applications created in [start, end), deleted ones included.

    Bounds are ISO dates compared against the ISO ``created_at`` text.
    """
    try:
        row = conn.execute(
            "SELECT COUNT(*) AS total FROM direct_hire_applications "
            "WHERE created_at >= ? AND created_at < ?",
            (start, end),
        ).fetchone()
    except sqlite3.Error as e:
        raise create_db_error(str(e), retryable=False, original_error=e) from e

    return int(row["total"])
