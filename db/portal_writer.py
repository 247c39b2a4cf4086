"""
Database writer layer for the local portal store.

Bootstraps the schema on first use and provides transactional writes for
Direct Hire applications, their status checklist and their documents.
"""

import json
import sqlite3
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from db.portal_reader import resolve_db_path
from models.errors import create_db_error


def ensure_parent_dirs(db_path: Path) -> None:
    """
    Ensure parent directories exist for the database file.

    Raises:
        PortalError: If directory creation fails
    """
    try:
        db_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise create_db_error(
            f"Failed to create parent directories: {str(e)}", retryable=False, original_error=e
        ) from e


ADDED_APPLICATION_COLUMNS = (
    ("documents_completed", "INTEGER NOT NULL DEFAULT 0"),
    ("completed_at", "TEXT"),
)


def bootstrap_schema(conn: sqlite3.Connection) -> None:
    """
    Create the applications and documents tables and their indexes if missing.

    This operation is idempotent - safe to call on existing databases.

    Raises:
        PortalError: If schema creation fails
    """
    try:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS direct_hire_applications (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                control_number TEXT NOT NULL UNIQUE,
                name TEXT NOT NULL,
                sex TEXT NOT NULL,
                salary REAL NOT NULL,
                raw_salary REAL,
                salary_currency TEXT,
                jobsite TEXT NOT NULL,
                position TEXT NOT NULL,
                job_type TEXT,
                evaluator TEXT,
                employer TEXT,
                status TEXT NOT NULL DEFAULT 'pending',
                status_checklist TEXT NOT NULL DEFAULT '{}',
                documents_completed INTEGER NOT NULL DEFAULT 0,
                completed_at TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                deleted_at TEXT
            )
        """)

        conn.execute("""
            CREATE TABLE IF NOT EXISTS documents (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                application_id TEXT NOT NULL,
                application_type TEXT NOT NULL,
                document_type TEXT NOT NULL,
                file_name TEXT NOT NULL,
                file_path TEXT NOT NULL,
                file_size INTEGER,
                mime_type TEXT,
                meta TEXT,
                created_at TEXT NOT NULL
            )
        """)

        # Files created before the documents-completed flag existed
        existing = {row[1] for row in conn.execute("PRAGMA table_info(direct_hire_applications)")}
        for column, definition in ADDED_APPLICATION_COLUMNS:
            if column not in existing:
                conn.execute(f"ALTER TABLE direct_hire_applications ADD COLUMN {column} {definition}")

        conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_documents_application
            ON documents(application_id, application_type)
        """)

        conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_direct_hire_created_at
            ON direct_hire_applications(created_at)
        """)

        conn.commit()

    except sqlite3.Error as e:
        raise create_db_error(
            f"Failed to bootstrap schema: {str(e)}", retryable=False, original_error=e
        ) from e


def initialize_database(db_path: Optional[str] = None) -> Path:
    """
    Create the database file and schema if they do not exist.

    Returns:
        Resolved path of the initialized database
    """
    with PortalWriter(db_path) as writer:
        writer.commit()
        return writer.resolved_path


class PortalWriter:
    """
    Context manager for write operations on the portal database.

    Opens (creating if needed) the database, bootstraps the schema and begins
    a transaction. Exceptions roll the transaction back; the connection is
    always closed.

    Usage:
        with PortalWriter(db_path) as writer:
            app_id = writer.insert_application(record)
            writer.commit()
    """

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path
        self.resolved_path: Optional[Path] = None
        self.conn: Optional[sqlite3.Connection] = None
        self._in_transaction = False

    def __enter__(self):
        """
        Open connection, ensure schema, and begin transaction.

        Raises:
            PortalError: If database operations fail
        """
        self.resolved_path = resolve_db_path(self.db_path)
        ensure_parent_dirs(self.resolved_path)

        try:
            self.conn = sqlite3.connect(str(self.resolved_path))
            self.conn.row_factory = sqlite3.Row

            bootstrap_schema(self.conn)

            self.conn.execute("BEGIN")
            self._in_transaction = True

            return self

        except sqlite3.OperationalError as e:
            self._close()
            raise create_db_error(str(e), retryable=True, original_error=e) from e

        except sqlite3.Error as e:
            self._close()
            raise create_db_error(str(e), retryable=False, original_error=e) from e

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is not None and self._in_transaction:
                self.rollback()
        finally:
            self._close()

        # Don't suppress exceptions
        return False

    def _close(self) -> None:
        if self.conn is not None:
            self.conn.close()
            self.conn = None

    def _require_connection(self) -> sqlite3.Connection:
        if self.conn is None:
            raise create_db_error("Connection not established", retryable=False)
        return self.conn

    def insert_application(self, record: Mapping[str, Any]) -> str:
        """
        Insert a Direct Hire application.

        Args:
            record: Column values; ``status_checklist`` may be a dict

        Returns:
            The new application id
        """
        conn = self._require_connection()
        values = dict(record)
        checklist = values.get("status_checklist")
        if not isinstance(checklist, str):
            values["status_checklist"] = json.dumps(checklist or {})

        columns = [c for c in values if c != "id"]
        placeholders = ", ".join("?" for _ in columns)
        try:
            cursor = conn.execute(
                f"INSERT INTO direct_hire_applications ({', '.join(columns)}) VALUES ({placeholders})",
                [values[c] for c in columns],
            )
        except sqlite3.IntegrityError as e:
            raise create_db_error(str(e), retryable=True, original_error=e) from e
        except sqlite3.Error as e:
            raise create_db_error(str(e), retryable=False, original_error=e) from e

        return str(cursor.lastrowid)

    def update_status_checklist(
        self, application_id: str, checklist: Dict[str, Any], status: str, timestamp: str
    ) -> int:
        """
        Replace the stored checklist and derived status of one application.

        Returns:
            Number of rows updated (0 if the application is missing or deleted)
        """
        conn = self._require_connection()
        try:
            cursor = conn.execute(
                "UPDATE direct_hire_applications "
                "SET status_checklist = ?, status = ?, updated_at = ? "
                "WHERE id = ? AND deleted_at IS NULL",
                (json.dumps(checklist), status, timestamp, application_id),
            )
        except sqlite3.Error as e:
            raise create_db_error(str(e), retryable=False, original_error=e) from e
        return cursor.rowcount

    def mark_documents_completed(
        self, application_id: str, completed_at: Optional[str], timestamp: str
    ) -> int:
        """
        Flag the required documents of an application as complete.

        Returns:
            Number of rows updated (0 if the application is missing or deleted)
        """
        conn = self._require_connection()
        try:
            cursor = conn.execute(
                "UPDATE direct_hire_applications "
                "SET documents_completed = 1, completed_at = ?, updated_at = ? "
                "WHERE id = ? AND deleted_at IS NULL",
                (completed_at, timestamp, application_id),
            )
        except sqlite3.Error as e:
            raise create_db_error(str(e), retryable=False, original_error=e) from e
        return cursor.rowcount

    def soft_delete_application(self, application_id: str, timestamp: str) -> int:
        """Mark an application (and thereby its checklist) deleted."""
        conn = self._require_connection()
        try:
            cursor = conn.execute(
                "UPDATE direct_hire_applications SET deleted_at = ?, updated_at = ? "
                "WHERE id = ? AND deleted_at IS NULL",
                (timestamp, timestamp, application_id),
            )
        except sqlite3.Error as e:
            raise create_db_error(str(e), retryable=False, original_error=e) from e
        return cursor.rowcount

    def insert_document(self, record: Mapping[str, Any]) -> str:
        """
        Insert a document record.

        Returns:
            The new document id
        """
        conn = self._require_connection()
        values = dict(record)
        meta = values.get("meta")
        values["meta"] = json.dumps(meta) if meta else None

        columns = [c for c in values if c != "id"]
        placeholders = ", ".join("?" for _ in columns)
        try:
            cursor = conn.execute(
                f"INSERT INTO documents ({', '.join(columns)}) VALUES ({placeholders})",
                [values[c] for c in columns],
            )
        except sqlite3.Error as e:
            raise create_db_error(str(e), retryable=False, original_error=e) from e

        return str(cursor.lastrowid)

    def delete_document(self, document_id: str) -> int:
        conn = self._require_connection()
        try:
            cursor = conn.execute("DELETE FROM documents WHERE id = ?", (document_id,))
        except sqlite3.Error as e:
            raise create_db_error(str(e), retryable=False, original_error=e) from e
        return cursor.rowcount

    def commit(self) -> None:
        """
        Commit the transaction.

        Raises:
            PortalError: If commit fails
        """
        conn = self._require_connection()

        if not self._in_transaction:
            return

        try:
            conn.commit()
            self._in_transaction = False
        except sqlite3.Error as e:
            raise create_db_error(
                f"Failed to commit transaction: {str(e)}", retryable=True, original_error=e
            ) from e

    def rollback(self) -> None:
        """
        Rollback the transaction.

        Does not raise - rollback is called during error handling.
        """
        if self.conn is None or not self._in_transaction:
            return

        try:
            self.conn.rollback()
            self._in_transaction = False
        except sqlite3.Error:
            # Suppress rollback errors - we're already in error handling
            pass
