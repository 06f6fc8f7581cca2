"""
SQLite Database Adapter.

Implements DatabaseAdapter for file-based SQLite databases.
The file is always opened read-only; `config.database` is the file path.
"""

import logging
import sqlite3
import time
from pathlib import Path
from typing import Any, Optional, Sequence

from configs import QUERY_TIMEOUT_SECONDS

from ..errors import ConnectionFailedError, InvalidSqlError
from ..models import Column, ConnectionConfig, DatabaseType, QueryResult, ResultColumn, Schema, Table
from .database_adapter import DatabaseAdapter, rows_to_dicts
from .query_limits import apply_limit_clause


logger = logging.getLogger(__name__)

MEMORY_DATABASE = ":memory:"


def _quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


class SQLiteAdapter(DatabaseAdapter):
    """
    SQLite implementation of DatabaseAdapter.

    Features:
    - File-based database (no server required)
    - Read-only URI open (mode=ro), so writes fail even past the validator
    - Schema via sqlite_master + PRAGMA table_info, exact row counts
    """

    type = DatabaseType.SQLITE

    def __init__(self):
        super().__init__()
        self._connection: Optional[sqlite3.Connection] = None

    def connect(self, config: ConnectionConfig) -> None:
        """Open the database file read-only."""
        self.config = config
        file_path = config.database or MEMORY_DATABASE

        try:
            if file_path == MEMORY_DATABASE:
                self._connection = sqlite3.connect(
                    MEMORY_DATABASE, timeout=QUERY_TIMEOUT_SECONDS, check_same_thread=False
                )
            else:
                path = Path(file_path).expanduser()
                if not path.is_file():
                    raise ConnectionFailedError(f"Database file not found: {file_path}")
                self._connection = sqlite3.connect(
                    f"{path.resolve().as_uri()}?mode=ro",
                    uri=True,
                    timeout=QUERY_TIMEOUT_SECONDS,
                    check_same_thread=False,
                )
        except sqlite3.Error as e:
            raise ConnectionFailedError(f"Failed to connect to SQLite: {e}", original_error=e)

        self._connected = True
        if not self.test_connection():
            self.disconnect()
            raise ConnectionFailedError(f"Failed to connect to SQLite: {file_path} is not a database")
        logger.info("Connected to SQLite database %s", file_path)

    def disconnect(self) -> None:
        """Close SQLite connection."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None
            logger.info("Disconnected from SQLite")
        self._mark_disconnected()

    def test_connection(self) -> bool:
        if self._connection is None:
            return False
        try:
            # Touching sqlite_master fails fast on files that are not databases
            self._connection.execute("SELECT count(*) FROM sqlite_master").fetchone()
            return True
        except sqlite3.Error as e:
            logger.warning("SQLite health check failed: %s", e)
            return False

    def execute_query(self, query: str, params: Optional[Sequence[Any]] = None) -> QueryResult:
        """Execute SQL with LIMIT applied and return results."""
        self._require_connection()
        sql = apply_limit_clause(query, self.max_rows)

        try:
            cursor = self._connection.cursor()
            start = time.perf_counter()
            cursor.execute(sql, tuple(params) if params else ())
            rows = cursor.fetchmany(self.max_rows) if cursor.description else []
            elapsed_ms = (time.perf_counter() - start) * 1000
            description = cursor.description or []
            cursor.close()
        except sqlite3.Error as e:
            raise InvalidSqlError(str(e), original_error=e)

        names = [col[0] for col in description]
        return QueryResult(
            # SQLite is dynamically typed; per-value types are not reported
            columns=[ResultColumn(name=name, data_type="TEXT") for name in names],
            rows=rows_to_dicts(names, rows),
            row_count=len(rows),
            execution_time_ms=round(elapsed_ms, 2),
        )

    def _load_schema(self) -> Schema:
        """Get complete database schema."""
        try:
            cursor = self._connection.cursor()
            cursor.execute("""
                SELECT name FROM sqlite_master
                WHERE type='table' AND name NOT LIKE 'sqlite_%'
                ORDER BY name
            """)
            table_names = [row[0] for row in cursor.fetchall()]

            tables = []
            for table_name in table_names:
                quoted = _quote_identifier(table_name)

                cursor.execute(f"PRAGMA table_info({quoted})")
                columns = [
                    Column(
                        name=col[1],
                        data_type=col[2] or "TEXT",
                        nullable=not col[3],  # notnull is col[3]
                        default_value=str(col[4]) if col[4] is not None else None,
                        is_primary_key=bool(col[5]),
                    )
                    for col in cursor.fetchall()
                ]

                cursor.execute(f"SELECT COUNT(*) FROM {quoted}")
                row_count = cursor.fetchone()[0]

                tables.append(Table(name=table_name, columns=columns, row_count=row_count))
            cursor.close()
        except sqlite3.Error as e:
            raise InvalidSqlError(f"Failed to read SQLite schema: {e}", original_error=e)

        return Schema(tables=tables)


# Convenience function
def create_sqlite_adapter(file_path: str) -> SQLiteAdapter:
    """Create and connect a SQLite adapter."""
    adapter = SQLiteAdapter()
    adapter.connect(ConnectionConfig(type=DatabaseType.SQLITE, database=file_path))
    return adapter
