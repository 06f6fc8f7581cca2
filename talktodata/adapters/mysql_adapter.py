"""
MySQL Database Adapter.

Implements DatabaseAdapter for MySQL / MariaDB via PyMySQL.
A single read-only session is used per adapter instance.
"""

import logging
import ssl
import time
from typing import Any, Dict, Optional, Sequence

import pymysql
import pymysql.cursors

from configs import QUERY_TIMEOUT_SECONDS

from ..errors import ConnectionFailedError, InvalidSqlError
from ..models import Column, ConnectionConfig, DatabaseType, QueryResult, ResultColumn, Schema, Table
from .database_adapter import DatabaseAdapter, rows_to_dicts
from .query_limits import apply_limit_clause


logger = logging.getLogger(__name__)


# Result column type names by MySQL field type code
MYSQL_TYPE_NAMES: Dict[int, str] = {
    0: "decimal",
    1: "tinyint",
    2: "smallint",
    3: "int",
    4: "float",
    5: "double",
    6: "null",
    7: "timestamp",
    8: "bigint",
    9: "mediumint",
    10: "date",
    11: "time",
    12: "datetime",
    13: "year",
    14: "date",
    15: "varchar",
    16: "bit",
    245: "json",
    246: "decimal",
    252: "blob",
    253: "varchar",
    254: "char",
    255: "geometry",
}

TABLES_SQL = """
    SELECT TABLE_NAME, TABLE_ROWS
    FROM information_schema.TABLES
    WHERE TABLE_SCHEMA = %s
    AND TABLE_TYPE = 'BASE TABLE'
    ORDER BY TABLE_NAME
"""

COLUMNS_SQL = """
    SELECT TABLE_NAME, COLUMN_NAME, DATA_TYPE, IS_NULLABLE, COLUMN_DEFAULT, COLUMN_KEY
    FROM information_schema.COLUMNS
    WHERE TABLE_SCHEMA = %s
    ORDER BY TABLE_NAME, ORDINAL_POSITION
"""


def _insecure_ssl_context() -> ssl.SSLContext:
    """TLS without certificate verification (managed MySQL hosts)."""
    context = ssl.create_default_context()
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    return context


class MySQLAdapter(DatabaseAdapter):
    """
    MySQL implementation of DatabaseAdapter.

    Requirements:
    - PyMySQL (pip install pymysql)
    """

    type = DatabaseType.MYSQL

    def __init__(self):
        super().__init__()
        self._connection: Optional[pymysql.connections.Connection] = None

    def connect(self, config: ConnectionConfig) -> None:
        self.config = config
        try:
            self._connection = pymysql.connect(
                host=config.host,
                port=config.port,
                user=config.username,
                password=config.password,
                database=config.database,
                connect_timeout=QUERY_TIMEOUT_SECONDS,
                read_timeout=QUERY_TIMEOUT_SECONDS,
                ssl=_insecure_ssl_context() if config.ssl else None,
                autocommit=True,
                charset="utf8mb4",
            )
            with self._connection.cursor() as cursor:
                cursor.execute("SET SESSION TRANSACTION READ ONLY")
        except pymysql.MySQLError as e:
            self._connection = None
            raise ConnectionFailedError(f"Failed to connect to MySQL: {e}", original_error=e)

        self._connected = True
        if not self.test_connection():
            self.disconnect()
            raise ConnectionFailedError("Failed to connect to MySQL: health check failed")
        logger.info("Connected to MySQL at %s", config.display_name)

    def disconnect(self) -> None:
        if self._connection is not None:
            try:
                self._connection.close()
            except pymysql.MySQLError as e:
                logger.debug("Ignoring error while closing MySQL connection: %s", e)
            finally:
                self._connection = None
                logger.info("Disconnected from MySQL")
        self._mark_disconnected()

    def test_connection(self) -> bool:
        if self._connection is None:
            return False
        try:
            with self._connection.cursor() as cursor:
                cursor.execute("SELECT 1")
                cursor.fetchone()
            return True
        except Exception as e:
            logger.warning("MySQL health check failed: %s", e)
            return False

    def execute_query(self, query: str, params: Optional[Sequence[Any]] = None) -> QueryResult:
        self._require_connection()
        sql = apply_limit_clause(query, self.max_rows)

        try:
            with self._connection.cursor() as cursor:
                start = time.perf_counter()
                cursor.execute(sql, params)
                rows = cursor.fetchmany(self.max_rows) if cursor.description else []
                elapsed_ms = (time.perf_counter() - start) * 1000
                description = cursor.description or []
        except pymysql.MySQLError as e:
            raise InvalidSqlError(str(e), original_error=e)

        columns = [
            ResultColumn(name=col[0], data_type=MYSQL_TYPE_NAMES.get(col[1], "unknown"))
            for col in description
        ]
        return QueryResult(
            columns=columns,
            rows=rows_to_dicts([c.name for c in columns], rows),
            row_count=len(rows),
            execution_time_ms=round(elapsed_ms, 2),
        )

    def _load_schema(self) -> Schema:
        database = self.config.database
        try:
            with self._connection.cursor(pymysql.cursors.DictCursor) as cursor:
                cursor.execute(TABLES_SQL, (database,))
                table_rows = cursor.fetchall()
                cursor.execute(COLUMNS_SQL, (database,))
                column_rows = cursor.fetchall()
        except pymysql.MySQLError as e:
            raise InvalidSqlError(f"Failed to read MySQL schema: {e}", original_error=e)

        tables: Dict[str, Table] = {
            row["TABLE_NAME"]: Table(name=row["TABLE_NAME"], row_count=int(row["TABLE_ROWS"] or 0))
            for row in table_rows
        }
        for row in column_rows:
            table = tables.get(row["TABLE_NAME"])
            if table is None:
                continue
            default = row["COLUMN_DEFAULT"]
            table.columns.append(Column(
                name=row["COLUMN_NAME"],
                data_type=row["DATA_TYPE"],
                nullable=row["IS_NULLABLE"] == "YES",
                default_value=str(default) if default is not None else None,
                is_primary_key=row["COLUMN_KEY"] == "PRI",
            ))

        return Schema(tables=list(tables.values()))
