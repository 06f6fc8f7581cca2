"""
SQL Server Database Adapter.

Implements DatabaseAdapter for Microsoft SQL Server via pymssql.
Only the `dbo` schema is introspected. The row cap is applied with
``SELECT TOP n`` instead of LIMIT.
"""

import logging
import time
from typing import Any, Dict, Optional, Sequence

import pymssql

from configs import QUERY_TIMEOUT_SECONDS

from ..errors import ConnectionFailedError, InvalidSqlError
from ..models import Column, ConnectionConfig, DatabaseType, QueryResult, ResultColumn, Schema, Table
from .database_adapter import DatabaseAdapter, rows_to_dicts
from .query_limits import apply_top_clause


logger = logging.getLogger(__name__)

DEFAULT_SCHEMA = "dbo"

TABLES_SQL = """
    SELECT t.TABLE_NAME, SUM(p.rows) AS ROW_COUNT
    FROM INFORMATION_SCHEMA.TABLES t
    LEFT JOIN sys.tables st
        ON st.name = t.TABLE_NAME AND SCHEMA_NAME(st.schema_id) = t.TABLE_SCHEMA
    LEFT JOIN sys.partitions p
        ON p.object_id = st.object_id AND p.index_id IN (0, 1)
    WHERE t.TABLE_TYPE = 'BASE TABLE'
    AND t.TABLE_SCHEMA = %s
    GROUP BY t.TABLE_NAME
    ORDER BY t.TABLE_NAME
"""

COLUMNS_SQL = """
    SELECT
        c.TABLE_NAME,
        c.COLUMN_NAME,
        c.DATA_TYPE,
        c.IS_NULLABLE,
        c.COLUMN_DEFAULT,
        CASE WHEN pk.COLUMN_NAME IS NOT NULL THEN 1 ELSE 0 END AS IS_PRIMARY_KEY
    FROM INFORMATION_SCHEMA.COLUMNS c
    LEFT JOIN (
        SELECT ku.TABLE_NAME, ku.COLUMN_NAME
        FROM INFORMATION_SCHEMA.TABLE_CONSTRAINTS tc
        JOIN INFORMATION_SCHEMA.KEY_COLUMN_USAGE ku
            ON tc.CONSTRAINT_NAME = ku.CONSTRAINT_NAME
            AND tc.TABLE_SCHEMA = ku.TABLE_SCHEMA
        WHERE tc.CONSTRAINT_TYPE = 'PRIMARY KEY'
        AND tc.TABLE_SCHEMA = %s
    ) pk
        ON pk.TABLE_NAME = c.TABLE_NAME AND pk.COLUMN_NAME = c.COLUMN_NAME
    WHERE c.TABLE_SCHEMA = %s
    ORDER BY c.TABLE_NAME, c.ORDINAL_POSITION
"""


class SQLServerAdapter(DatabaseAdapter):
    """
    SQL Server implementation of DatabaseAdapter.

    Requirements:
    - pymssql (pip install pymssql)
    """

    type = DatabaseType.SQLSERVER

    def __init__(self):
        super().__init__()
        self._connection = None

    def connect(self, config: ConnectionConfig) -> None:
        self.config = config
        try:
            self._connection = pymssql.connect(
                server=config.host,
                port=str(config.port),
                user=config.username,
                password=config.password,
                database=config.database,
                login_timeout=QUERY_TIMEOUT_SECONDS,
                timeout=QUERY_TIMEOUT_SECONDS,
                autocommit=True,
                appname="talktodata",
                encryption="require" if config.ssl else None,
            )
        except pymssql.Error as e:
            self._connection = None
            raise ConnectionFailedError(f"Failed to connect to SQL Server: {e}", original_error=e)

        self._connected = True
        if not self.test_connection():
            self.disconnect()
            raise ConnectionFailedError("Failed to connect to SQL Server: health check failed")
        logger.info("Connected to SQL Server at %s", config.display_name)

    def disconnect(self) -> None:
        if self._connection is not None:
            try:
                self._connection.close()
            except pymssql.Error as e:
                logger.debug("Ignoring error while closing SQL Server connection: %s", e)
            finally:
                self._connection = None
                logger.info("Disconnected from SQL Server")
        self._mark_disconnected()

    def test_connection(self) -> bool:
        if self._connection is None:
            return False
        try:
            cursor = self._connection.cursor()
            try:
                cursor.execute("SELECT 1")
                cursor.fetchone()
            finally:
                cursor.close()
            return True
        except Exception as e:
            logger.warning("SQL Server health check failed: %s", e)
            return False

    def execute_query(self, query: str, params: Optional[Sequence[Any]] = None) -> QueryResult:
        """Execute SQL with TOP applied and return results."""
        self._require_connection()
        sql = apply_top_clause(query, self.max_rows)

        cursor = self._connection.cursor()
        try:
            start = time.perf_counter()
            cursor.execute(sql, tuple(params) if params else None)
            rows = cursor.fetchmany(self.max_rows) if cursor.description else []
            elapsed_ms = (time.perf_counter() - start) * 1000
            description = cursor.description or []
        except pymssql.Error as e:
            raise InvalidSqlError(str(e), original_error=e)
        finally:
            cursor.close()

        names = [col[0] for col in description]
        return QueryResult(
            columns=[ResultColumn(name=name, data_type="varchar") for name in names],
            rows=rows_to_dicts(names, rows),
            row_count=len(rows),
            execution_time_ms=round(elapsed_ms, 2),
        )

    def _load_schema(self) -> Schema:
        cursor = self._connection.cursor(as_dict=True)
        try:
            cursor.execute(TABLES_SQL, (DEFAULT_SCHEMA,))
            table_rows = cursor.fetchall()
            cursor.execute(COLUMNS_SQL, (DEFAULT_SCHEMA, DEFAULT_SCHEMA))
            column_rows = cursor.fetchall()
        except pymssql.Error as e:
            raise InvalidSqlError(f"Failed to read SQL Server schema: {e}", original_error=e)
        finally:
            cursor.close()

        tables: Dict[str, Table] = {
            row["TABLE_NAME"]: Table(
                name=row["TABLE_NAME"],
                schema=DEFAULT_SCHEMA,
                row_count=int(row["ROW_COUNT"] or 0),
            )
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
                is_primary_key=bool(row["IS_PRIMARY_KEY"]),
            ))

        return Schema(tables=list(tables.values()))
