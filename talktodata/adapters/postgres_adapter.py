"""
PostgreSQL Database Adapter.

Implements DatabaseAdapter for PostgreSQL via psycopg2.

- Small ThreadedConnectionPool (max 5) per adapter instance
- Sessions are opened read-only with a server-side statement timeout
- Schema introspection via information_schema + pg_class, skipping system
  and hosted-platform schemas (Supabase etc.)
"""

import logging
import time
from contextlib import contextmanager
from typing import Any, Dict, Optional, Sequence, Tuple

import psycopg2
import psycopg2.extensions
from psycopg2 import pool as pg_pool
from psycopg2.extras import RealDictCursor

from configs import POOL_MAX_CONNECTIONS, QUERY_TIMEOUT_SECONDS

from ..errors import ConnectionFailedError, InvalidSqlError, QueryTimeoutError
from ..models import Column, ConnectionConfig, DatabaseType, QueryResult, ResultColumn, Schema, Table
from .database_adapter import DatabaseAdapter, rows_to_dicts
from .query_limits import apply_limit_clause


logger = logging.getLogger(__name__)


# Schemas that belong to Postgres itself or to hosting platforms.
# Anything matching pg_% or starting with an underscore is skipped as well.
EXCLUDED_SCHEMAS: Tuple[str, ...] = (
    "pg_catalog",
    "information_schema",
    "auth",
    "storage",
    "vault",
    "pgsodium",
    "pgsodium_masks",
    "realtime",
    "supabase_functions",
    "supabase_migrations",
    "extensions",
    "graphql",
    "graphql_public",
    "pgbouncer",
    "pg_toast",
    "pg_temp_1",
    "pg_toast_temp_1",
)

# Result column type names by type OID
PG_TYPE_NAMES: Dict[int, str] = {
    16: "boolean",
    20: "bigint",
    21: "smallint",
    23: "integer",
    25: "text",
    114: "json",
    700: "real",
    701: "double precision",
    1043: "varchar",
    1082: "date",
    1114: "timestamp",
    1184: "timestamptz",
    1700: "numeric",
    2950: "uuid",
    3802: "jsonb",
}

# Tables below this estimated size get an exact count; larger ones keep
# the planner estimate so schema loading stays cheap.
EXACT_COUNT_THRESHOLD = 10000

TABLES_SQL = """
    SELECT
        t.table_schema,
        t.table_name,
        CASE
            WHEN COALESCE(c.reltuples, -1) >= %s THEN c.reltuples::bigint
            ELSE (xpath('/row/cnt/text()', query_to_xml(
                format('SELECT count(*) AS cnt FROM %%I.%%I', t.table_schema, t.table_name),
                false, true, ''
            )))[1]::text::bigint
        END AS row_count
    FROM information_schema.tables t
    LEFT JOIN pg_catalog.pg_namespace n ON n.nspname = t.table_schema
    LEFT JOIN pg_catalog.pg_class c
        ON c.relname = t.table_name AND c.relnamespace = n.oid
    WHERE t.table_type = 'BASE TABLE'
    AND t.table_schema NOT IN %s
    AND t.table_schema NOT LIKE 'pg\\_%%'
    AND t.table_schema NOT LIKE '\\_%%'
    ORDER BY t.table_schema, t.table_name
"""

COLUMNS_SQL = """
    SELECT
        c.table_schema,
        c.table_name,
        c.column_name,
        c.data_type,
        c.is_nullable,
        c.column_default,
        (pk.column_name IS NOT NULL) AS is_primary_key
    FROM information_schema.columns c
    LEFT JOIN (
        SELECT kcu.table_schema, kcu.table_name, kcu.column_name
        FROM information_schema.table_constraints tc
        JOIN information_schema.key_column_usage kcu
            ON tc.constraint_name = kcu.constraint_name
            AND tc.table_schema = kcu.table_schema
        WHERE tc.constraint_type = 'PRIMARY KEY'
    ) pk
        ON pk.table_schema = c.table_schema
        AND pk.table_name = c.table_name
        AND pk.column_name = c.column_name
    WHERE c.table_schema NOT IN %s
    AND c.table_schema NOT LIKE 'pg\\_%%'
    AND c.table_schema NOT LIKE '\\_%%'
    ORDER BY c.table_schema, c.table_name, c.ordinal_position
"""


class PostgresAdapter(DatabaseAdapter):
    """
    PostgreSQL implementation of DatabaseAdapter.

    Requirements:
    - psycopg2-binary (pip install psycopg2-binary)
    """

    type = DatabaseType.POSTGRESQL

    def __init__(self):
        super().__init__()
        self._pool: Optional[pg_pool.ThreadedConnectionPool] = None

    def connect(self, config: ConnectionConfig) -> None:
        """Open a small pool; the first connection is opened eagerly."""
        self.config = config
        try:
            self._pool = pg_pool.ThreadedConnectionPool(
                minconn=1,
                maxconn=POOL_MAX_CONNECTIONS,
                host=config.host,
                port=config.port,
                dbname=config.database,
                user=config.username,
                password=config.password,
                sslmode="require" if config.ssl else "prefer",
                connect_timeout=QUERY_TIMEOUT_SECONDS,
                options=f"-c statement_timeout={QUERY_TIMEOUT_SECONDS * 1000}",
                application_name="talktodata",
            )
        except psycopg2.Error as e:
            raise ConnectionFailedError(
                f"Failed to connect to PostgreSQL: {str(e).strip()}", original_error=e
            )

        self._connected = True
        if not self.test_connection():
            self.disconnect()
            raise ConnectionFailedError("Failed to connect to PostgreSQL: health check failed")
        logger.info("Connected to PostgreSQL at %s", config.display_name)

    def disconnect(self) -> None:
        """Close every pooled connection."""
        if self._pool is not None:
            try:
                self._pool.closeall()
            finally:
                self._pool = None
                logger.info("Disconnected from PostgreSQL")
        self._mark_disconnected()

    @contextmanager
    def _connection(self):
        conn = self._pool.getconn()
        try:
            if not conn.autocommit:
                conn.set_session(readonly=True, autocommit=True)
            yield conn
        finally:
            self._pool.putconn(conn)

    def test_connection(self) -> bool:
        if self._pool is None:
            return False
        try:
            with self._connection() as conn:
                with conn.cursor() as cursor:
                    cursor.execute("SELECT 1")
                    cursor.fetchone()
            return True
        except Exception as e:
            logger.warning("PostgreSQL health check failed: %s", e)
            return False

    def execute_query(self, query: str, params: Optional[Sequence[Any]] = None) -> QueryResult:
        """Execute SQL with LIMIT applied and return typed columns + rows."""
        self._require_connection()
        sql = apply_limit_clause(query, self.max_rows)

        with self._connection() as conn:
            try:
                with conn.cursor() as cursor:
                    start = time.perf_counter()
                    cursor.execute(sql, params)
                    rows = cursor.fetchmany(self.max_rows) if cursor.description else []
                    elapsed_ms = (time.perf_counter() - start) * 1000
                    description = cursor.description or []
            except psycopg2.extensions.QueryCanceledError as e:
                raise QueryTimeoutError(
                    f"Query exceeded the {QUERY_TIMEOUT_SECONDS} second time limit", original_error=e
                )
            except psycopg2.Error as e:
                raise InvalidSqlError(str(e).strip(), original_error=e)

        columns = [
            ResultColumn(name=col.name, data_type=PG_TYPE_NAMES.get(col.type_code, "unknown"))
            for col in description
        ]
        return QueryResult(
            columns=columns,
            rows=rows_to_dicts([c.name for c in columns], rows),
            row_count=len(rows),
            execution_time_ms=round(elapsed_ms, 2),
        )

    def _load_schema(self) -> Schema:
        """Two catalog queries: tables (with counts) and columns (with PKs)."""
        with self._connection() as conn:
            try:
                with conn.cursor(cursor_factory=RealDictCursor) as cursor:
                    cursor.execute(TABLES_SQL, (EXACT_COUNT_THRESHOLD, EXCLUDED_SCHEMAS))
                    table_rows = cursor.fetchall()
                    cursor.execute(COLUMNS_SQL, (EXCLUDED_SCHEMAS,))
                    column_rows = cursor.fetchall()
            except psycopg2.Error as e:
                raise InvalidSqlError(
                    f"Failed to read PostgreSQL schema: {str(e).strip()}", original_error=e
                )

        tables: Dict[Tuple[str, str], Table] = {}
        for row in table_rows:
            key = (row["table_schema"], row["table_name"])
            tables[key] = Table(
                name=row["table_name"],
                schema=row["table_schema"],
                row_count=int(row["row_count"] or 0),
            )

        for row in column_rows:
            table = tables.get((row["table_schema"], row["table_name"]))
            # Columns of views are returned too; only keep base tables
            if table is None:
                continue
            table.columns.append(Column(
                name=row["column_name"],
                data_type=row["data_type"],
                nullable=row["is_nullable"] == "YES",
                default_value=row["column_default"],
                is_primary_key=bool(row["is_primary_key"]),
            ))

        return Schema(tables=list(tables.values()))

