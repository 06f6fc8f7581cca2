"""
Query Orchestration Flow.

PURPOSE:
========
Every user-facing operation runs the same sequence:

    1. require an unexpired session holding a ConnectionConfig
       (else NoConnectionError)
    2. build a fresh adapter from the registry
    3. connect (ConnectionFailedError propagates, nothing else runs)
    4. do the operation-specific work
    5. disconnect, on success AND on failure
    6. return a structured result

There is no connection reuse between requests and no schema caching
beyond one adapter instance: each call re-reads the schema it needs.

SAFETY ORDER FOR EXECUTION:
===========================
    sanitize -> validate -> (only now) build adapter -> execute

A rejected statement never causes a connection attempt.
"""

import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from configs import get_demo_connection

from ..adapters import DatabaseAdapter, create_adapter
from ..errors import ConfigError, NoConnectionError, ValidationError
from ..llm import NLToSQLService
from ..models import (
    ChartSuggestion,
    ConnectionConfig,
    DatabaseType,
    QueryResult,
    ResultColumn,
    Schema,
    SessionStatus,
)
from ..session import SessionStore
from ..validators import sanitize_sql, validate_sql


logger = logging.getLogger(__name__)

AdapterFactory = Callable[[ConnectionConfig], DatabaseAdapter]


def parse_connection_config(data: Union[ConnectionConfig, Dict[str, Any]]) -> ConnectionConfig:
    """
    Validate raw connection input.

    Raises:
        ValidationError: with the first failing field's message
    """
    if isinstance(data, ConnectionConfig):
        return data
    try:
        return ConnectionConfig.model_validate(data)
    except PydanticValidationError as e:
        first = e.errors()[0] if e.errors() else {}
        field = ".".join(str(p) for p in first.get("loc", ()))
        message = str(first.get("msg", "Invalid connection settings")).removeprefix("Value error, ")
        raise ValidationError(
            f"{field}: {message}" if field else message,
            details={"errors": [
                {"field": ".".join(str(p) for p in err.get("loc", ())), "message": err.get("msg")}
                for err in e.errors()
            ]},
        )


class QueryOrchestrator:
    """
    Runs connect / schema / generate / execute / explain / fix / chart
    flows against whatever database the session points at.

    Dependencies are injected so tests can swap the adapter factory and
    the LLM service.
    """

    def __init__(
        self,
        adapter_factory: AdapterFactory = create_adapter,
        llm: Optional[NLToSQLService] = None,
    ):
        self.adapter_factory = adapter_factory
        self._llm = llm

    @property
    def llm(self) -> NLToSQLService:
        if self._llm is None:
            self._llm = NLToSQLService()
        return self._llm

    # ============================================================
    # SCOPED ADAPTER
    # ============================================================

    @contextmanager
    def adapter_session(self, config: ConnectionConfig) -> Iterator[DatabaseAdapter]:
        """Connect a fresh adapter; disconnect it exactly once on exit."""
        adapter = self.adapter_factory(config)
        try:
            adapter.connect(config)
            yield adapter
        finally:
            adapter.disconnect()

    @staticmethod
    def require_connection(session: SessionStore) -> ConnectionConfig:
        if not session.is_valid():
            raise NoConnectionError("No active database connection. Please connect first.")
        config = session.get().config
        if config is None:
            raise NoConnectionError("Connection configuration not found. Please reconnect.")
        return config

    # ============================================================
    # CONNECTION LIFECYCLE
    # ============================================================

    def connect(
        self, session: SessionStore, data: Union[ConnectionConfig, Dict[str, Any]]
    ) -> SessionStatus:
        """Validate, connect, probe the schema, then store ONLY the config."""
        config = parse_connection_config(data)
        with self.adapter_session(config) as adapter:
            schema = adapter.get_schema()
        session.save(config)
        logger.info("Session connected to %s database %s", config.type.value, config.display_name)
        return SessionStatus(
            connected=True,
            database_name=config.database,
            database_type=config.type,
            schema=schema,
        )

    def connect_demo(self, session: SessionStore) -> SessionStatus:
        """Connect to the server-configured demo PostgreSQL database."""
        demo = get_demo_connection()
        if demo is None:
            raise ConfigError("Demo database not configured. Set the DEMO_DB_* environment variables.")
        return self.connect(session, demo)

    def disconnect(self, session: SessionStore) -> None:
        session.clear()
        logger.info("Session disconnected")

    def session_status(self, session: SessionStore) -> SessionStatus:
        """
        Re-check the stored connection. A stale or unreachable connection
        reports `connected=False` rather than failing.
        """
        if not session.is_valid() or session.get().config is None:
            return SessionStatus(connected=False)

        config = session.get().config
        try:
            with self.adapter_session(config) as adapter:
                schema = adapter.get_schema()
        except Exception as e:
            logger.warning("Stored %s connection is no longer usable: %s", config.type.value, e)
            return SessionStatus(connected=False)

        return SessionStatus(
            connected=True,
            database_name=config.database,
            database_type=config.type,
            schema=schema,
        )

    # ============================================================
    # SCHEMA / SQL OPERATIONS
    # ============================================================

    def get_schema(self, session: SessionStore) -> Schema:
        config = self.require_connection(session)
        with self.adapter_session(config) as adapter:
            return adapter.get_schema()

    def get_schema_context(self, session: SessionStore) -> str:
        config = self.require_connection(session)
        with self.adapter_session(config) as adapter:
            return adapter.get_schema_context()

    def generate_sql(self, session: SessionStore, question: str) -> str:
        """Ground the question on a fresh schema context and ask the LLM."""
        config = self.require_connection(session)
        with self.adapter_session(config) as adapter:
            schema_context = adapter.get_schema_context()
        return self.llm.generate_sql(question, schema_context)

    def execute_sql(self, session: SessionStore, sql: str) -> QueryResult:
        """
        Run a user- or AI-written statement.

        Relational statements are sanitized and validated before any
        adapter is created. MongoDB queries are JSON documents and are
        checked by the adapter's own parser instead (find / aggregate only,
        no writing stages).
        """
        config = self.require_connection(session)

        if config.type == DatabaseType.MONGODB:
            statement = (sql or "").strip()
        else:
            statement = sanitize_sql(sql)
            validate_sql(statement)

        with self.adapter_session(config) as adapter:
            result = adapter.execute_query(statement)
        logger.info(
            "Executed query on %s: %d rows in %.1f ms",
            config.type.value, result.row_count, result.execution_time_ms,
        )
        return result

    def explain_sql(self, session: SessionStore, sql: str) -> str:
        # Needs a session, but not a database round trip
        self.require_connection(session)
        return self.llm.explain_sql(sql)

    def fix_sql(self, session: SessionStore, sql: str, error: str) -> str:
        config = self.require_connection(session)
        with self.adapter_session(config) as adapter:
            schema_context = adapter.get_schema_context()
        return self.llm.fix_sql(sql, error, schema_context)

    def suggest_chart(
        self,
        session: SessionStore,
        columns: List[ResultColumn],
        sample_rows: List[Dict[str, Any]],
        row_count: int,
    ) -> ChartSuggestion:
        self.require_connection(session)
        return self.llm.suggest_chart(columns, sample_rows, row_count)
