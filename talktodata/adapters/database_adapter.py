"""
Database Adapter Layer for TalkToData.

This module provides a unified interface for database operations,
allowing the system to work with five different backends
(PostgreSQL, MySQL, SQLite, SQL Server, MongoDB).

Design Principles:
- The orchestration flow NEVER touches a driver directly
- All database operations go through an adapter
- One adapter instance == one request; nothing is shared across requests
- Adapters translate driver errors into the TalkToData error taxonomy
"""

import base64
import datetime
import decimal
import logging
import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from configs import QUERY_MAX_ROWS

from ..errors import NoConnectionError
from ..models import ConnectionConfig, DatabaseType, QueryResult, Schema
from .schema_context import render_table_context


logger = logging.getLogger(__name__)


class DatabaseAdapter(ABC):
    """
    Abstract interface for database adapters.

    Lifecycle: ``connect(config)`` → any number of ``get_schema`` /
    ``execute_query`` / ``get_schema_context`` calls → ``disconnect()``.
    ``get_schema`` is cached for the lifetime of the connection; the cache
    is dropped on disconnect.
    """

    type: DatabaseType

    # Row cap applied to every result set
    max_rows: int = QUERY_MAX_ROWS

    def __init__(self):
        self.config: Optional[ConnectionConfig] = None
        self._connected = False
        self._schema_cache: Optional[Schema] = None

    @abstractmethod
    def connect(self, config: ConnectionConfig) -> None:
        """
        Open the connection (or small pool) described by `config`.

        Raises:
            ConnectionFailedError: with the driver's message when the
                backend cannot be reached or rejects the credentials
        """
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Close the connection. Safe to call when never connected."""
        pass

    @abstractmethod
    def test_connection(self) -> bool:
        """Run a trivial round trip. Never raises."""
        pass

    @abstractmethod
    def execute_query(self, query: str, params: Optional[Sequence[Any]] = None) -> QueryResult:
        """
        Execute a read-only query with the row cap applied.

        Raises:
            NoConnectionError: adapter is not connected
            InvalidSqlError: the driver rejected the statement
        """
        pass

    @abstractmethod
    def _load_schema(self) -> Schema:
        """Query the backend catalog. Called at most once per connection."""
        pass

    def get_schema(self) -> Schema:
        """Return the (cached) schema of the connected database."""
        self._require_connection()
        if self._schema_cache is None:
            self._schema_cache = self._load_schema()
            logger.debug(
                "Loaded %s schema: %d tables", self.type.value, len(self._schema_cache.tables)
            )
        return self._schema_cache

    def get_schema_context(self) -> str:
        """Render the schema as the plain-text block fed to the LLM."""
        return render_table_context(self.get_schema().tables)

    @property
    def is_connected(self) -> bool:
        """Check if database is connected."""
        return self._connected

    def _require_connection(self) -> None:
        if not self._connected:
            raise NoConnectionError(
                f"Not connected to {self.type.value} database",
            )

    def _mark_disconnected(self) -> None:
        self._connected = False
        self._schema_cache = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()

    def __repr__(self) -> str:
        target = self.config.display_name if self.config else "-"
        return f"<{self.__class__.__name__} {target} connected={self._connected}>"


# ============================================================
# VALUE CONVERSION
# ============================================================

def to_json_value(value: Any) -> Any:
    """Convert a driver value into something JSON can carry."""
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, decimal.Decimal):
        return float(value)
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, datetime.timedelta):
        return value.total_seconds()
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, memoryview):
        value = value.tobytes()
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, dict):
        return {str(k): to_json_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [to_json_value(v) for v in value]
    return str(value)


def rows_to_dicts(column_names: List[str], rows: Sequence[Sequence[Any]]) -> List[Dict[str, Any]]:
    """Zip tuple rows with their column names, converting values."""
    return [
        {name: to_json_value(value) for name, value in zip(column_names, row)}
        for row in rows
    ]
