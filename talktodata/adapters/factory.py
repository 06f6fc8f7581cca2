"""
Database Adapter Factory.

Creates the appropriate database adapter for a connection config.
The registry maps a DatabaseType tag to a zero-argument constructor; new
backends can register themselves without touching existing adapters.
"""

import logging
from typing import Callable, Dict, List, Union

from ..errors import ConnectionFailedError
from ..models import ConnectionConfig, DatabaseType
from .database_adapter import DatabaseAdapter
from .mongo_adapter import MongoAdapter
from .mysql_adapter import MySQLAdapter
from .postgres_adapter import PostgresAdapter
from .sqlite_adapter import SQLiteAdapter
from .sqlserver_adapter import SQLServerAdapter


logger = logging.getLogger(__name__)

AdapterConstructor = Callable[[], DatabaseAdapter]

# Populated once at import time for the built-in types
_adapter_registry: Dict[str, AdapterConstructor] = {
    DatabaseType.POSTGRESQL.value: PostgresAdapter,
    DatabaseType.MYSQL.value: MySQLAdapter,
    DatabaseType.SQLITE.value: SQLiteAdapter,
    DatabaseType.SQLSERVER.value: SQLServerAdapter,
    DatabaseType.MONGODB.value: MongoAdapter,
}


def _type_tag(db_type: Union[DatabaseType, str]) -> str:
    return db_type.value if isinstance(db_type, DatabaseType) else str(db_type)


def create_adapter(config: ConnectionConfig) -> DatabaseAdapter:
    """
    Create a (not yet connected) adapter for `config.type`.

    Raises:
        ConnectionFailedError: If the type has no registered constructor

    Examples:
        adapter = create_adapter(ConnectionConfig(type="sqlite", database="./data/demo.db"))
        adapter.connect(config)
    """
    tag = _type_tag(config.type)
    constructor = _adapter_registry.get(tag)
    if constructor is None:
        raise ConnectionFailedError(
            f"Unsupported database type: {tag}. Supported types: {', '.join(list_adapters())}",
            details={"supported": list_adapters()},
        )
    logger.debug("Creating %s adapter", tag)
    return constructor()


def register_adapter(db_type: Union[DatabaseType, str], constructor: AdapterConstructor) -> None:
    """Register (or replace) the constructor for a type tag."""
    _adapter_registry[_type_tag(db_type)] = constructor


def is_database_type_supported(db_type: Union[DatabaseType, str]) -> bool:
    return _type_tag(db_type) in _adapter_registry


def list_adapters() -> List[str]:
    """List all registered type tags."""
    return list(_adapter_registry.keys())
