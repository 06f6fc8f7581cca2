"""
Adapters module for TalkToData.

Contains:
1. The DatabaseAdapter interface and its five backends
2. The type-tag registry (factory)
3. Shared row-cap and schema-context helpers
"""

from .database_adapter import DatabaseAdapter, to_json_value
from .postgres_adapter import PostgresAdapter
from .mysql_adapter import MySQLAdapter
from .sqlite_adapter import SQLiteAdapter, create_sqlite_adapter
from .sqlserver_adapter import SQLServerAdapter
from .mongo_adapter import MongoAdapter, parse_mongo_query
from .factory import create_adapter, register_adapter, is_database_type_supported, list_adapters
from .query_limits import apply_limit_clause, apply_top_clause
from .schema_context import render_table_context, render_collection_context

__all__ = [
    "DatabaseAdapter",
    "to_json_value",
    "PostgresAdapter",
    "MySQLAdapter",
    "SQLiteAdapter",
    "SQLServerAdapter",
    "MongoAdapter",
    "create_sqlite_adapter",
    "parse_mongo_query",
    "create_adapter",
    "register_adapter",
    "is_database_type_supported",
    "list_adapters",
    "apply_limit_clause",
    "apply_top_clause",
    "render_table_context",
    "render_collection_context",
]
