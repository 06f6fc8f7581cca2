"""Shared data models."""
from .schemas import (
    DatabaseType,
    ChartType,
    ConnectionConfig,
    Column,
    Table,
    Schema,
    ResultColumn,
    QueryResult,
    SessionStatus,
    ChartSuggestion,
)

__all__ = [
    "DatabaseType",
    "ChartType",
    "ConnectionConfig",
    "Column",
    "Table",
    "Schema",
    "ResultColumn",
    "QueryResult",
    "SessionStatus",
    "ChartSuggestion",
]
