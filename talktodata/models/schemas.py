"""
Core data models for TalkToData.

These pydantic models are shared by the adapters, the orchestration flow,
the session store and the HTTP API. They are the ONLY shapes that cross
module boundaries.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator


# ============================================================
# ENUMS
# ============================================================

class DatabaseType(str, Enum):
    """Supported database types (the adapter registry tags)."""
    POSTGRESQL = "postgresql"
    MYSQL = "mysql"
    SQLITE = "sqlite"
    SQLSERVER = "sqlserver"
    MONGODB = "mongodb"


class ChartType(str, Enum):
    BAR = "bar"
    LINE = "line"
    PIE = "pie"


# ============================================================
# CONNECTION CONFIG
# ============================================================

class ConnectionConfig(BaseModel):
    """
    Everything needed to open one database connection.

    For SQLite, `database` is the file path and the network fields are
    ignored. For every other type host, a positive port and a username
    are required. The password is excluded from repr so configs can be
    logged safely.
    """
    type: DatabaseType
    host: str = Field(default="", max_length=255)
    port: int = Field(default=0, ge=0, le=65535)
    database: str = Field(..., min_length=1, max_length=255)
    username: str = Field(default="", max_length=63)
    password: str = Field(default="", repr=False)
    ssl: bool = False

    model_config = {
        "json_schema_extra": {
            "example": {
                "type": "postgresql",
                "host": "localhost",
                "port": 5432,
                "database": "talktodata",
                "username": "postgres",
                "password": "secret",
                "ssl": False,
            }
        }
    }

    @model_validator(mode="after")
    def _check_network_fields(self) -> "ConnectionConfig":
        if self.type == DatabaseType.SQLITE:
            return self
        if not self.host:
            raise ValueError("Host is required")
        if self.port <= 0:
            raise ValueError("Port must be a positive number")
        if not self.username:
            raise ValueError("Username is required")
        return self

    @property
    def display_name(self) -> str:
        """Host/database label without credentials."""
        if self.type == DatabaseType.SQLITE:
            return self.database
        return f"{self.host}:{self.port}/{self.database}"


# ============================================================
# SCHEMA
# ============================================================

# Tables in these schemas are rendered without a prefix
DEFAULT_SCHEMAS = ("public", "dbo")


class Column(BaseModel):
    name: str
    data_type: str
    nullable: bool = True
    default_value: Optional[str] = None
    is_primary_key: bool = False


class Table(BaseModel):
    name: str
    schema_name: Optional[str] = Field(default=None, alias="schema")
    columns: List[Column] = Field(default_factory=list)
    row_count: Optional[int] = None

    model_config = {"populate_by_name": True}

    @property
    def qualified_name(self) -> str:
        """`schema.table` for non-default schemas, the bare name otherwise."""
        if self.schema_name and self.schema_name not in DEFAULT_SCHEMAS:
            return f"{self.schema_name}.{self.name}"
        return self.name


class Schema(BaseModel):
    tables: List[Table] = Field(default_factory=list)

    def table_names(self) -> List[str]:
        return [t.name for t in self.tables]

    def get_table(self, name: str) -> Optional[Table]:
        for table in self.tables:
            if table.name == name or table.qualified_name == name:
                return table
        return None


# ============================================================
# QUERY RESULTS
# ============================================================

class ResultColumn(BaseModel):
    name: str
    data_type: str


class QueryResult(BaseModel):
    """Rows returned by one capped query; `row_count == len(rows)`."""
    columns: List[ResultColumn] = Field(default_factory=list)
    rows: List[Dict[str, Any]] = Field(default_factory=list)
    row_count: int = 0
    execution_time_ms: float = 0.0

    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]


class SessionStatus(BaseModel):
    """Connection state reported for the current session."""
    connected: bool = False
    database_name: Optional[str] = None
    database_type: Optional[DatabaseType] = None
    db_schema: Optional[Schema] = Field(default=None, alias="schema")

    model_config = {"populate_by_name": True}


class ChartSuggestion(BaseModel):
    chart_type: ChartType = ChartType.BAR
    x_axis: str = ""
    y_axis: str = ""
    explanation: str = ""
