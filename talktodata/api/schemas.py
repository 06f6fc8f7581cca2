"""
Pydantic schemas for the TalkToData API.

Every endpoint answers with the same envelope:

    {"success": true,  "data": {...}}
    {"success": false, "error": {"code": "...", "message": "..."}}
"""

from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

from configs import MAX_QUESTION_LENGTH, MAX_SQL_LENGTH

from ..models import ResultColumn
from ..utils.export import ExportFormat


T = TypeVar("T")


# ============================================================
# ENVELOPE
# ============================================================

class ErrorBody(BaseModel):
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None


class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    data: Optional[T] = None
    error: Optional[ErrorBody] = None


# ============================================================
# REQUEST MODELS
# ============================================================

class GenerateRequest(BaseModel):
    """Request body for POST /api/generate."""
    question: str = Field(..., min_length=1, max_length=MAX_QUESTION_LENGTH)

    model_config = {
        "json_schema_extra": {
            "example": {"question": "Which department has the highest average salary?"}
        }
    }


class SqlRequest(BaseModel):
    """Request body for POST /api/execute and /api/explain."""
    sql: str = Field(..., min_length=1, max_length=MAX_SQL_LENGTH)

    model_config = {
        "json_schema_extra": {
            "example": {"sql": "SELECT department, AVG(salary) FROM employees GROUP BY department"}
        }
    }


class FixRequest(BaseModel):
    sql: str = Field(..., min_length=1, max_length=MAX_SQL_LENGTH)
    error: str = Field(..., min_length=1, max_length=MAX_SQL_LENGTH)


class ChartSuggestRequest(BaseModel):
    columns: List[ResultColumn] = Field(..., min_length=1)
    sample_rows: List[Dict[str, Any]] = Field(default_factory=list)
    row_count: int = Field(default=0, ge=0)


class ExportRequest(BaseModel):
    columns: List[str] = Field(default_factory=list)
    rows: List[Dict[str, Any]] = Field(default_factory=list)
    format: ExportFormat = ExportFormat.CSV
    filename: Optional[str] = Field(default=None, max_length=100, pattern=r"^[A-Za-z0-9_\-]+$")


# ============================================================
# RESPONSE PAYLOADS
# ============================================================

class GenerateData(BaseModel):
    sql: str
    is_valid_structure: bool = Field(
        ..., description="Pre-flight hint (SELECT/WITH prefix, balanced parentheses)"
    )


class ExplainData(BaseModel):
    explanation: str


class FixData(BaseModel):
    sql: str


class DisconnectData(BaseModel):
    disconnected: bool = True


class HealthResponse(BaseModel):
    """Response body for GET /health."""
    status: str
    version: str
    llm_model: str
    llm_configured: bool
    supported_databases: List[str]
