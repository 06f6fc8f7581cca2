"""
Error taxonomy for TalkToData.

Every failure the system reports to a caller is an AppError carrying a
stable ErrorCode. The API layer maps codes to HTTP status codes; the CLI
prints the message. Driver exceptions are kept on `original_error` for
logging and are never serialized.
"""

from enum import Enum
from typing import Dict, Any, Optional


class ErrorCode(str, Enum):
    """Stable error codes surfaced to clients."""
    CONNECTION_FAILED = "CONNECTION_FAILED"
    QUERY_TIMEOUT = "QUERY_TIMEOUT"
    INVALID_SQL = "INVALID_SQL"
    DANGEROUS_QUERY = "DANGEROUS_QUERY"
    LLM_ERROR = "LLM_ERROR"
    NO_CONNECTION = "NO_CONNECTION"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    RATE_LIMITED = "RATE_LIMITED"
    CONFIG_ERROR = "CONFIG_ERROR"
    UNKNOWN = "UNKNOWN"


class AppError(Exception):
    """Base exception with a code, optional details and the wrapped cause."""

    code: ErrorCode = ErrorCode.UNKNOWN

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.details = details
        self.original_error = original_error

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"code": self.code.value, "message": self.message}
        if self.details:
            data["details"] = self.details
        return data

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"


class ConnectionFailedError(AppError):
    """Could not open a connection, or the database type is unsupported."""
    code = ErrorCode.CONNECTION_FAILED


class NoConnectionError(AppError):
    """No valid session, or the adapter was used while disconnected."""
    code = ErrorCode.NO_CONNECTION


class DangerousQueryError(AppError):
    """Query rejected by the safety validator."""
    code = ErrorCode.DANGEROUS_QUERY


class InvalidSqlError(AppError):
    """Query failed at the driver, or a MongoDB query payload is malformed."""
    code = ErrorCode.INVALID_SQL


class QueryTimeoutError(AppError):
    code = ErrorCode.QUERY_TIMEOUT


class LlmError(AppError):
    """The completion API failed or returned nothing usable."""
    code = ErrorCode.LLM_ERROR


class ValidationError(AppError):
    """Input (connection config, request payload) failed validation."""
    code = ErrorCode.VALIDATION_ERROR


class ConfigError(AppError):
    """Server-side configuration is missing (e.g. demo database variables)."""
    code = ErrorCode.CONFIG_ERROR


class RateLimitedError(AppError):
    code = ErrorCode.RATE_LIMITED


# =============================================================================
# USER-FACING MESSAGES
# =============================================================================

USER_MESSAGES: Dict[ErrorCode, str] = {
    ErrorCode.CONNECTION_FAILED: "Unable to connect to the database. Please check your connection settings.",
    ErrorCode.QUERY_TIMEOUT: "The query took too long to execute. Try simplifying your query.",
    ErrorCode.INVALID_SQL: "The generated SQL query is invalid. Please try rephrasing your question.",
    ErrorCode.DANGEROUS_QUERY: "This query type is not allowed for security reasons. Only SELECT queries are permitted.",
    ErrorCode.LLM_ERROR: "Unable to generate SQL. Please try again or rephrase your question.",
    ErrorCode.NO_CONNECTION: "No database connection. Please connect to a database first.",
    ErrorCode.VALIDATION_ERROR: "Invalid input provided. Please check your input and try again.",
    ErrorCode.RATE_LIMITED: "Too many requests. Please try again later.",
    ErrorCode.CONFIG_ERROR: "The server is not configured for this operation.",
    ErrorCode.UNKNOWN: "An unexpected error occurred. Please try again.",
}


def get_user_friendly_message(error: BaseException) -> str:
    """Return the message to show an end user for any exception."""
    if isinstance(error, AppError):
        return error.message
    message = str(error)
    return message if message else "An unexpected error occurred"


def get_default_message(code: ErrorCode) -> str:
    return USER_MESSAGES.get(code, USER_MESSAGES[ErrorCode.UNKNOWN])
