"""Config module initialization."""
from .settings import (
    # Paths
    BASE_DIR,
    DATA_DIR,
    # Query limits
    QUERY_MAX_ROWS,
    QUERY_TIMEOUT_SECONDS,
    POOL_MAX_CONNECTIONS,
    POOL_IDLE_TIMEOUT_SECONDS,
    ALLOWED_STATEMENT_PREFIXES,
    FORBIDDEN_KEYWORDS,
    MAX_QUESTION_LENGTH,
    MAX_SQL_LENGTH,
    # Databases
    DATABASE_DEFAULTS,
    get_demo_connection,
    # Session
    SESSION_COOKIE_NAME,
    SESSION_TTL_SECONDS,
    SESSION_SECRET,
    SESSION_SECRET_MIN_LENGTH,
    SESSION_COOKIE_SECURE,
    # Rate limiting
    RATE_LIMIT_MAX_REQUESTS,
    RATE_LIMIT_WINDOW_SECONDS,
    RATE_LIMIT_CLEANUP_INTERVAL_SECONDS,
    # LLM configuration
    LLM_MODEL,
    LLM_MAX_TOKENS,
    LLM_TEMPERATURE,
    GROQ_API_KEY,
    CHART_SAMPLE_ROWS,
    # API
    ALLOWED_ORIGINS,
    LOG_LEVEL,
    # Validation
    ConfigurationError,
    validate_configuration,
)

__all__ = [
    "BASE_DIR",
    "DATA_DIR",
    "QUERY_MAX_ROWS",
    "QUERY_TIMEOUT_SECONDS",
    "POOL_MAX_CONNECTIONS",
    "POOL_IDLE_TIMEOUT_SECONDS",
    "ALLOWED_STATEMENT_PREFIXES",
    "FORBIDDEN_KEYWORDS",
    "MAX_QUESTION_LENGTH",
    "MAX_SQL_LENGTH",
    "DATABASE_DEFAULTS",
    "get_demo_connection",
    "SESSION_COOKIE_NAME",
    "SESSION_TTL_SECONDS",
    "SESSION_SECRET",
    "SESSION_SECRET_MIN_LENGTH",
    "SESSION_COOKIE_SECURE",
    "RATE_LIMIT_MAX_REQUESTS",
    "RATE_LIMIT_WINDOW_SECONDS",
    "RATE_LIMIT_CLEANUP_INTERVAL_SECONDS",
    "LLM_MODEL",
    "LLM_MAX_TOKENS",
    "LLM_TEMPERATURE",
    "GROQ_API_KEY",
    "CHART_SAMPLE_ROWS",
    "ALLOWED_ORIGINS",
    "LOG_LEVEL",
    "ConfigurationError",
    "validate_configuration",
]
