"""
Configuration management for TalkToData.

This module handles all configuration loading and validation.
Values come from the environment (optionally a local .env file).
Safety-critical limits (row cap, forbidden keywords) are hard-coded
here on purpose and are NOT read from the environment.
"""
import os
from pathlib import Path
from typing import Dict, Any, Optional
from dotenv import load_dotenv

# Load environment variables from .env file
# interpolate=False prevents $VAR expansion in values (important for passwords with $ characters)
load_dotenv(interpolate=False)


# =============================================================================
# CONFIGURATION VALIDATION
# =============================================================================

class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


def _get_required_env(key: str, error_message: str) -> str:
    """Get required environment variable or raise ConfigurationError."""
    value = os.getenv(key)
    if not value:
        raise ConfigurationError(f"{error_message}\n   Set {key} in your .env file.")
    return value


def _get_int_env(key: str, default: int) -> int:
    """Read an integer environment variable, falling back on bad input."""
    raw = os.getenv(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be an integer, got: {raw!r}")


def validate_configuration(skip_api_check: bool = False) -> dict:
    """
    Validate all configuration and return validated config dict.

    Args:
        skip_api_check: If True, skip API key validation (useful for the CLI
            commands that never call the LLM)

    Returns:
        Dictionary with validated configuration values

    Raises:
        ConfigurationError: If any required configuration is missing
    """
    errors = []
    config = {}

    secret = os.getenv("SESSION_SECRET", "")
    if len(secret) < SESSION_SECRET_MIN_LENGTH:
        errors.append(
            f"SESSION_SECRET must be at least {SESSION_SECRET_MIN_LENGTH} characters long"
        )
    config["session_secret_set"] = bool(secret)

    config["llm_model"] = LLM_MODEL
    if not skip_api_check:
        try:
            config["api_key"] = _get_required_env(
                "GROQ_API_KEY", "GROQ_API_KEY is not configured!"
            )
        except ConfigurationError as e:
            errors.append(str(e))

    if errors:
        error_msg = "\n\nConfiguration Errors:\n" + "\n".join(f"  • {e}" for e in errors)
        raise ConfigurationError(error_msg)

    return config


# =============================================================================
# BASE PATHS
# =============================================================================

BASE_DIR = Path(__file__).parent.parent
DATA_DIR = BASE_DIR / "data"


# =============================================================================
# QUERY LIMITS (not configurable)
# =============================================================================

# Every SELECT is capped at this many rows
QUERY_MAX_ROWS = 1000

# Driver connect / request timeout
QUERY_TIMEOUT_SECONDS = 10

# Per-adapter connection pool cap
POOL_MAX_CONNECTIONS = 5
POOL_IDLE_TIMEOUT_SECONDS = 30

# Statements must start with one of these
ALLOWED_STATEMENT_PREFIXES = ["SELECT", "WITH"]

# Whole-word, case-insensitive matches are rejected
FORBIDDEN_KEYWORDS = [
    "INSERT", "UPDATE", "DELETE", "DROP", "CREATE", "ALTER",
    "TRUNCATE", "GRANT", "REVOKE", "EXECUTE", "EXEC", "CALL", "INTO",
]

# Request payload limits
MAX_QUESTION_LENGTH = 1000
MAX_SQL_LENGTH = 10000


# =============================================================================
# DATABASE DEFAULTS
# =============================================================================

DATABASE_DEFAULTS: Dict[str, Dict[str, Any]] = {
    "postgresql": {"name": "PostgreSQL", "port": 5432},
    "mysql": {"name": "MySQL", "port": 3306},
    "sqlite": {"name": "SQLite", "port": 0},
    "sqlserver": {"name": "SQL Server", "port": 1433},
    "mongodb": {"name": "MongoDB", "port": 27017},
}


def get_demo_connection() -> Optional[Dict[str, Any]]:
    """
    Build the demo PostgreSQL connection from DEMO_DB_* variables.

    Returns None when any of host/name/user/password is missing.
    """
    host = os.getenv("DEMO_DB_HOST")
    database = os.getenv("DEMO_DB_NAME")
    username = os.getenv("DEMO_DB_USER")
    password = os.getenv("DEMO_DB_PASSWORD")

    if not host or not database or not username or not password:
        return None

    return {
        "type": "postgresql",
        "host": host,
        "port": _get_int_env("DEMO_DB_PORT", 5432),
        "database": database,
        "username": username,
        "password": password,
        "ssl": True,
    }


# =============================================================================
# SESSION CONFIGURATION
# =============================================================================

SESSION_COOKIE_NAME = "talktodata_session"
SESSION_TTL_SECONDS = _get_int_env("SESSION_TTL_SECONDS", 60 * 60 * 4)
SESSION_SECRET_MIN_LENGTH = 32
SESSION_SECRET = os.getenv("SESSION_SECRET", "")
SESSION_COOKIE_SECURE = os.getenv("SESSION_COOKIE_SECURE", "false").lower() == "true"


# =============================================================================
# RATE LIMITING
# =============================================================================

RATE_LIMIT_MAX_REQUESTS = _get_int_env("RATE_LIMIT_MAX_REQUESTS", 60)
RATE_LIMIT_WINDOW_SECONDS = _get_int_env("RATE_LIMIT_WINDOW_SECONDS", 60)
RATE_LIMIT_CLEANUP_INTERVAL_SECONDS = 5 * 60


# =============================================================================
# LLM CONFIGURATION
# =============================================================================

# LiteLLM model string; the "groq/" prefix selects the Groq provider
LLM_MODEL = os.getenv("LLM_MODEL", "groq/llama-3.3-70b-versatile")
LLM_MAX_TOKENS = _get_int_env("LLM_MAX_TOKENS", 2048)
LLM_TEMPERATURE = 0.1
GROQ_API_KEY = os.getenv("GROQ_API_KEY", "")

# Sample rows sent with chart suggestion prompts
CHART_SAMPLE_ROWS = 3


# =============================================================================
# API CONFIGURATION
# =============================================================================

ALLOWED_ORIGINS = [o.strip() for o in os.getenv("ALLOWED_ORIGINS", "*").split(",") if o.strip()]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
