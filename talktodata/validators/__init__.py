"""Input validation (SQL safety gate)."""
from .sql import validate_sql, sanitize_sql, is_valid_sql_structure, DANGEROUS_PATTERNS

__all__ = [
    "validate_sql",
    "sanitize_sql",
    "is_valid_sql_structure",
    "DANGEROUS_PATTERNS",
]
