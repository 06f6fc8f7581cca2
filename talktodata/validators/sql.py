"""
SQL safety validation.

Every statement that reaches a live connection passes through here first.
The checks are regex heuristics, NOT a parser:

- the statement must begin with SELECT or WITH
- no forbidden keyword may appear as a whole word anywhere
- chained statements, SQL comments and UNION SELECT are rejected

The heuristics are deliberately conservative. Comment-like text inside a
string literal (e.g. WHERE note = 'a -- b') is rejected, and a determined
attacker may still find shapes these patterns do not catch. The read-only
role / read-only open mode of the adapters is the second line of defence.
"""

import re
from typing import List, Tuple

from configs import ALLOWED_STATEMENT_PREFIXES, FORBIDDEN_KEYWORDS

from ..errors import DangerousQueryError


# ============================================================
# PATTERNS
# ============================================================

_PREFIX_PATTERN = re.compile(
    r"^(?:" + "|".join(ALLOWED_STATEMENT_PREFIXES) + r")\b", re.IGNORECASE
)

_KEYWORD_PATTERNS: List[Tuple[str, "re.Pattern[str]"]] = [
    (keyword, re.compile(r"\b" + keyword + r"\b", re.IGNORECASE))
    for keyword in FORBIDDEN_KEYWORDS
]

# (label, pattern) pairs; the label is reported back to the caller
DANGEROUS_PATTERNS: List[Tuple[str, "re.Pattern[str]"]] = [
    (
        "chained statement",
        re.compile(r";\s*(?:INSERT|UPDATE|DELETE|DROP|CREATE|ALTER|TRUNCATE)", re.IGNORECASE),
    ),
    ("line comment", re.compile(r"--.*$", re.MULTILINE)),
    ("block comment", re.compile(r"/\*[\s\S]*?\*/")),
    ("UNION SELECT", re.compile(r"UNION\s+(?:ALL\s+)?SELECT", re.IGNORECASE)),
]

_STRUCTURE_PATTERN = re.compile(r"^\s*(?:WITH|SELECT)\b", re.IGNORECASE)


# ============================================================
# PUBLIC API
# ============================================================

def validate_sql(sql: str) -> None:
    """
    Reject anything that is not a plain read-only query.

    Raises:
        DangerousQueryError: with the offending keyword or pattern named
            in the message (and in `details`)
    """
    trimmed = (sql or "").strip()

    if not _PREFIX_PATTERN.match(trimmed):
        raise DangerousQueryError(
            "Only SELECT queries are allowed for security reasons."
        )

    for keyword, pattern in _KEYWORD_PATTERNS:
        if pattern.search(trimmed):
            raise DangerousQueryError(
                f"Query contains forbidden keyword: {keyword}. Only SELECT queries are allowed.",
                details={"keyword": keyword},
            )

    for label, pattern in DANGEROUS_PATTERNS:
        if pattern.search(trimmed):
            raise DangerousQueryError(
                f"Query contains potentially dangerous patterns ({label}).",
                details={"pattern": label},
            )


def sanitize_sql(sql: str) -> str:
    """
    Normalize a statement before validation.

    Trims, drops trailing semicolons and collapses whitespace runs to a
    single space. Idempotent.
    """
    cleaned = (sql or "").strip()
    cleaned = re.sub(r"[;\s]+$", "", cleaned)
    cleaned = re.sub(r"\s+", " ", cleaned)
    return cleaned.strip()


def is_valid_sql_structure(sql: str) -> bool:
    """
    Cheap pre-flight check: SELECT/WITH prefix and balanced parentheses.

    This is a hint for the UI, not a safety check.
    """
    if not _STRUCTURE_PATTERN.match(sql or ""):
        return False

    depth = 0
    for char in sql:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth < 0:
                return False
    return depth == 0
