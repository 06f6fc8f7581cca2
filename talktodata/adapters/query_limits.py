"""
Row-cap rewriting shared by the relational adapters.

The cap is a safety net independent of the validator: even a query that
asks for everything comes back with at most QUERY_MAX_ROWS rows. The
rewrite is textual; drivers additionally fetch with ``fetchmany(cap)`` so
the cap holds for statement shapes the rewrite leaves alone (e.g. a
LIMIT inside a subquery, or a CTE on SQL Server).
"""

import re

_SELECT_OR_WITH = re.compile(r"^\s*(?:SELECT|WITH)\b", re.IGNORECASE)
_LIMIT = re.compile(r"\bLIMIT\b", re.IGNORECASE)
_TOP = re.compile(r"\bTOP\b", re.IGNORECASE)
_FETCH = re.compile(r"\bFETCH\s+(?:FIRST|NEXT)\b", re.IGNORECASE)
_SELECT_HEAD = re.compile(r"^(\s*SELECT\b(?:\s+(?:DISTINCT|ALL)\b)?)", re.IGNORECASE)


def _strip_terminator(sql: str) -> str:
    return re.sub(r"[;\s]+$", "", sql)


def is_select_statement(sql: str) -> bool:
    return bool(_SELECT_OR_WITH.match(sql or ""))


def apply_limit_clause(sql: str, max_rows: int) -> str:
    """
    Append ``LIMIT max_rows`` (Postgres / MySQL / SQLite).

    Non-SELECT statements and statements that already mention LIMIT
    are returned unchanged.
    """
    if not is_select_statement(sql) or _LIMIT.search(sql) or _FETCH.search(sql):
        return sql
    return f"{_strip_terminator(sql)} LIMIT {max_rows}"


def apply_top_clause(sql: str, max_rows: int) -> str:
    """
    Insert ``TOP max_rows`` after the leading SELECT (SQL Server).

    ``SELECT DISTINCT`` becomes ``SELECT DISTINCT TOP n``. Statements that
    already use TOP or OFFSET/FETCH, and statements not starting with
    SELECT (CTEs), are returned unchanged.
    """
    if _TOP.search(sql) or _FETCH.search(sql):
        return sql
    match = _SELECT_HEAD.match(sql)
    if not match:
        return sql
    head = match.group(1)
    return f"{head} TOP {max_rows}{sql[match.end():]}"
