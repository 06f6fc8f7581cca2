"""
Conftest for TalkToData tests.

Sets the environment BEFORE any app import (configs reads it at import
time) and provides throwaway SQLite databases built from scripts/seed.sql.
"""

import os
import sqlite3
import sys
from pathlib import Path

import pytest

# Add project root and scripts/ to sys.path
project_root = Path(__file__).parent.parent
for path in (project_root, project_root / "scripts"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

os.environ.setdefault("SESSION_SECRET", "test-session-secret-that-is-long-enough-123")
os.environ.setdefault("GROQ_API_KEY", "test-key-for-ci")
# High enough that ordinary API tests never trip the limiter
os.environ.setdefault("RATE_LIMIT_MAX_REQUESTS", "100000")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from create_demo_db import create_demo_database  # noqa: E402


EMPLOYEE_COUNT = 10
EMPLOYEE_COLUMNS = 9
BIG_TABLE_ROWS = 1500


@pytest.fixture
def demo_db_path(tmp_path) -> Path:
    """SQLite copy of the demo data (employees, products, customers, orders, order_items)."""
    return create_demo_database(tmp_path / "demo.db")


@pytest.fixture
def big_db_path(tmp_path) -> Path:
    """A single table with more rows than the row cap."""
    path = tmp_path / "big.db"
    conn = sqlite3.connect(path)
    try:
        conn.execute("CREATE TABLE numbers (n INTEGER PRIMARY KEY, label TEXT)")
        conn.executemany(
            "INSERT INTO numbers (n, label) VALUES (?, ?)",
            [(i, f"row {i}") for i in range(BIG_TABLE_ROWS)],
        )
        conn.commit()
    finally:
        conn.close()
    return path
