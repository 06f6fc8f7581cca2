#!/usr/bin/env python3
"""
Build a local SQLite copy of the demo database.

Converts scripts/seed.sql (PostgreSQL) to SQLite and loads it into
data/demo.db, so the app can be tried without a PostgreSQL server:

    python scripts/create_demo_db.py
    python cli.py --database data/demo.db schema
"""
import re
import sqlite3
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
SEED_FILE = ROOT / "scripts" / "seed.sql"
DEFAULT_TARGET = ROOT / "data" / "demo.db"


def to_sqlite(sql: str) -> str:
    """Rewrite the few PostgreSQL-only constructs seed.sql uses."""
    sql = re.sub(r"(?i)\bSERIAL PRIMARY KEY\b", "INTEGER PRIMARY KEY", sql)
    sql = re.sub(r"(?i)\bDEFAULT NOW\(\)", "DEFAULT CURRENT_TIMESTAMP", sql)
    sql = re.sub(r"(?i)\s+CASCADE;", ";", sql)
    return sql


def create_demo_database(target: Path = DEFAULT_TARGET) -> Path:
    target.parent.mkdir(parents=True, exist_ok=True)
    if target.exists():
        target.unlink()

    script = to_sqlite(SEED_FILE.read_text(encoding="utf-8"))
    conn = sqlite3.connect(target)
    try:
        conn.executescript(script)
        conn.commit()
    finally:
        conn.close()
    return target


if __name__ == "__main__":
    path = Path(sys.argv[1]) if len(sys.argv) > 1 else DEFAULT_TARGET
    try:
        created = create_demo_database(path)
    except (OSError, sqlite3.Error) as e:
        print(f"[ERROR] Failed to create demo database: {e}")
        sys.exit(1)
    print(f"[OK] Demo database created at {created} ({created.stat().st_size} bytes)")
