"""
Schema-as-text rendering.

The NL-to-SQL prompts are grounded on this text, so the output must be a
pure function of the schema: same tables in, byte-identical text out.
Column order is the order the adapter stored them in (ordinal order).
"""

from typing import Iterable

from ..models import Column, Table


def _render_column(column: Column) -> str:
    line = f"  {column.name} {column.data_type}"
    if column.is_primary_key:
        line += " PRIMARY KEY"
    if not column.nullable:
        line += " NOT NULL"
    return line


def render_table_context(tables: Iterable[Table]) -> str:
    """
    Relational rendering::

        Table: employees
          id integer PRIMARY KEY NOT NULL
          email text
    """
    blocks = []
    for table in tables:
        lines = [f"Table: {table.qualified_name}"]
        lines.extend(_render_column(c) for c in table.columns)
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def render_collection_context(tables: Iterable[Table]) -> str:
    """
    Document-store rendering::

        Collection: users (42 documents)
          _id: ObjectId (primary)
          name: string
    """
    blocks = []
    for table in tables:
        lines = [f"Collection: {table.name} ({table.row_count or 0} documents)"]
        for column in table.columns:
            suffix = " (primary)" if column.is_primary_key else ""
            lines.append(f"  {column.name}: {column.data_type}{suffix}")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)
