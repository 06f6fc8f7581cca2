#!/usr/bin/env python3
"""
Command Line Interface for TalkToData.

Connects once (from flags, TALKTODATA_DB_* variables or the demo
database), then runs one command, or an interactive question loop when
no command is given.

COMMANDS:
- schema             Show tables, columns and row counts
- ask QUESTION       Generate SQL for a question (--run to execute it)
- run SQL            Execute SQL (validated exactly like the API does)
- explain SQL        Plain-language explanation of a query

The CLI uses the same orchestrator and safety gate as the HTTP API, with
an in-memory session instead of a cookie.
"""
import os
import sys
import argparse
from pathlib import Path
from typing import Any, Dict, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.syntax import Syntax
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich import box

from configs import DATA_DIR, DATABASE_DEFAULTS, get_demo_connection
from talktodata.errors import AppError, get_user_friendly_message
from talktodata.models import QueryResult, Schema
from talktodata.orchestrator import QueryOrchestrator
from talktodata.session import MemorySession
from talktodata.utils import ExportFormat, export_results, setup_logging

console = Console()

# Rows printed to the terminal; exports always contain the full result
DISPLAY_ROWS = 50


# ============================================================
# CONNECTION SETTINGS
# ============================================================

def connection_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    """Flags win over TALKTODATA_DB_* environment variables."""
    if args.demo:
        demo = get_demo_connection()
        if demo is None:
            raise SystemExit("Demo database not configured. Set DEMO_DB_HOST, DEMO_DB_NAME, DEMO_DB_USER and DEMO_DB_PASSWORD.")
        return demo

    db_type = args.type or os.getenv("TALKTODATA_DB_TYPE", "sqlite")
    default_port = DATABASE_DEFAULTS.get(db_type, {}).get("port", 0)
    port = args.port or os.getenv("TALKTODATA_DB_PORT") or default_port
    try:
        port = int(port)
    except ValueError:
        raise SystemExit(f"TALKTODATA_DB_PORT must be a number, got {port!r}.")
    default_database = str(DATA_DIR / "demo.db") if db_type == "sqlite" else ""

    return {
        "type": db_type,
        "host": args.host or os.getenv("TALKTODATA_DB_HOST", ""),
        "port": port,
        "database": args.database or os.getenv("TALKTODATA_DB_NAME") or default_database,
        "username": args.user or os.getenv("TALKTODATA_DB_USER", ""),
        "password": args.password or os.getenv("TALKTODATA_DB_PASSWORD", ""),
        "ssl": args.ssl or os.getenv("TALKTODATA_DB_SSL", "false").lower() == "true",
    }


# ============================================================
# OUTPUT
# ============================================================

def print_header(status) -> None:
    """Print the connection banner."""
    info = Table.grid(padding=(0, 2))
    info.add_column(style="cyan", justify="right")
    info.add_column(style="white")
    info.add_row("Database:", f"[bold]{status.database_name}[/bold]")
    info.add_row("Type:", DATABASE_DEFAULTS[status.database_type.value]["name"])
    info.add_row("Tables:", str(len(status.db_schema.tables)) if status.db_schema else "0")
    console.print(Panel(info, title="TalkToData", border_style="blue", padding=(1, 2)))


def print_schema(schema: Schema) -> None:
    for table in schema.tables:
        grid = Table(box=box.SIMPLE, show_header=True, header_style="bold cyan")
        grid.add_column("Column")
        grid.add_column("Type", style="green")
        grid.add_column("Key", style="yellow")
        grid.add_column("Nullable", style="dim")
        for column in table.columns:
            grid.add_row(
                column.name,
                column.data_type,
                "PK" if column.is_primary_key else "",
                "yes" if column.nullable else "no",
            )
        rows = f"{table.row_count:,} rows" if table.row_count is not None else "? rows"
        console.print(Panel(grid, title=f"[bold]{table.qualified_name}[/bold] ({rows})", border_style="cyan"))


def print_sql(sql: str) -> None:
    """Display SQL with syntax highlighting."""
    lexer = "json" if sql.lstrip().startswith("{") else "sql"
    console.print(Syntax(sql, lexer, theme="monokai", line_numbers=False))


def print_result(result: QueryResult) -> None:
    grid = Table(box=box.ROUNDED, header_style="bold cyan")
    for column in result.columns:
        grid.add_column(column.name)
    for row in result.rows[:DISPLAY_ROWS]:
        grid.add_row(*["" if row.get(c.name) is None else str(row.get(c.name)) for c in result.columns])
    console.print(grid)

    shown = min(result.row_count, DISPLAY_ROWS)
    console.print(
        f"[dim]{result.row_count} rows ({shown} shown) in {result.execution_time_ms:.1f} ms[/dim]"
    )


def export_to_file(result: QueryResult, path: str) -> None:
    fmt = ExportFormat.JSON if path.lower().endswith(".json") else ExportFormat.CSV
    content, _ = export_results(result.column_names(), result.rows, fmt)
    Path(path).write_text(content, encoding="utf-8")
    console.print(f"[green]Exported {result.row_count} rows to {path}[/green]")


def spinner(description: str) -> Progress:
    progress = Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    )
    progress.add_task(description=description, total=None)
    return progress


# ============================================================
# COMMANDS
# ============================================================

def run_sql(orchestrator: QueryOrchestrator, session: MemorySession, sql: str, export: Optional[str]) -> None:
    with spinner("Executing query..."):
        result = orchestrator.execute_sql(session, sql)
    print_result(result)
    if export:
        export_to_file(result, export)


def ask(orchestrator: QueryOrchestrator, session: MemorySession, question: str, run: bool, export: Optional[str]) -> None:
    with spinner("Generating SQL..."):
        sql = orchestrator.generate_sql(session, question)
    print_sql(sql)
    if run:
        run_sql(orchestrator, session, sql, export)


def interactive_mode(orchestrator: QueryOrchestrator, session: MemorySession) -> None:
    """Ask questions until 'exit'; each answer is generated, shown and run."""
    console.print("[dim]Ask a question in plain language. Type 'exit' or 'quit' to stop.[/dim]\n")

    while True:
        try:
            question = console.input("[bold yellow]Your question: [/bold yellow]")
        except (KeyboardInterrupt, EOFError):
            console.print("\n[bold green]Goodbye![/bold green]")
            break

        if question.lower().strip() in ("exit", "quit", "q"):
            console.print("[bold green]Goodbye![/bold green]")
            break
        if not question.strip():
            continue

        try:
            ask(orchestrator, session, question, run=True, export=None)
        except AppError as e:
            console.print(f"[bold red]{e.code.value}:[/bold red] {e.message}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="TalkToData - ask your database questions in plain language",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python cli.py --database ./data/demo.db schema
  python cli.py --demo ask "Average salary per department" --run
  python cli.py --type postgresql --host localhost --database shop --user me run "SELECT * FROM orders"
  python cli.py --database ./data/demo.db run "SELECT * FROM employees" --export employees.csv
        """
    )

    connection = parser.add_argument_group("connection")
    connection.add_argument("--type", choices=sorted(DATABASE_DEFAULTS), help="Database type (default: sqlite)")
    connection.add_argument("--host", help="Database host")
    connection.add_argument("--port", type=int, help="Database port (default: per type)")
    connection.add_argument("--database", "-d", help="Database name, or file path for SQLite")
    connection.add_argument("--user", "-u", help="Username")
    connection.add_argument("--password", "-p", help="Password")
    connection.add_argument("--ssl", action="store_true", help="Use TLS")
    connection.add_argument("--demo", action="store_true", help="Use the DEMO_DB_* demo database")

    commands = parser.add_subparsers(dest="command")

    commands.add_parser("schema", help="Show the database schema")

    ask_parser = commands.add_parser("ask", help="Generate SQL for a question")
    ask_parser.add_argument("question")
    ask_parser.add_argument("--run", action="store_true", help="Execute the generated SQL")
    ask_parser.add_argument("--export", metavar="FILE", help="Write results to FILE (.csv or .json)")

    run_parser = commands.add_parser("run", help="Execute a SQL query")
    run_parser.add_argument("sql")
    run_parser.add_argument("--export", metavar="FILE", help="Write results to FILE (.csv or .json)")

    explain_parser = commands.add_parser("explain", help="Explain a SQL query")
    explain_parser.add_argument("sql")

    return parser


def main(argv=None):
    """Main entry point for the CLI."""
    args = build_parser().parse_args(argv)
    setup_logging(os.getenv("LOG_LEVEL", "WARNING"))

    orchestrator = QueryOrchestrator()
    session = MemorySession()

    try:
        with spinner("Connecting..."):
            status = orchestrator.connect(session, connection_from_args(args))
        print_header(status)

        if args.command == "schema":
            print_schema(status.db_schema)
        elif args.command == "ask":
            ask(orchestrator, session, args.question, args.run, args.export)
        elif args.command == "run":
            run_sql(orchestrator, session, args.sql, args.export)
        elif args.command == "explain":
            with spinner("Explaining..."):
                explanation = orchestrator.explain_sql(session, args.sql)
            console.print(Panel(explanation, title="Explanation", border_style="green"))
        else:
            interactive_mode(orchestrator, session)

    except AppError as e:
        console.print(f"[bold red]{e.code.value}:[/bold red] {e.message}")
        sys.exit(1)
    except Exception as e:
        console.print(f"\n[bold red]Fatal error: {get_user_friendly_message(e)}[/bold red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
