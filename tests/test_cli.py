"""CLI tests against a temporary SQLite database."""

import argparse
import json

import pytest

import cli


class TestConnectionArgs:

    def test_flags_win_over_environment(self, monkeypatch):
        monkeypatch.setenv("TALKTODATA_DB_TYPE", "postgresql")
        monkeypatch.setenv("TALKTODATA_DB_HOST", "env-host")
        args = cli.build_parser().parse_args(["--host", "flag-host", "schema"])

        config = cli.connection_from_args(args)

        assert config["type"] == "postgresql"
        assert config["host"] == "flag-host"
        assert config["port"] == 5432

    def test_defaults_to_sqlite(self, monkeypatch):
        monkeypatch.delenv("TALKTODATA_DB_TYPE", raising=False)
        args = argparse.Namespace(
            demo=False, type=None, host=None, port=None, database="x.db",
            user=None, password=None, ssl=False,
        )
        assert cli.connection_from_args(args)["type"] == "sqlite"

    def test_non_numeric_port_names_the_variable(self, monkeypatch):
        monkeypatch.setenv("TALKTODATA_DB_PORT", "abc")
        args = cli.build_parser().parse_args(["--type", "postgresql", "schema"])

        with pytest.raises(SystemExit) as exc_info:
            cli.connection_from_args(args)
        assert "TALKTODATA_DB_PORT" in str(exc_info.value)


class TestCommands:

    def test_run_and_export_json(self, demo_db_path, tmp_path):
        out = tmp_path / "employees.json"
        cli.main(["--type", "sqlite", "--database", str(demo_db_path),
                  "run", "SELECT id, first_name FROM employees", "--export", str(out)])

        records = json.loads(out.read_text(encoding="utf-8"))
        assert len(records) == 10
        assert records[0] == {"id": 1, "first_name": "John"}

    def test_schema(self, demo_db_path, capsys):
        cli.main(["--type", "sqlite", "--database", str(demo_db_path), "schema"])
        assert "employees" in capsys.readouterr().out

    def test_dangerous_query_exits_with_error(self, demo_db_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--type", "sqlite", "--database", str(demo_db_path), "run", "DROP TABLE employees"])
        assert exc_info.value.code == 1
        assert "DANGEROUS_QUERY" in capsys.readouterr().out
