"""Result export tests (CSV / JSON via pandas)."""

import json

import pytest

from talktodata.utils import ExportFormat, export_results
from talktodata.utils.export import export_filename


COLUMNS = ["id", "name", "salary"]
ROWS = [
    {"id": 1, "name": "John", "salary": 95000.0},
    {"id": 2, "name": "Zoë, Jr.", "salary": None},
]


class TestExport:

    def test_csv_has_header_and_keeps_column_order(self):
        content, media_type = export_results(COLUMNS, ROWS, ExportFormat.CSV)
        lines = content.splitlines()

        assert media_type == "text/csv"
        assert lines[0] == "id,name,salary"
        assert lines[1] == "1,John,95000.0"
        assert lines[2] == '2,"Zoë, Jr.",'

    def test_json_records(self):
        content, media_type = export_results(COLUMNS, ROWS, "json")

        assert media_type == "application/json"
        assert json.loads(content) == [
            {"id": 1, "name": "John", "salary": 95000.0},
            {"id": 2, "name": "Zoë, Jr.", "salary": None},
        ]

    def test_empty_result(self):
        content, _ = export_results(COLUMNS, [], ExportFormat.CSV)
        assert content.strip() == "id,name,salary"

    def test_unknown_format(self):
        with pytest.raises(ValueError):
            export_results(COLUMNS, ROWS, "xlsx")

    def test_filename(self):
        assert export_filename(ExportFormat.JSON) == "query_results.json"
        assert export_filename("csv", stem="employees") == "employees.csv"
