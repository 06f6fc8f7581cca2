"""
API endpoint tests for the TalkToData backend.

Uses FastAPI TestClient; no running server or LLM required. Database
calls go to temporary SQLite files, LLM calls are mocked on the
orchestrator's service.
"""

import os
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Ensure project root is on the path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Set environment BEFORE any app imports
os.environ.setdefault("SESSION_SECRET", "test-session-secret-that-is-long-enough-123")
os.environ.setdefault("GROQ_API_KEY", "test-key-for-ci")

from fastapi.testclient import TestClient

from talktodata.api.deps import get_orchestrator, reset_orchestrator
from talktodata.api.main import app
from talktodata.llm import NLToSQLService
from talktodata.models import ChartSuggestion
from talktodata.utils import RateLimiter

from conftest import EMPLOYEE_COLUMNS, EMPLOYEE_COUNT


@pytest.fixture
def client():
    reset_orchestrator()
    with TestClient(app) as test_client:
        yield test_client
    reset_orchestrator()


@pytest.fixture
def connected(client, demo_db_path):
    response = client.post("/api/connect", json={"type": "sqlite", "database": str(demo_db_path)})
    assert response.status_code == 200
    return client


@pytest.fixture
def llm():
    service = MagicMock(spec=NLToSQLService)
    get_orchestrator()._llm = service
    return service


# =============================================================================
# HEALTH ENDPOINT
# =============================================================================

class TestHealthEndpoint:
    """Tests for GET /health."""

    def test_health_returns_200(self, client):
        response = client.get("/health")
        assert response.status_code == 200

    def test_health_response_shape(self, client):
        data = client.get("/health").json()
        assert data["status"] == "healthy"
        assert data["version"] == "1.0.0"
        assert data["llm_configured"] is True
        assert set(data["supported_databases"]) == {
            "postgresql", "mysql", "sqlite", "sqlserver", "mongodb",
        }

    def test_health_not_rate_limited(self, client):
        assert "X-RateLimit-Limit" not in client.get("/health").headers


# =============================================================================
# CONNECTION
# =============================================================================

class TestConnection:

    def test_connect_sqlite_sets_cookie(self, client, demo_db_path):
        response = client.post("/api/connect", json={"type": "sqlite", "database": str(demo_db_path)})
        body = response.json()

        assert response.status_code == 200
        assert body["success"] is True
        assert body["data"]["connected"] is True
        assert body["data"]["database_type"] == "sqlite"
        assert len(body["data"]["schema"]["tables"]) == 5
        assert "talktodata_session" in response.cookies

    def test_cookie_does_not_expose_password(self, client, demo_db_path):
        response = client.post(
            "/api/connect",
            json={"type": "sqlite", "database": str(demo_db_path), "password": "hunter2"},
        )
        assert "hunter2" not in response.headers["set-cookie"]

    def test_missing_file_is_connection_failed(self, client, tmp_path):
        response = client.post("/api/connect", json={"type": "sqlite", "database": str(tmp_path / "nope.db")})
        body = response.json()

        assert response.status_code == 400
        assert body["success"] is False
        assert body["error"]["code"] == "CONNECTION_FAILED"

    def test_invalid_settings_are_validation_error(self, client):
        response = client.post("/api/connect", json={"type": "postgresql", "database": "shop"})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"
        assert "Host is required" in response.json()["error"]["message"]

    def test_session_round_trip(self, connected):
        data = connected.get("/api/session").json()["data"]
        assert data["connected"] is True
        assert "employees" in [t["name"] for t in data["schema"]["tables"]]

    def test_session_without_cookie(self, client):
        data = client.get("/api/session").json()["data"]
        assert data["connected"] is False

    def test_disconnect(self, connected):
        response = connected.delete("/api/connect")
        assert response.status_code == 200
        assert response.json()["data"]["disconnected"] is True
        assert connected.get("/api/session").json()["data"]["connected"] is False

    def test_demo_not_configured(self, client, monkeypatch):
        from talktodata.orchestrator import flow
        monkeypatch.setattr(flow, "get_demo_connection", lambda: None)

        response = client.post("/api/demo-connect")
        assert response.status_code == 500
        assert response.json()["error"]["code"] == "CONFIG_ERROR"


# =============================================================================
# SCHEMA / EXECUTE
# =============================================================================

class TestSchemaEndpoint:

    def test_schema(self, connected):
        tables = connected.get("/api/schema").json()["data"]["tables"]
        employees = next(t for t in tables if t["name"] == "employees")
        assert employees["row_count"] == EMPLOYEE_COUNT

    def test_schema_requires_connection(self, client):
        response = client.get("/api/schema")
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "NO_CONNECTION"


class TestExecuteEndpoint:

    def test_select_all_employees(self, connected):
        response = connected.post("/api/execute", json={"sql": "SELECT * FROM employees"})
        data = response.json()["data"]

        assert response.status_code == 200
        assert data["row_count"] == EMPLOYEE_COUNT
        assert len(data["columns"]) == EMPLOYEE_COLUMNS
        assert data["execution_time_ms"] >= 0

    def test_drop_table_rejected(self, connected):
        response = connected.post("/api/execute", json={"sql": "DROP TABLE employees"})
        body = response.json()

        assert response.status_code == 400
        assert body["error"]["code"] == "DANGEROUS_QUERY"
        # Table still there
        check = connected.post("/api/execute", json={"sql": "SELECT COUNT(*) AS n FROM employees"})
        assert check.json()["data"]["rows"] == [{"n": EMPLOYEE_COUNT}]

    def test_driver_error_is_invalid_sql(self, connected):
        response = connected.post("/api/execute", json={"sql": "SELECT * FROM no_such_table"})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_SQL"

    def test_requires_connection(self, client):
        response = client.post("/api/execute", json={"sql": "SELECT 1"})
        assert response.status_code == 401

    def test_empty_sql_is_validation_error(self, connected):
        response = connected.post("/api/execute", json={"sql": ""})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"


# =============================================================================
# LLM FEATURES
# =============================================================================

class TestLlmEndpoints:

    def test_generate(self, connected, llm):
        llm.generate_sql.return_value = "SELECT department, COUNT(*) FROM employees GROUP BY department"

        response = connected.post("/api/generate", json={"question": "Employees per department?"})
        data = response.json()["data"]

        assert response.status_code == 200
        assert data["sql"].startswith("SELECT department")
        assert data["is_valid_structure"] is True
        question, schema_context = llm.generate_sql.call_args.args
        assert question == "Employees per department?"
        assert "Table: employees" in schema_context

    def test_generate_question_too_long(self, connected, llm):
        response = connected.post("/api/generate", json={"question": "a" * 1001})
        assert response.status_code == 400
        llm.generate_sql.assert_not_called()

    def test_llm_failure(self, connected, llm):
        from talktodata.errors import LlmError
        llm.generate_sql.side_effect = LlmError("No response from LLM")

        response = connected.post("/api/generate", json={"question": "Anything?"})
        assert response.status_code == 500
        assert response.json()["error"] == {"code": "LLM_ERROR", "message": "No response from LLM"}

    def test_explain(self, connected, llm):
        llm.explain_sql.return_value = "Lists every employee."
        response = connected.post("/api/explain", json={"sql": "SELECT * FROM employees"})
        assert response.json()["data"]["explanation"] == "Lists every employee."

    def test_fix(self, connected, llm):
        llm.fix_sql.return_value = "SELECT * FROM employees"
        response = connected.post(
            "/api/fix", json={"sql": "SELECT * FROM employee", "error": "no such table: employee"}
        )
        assert response.json()["data"]["sql"] == "SELECT * FROM employees"

    def test_chart_suggest(self, connected, llm):
        llm.suggest_chart.return_value = ChartSuggestion(
            chart_type="bar", x_axis="department", y_axis="n", explanation="Categories."
        )
        response = connected.post("/api/chart-suggest", json={
            "columns": [{"name": "department", "data_type": "text"}, {"name": "n", "data_type": "integer"}],
            "sample_rows": [{"department": "HR", "n": 1}],
            "row_count": 1,
        })
        assert response.json()["data"]["chart_type"] == "bar"


# =============================================================================
# EXPORT
# =============================================================================

class TestExportEndpoint:

    def test_csv_download(self, client):
        response = client.post("/api/export", json={
            "columns": ["id", "name"],
            "rows": [{"id": 1, "name": "John"}],
            "format": "csv",
            "filename": "employees",
        })
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert 'filename="employees.csv"' in response.headers["content-disposition"]
        assert response.text.splitlines() == ["id,name", "1,John"]

    def test_bad_filename_rejected(self, client):
        response = client.post("/api/export", json={"rows": [], "filename": "../etc/passwd"})
        assert response.status_code == 400


# =============================================================================
# RATE LIMITING
# =============================================================================

class TestRateLimiting:

    @pytest.fixture
    def strict_limiter(self):
        original = app.state.rate_limiter
        app.state.rate_limiter = RateLimiter(max_requests=2, window_seconds=60)
        yield app.state.rate_limiter
        app.state.rate_limiter = original

    def test_headers_on_api_responses(self, client, strict_limiter):
        response = client.get("/api/session")
        assert response.headers["X-RateLimit-Limit"] == "2"
        assert response.headers["X-RateLimit-Remaining"] == "1"

    def test_third_request_is_429(self, client, strict_limiter):
        client.get("/api/session")
        client.get("/api/session")
        response = client.get("/api/session")

        assert response.status_code == 429
        assert response.json()["error"]["code"] == "RATE_LIMITED"
        assert int(response.headers["Retry-After"]) > 0

    def test_clients_identified_by_forwarded_for(self, client, strict_limiter):
        for _ in range(2):
            client.get("/api/session", headers={"X-Forwarded-For": "10.0.0.1"})
        assert client.get("/api/session", headers={"X-Forwarded-For": "10.0.0.1"}).status_code == 429
        assert client.get("/api/session", headers={"X-Forwarded-For": "10.0.0.2"}).status_code == 200
