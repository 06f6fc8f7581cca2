"""
SQL safety validator tests.

No database or LLM required: the validator is pure string checking.
"""

import pytest

from talktodata.errors import DangerousQueryError, ErrorCode
from talktodata.validators import is_valid_sql_structure, sanitize_sql, validate_sql


# =============================================================================
# ALLOWED STATEMENTS
# =============================================================================

class TestAllowedQueries:

    @pytest.mark.parametrize("sql", [
        "SELECT * FROM employees",
        "select id, email from employees where department = 'Sales'",
        "  SELECT 1",
        "WITH top_paid AS (SELECT * FROM employees ORDER BY salary DESC) SELECT * FROM top_paid",
        "SELECT department, AVG(salary) FROM employees GROUP BY department",
    ])
    def test_read_only_queries_pass(self, sql):
        validate_sql(sql)

    @pytest.mark.parametrize("sql", [
        "SELECT created_at FROM employees",
        "SELECT updated_at, is_deleted FROM audit",
        "SELECT dropped_count FROM stats",
        "SELECT * FROM call_log",
    ])
    def test_keywords_inside_identifiers_pass(self, sql):
        validate_sql(sql)


# =============================================================================
# REJECTED STATEMENTS
# =============================================================================

class TestRejectedQueries:

    @pytest.mark.parametrize("sql", [
        "DROP TABLE employees",
        "DELETE FROM employees",
        "UPDATE employees SET salary = 0",
        "INSERT INTO employees (id) VALUES (1)",
        "EXPLAIN SELECT 1",
        "",
        "   ",
    ])
    def test_non_select_prefix_rejected(self, sql):
        with pytest.raises(DangerousQueryError) as exc_info:
            validate_sql(sql)
        assert exc_info.value.code == ErrorCode.DANGEROUS_QUERY
        assert "Only SELECT" in exc_info.value.message

    @pytest.mark.parametrize("sql,keyword", [
        ("SELECT * FROM employees; DROP TABLE employees", "DROP"),
        ("SELECT * INTO backup FROM employees", "INTO"),
        ("WITH d AS (DELETE FROM employees RETURNING *) SELECT * FROM d", "DELETE"),
        ("select 1; truncate employees", "TRUNCATE"),
        ("SELECT * FROM t WHERE 1 = 1 OR exec('x')", "EXEC"),
    ])
    def test_forbidden_keyword_named(self, sql, keyword):
        with pytest.raises(DangerousQueryError) as exc_info:
            validate_sql(sql)
        assert keyword in exc_info.value.message
        assert exc_info.value.details == {"keyword": keyword}

    @pytest.mark.parametrize("sql,label", [
        ("SELECT * FROM employees -- hide the rest", "line comment"),
        ("SELECT * FROM employees\n-- comment\nWHERE id = 1", "line comment"),
        ("SELECT /* sneaky */ * FROM employees", "block comment"),
        ("SELECT name FROM products UNION SELECT email FROM employees", "UNION SELECT"),
        ("SELECT name FROM products union all select email FROM employees", "UNION SELECT"),
    ])
    def test_dangerous_patterns_rejected(self, sql, label):
        with pytest.raises(DangerousQueryError) as exc_info:
            validate_sql(sql)
        assert "dangerous patterns" in exc_info.value.message
        assert exc_info.value.details == {"pattern": label}

    def test_comment_text_inside_string_literal_is_rejected(self):
        # Heuristic, not a parser: the literal is not exempt
        with pytest.raises(DangerousQueryError):
            validate_sql("SELECT * FROM notes WHERE body = 'a -- b'")


# =============================================================================
# SANITIZE / STRUCTURE
# =============================================================================

class TestSanitize:

    def test_trims_and_drops_trailing_semicolons(self):
        assert sanitize_sql("  SELECT 1;;  ") == "SELECT 1"

    def test_collapses_whitespace(self):
        assert sanitize_sql("SELECT *\n\tFROM   employees") == "SELECT * FROM employees"

    @pytest.mark.parametrize("sql", [
        "SELECT 1;",
        "  SELECT\n*\nFROM t ; ",
        "",
        "WITH x AS (SELECT 1)   SELECT * FROM x;;",
        "SELECT 1 ; ;",
        "SELECT 1;\n;",
    ])
    def test_idempotent(self, sql):
        once = sanitize_sql(sql)
        assert sanitize_sql(once) == once

    def test_spaced_trailing_semicolons_removed(self):
        assert sanitize_sql("SELECT 1 ; ;") == "SELECT 1"

    def test_none_becomes_empty(self):
        assert sanitize_sql(None) == ""


class TestStructureHint:

    def test_balanced_select(self):
        assert is_valid_sql_structure("SELECT COUNT(*) FROM (SELECT 1) t")

    def test_unbalanced_parentheses(self):
        assert not is_valid_sql_structure("SELECT COUNT(* FROM employees")
        assert not is_valid_sql_structure("SELECT 1)")

    def test_requires_select_or_with(self):
        assert is_valid_sql_structure("with x as (select 1) select * from x")
        assert not is_valid_sql_structure("SHOW TABLES")
