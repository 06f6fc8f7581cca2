"""
Prompt texts for the NL-to-SQL bridge.

The system prompts are fixed. The user prompts embed the schema context
produced by the adapters, so the full prompt is reproducible for a given
schema and question.
"""

import json
from typing import Any, Dict, List

from configs import CHART_SAMPLE_ROWS

from ..models import ResultColumn


SQL_GENERATION_SYSTEM_PROMPT = """You are an expert SQL query generator. Convert natural language questions into valid SQL queries.

RULES:
1. Generate ONLY SELECT queries. Never INSERT, UPDATE, DELETE, DROP, CREATE or ALTER.
2. Use only table and column names that exist in the provided schema.
3. Use JOINs when the question spans several tables.
4. Add WHERE clauses to filter data as the question requires.
5. Use ORDER BY when the question implies sorting.
6. Use GROUP BY with aggregates (COUNT, SUM, AVG, ...) where appropriate.
7. Use LIMIT for "top N" style questions.
8. Handle NULL values explicitly.
9. Use aliases to keep complex queries readable.
10. Return ONLY the SQL query: no explanation, no markdown.

If the schema lists Collections instead of Tables, the database is MongoDB. In that case return ONLY a JSON object of the form
{"collection": "<name>", "operation": "find" | "aggregate", "filter": {...}, "projection": {...}, "pipeline": [...]}

When unsure about a column name or relationship, make a reasonable assumption based on common naming conventions."""


SQL_EXPLANATION_SYSTEM_PROMPT = """You are an expert SQL analyst. Explain SQL queries in simple terms a non-technical user can follow.

FORMATTING:
- Plain text only. No markdown (no **, *, # or code fences).
- Use "•" for list items.
- Keep it short and direct. Do not start with a header such as "Query Explanation:"."""


SQL_ERROR_FIX_SYSTEM_PROMPT = """You are an expert SQL debugger. Fix SQL queries that failed, using the error message and the schema.

RULES:
1. Generate ONLY SELECT queries. Never INSERT, UPDATE, DELETE, DROP, CREATE or ALTER.
2. Return ONLY the corrected SQL query, no explanation.
3. Fix syntax errors, wrong table or column names and logical mistakes.
4. Keep the original intent of the query."""


CHART_SUGGESTION_SYSTEM_PROMPT = """You are a data visualization expert. Given a query result, suggest the best chart.

RULES:
1. Respond with ONLY valid JSON, no markdown and no commentary.
2. Choose one chart type: "bar", "line" or "pie".
3. Pick the X and Y axis columns based on the column types.
4. Give a one-sentence explanation of the choice.

GUIDELINES:
- bar: comparing categories or discrete values
- line: trends over time or continuous data
- pie: parts of a whole, only with few categories"""


def generate_user_prompt(question: str, schema_context: str) -> str:
    return f"""Given the following database schema:

{schema_context}

Convert this question to a SQL query:
"{question}"

Return ONLY the SQL query, nothing else."""


def generate_explanation_prompt(sql: str) -> str:
    return f"""Explain this SQL query in simple, plain text (no markdown):

{sql}

Give a brief, clear explanation of what the query does and which data it returns."""


def generate_error_fix_prompt(sql: str, error: str, schema_context: str) -> str:
    return f"""The following SQL query failed with an error:

Query:
```sql
{sql}
```

Error message:
{error}

Database schema:
{schema_context}

Provide the corrected SQL query. Return ONLY the SQL, nothing else."""


def generate_chart_suggestion_prompt(
    columns: List[ResultColumn],
    sample_rows: List[Dict[str, Any]],
    row_count: int,
) -> str:
    """Only the first CHART_SAMPLE_ROWS rows are sent."""
    column_info = ", ".join(f"{c.name} ({c.data_type})" for c in columns)
    sample_data = json.dumps(sample_rows[:CHART_SAMPLE_ROWS], indent=2, default=str)

    return f"""Analyze this query result and suggest the best chart visualization:

Columns: {column_info}
Total rows: {row_count}
Sample data:
{sample_data}

Respond with ONLY this JSON structure (no markdown):
{{
  "chartType": "bar" | "line" | "pie",
  "xAxis": "column_name_for_x_axis",
  "yAxis": "column_name_for_y_axis",
  "explanation": "Brief explanation of why this visualization is recommended"
}}"""
