"""
NL-to-SQL service: the four features built on one completion call.

    generate_sql   question + schema context  -> SQL
    fix_sql        SQL + error + schema       -> SQL
    explain_sql    SQL                        -> plain-text explanation
    suggest_chart  result columns + sample    -> ChartSuggestion

SQL-returning features strip Markdown code fences before returning.
Chart suggestion never fails on a bad completion: unparseable JSON gives
a default bar chart, and unknown chart types are coerced to "bar".
"""

import logging
from typing import Any, Dict, List, Optional

from ..errors import LlmError
from ..models import ChartSuggestion, ChartType, ResultColumn
from . import prompts
from .client import LLMClient
from .json_utils import JSONExtractionError, parse_llm_json, strip_code_fences


logger = logging.getLogger(__name__)

FALLBACK_CHART_EXPLANATION = "Default bar chart suggested. AI response could not be parsed."


def extract_sql(text: str) -> str:
    """Strip code fences from a completion and return the bare statement."""
    return strip_code_fences(text)


def default_chart_suggestion(columns: List[ResultColumn]) -> ChartSuggestion:
    """Bar chart over the first column against the second (or the first)."""
    x_axis = columns[0].name if columns else ""
    if len(columns) > 1:
        y_axis = columns[1].name
    else:
        y_axis = x_axis
    return ChartSuggestion(
        chart_type=ChartType.BAR,
        x_axis=x_axis,
        y_axis=y_axis,
        explanation=FALLBACK_CHART_EXPLANATION,
    )


def _coerce_chart_type(value: Any) -> ChartType:
    try:
        return ChartType(str(value).lower())
    except ValueError:
        return ChartType.BAR


class NLToSQLService:
    """Prompt assembly and post-processing around an LLMClient."""

    def __init__(self, client: Optional[LLMClient] = None):
        self.client = client or LLMClient()

    def generate_sql(self, question: str, schema_context: str) -> str:
        response = self.client.complete(
            prompts.SQL_GENERATION_SYSTEM_PROMPT,
            prompts.generate_user_prompt(question, schema_context),
        )
        sql = extract_sql(response.content)
        if not sql:
            raise LlmError("LLM returned an empty query")
        logger.info("Generated SQL for question (%d chars)", len(question))
        return sql

    def fix_sql(self, sql: str, error: str, schema_context: str) -> str:
        response = self.client.complete(
            prompts.SQL_ERROR_FIX_SYSTEM_PROMPT,
            prompts.generate_error_fix_prompt(sql, error, schema_context),
        )
        fixed = extract_sql(response.content)
        if not fixed:
            raise LlmError("LLM returned an empty query")
        return fixed

    def explain_sql(self, sql: str) -> str:
        response = self.client.complete(
            prompts.SQL_EXPLANATION_SYSTEM_PROMPT,
            prompts.generate_explanation_prompt(sql),
        )
        return response.content.strip()

    def suggest_chart(
        self,
        columns: List[ResultColumn],
        sample_rows: List[Dict[str, Any]],
        row_count: int,
    ) -> ChartSuggestion:
        response = self.client.complete(
            prompts.CHART_SUGGESTION_SYSTEM_PROMPT,
            prompts.generate_chart_suggestion_prompt(columns, sample_rows, row_count),
        )

        try:
            parsed = parse_llm_json(response.content)
        except JSONExtractionError as e:
            logger.warning("Chart suggestion was not valid JSON, using default: %s", e)
            return default_chart_suggestion(columns)

        return ChartSuggestion(
            chart_type=_coerce_chart_type(parsed.get("chartType")),
            x_axis=str(parsed.get("xAxis") or ""),
            y_axis=str(parsed.get("yAxis") or ""),
            explanation=str(parsed.get("explanation") or ""),
        )
