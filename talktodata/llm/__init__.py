"""NL-to-SQL bridge (LiteLLM client, prompts, service)."""
from .client import LLMClient, LLMResponse
from .json_utils import JSONExtractionError, parse_llm_json, strip_code_fences
from .service import NLToSQLService, extract_sql, default_chart_suggestion

__all__ = [
    "LLMClient",
    "LLMResponse",
    "JSONExtractionError",
    "parse_llm_json",
    "strip_code_fences",
    "NLToSQLService",
    "extract_sql",
    "default_chart_suggestion",
]
