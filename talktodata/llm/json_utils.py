"""
Text clean-up for LLM completions.

PROBLEM
-------
Models wrap their answers even when told not to:

    ```sql
    SELECT * FROM employees
    ```

    Sure! {"chartType": "bar", ...} Let me know if you need more.

SOLUTION
--------
- SQL answers: strip one leading/trailing Markdown code fence.
- JSON answers: take ONLY the first balanced JSON object and parse it.
"""
import json
import re
from typing import Any, Dict


class JSONExtractionError(Exception):
    """Raised when no valid JSON object can be extracted."""
    pass


_LEADING_FENCE = re.compile(r"^```[a-zA-Z]*\s*")
_TRAILING_FENCE = re.compile(r"\s*```$")


def strip_code_fences(text: str) -> str:
    """
    Remove Markdown code-fence wrapping around a completion.

    >>> strip_code_fences("```sql\\nSELECT 1\\n```")
    'SELECT 1'
    """
    cleaned = (text or "").strip()
    cleaned = _LEADING_FENCE.sub("", cleaned)
    cleaned = _TRAILING_FENCE.sub("", cleaned)
    return cleaned.strip()


def extract_first_json_block(text: str) -> str:
    """
    Return the first balanced ``{...}`` block in `text`.

    Braces inside JSON strings are ignored while matching.

    Raises:
        JSONExtractionError: no opening brace, or braces never balance
    """
    if not text or not isinstance(text, str):
        raise JSONExtractionError("Input text is empty or not a string")

    text = strip_code_fences(text)

    start_idx = text.find("{")
    if start_idx == -1:
        raise JSONExtractionError("No JSON object found (no opening brace)")

    depth = 0
    in_string = False
    escape_next = False

    for i in range(start_idx, len(text)):
        char = text[i]

        if escape_next:
            escape_next = False
            continue
        if char == "\\":
            escape_next = True
            continue
        if char == '"':
            in_string = not in_string
            continue
        if in_string:
            continue

        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start_idx:i + 1]

    raise JSONExtractionError("No matching closing brace found (unbalanced braces)")


def parse_llm_json(text: str) -> Dict[str, Any]:
    """
    Extract and parse the first JSON object of a completion.

    Raises:
        JSONExtractionError: extraction or parsing failed, or the JSON is
            not an object
    """
    json_str = extract_first_json_block(text)
    try:
        parsed = json.loads(json_str)
    except json.JSONDecodeError as e:
        raise JSONExtractionError(f"Extracted text is not valid JSON: {e}")

    if not isinstance(parsed, dict):
        raise JSONExtractionError(f"Expected JSON object, got {type(parsed).__name__}")
    return parsed
