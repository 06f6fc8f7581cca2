"""
LLM Client.

PURPOSE:
========
One thin wrapper around a hosted chat-completion API. Every NL-to-SQL
feature (generate, fix, explain, chart suggestion) is one call to
`LLMClient.complete(system_prompt, user_prompt)`.

The call goes through LiteLLM, so the provider is selected by the model
string (default "groq/llama-3.3-70b-versatile"). Sampling temperature is
fixed low for reproducible SQL, and output tokens are bounded.

There are NO automatic retries here: a failed call surfaces as LlmError
and the user decides whether to try again.
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional

from litellm import completion

from configs import GROQ_API_KEY, LLM_MAX_TOKENS, LLM_MODEL, LLM_TEMPERATURE

from ..errors import LlmError


logger = logging.getLogger(__name__)


# ============================================================
# DATA MODELS
# ============================================================

@dataclass
class LLMResponse:
    """Standardized LLM response."""
    content: str
    model: str
    tokens_used: int = 0
    latency_ms: float = 0.0


# ============================================================
# CLIENT
# ============================================================

class LLMClient:
    """
    Chat-completion client (system + user message in, text out).

    The API key is resolved at construction time; a missing key is only
    reported when a completion is actually requested, so the rest of the
    app runs without one.
    """

    def __init__(
        self,
        model: str = LLM_MODEL,
        api_key: Optional[str] = None,
        temperature: float = LLM_TEMPERATURE,
        max_tokens: int = LLM_MAX_TOKENS,
    ):
        self.model = model
        self.api_key = api_key if api_key is not None else GROQ_API_KEY
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.call_count = 0

    def complete(self, system_prompt: str, user_prompt: str) -> LLMResponse:
        """
        Run one completion.

        Raises:
            LlmError: missing API key, provider error, or an empty response
        """
        if not self.api_key:
            raise LlmError("LLM API key is not configured. Set GROQ_API_KEY in your .env file.")

        start = time.perf_counter()
        try:
            response = completion(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                api_key=self.api_key,
            )
        except Exception as e:
            logger.warning("LLM call to %s failed: %s", self.model, e)
            raise LlmError(f"LLM request failed: {e}", original_error=e)

        self.call_count += 1
        latency_ms = (time.perf_counter() - start) * 1000

        choices = getattr(response, "choices", None) or []
        content = choices[0].message.content if choices else None
        if not content:
            raise LlmError("No response from LLM")

        usage = getattr(response, "usage", None)
        tokens_used = getattr(usage, "total_tokens", 0) or 0
        logger.debug(
            "LLM call to %s: %d tokens in %.0f ms", self.model, tokens_used, latency_ms
        )

        return LLMResponse(
            content=content,
            model=self.model,
            tokens_used=tokens_used,
            latency_ms=round(latency_ms, 2),
        )
