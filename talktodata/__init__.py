"""
TalkToData: ask a database questions in plain language.

Packages:
- adapters:     one DatabaseAdapter per backend + type registry
- validators:   SQL safety gate
- llm:          NL-to-SQL bridge over LiteLLM
- session:      encrypted connection session store
- orchestrator: connect -> act -> disconnect flows
- api:          FastAPI application
"""

__version__ = "1.0.0"
