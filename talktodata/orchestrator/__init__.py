"""Query orchestration flow."""
from .flow import QueryOrchestrator, parse_connection_config

__all__ = ["QueryOrchestrator", "parse_connection_config"]
