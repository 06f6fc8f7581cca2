"""Utilities: rate limiting, result export, logging setup."""
from .rate_limit import RateLimiter, RateLimitDecision, get_client_id
from .export import ExportFormat, export_results, export_filename, results_to_dataframe
from .logging_setup import setup_logging

__all__ = [
    "RateLimiter",
    "RateLimitDecision",
    "get_client_id",
    "ExportFormat",
    "export_results",
    "export_filename",
    "results_to_dataframe",
    "setup_logging",
]
