"""
Utility helpers shared by both services.
"""

from .logging import correlation_id_var, log_context, request_id_var, setup_logging

__all__ = [
    "correlation_id_var",
    "log_context",
    "request_id_var",
    "setup_logging",
]
