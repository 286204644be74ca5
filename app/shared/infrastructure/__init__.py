"""
Infrastructure layer shared by both services.
Provides database sessions and the HTTP client used between services.
"""

__all__ = []
