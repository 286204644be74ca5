"""
Async SQLAlchemy session management.
"""

from .session import DatabaseSessionManager

__all__ = ["DatabaseSessionManager"]
