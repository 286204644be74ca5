# 📄 File: app/api/middleware/__init__.py
# 🧭 Purpose (Layman Explanation):
# Collects the helpers that wrap every request: one turns errors into a standard reply,
# the other writes a log line per request.
# 🧪 Purpose (Technical Summary):
# Exports ErrorHandlingMiddleware, the exception handler registration and RequestLoggingMiddleware.
# 🔗 Dependencies:
# error_handling.py, logging.py
# 🔄 Connected Modules / Calls From:
# app.main

from .error_handling import ErrorHandlingMiddleware, error_envelope, register_exception_handlers
from .logging import RequestLoggingMiddleware

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "error_envelope",
    "register_exception_handlers",
]
