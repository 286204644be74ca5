# 📄 File: app/api/middleware/logging.py
# 🧭 Purpose (Layman Explanation):
# Keeps a short diary entry for every request: what was asked for, who asked, how it ended
# and how long it took.
# 🧪 Purpose (Technical Summary):
# Request logging middleware writing one structured line per request (method, path, status,
# duration, client) with sensitive query parameters masked. Runs inside ErrorHandlingMiddleware
# so the request id is already bound to the log context.
# 🔗 Dependencies:
# starlette BaseHTTPMiddleware, logging, app.shared.config.settings
# 🔄 Connected Modules / Calls From:
# app.main (middleware registration for both services)

import logging
import time
from typing import Dict, Set

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

EXCLUDED_PATHS: Set[str] = {"/health", "/favicon.ico"}
SENSITIVE_PARAMS: Set[str] = {"token", "password", "api_key"}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Request logging middleware.
    """

    def __init__(self, app: ASGIApp, slow_request_threshold: float = 1.0):
        super().__init__(app)
        self.slow_request_threshold = slow_request_threshold

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.url.path in EXCLUDED_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start_time

        extra = {
            "method": request.method,
            "path": request.url.path,
            "query": self._filter_sensitive_params(dict(request.query_params)),
            "status_code": response.status_code,
            "duration_ms": round(duration * 1000, 2),
            "client_ip": request.client.host if request.client else None,
            "user_id": getattr(request.state, "user_id", None),
        }
        message = f"{request.method} {request.url.path} -> {response.status_code} in {duration:.3f}s"

        if response.status_code >= 500:
            logger.error(message, extra=extra)
        elif duration > self.slow_request_threshold:
            logger.warning(f"Slow request: {message}", extra=extra)
        else:
            logger.info(message, extra=extra)
        return response

    @staticmethod
    def _filter_sensitive_params(params: Dict[str, str]) -> Dict[str, str]:
        return {k: ("***" if k.lower() in SENSITIVE_PARAMS else v) for k, v in params.items()}
