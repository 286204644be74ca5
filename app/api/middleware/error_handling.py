# 📄 File: app/api/middleware/error_handling.py
# 🧭 Purpose (Layman Explanation):
# This file catches any errors that happen in either service and turns them into the same,
# predictable error message format, so callers always know what went wrong.
# 🧪 Purpose (Technical Summary):
# Request-id / timing middleware with a catch-all 500, plus exception handlers that render
# ServiceError (status from its ErrorKind) and request validation failures (400) in one envelope.
# 🔗 Dependencies:
# FastAPI, starlette, app.shared.core.exceptions, app.shared.utils.logging
# 🔄 Connected Modules / Calls From:
# app.main (middleware and handler registration for both services)

import logging
import time
import traceback
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from app.shared.config.settings import get_settings
from app.shared.core.exceptions import ErrorKind, ServiceError, status_for_kind
from app.shared.utils.logging import log_context

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

_HTTP_STATUS_KINDS = {
    400: ErrorKind.VALIDATION,
    401: ErrorKind.UNAUTHORIZED,
    403: ErrorKind.FORBIDDEN,
    404: ErrorKind.NOT_FOUND,
    405: ErrorKind.VALIDATION,
    409: ErrorKind.CONFLICT,
    503: ErrorKind.UPSTREAM_UNAVAILABLE,
}


def error_envelope(
    request: Request,
    code: str,
    kind: ErrorKind,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Shared error body for both services."""
    return {
        "error": {
            "code": code,
            "kind": kind.value,
            "message": message,
            "details": details or {},
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "request_id": getattr(request.state, "request_id", None),
            "path": str(request.url.path),
            "method": request.method,
        }
    }


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Outermost middleware: assigns the request id, times the request and turns
    anything that escaped the exception handlers into a 500 envelope.
    """

    def __init__(self, app: ASGIApp):
        super().__init__(app)
        self.settings = get_settings()

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        start_time = time.perf_counter()

        with log_context(request_id=request_id):
            try:
                response = await call_next(request)
            except Exception as exc:
                response = self._internal_error(request, exc)

            processing_time = time.perf_counter() - start_time
            response.headers[REQUEST_ID_HEADER] = request_id
            response.headers["X-Response-Time"] = f"{processing_time:.3f}s"
            return response

    def _internal_error(self, request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}: {exc}",
            exc_info=True,
        )
        details: Dict[str, Any] = {}
        if self.settings.DEBUG and not self.settings.is_production:
            details = {
                "exception_type": type(exc).__name__,
                "traceback": traceback.format_exc().split("\n"),
            }
        return JSONResponse(
            status_code=500,
            content=error_envelope(
                request,
                "INTERNAL_SERVER_ERROR",
                ErrorKind.INTERNAL,
                "An internal server error occurred",
                details,
            ),
        )


# =========================================================================
# EXCEPTION HANDLERS
# =========================================================================

async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    status_code = status_for_kind(exc.kind)
    log = logger.error if status_code >= 500 else logger.info
    log(f"{exc.error_code} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(error_envelope(request, exc.error_code, exc.kind, exc.message, exc.details)),
    )


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg"),
            "type": error.get("type"),
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=jsonable_encoder(
            error_envelope(
                request,
                "VALIDATION_ERROR",
                ErrorKind.VALIDATION,
                "Request validation failed",
                {"validation_errors": errors},
            )
        ),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    kind = _HTTP_STATUS_KINDS.get(exc.status_code, ErrorKind.INTERNAL)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(request, f"HTTP_{exc.status_code}", kind, str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
