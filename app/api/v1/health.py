# 📄 File: app/api/v1/health.py
# 🧭 Purpose (Layman Explanation):
# Health check endpoints that tell us whether a service is working: is the database reachable,
# is the event channel running and, for the product service, is the user service reachable.
# 🧪 Purpose (Technical Summary):
# Shared health router for both ASGI apps. Reads the service's DatabaseSessionManager, message
# broker and (product service) user service circuit breaker from app.state.
# 🔗 Dependencies:
# FastAPI, app.shared.config.settings
# 🔄 Connected Modules / Calls From:
# app.main (both services), load balancers and monitoring

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from app.shared.config.settings import get_settings

logger = logging.getLogger(__name__)

health_router = APIRouter()


@health_router.get(
    "/health",
    summary="Basic Health Check",
    tags=["Health Check"],
)
async def health_check(request: Request) -> JSONResponse:
    """
    Report service status. 503 when the database cannot be reached.
    """
    settings = get_settings()
    components: Dict[str, Any] = {}
    overall_status = "healthy"

    database_ok = await request.app.state.db.health_check()
    components["database"] = {"status": "healthy" if database_ok else "unhealthy"}
    if not database_ok:
        overall_status = "unhealthy"

    broker = getattr(request.app.state, "broker", None)
    if broker is not None:
        components["event_broker"] = broker.get_stats()

    user_service_client = getattr(request.app.state, "user_service_client", None)
    if user_service_client is not None:
        breaker = user_service_client.circuit_breaker.get_status()
        components["user_service"] = breaker
        if not breaker["is_available"] and overall_status == "healthy":
            overall_status = "degraded"

    if overall_status != "healthy":
        logger.warning(f"Health check reports {overall_status}: {components}")

    return JSONResponse(
        status_code=503 if overall_status == "unhealthy" else 200,
        content={
            "status": overall_status,
            "service": request.app.state.service_name,
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "components": components,
        },
    )
