# 📄 File: app/main.py
#
# 🧭 Purpose (Layman Explanation):
# The control center that starts the two services - the user account service and the product
# catalog service - connects each to its own database and to the shared event channel, and
# makes sure everything is ready to handle requests.
#
# 🧪 Purpose (Technical Summary):
# FastAPI application factories and entry points for the user and product services: lifespan
# (logging, database, schema bootstrap, admin seeding, broker start / consumer registration,
# HTTP client cleanup), middleware, exception handlers and router registration.
#
# 🔗 Dependencies:
# - FastAPI framework, uvicorn
# - app.shared.config.settings, app.shared.utils.logging
# - app.shared.infrastructure.database.session, app.shared.events
# - Module routers (user_management, product_catalog)
#
# 🔄 Connected Modules / Calls From:
# - uvicorn (app.main:user_app, app.main:product_app)
# - Console scripts (user-service, product-service)
# - Tests (application factories)

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import uvicorn
from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware

from app.api.middleware.error_handling import ErrorHandlingMiddleware, register_exception_handlers
from app.api.middleware.logging import RequestLoggingMiddleware
from app.api.v1.health import health_router
from app.modules.product_catalog.application.handlers.user_lifecycle_handlers import (
    register_user_lifecycle_consumers,
)
from app.modules.product_catalog.domain.services.consistency_coordinator import ConsistencyCoordinator
from app.modules.product_catalog.infrastructure.database.models import ProductServiceBase
from app.modules.product_catalog.infrastructure.database.product_repository_impl import ProductRepositoryImpl
from app.modules.product_catalog.infrastructure.external.user_service_client import UserServiceClient
from app.modules.product_catalog.presentation.api.v1.products import products_router
from app.modules.user_management.domain.events.user_events import UserEventPublisher
from app.modules.user_management.domain.services.user_service import UserService
from app.modules.user_management.infrastructure.database.models import UserServiceBase
from app.modules.user_management.infrastructure.database.user_repository_impl import UserRepositoryImpl
from app.modules.user_management.infrastructure.external.email_service import EmailService
from app.modules.user_management.presentation.api.v1.auth import auth_router
from app.modules.user_management.presentation.api.v1.users import users_router
from app.shared.config.settings import Settings, get_settings
from app.shared.events import get_message_broker, shutdown_message_broker
from app.shared.infrastructure.database.session import DatabaseSessionManager
from app.shared.utils.logging import setup_logging

logger = logging.getLogger(__name__)

USER_SERVICE_NAME = "user-service"
PRODUCT_SERVICE_NAME = "product-service"

# schema is created at start-up here; other environments run alembic
AUTO_CREATE_SCHEMA_ENVIRONMENTS = ("development", "test")


def _create_session_manager(database_url: str, settings: Settings) -> DatabaseSessionManager:
    return DatabaseSessionManager(
        database_url,
        echo=settings.DB_ECHO,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
    )


# =========================================================================
# LIFESPANS
# =========================================================================

@asynccontextmanager
async def user_service_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    User service startup and shutdown.

    The user service only publishes; it never starts consumers. It stops the
    broker on shutdown unless a consumer in the same process is running it.
    """
    settings = get_settings()
    setup_logging(USER_SERVICE_NAME)
    logger.info(f"{USER_SERVICE_NAME} starting up ({settings.ENVIRONMENT})")

    db = _create_session_manager(settings.USER_DATABASE_URL, settings)
    broker = get_message_broker()
    app.state.db = db
    app.state.broker = broker
    app.state.email_service = EmailService(settings)

    try:
        if settings.ENVIRONMENT in AUTO_CREATE_SCHEMA_ENVIRONMENTS:
            await db.create_all(UserServiceBase.metadata)

        async with db.session() as session:
            await UserService(
                UserRepositoryImpl(session),
                UserEventPublisher(broker, settings.EVENT_EXCHANGE),
                settings,
            ).seed_admin()

        logger.info(f"{USER_SERVICE_NAME} startup complete")
        yield
    finally:
        logger.info(f"{USER_SERVICE_NAME} shutting down")
        if not broker.is_running:
            await shutdown_message_broker()
        await db.close()


@asynccontextmanager
async def product_service_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Product service startup and shutdown.

    Consumers are subscribed exactly once here, before the broker starts.
    """
    settings = get_settings()
    setup_logging(PRODUCT_SERVICE_NAME)
    logger.info(f"{PRODUCT_SERVICE_NAME} starting up ({settings.ENVIRONMENT})")

    db = _create_session_manager(settings.PRODUCT_DATABASE_URL, settings)
    user_service_client = UserServiceClient.from_settings(settings)
    coordinator = ConsistencyCoordinator(db.session, ProductRepositoryImpl)
    broker = get_message_broker()

    app.state.db = db
    app.state.user_service_client = user_service_client
    app.state.coordinator = coordinator
    app.state.broker = broker

    try:
        if settings.ENVIRONMENT in AUTO_CREATE_SCHEMA_ENVIRONMENTS:
            await db.create_all(ProductServiceBase.metadata)

        await user_service_client.api_client.initialize()
        register_user_lifecycle_consumers(broker, coordinator, settings)
        await broker.start()

        logger.info(f"{PRODUCT_SERVICE_NAME} startup complete")
        yield
    finally:
        logger.info(f"{PRODUCT_SERVICE_NAME} shutting down")
        await shutdown_message_broker()
        await user_service_client.close()
        await db.close()


# =========================================================================
# APPLICATION FACTORIES
# =========================================================================

def _configure_application(app: FastAPI, settings: Settings, service_name: str) -> None:
    """Middleware, exception handlers and shared routes common to both services."""
    app.state.service_name = service_name

    # added last runs first: ErrorHandlingMiddleware wraps everything
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Response-Time"],
    )
    if settings.ENVIRONMENT != "test":
        app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(ErrorHandlingMiddleware)

    register_exception_handlers(app)
    app.include_router(health_router)

    @app.get("/favicon.ico", include_in_schema=False)
    async def favicon():
        return Response(status_code=204)


def create_user_service_app() -> FastAPI:
    """
    Build the user/identity service.

    Returns:
        FastAPI: Configured application serving /api/auth and /api/users
    """
    settings = get_settings()
    app = FastAPI(
        title=f"{settings.APP_NAME} - User Service",
        version=settings.APP_VERSION,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url=None,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        lifespan=user_service_lifespan,
        debug=settings.DEBUG,
    )
    _configure_application(app, settings, USER_SERVICE_NAME)
    app.include_router(auth_router, prefix="/api/auth", tags=["Authentication"])
    app.include_router(users_router, prefix="/api/users", tags=["Users"])
    return app


def create_product_service_app() -> FastAPI:
    """
    Build the product catalog service.

    Returns:
        FastAPI: Configured application serving /api/products
    """
    settings = get_settings()
    app = FastAPI(
        title=f"{settings.APP_NAME} - Product Service",
        version=settings.APP_VERSION,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url=None,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        lifespan=product_service_lifespan,
        debug=settings.DEBUG,
    )
    _configure_application(app, settings, PRODUCT_SERVICE_NAME)
    app.include_router(products_router, prefix="/api/products", tags=["Products"])
    return app


user_app = create_user_service_app()
product_app = create_product_service_app()


# =========================================================================
# ENTRY POINTS
# =========================================================================

def _run(app_path: str, port: int, settings: Optional[Settings] = None) -> None:
    settings = settings or get_settings()
    uvicorn.run(
        app_path,
        host=settings.HOST,
        port=port,
        reload=settings.RELOAD and settings.ENVIRONMENT == "development",
        log_level=settings.LOG_LEVEL.lower(),
    )


def run_user_service() -> None:
    """Console entry point for the user service."""
    _run("app.main:user_app", get_settings().USER_SERVICE_PORT)


def run_product_service() -> None:
    """Console entry point for the product service."""
    _run("app.main:product_app", get_settings().PRODUCT_SERVICE_PORT)


def main() -> None:
    """python -m app.main [user|product]"""
    import sys

    service = sys.argv[1] if len(sys.argv) > 1 else "user"
    if service == "product":
        run_product_service()
    else:
        run_user_service()


if __name__ == "__main__":
    main()
