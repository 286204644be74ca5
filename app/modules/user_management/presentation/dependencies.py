# 📄 File: app/modules/user_management/presentation/dependencies.py
# 🧭 Purpose (Layman Explanation):
# Hands each web request the tools it needs for user features: a database connection,
# the email sender and the ready-made account services.
# 🧪 Purpose (Technical Summary):
# Module-specific FastAPI dependency providers: per-request AsyncSession from the service's
# DatabaseSessionManager (app.state.db), repository, event publisher and domain services.
# 🔗 Dependencies:
# FastAPI, SQLAlchemy AsyncSession, app.shared.infrastructure.database.session,
# app.modules.user_management.domain.*, app.modules.user_management.infrastructure.*
# 🔄 Connected Modules / Calls From:
# app.modules.user_management.presentation.api.v1.*

"""
User Management Module Dependencies

Shared caller authentication (get_current_user, require_admin, ...) lives in
app.shared.core.dependencies; this module only wires the user service objects.
"""

from typing import AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.user_management.domain.events.user_events import UserEventPublisher
from app.modules.user_management.domain.repositories.user_repository import UserRepository
from app.modules.user_management.domain.services.auth_service import AuthService
from app.modules.user_management.domain.services.user_service import UserService
from app.modules.user_management.infrastructure.database.user_repository_impl import UserRepositoryImpl
from app.modules.user_management.infrastructure.external.email_service import EmailService
from app.shared.config.settings import get_settings


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Yield one transactional session per request."""
    async with request.app.state.db.session() as session:
        yield session


def get_user_repository(session: AsyncSession = Depends(get_db_session)) -> UserRepository:
    return UserRepositoryImpl(session)


def get_email_service(request: Request) -> EmailService:
    return request.app.state.email_service


def get_event_publisher(request: Request) -> UserEventPublisher:
    return UserEventPublisher(request.app.state.broker, get_settings().EVENT_EXCHANGE)


def get_auth_service(
    user_repository: UserRepository = Depends(get_user_repository),
    email_service: EmailService = Depends(get_email_service),
) -> AuthService:
    return AuthService(user_repository, email_service)


def get_user_service(
    user_repository: UserRepository = Depends(get_user_repository),
    event_publisher: UserEventPublisher = Depends(get_event_publisher),
) -> UserService:
    return UserService(user_repository, event_publisher)
