"""Pytest configuration and shared fixtures."""

import os

# settings are read at import time by app.main, so the environment comes first
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("EMAIL_ENABLED", "false")
os.environ.setdefault("EVENT_BROKER", "memory")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-with-enough-length-0123456789")
os.environ.setdefault("SERVICE_API_KEY", "test-service-key")
os.environ.setdefault("ADMIN_EMAIL", "admin@example.com")
os.environ.setdefault("ADMIN_PASSWORD", "AdminPass123")

import re
import uuid
from typing import Dict, List, Optional

import pytest
from httpx import ASGITransport, AsyncClient

from app.modules.product_catalog.domain.services.consistency_coordinator import ConsistencyCoordinator
from app.modules.product_catalog.infrastructure.database.models import ProductServiceBase
from app.modules.product_catalog.infrastructure.database.product_repository_impl import ProductRepositoryImpl
from app.shared.config.settings import get_settings
from app.shared.core.exceptions import AccountUnavailableError, UpstreamUnavailableError
from app.shared.core.security import get_password_context, get_security_manager
from app.shared.events import InMemoryMessageBroker, RetryPolicy, set_message_broker
from app.shared.infrastructure.database.session import DatabaseSessionManager

TOKEN_PATTERN = re.compile(r"token=([A-Za-z0-9_\-]+)")


class RecordingEmailService:
    """Collects outgoing emails instead of talking to SMTP."""

    def __init__(self):
        self.sent: List[Dict[str, str]] = []

    async def send_email(self, to: str, subject: str, html_body: str) -> None:
        self.sent.append({"to": to, "subject": subject, "html_body": html_body})

    def last_token(self, to: Optional[str] = None) -> str:
        messages = [m for m in self.sent if to is None or m["to"] == to]
        assert messages, f"No email sent to {to}"
        match = TOKEN_PATTERN.search(messages[-1]["html_body"])
        assert match, "Email does not contain a token link"
        return match.group(1)


class StubOracle:
    """User status oracle with a fixed answer per user."""

    def __init__(self):
        self.inactive = set()
        self.unavailable = False
        self.calls: List[uuid.UUID] = []

    async def ensure_active(self, user_id, bearer_token):
        self.calls.append(user_id)
        if self.unavailable:
            raise UpstreamUnavailableError(message="user-service is unavailable", service="user-service")
        if user_id in self.inactive:
            raise AccountUnavailableError(user_id=str(user_id))


@pytest.fixture(autouse=True)
def test_settings(tmp_path, monkeypatch):
    """Fresh settings per test with throwaway sqlite databases."""
    monkeypatch.setenv("USER_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'users.db'}")
    monkeypatch.setenv("PRODUCT_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'products.db'}")
    get_settings.cache_clear()
    get_security_manager.cache_clear()
    get_password_context.cache_clear()
    yield get_settings()
    get_settings.cache_clear()
    get_security_manager.cache_clear()
    get_password_context.cache_clear()


@pytest.fixture
def broker(test_settings):
    """Process-wide in-memory broker with fast retries."""
    instance = InMemoryMessageBroker(RetryPolicy(max_attempts=3, base_delay=0, max_delay=0))
    set_message_broker(instance)
    yield instance
    set_message_broker(None)


@pytest.fixture
def email_service():
    return RecordingEmailService()


@pytest.fixture
def oracle():
    return StubOracle()


@pytest.fixture
def make_token(test_settings):
    """Mint an access token the way the user service does."""

    def _make_token(
        user_id: Optional[uuid.UUID] = None,
        role: str = "User",
        email_confirmed: bool = True,
        email: str = "someone@example.com",
    ) -> str:
        return get_security_manager().create_access_token(
            subject=str(user_id or uuid.uuid4()),
            claims={"email": email, "role": role, "email_confirmed": email_confirmed},
        )

    return _make_token


# =========================================================================
# DATABASE FIXTURES
# =========================================================================

@pytest.fixture
async def product_db(test_settings):
    manager = DatabaseSessionManager(test_settings.PRODUCT_DATABASE_URL)
    await manager.create_all(ProductServiceBase.metadata)
    yield manager
    await manager.close()


@pytest.fixture
def coordinator(product_db):
    return ConsistencyCoordinator(product_db.session, ProductRepositoryImpl)


# =========================================================================
# APPLICATION FIXTURES
# =========================================================================

@pytest.fixture
async def user_client(broker, email_service):
    """User service client with its lifespan running."""
    from app.main import user_app
    from app.modules.user_management.presentation.dependencies import get_email_service

    user_app.dependency_overrides[get_email_service] = lambda: email_service
    async with user_app.router.lifespan_context(user_app):
        transport = ASGITransport(app=user_app)
        async with AsyncClient(transport=transport, base_url="http://user-service") as client:
            yield client
    user_app.dependency_overrides.clear()


@pytest.fixture
async def product_client(broker, oracle):
    """Product service client with its lifespan running and a stub status oracle."""
    from app.main import product_app
    from app.modules.product_catalog.presentation.dependencies import get_user_status_oracle

    product_app.dependency_overrides[get_user_status_oracle] = lambda: oracle
    async with product_app.router.lifespan_context(product_app):
        transport = ASGITransport(app=product_app)
        async with AsyncClient(transport=transport, base_url="http://product-service") as client:
            yield client
    product_app.dependency_overrides.clear()
