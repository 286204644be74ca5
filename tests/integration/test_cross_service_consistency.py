"""End-to-end tests: user lifecycle changes reach the product catalog."""

import uuid

import pytest

from app.modules.product_catalog.presentation.dependencies import get_user_status_oracle
from app.shared.core.exceptions import AccountUnavailableError

pytestmark = pytest.mark.integration

PASSWORD = "Secret123"
ADMIN_PASSWORD = "AdminPass123"


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


class InProcessUserStatusOracle:
    """Asks the in-process user service, the same question the HTTP client asks."""

    def __init__(self, user_client):
        self.user_client = user_client

    async def ensure_active(self, user_id: uuid.UUID, bearer_token: str) -> None:
        response = await self.user_client.get(f"/api/users/{user_id}", headers=bearer(bearer_token))
        if response.status_code != 200 or response.json().get("isActive") is not True:
            raise AccountUnavailableError(user_id=str(user_id))


@pytest.fixture
async def services(user_client, product_client, broker):
    """Both services on one broker, the product service checking status against the user service."""
    from app.main import product_app

    product_app.dependency_overrides[get_user_status_oracle] = lambda: InProcessUserStatusOracle(user_client)
    return user_client, product_client


async def login(client, email, password):
    response = await client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["token"]


async def signup(user_client, email_service, email):
    response = await user_client.post(
        "/api/auth/register", json={"name": "Shop Owner", "email": email, "password": PASSWORD}
    )
    assert response.status_code == 201, response.text
    await user_client.get("/api/auth/confirm-email", params={"token": email_service.last_token(email)})
    return response.json()["id"], await login(user_client, email, PASSWORD)


async def add_product(product_client, token, name):
    response = await product_client.post(
        "/api/products", json={"name": name, "price": 10, "isAvailable": True}, headers=bearer(token)
    )
    assert response.status_code == 201, response.text
    return response.json()["id"]


async def visible_ids(product_client, token, owner_id):
    response = await product_client.get("/api/products", params={"userId": owner_id}, headers=bearer(token))
    return {p["id"] for p in response.json()}


class TestUserLifecyclePropagation:

    async def test_deactivate_and_reactivate_owner(self, services, broker, email_service):
        user_client, product_client = services
        owner_id, token = await signup(user_client, email_service, "owner@example.com")
        admin = await login(user_client, "admin@example.com", ADMIN_PASSWORD)

        kept = await add_product(product_client, token, "Kept")
        removed = await add_product(product_client, token, "Removed by owner")
        await product_client.delete(f"/api/products/{removed}", headers=bearer(token))

        response = await user_client.put(
            f"/api/users/{owner_id}/status", json={"isActive": False}, headers=bearer(admin)
        )
        assert response.status_code == 204
        await broker.drain()

        assert await visible_ids(product_client, token, owner_id) == set()
        blocked = await product_client.post(
            "/api/products", json={"name": "New", "price": 10}, headers=bearer(token)
        )
        assert blocked.status_code == 403
        assert blocked.json()["error"]["kind"] == "account_unavailable"

        await user_client.put(f"/api/users/{owner_id}/status", json={"isActive": True}, headers=bearer(admin))
        await broker.drain()

        assert await visible_ids(product_client, token, owner_id) == {kept}
        assert await add_product(product_client, token, "After reactivation")

    async def test_deleted_owner_products_disappear_and_come_back_on_restore(
        self, services, broker, email_service
    ):
        user_client, product_client = services
        owner_id, token = await signup(user_client, email_service, "owner@example.com")
        admin = await login(user_client, "admin@example.com", ADMIN_PASSWORD)
        product_ids = {
            await add_product(product_client, token, "First"),
            await add_product(product_client, token, "Second"),
        }

        assert (await user_client.delete(f"/api/users/{owner_id}", headers=bearer(token))).status_code == 204
        await broker.drain()

        assert await visible_ids(product_client, admin, owner_id) == set()
        everything = await product_client.get(
            "/api/products", params={"userId": owner_id, "includeDeleted": "true"}, headers=bearer(admin)
        )
        assert {p["id"] for p in everything.json() if p["isDeleted"]} == product_ids

        # the deleted owner's token no longer passes the status check
        blocked = await product_client.post("/api/products", json={"name": "x", "price": 1}, headers=bearer(token))
        assert blocked.status_code == 403

        assert (await user_client.post(f"/api/users/{owner_id}/restore", headers=bearer(admin))).status_code == 204
        await broker.drain()

        assert await visible_ids(product_client, admin, owner_id) == product_ids

    async def test_other_owners_are_not_affected(self, services, broker, email_service):
        user_client, product_client = services
        owner_id, owner_token = await signup(user_client, email_service, "owner@example.com")
        other_id, other_token = await signup(user_client, email_service, "other@example.com")
        admin = await login(user_client, "admin@example.com", ADMIN_PASSWORD)
        other_product = await add_product(product_client, other_token, "Untouched")
        await add_product(product_client, owner_token, "Hidden")

        await user_client.put(f"/api/users/{owner_id}/status", json={"isActive": False}, headers=bearer(admin))
        await broker.drain()

        assert await visible_ids(product_client, admin, other_id) == {other_product}

    async def test_repeated_events_are_harmless(self, services, broker, email_service):
        user_client, product_client = services
        owner_id, token = await signup(user_client, email_service, "owner@example.com")
        admin = await login(user_client, "admin@example.com", ADMIN_PASSWORD)
        await add_product(product_client, token, "Only")

        for _ in range(2):
            await user_client.put(
                f"/api/users/{owner_id}/status", json={"isActive": False}, headers=bearer(admin)
            )
        await user_client.delete(f"/api/users/{owner_id}", headers=bearer(admin))
        await user_client.delete(f"/api/users/{owner_id}", headers=bearer(admin))
        await broker.drain()

        assert await broker.dead_letters("product_service.user_events") == []
        assert broker.get_stats()["processed"] == 4
        assert await visible_ids(product_client, admin, owner_id) == set()


class TestSyncUserWithStaleToken:

    async def test_deactivated_owner_cannot_push_own_reactivation(self, services, broker, email_service):
        user_client, product_client = services
        owner_id, token = await signup(user_client, email_service, "owner@example.com")
        admin = await login(user_client, "admin@example.com", ADMIN_PASSWORD)
        await add_product(product_client, token, "Hidden")

        await user_client.put(f"/api/users/{owner_id}/status", json={"isActive": False}, headers=bearer(admin))
        await broker.drain()

        response = await product_client.post(
            f"/api/products/sync-user/{owner_id}", json={"isActive": True}, headers=bearer(token)
        )

        assert response.status_code == 403
        assert response.json()["error"]["kind"] == "account_unavailable"
        assert await visible_ids(product_client, admin, owner_id) == set()

    async def test_deleted_owner_cannot_push_own_reactivation(self, services, broker, email_service):
        user_client, product_client = services
        owner_id, token = await signup(user_client, email_service, "owner@example.com")
        admin = await login(user_client, "admin@example.com", ADMIN_PASSWORD)
        await add_product(product_client, token, "Hidden")

        await user_client.delete(f"/api/users/{owner_id}", headers=bearer(token))
        await broker.drain()

        response = await product_client.put(
            f"/api/products/sync-user/{owner_id}", json={"isActive": True}, headers=bearer(token)
        )

        assert response.status_code == 403
        assert await visible_ids(product_client, admin, owner_id) == set()

    async def test_active_owner_push_restores_products(self, services, broker, email_service):
        user_client, product_client = services
        owner_id, token = await signup(user_client, email_service, "owner@example.com")
        admin = await login(user_client, "admin@example.com", ADMIN_PASSWORD)
        product_id = await add_product(product_client, token, "Back again")

        await product_client.post(
            f"/api/products/sync-user/{owner_id}", json={"isActive": False}, headers=bearer(token)
        )
        assert await visible_ids(product_client, admin, owner_id) == set()

        response = await product_client.post(
            f"/api/products/sync-user/{owner_id}", json={"isActive": True}, headers=bearer(token)
        )

        assert response.status_code == 204
        assert await visible_ids(product_client, admin, owner_id) == {product_id}


class TestConsumerFailure:

    async def test_failing_consumer_dead_letters_after_retries(self, services, broker, email_service):
        from app.main import product_app

        user_client, product_client = services
        owner_id, _ = await signup(user_client, email_service, "owner@example.com")
        admin = await login(user_client, "admin@example.com", ADMIN_PASSWORD)

        async def broken(user_id):
            raise RuntimeError("product database unavailable")

        product_app.state.coordinator.deactivate_all = broken
        await user_client.delete(f"/api/users/{owner_id}", headers=bearer(admin))
        await broker.drain()

        dead_letters = await broker.dead_letters("product_service.user_events")
        assert len(dead_letters) == 1
        assert dead_letters[0].message.routing_key == "user.deleted"
        assert dead_letters[0].message.attempts == broker.retry_policy.max_attempts
