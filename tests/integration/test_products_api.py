"""Integration tests for the product service HTTP API."""

import uuid

import pytest

pytestmark = pytest.mark.integration

API_KEY = "test-service-key"


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def owner_id():
    return uuid.uuid4()


@pytest.fixture
def owner_token(make_token, owner_id):
    return make_token(owner_id)


async def create(client, token, **overrides):
    body = {"name": "Chair", "description": "Oak chair", "price": 49.9, "isAvailable": True, **overrides}
    return await client.post("/api/products", json=body, headers=bearer(token))


class TestCreateAndRead:

    async def test_create_returns_camel_case_product(self, product_client, owner_token, owner_id):
        response = await create(product_client, owner_token)

        assert response.status_code == 201
        body = response.json()
        assert body["name"] == "Chair"
        assert body["price"] == 49.9
        assert body["isAvailable"] is True
        assert body["isDeleted"] is False
        assert body["userId"] == str(owner_id)

        fetched = await product_client.get(f"/api/products/{body['id']}", headers=bearer(owner_token))
        assert fetched.status_code == 200
        assert fetched.json()["id"] == body["id"]

    async def test_missing_token_is_unauthorized(self, product_client):
        response = await product_client.post("/api/products", json={"name": "Chair", "price": 1})

        assert response.status_code == 401
        error = response.json()["error"]
        assert error["kind"] == "unauthorized"
        assert error["path"] == "/api/products"
        assert response.headers["X-Request-ID"]

    async def test_garbage_token_is_unauthorized(self, product_client):
        response = await product_client.get(f"/api/products/{uuid.uuid4()}", headers=bearer("not-a-jwt"))
        assert response.status_code == 401

    async def test_non_positive_price_is_a_validation_error(self, product_client, owner_token):
        response = await create(product_client, owner_token, price=0)

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["kind"] == "validation"
        assert error["details"]["field"] == "price"

    async def test_malformed_body_is_a_validation_error(self, product_client, owner_token):
        response = await create(product_client, owner_token, price="lots")

        assert response.status_code == 400
        fields = [e["field"] for e in response.json()["error"]["details"]["validation_errors"]]
        assert "price" in fields

    async def test_inactive_owner_cannot_create(self, product_client, owner_token, owner_id, oracle):
        oracle.inactive.add(owner_id)
        response = await create(product_client, owner_token)

        assert response.status_code == 403
        assert response.json()["error"]["kind"] == "account_unavailable"
        listing = await product_client.get("/api/products", headers=bearer(owner_token))
        assert listing.json() == []

    async def test_unreachable_user_service_is_503(self, product_client, owner_token, oracle):
        oracle.unavailable = True
        response = await create(product_client, owner_token)

        assert response.status_code == 503
        assert response.json()["error"]["kind"] == "upstream_unavailable"

    async def test_unknown_product_is_404(self, product_client, owner_token):
        response = await product_client.get(f"/api/products/{uuid.uuid4()}", headers=bearer(owner_token))
        assert response.status_code == 404
        assert response.json()["error"]["kind"] == "not_found"


class TestOwnership:

    async def test_owner_updates_and_deletes(self, product_client, owner_token):
        product_id = (await create(product_client, owner_token)).json()["id"]

        response = await product_client.put(
            f"/api/products/{product_id}", json={"price": 59.5}, headers=bearer(owner_token)
        )
        assert response.status_code == 204
        body = (await product_client.get(f"/api/products/{product_id}", headers=bearer(owner_token))).json()
        assert body["price"] == 59.5
        assert body["name"] == "Chair"

        response = await product_client.delete(f"/api/products/{product_id}", headers=bearer(owner_token))
        assert response.status_code == 204
        response = await product_client.get(f"/api/products/{product_id}", headers=bearer(owner_token))
        assert response.status_code == 404

    async def test_other_user_is_forbidden(self, product_client, owner_token, make_token):
        product_id = (await create(product_client, owner_token)).json()["id"]
        intruder = make_token()

        update = await product_client.put(
            f"/api/products/{product_id}", json={"name": "Mine"}, headers=bearer(intruder)
        )
        delete = await product_client.delete(f"/api/products/{product_id}", headers=bearer(intruder))

        assert update.status_code == 403
        assert delete.status_code == 403
        body = (await product_client.get(f"/api/products/{product_id}", headers=bearer(owner_token))).json()
        assert body["name"] == "Chair"
        assert body["isDeleted"] is False

    async def test_admin_cannot_edit_someone_elses_product(self, product_client, owner_token, make_token):
        product_id = (await create(product_client, owner_token)).json()["id"]
        response = await product_client.delete(
            f"/api/products/{product_id}", headers=bearer(make_token(role="Admin"))
        )
        assert response.status_code == 403


class TestListing:

    @pytest.fixture
    async def catalog(self, product_client, owner_token):
        await create(product_client, owner_token, name="Red chair", price=25)
        await create(product_client, owner_token, name="Blue table", price=150, isAvailable=False)
        gone = (await create(product_client, owner_token, name="Red lamp", price=5)).json()["id"]
        await product_client.delete(f"/api/products/{gone}", headers=bearer(owner_token))

    async def test_filters_combine(self, product_client, owner_token, owner_id, catalog):
        response = await product_client.get(
            "/api/products",
            params={"searchTerm": "red", "minPrice": 10, "userId": str(owner_id)},
            headers=bearer(owner_token),
        )
        assert response.status_code == 200
        assert [p["name"] for p in response.json()] == ["Red chair"]

        response = await product_client.get(
            "/api/products", params={"isAvailable": "false"}, headers=bearer(owner_token)
        )
        assert [p["name"] for p in response.json()] == ["Blue table"]

    async def test_include_deleted_is_admin_only(self, product_client, owner_token, make_token, catalog):
        response = await product_client.get(
            "/api/products", params={"includeDeleted": "true"}, headers=bearer(owner_token)
        )
        assert response.status_code == 403

        response = await product_client.get(
            "/api/products", params={"includeDeleted": "true"}, headers=bearer(make_token(role="Admin"))
        )
        assert response.status_code == 200
        assert len(response.json()) == 3

    async def test_limit_is_bounded(self, product_client, owner_token, catalog):
        response = await product_client.get("/api/products", params={"limit": 0}, headers=bearer(owner_token))
        assert response.status_code == 400
        response = await product_client.get("/api/products", params={"limit": 1}, headers=bearer(owner_token))
        assert len(response.json()) == 1


class TestSyncUser:

    async def test_service_key_deactivates_and_reactivates(self, product_client, owner_token, owner_id):
        product_id = (await create(product_client, owner_token)).json()["id"]

        response = await product_client.post(
            f"/api/products/sync-user/{owner_id}", json={"isActive": False}, headers={"X-API-Key": API_KEY}
        )
        assert response.status_code == 204
        hidden = await product_client.get(f"/api/products/{product_id}", headers=bearer(owner_token))
        assert hidden.status_code == 404

        response = await product_client.put(
            f"/api/products/sync-user/{owner_id}", json={"isActive": True}, headers={"X-API-Key": API_KEY}
        )
        assert response.status_code == 204
        visible = await product_client.get(f"/api/products/{product_id}", headers=bearer(owner_token))
        assert visible.status_code == 200

    async def test_self_may_sync_but_others_may_not(self, product_client, owner_token, owner_id, make_token):
        response = await product_client.post(
            f"/api/products/sync-user/{owner_id}", json={"isActive": False}, headers=bearer(owner_token)
        )
        assert response.status_code == 204

        response = await product_client.post(
            f"/api/products/sync-user/{owner_id}", json={"isActive": True}, headers=bearer(make_token())
        )
        assert response.status_code == 403

    async def test_inactive_user_cannot_restore_own_products(
        self, product_client, owner_token, owner_id, oracle
    ):
        product_id = (await create(product_client, owner_token)).json()["id"]
        await product_client.post(
            f"/api/products/sync-user/{owner_id}", json={"isActive": False}, headers={"X-API-Key": API_KEY}
        )
        oracle.inactive.add(owner_id)
        oracle.calls.clear()

        response = await product_client.post(
            f"/api/products/sync-user/{owner_id}", json={"isActive": True}, headers=bearer(owner_token)
        )

        assert response.status_code == 403
        assert response.json()["error"]["kind"] == "account_unavailable"
        assert oracle.calls == [owner_id]
        hidden = await product_client.get(f"/api/products/{product_id}", headers=bearer(owner_token))
        assert hidden.status_code == 404

    async def test_user_reactivation_is_checked_but_service_key_is_trusted(
        self, product_client, owner_token, owner_id, oracle
    ):
        oracle.calls.clear()
        response = await product_client.put(
            f"/api/products/sync-user/{owner_id}", json={"isActive": True}, headers=bearer(owner_token)
        )
        assert response.status_code == 204
        assert oracle.calls == [owner_id]

        oracle.calls.clear()
        await product_client.put(
            f"/api/products/sync-user/{owner_id}", json={"isActive": True}, headers={"X-API-Key": API_KEY}
        )
        await product_client.put(
            f"/api/products/sync-user/{owner_id}", json={"isActive": False}, headers=bearer(owner_token)
        )
        assert oracle.calls == []

    async def test_missing_or_wrong_credentials(self, product_client, owner_id):
        response = await product_client.post(f"/api/products/sync-user/{owner_id}", json={"isActive": False})
        assert response.status_code == 401

        response = await product_client.post(
            f"/api/products/sync-user/{owner_id}", json={"isActive": False}, headers={"X-API-Key": "wrong"}
        )
        assert response.status_code == 401


class TestHealth:

    async def test_health_reports_components(self, product_client):
        response = await product_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["service"] == "product-service"
        assert body["components"]["database"]["status"] == "healthy"
        assert body["components"]["event_broker"]["running"] is True
        assert body["components"]["user_service"]["state"] == "closed"
