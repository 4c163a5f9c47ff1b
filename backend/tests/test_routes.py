"""
Kafiza Backend — HTTP Route Tests
===================================

What:  End-to-end requests through the FastAPI app (middleware, handlers,
       envelope) against a per-test SQLite database.

What we test:
    ✅ Status codes: 201 create, 400 validation, 404 missing, 405 with Allow
    ✅ Envelope shape on success and failure, camelCase fields
    ✅ GET precedence: category filter, then search, then list
    ✅ OPTIONS on every path, CORS headers and preflight body
    ✅ Health probe up and down
"""

import uuid

import pytest

from kafiza.database import get_connection_manager
from kafiza.routes.methods import RouteMethodIndex
from conftest import make_manager


async def create(client, path, payload):
    response = await client.post(path, json=payload)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestFarmerRoutes:

    @pytest.mark.asyncio
    async def test_create_returns_201_envelope(self, test_client, farmer_payload):
        response = await test_client.post("/api/farmers", json=farmer_payload)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Farmer created successfully"
        assert body["data"]["farmName"] == "Fazenda Boa Vista"
        assert body["data"]["isActive"] is True
        assert body["data"]["totalOrders"] == 0
        assert body["data"]["contact"]["email"] == "joao@boavista.com.br"

    @pytest.mark.asyncio
    async def test_create_rejects_missing_fields(self, test_client, farmer_payload):
        del farmer_payload["coffeeTypes"]

        response = await test_client.post("/api/farmers", json=farmer_payload)

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "validation_error"
        assert body["requestId"]
        assert any(e["field"] == "coffeeTypes" for e in body["details"]["errors"])

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "override",
        [
            {"contact": {"email": "not-an-email"}},
            {"coffeeTypes": []},
            {"rating": 7},
            {"location": {"state": "MG"}},
            {"name": "   "},
        ],
    )
    async def test_create_rejects_invalid_values(self, test_client, farmer_payload, override):
        response = await test_client.post("/api/farmers", json={**farmer_payload, **override})

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_get_update_delete_lifecycle(self, test_client, farmer_payload):
        created = await create(test_client, "/api/farmers", farmer_payload)
        item = f"/api/farmers/{created['id']}"

        fetched = await test_client.get(item)
        assert fetched.status_code == 200
        assert fetched.json()["data"]["id"] == created["id"]

        updated = await test_client.put(item, json={"location": {"city": "Cristina"}})
        assert updated.status_code == 200
        assert updated.json()["message"] == "Farmer updated successfully"
        assert updated.json()["data"]["location"] == {"state": "Minas Gerais", "city": "Cristina"}

        deleted = await test_client.delete(item)
        assert deleted.status_code == 200
        assert deleted.json()["data"] == {"deleted": True}
        assert deleted.json()["message"] == "Farmer deleted successfully"

        assert (await test_client.get(item)).status_code == 404
        assert (await test_client.delete(item)).status_code == 200

    @pytest.mark.asyncio
    async def test_invalid_id_is_400(self, test_client):
        response = await test_client.get("/api/farmers/not-a-uuid")

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid farmer ID"

    @pytest.mark.asyncio
    async def test_unknown_id_is_404(self, test_client):
        response = await test_client.get(f"/api/farmers/{uuid.uuid4()}")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_empty_update_is_400(self, test_client, farmer_payload):
        created = await create(test_client, "/api/farmers", farmer_payload)

        response = await test_client.put(f"/api/farmers/{created['id']}", json={})

        assert response.status_code == 400
        assert response.json()["message"] == "No valid fields provided for update"

    @pytest.mark.asyncio
    async def test_list_pagination_block(self, test_client, farmer_payload):
        for i in range(3):
            await create(test_client, "/api/farmers", {**farmer_payload, "name": f"Farmer {i}"})

        response = await test_client.get("/api/farmers", params={"page": 2, "limit": 2})

        body = response.json()
        assert response.status_code == 200
        assert len(body["data"]) == 1
        assert body["pagination"] == {
            "page": 2,
            "limit": 2,
            "total": 3,
            "totalPages": 2,
            "hasNext": False,
            "hasPrev": True,
        }

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "params",
        [{"limit": 0}, {"limit": 500}, {"page": 0}, {"page": "abc"}, {"sortBy": "email"}, {"sortOrder": "up"}],
    )
    async def test_list_rejects_bad_query(self, test_client, params):
        response = await test_client.get("/api/farmers", params=params)

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_search_query(self, test_client, farmer_payload):
        await create(test_client, "/api/farmers", farmer_payload)
        await create(test_client, "/api/farmers", {**farmer_payload, "location": {"state": "Bahia", "city": "Piatã"}})

        response = await test_client.get("/api/farmers", params={"search": "minas"})

        assert response.json()["pagination"]["total"] == 1


class TestRoasterRoutes:

    @pytest.mark.asyncio
    async def test_tier_filter_takes_precedence_over_search(self, test_client, roaster_payload):
        await create(test_client, "/api/roasters", roaster_payload)
        await create(test_client, "/api/roasters", {**roaster_payload, "businessName": "Basic Beans", "subscriptionTier": "basic"})

        response = await test_client.get("/api/roasters", params={"tier": "basic", "search": "flight"})

        body = response.json()
        assert response.status_code == 200
        assert [r["businessName"] for r in body["data"]] == ["Basic Beans"]
        assert "pagination" not in body

    @pytest.mark.asyncio
    async def test_invalid_tier_filter(self, test_client):
        response = await test_client.get("/api/roasters", params={"tier": "gold"})

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_create_rejects_unknown_business_type(self, test_client, roaster_payload):
        response = await test_client.post("/api/roasters", json={**roaster_payload, "businessType": "bakery"})

        assert response.status_code == 400

    @pytest.mark.asyncio
    @pytest.mark.parametrize("description", [None, ""])
    async def test_create_requires_description(self, test_client, roaster_payload, description):
        payload = {**roaster_payload, "description": description}
        if description is None:
            del payload["description"]

        response = await test_client.post("/api/roasters", json=payload)

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_subscription_tier_endpoint(self, test_client, roaster_payload):
        created = await create(test_client, "/api/roasters", roaster_payload)

        response = await test_client.put(
            f"/api/roasters/{created['id']}/subscription-tier",
            json={"subscriptionTier": "enterprise"},
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Subscription tier updated successfully"
        assert response.json()["data"]["subscriptionTier"] == "enterprise"


class TestProtocol:

    @pytest.mark.asyncio
    async def test_unsupported_method_is_405_with_allow(self, test_client):
        response = await test_client.patch("/api/farmers", json={})

        assert response.status_code == 405
        allowed = {m.strip() for m in response.headers["allow"].split(",")}
        assert {"GET", "POST", "OPTIONS"} <= allowed
        assert response.json()["error"] == "method_not_allowed"

    @pytest.mark.asyncio
    async def test_item_path_allow_header(self, test_client):
        response = await test_client.post(f"/api/roasters/{uuid.uuid4()}", json={})

        assert response.status_code == 405
        allowed = {m.strip() for m in response.headers["allow"].split(",")}
        assert {"GET", "PUT", "DELETE", "OPTIONS"} <= allowed

    @pytest.mark.asyncio
    async def test_options_returns_empty_200(self, test_client):
        response = await test_client.options("/api/farmers")

        assert response.status_code == 200
        assert response.content == b""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "method, path, expected",
        [
            ("PATCH", "/api/farmers", {"GET", "POST", "OPTIONS"}),
            ("PATCH", f"/api/farmers/{uuid.uuid4()}", {"GET", "PUT", "DELETE", "OPTIONS"}),
            ("POST", f"/api/roasters/{uuid.uuid4()}/subscription-tier", {"PUT", "OPTIONS"}),
            ("DELETE", "/api/health", {"GET", "OPTIONS"}),
            ("GET", "/api/payments/create-intent", {"POST", "OPTIONS"}),
        ],
    )
    async def test_allow_header_lists_registered_methods(self, test_client, method, path, expected):
        response = await test_client.request(method, path)

        assert response.status_code == 405
        allowed = {m.strip() for m in response.headers["allow"].split(",")}
        assert expected <= allowed
        assert method not in allowed

    @pytest.mark.asyncio
    async def test_health_options_returns_empty_200(self, test_client):
        response = await test_client.options("/api/health")

        assert response.status_code == 200
        assert response.content == b""

    def test_route_method_index_merges_templates(self):
        index = RouteMethodIndex()
        index.add("/api/things", ["get"])
        index.add("/api/things", ["POST"])
        index.add("/api/things/{thing_id}", ["DELETE"])

        assert index.methods_for("/api/things") == {"GET", "POST"}
        assert index.methods_for("/api/things/42") == {"DELETE"}
        assert index.methods_for("/api/things/42/parts") == set()

    @pytest.mark.asyncio
    async def test_cors_preflight(self, test_client):
        response = await test_client.options(
            "/api/roasters",
            headers={"Origin": "http://shop.example", "Access-Control-Request-Method": "POST"},
        )

        assert response.status_code == 200
        assert "access-control-allow-origin" in response.headers
        assert response.text == "OK"

    @pytest.mark.asyncio
    async def test_cors_header_on_simple_request(self, test_client):
        response = await test_client.get("/api/farmers", headers={"Origin": "http://shop.example"})

        assert response.headers["access-control-allow-origin"] == "*"

    @pytest.mark.asyncio
    async def test_request_id_is_echoed_into_errors(self, test_client):
        response = await test_client.get("/api/farmers/bad", headers={"X-Request-ID": "trace-123"})

        assert response.headers["x-request-id"] == "trace-123"
        assert response.json()["requestId"] == "trace-123"

    @pytest.mark.asyncio
    async def test_unknown_route_is_404_envelope(self, test_client):
        response = await test_client.get("/api/baristas")

        assert response.status_code == 404
        assert response.json()["success"] is False


class TestHealth:

    @pytest.mark.asyncio
    async def test_healthy(self, test_client):
        response = await test_client.get("/api/health")

        body = response.json()
        assert response.status_code == 200
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert "uptimeSeconds" in body

    @pytest.mark.asyncio
    async def test_unhealthy_when_store_unreachable(self, test_client, tmp_path):
        from kafiza.main import app

        unreachable = make_manager(tmp_path / "missing" / "kafiza.db")
        app.dependency_overrides[get_connection_manager] = lambda: unreachable

        response = await test_client.get("/api/health")

        assert response.status_code == 503
        assert response.json()["database"] == "disconnected"

    @pytest.mark.asyncio
    async def test_store_outage_maps_to_503(self, test_client, tmp_path):
        from kafiza.main import app

        unreachable = make_manager(tmp_path / "missing" / "kafiza.db")
        app.dependency_overrides[get_connection_manager] = lambda: unreachable

        response = await test_client.get("/api/farmers")

        assert response.status_code == 503
        assert response.json()["error"] == "service_unavailable"
