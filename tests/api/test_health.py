"""Tests for health and info endpoints."""


class TestHealth:
    async def test_liveness(self, client):
        response = await client.get("/health/live")

        assert response.status_code == 200
        assert response.json() == {"status": "alive"}

    async def test_info(self, client):
        response = await client.get("/info")

        body = response.json()
        assert response.status_code == 200
        assert body["default_region"] == "eastus"
        assert body["max_tenants_per_shared_cell"] == 100

    async def test_request_id_header(self, client):
        response = await client.get("/health/live", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"
