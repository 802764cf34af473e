"""Route tests for readiness, liveness and circuit breaker status."""

from shared.domain.exceptions import DatabaseError


async def test_readiness_is_plain_ok(client):
    response = await client.get("/health/readiness")

    assert response.status_code == 200
    assert response.text == "OK"
    assert response.headers["content-type"].startswith("text/plain")


async def test_readiness_ignores_store_state(client, catalog):
    catalog.ping_failure = DatabaseError("unreachable", operation="ping")

    response = await client.get("/health/readiness")

    assert response.status_code == 200


async def test_liveness_up_when_store_reachable(client, catalog):
    response = await client.get("/health/liveness")

    assert response.status_code == 200
    assert response.json() == {
        "outcome": "UP",
        "checks": [{"id": "health", "status": "UP"}],
    }
    assert "ping" in catalog.calls


async def test_liveness_down_when_ping_fails(client, catalog):
    catalog.ping_failure = DatabaseError("Product store is unreachable", operation="ping")

    response = await client.get("/health/liveness")

    assert response.status_code == 503
    body = response.json()
    assert body["outcome"] == "DOWN"
    assert body["checks"][0]["id"] == "health"
    assert body["checks"][0]["status"] == "DOWN"
    assert body["checks"][0]["data"]["cause"] == "Product store is unreachable"


async def test_liveness_down_when_ping_hangs(client, catalog):
    catalog.ping_delay = 1.0

    response = await client.get("/health/liveness")

    assert response.status_code == 503
    assert response.json()["checks"][0]["data"] == {"cause": "timeout"}


async def test_circuit_breaker_status(client):
    await client.get("/products")

    response = await client.get("/health/circuit-breakers")

    assert response.status_code == 200
    stats = response.json()["product-circuit-breaker"]
    assert stats["state"] == "closed"
    assert stats["max_failures"] == 3
    assert stats["total_successes"] == 1
