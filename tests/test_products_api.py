"""Route tests for the product endpoints.

Invariants:
    - GET /products and GET /product/{itemId} go through the product circuit breaker
    - A missing product is a 404 and does not count as a breaker failure
    - Any failed, timed-out or rejected read is a 503
    - POST /product bypasses the breaker; store failures are a 500
"""

import asyncio

from services.catalog_service.models import Product
from shared.domain.exceptions import DatabaseError
from shared.resilience.circuit_breaker import CircuitState


# -- Reads ---------------------------------------------------------------------


async def test_list_products_returns_json_array(client):
    response = await client.get("/products")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/json")
    body = response.json()
    assert {p["itemId"] for p in body} == {"329299", "329199"}
    fedora = next(p for p in body if p["itemId"] == "329299")
    assert fedora == {
        "itemId": "329299",
        "name": "Red Fedora",
        "desc": "Official Red Hat Fedora",
        "price": 34.99,
    }


async def test_list_products_empty_catalog(client, catalog):
    catalog.products.clear()

    response = await client.get("/products")

    assert response.status_code == 200
    assert response.json() == []


async def test_get_product_by_item_id(client):
    response = await client.get("/product/329199")

    assert response.status_code == 200
    assert response.json()["name"] == "Forge Laptop Sticker"


async def test_get_product_path_parameter_is_item_id(app):
    operation = app.openapi()["paths"]["/product/{itemId}"]["get"]

    assert [param["name"] for param in operation["parameters"]] == ["itemId"]
    assert operation["parameters"][0]["in"] == "path"


async def test_get_missing_product_is_404_and_not_a_breaker_failure(client, breaker):
    response = await client.get("/product/does-not-exist")

    assert response.status_code == 404
    body = response.json()
    assert body["error"] == "ENTITY_NOT_FOUND"
    assert body["context"]["entity_id"] == "does-not-exist"
    assert breaker.state == CircuitState.CLOSED
    assert breaker.stats.failure_count == 0
    assert breaker.stats.total_successes == 1


async def test_store_failure_on_read_is_503(client, catalog):
    catalog.failure = DatabaseError("connection reset", operation="find")

    response = await client.get("/products")

    assert response.status_code == 503
    assert response.json()["error"] == "EXTERNAL_SERVICE_UNAVAILABLE"


async def test_get_product_store_failure_is_503(client, catalog):
    catalog.failure = RuntimeError("boom")

    response = await client.get("/product/329299")

    assert response.status_code == 503


async def test_slow_store_call_times_out_as_503(client, catalog, breaker):
    catalog.delay = 0.5

    response = await client.get("/products")

    assert response.status_code == 503
    assert breaker.stats.total_timeouts == 1
    assert breaker.stats.failure_count == 1


async def test_circuit_opens_after_max_failures_and_short_circuits(client, catalog, breaker):
    catalog.failure = RuntimeError("store down")

    for _ in range(3):
        assert (await client.get("/products")).status_code == 503
    assert breaker.state == CircuitState.OPEN
    calls_before = len(catalog.calls)

    response = await client.get("/product/329299")

    assert response.status_code == 503
    assert len(catalog.calls) == calls_before
    assert breaker.stats.total_rejections == 1


async def test_circuit_recovers_after_reset_timeout(client, catalog, breaker):
    catalog.failure = RuntimeError("store down")
    for _ in range(3):
        await client.get("/products")
    assert breaker.state == CircuitState.OPEN

    catalog.failure = None
    await asyncio.sleep(0.25)

    response = await client.get("/products")

    assert response.status_code == 200
    assert breaker.state == CircuitState.CLOSED


async def test_correlation_id_is_echoed(client):
    response = await client.get("/products", headers={"X-Correlation-ID": "abc-123"})

    assert response.headers["X-Correlation-ID"] == "abc-123"


async def test_correlation_id_generated_when_absent(client):
    response = await client.get("/products")

    assert response.headers["X-Correlation-ID"]


# -- Writes --------------------------------------------------------------------


async def test_add_product_returns_201_with_empty_body(client, catalog):
    payload = {"itemId": "444434", "name": "Pebble Smart Watch", "desc": "Smart glasses", "price": 24.0}

    response = await client.post("/product", json=payload)

    assert response.status_code == 201
    assert response.content == b""
    assert catalog.products["444434"] == Product.from_json(payload)


async def test_add_product_keeps_missing_fields_empty(client, catalog):
    response = await client.post("/product", json={"itemId": "1", "extra": "ignored"})

    assert response.status_code == 201
    stored = catalog.products["1"]
    assert stored.name is None
    assert stored.price is None


async def test_add_product_store_failure_is_500(client, catalog):
    catalog.failure = DatabaseError("duplicate key", operation="insert_one")

    response = await client.post("/product", json={"itemId": "1"})

    assert response.status_code == 500
    assert response.json()["error"] == "DATABASE_ERROR"


async def test_add_product_unexpected_failure_is_500(client, catalog):
    catalog.failure = RuntimeError("unexpected")

    response = await client.post("/product", json={"itemId": "1"})

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "INTERNAL_ERROR"
    assert body["message"] == "An unexpected error occurred"


async def test_unexpected_failure_keeps_correlation_id(client, catalog):
    catalog.failure = RuntimeError("unexpected")

    response = await client.post("/product", json={"itemId": "1"}, headers={"X-Correlation-ID": "abc-123"})

    assert response.status_code == 500
    assert response.json()["error"] == "INTERNAL_ERROR"
    assert response.headers["X-Correlation-ID"] == "abc-123"



async def test_add_product_rejects_non_object_body(client, catalog):
    response = await client.post("/product", json=[1, 2, 3])

    assert response.status_code == 422
    assert response.json()["error"] == "DOMAIN_VALIDATION_ERROR"
    assert "add_product" not in catalog.calls


async def test_add_product_bypasses_open_circuit(client, catalog, breaker):
    catalog.failure = RuntimeError("store down")
    for _ in range(3):
        await client.get("/products")
    assert breaker.state == CircuitState.OPEN
    catalog.failure = None

    response = await client.post("/product", json={"itemId": "9"})

    assert response.status_code == 201
    assert "9" in catalog.products


async def test_unknown_route_uses_structured_error(client):
    response = await client.get("/nope")

    assert response.status_code == 404
    assert response.json()["error"] == "HTTP_ERROR"
