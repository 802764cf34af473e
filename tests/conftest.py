"""Shared test fixtures: fake product store, settings, and an ASGI test client.

The fake store stands in for the external product store so route tests can
drive failures, slow calls and unreachable pings deterministically.
"""

import asyncio

import pytest
from httpx import ASGITransport, AsyncClient

from services.catalog_service.dependencies import PRODUCT_CIRCUIT_BREAKER
from services.catalog_service.main import create_app
from services.catalog_service.models import Product
from services.catalog_service.repository import CatalogService
from shared.config import Settings


class FakeCatalogService(CatalogService):
    """In-test product store with switchable failures and latency."""

    def __init__(self, products: list[Product] | None = None):
        self.products: dict[str | None, Product] = {p.item_id: p for p in products or []}
        self.failure: Exception | None = None
        self.delay = 0.0
        self.ping_failure: Exception | None = None
        self.ping_delay = 0.0
        self.calls: list[str] = []

    async def _enter(self, operation: str) -> None:
        self.calls.append(operation)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.failure is not None:
            raise self.failure

    async def get_products(self) -> list[Product]:
        await self._enter("get_products")
        return list(self.products.values())

    async def get_product(self, item_id: str) -> Product | None:
        await self._enter("get_product")
        return self.products.get(item_id)

    async def add_product(self, product: Product) -> None:
        await self._enter("add_product")
        self.products[product.item_id] = product

    async def ping(self) -> None:
        self.calls.append("ping")
        if self.ping_delay:
            await asyncio.sleep(self.ping_delay)
        if self.ping_failure is not None:
            raise self.ping_failure


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        debug=False,
        circuit_breaker_max_failures=3,
        circuit_breaker_call_timeout=0.2,
        circuit_breaker_reset_timeout=0.2,
        health_check_timeout=0.2,
    )


@pytest.fixture
def sample_products():
    return [
        Product(item_id="329299", name="Red Fedora", desc="Official Red Hat Fedora", price=34.99),
        Product(item_id="329199", name="Forge Laptop Sticker", desc="JBoss Community Forge Project Sticker", price=8.5),
    ]


@pytest.fixture
def catalog(sample_products):
    return FakeCatalogService(sample_products)


@pytest.fixture
def app(catalog, settings):
    return create_app(catalog_service=catalog, settings=settings)


@pytest.fixture
def breaker(app):
    return app.state.circuit_breakers.get_breaker(PRODUCT_CIRCUIT_BREAKER)


@pytest.fixture
async def client(app):
    """HTTP client bound to the app; unhandled errors surface as 500 responses."""
    async with AsyncClient(
        transport=ASGITransport(app=app, raise_app_exceptions=False),
        base_url="http://test",
    ) as c:
        yield c
