"""
Catalog Service Dependencies

FastAPI dependencies resolving the collaborators stored on the application.
"""

from fastapi import Request

from services.catalog_service.repository import CatalogService
from shared.health import HealthCheckRegistry
from shared.resilience.circuit_breaker import CircuitBreaker, CircuitBreakerManager

PRODUCT_CIRCUIT_BREAKER = "product-circuit-breaker"


def get_catalog_service(request: Request) -> CatalogService:
    return request.app.state.catalog_service


def get_circuit_breakers(request: Request) -> CircuitBreakerManager:
    return request.app.state.circuit_breakers


def get_product_circuit_breaker(request: Request) -> CircuitBreaker:
    return request.app.state.circuit_breakers.get_breaker(PRODUCT_CIRCUIT_BREAKER)


def get_health_registry(request: Request) -> HealthCheckRegistry:
    return request.app.state.health_registry
