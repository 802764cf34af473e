"""
Product API endpoints.

Reads go through the product circuit breaker; any failure on a read path,
including a rejected call while the circuit is open, is reported as 503.
"""

from typing import Any

import structlog
from fastapi import APIRouter, Body, Depends, Path, Response, status

from services.catalog_service.dependencies import (
    get_catalog_service,
    get_product_circuit_breaker,
)
from services.catalog_service.models import Product
from services.catalog_service.repository import CatalogService
from shared.domain.exceptions import EntityNotFoundError, ServiceUnavailableError
from shared.resilience.circuit_breaker import CircuitBreaker

router = APIRouter(tags=["products"])
logger = structlog.get_logger(__name__)


@router.get("/products")
async def get_products(
    catalog: CatalogService = Depends(get_catalog_service),
    breaker: CircuitBreaker = Depends(get_product_circuit_breaker),
) -> list[dict[str, Any]]:
    """
    List every product in the catalog.

    Returns:
        JSON array of products
    """
    try:
        products = await breaker.call(catalog.get_products)
    except Exception as e:
        logger.warning("Failed to list products", error=str(e), circuit_state=breaker.state.value)
        raise ServiceUnavailableError(service_name="catalog", message="Product catalog is unavailable") from e

    return [product.to_json() for product in products]


@router.get("/product/{itemId}")
async def get_product(
    item_id: str = Path(alias="itemId"),
    catalog: CatalogService = Depends(get_catalog_service),
    breaker: CircuitBreaker = Depends(get_product_circuit_breaker),
) -> dict[str, Any]:
    """
    Fetch a single product.

    Args:
        item_id: Catalog item identifier

    Returns:
        JSON object of the product

    Raises:
        EntityNotFoundError: If no product has this item id
        ServiceUnavailableError: If the store call fails or the circuit is open
    """
    try:
        product = await breaker.call(catalog.get_product, item_id)
    except Exception as e:
        logger.warning(
            "Failed to fetch product",
            item_id=item_id,
            error=str(e),
            circuit_state=breaker.state.value,
        )
        raise ServiceUnavailableError(service_name="catalog", message="Product catalog is unavailable") from e

    if product is None:
        raise EntityNotFoundError("Product", item_id)

    return product.to_json()


@router.post("/product", status_code=status.HTTP_201_CREATED)
async def add_product(
    product: Product = Body(...),
    catalog: CatalogService = Depends(get_catalog_service),
) -> Response:
    """Add a product to the catalog."""
    await catalog.add_product(product)
    return Response(status_code=status.HTTP_201_CREATED)
