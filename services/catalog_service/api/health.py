"""
Health & readiness probes, plus circuit breaker status.
"""

from typing import Any

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse, PlainTextResponse

from services.catalog_service.dependencies import get_circuit_breakers, get_health_registry
from shared.health import HealthCheckRegistry
from shared.resilience.circuit_breaker import CircuitBreakerManager

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/readiness", response_class=PlainTextResponse)
async def readiness_check() -> str:
    """Readiness probe. Returns OK while the process is serving."""
    return "OK"


@router.get("/liveness")
async def liveness_check(
    registry: HealthCheckRegistry = Depends(get_health_registry),
) -> JSONResponse:
    """
    Liveness probe running every registered health procedure.

    Returns:
        200 with outcome UP, or 503 with outcome DOWN
    """
    report = await registry.check()
    return JSONResponse(
        status_code=status.HTTP_200_OK if report.is_up else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=report.to_dict(),
    )


@router.get("/circuit-breakers")
async def get_circuit_breaker_status(
    breakers: CircuitBreakerManager = Depends(get_circuit_breakers),
) -> dict[str, dict[str, Any]]:
    """
    Get status of all circuit breakers.

    Returns:
        Dictionary of circuit breaker statistics
    """
    return breakers.get_all_stats()
