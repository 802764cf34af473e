"""
Catalog Service - Product Catalog API

Lists, fetches and creates catalog products. Product reads are guarded by a
circuit breaker and the product store is polled by the liveness probe.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from services.catalog_service.api import health, products
from services.catalog_service.dependencies import PRODUCT_CIRCUIT_BREAKER
from services.catalog_service.middleware import LoggingMiddleware
from services.catalog_service.repository import CatalogService, MongoCatalogService
from shared.config import Settings, get_settings
from shared.database import close_mongodb, get_mongodb
from shared.domain.exceptions import DomainException, ErrorCode
from shared.health import HealthCheckRegistry, Status
from shared.observability import configure_logging
from shared.resilience.circuit_breaker import CircuitBreakerConfig, CircuitBreakerManager

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan.

    Connects to MongoDB only when no catalog service was injected.
    """
    settings: Settings = app.state.settings
    owns_store = app.state.catalog_service is None

    logger.info("Starting Catalog Service", version=app.version, port=settings.catalog_http_port)

    if owns_store:
        db = await get_mongodb(settings)
        app.state.catalog_service = MongoCatalogService.from_database(
            db, settings.mongodb_products_collection
        )

    try:
        yield
    finally:
        if owns_store:
            await close_mongodb()
            app.state.catalog_service = None
        logger.info("Catalog Service shutdown complete")


def _error_response(
    status_code: int,
    error: str,
    message: str,
    exc: Exception,
    context: dict | None = None,
) -> JSONResponse:
    content = {"error": error, "message": message, "type": type(exc).__name__}
    if context:
        content["context"] = context
    return JSONResponse(status_code=status_code, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """Map errors to structured JSON error bodies."""

    @app.exception_handler(DomainException)
    async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
        logger.warning(
            "Domain exception",
            path=request.url.path,
            method=request.method,
            error_code=exc.error_code.value,
            message=exc.message,
            status_code=exc.status_code,
            context=exc.context,
        )
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        logger.warning(
            "HTTP exception",
            path=request.url.path,
            method=request.method,
            status_code=exc.status_code,
            detail=exc.detail,
        )
        return _error_response(
            exc.status_code,
            "HTTP_ERROR",
            exc.detail if isinstance(exc.detail, str) else str(exc.detail),
            exc,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.warning(
            "Request validation failed",
            path=request.url.path,
            method=request.method,
            errors=len(exc.errors()),
        )
        return _error_response(
            422,
            ErrorCode.DOMAIN_VALIDATION_ERROR.value,
            "Request body or parameters are invalid",
            exc,
            context={
                "errors": [
                    {"loc": list(error.get("loc", ())), "msg": error.get("msg", "")}
                    for error in exc.errors()
                ]
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unhandled exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            error_type=type(exc).__name__,
            exc_info=True,
        )
        settings: Settings = request.app.state.settings
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            ErrorCode.INTERNAL_ERROR.value,
            str(exc) if settings.debug else "An unexpected error occurred",
            exc,
        )


def create_app(
    catalog_service: CatalogService | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """
    Build the catalog application.

    Args:
        catalog_service: Product store to use; a MongoDB-backed one is created at startup when omitted
        settings: Settings to use (defaults to the process settings)

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Catalog Service",
        description="Product catalog API",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs",
    )

    app.state.settings = settings
    app.state.catalog_service = catalog_service

    app.state.circuit_breakers = CircuitBreakerManager()
    app.state.circuit_breakers.get_breaker(
        PRODUCT_CIRCUIT_BREAKER,
        CircuitBreakerConfig(
            max_failures=settings.circuit_breaker_max_failures,
            call_timeout=settings.circuit_breaker_call_timeout,
            reset_timeout=settings.circuit_breaker_reset_timeout,
            fallback_on_failure=True,
        ),
    )

    async def catalog_health() -> Status:
        try:
            await app.state.catalog_service.ping()
        except Exception as e:
            return Status.ko({"cause": str(e)})
        return Status.ok()

    app.state.health_registry = HealthCheckRegistry(timeout=settings.health_check_timeout)
    app.state.health_registry.register("health", catalog_health)

    app.add_middleware(LoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    register_exception_handlers(app)

    app.include_router(products.router)
    app.include_router(health.router)

    return app


configure_logging(get_settings().log_level, get_settings().log_format)

app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "services.catalog_service.main:app",
        host=settings.catalog_http_host,
        port=settings.catalog_http_port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
