"""
Catalog Service Middleware

Request logging with correlation IDs. Errors that escape the exception
handlers still get a structured 500 carrying the correlation ID.
"""

import time
from collections.abc import Callable
from uuid import uuid4

import structlog
from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from shared.domain.exceptions import ErrorCode

logger = structlog.get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware for logging all requests and responses.

    Reuses an incoming correlation ID when the caller sends one.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid4())
        request.state.correlation_id = correlation_id
        start_time = time.perf_counter()

        logger.debug(
            "Request started",
            method=request.method,
            path=request.url.path,
            correlation_id=correlation_id,
            client_host=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "Request failed",
                method=request.method,
                path=request.url.path,
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
                correlation_id=correlation_id,
                exc_info=True,
            )
            debug = getattr(request.app.state.settings, "debug", False)
            response = JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "error": ErrorCode.INTERNAL_ERROR.value,
                    "message": str(e) if debug else "An unexpected error occurred",
                    "type": type(e).__name__,
                },
            )
            response.headers[CORRELATION_HEADER] = correlation_id
            return response

        logger.info(
            "Request completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
            correlation_id=correlation_id,
        )

        response.headers[CORRELATION_HEADER] = correlation_id
        return response
