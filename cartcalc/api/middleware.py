"""API middleware.

Provides:
- Request and cart-instance log context
- Error handling
"""

import time
from typing import Callable
from urllib.parse import unquote
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from cartcalc.api.schemas import ErrorResponse

logger = structlog.get_logger()

CARTS_PREFIX = "/carts/"


def instance_from_path(path: str) -> str | None:
    """Extract the cart instance name from a ``/carts/{instance}/...`` path."""
    if not path.startswith(CARTS_PREFIX):
        return None
    segment = path[len(CARTS_PREFIX):].split("/", 1)[0]
    return unquote(segment) or None


# ============================================================================
# Request Context Middleware
# ============================================================================


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind request ID and cart instance into the structlog context.

    The request ID is taken from the ``X-Request-ID`` header or generated,
    stored on ``request.state`` for error bodies and echoed back on the
    response. Every log line emitted while handling the request carries
    both values.
    """

    HEADER_NAME = "X-Request-ID"

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        request_id = request.headers.get(self.HEADER_NAME) or str(uuid4())
        request.state.request_id = request_id
        context = {"request_id": request_id}
        instance = instance_from_path(request.url.path)
        if instance is not None:
            context["instance"] = instance
        structlog.contextvars.bind_contextvars(**context)

        start_time = time.perf_counter()
        response = None
        try:
            response = await call_next(request)
        finally:
            logger.info(
                "Cart request completed" if instance is not None else "Request completed",
                method=request.method,
                path=request.url.path,
                status_code=getattr(response, "status_code", 500),
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
            )
            structlog.contextvars.unbind_contextvars(*context)

        response.headers[self.HEADER_NAME] = request_id
        return response


# ============================================================================
# Error Handling Middleware
# ============================================================================


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Turn unhandled exceptions into an ``ErrorResponse`` with status 500.

    Cart input errors never reach this layer; routes map them to 404/422.
    """

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            logger.exception("Unhandled exception", path=request.url.path, error=str(e))
            body = ErrorResponse(
                error_code="INTERNAL_ERROR",
                message="An internal error occurred",
                request_id=getattr(request.state, "request_id", None),
            )
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=body.model_dump(),
            )


# ============================================================================
# Middleware Setup
# ============================================================================


def setup_middleware(app: FastAPI) -> None:
    """Configure all middleware for the application.

    Starlette wraps the app in reverse order of registration, so the
    middleware added last runs first.

    Args:
        app: FastAPI application instance.
    """
    # Inner: sees the request ID already bound by the outer layer
    app.add_middleware(ErrorHandlerMiddleware)

    # Outer: context is bound before any handler or error logging runs
    app.add_middleware(RequestContextMiddleware)
