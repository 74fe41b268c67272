"""Health check endpoints.

``/health`` reports the service and its pricing defaults; ``/ready``
reports how many cart instances the session store holds.
"""

from fastapi import APIRouter
from pydantic import BaseModel

from cartcalc.infrastructure.config import settings
from cartcalc.infrastructure.session_store import get_cart_store

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
    service: str
    version: str
    default_instance: str
    conditions_order: list[str]


class ReadinessResponse(BaseModel):
    """Readiness response schema."""

    status: str
    carts: int


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Report service version and the configured cart defaults."""
    return HealthResponse(
        status="healthy",
        service="cartcalc",
        version=settings.api_version,
        default_instance=settings.default_instance,
        conditions_order=settings.conditions_order,
    )


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check() -> ReadinessResponse:
    """Report readiness with the number of stored cart instances."""
    return ReadinessResponse(status="ready", carts=len(get_cart_store().keys()))
