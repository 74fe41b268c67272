"""API layer module.

Contains FastAPI routers and request/response schemas.
"""

from cartcalc.api.carts import router as carts_router
from cartcalc.api.health import router as health_router

__all__ = [
    "carts_router",
    "health_router",
]
