"""Cart session storage.

Carts are persisted per instance key through the ``CartStore`` protocol.
``InMemoryCartStore`` keeps JSON snapshots, so every ``load`` returns an
independent copy and nothing a caller mutates reaches the store until it
is explicitly saved.
"""

from typing import Protocol

import structlog

from cartcalc.domain.entities import CartState
from cartcalc.infrastructure.snapshots import CartSnapshot

logger = structlog.get_logger()


class CartStore(Protocol):
    """Persistence collaborator for cart state."""

    def load(self, key: str) -> CartState | None:
        """Load the cart stored under ``key``, or None when nothing is stored."""
        ...

    def save(self, key: str, cart: CartState) -> None:
        """Store ``cart`` under ``key``, replacing any previous state."""
        ...


class InMemoryCartStore:
    """Session-like store holding serialized cart snapshots."""

    def __init__(self) -> None:
        self._sessions: dict[str, str] = {}

    def load(self, key: str) -> CartState | None:
        """Load a cart by key."""
        payload = self._sessions.get(key)
        if payload is None:
            return None
        return CartSnapshot.model_validate_json(payload).to_cart()

    def save(self, key: str, cart: CartState) -> None:
        """Save a cart by key."""
        self._sessions[key] = CartSnapshot.from_cart(cart).model_dump_json()
        logger.debug("Cart saved", key=key, rows=len(cart.items))

    def has(self, key: str) -> bool:
        return key in self._sessions

    def keys(self) -> list[str]:
        return list(self._sessions)

    def reset(self) -> None:
        """Drop every stored cart."""
        self._sessions.clear()


# Global store instance
_cart_store: InMemoryCartStore | None = None


def get_cart_store() -> InMemoryCartStore:
    """Get cart store singleton."""
    global _cart_store
    if _cart_store is None:
        _cart_store = InMemoryCartStore()
    return _cart_store
