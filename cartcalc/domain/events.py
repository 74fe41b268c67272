"""Cart notification events.

Events are fired after a mutation has been recomputed and persisted.
Listeners receive them through the notifier; nothing in the pricing
core depends on what a listener does with them.
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar

from cartcalc.domain.base import DomainEvent


@dataclass(frozen=True)
class CartItemAdded(DomainEvent):
    """Event raised when an item is added (or merged) into a cart."""

    event_type: ClassVar[str] = "cart.add"

    row_id: str = ""
    item_id: str = ""
    name: str = ""
    quantity: int = 0
    price: str = "0"
    attributes: dict[str, Any] = field(default_factory=dict)

    def _payload(self) -> dict[str, Any]:
        """Get event-specific payload."""
        return {
            "row_id": self.row_id,
            "item_id": self.item_id,
            "name": self.name,
            "quantity": self.quantity,
            "price": self.price,
            "attributes": dict(self.attributes),
        }


@dataclass(frozen=True)
class CartBatchAdded(DomainEvent):
    """Event raised when several items are added in one call."""

    event_type: ClassVar[str] = "cart.batch"

    item_ids: tuple[str, ...] = ()

    def _payload(self) -> dict[str, Any]:
        """Get event-specific payload."""
        return {"item_ids": list(self.item_ids)}


@dataclass(frozen=True)
class CartItemUpdated(DomainEvent):
    """Event raised when a row's quantity or fields are updated."""

    event_type: ClassVar[str] = "cart.update"

    row_id: str = ""
    changes: dict[str, Any] = field(default_factory=dict)

    def _payload(self) -> dict[str, Any]:
        """Get event-specific payload."""
        return {"row_id": self.row_id, "changes": dict(self.changes)}


@dataclass(frozen=True)
class CartItemRemoved(DomainEvent):
    """Event raised when a row is removed from a cart."""

    event_type: ClassVar[str] = "cart.remove"

    row_id: str = ""

    def _payload(self) -> dict[str, Any]:
        """Get event-specific payload."""
        return {"row_id": self.row_id}


@dataclass(frozen=True)
class CartCleared(DomainEvent):
    """Event raised when a cart is emptied."""

    event_type: ClassVar[str] = "cart.destroy"

    def _payload(self) -> dict[str, Any]:
        """Get event-specific payload."""
        return {}


EVENT_REGISTRY: dict[str, type[DomainEvent]] = {
    CartItemAdded.event_type: CartItemAdded,
    CartBatchAdded.event_type: CartBatchAdded,
    CartItemUpdated.event_type: CartItemUpdated,
    CartItemRemoved.event_type: CartItemRemoved,
    CartCleared.event_type: CartCleared,
}
