"""Domain layer - Conditions, line items, the cart aggregate and pricing.

This module exports the pricing core:

- **Conditions**: Named, typed adjustments (discount, tax, shipping, ...)
- **Entities**: LineItem rows and the CartState aggregate
- **Pricing**: Line-item and cart resolvers that recompute totals
- **Events**: Notifications fired after cart mutations
- **Exceptions**: Input errors raised before any mutation

Example usage:
    from cartcalc.domain import CartState, Condition, apply_cart_conditions

    cart = CartState()
    ...
    cart.add_condition(Condition.parse("sale", "discount", "total", "-10%"))
    apply_cart_conditions(cart)
    print(cart.effective_total)
"""

from cartcalc.domain.base import DomainEvent
from cartcalc.domain.conditions import (
    DEFAULT_CONDITIONS_ORDER,
    PRICE_TARGET,
    SUBTOTAL_TARGET,
    TOTAL_TARGET,
    Condition,
    ConditionOperator,
    filter_by,
    rank,
    rank_conditions,
)
from cartcalc.domain.entities import CartState, LineItem
from cartcalc.domain.events import (
    EVENT_REGISTRY,
    CartBatchAdded,
    CartCleared,
    CartItemAdded,
    CartItemRemoved,
    CartItemUpdated,
)
from cartcalc.domain.exceptions import (
    CartError,
    DomainError,
    InstanceNameRequiredError,
    InvalidAttributesError,
    InvalidConditionsError,
    InvalidPriceError,
    InvalidQuantityError,
    InvalidWeightError,
    MissingRequiredFieldError,
    RowNotFoundError,
    UnresolvableAssociatedModelError,
)
from cartcalc.domain.pricing import apply_cart_conditions, apply_item_conditions
from cartcalc.domain.value_objects import generate_row_id

__all__ = [
    # Conditions
    "Condition",
    "ConditionOperator",
    "DEFAULT_CONDITIONS_ORDER",
    "PRICE_TARGET",
    "SUBTOTAL_TARGET",
    "TOTAL_TARGET",
    "filter_by",
    "rank",
    "rank_conditions",
    # Entities
    "CartState",
    "LineItem",
    "generate_row_id",
    # Pricing
    "apply_cart_conditions",
    "apply_item_conditions",
    # Events
    "DomainEvent",
    "EVENT_REGISTRY",
    "CartBatchAdded",
    "CartCleared",
    "CartItemAdded",
    "CartItemRemoved",
    "CartItemUpdated",
    # Exceptions
    "DomainError",
    "CartError",
    "MissingRequiredFieldError",
    "InvalidQuantityError",
    "InvalidPriceError",
    "InvalidWeightError",
    "InvalidAttributesError",
    "InvalidConditionsError",
    "RowNotFoundError",
    "InstanceNameRequiredError",
    "UnresolvableAssociatedModelError",
]
