"""Persistence snapshots.

Pydantic models mirroring the cart aggregate so it can be written to and
read back from a session store as JSON without losing conditions, row
condition lists, disable maps or recorded results.
"""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field

from cartcalc.domain.conditions import Condition
from cartcalc.domain.entities import CartState, LineItem


class ConditionSnapshot(BaseModel):
    """Serialized condition."""

    name: str
    type: str
    target: str
    operator: str
    value: str
    inclusive: bool = False
    result: Decimal = Decimal("0")

    @classmethod
    def from_condition(cls, condition: Condition) -> "ConditionSnapshot":
        operator = condition.operator
        return cls(
            name=condition.name,
            type=condition.type,
            target=condition.target,
            operator=getattr(operator, "value", str(operator)),
            value=str(condition.value),
            inclusive=condition.inclusive,
            result=condition.result,
        )

    def to_condition(self) -> Condition:
        condition = Condition(
            name=self.name,
            type=self.type,
            target=self.target,
            operator=self.operator,
            value=self.value,
            inclusive=self.inclusive,
        )
        condition._result = self.result
        return condition


class LineItemSnapshot(BaseModel):
    """Serialized line item."""

    row_id: str
    id: str
    name: str
    qty: int
    price: Decimal
    original_price: Decimal
    weight: Decimal
    requires_shipping: bool
    attributes: dict[str, Any] = Field(default_factory=dict)
    conditions: list[ConditionSnapshot] = Field(default_factory=list)
    disable: dict[str, bool] = Field(default_factory=dict)
    conditions_order: list[str] | None = None
    subtotal: Decimal
    applied_conditions: dict[str, Decimal] = Field(default_factory=dict)
    inclusive_conditions: dict[str, Decimal] = Field(default_factory=dict)
    totals: dict[str, Decimal] = Field(default_factory=dict)

    @classmethod
    def from_item(cls, item: LineItem) -> "LineItemSnapshot":
        return cls(
            row_id=item.row_id,
            id=item.id,
            name=item.name,
            qty=item.qty,
            price=item.price,
            original_price=item.original_price,
            weight=item.weight,
            requires_shipping=item.requires_shipping,
            attributes=item.attributes,
            conditions=[ConditionSnapshot.from_condition(c) for c in item.conditions],
            disable=item.disable,
            conditions_order=item.conditions_order,
            subtotal=item.subtotal,
            applied_conditions=item.applied_conditions,
            inclusive_conditions=item.inclusive_conditions,
            totals=item.totals,
        )

    def to_item(self) -> LineItem:
        return LineItem(
            row_id=self.row_id,
            id=self.id,
            name=self.name,
            qty=self.qty,
            price=self.price,
            original_price=self.original_price,
            weight=self.weight,
            requires_shipping=self.requires_shipping,
            attributes=dict(self.attributes),
            conditions=[c.to_condition() for c in self.conditions],
            disable=dict(self.disable),
            conditions_order=list(self.conditions_order) if self.conditions_order else None,
            subtotal=self.subtotal,
            applied_conditions=dict(self.applied_conditions),
            inclusive_conditions=dict(self.inclusive_conditions),
            totals=dict(self.totals),
        )


class CartSnapshot(BaseModel):
    """Serialized cart aggregate."""

    items: list[LineItemSnapshot] = Field(default_factory=list)
    conditions: list[ConditionSnapshot] = Field(default_factory=list)
    disable: dict[str, bool] = Field(default_factory=dict)
    conditions_order: list[str] | None = None
    subtotal: Decimal = Decimal("0")
    total: Decimal | None = None
    applied_conditions: dict[str, Decimal] = Field(default_factory=dict)
    inclusive_conditions: dict[str, Decimal] = Field(default_factory=dict)
    totals: dict[str, Decimal] = Field(default_factory=dict)
    meta_billing: dict[str, Any] = Field(default_factory=dict)
    meta_shipping: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_cart(cls, cart: CartState) -> "CartSnapshot":
        return cls(
            items=[LineItemSnapshot.from_item(item) for item in cart.items.values()],
            conditions=[ConditionSnapshot.from_condition(c) for c in cart.conditions],
            disable=cart.disable,
            conditions_order=cart.conditions_order,
            subtotal=cart.subtotal,
            total=cart.total,
            applied_conditions=cart.applied_conditions,
            inclusive_conditions=cart.inclusive_conditions,
            totals=cart.totals,
            meta_billing=cart.meta_billing,
            meta_shipping=cart.meta_shipping,
        )

    def to_cart(self) -> CartState:
        return CartState(
            items={snapshot.row_id: snapshot.to_item() for snapshot in self.items},
            conditions=[c.to_condition() for c in self.conditions],
            disable=dict(self.disable),
            conditions_order=list(self.conditions_order) if self.conditions_order else None,
            subtotal=self.subtotal,
            total=self.total,
            applied_conditions=dict(self.applied_conditions),
            inclusive_conditions=dict(self.inclusive_conditions),
            totals=dict(self.totals),
            meta_billing=dict(self.meta_billing),
            meta_shipping=dict(self.meta_shipping),
        )
