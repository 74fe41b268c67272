"""API schemas for the cart API.

Pydantic models for request/response validation and serialization.
Amounts are serialized as decimal strings.
"""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field

from cartcalc.domain.conditions import Condition


# ============================================================================
# Common Schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Standard error response.

    All API errors follow this format for consistency.
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] | list[Any] = Field(
        default_factory=dict, description="Additional error details"
    )
    request_id: str | None = Field(
        default=None, description="Request ID for correlation"
    )


# ============================================================================
# Condition Schemas
# ============================================================================


class ConditionCreateRequest(BaseModel):
    """Request to attach a condition."""

    name: str = Field(..., min_length=1, description="Condition name, unique within its cart or row")
    type: str = Field(..., min_length=1, description="Condition type (e.g. 'discount', 'tax', 'shipping')")
    target: str = Field(default="total", description="Field the condition adjusts")
    action: str = Field(..., description="Signed amount, '%' for percentages (e.g. '-10%', '+5')")
    inclusive: bool = Field(default=False, description="Report the adjustment without applying it")

    def to_condition(self) -> Condition:
        return Condition.parse(
            name=self.name,
            type=self.type,
            target=self.target,
            action=self.action,
            inclusive=self.inclusive,
        )


class ConditionSchema(BaseModel):
    """Condition representation."""

    name: str
    type: str
    target: str
    operator: str
    value: str
    inclusive: bool

    @classmethod
    def from_condition(cls, condition: Condition) -> "ConditionSchema":
        operator = condition.operator
        return cls(
            name=condition.name,
            type=condition.type,
            target=condition.target,
            operator=getattr(operator, "value", str(operator)),
            value=str(condition.value),
            inclusive=condition.inclusive,
        )


class ConditionsOrderRequest(BaseModel):
    """Request to change the order in which condition types are applied."""

    order: list[str] = Field(..., description="Condition types, first applied first")


# ============================================================================
# Item Schemas
# ============================================================================


class ItemCreateRequest(BaseModel):
    """Request to add an item to a cart."""

    id: str = Field(..., min_length=1, description="Catalog identifier of the item")
    name: str = Field(..., min_length=1, description="Display name")
    qty: int = Field(..., gt=0, description="Number of units")
    price: Decimal = Field(..., description="Unit price")
    weight: Decimal = Field(..., description="Unit weight")
    requires_shipping: bool = Field(..., description="Whether the item must be shipped")
    attributes: dict[str, Any] = Field(default_factory=dict, description="Options such as size or color")
    conditions: list[ConditionCreateRequest] = Field(default_factory=list, description="Row conditions")
    disable: dict[str, bool] = Field(default_factory=dict, description="Condition types disabled for this row")

    def to_item(self) -> dict[str, Any]:
        data = self.model_dump(exclude={"conditions"})
        data["conditions"] = [c.to_condition() for c in self.conditions]
        return data


class ItemBatchRequest(BaseModel):
    """Request to add several items at once."""

    items: list[ItemCreateRequest] = Field(..., min_length=1)


class ItemUpdateRequest(BaseModel):
    """Request to update a row. Only fields that are sent are changed."""

    name: str | None = None
    qty: int | None = Field(default=None, description="New quantity; 0 or less removes the row")
    price: Decimal | None = None
    weight: Decimal | None = None
    requires_shipping: bool | None = None
    attributes: dict[str, Any] | None = None
    conditions: list[ConditionCreateRequest] | None = None
    disable: dict[str, bool] | None = None

    def to_changes(self) -> dict[str, Any]:
        changes = self.model_dump(exclude_unset=True, exclude={"conditions"})
        if self.conditions is not None:
            changes["conditions"] = [c.to_condition() for c in self.conditions]
        return changes


class SearchRequest(BaseModel):
    """Request to search rows by field values."""

    criteria: dict[str, Any] = Field(..., description="Field values every match must equal")


class SearchResponse(BaseModel):
    """Search result; row_ids is null when nothing matched."""

    row_ids: list[str] | None


class LineItemResponse(BaseModel):
    """Line item representation."""

    row_id: str
    id: str
    name: str
    qty: int
    price: Decimal
    original_price: Decimal
    weight: Decimal
    total_weight: Decimal
    requires_shipping: bool
    attributes: dict[str, Any]
    conditions: list[ConditionSchema]
    disable: dict[str, bool]
    subtotal: Decimal
    applied_conditions: dict[str, Decimal]
    totals: dict[str, Decimal]


# ============================================================================
# Cart Schemas
# ============================================================================


class CartResponse(BaseModel):
    """Cart representation with all computed totals."""

    instance: str
    items: list[LineItemResponse]
    conditions: list[ConditionSchema]
    conditions_order: list[str]
    subtotal: Decimal
    total: Decimal
    totals: dict[str, Decimal] = Field(..., description="Cart-level result per condition type")
    applied_conditions: dict[str, Decimal]
    conditions_total: dict[str, Decimal]
    count: int
    quantity: int
    weight: Decimal
    requires_shipping: bool
    billing: dict[str, Any]
    shipping: dict[str, Any]
