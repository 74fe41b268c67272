"""Domain entities for the cart pricing engine.

``LineItem`` is one quantity-priced row; ``CartState`` is the aggregate
holding every row of one cart instance together with cart-level
conditions. Both expose an explicit ``get``/``put`` field accessor so
conditions can read and write the field named by their ``target``.
"""

from dataclasses import dataclass, field, fields
from decimal import Decimal
from typing import Any

from cartcalc.domain.conditions import ZERO, Condition, filter_by, of_type


class PricedFieldsMixin:
    """Field access by name plus per-type aggregate totals.

    Per-type totals (``discount``, ``tax``, ...) live in ``totals`` and are
    readable through ``get`` like any other field.
    """

    totals: dict[str, Decimal]

    def get(self, key: str, default: Any = None) -> Any:
        """Read a field or a per-type total by name.

        Args:
            key: Field name.
            default: Returned when nothing is stored under that name.

        Returns:
            The stored value or default.
        """
        if key in self._field_names():
            return getattr(self, key)
        return self.totals.get(key, default)

    def put(self, key: str, value: Any) -> None:
        """Write a field or, for unknown names, a per-type total."""
        if key in self._field_names():
            setattr(self, key, value)
        else:
            self.totals[key] = value

    @classmethod
    def _field_names(cls) -> set[str]:
        return {f.name for f in fields(cls) if f.name != "totals"}  # type: ignore[arg-type]


class ConditionsMixin:
    """Condition list management shared by line items and the cart."""

    conditions: list[Condition]
    disable: dict[str, bool]
    applied_conditions: dict[str, Decimal]
    inclusive_conditions: dict[str, Decimal]

    def conditions_of(self, type: str | None = None) -> list[Condition]:
        """List attached conditions, optionally of a single type."""
        return of_type(self.conditions, type)

    def add_condition(self, condition: Condition) -> None:
        self.conditions.append(condition)

    def remove_condition_by_name(self, name: str) -> list[Condition]:
        """Detach conditions named ``name``.

        Returns:
            The removed conditions.
        """
        return self._remove(filter_by(self.conditions, name=name))

    def remove_condition_by_type(self, type: str) -> list[Condition]:
        """Detach every condition of ``type``.

        Returns:
            The removed conditions.
        """
        return self._remove(filter_by(self.conditions, type=type))

    def _remove(self, matches: list[Condition]) -> list[Condition]:
        removed = {id(condition) for condition in matches}
        self.conditions = [c for c in self.conditions if id(c) not in removed]
        return matches

    def is_disabled(self, type: str) -> bool:
        return self.disable.get(type, False)

    def disable_type(self, type: str) -> None:
        self.disable[type] = True

    def enable_type(self, type: str) -> None:
        self.disable[type] = False

    def conditions_total(self, type: str | None = None) -> dict[str, Decimal]:
        """Results of the attached conditions, keyed by name.

        Applied conditions report what they added to the running total;
        inclusive ones report their informational delta. Names that were
        applied but are no longer attached produce no entry.
        """
        totals: dict[str, Decimal] = {}
        for condition in self.conditions_of(type):
            if condition.name in self.applied_conditions:
                totals[condition.name] = self.applied_conditions[condition.name]
            elif condition.name in self.inclusive_conditions:
                totals[condition.name] = self.inclusive_conditions[condition.name]
        return totals

    def conditions_total_sum(self, type: str | None = None) -> Decimal:
        return sum(self.conditions_total(type).values(), ZERO)


# ============================================================================
# Line Item
# ============================================================================


@dataclass
class LineItem(ConditionsMixin, PricedFieldsMixin):
    """One row of a cart.

    ``price`` and ``subtotal`` are derived on every recompute from
    ``original_price``, ``qty`` and the attached conditions; they are never
    patched incrementally.

    Attributes:
        row_id: Key derived from ``id`` and ``attributes``.
        id: Catalog identifier of the item.
        name: Display name.
        qty: Number of units.
        price: Unit price after price-targeted conditions.
        original_price: Baseline unit price.
        weight: Unit weight.
        requires_shipping: Whether the item must be shipped.
        attributes: Free-form options such as size or color.
        conditions: Conditions scoped to this row, in attachment order.
        disable: Condition types suppressed for this row.
        conditions_order: Row-level type order override.
        subtotal: Row amount after conditions.
        applied_conditions: Name to result of the last recompute.
        inclusive_conditions: Name to informational result of the last recompute.
        totals: Per-type aggregate results of the last recompute.
    """

    row_id: str
    id: str
    name: str
    qty: int
    price: Decimal
    original_price: Decimal
    weight: Decimal = ZERO
    requires_shipping: bool = False
    attributes: dict[str, Any] = field(default_factory=dict)
    conditions: list[Condition] = field(default_factory=list)
    disable: dict[str, bool] = field(default_factory=dict)
    conditions_order: list[str] | None = None
    subtotal: Decimal = ZERO
    applied_conditions: dict[str, Decimal] = field(default_factory=dict)
    inclusive_conditions: dict[str, Decimal] = field(default_factory=dict)
    totals: dict[str, Decimal] = field(default_factory=dict)

    @property
    def total_weight(self) -> Decimal:
        return self.weight * self.qty

    def search(self, criteria: dict[str, Any]) -> bool:
        """Check whether every criterion equals the matching field.

        The ``attributes`` criterion is itself a mapping matched key by key
        against this row's attributes.
        """
        for key, value in criteria.items():
            if key == "attributes":
                if not isinstance(value, dict):
                    return False
                if not all(
                    k in self.attributes and self.attributes[k] == v
                    for k, v in value.items()
                ):
                    return False
            elif key == "total_weight":
                if self.total_weight != value:
                    return False
            elif key not in self._field_names() or self.get(key) != value:
                return False
        return True


# ============================================================================
# Cart Aggregate
# ============================================================================


@dataclass
class CartState(ConditionsMixin, PricedFieldsMixin):
    """All pricing state of one cart instance.

    Attributes:
        items: Rows keyed by row id, in insertion order.
        conditions: Cart-level conditions, in attachment order.
        disable: Condition types suppressed at cart level.
        conditions_order: Cart-level type order override.
        subtotal: Sum of row subtotals, never negative.
        total: Amount after cart-level conditions, None until computed.
        applied_conditions: Name to result of the last recompute.
        inclusive_conditions: Name to informational result of the last recompute.
        totals: Per-type aggregate results of the last recompute.
        meta_billing: Opaque billing payload.
        meta_shipping: Opaque shipping payload.
    """

    items: dict[str, LineItem] = field(default_factory=dict)
    conditions: list[Condition] = field(default_factory=list)
    disable: dict[str, bool] = field(default_factory=dict)
    conditions_order: list[str] | None = None
    subtotal: Decimal = ZERO
    total: Decimal | None = None
    applied_conditions: dict[str, Decimal] = field(default_factory=dict)
    inclusive_conditions: dict[str, Decimal] = field(default_factory=dict)
    totals: dict[str, Decimal] = field(default_factory=dict)
    meta_billing: dict[str, Any] = field(default_factory=dict)
    meta_shipping: dict[str, Any] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def effective_total(self) -> Decimal:
        """Total after cart conditions, falling back to subtotal, never negative."""
        total = self.subtotal if self.total is None else self.total
        return max(total, ZERO)
