"""Pricing conditions.

A condition is a named, typed rule (discount, tax, shipping, or any custom
tag) that adjusts one numeric field of a line item or of the cart. The
field is named by ``target``; ``price`` conditions act per unit, anything
else acts on the whole amount held in that field.

Resolvers walk the conditions type by type in the configured order. Within
a type, ``rank`` puts price-targeted conditions before all others; ties
keep attachment order.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any

ZERO = Decimal("0")
CENT = Decimal("0.01")

PRICE_TARGET = "price"
SUBTOTAL_TARGET = "subtotal"
TOTAL_TARGET = "total"

DEFAULT_CONDITIONS_ORDER: tuple[str, ...] = ("discount", "tax", "shipping")


class ConditionOperator(str, Enum):
    """How a condition's value adjusts its base amount."""

    ADD = "+"
    SUBTRACT = "-"
    ADD_PERCENTAGE = "+%"
    SUBTRACT_PERCENTAGE = "-%"

    @property
    def is_percentage(self) -> bool:
        return self.value.endswith("%")

    @property
    def sign(self) -> int:
        return -1 if self.value.startswith("-") else 1


def to_decimal(value: Any) -> Decimal | None:
    """Coerce a number-like value to Decimal.

    Returns:
        The Decimal value, or None when the value is not numeric.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    return result if result.is_finite() else None


@dataclass
class Condition:
    """A pricing rule attached to a line item or to the cart.

    Attributes:
        name: Identifier, unique within the owning row or cart.
        type: Free-form tag used for ordering and disabling ("discount", "tax", ...).
        target: Name of the field the adjusted amount is written back to.
        operator: Adjustment kind (fixed or percentage, add or subtract).
        value: Amount or percentage, as given by the caller.
        inclusive: When true the adjustment is reported but never applied.
    """

    name: str
    type: str
    target: str
    operator: ConditionOperator | str
    value: Decimal | str | int | float
    inclusive: bool = False
    _result: Decimal = field(default=ZERO, init=False, repr=False, compare=False)

    @classmethod
    def parse(
        cls,
        name: str,
        type: str,
        target: str,
        action: str,
        inclusive: bool = False,
    ) -> "Condition":
        """Build a condition from an action string.

        ``"-10%"`` subtracts ten percent, ``"+5"`` adds a fixed five and an
        unsigned value adds. A malformed action still yields a condition;
        it just contributes nothing when applied.

        Args:
            name: Condition name.
            type: Condition type tag.
            target: Target field name.
            action: Signed amount with an optional trailing ``%``.
            inclusive: Whether the condition is report-only.

        Returns:
            New Condition.
        """
        text = str(action).strip()
        sign = "-" if text.startswith("-") else "+"
        text = text.lstrip("+-").strip()
        percentage = text.endswith("%")
        if percentage:
            text = text[:-1].strip()
        operator = ConditionOperator(sign + ("%" if percentage else ""))
        return cls(
            name=name,
            type=type,
            target=target,
            operator=operator,
            value=text,
            inclusive=inclusive,
        )

    @property
    def result(self) -> Decimal:
        """Raw delta recorded by the last ``apply`` call."""
        return self._result

    def get(self, key: str, default: Any = None) -> Any:
        """Read a condition attribute by name.

        Args:
            key: Attribute name ("name", "type", "target", ...).
            default: Returned when the attribute does not exist.

        Returns:
            Attribute value or default.
        """
        if key.startswith("_"):
            return default
        return getattr(self, key, default)

    def apply(self, base: Decimal) -> Decimal:
        """Compute the adjusted amount for ``base``.

        The condition itself is never changed, except for the recorded
        ``result`` delta. Malformed operator or value contribute zero.

        Args:
            base: Current amount of the target field.

        Returns:
            ``base`` plus the computed delta.
        """
        delta = self._delta(base)
        self._result = delta
        return base + delta

    def _delta(self, base: Decimal) -> Decimal:
        try:
            operator = ConditionOperator(self.operator)
        except ValueError:
            return ZERO
        amount = to_decimal(self.value)
        if amount is None:
            return ZERO
        if operator.is_percentage:
            amount = (base * amount / 100).quantize(CENT, rounding=ROUND_HALF_UP)
        return amount * operator.sign


# ============================================================================
# Ordering & Filtering
# ============================================================================


def rank(condition: Condition, order: Sequence[str]) -> int | None:
    """Compute the evaluation rank of a condition.

    Price-targeted conditions rank by the position of their type in
    ``order``; everything else ranks after all of them.

    Returns:
        Rank, or None when the condition's type is not in ``order``.
    """
    try:
        position = list(order).index(condition.type)
    except ValueError:
        return None
    if condition.target == PRICE_TARGET:
        return position
    return position + len(order)


def rank_conditions(conditions: Iterable[Condition], order: Sequence[str]) -> list[Condition]:
    """Return a new, stably sorted list of the conditions that will run.

    Conditions whose type is absent from ``order`` are left out.
    """
    ranked = [(rank(condition, order), condition) for condition in conditions]
    ranked = [(position, condition) for position, condition in ranked if position is not None]
    ranked.sort(key=lambda pair: pair[0])
    return [condition for _, condition in ranked]


def filter_by(conditions: Iterable[Condition], **criteria: Any) -> list[Condition]:
    """Select conditions whose attributes equal every given criterion."""
    return [
        condition
        for condition in conditions
        if all(condition.get(key) == value for key, value in criteria.items())
    ]


def of_type(conditions: Iterable[Condition], type: str | None = None) -> list[Condition]:
    """Select conditions of ``type``, or all of them when type is None."""
    if not type:
        return list(conditions)
    return filter_by(conditions, type=type)
