"""Value helpers for the domain layer.

Row-key generation and coercion of caller-supplied item fields into
the types the pricing core works with.
"""

import hashlib
import json
from collections.abc import Mapping, Sequence
from decimal import Decimal
from typing import Any

from cartcalc.domain.conditions import Condition, to_decimal
from cartcalc.domain.exceptions import (
    InvalidAttributesError,
    InvalidConditionsError,
    InvalidPriceError,
    InvalidQuantityError,
    InvalidWeightError,
)


# ============================================================================
# Row Keys
# ============================================================================


def generate_row_id(item_id: Any, attributes: Mapping[str, Any] | None = None) -> str:
    """Derive the stable row key for an item id and attribute set.

    Attribute insertion order is irrelevant: the same id with the same
    attributes always maps to the same row.

    Args:
        item_id: Catalog identifier of the item.
        attributes: Item attributes such as size or color.

    Returns:
        Hex digest identifying the row.
    """
    payload = json.dumps(
        {"id": str(item_id), "attributes": dict(attributes or {})},
        sort_keys=True,
        separators=(",", ":"),
        default=str,
    )
    return hashlib.sha256(payload.encode()).hexdigest()


# ============================================================================
# Field Coercion
# ============================================================================


def parse_quantity(value: Any) -> int:
    """Coerce a quantity to int.

    Raises:
        InvalidQuantityError: If the value is not a whole number.
    """
    amount = to_decimal(value)
    if amount is None:
        raise InvalidQuantityError(value, "Quantity must be numeric")
    if amount != amount.to_integral_value():
        raise InvalidQuantityError(value, "Quantity must be a whole number")
    return int(amount)


def parse_price(value: Any) -> Decimal:
    """Coerce a unit price to Decimal.

    Raises:
        InvalidPriceError: If the value is not numeric.
    """
    amount = to_decimal(value)
    if amount is None:
        raise InvalidPriceError(value)
    return amount


def parse_weight(value: Any) -> Decimal:
    """Coerce a unit weight to Decimal.

    Raises:
        InvalidWeightError: If the value is not numeric.
    """
    amount = to_decimal(value)
    if amount is None:
        raise InvalidWeightError(value)
    return amount


def parse_mapping(value: Any, field: str = "attributes") -> dict[str, Any]:
    """Copy a keyed payload into a plain dict.

    Raises:
        InvalidAttributesError: If the value is not a mapping.
    """
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise InvalidAttributesError(field)
    return dict(value)


ATTRIBUTE_VALUE_TYPES = (str, int, float, bool, type(None))


def parse_attributes(value: Any) -> dict[str, Any]:
    """Copy item attributes, whose values must be JSON scalars.

    Attributes take part in the row key and in ``search``, so they must read
    back from the session store exactly as they were given.

    Raises:
        InvalidAttributesError: If the value is not a mapping of scalars.
    """
    attributes = parse_mapping(value, "attributes")
    for key, item in attributes.items():
        if not isinstance(key, str) or not isinstance(item, ATTRIBUTE_VALUE_TYPES):
            raise InvalidAttributesError(
                "attributes", f"Value of {key!r} must be a string, number, boolean or null"
            )
    return attributes


def parse_disable(value: Any) -> dict[str, bool]:
    """Copy a condition-type disable map, normalizing flags to bool."""
    return {str(key): bool(flag) for key, flag in parse_mapping(value, "disable").items()}


def parse_conditions(value: Any) -> list[Condition]:
    """Copy a list of conditions.

    Raises:
        InvalidConditionsError: If the value is not a sequence of Condition.
    """
    if value is None:
        return []
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise InvalidConditionsError()
    for condition in value:
        if not isinstance(condition, Condition):
            raise InvalidConditionsError(
                f"Expected Condition, got {type(condition).__name__}"
            )
    return list(value)


def parse_order(value: Any) -> list[str]:
    """Copy a conditions order list of type tags.

    Raises:
        InvalidConditionsError: If the value is not a sequence of strings.
    """
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise InvalidConditionsError("Conditions order must be a list of types")
    if not all(isinstance(type_, str) for type_ in value):
        raise InvalidConditionsError("Conditions order must be a list of types")
    return list(value)
