"""Pricing resolvers.

``apply_item_conditions`` recomputes one row from its baseline;
``apply_cart_conditions`` recomputes every row, sums them and layers the
cart-level conditions on top. Both always start from scratch, so calling
them repeatedly without a mutation in between yields identical results.

Evaluation walks the type order; within one type, ``rank_conditions`` puts
price-targeted conditions first, so later percentage conditions of that type
see the already adjusted unit price. Only the running fields (``price`` and
``subtotal`` on a row, ``subtotal`` and ``total`` on the cart) can be
targeted; any other target contributes nothing.
"""

from collections.abc import Sequence
from decimal import Decimal

from cartcalc.domain.conditions import (
    DEFAULT_CONDITIONS_ORDER,
    PRICE_TARGET,
    SUBTOTAL_TARGET,
    TOTAL_TARGET,
    ZERO,
    Condition,
    filter_by,
    rank_conditions,
    to_decimal,
)
from cartcalc.domain.entities import CartState, LineItem

DISCOUNT_TYPE = "discount"

ITEM_TARGETS = frozenset({PRICE_TARGET, SUBTOTAL_TARGET})
CART_TARGETS = frozenset({SUBTOTAL_TARGET, TOTAL_TARGET})


def _type_enabled(type: str, disable: dict[str, bool], with_discounts: bool) -> bool:
    if disable.get(type, False):
        return False
    if type == DISCOUNT_TYPE and not with_discounts:
        return False
    return True


def _base_amount(
    subject: LineItem | CartState, condition: Condition, targets: frozenset[str]
) -> Decimal | None:
    if condition.target not in targets:
        return None
    return to_decimal(subject.get(condition.target))


def _ranked_of_type(
    conditions: list[Condition], type: str, order: Sequence[str]
) -> list[Condition]:
    return rank_conditions(filter_by(conditions, type=type), order)


# ============================================================================
# Line-Item Resolver
# ============================================================================


def apply_item_conditions(
    item: LineItem,
    with_discounts: bool = True,
    default_order: Sequence[str] = DEFAULT_CONDITIONS_ORDER,
) -> LineItem:
    """Recompute price, subtotal and per-type totals of one row.

    Price-targeted results are per unit and are scaled by ``qty`` before
    being rolled into the row subtotal. Inclusive conditions are evaluated
    for reporting only and never change any field.

    Args:
        item: Row to recompute (mutated in place).
        with_discounts: When false, discount-type conditions are skipped.
        default_order: Type order used when the row has no override.

    Returns:
        The same row.
    """
    item.price = item.original_price
    item.subtotal = item.original_price * item.qty

    order = list(dict.fromkeys(item.conditions_order or default_order))
    running = {type_: ZERO for type_ in order}
    applied: dict[str, Decimal] = {}
    inclusive: dict[str, Decimal] = {}

    for type_ in order:
        if not _type_enabled(type_, item.disable, with_discounts):
            continue
        for condition in _ranked_of_type(item.conditions, type_, order):
            base = _base_amount(item, condition, ITEM_TARGETS)
            if base is None:
                continue

            adjusted = condition.apply(base)
            scale = item.qty if condition.target == PRICE_TARGET else 1
            result = condition.result * scale

            if condition.inclusive:
                inclusive[condition.name] = result
                continue

            item.put(condition.target, adjusted)
            applied[condition.name] = result
            running[type_] += result

            if condition.target == PRICE_TARGET:
                item.subtotal = item.subtotal + result

    item.totals = running
    item.applied_conditions = applied
    item.inclusive_conditions = inclusive
    return item


# ============================================================================
# Cart Resolver
# ============================================================================


def apply_cart_conditions(
    cart: CartState,
    with_discounts: bool = True,
    default_order: Sequence[str] = DEFAULT_CONDITIONS_ORDER,
) -> CartState:
    """Recompute every row, then the cart subtotal, total and per-type totals.

    Rows are independent of one another; the cart level runs strictly
    after all of them. An empty cart is reset to zero.

    Args:
        cart: Cart to recompute (mutated in place).
        with_discounts: Forwarded to the line-item resolver.
        default_order: Type order used when no override is set.

    Returns:
        The same cart.
    """
    if cart.is_empty:
        cart.subtotal = ZERO
        cart.total = None
        cart.totals = {}
        cart.applied_conditions = {}
        cart.inclusive_conditions = {}
        return cart

    for item in cart.items.values():
        apply_item_conditions(item, with_discounts=with_discounts, default_order=default_order)

    subtotal = max(sum((item.subtotal for item in cart.items.values()), ZERO), ZERO)
    cart.subtotal = subtotal
    cart.total = subtotal

    order = list(dict.fromkeys(cart.conditions_order or default_order))
    running = {type_: ZERO for type_ in order}
    applied: dict[str, Decimal] = {}
    inclusive: dict[str, Decimal] = {}

    for type_ in order:
        if cart.is_disabled(type_):
            continue
        for condition in _ranked_of_type(cart.conditions, type_, order):
            base = _base_amount(cart, condition, CART_TARGETS)
            if base is None:
                continue

            adjusted = condition.apply(base)
            if condition.inclusive:
                inclusive[condition.name] = condition.result
                continue

            cart.put(condition.target, adjusted)
            applied[condition.name] = condition.result
            running[type_] += condition.result

    cart.totals = running
    cart.applied_conditions = applied
    cart.inclusive_conditions = inclusive
    return cart
