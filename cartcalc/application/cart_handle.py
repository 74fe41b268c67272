"""Cart application service.

``CartHandle`` is the entry point for every cart operation. It is an
explicit value: the instance name plus the injected store, notifier and
model registry. Every mutation follows the same path:

1. validate the input (raising before anything is loaded),
2. load the instance from the store (or start an empty cart),
3. apply the change,
4. recompute all prices,
5. save, then notify listeners.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any

import structlog

from cartcalc.domain.conditions import DEFAULT_CONDITIONS_ORDER, ZERO, Condition
from cartcalc.domain.entities import CartState, LineItem
from cartcalc.domain.events import (
    CartBatchAdded,
    CartCleared,
    CartItemAdded,
    CartItemRemoved,
    CartItemUpdated,
)
from cartcalc.domain.exceptions import (
    InstanceNameRequiredError,
    InvalidAttributesError,
    InvalidQuantityError,
    MissingRequiredFieldError,
    RowNotFoundError,
    UnresolvableAssociatedModelError,
)
from cartcalc.domain.pricing import apply_cart_conditions
from cartcalc.domain.value_objects import (
    generate_row_id,
    parse_attributes,
    parse_conditions,
    parse_disable,
    parse_mapping,
    parse_order,
    parse_price,
    parse_quantity,
    parse_weight,
)
from cartcalc.infrastructure.config import settings
from cartcalc.infrastructure.model_registry import ModelRegistry, get_model_registry
from cartcalc.infrastructure.notifier import EventNotifier, get_event_notifier
from cartcalc.infrastructure.session_store import CartStore, get_cart_store

logger = structlog.get_logger()

UPDATABLE_FIELDS = frozenset(
    {"name", "qty", "price", "weight", "requires_shipping", "attributes", "conditions", "disable"}
)


# ============================================================================
# Input Validation
# ============================================================================


def build_line_item(
    id: Any,
    name: Any = None,
    qty: Any = None,
    price: Any = None,
    weight: Any = None,
    requires_shipping: Any = None,
    attributes: Any = None,
    conditions: Any = None,
    disable: Any = None,
) -> LineItem:
    """Validate raw item fields and build a fresh row.

    Raises:
        MissingRequiredFieldError: If id, name or qty is empty, or price,
            weight or requires_shipping is unset.
        InvalidQuantityError: If qty is not a positive whole number.
        InvalidPriceError: If price is not numeric.
        InvalidWeightError: If weight is not numeric.
        InvalidAttributesError: If attributes is not a mapping of scalars or
            disable is not a mapping.
        InvalidConditionsError: If conditions is not a list of Condition.
    """
    for field_name, value in (("id", id), ("name", name), ("qty", qty)):
        if value is None or value == "" or value == 0:
            raise MissingRequiredFieldError(field_name)
    for field_name, value in (
        ("price", price),
        ("weight", weight),
        ("requires_shipping", requires_shipping),
    ):
        if value is None:
            raise MissingRequiredFieldError(field_name)

    quantity = parse_quantity(qty)
    if quantity <= 0:
        raise InvalidQuantityError(qty)
    unit_price = parse_price(price)
    unit_weight = parse_weight(weight)
    item_attributes = parse_attributes(attributes)
    item_conditions = parse_conditions(conditions)
    item_disable = parse_disable(disable)

    return LineItem(
        row_id=generate_row_id(id, item_attributes),
        id=str(id),
        name=str(name),
        qty=quantity,
        price=unit_price,
        original_price=unit_price,
        weight=unit_weight,
        requires_shipping=bool(requires_shipping),
        attributes=item_attributes,
        conditions=item_conditions,
        disable=item_disable,
        subtotal=unit_price * quantity,
    )


def _item_from_mapping(item: Mapping[str, Any]) -> LineItem:
    if not isinstance(item, Mapping):
        raise InvalidAttributesError("item", "Expected a mapping of item fields")
    return build_line_item(
        id=item.get("id"),
        name=item.get("name"),
        qty=item.get("qty"),
        price=item.get("price"),
        weight=item.get("weight"),
        requires_shipping=item.get("requires_shipping"),
        attributes=item.get("attributes"),
        conditions=item.get("conditions"),
        disable=item.get("disable"),
    )


def _validate_changes(changes: Mapping[str, Any]) -> dict[str, Any]:
    unknown = sorted(set(changes) - UPDATABLE_FIELDS)
    if unknown:
        raise InvalidAttributesError("update", f"Unknown fields: {', '.join(unknown)}")

    validated: dict[str, Any] = {}
    for key, value in changes.items():
        if key == "qty":
            validated[key] = parse_quantity(value)
        elif key == "price":
            validated[key] = parse_price(value)
        elif key == "weight":
            validated[key] = parse_weight(value)
        elif key == "attributes":
            validated[key] = parse_attributes(value)
        elif key == "conditions":
            validated[key] = parse_conditions(value)
        elif key == "disable":
            validated[key] = parse_disable(value)
        elif key == "requires_shipping":
            validated[key] = bool(value)
        elif key == "name":
            if not value:
                raise MissingRequiredFieldError("name")
            validated[key] = str(value)
    return validated


def _apply_changes(item: LineItem, changes: dict[str, Any]) -> None:
    for key, value in changes.items():
        if key == "price":
            item.original_price = value
        elif key == "attributes":
            item.attributes = {**item.attributes, **value}
        elif key == "disable":
            item.disable = {**item.disable, **value}
        else:
            setattr(item, key, value)


# ============================================================================
# Cart Handle
# ============================================================================


@dataclass(frozen=True)
class CartHandle:
    """Access to one named cart instance.

    Attributes:
        store: Persistence collaborator.
        notifier: Event dispatcher for mutation notifications.
        instance_name: Partition key of the cart.
        registry: Resolvers for associated records.
        associated_model: Name of the associated record type, if any.
        default_order: Condition type order used when no override is set.
        key_prefix: Prefix of the storage key.
    """

    store: CartStore
    notifier: EventNotifier
    instance_name: str = "main"
    registry: ModelRegistry | None = None
    associated_model: str | None = None
    default_order: tuple[str, ...] = DEFAULT_CONDITIONS_ORDER
    key_prefix: str = "cart."

    @property
    def key(self) -> str:
        return f"{self.key_prefix}{self.instance_name}"

    def instance(self, name: str | None) -> "CartHandle":
        """Get a handle for another cart instance.

        Raises:
            InstanceNameRequiredError: If the name is empty or blank.
        """
        if not name or not str(name).strip():
            raise InstanceNameRequiredError()
        return replace(self, instance_name=str(name))

    def associate(self, model_name: str) -> "CartHandle":
        """Get a handle whose rows resolve to records of ``model_name``.

        Raises:
            UnresolvableAssociatedModelError: If the model is not registered.
        """
        if self.registry is None or not self.registry.has(model_name):
            raise UnresolvableAssociatedModelError(model_name)
        return replace(self, associated_model=model_name)

    def resolve_associated_record(self, row_id: str) -> Any | None:
        """Resolve a row to its associated record, if the cart has an association."""
        row = self.item(row_id)
        if row is None or self.associated_model is None or self.registry is None:
            return None
        return self.registry.resolve(self.associated_model, row.id)

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    def content(self) -> CartState:
        """Load the cart, or an empty one if this instance was never saved."""
        return self.store.load(self.key) or CartState()

    def _commit(self, cart: CartState, with_discounts: bool = True) -> CartState:
        apply_cart_conditions(cart, with_discounts=with_discounts, default_order=self.default_order)
        self.store.save(self.key, cart)
        return cart

    def _row(self, cart: CartState, row_id: str) -> LineItem:
        row = cart.items.get(row_id)
        if row is None:
            raise RowNotFoundError(self.instance_name, row_id)
        return row

    def recalculate(self, with_discounts: bool = True) -> CartState:
        """Recompute and save the cart, optionally ignoring row discounts."""
        return self._commit(self.content(), with_discounts=with_discounts)

    # -------------------------------------------------------------------------
    # Rows
    # -------------------------------------------------------------------------

    def add(
        self,
        id: Any,
        name: Any = None,
        qty: Any = None,
        price: Any = None,
        weight: Any = None,
        requires_shipping: Any = None,
        attributes: Any = None,
        conditions: Any = None,
        disable: Any = None,
    ) -> LineItem:
        """Add a row, or increase the quantity of an identical existing row.

        ``id`` may also be a mapping holding all item fields.

        Returns:
            The resulting row after recompute.
        """
        if isinstance(id, Mapping):
            new_row = _item_from_mapping(id)
        else:
            new_row = build_line_item(
                id, name, qty, price, weight, requires_shipping, attributes, conditions, disable
            )

        cart = self.content()
        self._merge_row(cart, new_row)
        self._commit(cart)
        row = cart.items[new_row.row_id]

        logger.info(
            "Cart item added",
            instance=self.instance_name,
            row_id=row.row_id,
            item_id=row.id,
            qty=row.qty,
        )
        self.notifier.fire(
            CartItemAdded(
                instance=self.instance_name,
                row_id=row.row_id,
                item_id=row.id,
                name=row.name,
                quantity=new_row.qty,
                price=str(new_row.original_price),
                attributes=new_row.attributes,
            )
        )
        return row

    def add_many(self, items: Sequence[Mapping[str, Any]]) -> list[LineItem]:
        """Add several rows at once; nothing is added if any of them is invalid.

        Returns:
            The resulting rows, in input order.
        """
        if isinstance(items, (str, bytes, Mapping)) or not isinstance(items, Sequence):
            raise InvalidAttributesError("items", "Expected a list of item mappings")
        new_rows = [_item_from_mapping(item) for item in items]

        cart = self.content()
        for new_row in new_rows:
            self._merge_row(cart, new_row)
        self._commit(cart)

        logger.info("Cart batch added", instance=self.instance_name, rows=len(new_rows))
        self.notifier.fire(
            CartBatchAdded(
                instance=self.instance_name,
                item_ids=tuple(row.id for row in new_rows),
            )
        )
        return [cart.items[row.row_id] for row in new_rows]

    @staticmethod
    def _merge_row(cart: CartState, new_row: LineItem) -> None:
        existing = cart.items.get(new_row.row_id)
        if existing is None:
            cart.items[new_row.row_id] = new_row
        else:
            existing.qty += new_row.qty

    def update(self, row_id: str, change: int | Mapping[str, Any]) -> LineItem | None:
        """Update a row's quantity, or patch several of its fields.

        A quantity of zero or less removes the row, whether it is passed
        alone or as ``qty`` in a mapping. Every other field in the mapping
        is still validated first.

        Returns:
            The updated row, or None if it was removed.

        Raises:
            RowNotFoundError: If the row does not exist.
        """
        if isinstance(change, Mapping):
            changes = _validate_changes(change)
        else:
            changes = {"qty": parse_quantity(change)}

        if changes.get("qty", 1) <= 0:
            self.remove(row_id)
            return None

        cart = self.content()
        row = self._row(cart, row_id)
        _apply_changes(row, changes)
        self._commit(cart)

        logger.info("Cart item updated", instance=self.instance_name, row_id=row_id, fields=sorted(changes))
        self.notifier.fire(
            CartItemUpdated(
                instance=self.instance_name,
                row_id=row_id,
                changes={key: value for key, value in changes.items() if key != "conditions"},
            )
        )
        return row

    def remove(self, row_id: str) -> None:
        """Remove a row.

        Raises:
            RowNotFoundError: If the row does not exist.
        """
        cart = self.content()
        self._row(cart, row_id)
        del cart.items[row_id]
        self._commit(cart)

        logger.info("Cart item removed", instance=self.instance_name, row_id=row_id)
        self.notifier.fire(CartItemRemoved(instance=self.instance_name, row_id=row_id))

    def clear(self) -> None:
        """Empty the cart, dropping rows, conditions and meta payloads."""
        self.store.save(self.key, CartState())

        logger.info("Cart cleared", instance=self.instance_name)
        self.notifier.fire(CartCleared(instance=self.instance_name))

    def exists(self, row_id: str) -> bool:
        return row_id in self.content().items

    def item(self, row_id: str) -> LineItem | None:
        return self.content().items.get(row_id)

    def items(self) -> list[LineItem]:
        return list(self.content().items.values())

    def search(self, criteria: dict[str, Any]) -> list[str] | None:
        """Find rows whose fields equal every criterion.

        Returns:
            Matching row ids, or None when nothing matches.
        """
        rows = [row.row_id for row in self.content().items.values() if row.search(criteria)]
        return rows or None

    # -------------------------------------------------------------------------
    # Totals
    # -------------------------------------------------------------------------

    def subtotal(self) -> Decimal:
        return self.content().subtotal

    def total(self) -> Decimal:
        return self.content().effective_total

    def weight(self) -> Decimal:
        total = sum((row.total_weight for row in self.content().items.values()), ZERO)
        return max(total, ZERO)

    def requires_shipping(self) -> bool:
        if self.search({"requires_shipping": True}) is None and self.weight() == 0:
            return False
        return True

    def count(self, total_items: bool = False) -> int:
        """Number of rows, or of units when ``total_items`` is set."""
        rows = self.content().items.values()
        if not total_items:
            return len(rows)
        return sum(row.qty for row in rows)

    def quantity(self) -> int:
        return self.count(total_items=True)

    # -------------------------------------------------------------------------
    # Cart Conditions
    # -------------------------------------------------------------------------

    def condition(self, condition: Condition) -> None:
        """Attach a cart-level condition."""
        parse_conditions([condition])
        cart = self.content()
        cart.add_condition(condition)
        self._commit(cart)
        logger.info(
            "Cart condition added",
            instance=self.instance_name,
            name=condition.name,
            type=condition.type,
        )

    def conditions(self, type: str | None = None) -> list[Condition]:
        return self.content().conditions_of(type)

    def remove_condition_by_name(self, name: str) -> None:
        cart = self.content()
        removed = cart.remove_condition_by_name(name)
        self._commit(cart)
        logger.info("Cart condition removed", instance=self.instance_name, name=name, removed=len(removed))

    def remove_condition_by_type(self, type: str) -> None:
        cart = self.content()
        removed = cart.remove_condition_by_type(type)
        self._commit(cart)
        logger.info("Cart conditions removed", instance=self.instance_name, type=type, removed=len(removed))

    def conditions_total(self, type: str | None = None) -> dict[str, Decimal]:
        return self.content().conditions_total(type)

    def conditions_total_sum(self, type: str | None = None) -> Decimal:
        return self.content().conditions_total_sum(type)

    def get_conditions_order(self) -> list[str]:
        return list(self.content().conditions_order or self.default_order)

    def set_conditions_order(self, order: Sequence[str]) -> None:
        new_order = parse_order(order)
        cart = self.content()
        cart.conditions_order = new_order
        self._commit(cart)

    def set_items_conditions_order(self, order: Sequence[str]) -> None:
        new_order = parse_order(order)
        cart = self.content()
        for row in cart.items.values():
            row.conditions_order = list(new_order)
        self._commit(cart)

    def disable(self, type: str) -> None:
        """Suppress a condition type at cart level."""
        cart = self.content()
        cart.disable_type(type)
        self._commit(cart)

    def enable(self, type: str) -> None:
        cart = self.content()
        cart.enable_type(type)
        self._commit(cart)

    # -------------------------------------------------------------------------
    # Row Conditions
    # -------------------------------------------------------------------------

    def add_item_condition(self, row_id: str, condition: Condition) -> LineItem:
        parse_conditions([condition])
        cart = self.content()
        row = self._row(cart, row_id)
        row.add_condition(condition)
        self._commit(cart)
        return row

    def remove_item_condition_by_name(self, row_id: str, name: str) -> LineItem:
        cart = self.content()
        row = self._row(cart, row_id)
        row.remove_condition_by_name(name)
        self._commit(cart)
        return row

    def remove_item_condition_by_type(self, row_id: str, type: str) -> LineItem:
        cart = self.content()
        row = self._row(cart, row_id)
        row.remove_condition_by_type(type)
        self._commit(cart)
        return row

    def disable_item(self, row_id: str, type: str) -> LineItem:
        """Suppress a condition type for one row only."""
        cart = self.content()
        row = self._row(cart, row_id)
        row.disable_type(type)
        self._commit(cart)
        return row

    def enable_item(self, row_id: str, type: str) -> LineItem:
        cart = self.content()
        row = self._row(cart, row_id)
        row.enable_type(type)
        self._commit(cart)
        return row

    # -------------------------------------------------------------------------
    # Meta
    # -------------------------------------------------------------------------

    def add_billing(self, billing: Mapping[str, Any]) -> None:
        payload = parse_mapping(billing, "billing")
        cart = self.content()
        cart.meta_billing = payload
        self._commit(cart)

    def get_billing(self) -> dict[str, Any]:
        return self.content().meta_billing

    def add_shipping(self, shipping: Mapping[str, Any]) -> None:
        payload = parse_mapping(shipping, "shipping")
        cart = self.content()
        cart.meta_shipping = payload
        self._commit(cart)

    def get_shipping(self) -> dict[str, Any]:
        return self.content().meta_shipping


def get_cart_handle(instance: str | None = None) -> CartHandle:
    """Build a handle wired to the process-wide collaborators.

    Args:
        instance: Cart instance name; defaults to ``settings.default_instance``.

    Raises:
        InstanceNameRequiredError: If an explicit instance name is blank.
    """
    handle = CartHandle(
        store=get_cart_store(),
        notifier=get_event_notifier(),
        instance_name=settings.default_instance,
        registry=get_model_registry(),
        default_order=tuple(settings.conditions_order),
        key_prefix=settings.session_key_prefix,
    )
    if instance is None:
        return handle
    return handle.instance(instance)
