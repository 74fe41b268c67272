"""Tests for the line-item and cart pricing resolvers."""

from decimal import Decimal

import pytest

from cartcalc.domain import (
    CartState,
    Condition,
    LineItem,
    apply_cart_conditions,
    apply_item_conditions,
    generate_row_id,
)


# ============================================================================
# Test Fixtures
# ============================================================================


def make_item(
    item_id: str = "A",
    qty: int = 1,
    price: str = "100",
    conditions: list[Condition] | None = None,
    disable: dict[str, bool] | None = None,
) -> LineItem:
    """Create a test line item."""
    unit_price = Decimal(price)
    return LineItem(
        row_id=generate_row_id(item_id, {}),
        id=item_id,
        name=f"Item {item_id}",
        qty=qty,
        price=unit_price,
        original_price=unit_price,
        weight=Decimal("1"),
        conditions=conditions or [],
        disable=disable or {},
    )


def make_cart(*items: LineItem, conditions: list[Condition] | None = None) -> CartState:
    """Create a test cart holding the given rows."""
    return CartState(
        items={item.row_id: item for item in items},
        conditions=conditions or [],
    )


def snapshot(cart: CartState) -> tuple:
    """Capture every computed value of a cart."""
    rows = tuple(
        (row.price, row.subtotal, dict(row.applied_conditions), dict(row.totals))
        for row in cart.items.values()
    )
    return (cart.subtotal, cart.total, dict(cart.applied_conditions), dict(cart.totals), rows)


# ============================================================================
# Line-Item Resolver
# ============================================================================


class TestItemConditions:
    """Tests for apply_item_conditions."""

    def test_no_conditions(self) -> None:
        """Without conditions the subtotal is price times quantity."""
        item = apply_item_conditions(make_item(qty=3, price="12.50"))
        assert item.price == Decimal("12.50")
        assert item.subtotal == Decimal("37.50")
        assert item.applied_conditions == {}
        assert item.totals == {"discount": 0, "tax": 0, "shipping": 0}

    def test_price_discount_resolves_before_tax(self) -> None:
        """Price conditions adjust the unit price before subtotal conditions run."""
        item = make_item(
            qty=2,
            conditions=[
                Condition.parse("vat", "tax", "subtotal", "+20"),
                Condition.parse("sale", "discount", "price", "-10%"),
            ],
        )

        apply_item_conditions(item)

        assert item.price == Decimal("90")
        assert item.subtotal == Decimal("90") * 2 + 20
        assert item.applied_conditions == {"sale": Decimal("-20"), "vat": Decimal("20")}
        assert item.totals["discount"] == Decimal("-20")
        assert item.totals["tax"] == Decimal("20")

    def test_declared_type_order_runs_before_price_targets(self) -> None:
        """Types run in declared order; price-first ranking only applies within a type."""
        item = make_item(
            qty=2,
            conditions=[
                Condition.parse("vat", "tax", "subtotal", "+10%"),
                Condition.parse("sale", "discount", "price", "-10%"),
            ],
        )
        item.conditions_order = ["tax", "discount", "shipping"]

        apply_item_conditions(item)

        assert item.price == Decimal("90")
        assert item.subtotal == Decimal("200")
        assert item.applied_conditions == {"vat": Decimal("20"), "sale": Decimal("-20")}

    def test_subtotal_discount_runs_before_price_tax(self) -> None:
        """An earlier type targeting the subtotal runs before a later price-targeted type."""
        item = make_item(
            qty=1,
            conditions=[
                Condition.parse("sale", "discount", "subtotal", "-10%"),
                Condition.parse("vat", "tax", "price", "+10%"),
            ],
        )

        apply_item_conditions(item)

        assert item.subtotal == Decimal("100")
        assert item.price == Decimal("110")
        assert item.totals == {"discount": Decimal("-10"), "tax": Decimal("10"), "shipping": 0}

    def test_price_target_first_within_type(self) -> None:
        """Within one type, price conditions run before subtotal conditions."""
        item = make_item(
            qty=2,
            conditions=[
                Condition.parse("row-off", "discount", "subtotal", "-10%"),
                Condition.parse("unit-off", "discount", "price", "-10"),
            ],
        )

        apply_item_conditions(item)

        assert item.price == Decimal("90")
        assert item.subtotal == Decimal("162")
        assert item.applied_conditions == {"unit-off": Decimal("-20"), "row-off": Decimal("-18")}

    def test_percentage_tax_sees_discounted_subtotal(self) -> None:
        """Subtotal conditions run in type order on the running subtotal."""
        item = make_item(
            qty=1,
            conditions=[
                Condition.parse("vat", "tax", "subtotal", "+10%"),
                Condition.parse("sale", "discount", "subtotal", "-20"),
            ],
        )

        apply_item_conditions(item)

        assert item.subtotal == Decimal("88")
        assert item.applied_conditions == {"sale": Decimal("-20"), "vat": Decimal("8")}

    def test_price_result_is_scaled_by_quantity(self) -> None:
        """Per-unit results are multiplied by qty; subtotal results are not."""
        item = make_item(
            qty=4,
            conditions=[
                Condition.parse("unit-off", "discount", "price", "-5"),
                Condition.parse("row-off", "discount", "subtotal", "-5"),
            ],
        )

        apply_item_conditions(item)

        assert item.applied_conditions == {"unit-off": Decimal("-20"), "row-off": Decimal("-5")}
        assert item.subtotal == Decimal("375")
        assert item.totals["discount"] == Decimal("-25")

    def test_same_type_conditions_keep_attachment_order(self) -> None:
        """Ties are applied in the order they were attached."""
        fixed_first = make_item(
            conditions=[
                Condition.parse("fixed", "discount", "subtotal", "-10"),
                Condition.parse("percent", "discount", "subtotal", "-10%"),
            ]
        )
        percent_first = make_item(
            conditions=[
                Condition.parse("percent", "discount", "subtotal", "-10%"),
                Condition.parse("fixed", "discount", "subtotal", "-10"),
            ]
        )

        assert apply_item_conditions(fixed_first).subtotal == Decimal("81")
        assert apply_item_conditions(percent_first).subtotal == Decimal("80")

    def test_disabled_type_is_skipped(self) -> None:
        """Disabling a type on a row suppresses its conditions on that row."""
        item = make_item(
            conditions=[Condition.parse("vat", "tax", "subtotal", "+10%")],
            disable={"tax": True},
        )

        apply_item_conditions(item)

        assert item.subtotal == Decimal("100")
        assert item.totals["tax"] == 0
        assert "vat" not in item.applied_conditions

    def test_without_discounts(self) -> None:
        """Discounts can be suppressed while other types still apply."""
        item = make_item(
            conditions=[
                Condition.parse("sale", "discount", "price", "-10%"),
                Condition.parse("vat", "tax", "subtotal", "+10%"),
            ]
        )

        apply_item_conditions(item, with_discounts=False)

        assert item.price == Decimal("100")
        assert item.subtotal == Decimal("110")
        assert item.totals["discount"] == 0

    def test_inclusive_condition_reports_only(self) -> None:
        """Inclusive conditions never change price or subtotal."""
        item = make_item(
            qty=2,
            price="50",
            conditions=[
                Condition.parse("vat", "tax", "subtotal", "+10%", inclusive=True),
                Condition.parse("eco", "tax", "price", "+1", inclusive=True),
            ],
        )

        apply_item_conditions(item)

        assert item.price == Decimal("50")
        assert item.subtotal == Decimal("100")
        assert item.applied_conditions == {}
        assert item.totals["tax"] == 0
        assert item.conditions_total("tax") == {"vat": Decimal("10"), "eco": Decimal("2")}

    def test_unknown_type_is_not_applied(self) -> None:
        """Conditions whose type is not in the order are ignored."""
        item = make_item(conditions=[Condition.parse("coupon", "coupon", "subtotal", "-10")])
        apply_item_conditions(item)
        assert item.subtotal == Decimal("100")

    def test_non_numeric_target_is_skipped(self) -> None:
        """A condition targeting a non-numeric field contributes nothing."""
        item = make_item(conditions=[Condition.parse("odd", "discount", "name", "-10")])
        apply_item_conditions(item)
        assert item.name == "Item A"
        assert item.subtotal == Decimal("100")
        assert item.applied_conditions == {}

    @pytest.mark.parametrize("target", ["original_price", "qty", "weight", "tax"])
    def test_only_running_fields_can_be_targeted(self, target: str) -> None:
        """Conditions targeting baseline fields or totals contribute nothing."""
        item = make_item(qty=2, conditions=[Condition.parse("odd", "tax", target, "+10%")])

        apply_item_conditions(item)
        apply_item_conditions(item)

        assert item.original_price == Decimal("100")
        assert item.qty == 2
        assert item.weight == Decimal("1")
        assert item.subtotal == Decimal("200")
        assert item.applied_conditions == {}
        assert item.totals["tax"] == 0

    def test_recompute_is_idempotent(self) -> None:
        """Recomputing resets from the baseline each time."""
        item = make_item(
            qty=3,
            conditions=[
                Condition.parse("sale", "discount", "price", "-10%"),
                Condition.parse("vat", "tax", "subtotal", "+10%"),
            ],
        )

        apply_item_conditions(item)
        first = (item.price, item.subtotal, dict(item.applied_conditions), dict(item.totals))
        apply_item_conditions(item)
        second = (item.price, item.subtotal, dict(item.applied_conditions), dict(item.totals))

        assert first == second


# ============================================================================
# Cart Resolver
# ============================================================================


class TestCartConditions:
    """Tests for apply_cart_conditions."""

    def test_cart_discount_on_total(self) -> None:
        """A 10% cart discount takes 10% of the subtotal off the total."""
        item = make_item(qty=2, price="10")
        cart = make_cart(item, conditions=[Condition.parse("sale", "discount", "total", "-10%")])

        apply_cart_conditions(cart)

        assert cart.subtotal == Decimal("20")
        assert cart.totals["discount"] == Decimal("-2")
        assert cart.total == Decimal("18")
        assert cart.effective_total == Decimal("18")
        assert cart.applied_conditions == {"sale": Decimal("-2")}

    def test_subtotal_sums_recomputed_rows(self) -> None:
        """Cart subtotal is the sum of row subtotals after row conditions."""
        first = make_item("A", qty=2, price="10", conditions=[Condition.parse("s", "discount", "price", "-1")])
        second = make_item("B", qty=1, price="5")
        cart = make_cart(first, second)

        apply_cart_conditions(cart)

        assert cart.subtotal == Decimal("23")
        assert cart.effective_total == Decimal("23")

    def test_cart_conditions_follow_type_order(self) -> None:
        """Cart tax is computed on the discounted total."""
        cart = make_cart(
            make_item(qty=1, price="100"),
            conditions=[
                Condition.parse("shipping", "shipping", "total", "+5"),
                Condition.parse("vat", "tax", "total", "+10%"),
                Condition.parse("sale", "discount", "total", "-20%"),
            ],
        )

        apply_cart_conditions(cart)

        assert cart.total == Decimal("93")
        assert cart.totals == {"discount": Decimal("-20"), "tax": Decimal("8"), "shipping": Decimal("5")}

    def test_cart_order_override(self) -> None:
        """A cart-level order override changes evaluation order."""
        cart = make_cart(
            make_item(qty=1, price="100"),
            conditions=[
                Condition.parse("sale", "discount", "total", "-20%"),
                Condition.parse("vat", "tax", "total", "+10%"),
            ],
        )
        cart.conditions_order = ["tax", "discount"]

        apply_cart_conditions(cart)

        assert cart.total == Decimal("88")
        assert cart.totals == {"tax": Decimal("10"), "discount": Decimal("-22")}

    def test_subtotal_never_negative(self) -> None:
        """Row discounts larger than the price clamp the cart subtotal at zero."""
        cart = make_cart(
            make_item(price="10", conditions=[Condition.parse("big", "discount", "subtotal", "-50")])
        )

        apply_cart_conditions(cart)

        assert cart.subtotal == 0
        assert cart.effective_total == 0

    def test_total_never_negative(self) -> None:
        """Cart discounts larger than the subtotal report a zero total."""
        cart = make_cart(
            make_item(price="10"),
            conditions=[Condition.parse("big", "discount", "total", "-50")],
        )

        apply_cart_conditions(cart)

        assert cart.total == Decimal("-40")
        assert cart.effective_total == 0

    def test_row_disable_does_not_affect_cart_level(self) -> None:
        """Disabling tax on a row leaves cart-level tax in place."""
        item = make_item(
            conditions=[Condition.parse("row-vat", "tax", "subtotal", "+10%")],
            disable={"tax": True},
        )
        cart = make_cart(item, conditions=[Condition.parse("cart-vat", "tax", "total", "+5")])

        apply_cart_conditions(cart)

        assert item.totals["tax"] == 0
        assert cart.subtotal == Decimal("100")
        assert cart.total == Decimal("105")
        assert cart.totals["tax"] == Decimal("5")

    def test_cart_disable(self) -> None:
        """Disabling a type at cart level skips cart conditions of that type."""
        cart = make_cart(
            make_item(),
            conditions=[Condition.parse("cart-vat", "tax", "total", "+5")],
        )
        cart.disable_type("tax")

        apply_cart_conditions(cart)

        assert cart.total == Decimal("100")
        assert cart.totals["tax"] == 0

    def test_cart_inclusive_condition(self) -> None:
        """Inclusive cart conditions are reported by name but never applied."""
        cart = make_cart(
            make_item(),
            conditions=[Condition.parse("vat", "tax", "total", "+20%", inclusive=True)],
        )

        apply_cart_conditions(cart)

        assert cart.effective_total == Decimal("100")
        assert cart.applied_conditions == {}
        assert cart.conditions_total("tax") == {"vat": Decimal("20")}

    def test_empty_cart_resets_totals(self) -> None:
        """A cart whose rows were all removed drops its computed values."""
        item = make_item()
        cart = make_cart(item, conditions=[Condition.parse("fee", "shipping", "total", "+5")])
        apply_cart_conditions(cart)
        del cart.items[item.row_id]

        apply_cart_conditions(cart)

        assert cart.subtotal == 0
        assert cart.total is None
        assert cart.effective_total == 0
        assert cart.applied_conditions == {}

    @pytest.mark.parametrize("target", ["price", "tax", "meta_billing"])
    def test_only_subtotal_and_total_can_be_targeted(self, target: str) -> None:
        """Cart conditions on any other field contribute nothing."""
        cart = make_cart(
            make_item(qty=1, price="100"),
            conditions=[Condition.parse("odd", "tax", target, "+10")],
        )

        apply_cart_conditions(cart)
        first = snapshot(cart)
        apply_cart_conditions(cart)

        assert snapshot(cart) == first
        assert cart.effective_total == Decimal("100")
        assert cart.applied_conditions == {}

    def test_subtotal_target_on_cart(self) -> None:
        """A cart condition may adjust the subtotal instead of the total."""
        cart = make_cart(
            make_item(qty=1, price="100"),
            conditions=[Condition.parse("fee", "shipping", "subtotal", "+5")],
        )

        apply_cart_conditions(cart)

        assert cart.subtotal == Decimal("105")
        assert cart.applied_conditions == {"fee": Decimal("5")}

    @pytest.mark.parametrize("with_discounts", [True, False])
    def test_recompute_is_idempotent(self, with_discounts: bool) -> None:
        """Recomputing twice without a mutation gives identical results."""
        cart = make_cart(
            make_item("A", qty=2, conditions=[Condition.parse("s", "discount", "price", "-10%")]),
            make_item("B", qty=1, price="30", conditions=[Condition.parse("t", "tax", "subtotal", "+7%")]),
            conditions=[
                Condition.parse("sale", "discount", "total", "-5%"),
                Condition.parse("ship", "shipping", "total", "+4.99"),
            ],
        )

        apply_cart_conditions(cart, with_discounts=with_discounts)
        first = snapshot(cart)
        apply_cart_conditions(cart, with_discounts=with_discounts)

        assert snapshot(cart) == first
