"""Tests for pricing conditions, ranking and filtering."""

from decimal import Decimal

from cartcalc.domain import Condition, ConditionOperator, filter_by, rank, rank_conditions

ORDER = ("discount", "tax", "shipping")


def make_condition(
    name: str = "sale",
    type: str = "discount",
    target: str = "subtotal",
    action: str = "-10%",
    inclusive: bool = False,
) -> Condition:
    """Create a test condition."""
    return Condition.parse(name, type, target, action, inclusive=inclusive)


class TestConditionApply:
    """Tests for Condition.apply."""

    def test_subtract_percentage(self) -> None:
        """Percentage discounts take a share of the base."""
        condition = make_condition(action="-10%")
        assert condition.apply(Decimal("20")) == Decimal("18")
        assert condition.result == Decimal("-2")

    def test_add_percentage(self) -> None:
        """Unsigned percentages add to the base."""
        condition = make_condition(type="tax", action="8%")
        assert condition.apply(Decimal("50")) == Decimal("54")
        assert condition.result == Decimal("4")

    def test_fixed_amounts(self) -> None:
        """Fixed amounts add or subtract as given."""
        assert make_condition(action="+20").apply(Decimal("100")) == Decimal("120")
        assert make_condition(action="-5.50").apply(Decimal("100")) == Decimal("94.50")

    def test_percentage_rounds_to_cents(self) -> None:
        """Percentage deltas are rounded half up to cents."""
        condition = make_condition(action="-10%")
        condition.apply(Decimal("33.35"))
        assert condition.result == Decimal("-3.34")

    def test_apply_does_not_change_definition(self) -> None:
        """Applying only records the result."""
        condition = make_condition(action="-10%")
        before = (condition.name, condition.type, condition.target, condition.operator, condition.value)
        condition.apply(Decimal("100"))
        assert (condition.name, condition.type, condition.target, condition.operator, condition.value) == before

    def test_result_reflects_last_application(self) -> None:
        """The recorded result belongs to the latest base."""
        condition = make_condition(action="-10%")
        condition.apply(Decimal("100"))
        condition.apply(Decimal("50"))
        assert condition.result == Decimal("-5")

    def test_unknown_operator_contributes_zero(self) -> None:
        """A malformed operator leaves the base unchanged."""
        condition = Condition("odd", "discount", "subtotal", operator="*", value="3")
        assert condition.apply(Decimal("100")) == Decimal("100")
        assert condition.result == 0

    def test_non_numeric_value_contributes_zero(self) -> None:
        """A malformed value leaves the base unchanged."""
        condition = make_condition(action="-abc%")
        assert condition.apply(Decimal("100")) == Decimal("100")
        assert condition.result == 0


class TestConditionParse:
    """Tests for building conditions from action strings."""

    def test_parse_signed_percentage(self) -> None:
        condition = make_condition(action="-10%")
        assert condition.operator == ConditionOperator.SUBTRACT_PERCENTAGE
        assert condition.value == "10"

    def test_parse_unsigned_fixed(self) -> None:
        condition = make_condition(action="15")
        assert condition.operator == ConditionOperator.ADD
        assert condition.value == "15"

    def test_parse_inclusive(self) -> None:
        condition = make_condition(action="+10%", inclusive=True)
        assert condition.inclusive is True
        assert condition.operator == ConditionOperator.ADD_PERCENTAGE

    def test_get_reads_attributes(self) -> None:
        """get() reads public attributes only."""
        condition = make_condition(name="vat", type="tax")
        assert condition.get("type") == "tax"
        assert condition.get("name") == "vat"
        assert condition.get("_result") is None
        assert condition.get("missing", "x") == "x"


class TestRanking:
    """Tests for condition ordering."""

    def test_price_conditions_rank_first(self) -> None:
        """Price-targeted conditions rank before every other target."""
        assert rank(make_condition(type="discount", target="price"), ORDER) == 0
        assert rank(make_condition(type="shipping", target="price"), ORDER) == 2
        assert rank(make_condition(type="discount", target="subtotal"), ORDER) == 3
        assert rank(make_condition(type="shipping", target="total"), ORDER) == 5

    def test_unknown_type_has_no_rank(self) -> None:
        assert rank(make_condition(type="coupon"), ORDER) is None

    def test_rank_conditions_orders_and_filters(self) -> None:
        """Ranked list puts price first and drops unknown types."""
        tax = make_condition(name="vat", type="tax", target="subtotal")
        coupon = make_condition(name="coupon", type="coupon")
        shipping = make_condition(name="ship", type="shipping", target="subtotal")
        price_discount = make_condition(name="sale", type="discount", target="price")

        ranked = rank_conditions([tax, coupon, shipping, price_discount], ORDER)

        assert [c.name for c in ranked] == ["sale", "vat", "ship"]

    def test_rank_conditions_is_stable(self) -> None:
        """Conditions of the same rank keep attachment order."""
        first = make_condition(name="first")
        second = make_condition(name="second")
        third = make_condition(name="third")

        ranked = rank_conditions([first, second, third], ORDER)

        assert [c.name for c in ranked] == ["first", "second", "third"]

    def test_rank_conditions_returns_new_list(self) -> None:
        conditions = [make_condition(name="b", type="tax"), make_condition(name="a")]
        ranked = rank_conditions(conditions, ORDER)
        assert ranked is not conditions
        assert [c.name for c in conditions] == ["b", "a"]


class TestFilterBy:
    """Tests for filter_by."""

    def test_filter_by_single_criterion(self) -> None:
        conditions = [make_condition(name="a"), make_condition(name="b", type="tax")]
        assert [c.name for c in filter_by(conditions, type="tax")] == ["b"]

    def test_filter_by_multiple_criteria(self) -> None:
        conditions = [
            make_condition(name="a", type="tax"),
            make_condition(name="a", type="discount"),
        ]
        assert len(filter_by(conditions, name="a", type="tax")) == 1
