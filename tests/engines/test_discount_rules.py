"""
BOS Discount Engine - rule model, condition evaluators, action calculators.
"""

from decimal import Decimal

import pytest

from core.primitives.cart import CartLine, CartView
from engines.discount.actions import compute_action, unit_price_at
from engines.discount.conditions import evaluate_condition
from engines.discount.rules import Action, Condition, Rule


def four_item_cart() -> CartView:
    return CartView.from_lines([
        CartLine(product_id=1, unit_price=10, quantity=1),
        CartLine(product_id=2, unit_price=20, quantity=1),
        CartLine(product_id=3, unit_price=30, quantity=1),
        CartLine(product_id=4, unit_price=40, quantity=1),
    ])


# ══════════════════════════════════════════════════════════════
# RULE MODEL
# ══════════════════════════════════════════════════════════════

class TestRuleModel:
    def test_category_defaults_to_condition_type(self):
        rule = Rule(
            condition=Condition("item_count", 4),
            action=Action("cheapest_free"),
        )
        assert rule.category == "item_count"
        assert rule.priority == 10
        assert rule.active is True

    def test_explicit_category_kept(self):
        rule = Rule(
            condition=Condition("item_count", 4),
            action=Action("cheapest_free"),
            category="spring-sale",
        )
        assert rule.resolved_category == "spring-sale"

    def test_types_are_normalized(self):
        rule = Rule(condition=Condition(" Cart_Total "), action=Action("FIXED_DISCOUNT"))
        assert rule.condition.type == "cart_total"
        assert rule.action.type == "fixed_discount"

    def test_malformed_rule_still_constructs(self):
        rule = Rule(condition=Condition(""), action=Action("percentage_discount", 5))
        assert not rule.is_well_formed

    def test_negative_id_rejected(self):
        with pytest.raises(ValueError, match="id"):
            Rule(id=-1, condition=Condition("cart_total"), action=Action("free_shipping"))

    def test_non_bool_active_rejected(self):
        with pytest.raises(ValueError, match="active"):
            Rule(condition=Condition("cart_total"), action=Action("free_shipping"), active="yes")

    def test_dict_round_trip_keeps_flat_record_format(self):
        record = {
            "id": "7",
            "name": "Spend 50",
            "priority": "3",
            "active": True,
            "condition_type": "cart_total",
            "condition_value": "50",
            "condition_params": {},
            "action_type": "percentage_discount",
            "action_value": "10",
            "action_params": {},
            "exclusive": True,
        }
        rule = Rule.from_dict(record)
        assert rule.id == 7
        assert rule.priority == 3
        assert rule.category == "cart_total"
        assert rule.action.exclusive is True

        data = rule.to_dict()
        assert data["condition_type"] == "cart_total"
        assert data["action_value"] == "10"
        assert Rule.from_dict(data) == rule

    def test_from_dict_uses_default_priority(self):
        rule = Rule.from_dict(
            {"condition_type": "cart_total", "action_type": "free_shipping"},
            default_priority=25,
        )
        assert rule.priority == 25

    @pytest.mark.parametrize("raw", ["0", "false", "FALSE", "", "no", "off", 0, False])
    def test_from_dict_form_false_values(self, raw):
        rule = Rule.from_dict({
            "condition_type": "cart_total",
            "action_type": "fixed_discount",
            "active": raw,
            "exclusive": raw,
        })
        assert rule.active is False
        assert rule.action.exclusive is False

    @pytest.mark.parametrize("raw", ["1", "true", "Yes", "on", 1, True])
    def test_from_dict_form_true_values(self, raw):
        rule = Rule.from_dict({
            "condition_type": "cart_total",
            "action_type": "fixed_discount",
            "active": raw,
            "exclusive": raw,
        })
        assert rule.active is True
        assert rule.action.exclusive is True

    def test_from_dict_missing_flags_use_defaults(self):
        rule = Rule.from_dict({"condition_type": "cart_total", "action_type": "free_shipping"})
        assert rule.active is True
        assert rule.action.exclusive is False

    @pytest.mark.parametrize("key", ["active", "exclusive"])
    def test_from_dict_rejects_unrecognized_flag(self, key):
        with pytest.raises(ValueError, match=key):
            Rule.from_dict({"condition_type": "cart_total", key: "maybe"})

    def test_from_dict_rejects_bad_priority(self):
        with pytest.raises(ValueError, match="priority"):
            Rule.from_dict({"priority": "soon", "condition_type": "cart_total"})


# ══════════════════════════════════════════════════════════════
# CONDITIONS
# ══════════════════════════════════════════════════════════════

class TestConditions:
    def test_cart_total_met_and_not_met(self):
        cart = four_item_cart()
        assert evaluate_condition(Condition("cart_total", 100), cart)
        assert not evaluate_condition(Condition("cart_total", 200), cart)

    def test_cart_total_negative_or_garbage_never_satisfies(self):
        cart = four_item_cart()
        assert not evaluate_condition(Condition("cart_total", -5), cart)
        assert not evaluate_condition(Condition("cart_total", "lots"), cart)
        assert not evaluate_condition(Condition("cart_total", None), cart)

    def test_item_count(self):
        cart = four_item_cart()
        assert evaluate_condition(Condition("item_count", 4), cart)
        assert evaluate_condition(Condition("item_count", "4"), cart)
        assert not evaluate_condition(Condition("item_count", 5), cart)

    def test_specific_product_default_min_quantity(self):
        cart = four_item_cart()
        assert evaluate_condition(Condition("specific_product", 3), cart)
        assert not evaluate_condition(Condition("specific_product", 99), cart)

    def test_specific_product_sums_lines_and_variations(self):
        cart = CartView.from_lines([
            CartLine(product_id=5, unit_price=1, quantity=2),
            CartLine(product_id=6, unit_price=1, quantity=1, variation_id=5),
        ])
        condition = Condition("specific_product", "5", {"min_quantity": "3"})
        assert evaluate_condition(condition, cart)
        condition = Condition("specific_product", "5", {"min_quantity": 4})
        assert not evaluate_condition(condition, cart)

    def test_specific_product_missing_value(self):
        assert not evaluate_condition(Condition("specific_product", ""), four_item_cart())

    def test_product_count_counts_distinct_products(self):
        cart = CartView.from_lines([
            CartLine(product_id=1, unit_price=1, quantity=5),
            CartLine(product_id=1, unit_price=1, quantity=1),
            CartLine(product_id=2, unit_price=1, quantity=1),
            CartLine(product_id=3, unit_price=1, quantity=0),
        ])
        assert evaluate_condition(Condition("product_count", 2), cart)
        assert not evaluate_condition(Condition("product_count", 3), cart)

    def test_product_count_ignores_placeholder_ids(self):
        cart = CartView.from_lines([
            CartLine(product_id=0, unit_price=1, quantity=1),
            CartLine(product_id="-3", unit_price=1, quantity=1),
            CartLine(product_id=7, unit_price=1, quantity=1),
        ])
        assert cart.distinct_product_ids() == frozenset({7})
        assert evaluate_condition(Condition("product_count", 1), cart)
        assert not evaluate_condition(Condition("product_count", 2), cart)

    def test_empty_cart_evaluates_against_zero(self):
        cart = CartView.empty()
        assert evaluate_condition(Condition("cart_total", 0), cart)
        assert not evaluate_condition(Condition("item_count", 1), cart)
        assert not evaluate_condition(Condition("product_count", 1), cart)

    def test_unknown_type_is_not_met(self):
        assert not evaluate_condition(Condition("moon_phase", "full"), four_item_cart())


# ══════════════════════════════════════════════════════════════
# ACTIONS
# ══════════════════════════════════════════════════════════════

class TestActions:
    def test_percentage_is_clamped(self):
        outcome = compute_action(Action("percentage_discount", 150), four_item_cart())
        assert outcome.amount == Decimal("100")

    def test_negative_percentage_clamped_to_zero(self):
        outcome = compute_action(Action("percentage_discount", -10), four_item_cart())
        assert outcome.amount == Decimal("0")

    def test_percentage_keeps_full_precision(self):
        cart = CartView.from_lines([CartLine(product_id=1, unit_price="33.33", quantity=1)])
        outcome = compute_action(Action("percentage_discount", "15"), cart)
        assert outcome.amount == Decimal("4.9995")

    def test_fixed_is_capped_at_subtotal(self):
        cart = CartView.from_lines([CartLine(product_id=1, unit_price=80, quantity=1)])
        outcome = compute_action(Action("fixed_discount", 500), cart)
        assert outcome.amount == Decimal("80")

    def test_fixed_garbage_value_gives_nothing(self):
        outcome = compute_action(Action("fixed_discount", "free"), four_item_cart())
        assert outcome.amount == Decimal("0")

    def test_free_shipping(self):
        outcome = compute_action(Action("free_shipping"), four_item_cart())
        assert outcome.amount == Decimal("0")
        assert outcome.free_shipping is True

    def test_cheapest_and_most_expensive(self):
        cart = four_item_cart()
        assert compute_action(Action("cheapest_free"), cart).amount == Decimal("10")
        assert compute_action(Action("most_expensive_free"), cart).amount == Decimal("40")

    def test_nth_cheapest(self):
        cart = four_item_cart()
        second = Action("nth_cheapest_free", params={"position": 2})
        fifth = Action("nth_cheapest_free", params={"position": 5})
        assert compute_action(second, cart).amount == Decimal("20")
        assert compute_action(fifth, cart).amount == Decimal("0")

    def test_nth_position_falls_back_to_value(self):
        outcome = compute_action(Action("nth_expensive_free", 2), four_item_cart())
        assert outcome.amount == Decimal("30")

    def test_nth_position_defaults_to_first(self):
        outcome = compute_action(Action("nth_expensive_free"), four_item_cart())
        assert outcome.amount == Decimal("40")

    def test_nth_invalid_position_gives_nothing(self):
        cart = four_item_cart()
        assert compute_action(Action("nth_cheapest_free", 0), cart).amount == Decimal("0")
        assert compute_action(
            Action("nth_cheapest_free", params={"position": "x"}), cart
        ).amount == Decimal("0")

    def test_units_expand_by_quantity(self):
        cart = CartView.from_lines([
            CartLine(product_id=1, unit_price=50, quantity=1),
            CartLine(product_id=2, unit_price=5, quantity=3),
        ])
        assert unit_price_at(cart, 2) == Decimal("5")
        assert unit_price_at(cart, 3) == Decimal("50")
        assert unit_price_at(cart, 4) is None
        assert unit_price_at(cart, 1, descending=True) == Decimal("5")

    def test_large_quantities(self):
        cart = CartView.from_lines([
            CartLine(product_id=1, unit_price=2, quantity=10_000_000),
            CartLine(product_id=2, unit_price=1, quantity=1),
        ])
        action = Action("nth_cheapest_free", params={"position": 10_000_001})
        assert compute_action(action, cart).amount == Decimal("2")

    def test_empty_cart_free_item_gives_nothing(self):
        assert compute_action(Action("cheapest_free"), CartView.empty()).amount == Decimal("0")

    def test_unknown_action_gives_nothing(self):
        outcome = compute_action(Action("double_points", 2), four_item_cart())
        assert outcome.amount == Decimal("0")
        assert outcome.free_shipping is False
