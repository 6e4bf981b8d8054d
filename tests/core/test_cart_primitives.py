"""
Tests for core.primitives - money helpers and the cart snapshot.
"""

from decimal import Decimal

import pytest

from core.primitives.cart import CartLine, CartView
from core.primitives.money import (
    clamp,
    parse_decimal,
    quantize_amount,
    to_money,
)


# ══════════════════════════════════════════════════════════════
# MONEY
# ══════════════════════════════════════════════════════════════

class TestParseDecimal:
    @pytest.mark.parametrize("raw, expected", [
        (5, Decimal("5")),
        ("12.50", Decimal("12.50")),
        (" 7 ", Decimal("7")),
        (0.1, Decimal("0.1")),
        (Decimal("3.3"), Decimal("3.3")),
    ])
    def test_valid_values(self, raw, expected):
        assert parse_decimal(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "abc", True, "NaN", "Infinity", [1]])
    def test_invalid_values_return_none(self, raw):
        assert parse_decimal(raw) is None

    def test_float_does_not_leak_binary_error(self):
        assert parse_decimal(0.1) + parse_decimal(0.2) == Decimal("0.3")


class TestMoneyHelpers:
    def test_to_money_rejects_negative(self):
        with pytest.raises(ValueError, match="cannot be negative"):
            to_money(-1, "unit_price")

    def test_to_money_rejects_garbage(self):
        with pytest.raises(ValueError, match="finite number"):
            to_money("ten")

    def test_clamp(self):
        assert clamp(Decimal("150"), Decimal("0"), Decimal("100")) == Decimal("100")
        assert clamp(Decimal("-5"), Decimal("0"), Decimal("100")) == Decimal("0")

    def test_quantize_half_up(self):
        assert quantize_amount(Decimal("2.345")) == Decimal("2.35")


# ══════════════════════════════════════════════════════════════
# CART
# ══════════════════════════════════════════════════════════════

class TestCartLine:
    def test_price_coerced_to_decimal(self):
        line = CartLine(product_id=1, unit_price="9.99", quantity=2)
        assert line.unit_price == Decimal("9.99")
        assert line.line_subtotal == Decimal("19.98")

    def test_negative_quantity_rejected(self):
        with pytest.raises(ValueError):
            CartLine(product_id=1, unit_price=1, quantity=-1)

    def test_float_quantity_rejected(self):
        with pytest.raises(TypeError):
            CartLine(product_id=1, unit_price=1, quantity=1.5)

    def test_matches_product_or_variation(self):
        line = CartLine(product_id=10, unit_price=5, quantity=1, variation_id=11)
        assert line.matches_product("10")
        assert line.matches_product(11)
        assert not line.matches_product(12)


class TestCartView:
    def test_derives_subtotal_and_item_count(self):
        cart = CartView.from_lines([
            {"product_id": 1, "unit_price": "10", "quantity": 2},
            {"product_id": 2, "unit_price": "5.50", "quantity": 1},
        ])
        assert cart.subtotal == Decimal("25.50")
        assert cart.item_count == 3

    def test_host_supplied_totals_win(self):
        cart = CartView.from_lines(
            [CartLine(product_id=1, unit_price=10, quantity=1)],
            subtotal="8.00",
            item_count=1,
        )
        assert cart.subtotal == Decimal("8.00")

    def test_empty_cart(self):
        cart = CartView.empty()
        assert cart.subtotal == Decimal("0")
        assert cart.item_count == 0
        assert cart.is_empty

    def test_distinct_products_ignore_zero_quantity(self):
        cart = CartView.from_lines([
            CartLine(product_id=1, unit_price=1, quantity=1),
            CartLine(product_id=1, unit_price=1, quantity=3),
            CartLine(product_id=2, unit_price=1, quantity=0),
        ])
        assert cart.distinct_product_ids() == frozenset({1})

    def test_rejects_non_line_entries(self):
        with pytest.raises(TypeError):
            CartView(lines=({"product_id": 1},))

    def test_frozen(self):
        cart = CartView.empty()
        with pytest.raises(AttributeError):
            cart.subtotal = Decimal("1")
