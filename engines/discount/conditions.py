"""
BOS Discount Engine - Condition Evaluators
===========================================
Pure predicates: (condition, cart) -> bool.

GUARANTEE: evaluate_condition() NEVER raises for malformed rule data.
An unknown type, a non-numeric threshold or a broken extension
handler all evaluate to False ("condition not met").
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Tuple

from core.primitives.cart import CartView
from core.primitives.money import ZERO, parse_decimal
from engines.discount.rules import (
    CONDITION_CART_TOTAL,
    CONDITION_ITEM_COUNT,
    CONDITION_PRODUCT_COUNT,
    CONDITION_SPECIFIC_PRODUCT,
    Condition,
)

if TYPE_CHECKING:
    from engines.discount.registry import HandlerRegistry

logger = logging.getLogger("bos.discount")


def _threshold(value: Any) -> Optional[Decimal]:
    """Configured minimum; None when unparsable or negative."""
    parsed = parse_decimal(value)
    if parsed is None or parsed < ZERO:
        return None
    return parsed


def _int_threshold(value: Any) -> Optional[int]:
    parsed = _threshold(value)
    if parsed is None:
        return None
    return int(parsed)


# ══════════════════════════════════════════════════════════════
# BUILT-IN CONDITIONS
# ══════════════════════════════════════════════════════════════

def cart_total_condition(condition: Condition, cart: CartView) -> bool:
    minimum = _threshold(condition.value)
    if minimum is None:
        return False
    return cart.subtotal >= minimum


def item_count_condition(condition: Condition, cart: CartView) -> bool:
    minimum = _int_threshold(condition.value)
    if minimum is None:
        return False
    return cart.item_count >= minimum


def specific_product_condition(condition: Condition, cart: CartView) -> bool:
    """
    Quantity of one product (or variation) reaches params['min_quantity'].

    min_quantity defaults to 1 when absent or unparsable.
    """
    product_ref = condition.value
    if product_ref is None or str(product_ref).strip() == "":
        return False
    product_ref = str(product_ref).strip()

    min_quantity = _int_threshold(condition.params.get("min_quantity"))
    if min_quantity is None:
        min_quantity = 1

    quantity = sum(
        line.quantity for line in cart.lines if line.matches_product(product_ref)
    )
    return quantity >= min_quantity


def product_count_condition(condition: Condition, cart: CartView) -> bool:
    """Distinct products (quantity > 0) reach the configured count."""
    minimum = _int_threshold(condition.value)
    if minimum is None:
        return False
    return len(cart.distinct_product_ids()) >= minimum


BUILTIN_CONDITIONS: Dict[str, Tuple[Callable[[Condition, CartView], bool], str]] = {
    CONDITION_CART_TOTAL: (cart_total_condition, "Cart Total"),
    CONDITION_ITEM_COUNT: (item_count_condition, "Item Count"),
    CONDITION_SPECIFIC_PRODUCT: (specific_product_condition, "Specific Product"),
    CONDITION_PRODUCT_COUNT: (product_count_condition, "Product Count"),
}


# ══════════════════════════════════════════════════════════════
# DISPATCH - FAIL-SAFE
# ══════════════════════════════════════════════════════════════

def evaluate_condition(
    condition: Condition,
    cart: CartView,
    registry: Optional["HandlerRegistry"] = None,
) -> bool:
    """
    Evaluate a condition against a cart.

    Args:
        condition:  Rule condition.
        cart:       Cart snapshot.
        registry:   Handler registry. Built-ins only when None.

    Returns:
        True if the condition is met. False otherwise, including for
        unknown types and handlers that raise.
    """
    if registry is not None:
        handler = registry.get_condition(condition.type)
        evaluator = handler.evaluator if handler else None
    else:
        builtin = BUILTIN_CONDITIONS.get(condition.type)
        evaluator = builtin[0] if builtin else None

    if evaluator is None:
        logger.debug(f"No evaluator for condition type '{condition.type}'")
        return False

    try:
        return bool(evaluator(condition, cart))
    except Exception as exc:
        logger.warning(
            f"Condition '{condition.type}' evaluator failed: "
            f"{type(exc).__name__}: {exc}. Treated as not met."
        )
        return False
