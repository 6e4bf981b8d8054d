"""
BOS Discount Engine - Action Calculators
=========================================
Pure computations: (action, cart) -> ActionOutcome.

Amounts are Decimal and UNROUNDED here. Rounding happens once,
when the engine builds the DiscountResult.

GUARANTEE: compute_action() NEVER raises for malformed rule data.
Unparsable values, unknown types and broken extension handlers all
degrade to amount 0.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Tuple

from core.primitives.cart import CartView
from core.primitives.money import ONE_HUNDRED, ZERO, clamp, parse_decimal
from engines.discount.result import ActionOutcome
from engines.discount.rules import (
    ACTION_CHEAPEST_FREE,
    ACTION_FIXED_DISCOUNT,
    ACTION_FREE_SHIPPING,
    ACTION_MOST_EXPENSIVE_FREE,
    ACTION_NTH_CHEAPEST_FREE,
    ACTION_NTH_EXPENSIVE_FREE,
    ACTION_PERCENTAGE_DISCOUNT,
    Action,
)

if TYPE_CHECKING:
    from engines.discount.registry import HandlerRegistry

logger = logging.getLogger("bos.discount")


# ══════════════════════════════════════════════════════════════
# UNIT SELECTION
# ══════════════════════════════════════════════════════════════

def unit_price_at(cart: CartView, index: int, descending: bool = False) -> Optional[Decimal]:
    """
    Price of the unit at 0-based `index` when every unit in the cart is
    listed once and sorted by price.

    Walks lines sorted by price with cumulative quantities instead of
    building one entry per unit. Returns None when fewer units exist.
    """
    if index < 0:
        return None

    priced = sorted(
        (line for line in cart.lines if line.quantity > 0),
        key=lambda line: line.unit_price,
        reverse=descending,
    )
    seen = 0
    for line in priced:
        seen += line.quantity
        if index < seen:
            return line.unit_price
    return None


def _position(action: Action) -> Optional[int]:
    """1-based position for nth actions: params['position'], then value, then 1."""
    raw = action.params.get("position")
    if raw is None or raw == "":
        raw = action.value
    if raw is None or raw == "":
        return 1
    parsed = parse_decimal(raw)
    if parsed is None:
        return None
    return int(parsed)


# ══════════════════════════════════════════════════════════════
# BUILT-IN ACTIONS
# ══════════════════════════════════════════════════════════════

def percentage_discount_action(action: Action, cart: CartView) -> ActionOutcome:
    """Percent of subtotal. Out-of-range percentages are clamped to [0, 100]."""
    percentage = parse_decimal(action.value)
    if percentage is None:
        return ActionOutcome.nothing()
    percentage = clamp(percentage, ZERO, ONE_HUNDRED)
    return ActionOutcome(amount=cart.subtotal * percentage / ONE_HUNDRED)


def fixed_discount_action(action: Action, cart: CartView) -> ActionOutcome:
    """Fixed amount, capped at the subtotal."""
    amount = parse_decimal(action.value)
    if amount is None or amount <= ZERO:
        return ActionOutcome.nothing()
    return ActionOutcome(amount=min(amount, cart.subtotal))


def free_shipping_action(action: Action, cart: CartView) -> ActionOutcome:
    return ActionOutcome(amount=ZERO, free_shipping=True)


def cheapest_free_action(action: Action, cart: CartView) -> ActionOutcome:
    price = unit_price_at(cart, 0)
    return ActionOutcome(amount=price if price is not None else ZERO)


def most_expensive_free_action(action: Action, cart: CartView) -> ActionOutcome:
    price = unit_price_at(cart, 0, descending=True)
    return ActionOutcome(amount=price if price is not None else ZERO)


def nth_cheapest_free_action(action: Action, cart: CartView) -> ActionOutcome:
    position = _position(action)
    if position is None or position < 1:
        return ActionOutcome.nothing()
    price = unit_price_at(cart, position - 1)
    return ActionOutcome(amount=price if price is not None else ZERO)


def nth_expensive_free_action(action: Action, cart: CartView) -> ActionOutcome:
    position = _position(action)
    if position is None or position < 1:
        return ActionOutcome.nothing()
    price = unit_price_at(cart, position - 1, descending=True)
    return ActionOutcome(amount=price if price is not None else ZERO)


BUILTIN_ACTIONS: Dict[str, Tuple[Callable[[Action, CartView], ActionOutcome], str]] = {
    ACTION_PERCENTAGE_DISCOUNT: (percentage_discount_action, "Percentage Discount"),
    ACTION_FIXED_DISCOUNT: (fixed_discount_action, "Fixed Discount"),
    ACTION_FREE_SHIPPING: (free_shipping_action, "Free Shipping"),
    ACTION_CHEAPEST_FREE: (cheapest_free_action, "Cheapest Product Free"),
    ACTION_MOST_EXPENSIVE_FREE: (most_expensive_free_action, "Most Expensive Product Free"),
    ACTION_NTH_CHEAPEST_FREE: (nth_cheapest_free_action, "Nth Cheapest Product Free"),
    ACTION_NTH_EXPENSIVE_FREE: (nth_expensive_free_action, "Nth Most Expensive Product Free"),
}


# ══════════════════════════════════════════════════════════════
# DISPATCH - FAIL-SAFE
# ══════════════════════════════════════════════════════════════

def _normalize_outcome(action_type: str, raw: Any) -> ActionOutcome:
    """Accept ActionOutcome or a plain number from extension handlers."""
    if raw is None:
        return ActionOutcome.nothing()

    if isinstance(raw, ActionOutcome):
        amount = parse_decimal(raw.amount)
        free_shipping = bool(raw.free_shipping)
    else:
        amount = parse_decimal(raw)
        free_shipping = False

    if amount is None or amount < ZERO:
        logger.warning(
            f"Action '{action_type}' returned invalid amount {raw!r}. "
            f"Treated as 0."
        )
        amount = ZERO
    return ActionOutcome(amount=amount, free_shipping=free_shipping)


def compute_action(
    action: Action,
    cart: CartView,
    registry: Optional["HandlerRegistry"] = None,
) -> ActionOutcome:
    """
    Compute the raw outcome of an action for a cart.

    Args:
        action:    Rule action.
        cart:      Cart snapshot.
        registry:  Handler registry. Built-ins only when None.

    Returns:
        ActionOutcome with a non-negative, unrounded amount.
    """
    if registry is not None:
        handler = registry.get_action(action.type)
        calculator = handler.calculator if handler else None
    else:
        builtin = BUILTIN_ACTIONS.get(action.type)
        calculator = builtin[0] if builtin else None

    if calculator is None:
        logger.debug(f"No calculator for action type '{action.type}'")
        return ActionOutcome.nothing()

    try:
        raw = calculator(action, cart)
    except Exception as exc:
        logger.warning(
            f"Action '{action.type}' calculator failed: "
            f"{type(exc).__name__}: {exc}. Treated as 0."
        )
        return ActionOutcome.nothing()

    return _normalize_outcome(action.type, raw)
