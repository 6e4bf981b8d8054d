"""
BOS Discount Engine - Legacy "Buy N, Get Cheapest Free"
========================================================
The promotion the rule engine replaced: for every complete group of
N units in the cart, the cheapest remaining unit is free.

    8 units, N=4  -> the 2 cheapest units are free
    7 units, N=4  -> the cheapest unit is free
    3 units, N=4  -> nothing

Kept as an opt-in extension action ("bulk_cheapest_free") so stores
still running the old promotion can express it as a rule.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from core.config.settings import DiscountSettings
from core.primitives.cart import CartView
from core.primitives.money import ZERO, parse_decimal
from engines.discount.conflicts import FAMILY_FREE_ITEM
from engines.discount.registry import HandlerRegistry
from engines.discount.result import ActionOutcome
from engines.discount.rules import Action

ACTION_BULK_CHEAPEST_FREE = "bulk_cheapest_free"


def calculate_group_discount(cart: CartView, min_items: int = 4) -> Decimal:
    """
    Sum of the cheapest unit prices, one per complete group of `min_items`.

    Units priced at zero count toward the group size but are never
    picked as the free unit.
    """
    if min_items < 1:
        return ZERO

    total_units = cart.item_count
    if total_units < min_items:
        return ZERO

    remaining = total_units // min_items
    total = ZERO
    priced = sorted(
        (line for line in cart.lines if line.unit_price > ZERO and line.quantity > 0),
        key=lambda line: line.unit_price,
    )
    for line in priced:
        if remaining <= 0:
            break
        taken = min(line.quantity, remaining)
        total += line.unit_price * taken
        remaining -= taken
    return total


def register_legacy_actions(
    registry: HandlerRegistry,
    settings: Optional[DiscountSettings] = None,
) -> None:
    """
    Register "bulk_cheapest_free" in the free-item conflict family.

    Group size comes from params['min_items'], then action.value, then
    settings.legacy_min_items.
    """
    default_min_items = (settings or DiscountSettings()).legacy_min_items

    def bulk_cheapest_free(action: Action, cart: CartView) -> ActionOutcome:
        raw = action.params.get("min_items")
        if raw is None or raw == "":
            raw = action.value
        if raw is None or raw == "":
            min_items = default_min_items
        else:
            parsed = parse_decimal(raw)
            if parsed is None:
                return ActionOutcome.nothing()
            min_items = int(parsed)
        return ActionOutcome(amount=calculate_group_discount(cart, min_items))

    registry.register_action(
        ACTION_BULK_CHEAPEST_FREE,
        bulk_cheapest_free,
        label="Buy N, Get Cheapest Free",
        family=FAMILY_FREE_ITEM,
    )
