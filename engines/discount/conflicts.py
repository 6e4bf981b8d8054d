"""
BOS Discount Engine - Conflict Resolution
==========================================
Post-processing over the candidates of one evaluation pass.

Candidates are grouped into families by action type. Inside a family
holding more than one positive-amount candidate, only the largest
survives (first in priority order on ties). The others are rewritten
to amount=0, conflict=True.

Families are data, not control flow: adding an action type to a
family is one entry in ACTION_FAMILIES (or the family= argument of
HandlerRegistry.register_action).
"""

from __future__ import annotations

import dataclasses
from typing import Dict, Iterable, List, Mapping, Optional

from core.primitives.money import ZERO
from engines.discount.result import DiscountResult
from engines.discount.rules import (
    ACTION_CHEAPEST_FREE,
    ACTION_FIXED_DISCOUNT,
    ACTION_FREE_SHIPPING,
    ACTION_MOST_EXPENSIVE_FREE,
    ACTION_NTH_CHEAPEST_FREE,
    ACTION_NTH_EXPENSIVE_FREE,
    ACTION_PERCENTAGE_DISCOUNT,
)

FAMILY_PERCENTAGE = "percentage"
FAMILY_FIXED = "fixed"
FAMILY_FREE_ITEM = "free_item"
FAMILY_FREE_SHIPPING = "free_shipping"

ACTION_FAMILIES: Dict[str, str] = {
    ACTION_PERCENTAGE_DISCOUNT: FAMILY_PERCENTAGE,
    ACTION_FIXED_DISCOUNT: FAMILY_FIXED,
    ACTION_CHEAPEST_FREE: FAMILY_FREE_ITEM,
    ACTION_MOST_EXPENSIVE_FREE: FAMILY_FREE_ITEM,
    ACTION_NTH_CHEAPEST_FREE: FAMILY_FREE_ITEM,
    ACTION_NTH_EXPENSIVE_FREE: FAMILY_FREE_ITEM,
    ACTION_FREE_SHIPPING: FAMILY_FREE_SHIPPING,
}

# Boolean, idempotent benefits: never compete.
NON_COMPETING_FAMILIES = frozenset({FAMILY_FREE_SHIPPING})


def family_of(action_type: str, families: Optional[Mapping[str, str]] = None) -> str:
    """Family of an action type; unknown types form their own family."""
    if families is not None and action_type in families:
        return families[action_type]
    return ACTION_FAMILIES.get(action_type, action_type)


def resolve_conflicts(
    candidates: Iterable[DiscountResult],
    families: Optional[Mapping[str, str]] = None,
) -> List[DiscountResult]:
    """
    Suppress competing candidates within each action family.

    Args:
        candidates:  Candidates in priority order.
        families:    action type -> family overrides (e.g. from the
                     handler registry). ACTION_FAMILIES otherwise.

    Returns:
        Same length, same order. Losers rewritten to amount=0,
        conflict=True. Families with zero or one positive candidate
        are untouched.
    """
    resolved = list(candidates)

    # family -> indexes of positive-amount candidates, in order
    contenders: Dict[str, List[int]] = {}
    for index, candidate in enumerate(resolved):
        if candidate.conflict or candidate.amount <= ZERO:
            continue
        family = family_of(candidate.action_type, families)
        if family in NON_COMPETING_FAMILIES:
            continue
        contenders.setdefault(family, []).append(index)

    for indexes in contenders.values():
        if len(indexes) < 2:
            continue

        winner = indexes[0]
        for index in indexes[1:]:
            if resolved[index].amount > resolved[winner].amount:
                winner = index

        for index in indexes:
            if index != winner:
                resolved[index] = dataclasses.replace(
                    resolved[index], amount=ZERO, conflict=True
                )

    return resolved
