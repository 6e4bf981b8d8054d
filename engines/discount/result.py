"""
BOS Discount Engine - Result Models
====================================
ActionOutcome: what a single action computes for a cart.
DiscountResult: one candidate discount produced by one rule.
DiscountEvaluation: aggregate of one evaluation pass, with diagnostics.

These are pure data structures. No side effects. No persistence.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Tuple

from core.primitives.money import ZERO


# ══════════════════════════════════════════════════════════════
# ACTION OUTCOME (calculator return value)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ActionOutcome:
    """Raw, unrounded amount plus the free-shipping flag."""

    amount: Decimal = ZERO
    free_shipping: bool = False

    @classmethod
    def nothing(cls) -> ActionOutcome:
        return cls()


# ══════════════════════════════════════════════════════════════
# DISCOUNT RESULT (single rule outcome)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class DiscountResult:
    """
    One candidate discount.

    Fields:
        rule_id:        Rule that produced this candidate.
        rule_name:      Display name of that rule.
        category:       Rule category.
        action_type:    Action type that computed the amount.
        amount:         Non-negative amount to subtract from the cart.
        free_shipping:  True if the action grants free shipping.
        conflict:       True if suppressed by conflict resolution.
                        Conflict entries always carry amount == 0.
        exclusive:      Copied from the rule's action.
    """

    rule_id: int
    rule_name: str
    category: str
    action_type: str
    amount: Decimal = ZERO
    free_shipping: bool = False
    conflict: bool = False
    exclusive: bool = False

    def __post_init__(self):
        if not isinstance(self.amount, Decimal):
            raise TypeError(
                f"amount must be Decimal, got {type(self.amount).__name__}."
            )
        if self.amount < 0:
            raise ValueError("amount cannot be negative.")
        if self.conflict and self.amount != 0:
            raise ValueError("conflict entries must carry amount 0.")

    @property
    def is_effective(self) -> bool:
        """True if this entry changes what the customer pays."""
        return self.amount > 0 or self.free_shipping

    def to_dict(self) -> dict:
        return {
            "rule_id": self.rule_id,
            "rule_name": self.rule_name,
            "category": self.category,
            "action_type": self.action_type,
            "amount": str(self.amount),
            "free_shipping": self.free_shipping,
            "conflict": self.conflict,
            "exclusive": self.exclusive,
        }


# ══════════════════════════════════════════════════════════════
# DISCOUNT EVALUATION (aggregate of one pass)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class DiscountEvaluation:
    """
    Aggregate of one evaluation pass.

    Fields:
        results:           Final list (effective entries + conflict entries).
        candidates:        Every candidate after conflict resolution.
        active_category:   Category the pass was restricted to ("" if none).
        applied_rule_ids:  Rules whose discount survived resolution.
        skipped_rule_ids:  Malformed rules skipped without evaluation.
        warnings:          Consistency warnings (e.g. two active categories).
    """

    results: List[DiscountResult] = field(default_factory=list)
    candidates: List[DiscountResult] = field(default_factory=list)
    active_category: str = ""
    applied_rule_ids: Tuple[int, ...] = ()
    skipped_rule_ids: Tuple[int, ...] = ()
    warnings: Tuple[str, ...] = ()

    @property
    def total_amount(self) -> Decimal:
        return sum((r.amount for r in self.results), ZERO)

    @property
    def free_shipping(self) -> bool:
        return any(r.free_shipping for r in self.results)

    @property
    def has_conflicts(self) -> bool:
        return any(r.conflict for r in self.results)

    def result_for(self, rule_id: int) -> Optional[DiscountResult]:
        for result in self.results:
            if result.rule_id == rule_id:
                return result
        return None

    def to_dict(self) -> dict:
        return {
            "active_category": self.active_category,
            "total_amount": str(self.total_amount),
            "free_shipping": self.free_shipping,
            "applied_rule_ids": list(self.applied_rule_ids),
            "skipped_rule_ids": list(self.skipped_rule_ids),
            "warnings": list(self.warnings),
            "results": [r.to_dict() for r in self.results],
        }
