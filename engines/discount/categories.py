"""
BOS Discount Engine - Category Exclusivity
===========================================
Write-path invariant: at most one rule category has active rules.

Two phases:
1. Plan (pure):   which other active rules sit in a different
                  category than the rule being activated.
2. Persist:       the activated rule and every deactivation go to
                  the repository as ONE batch, under one lock.

Concurrent activations for two categories therefore serialize in the
repository; the last batch wins and exactly one category stays active.

The read path (DiscountEngine) never calls this module. It trusts the
invariant and only reports violations.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Iterable, List, Optional, Sequence, Tuple

from engines.discount.rules import Rule

if TYPE_CHECKING:
    from engines.discount.repository import RuleRepository

logger = logging.getLogger("bos.discount.categories")


# ══════════════════════════════════════════════════════════════
# PHASE 1: PLAN (pure)
# ══════════════════════════════════════════════════════════════

def _is_other(candidate: Rule, rule: Rule) -> bool:
    if rule.id and candidate.id == rule.id:
        return False
    return candidate is not rule


def resolve_category_exclusivity(rule: Rule, all_rules: Iterable[Rule]) -> List[int]:
    """
    Ids of the rules that must be deactivated when `rule` becomes active.

    A rule qualifies when it is active, is not `rule` itself, and its
    resolved category differs from the resolved category of `rule`.
    """
    return [r.id for r in plan_deactivations(rule, all_rules)]


def plan_deactivations(rule: Rule, all_rules: Iterable[Rule]) -> Tuple[Rule, ...]:
    """Same selection as resolve_category_exclusivity(), as inactive copies."""
    category = rule.resolved_category
    return tuple(
        other.with_changes(active=False)
        for other in all_rules
        if _is_other(other, rule)
        and other.active
        and other.resolved_category != category
    )


# ══════════════════════════════════════════════════════════════
# PHASE 2: PERSIST (atomic batch)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ActivationOutcome:
    """Activated rule as persisted, plus the ids that were switched off."""

    rule: Rule
    deactivated_ids: Tuple[int, ...] = ()


class CategoryExclusivityManager:
    """
    Enforces the one-active-category invariant on the write path.

    Usage:
        manager = CategoryExclusivityManager(repository)
        outcome = manager.on_activate(rule)
        outcome.deactivated_ids   # (3, 7)

        outcome = manager.activate_by_id(3)   # None if #3 is gone
    """

    def __init__(self, repository: "RuleRepository"):
        self._repository = repository

    def on_activate(self, rule: Rule) -> ActivationOutcome:
        """
        Persist `rule` as active and deactivate every other category.

        The category is resolved (condition type when unset) before the
        plan is computed, so the stored rule always carries it.
        """
        return self._activate(lambda snapshot: rule)

    def activate_by_id(self, rule_id: int) -> Optional[ActivationOutcome]:
        """
        Activate the stored rule `rule_id`.

        The rule is read from the same snapshot the batch is planned on,
        so a concurrent delete or edit is never overwritten. Returns None
        and saves nothing when the rule is not in the store.
        """
        def current(snapshot: Sequence[Rule]) -> Optional[Rule]:
            for stored in snapshot:
                if stored.id == rule_id:
                    return stored
            return None

        return self._activate(current)

    def _activate(
        self, select: Callable[[Sequence[Rule]], Optional[Rule]],
    ) -> Optional[ActivationOutcome]:
        def planner(snapshot: Sequence[Rule]):
            rule = select(snapshot)
            if rule is None:
                return (), ()
            activated = rule.with_changes(active=True, category=rule.resolved_category)
            plan = plan_deactivations(activated, snapshot)
            return (activated, *plan), tuple(r.id for r in plan)

        saved, deactivated_ids = self._repository.apply_batch(planner)
        if not saved:
            return None
        persisted = saved[0]

        for rule_id in deactivated_ids:
            logger.info(
                f"Deactivated rule #{rule_id} because rule #{persisted.id} "
                f"in category '{persisted.category}' was activated"
            )

        return ActivationOutcome(rule=persisted, deactivated_ids=deactivated_ids)
