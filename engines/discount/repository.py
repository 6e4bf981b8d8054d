"""
BOS Discount Engine - Rule Repository
======================================
Storage contract for rule records plus the in-memory reference
implementation used by tests and bootstrap.

Contract:
- Ids are positive ints assigned on first save (max existing id + 1).
- Every read returns a consistent snapshot of frozen Rule values,
  ordered by priority then id.
- apply_batch() runs read-modify-write over the WHOLE rule set under
  one lock. Either every rule in the batch is stored or none is.
"""

from __future__ import annotations

import logging
from threading import Lock
from typing import Any, Callable, Dict, Iterable, Optional, Protocol, Sequence, Tuple

from engines.discount.exceptions import RuleNotFoundError
from engines.discount.rules import Rule

logger = logging.getLogger("bos.discount.repository")

BatchPlanner = Callable[[Sequence[Rule]], Tuple[Iterable[Rule], Any]]


def sort_rules(rules: Iterable[Rule]) -> Tuple[Rule, ...]:
    """Priority ascending, id ascending on ties."""
    return tuple(sorted(rules, key=lambda r: (r.priority, r.id)))


# ══════════════════════════════════════════════════════════════
# REPOSITORY PROTOCOL
# ══════════════════════════════════════════════════════════════

class RuleRepository(Protocol):
    """
    Protocol for rule storage.

    Implementations may back this with a database, an options blob,
    or memory. They must honor the atomicity of apply_batch().
    """

    def get_rules(self, active_only: bool = False) -> Tuple[Rule, ...]:
        ...  # pragma: no cover

    def get_active_rules(self) -> Tuple[Rule, ...]:
        ...  # pragma: no cover

    def get_rule(self, rule_id: int) -> Optional[Rule]:
        ...  # pragma: no cover

    def save(self, rule: Rule) -> Rule:
        ...  # pragma: no cover

    def delete(self, rule_id: int) -> bool:
        ...  # pragma: no cover

    def apply_batch(self, planner: BatchPlanner) -> Tuple[Tuple[Rule, ...], Any]:
        ...  # pragma: no cover


# ══════════════════════════════════════════════════════════════
# IN-MEMORY REPOSITORY (for testing / bootstrap)
# ══════════════════════════════════════════════════════════════

class InMemoryRuleRepository:
    """
    Thread-safe in-memory rule store.

    Usage:
        repo = InMemoryRuleRepository()
        saved = repo.save(Rule(condition=..., action=...))
        saved.id                  # 1
        repo.get_active_rules()   # (saved,)
    """

    def __init__(self, rules: Optional[Iterable[Rule]] = None):
        self._rules: Dict[int, Rule] = {}
        self._lock = Lock()
        if rules:
            self._rules = self._stage(self._rules, rules)[0]

    # ── internal (caller holds the lock) ──────────────────────

    @staticmethod
    def _stage(
        current: Dict[int, Rule], rules: Iterable[Rule],
    ) -> Tuple[Dict[int, Rule], Tuple[Rule, ...]]:
        """Apply saves to a copy. Nothing is visible until the copy is swapped in."""
        staged = dict(current)
        saved = []
        for rule in rules:
            if not isinstance(rule, Rule):
                raise TypeError(f"Expected Rule, got {type(rule).__name__}.")
            if rule.id == 0:
                rule = rule.with_changes(id=max(staged, default=0) + 1)
            staged[rule.id] = rule
            saved.append(rule)
        return staged, tuple(saved)

    # ══════════════════════════════════════════════════════════
    # READS
    # ══════════════════════════════════════════════════════════

    def get_rules(self, active_only: bool = False) -> Tuple[Rule, ...]:
        with self._lock:
            rules = self._rules.values()
            if active_only:
                rules = [r for r in rules if r.active]
            return sort_rules(rules)

    def get_active_rules(self) -> Tuple[Rule, ...]:
        return self.get_rules(active_only=True)

    def get_rule(self, rule_id: int) -> Optional[Rule]:
        with self._lock:
            return self._rules.get(rule_id)

    def require_rule(self, rule_id: int) -> Rule:
        rule = self.get_rule(rule_id)
        if rule is None:
            raise RuleNotFoundError(rule_id)
        return rule

    def count(self) -> int:
        with self._lock:
            return len(self._rules)

    # ══════════════════════════════════════════════════════════
    # WRITES
    # ══════════════════════════════════════════════════════════

    def save(self, rule: Rule) -> Rule:
        """Store one rule. Assigns an id when rule.id is 0."""
        with self._lock:
            self._rules, saved = self._stage(self._rules, (rule,))
        logger.debug(f"Rule #{saved[0].id} saved")
        return saved[0]

    def delete(self, rule_id: int) -> bool:
        with self._lock:
            if rule_id not in self._rules:
                return False
            del self._rules[rule_id]
        logger.debug(f"Rule #{rule_id} deleted")
        return True

    def apply_batch(self, planner: BatchPlanner) -> Tuple[Tuple[Rule, ...], Any]:
        """
        Atomic read-modify-write over the whole rule set.

        Args:
            planner: Receives the current snapshot, returns
                     (rules_to_save, result). Must not have side effects.

        Returns:
            (saved rules in planner order, planner result)
        """
        with self._lock:
            snapshot = sort_rules(self._rules.values())
            to_save, result = planner(snapshot)
            self._rules, saved = self._stage(self._rules, to_save)
        logger.debug(f"Batch saved {len(saved)} rule(s)")
        return saved, result
