"""
BOS Discount Engine - Application Service
==========================================
RulesManager ties the repository (write path) to the engine
(read path):

- save / activate / deactivate / toggle / delete rules
- category exclusivity on every activation
- rule listing, categories and type labels for admin surfaces
- discount evaluation against the repository's active rules
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from core.config.settings import DiscountSettings, SettingsStore
from core.primitives.cart import CartView
from engines.discount.categories import CategoryExclusivityManager
from engines.discount.engine import DiscountEngine
from engines.discount.repository import RuleRepository
from engines.discount.result import DiscountEvaluation, DiscountResult
from engines.discount.rules import Rule

logger = logging.getLogger("bos.discount")


class RulesManager:
    def __init__(
        self,
        repository: RuleRepository,
        engine: Optional[DiscountEngine] = None,
        settings: Optional[DiscountSettings] = None,
        settings_store: Optional[SettingsStore] = None,
    ):
        self._repository = repository
        self._settings = settings
        self._engine = engine or DiscountEngine(
            settings=settings, settings_store=settings_store,
        )
        self._exclusivity = CategoryExclusivityManager(repository)

    @property
    def engine(self) -> DiscountEngine:
        return self._engine

    @property
    def settings(self) -> DiscountSettings:
        if self._settings is not None:
            return self._settings
        return self._engine.settings

    # ══════════════════════════════════════════════════════════
    # WRITE PATH
    # ══════════════════════════════════════════════════════════

    def rule_from_dict(self, data: dict) -> Rule:
        """Build a rule from a stored/submitted record using configured defaults."""
        return Rule.from_dict(data, default_priority=self.settings.default_priority)

    def save_rule(self, rule: Rule) -> Rule:
        """
        Persist a rule. Active rules switch off every other category.

        Returns the stored rule (id assigned, category resolved).
        """
        if rule.active:
            outcome = self._exclusivity.on_activate(rule)
            saved = outcome.rule
        else:
            saved = self._repository.save(
                rule.with_changes(category=rule.resolved_category)
            )
        logger.info(f"Saved rule #{saved.id} '{saved.name}' active={saved.active}")
        return saved

    def activate_rule(self, rule_id: int) -> bool:
        """Activate a stored rule. False when it does not exist."""
        outcome = self._exclusivity.activate_by_id(rule_id)
        if outcome is None:
            return False
        logger.info(f"Activated rule #{rule_id}")
        return True

    def deactivate_rule(self, rule_id: int) -> bool:
        """Deactivate a stored rule. False when it does not exist."""
        def planner(snapshot):
            for stored in snapshot:
                if stored.id == rule_id:
                    return (stored.with_changes(active=False),), True
            return (), False

        _, found = self._repository.apply_batch(planner)
        if found:
            logger.info(f"Deactivated rule #{rule_id}")
        return found

    def toggle_rule(self, rule_id: int) -> bool:
        """
        Flip a rule's active flag.

        Returns the new active state; False when the rule does not exist.
        """
        rule = self._repository.get_rule(rule_id)
        if rule is None:
            return False
        if rule.active:
            self.deactivate_rule(rule_id)
            return False
        return self.activate_rule(rule_id)

    def delete_rule(self, rule_id: int) -> bool:
        if rule_id <= 0:
            return False
        deleted = self._repository.delete(rule_id)
        if deleted:
            logger.info(f"Deleted rule #{rule_id}")
        return deleted

    # ══════════════════════════════════════════════════════════
    # QUERIES
    # ══════════════════════════════════════════════════════════

    def get_rule(self, rule_id: int) -> Optional[Rule]:
        return self._repository.get_rule(rule_id)

    def get_rules(self, active_only: bool = False) -> Tuple[Rule, ...]:
        return self._repository.get_rules(active_only=active_only)

    def get_categories(self) -> List[str]:
        """Unique non-empty categories, in rule order."""
        categories: List[str] = []
        for rule in self._repository.get_rules():
            if rule.category and rule.category not in categories:
                categories.append(rule.category)
        return categories

    def get_condition_types(self) -> Dict[str, str]:
        return self._engine.registry.condition_types()

    def get_action_types(self) -> Dict[str, str]:
        return self._engine.registry.action_types()

    def get_condition_label(self, condition_type: str) -> str:
        return self._engine.registry.condition_label(condition_type)

    def get_action_label(self, action_type: str) -> str:
        return self._engine.registry.action_label(action_type)

    # ══════════════════════════════════════════════════════════
    # READ PATH
    # ══════════════════════════════════════════════════════════

    def calculate_discounts(self, cart: CartView) -> List[DiscountResult]:
        return self.evaluate(cart).results

    def evaluate(self, cart: CartView) -> DiscountEvaluation:
        return self._engine.evaluate(cart, self._repository.get_active_rules())
