"""
BOS Discount Engine - Core Evaluation Engine
=============================================
Pure, deterministic, single-pass discount evaluation.

The DiscountEngine does NOT:
- Persist anything
- Repair the rule store (category exclusivity is a write-path concern)
- Keep state between calls
- Raise for malformed rules

It DOES raise InvalidInputError when the cart itself is missing:
there is no sensible default to substitute for it.

Flow:
    active rules -> priority order -> single active category
    -> condition -> action -> conflict resolution -> results
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from core.config.settings import DiscountSettings, SettingsStore
from core.primitives.cart import CartView
from core.primitives.money import quantize_amount
from engines.discount.actions import compute_action
from engines.discount.conditions import evaluate_condition
from engines.discount.conflicts import resolve_conflicts
from engines.discount.exceptions import InvalidInputError
from engines.discount.registry import HandlerRegistry, build_default_registry
from engines.discount.result import DiscountEvaluation, DiscountResult
from engines.discount.rules import Rule

logger = logging.getLogger("bos.discount")


class DiscountEngine:
    """
    Core discount evaluation engine.

    Pure function wrapped in a class for dependency injection.

    Usage:
        engine = DiscountEngine()
        results = engine.calculate_discounts(cart, repository.get_active_rules())
    """

    def __init__(
        self,
        registry: Optional[HandlerRegistry] = None,
        settings: Optional[DiscountSettings] = None,
        settings_store: Optional[SettingsStore] = None,
    ):
        if settings is not None and settings_store is not None:
            raise ValueError("Pass settings or settings_store, not both.")
        self._registry = registry if registry is not None else build_default_registry()
        self._settings = settings or DiscountSettings()
        self._settings_store = settings_store

    @property
    def registry(self) -> HandlerRegistry:
        return self._registry

    @property
    def settings(self) -> DiscountSettings:
        """Current settings; re-read from the store on every access when one is set."""
        if self._settings_store is not None:
            return self._settings_store.get_settings()
        return self._settings

    def calculate_discounts(
        self, cart: CartView, rules: Optional[Iterable[Rule]],
    ) -> List[DiscountResult]:
        """
        Discounts that apply to `cart` under `rules`.

        Returns effective entries (amount > 0 or free shipping) and
        conflict entries (amount forced to 0), in priority order.

        Raises:
            InvalidInputError: cart is None or not a CartView.
        """
        return self.evaluate(cart, rules).results

    def evaluate(
        self, cart: CartView, rules: Optional[Iterable[Rule]],
    ) -> DiscountEvaluation:
        """
        Same pass as calculate_discounts(), with diagnostics.

        Steps:
        1. Validate call-level input
        2. Keep active rules, sort by priority (stable)
        3. Pick the active category (first categorized rule)
        4. Restrict to that category
        5. Evaluate condition, compute action, honor exclusive stop
        6. Resolve conflicts
        7. Drop candidates that give nothing
        """
        # ── Step 1: Validate input ────────────────────────────
        if cart is None:
            raise InvalidInputError("cart", "a CartView is required.")
        if not isinstance(cart, CartView):
            raise InvalidInputError(
                "cart", f"expected CartView, got {type(cart).__name__}."
            )

        # ── Step 2: Active rules in priority order ────────────
        active_rules = [
            r for r in (rules or ()) if isinstance(r, Rule) and r.active
        ]
        active_rules = sorted(active_rules, key=lambda r: r.priority)

        if not active_rules:
            logger.debug("No active rules found for discount calculation")
            return DiscountEvaluation()

        # ── Step 3: Active category ───────────────────────────
        active_category = ""
        for rule in active_rules:
            if rule.category:
                active_category = rule.category
                break

        warnings = self._check_single_category(active_rules, active_category)

        # ── Step 4: Restrict to active category ───────────────
        if active_category:
            working_set = [r for r in active_rules if r.category == active_category]
        else:
            working_set = active_rules

        # ── Step 5: Evaluate in order ─────────────────────────
        settings = self.settings
        candidates: List[DiscountResult] = []
        skipped: List[int] = []
        for rule in working_set:
            if not rule.is_well_formed:
                logger.warning(
                    f"Rule #{rule.id} skipped: missing condition or action type"
                )
                skipped.append(rule.id)
                continue

            candidate = self._evaluate_rule(rule, cart, settings)
            if candidate is None:
                continue
            candidates.append(candidate)

            if rule.action.exclusive and candidate.is_effective:
                logger.debug(
                    f"Rule #{rule.id} is exclusive; stopping evaluation"
                )
                break

        # ── Step 6: Conflict resolution ───────────────────────
        resolved = resolve_conflicts(candidates, families=self._registry.families())

        # ── Step 7: Keep effective and conflict entries ───────
        results = [r for r in resolved if r.is_effective or r.conflict]

        return DiscountEvaluation(
            results=results,
            candidates=resolved,
            active_category=active_category,
            applied_rule_ids=tuple(r.rule_id for r in results if r.is_effective),
            skipped_rule_ids=tuple(skipped),
            warnings=warnings,
        )

    # ══════════════════════════════════════════════════════════
    # SINGLE RULE
    # ══════════════════════════════════════════════════════════

    def _evaluate_rule(
        self, rule: Rule, cart: CartView, settings: DiscountSettings,
    ) -> Optional[DiscountResult]:
        """Candidate for one rule, or None when its condition is not met."""
        if not evaluate_condition(rule.condition, cart, self._registry):
            logger.debug(f"Rule #{rule.id} condition '{rule.condition.type}' not met")
            return None

        outcome = compute_action(rule.action, cart, self._registry)
        amount = quantize_amount(
            outcome.amount,
            settings.rounding_quantum,
            settings.rounding,
        )
        logger.debug(
            f"Rule #{rule.id} action '{rule.action.type}' -> {amount}"
            f"{' + free shipping' if outcome.free_shipping else ''}"
        )
        return DiscountResult(
            rule_id=rule.id,
            rule_name=rule.display_name,
            category=rule.category,
            action_type=rule.action.type,
            amount=amount,
            free_shipping=outcome.free_shipping,
            exclusive=rule.action.exclusive,
        )

    # ══════════════════════════════════════════════════════════
    # INVARIANT CHECK (report only)
    # ══════════════════════════════════════════════════════════

    @staticmethod
    def _check_single_category(active_rules: List[Rule], active_category: str) -> tuple:
        categories = []
        for rule in active_rules:
            if rule.category and rule.category not in categories:
                categories.append(rule.category)

        if len(categories) <= 1:
            return ()

        message = (
            f"Category exclusivity violated: active categories {categories}; "
            f"using '{active_category}'"
        )
        logger.warning(message)
        return (message,)
