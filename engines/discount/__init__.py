"""
BOS Discount Engine - Public API
=================================
Rule-driven cart discounts: conditions, actions, conflict
resolution and one-active-category exclusivity.

Read path:   DiscountEngine.calculate_discounts(cart, rules)
Write path:  resolve_category_exclusivity(rule, all_rules)
             CategoryExclusivityManager(repository).on_activate(rule)
Extension:   HandlerRegistry.register_condition / register_action
"""

from engines.discount.actions import compute_action
from engines.discount.categories import (
    ActivationOutcome,
    CategoryExclusivityManager,
    plan_deactivations,
    resolve_category_exclusivity,
)
from engines.discount.conditions import evaluate_condition
from engines.discount.conflicts import ACTION_FAMILIES, resolve_conflicts
from engines.discount.engine import DiscountEngine
from engines.discount.exceptions import (
    DiscountEngineError,
    DuplicateHandlerError,
    InvalidInputError,
    RegistryLockedError,
    RuleNotFoundError,
    UnknownHandlerError,
)
from engines.discount.registry import HandlerRegistry, build_default_registry
from engines.discount.repository import InMemoryRuleRepository, RuleRepository
from engines.discount.result import ActionOutcome, DiscountEvaluation, DiscountResult
from engines.discount.rules import Action, Condition, Rule
from engines.discount.services import RulesManager

__all__ = [
    "Action",
    "ActionOutcome",
    "ActivationOutcome",
    "ACTION_FAMILIES",
    "CategoryExclusivityManager",
    "Condition",
    "DiscountEngine",
    "DiscountEngineError",
    "DiscountEvaluation",
    "DiscountResult",
    "DuplicateHandlerError",
    "HandlerRegistry",
    "InMemoryRuleRepository",
    "InvalidInputError",
    "RegistryLockedError",
    "Rule",
    "RuleNotFoundError",
    "RuleRepository",
    "RulesManager",
    "UnknownHandlerError",
    "build_default_registry",
    "compute_action",
    "evaluate_condition",
    "plan_deactivations",
    "resolve_category_exclusivity",
    "resolve_conflicts",
]
