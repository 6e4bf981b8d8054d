"""
BOS Discount Engine - Handler Registry
=======================================
Central registry for condition evaluators and action calculators.

Responsibilities:
- Map a condition type to its evaluator
- Map an action type to its calculator and conflict family
- Enforce unique handler names
- Lock after bootstrap

Built-in types are pre-registered by build_default_registry().
Extension types are registered explicitly by the host:

    registry = build_default_registry()
    registry.register_condition("customer_tag", has_tag, label="Customer Tag")
    registry.register_action("gift_card", gift_card_amount, family="fixed")
    registry.lock()

No dynamic imports. No string switches in the engine.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from threading import Lock
from typing import Any, Callable, Dict, Optional

from core.primitives.cart import CartView
from engines.discount.actions import BUILTIN_ACTIONS
from engines.discount.conditions import BUILTIN_CONDITIONS
from engines.discount.conflicts import ACTION_FAMILIES
from engines.discount.exceptions import (
    DuplicateHandlerError,
    RegistryLockedError,
    UnknownHandlerError,
)
from engines.discount.rules import Action, Condition

logger = logging.getLogger("bos.discount.registry")

ConditionEvaluatorFn = Callable[[Condition, CartView], bool]
ActionCalculatorFn = Callable[[Action, CartView], Any]

KIND_CONDITION = "condition"
KIND_ACTION = "action"


def humanize_type(type_name: str) -> str:
    """'most_expensive_free' -> 'Most expensive free'."""
    text = type_name.replace("_", " ").strip()
    return text[:1].upper() + text[1:]


@dataclass(frozen=True)
class ConditionHandler:
    name: str
    evaluator: ConditionEvaluatorFn
    label: str


@dataclass(frozen=True)
class ActionHandler:
    name: str
    calculator: ActionCalculatorFn
    label: str
    family: str


class HandlerRegistry:
    """
    Registry of condition and action handlers.

    Thread-safe. Lock-after-bootstrap.
    """

    def __init__(self):
        self._conditions: Dict[str, ConditionHandler] = {}
        self._actions: Dict[str, ActionHandler] = {}
        self._locked: bool = False
        self._lock = Lock()

    # ══════════════════════════════════════════════════════════
    # REGISTRATION
    # ══════════════════════════════════════════════════════════

    def register_condition(
        self,
        name: str,
        evaluator: ConditionEvaluatorFn,
        label: str = "",
    ) -> None:
        """
        Register a condition evaluator.

        Args:
            name:       Condition type key (normalized to lowercase).
            evaluator:  (condition, cart) -> bool. Must be pure.
            label:      Display label; humanized name when empty.
        """
        key = self._validate(name, evaluator)
        handler = ConditionHandler(
            name=key, evaluator=evaluator, label=label or humanize_type(key)
        )

        with self._lock:
            if self._locked:
                raise RegistryLockedError()
            if key in self._conditions:
                raise DuplicateHandlerError(KIND_CONDITION, key)
            self._conditions[key] = handler

        logger.info(f"Condition handler registered: {key}")

    def register_action(
        self,
        name: str,
        calculator: ActionCalculatorFn,
        label: str = "",
        family: Optional[str] = None,
    ) -> None:
        """
        Register an action calculator.

        Args:
            name:        Action type key (normalized to lowercase).
            calculator:  (action, cart) -> ActionOutcome | number. Must be pure.
            label:       Display label; humanized name when empty.
            family:      Conflict family. Defaults to the built-in table,
                         then to the action's own name.
        """
        key = self._validate(name, calculator)
        resolved_family = family or ACTION_FAMILIES.get(key, key)
        handler = ActionHandler(
            name=key,
            calculator=calculator,
            label=label or humanize_type(key),
            family=resolved_family,
        )

        with self._lock:
            if self._locked:
                raise RegistryLockedError()
            if key in self._actions:
                raise DuplicateHandlerError(KIND_ACTION, key)
            self._actions[key] = handler

        logger.info(f"Action handler registered: {key} family={resolved_family}")

    @staticmethod
    def _validate(name: str, fn: Callable) -> str:
        if not name or not isinstance(name, str) or not name.strip():
            raise ValueError("handler name must be a non-empty string.")
        if not callable(fn):
            raise TypeError(
                f"Handler for '{name}' must be callable, "
                f"got {type(fn).__name__}."
            )
        return name.strip().lower()

    def lock(self) -> None:
        with self._lock:
            if not self._locked:
                self._locked = True
                logger.info(
                    f"Discount handler registry LOCKED - "
                    f"{len(self._conditions)} conditions, "
                    f"{len(self._actions)} actions"
                )

    @property
    def is_locked(self) -> bool:
        with self._lock:
            return self._locked

    # ══════════════════════════════════════════════════════════
    # QUERIES
    # ══════════════════════════════════════════════════════════

    def get_condition(self, name: str) -> Optional[ConditionHandler]:
        with self._lock:
            return self._conditions.get(name)

    def get_action(self, name: str) -> Optional[ActionHandler]:
        with self._lock:
            return self._actions.get(name)

    def require_condition(self, name: str) -> ConditionHandler:
        handler = self.get_condition(name)
        if handler is None:
            raise UnknownHandlerError(KIND_CONDITION, name)
        return handler

    def require_action(self, name: str) -> ActionHandler:
        handler = self.get_action(name)
        if handler is None:
            raise UnknownHandlerError(KIND_ACTION, name)
        return handler

    def families(self) -> Dict[str, str]:
        """action type -> conflict family, for every registered action."""
        with self._lock:
            return {name: h.family for name, h in self._actions.items()}

    def condition_types(self) -> Dict[str, str]:
        """condition type -> label, in registration order."""
        with self._lock:
            return {name: h.label for name, h in self._conditions.items()}

    def action_types(self) -> Dict[str, str]:
        """action type -> label, in registration order."""
        with self._lock:
            return {name: h.label for name, h in self._actions.items()}

    def condition_label(self, name: str) -> str:
        handler = self.get_condition(name)
        return handler.label if handler else humanize_type(name)

    def action_label(self, name: str) -> str:
        handler = self.get_action(name)
        return handler.label if handler else humanize_type(name)


# ══════════════════════════════════════════════════════════════
# DEFAULT REGISTRY
# ══════════════════════════════════════════════════════════════

def build_default_registry() -> HandlerRegistry:
    """Fresh, unlocked registry with every built-in type registered."""
    registry = HandlerRegistry()
    for name, (evaluator, label) in BUILTIN_CONDITIONS.items():
        registry.register_condition(name, evaluator, label=label)
    for name, (calculator, label) in BUILTIN_ACTIONS.items():
        registry.register_action(name, calculator, label=label)
    return registry
