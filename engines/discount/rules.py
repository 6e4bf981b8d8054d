"""
BOS Discount Engine - Rule Model
=================================
A Rule pairs one Condition with one Action, plus metadata
(priority, category, active flag).

Rules are frozen. Changing a rule means building a new value
(see Rule.with_changes); the repository stores whole snapshots.

Construction validates field TYPES only. Rule CONTENT (unknown
condition type, non-numeric value, missing param) is tolerated here
and degrades at evaluation time, so one bad record can never stop
the rest of a rule set from loading.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

# ── Built-in condition types ──────────────────────────────────
CONDITION_CART_TOTAL = "cart_total"
CONDITION_ITEM_COUNT = "item_count"
CONDITION_SPECIFIC_PRODUCT = "specific_product"
CONDITION_PRODUCT_COUNT = "product_count"

BUILTIN_CONDITION_TYPES = (
    CONDITION_CART_TOTAL,
    CONDITION_ITEM_COUNT,
    CONDITION_SPECIFIC_PRODUCT,
    CONDITION_PRODUCT_COUNT,
)

# ── Built-in action types ─────────────────────────────────────
ACTION_PERCENTAGE_DISCOUNT = "percentage_discount"
ACTION_FIXED_DISCOUNT = "fixed_discount"
ACTION_FREE_SHIPPING = "free_shipping"
ACTION_CHEAPEST_FREE = "cheapest_free"
ACTION_MOST_EXPENSIVE_FREE = "most_expensive_free"
ACTION_NTH_CHEAPEST_FREE = "nth_cheapest_free"
ACTION_NTH_EXPENSIVE_FREE = "nth_expensive_free"

BUILTIN_ACTION_TYPES = (
    ACTION_PERCENTAGE_DISCOUNT,
    ACTION_FIXED_DISCOUNT,
    ACTION_FREE_SHIPPING,
    ACTION_CHEAPEST_FREE,
    ACTION_MOST_EXPENSIVE_FREE,
    ACTION_NTH_CHEAPEST_FREE,
    ACTION_NTH_EXPENSIVE_FREE,
)

DEFAULT_PRIORITY = 10

# Form and option values accepted for boolean record fields.
_TRUE_STRINGS = frozenset({"1", "true", "yes", "on"})
_FALSE_STRINGS = frozenset({"0", "false", "", "no", "off"})


def _normalize_type(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip().lower()


def _freeze_params(params: Optional[Mapping[str, Any]]) -> dict:
    if not params:
        return {}
    if not isinstance(params, Mapping):
        return {}
    return {str(k): v for k, v in params.items()}


# ══════════════════════════════════════════════════════════════
# CONDITION / ACTION
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Condition:
    """Predicate over a cart. value/params are interpreted by the handler."""

    type: str
    value: Any = None
    params: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "type", _normalize_type(self.type))
        object.__setattr__(self, "params", _freeze_params(self.params))


@dataclass(frozen=True)
class Action:
    """
    Discount computation strategy.

    exclusive: when the action produces a discount, lower-priority
    rules are not evaluated in the same pass.
    """

    type: str
    value: Any = None
    params: Mapping[str, Any] = field(default_factory=dict)
    exclusive: bool = False

    def __post_init__(self):
        object.__setattr__(self, "type", _normalize_type(self.type))
        object.__setattr__(self, "params", _freeze_params(self.params))
        if not isinstance(self.exclusive, bool):
            raise ValueError("exclusive must be a bool.")


# ══════════════════════════════════════════════════════════════
# RULE
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Rule:
    """
    One configured promotion rule.

    Fields:
        id:           0 until the repository assigns one.
        name:         Display string, not interpreted.
        description:  Display string, not interpreted.
        category:     Exclusivity group. Defaults to condition type.
        priority:     Lower value is evaluated first.
        active:       Only active rules are evaluated.
        condition:    When the rule applies.
        action:       What the rule gives.
    """

    condition: Condition
    action: Action
    id: int = 0
    name: str = ""
    description: str = ""
    category: str = ""
    priority: int = DEFAULT_PRIORITY
    active: bool = True

    def __post_init__(self):
        if isinstance(self.id, bool) or not isinstance(self.id, int):
            raise ValueError("id must be int.")
        if self.id < 0:
            raise ValueError("id cannot be negative.")

        if isinstance(self.priority, bool) or not isinstance(self.priority, int):
            raise ValueError("priority must be int.")

        if not isinstance(self.active, bool):
            raise ValueError("active must be a bool.")

        if not isinstance(self.condition, Condition):
            raise TypeError("condition must be Condition.")
        if not isinstance(self.action, Action):
            raise TypeError("action must be Action.")

        category = (self.category or "").strip()
        if not category:
            category = self.condition.type
        object.__setattr__(self, "category", category)
        object.__setattr__(self, "name", self.name or "")
        object.__setattr__(self, "description", self.description or "")

    @property
    def resolved_category(self) -> str:
        return self.category or self.condition.type

    @property
    def is_well_formed(self) -> bool:
        """Both a condition type and an action type are declared."""
        return bool(self.condition.type) and bool(self.action.type)

    @property
    def display_name(self) -> str:
        return self.name or f"Rule #{self.id}"

    def with_changes(self, **changes) -> Rule:
        return dataclasses.replace(self, **changes)

    # ══════════════════════════════════════════════════════════
    # SERIALIZATION (flat record format of the rule store)
    # ══════════════════════════════════════════════════════════

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "priority": self.priority,
            "active": self.active,
            "condition_type": self.condition.type,
            "condition_value": self.condition.value,
            "condition_params": dict(self.condition.params),
            "action_type": self.action.type,
            "action_value": self.action.value,
            "action_params": dict(self.action.params),
            "exclusive": self.action.exclusive,
        }

    @classmethod
    def from_dict(
        cls, data: Mapping[str, Any], default_priority: int = DEFAULT_PRIORITY,
    ) -> Rule:
        """
        Build a Rule from a stored record.

        Numeric strings for id/priority and "0"/"1", "true"/"false",
        "yes"/"no", "on"/"off" for active/exclusive are accepted, as
        records coming from forms usually carry them. Anything else
        raises ValueError.
        """
        def _int_field(key: str, default: int) -> int:
            raw = data.get(key)
            if raw is None or raw == "":
                return default
            if isinstance(raw, bool):
                raise ValueError(f"{key} must be int.")
            try:
                return int(raw)
            except (TypeError, ValueError):
                raise ValueError(f"{key} must be int, got {raw!r}.") from None

        def _bool_field(key: str, default: bool) -> bool:
            raw = data.get(key)
            if raw is None:
                return default
            if isinstance(raw, bool):
                return raw
            if isinstance(raw, int) and raw in (0, 1):
                return bool(raw)
            text = str(raw).strip().lower()
            if text in _TRUE_STRINGS:
                return True
            if text in _FALSE_STRINGS:
                return False
            raise ValueError(f"{key} must be a boolean, got {raw!r}.")

        return cls(
            id=_int_field("id", 0),
            name=str(data.get("name") or ""),
            description=str(data.get("description") or ""),
            category=str(data.get("category") or ""),
            priority=_int_field("priority", default_priority),
            active=_bool_field("active", True),
            condition=Condition(
                type=data.get("condition_type"),
                value=data.get("condition_value"),
                params=data.get("condition_params") or {},
            ),
            action=Action(
                type=data.get("action_type"),
                value=data.get("action_value"),
                params=data.get("action_params") or {},
                exclusive=_bool_field("exclusive", False),
            ),
        )
