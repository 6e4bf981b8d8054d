"""
BOS Discount Engine - Exceptions
=================================
Structured errors for discount engine operations.

These are call-level and bootstrap-level errors, NOT rule
misconfigurations. A badly configured rule never raises during
evaluation: it degrades to "condition not met" / "amount 0".
"""

from __future__ import annotations


class DiscountEngineError(Exception):
    """Base error for discount engine operations."""
    pass


class InvalidInputError(DiscountEngineError):
    """Call-level input is missing or of the wrong type."""

    def __init__(self, argument: str, message: str):
        self.argument = argument
        super().__init__(f"Invalid input '{argument}': {message}")


class DuplicateHandlerError(DiscountEngineError):
    """Condition or action handler with the same name already registered."""

    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        super().__init__(
            f"{kind.capitalize()} handler '{name}' is already registered."
        )


class UnknownHandlerError(DiscountEngineError):
    """No handler registered for the requested type."""

    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        super().__init__(f"No {kind} handler registered for '{name}'.")


class RegistryLockedError(DiscountEngineError):
    """Handler registry is locked. No modifications allowed."""

    def __init__(self):
        super().__init__(
            "Discount handler registry is locked after bootstrap. "
            "No dynamic handler registration allowed."
        )


class RuleNotFoundError(DiscountEngineError):
    """Rule id is not present in the repository."""

    def __init__(self, rule_id: int):
        self.rule_id = rule_id
        super().__init__(f"Rule #{rule_id} not found.")
