"""
BOS Money Primitive - Decimal Monetary Amounts
===============================================
Shared helpers for monetary arithmetic used by the discount engine.

RULES (NON-NEGOTIABLE):
- All amounts are Decimal. No floats ever reach arithmetic.
- Floats coming from configuration are converted through str()
  so 0.1 stays 0.1 and not 0.1000000000000000055511151231257827.
- Rounding happens once, at output, via quantize_amount().
- NaN and Infinity are never valid amounts.

This file contains NO persistence logic.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

ZERO = Decimal("0")
ONE_HUNDRED = Decimal("100")
DEFAULT_QUANTUM = Decimal("0.01")


# ══════════════════════════════════════════════════════════════
# PARSING
# ══════════════════════════════════════════════════════════════

def parse_decimal(value: Any) -> Optional[Decimal]:
    """
    Parse a configured value into a finite Decimal.

    Returns None for anything that is not a number: None, bools,
    empty strings, garbage strings, NaN, Infinity. Never raises.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, Decimal):
        parsed = value
    elif isinstance(value, int):
        parsed = Decimal(value)
    elif isinstance(value, float):
        parsed = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            parsed = Decimal(text)
        except InvalidOperation:
            return None
    else:
        return None

    if not parsed.is_finite():
        return None
    return parsed


def to_money(value: Any, field_name: str = "amount") -> Decimal:
    """
    Strict conversion for data the engine consumes (cart prices, subtotals).

    Unlike parse_decimal(), invalid input raises: a cart with a broken
    price is a producer bug, not a rule misconfiguration.
    """
    parsed = parse_decimal(value)
    if parsed is None:
        raise ValueError(
            f"{field_name} must be a finite number, got {value!r}."
        )
    if parsed < 0:
        raise ValueError(f"{field_name} cannot be negative, got {parsed}.")
    return parsed


# ══════════════════════════════════════════════════════════════
# ARITHMETIC
# ══════════════════════════════════════════════════════════════

def clamp(value: Decimal, low: Decimal, high: Decimal) -> Decimal:
    return max(low, min(high, value))


def quantize_amount(
    amount: Decimal,
    quantum: Decimal = DEFAULT_QUANTUM,
    rounding: str = ROUND_HALF_UP,
) -> Decimal:
    """Round an amount to the configured quantum (output boundary only)."""
    return amount.quantize(quantum, rounding=rounding)
