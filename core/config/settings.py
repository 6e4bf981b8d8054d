"""
BOS Core Config - Discount Engine Settings
===========================================
Doctrine: no magic numbers in engine logic.
Rounding, default priority and legacy thresholds come from
admin-configurable data, not from source code.
"""

from __future__ import annotations

import decimal
import os
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping, Optional, Protocol

from core.primitives.money import DEFAULT_QUANTUM, parse_decimal

VALID_ROUNDING_MODES = frozenset({
    decimal.ROUND_CEILING,
    decimal.ROUND_DOWN,
    decimal.ROUND_FLOOR,
    decimal.ROUND_HALF_DOWN,
    decimal.ROUND_HALF_EVEN,
    decimal.ROUND_HALF_UP,
    decimal.ROUND_UP,
    decimal.ROUND_05UP,
})

ENV_ROUNDING_QUANTUM = "DISCOUNT_ROUNDING_QUANTUM"
ENV_ROUNDING = "DISCOUNT_ROUNDING"
ENV_DEFAULT_PRIORITY = "DISCOUNT_DEFAULT_PRIORITY"
ENV_LEGACY_MIN_ITEMS = "DISCOUNT_LEGACY_MIN_ITEMS"


# ══════════════════════════════════════════════════════════════
# DISCOUNT SETTINGS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class DiscountSettings:
    """
    Engine-wide settings.

    rounding_quantum:  Output precision for amounts (0.01 = cents).
    rounding:          decimal rounding mode applied at output.
    default_priority:  Priority given to rules that do not declare one.
    legacy_min_items:  Group size for the legacy "buy N, cheapest free" action.
    """

    rounding_quantum: Decimal = DEFAULT_QUANTUM
    rounding: str = ROUND_HALF_UP
    default_priority: int = 10
    legacy_min_items: int = 4

    def __post_init__(self) -> None:
        quantum = parse_decimal(self.rounding_quantum)
        if quantum is None or quantum <= 0:
            raise ValueError(
                f"rounding_quantum must be a positive number, "
                f"got {self.rounding_quantum!r}."
            )
        object.__setattr__(self, "rounding_quantum", quantum)

        if self.rounding not in VALID_ROUNDING_MODES:
            raise ValueError(
                f"rounding '{self.rounding}' not valid. "
                f"Must be one of: {sorted(VALID_ROUNDING_MODES)}"
            )

        if isinstance(self.default_priority, bool) or not isinstance(
            self.default_priority, int
        ):
            raise ValueError("default_priority must be int.")

        if (
            isinstance(self.legacy_min_items, bool)
            or not isinstance(self.legacy_min_items, int)
            or self.legacy_min_items < 1
        ):
            raise ValueError("legacy_min_items must be a positive int.")


def settings_from_env(
    environ: Optional[Mapping[str, str]] = None,
) -> DiscountSettings:
    """
    Build settings from environment variables.

    Unset variables keep their defaults. Set-but-invalid values raise
    ValueError at startup rather than surfacing mid-request.
    """
    env = os.environ if environ is None else environ
    defaults = DiscountSettings()

    def _int(key: str, default: int) -> int:
        raw = env.get(key)
        if raw is None or raw.strip() == "":
            return default
        try:
            return int(raw)
        except ValueError:
            raise ValueError(f"{key} must be an integer, got {raw!r}.") from None

    return DiscountSettings(
        rounding_quantum=env.get(ENV_ROUNDING_QUANTUM) or defaults.rounding_quantum,
        rounding=env.get(ENV_ROUNDING) or defaults.rounding,
        default_priority=_int(ENV_DEFAULT_PRIORITY, defaults.default_priority),
        legacy_min_items=_int(ENV_LEGACY_MIN_ITEMS, defaults.legacy_min_items),
    )


# ══════════════════════════════════════════════════════════════
# SETTINGS STORE PROTOCOL
# ══════════════════════════════════════════════════════════════

class SettingsStore(Protocol):
    """
    Protocol for admin-configured settings storage.

    Implementations may back this with a database, file, or in-memory store.
    """

    def get_settings(self) -> DiscountSettings:
        ...  # pragma: no cover


# ══════════════════════════════════════════════════════════════
# IN-MEMORY SETTINGS STORE (for testing / bootstrap)
# ══════════════════════════════════════════════════════════════

class InMemorySettingsStore:
    """Simple in-memory settings store for testing and bootstrap."""

    def __init__(self, settings: Optional[DiscountSettings] = None) -> None:
        self._settings = settings or DiscountSettings()

    def get_settings(self) -> DiscountSettings:
        return self._settings

    def set_settings(self, settings: DiscountSettings) -> None:
        if not isinstance(settings, DiscountSettings):
            raise TypeError(
                f"Expected DiscountSettings, got {type(settings).__name__}."
            )
        self._settings = settings
