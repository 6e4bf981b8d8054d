"""
BOS Core Config - Public API
===============================
Admin-configurable discount engine settings.
Doctrine: no magic numbers in engine logic.
"""

from core.config.settings import (
    DiscountSettings,
    InMemorySettingsStore,
    SettingsStore,
    settings_from_env,
)

__all__ = [
    "DiscountSettings",
    "SettingsStore",
    "InMemorySettingsStore",
    "settings_from_env",
]
