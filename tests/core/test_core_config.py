"""
Tests for core.config - Admin-configurable discount settings.
"""

from decimal import ROUND_HALF_EVEN, ROUND_HALF_UP, Decimal

import pytest

from core.config.settings import (
    DiscountSettings,
    InMemorySettingsStore,
    settings_from_env,
)


# ── DiscountSettings Tests ───────────────────────────────────

class TestDiscountSettings:
    def test_defaults(self):
        settings = DiscountSettings()
        assert settings.rounding_quantum == Decimal("0.01")
        assert settings.rounding == ROUND_HALF_UP
        assert settings.default_priority == 10
        assert settings.legacy_min_items == 4

    def test_quantum_from_string(self):
        settings = DiscountSettings(rounding_quantum="0.05")
        assert settings.rounding_quantum == Decimal("0.05")

    def test_invalid_quantum(self):
        with pytest.raises(ValueError, match="rounding_quantum"):
            DiscountSettings(rounding_quantum="0")

    def test_invalid_rounding_mode(self):
        with pytest.raises(ValueError, match="not valid"):
            DiscountSettings(rounding="ROUND_SIDEWAYS")

    def test_invalid_legacy_min_items(self):
        with pytest.raises(ValueError, match="legacy_min_items"):
            DiscountSettings(legacy_min_items=0)

    def test_frozen_immutability(self):
        settings = DiscountSettings()
        with pytest.raises(AttributeError):
            settings.default_priority = 1


# ── Environment Loading Tests ────────────────────────────────

class TestSettingsFromEnv:
    def test_empty_env_keeps_defaults(self):
        assert settings_from_env({}) == DiscountSettings()

    def test_reads_all_keys(self):
        settings = settings_from_env({
            "DISCOUNT_ROUNDING_QUANTUM": "0.1",
            "DISCOUNT_ROUNDING": ROUND_HALF_EVEN,
            "DISCOUNT_DEFAULT_PRIORITY": "20",
            "DISCOUNT_LEGACY_MIN_ITEMS": "3",
        })
        assert settings.rounding_quantum == Decimal("0.1")
        assert settings.rounding == ROUND_HALF_EVEN
        assert settings.default_priority == 20
        assert settings.legacy_min_items == 3

    def test_non_integer_priority_fails_fast(self):
        with pytest.raises(ValueError, match="DISCOUNT_DEFAULT_PRIORITY"):
            settings_from_env({"DISCOUNT_DEFAULT_PRIORITY": "high"})


# ── InMemorySettingsStore Tests ──────────────────────────────

class TestInMemorySettingsStore:
    def test_default_settings(self):
        store = InMemorySettingsStore()
        assert store.get_settings() == DiscountSettings()

    def test_set_settings(self):
        store = InMemorySettingsStore()
        store.set_settings(DiscountSettings(default_priority=5))
        assert store.get_settings().default_priority == 5

    def test_set_settings_rejects_other_types(self):
        store = InMemorySettingsStore()
        with pytest.raises(TypeError):
            store.set_settings({"default_priority": 5})
