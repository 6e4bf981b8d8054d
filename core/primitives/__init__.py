"""
BOS Core Primitives - Reusable Building Blocks
===============================================
Shared, engine-agnostic building blocks consumed by the discount
engine. They are:

- Pure Python (no framework dependency)
- Immutable (frozen dataclasses)
- Deterministic (same input -> same output)

Primitives:
    money  - Decimal parsing, clamping and output rounding
    cart   - Read-only cart snapshot (CartView / CartLine)
"""
