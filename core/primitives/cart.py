"""
BOS Cart Primitive - Read-Only Cart Snapshot
=============================================
Normalized view of a shopping cart as consumed by the discount engine.

The host storefront owns the real cart. An adapter (outside this
package) maps it to a CartView:
- bundled child lines are dropped before the view is built
- prices are per unit, quantities are whole units
- subtotal / item_count may be supplied by the host or derived here

CartView is immutable. The engine never mutates it and never keeps it
after a call returns.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Iterable, Optional, Tuple

from core.primitives.money import ZERO, parse_decimal, to_money


# ══════════════════════════════════════════════════════════════
# CART LINE
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CartLine:
    """
    One line of the cart.

    product_id is opaque (int or str). variation_id is set when the
    line is a product variation; conditions may match on either id.
    """

    product_id: Any
    unit_price: Decimal
    quantity: int
    variation_id: Optional[Any] = None

    def __post_init__(self):
        if self.product_id is None or self.product_id == "":
            raise ValueError("product_id must be set.")

        object.__setattr__(
            self, "unit_price", to_money(self.unit_price, "unit_price")
        )

        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise TypeError(
                f"quantity must be int, got {type(self.quantity).__name__}."
            )
        if self.quantity < 0:
            raise ValueError("quantity cannot be negative.")

    @property
    def line_subtotal(self) -> Decimal:
        return self.unit_price * self.quantity

    def matches_product(self, product_ref: Any) -> bool:
        """True if product_ref names this line's product or variation."""
        ref = str(product_ref)
        if str(self.product_id) == ref:
            return True
        return self.variation_id not in (None, "", 0) and str(self.variation_id) == ref

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "variation_id": self.variation_id,
            "unit_price": str(self.unit_price),
            "quantity": self.quantity,
        }


# ══════════════════════════════════════════════════════════════
# CART VIEW
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CartView:
    """
    Immutable cart snapshot.

    Fields:
        lines:       Ordered CartLine tuple (bundled children excluded).
        subtotal:    Non-negative amount. Derived from lines when None.
        item_count:  Total unit quantity. Derived from lines when None.
    """

    lines: Tuple[CartLine, ...] = field(default_factory=tuple)
    subtotal: Optional[Decimal] = None
    item_count: Optional[int] = None

    def __post_init__(self):
        lines = tuple(self.lines)
        for line in lines:
            if not isinstance(line, CartLine):
                raise TypeError(
                    f"Expected CartLine, got {type(line).__name__}."
                )
        object.__setattr__(self, "lines", lines)

        if self.subtotal is None:
            subtotal = sum((line.line_subtotal for line in lines), ZERO)
        else:
            subtotal = to_money(self.subtotal, "subtotal")
        object.__setattr__(self, "subtotal", subtotal)

        if self.item_count is None:
            item_count = sum(line.quantity for line in lines)
        else:
            item_count = self.item_count
            if isinstance(item_count, bool) or not isinstance(item_count, int):
                raise TypeError("item_count must be int.")
            if item_count < 0:
                raise ValueError("item_count cannot be negative.")
        object.__setattr__(self, "item_count", item_count)

    @classmethod
    def from_lines(
        cls,
        lines: Iterable[CartLine | dict],
        subtotal: Any = None,
        item_count: Optional[int] = None,
    ) -> CartView:
        """Build a view from CartLine objects or plain dicts."""
        built = []
        for line in lines:
            if isinstance(line, dict):
                line = CartLine(
                    product_id=line["product_id"],
                    unit_price=line["unit_price"],
                    quantity=line["quantity"],
                    variation_id=line.get("variation_id"),
                )
            built.append(line)
        return cls(lines=tuple(built), subtotal=subtotal, item_count=item_count)

    @classmethod
    def empty(cls) -> CartView:
        return cls()

    @property
    def is_empty(self) -> bool:
        return self.item_count == 0

    def distinct_product_ids(self) -> frozenset:
        """Product ids present with quantity > 0. Numeric ids <= 0 are placeholders and skipped."""
        ids = set()
        for line in self.lines:
            if line.quantity <= 0:
                continue
            numeric = parse_decimal(line.product_id)
            if numeric is not None and numeric <= ZERO:
                continue
            ids.add(line.product_id)
        return frozenset(ids)

    def to_dict(self) -> dict:
        return {
            "lines": [line.to_dict() for line in self.lines],
            "subtotal": str(self.subtotal),
            "item_count": self.item_count,
        }
