"""Data Transfer Objects — plain containers that cross layer boundaries.

DTOs carry data between the CLI (or any renderer) and the application
layer without exposing the Transaction aggregate itself.  Amounts stay as
Money so the discount request can be built from a snapshot; renderers format
them with ``str()``.
"""

from __future__ import annotations

from dataclasses import dataclass

from pos.domain.model.value_objects import Money


@dataclass(frozen=True)
class CartLineDTO:
    """One cart line as displayed to the operator."""

    code: str
    description: str
    quantity: int
    unit_price: Money
    line_total: Money


@dataclass(frozen=True)
class TransactionSnapshot:
    """Point-in-time view of the live cart and its totals."""

    state: str
    lines: list[CartLineDTO]
    subtotal: Money
    discount: Money
    discounted_subtotal: Money
    tax: Money
    grand_total: Money
    discount_descriptions: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.lines

    @property
    def unit_count(self) -> int:
        return sum(line.quantity for line in self.lines)


@dataclass(frozen=True)
class SaleReceipt:
    """Output of a successful finalize."""

    sale_id: int
    lines: list[CartLineDTO]
    subtotal: Money
    discount: Money
    tax: Money
    total: Money
    payment_method: str
    tendered: Money
    change: Money
    sold_at: str


@dataclass(frozen=True)
class HeldOrderDTO:

    id: int
    held_at: str
    total: str
    line_count: int
    unit_count: int
