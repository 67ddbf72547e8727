"""Discount value objects.

A DiscountOffer is produced fresh by every negotiation with the discount
service and is never persisted.  An AppliedDiscount is what the operator
actually accepted; it is the only thing the ledger keeps.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pos.domain.model.value_objects import Money


@dataclass(frozen=True)
class DiscountLine:
    """One candidate rule.  ``amount`` is the reduction (positive = cheaper)."""

    description: str
    amount: Money


@dataclass(frozen=True)
class DiscountOffer:

    lines: tuple[DiscountLine, ...]
    total_discount: Money
    discounted_subtotal: Money

    @property
    def qualifying_lines(self) -> tuple[DiscountLine, ...]:
        """Lines worth showing to the operator (zero-amount rules dropped)."""
        return tuple(line for line in self.lines if not line.amount.is_zero)

    @property
    def is_trivial(self) -> bool:
        return self.total_discount.is_zero and not self.qualifying_lines


class DiscountSource(Enum):
    NONE = "NONE"
    ALL = "ALL"
    SUBSET = "SUBSET"


@dataclass(frozen=True)
class AppliedDiscount:
    """The reduction the operator accepted for this cart."""

    amount: Money
    descriptions: tuple[str, ...] = ()
    source: DiscountSource = DiscountSource.NONE

    @staticmethod
    def none() -> AppliedDiscount:
        return AppliedDiscount(amount=Money.zero())

    @property
    def is_zero(self) -> bool:
        return self.amount.is_zero
