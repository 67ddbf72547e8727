"""Domain service: cart pricing.

Rounding order is fixed and must not change, otherwise totals drift by a
cent against previously recorded sales:

    round(subtotal) -> subtract discount (floored at 0) -> round
    -> tax on that rounded amount -> round(tax) -> round(sum)
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal

from pos.domain.model.value_objects import Money
from pos.domain.repository.price_book import PriceBook

TAX_RATE = Decimal("0.07")


@dataclass(frozen=True)
class Totals:

    subtotal: Money
    discount: Money
    discounted_subtotal: Money
    tax: Money
    grand_total: Money

    @staticmethod
    def empty() -> Totals:
        zero = Money.zero()
        return Totals(zero, zero, zero, zero, zero)


def compute_tax(amount: Money, rate: Decimal = TAX_RATE) -> Money:
    return (amount * rate).rounded()


def line_total(unit_price: Money, quantity: int) -> Money:
    return (unit_price * quantity).rounded()


def raw_subtotal(lines: Mapping[str, int], price_book: PriceBook) -> Money:
    """Unrounded sum of price x quantity; unknown codes contribute nothing."""
    total = Money.zero()
    for code, quantity in lines.items():
        item = price_book.get(code)
        if item is not None:
            total = total + item.unit_price * quantity
    return total


def compute_totals(
    lines: Mapping[str, int],
    price_book: PriceBook,
    discount: Money | None = None,
    tax_rate: Decimal = TAX_RATE,
) -> Totals:
    subtotal = raw_subtotal(lines, price_book).rounded()
    discounted = subtotal.minus_floored(discount or Money.zero()).rounded()
    tax = compute_tax(discounted, tax_rate)
    return Totals(
        subtotal=subtotal,
        discount=subtotal - discounted,
        discounted_subtotal=discounted,
        tax=tax,
        grand_total=(discounted + tax).rounded(),
    )
