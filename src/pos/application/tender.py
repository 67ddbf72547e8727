"""Application service: tendering.

Card payments and exact cash charge the grand total.  "Next dollar" rounds
the total up to the next whole dollar.  A custom cash amount is typed by the
operator and re-prompted on bad input.
"""

from __future__ import annotations

from decimal import ROUND_CEILING

from pos.domain.exceptions import InsufficientTender, NumberFormatInvalid
from pos.domain.model.sale import PaymentMethod, Tender
from pos.domain.model.value_objects import Money


def next_dollar(total: Money) -> Money:
    whole = total.amount.to_integral_value(rounding=ROUND_CEILING)
    return Money(whole, total.currency).rounded()


def compute_tender(
    grand_total: Money,
    method: PaymentMethod,
    amount: str | None = None,
) -> Tender:
    """Work out what is tendered and the change due.

    Raises NumberFormatInvalid for unparsable or negative custom amounts and
    InsufficientTender when the amount does not cover the total.
    """
    if method in (PaymentMethod.CARD, PaymentMethod.CASH_EXACT):
        tendered = grand_total
    elif method == PaymentMethod.CASH_NEXT_DOLLAR:
        tendered = next_dollar(grand_total)
    else:
        if amount is None or not amount.strip():
            raise NumberFormatInvalid("Enter the amount tendered")
        text = amount.strip().lstrip("$")
        if text.startswith("-"):
            raise NumberFormatInvalid(f"Amount tendered cannot be negative: {amount.strip()}")
        tendered = Money.of(text).rounded()

    if tendered < grand_total:
        raise InsufficientTender(
            f"Amount {tendered} is less than total {grand_total}"
        )
    return Tender(
        method=method,
        tendered=tendered,
        change=(tendered - grand_total).rounded(),
    )
