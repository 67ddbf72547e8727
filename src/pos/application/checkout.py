"""Application service: checkout.

Orchestrates the payment flow:

1. Snapshot the cart and negotiate discounts off the calling thread.
2. If the offer is non-trivial, let the operator apply all, pick a subset
   or skip.  A trivial offer skips the prompt entirely.
3. Apply the chosen discount, work out the tender and finalize.

Picking a subset is computed here, not by the service: the service only
prices the all-or-nothing case.  The subset total is therefore an
approximation that the server never re-validates.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from enum import Enum
from typing import Callable

from pos.application.cart_ledger import CartLedger
from pos.application.discount_negotiator import (
    DiscountNegotiator,
    Dispatcher,
    NegotiationResult,
    PendingNegotiation,
)
from pos.application.dto import SaleReceipt, TransactionSnapshot
from pos.application.tender import compute_tender
from pos.domain.exceptions import InvalidOperation, NoActiveTransaction, ValidationError
from pos.domain.model.discount import AppliedDiscount, DiscountOffer, DiscountSource
from pos.domain.model.sale import PaymentMethod
from pos.domain.model.value_objects import Money

logger = logging.getLogger(__name__)


class DiscountChoice(Enum):
    APPLY_ALL = "all"
    SUBSET = "subset"
    SKIP = "skip"


DecideDiscount = Callable[[DiscountOffer], tuple[DiscountChoice, list[int]]]


def choose_discount(
    offer: DiscountOffer,
    subtotal: Money,
    choice: DiscountChoice,
    selected: Iterable[int] = (),
) -> AppliedDiscount:
    """Turn the operator's decision into an AppliedDiscount.

    *selected* holds 0-based indexes into ``offer.qualifying_lines``.
    """
    if choice == DiscountChoice.SKIP:
        return AppliedDiscount.none()

    qualifying = offer.qualifying_lines

    if choice == DiscountChoice.APPLY_ALL:
        new_subtotal = offer.discounted_subtotal
        return AppliedDiscount(
            amount=subtotal.minus_floored(new_subtotal),
            descriptions=tuple(line.description for line in qualifying),
            source=DiscountSource.ALL,
        )

    indexes = sorted(set(selected))
    for index in indexes:
        if not 0 <= index < len(qualifying):
            raise ValidationError(f"No discount #{index + 1} in this offer")
    if not indexes:
        return AppliedDiscount.none()

    picked = [qualifying[i] for i in indexes]
    reduction = Money.zero()
    for line in picked:
        reduction = reduction + line.amount
    new_subtotal = subtotal.minus_floored(reduction)
    logger.info(
        "Partial discount: %d of %d rule(s), client subtotal %s "
        "(service all-rules subtotal %s)",
        len(picked),
        len(qualifying),
        new_subtotal,
        offer.discounted_subtotal,
    )
    return AppliedDiscount(
        amount=subtotal - new_subtotal,
        descriptions=tuple(line.description for line in picked),
        source=DiscountSource.SUBSET,
    )


def skip_discount(offer: DiscountOffer) -> tuple[DiscountChoice, list[int]]:
    return DiscountChoice.SKIP, []


class CheckoutHandler:
    """Runs the payment flow against one ledger.

    Negotiation happens on the negotiator's worker thread; the ledger is only
    touched by ``complete``, on the caller's thread.  Cancelling while the
    service is still thinking leaves the cart exactly as it was.
    """

    def __init__(self, ledger: CartLedger, negotiator: DiscountNegotiator) -> None:
        self._ledger = ledger
        self._negotiator = negotiator
        self._pending: PendingNegotiation | None = None

    @property
    def in_progress(self) -> bool:
        return self._pending is not None

    def negotiate(self) -> NegotiationResult:
        """Negotiate synchronously on the calling thread."""
        return self._negotiator.negotiate(self._checkout_snapshot())

    def begin(
        self,
        on_result: Callable[[NegotiationResult], None] | None = None,
        dispatch: Dispatcher | None = None,
    ) -> PendingNegotiation:
        """Start negotiating in the background.

        *on_result* is handed the outcome through *dispatch*.  A payment
        already in flight is abandoned first.
        """
        snapshot = self._checkout_snapshot()
        self.cancel_payment()
        self._pending = self._negotiator.submit(snapshot, on_result, dispatch)
        return self._pending

    def cancel_payment(self) -> bool:
        """Abandon the negotiation in flight.  Returns False if there was none."""
        pending, self._pending = self._pending, None
        if pending is None:
            return False
        pending.abandon()
        logger.info("Payment cancelled; cart left unchanged")
        return True

    def resolve_discount(
        self,
        result: NegotiationResult,
        decide: DecideDiscount = skip_discount,
    ) -> AppliedDiscount:
        """Ask *decide* only when there is something worth offering."""
        offer = result.offer
        if offer is None:
            logger.warning(
                "Proceeding without discount (%s)", result.error or "service unavailable"
            )
            return AppliedDiscount.none()

        if offer.is_trivial:
            return AppliedDiscount.none()

        choice, selected = decide(offer)
        return choose_discount(offer, self._ledger.totals.subtotal, choice, selected)

    def complete(
        self,
        applied: AppliedDiscount,
        method: PaymentMethod = PaymentMethod.CARD,
        amount: str | None = None,
    ) -> SaleReceipt:
        self._pending = None
        totals = self._ledger.apply_discount(applied)
        tender = compute_tender(totals.grand_total, method, amount)
        return self._ledger.finalize(tender=tender)

    def checkout(
        self,
        decide: DecideDiscount = skip_discount,
        method: PaymentMethod = PaymentMethod.CARD,
        amount: str | None = None,
        timeout: float | None = None,
    ) -> SaleReceipt:
        """Run the whole payment flow, blocking until it is done.

        Raises InvalidOperation if the payment is cancelled meanwhile.
        """
        result = self.begin().wait(timeout)
        if result is None:
            raise InvalidOperation("Payment was cancelled")
        applied = self.resolve_discount(result, decide)
        return self.complete(applied, method, amount)

    def _checkout_snapshot(self) -> TransactionSnapshot:
        snapshot = self._ledger.snapshot()
        if snapshot.is_empty:
            raise NoActiveTransaction("No active transaction to complete")
        return snapshot
