"""Application service: a register session.

Wires the pieces together the way the register runs them:

    keystrokes -> InputClassifier -> committed code -> CartLedger.add_item
    checkout   -> CheckoutHandler -> SaleRecorder -> PopularityRanker.refresh

Lookup misses are logged and remembered for the operator; they never reach
the classifier.
"""

from __future__ import annotations

import logging
from typing import Callable

from pos.application.cart_ledger import CartLedger
from pos.application.checkout import CheckoutHandler, DecideDiscount, skip_discount
from pos.application.discount_negotiator import (
    Dispatcher,
    NegotiationResult,
    PendingNegotiation,
)
from pos.application.dto import SaleReceipt
from pos.domain.exceptions import ItemNotFound
from pos.domain.model.sale import PaymentMethod
from pos.domain.repository.sale_recorder import SaleRecorder
from pos.domain.service.input_classifier import ClassifierSettings, InputClassifier
from pos.domain.service.popularity_ranker import PopularityRanker
from pos.domain.service.scheduler import Scheduler

logger = logging.getLogger(__name__)


class RegisterSession:

    def __init__(
        self,
        ledger: CartLedger,
        ranker: PopularityRanker,
        sales: SaleRecorder,
        scheduler: Scheduler,
        checkout: CheckoutHandler | None = None,
        classifier_settings: ClassifierSettings | None = None,
        on_redraw: Callable[[], None] | None = None,
    ) -> None:
        self.ledger = ledger
        self.ranker = ranker
        self._sales = sales
        self._checkout = checkout
        self.classifier = InputClassifier(
            scheduler,
            on_commit=self._handle_code,
            settings=classifier_settings,
            on_redraw=on_redraw,
        )
        self.committed: list[str] = []
        self.not_found: list[str] = []

    def start(self) -> list[str]:
        """Load shortcut assignments from sales history."""
        return self.refresh_popularity()

    # --- Input ----------------------------------------------------------------

    def key(self, char: str, manual_entry_active: bool = False) -> None:
        self.classifier.feed(char, manual_entry_active=manual_entry_active)

    def manual_entry(self, text: str) -> str:
        """Code typed into the manual barcode field.  May raise InvalidCodeLength."""
        return self.classifier.inject(text)

    def quick_key(self, key: str) -> str | None:
        """Add the item bound to shortcut *key*; None if the slot is empty."""
        code = self.ranker.code_for(key)
        if code is None:
            logger.info("No shortcut bound to %s", key)
            return None
        return self.classifier.inject(code)

    # --- Checkout -------------------------------------------------------------

    def pay(
        self,
        decide: DecideDiscount = skip_discount,
        method: PaymentMethod = PaymentMethod.CARD,
        amount: str | None = None,
    ) -> SaleReceipt:
        """Negotiate, settle and refresh shortcuts, blocking until done."""
        receipt = self._require_checkout().checkout(decide, method, amount)
        self._after_sale()
        return receipt

    def begin_payment(
        self,
        on_result: Callable[[NegotiationResult], None] | None = None,
        dispatch: Dispatcher | None = None,
    ) -> PendingNegotiation:
        """Start negotiating discounts without blocking the event thread.

        The caller finishes with ``complete_payment`` once *on_result* fires,
        or backs out with ``cancel_payment``.
        """
        return self._require_checkout().begin(on_result, dispatch)

    def cancel_payment(self) -> bool:
        return self._require_checkout().cancel_payment()

    def complete_payment(
        self,
        result: NegotiationResult,
        decide: DecideDiscount = skip_discount,
        method: PaymentMethod = PaymentMethod.CARD,
        amount: str | None = None,
    ) -> SaleReceipt:
        checkout = self._require_checkout()
        applied = checkout.resolve_discount(result, decide)
        receipt = checkout.complete(applied, method, amount)
        self._after_sale()
        return receipt

    def refresh_popularity(self) -> list[str]:
        return self.ranker.refresh(self._sales.historical_counts())

    # --- Internal helpers -----------------------------------------------------

    def _require_checkout(self) -> CheckoutHandler:
        if self._checkout is None:
            raise RuntimeError("Register session has no checkout configured")
        return self._checkout

    def _after_sale(self) -> None:
        self.refresh_popularity()
        self.classifier.request_redraw()

    def _handle_code(self, code: str) -> None:
        try:
            self.ledger.add_item(code)
        except ItemNotFound:
            logger.warning("Item not found for UPC: %s", code)
            self.not_found.append(code)
        else:
            self.committed.append(code)
        self.classifier.request_redraw()
