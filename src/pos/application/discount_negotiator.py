"""Application service: discount negotiation.

Turns a cart snapshot into a discount request, asks the external service and
hands back a structured result.  It never mutates the ledger; the checkout
flow decides what, if anything, to apply.

The service call is the only slow operation in the register, so ``submit``
runs it on a worker thread and delivers the result back through a
caller-supplied dispatcher (typically the UI's "run on event thread").  A
negotiation the operator walked away from is abandoned and its late result
is dropped.
"""

from __future__ import annotations

import logging
from concurrent.futures import CancelledError, Executor, Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass
from typing import Callable

from pos.application.dto import TransactionSnapshot
from pos.domain.exceptions import DiscountServiceUnavailable
from pos.domain.model.discount import DiscountOffer
from pos.domain.repository.discount_service import DiscountRequestLine, DiscountService

logger = logging.getLogger(__name__)

Dispatcher = Callable[[Callable[[], None]], None]


def _run_inline(fn: Callable[[], None]) -> None:
    fn()


@dataclass(frozen=True)
class NegotiationResult:
    """Either an offer, or the reason the service was unavailable."""

    offer: DiscountOffer | None
    error: str | None = None

    @property
    def available(self) -> bool:
        return self.offer is not None

    @staticmethod
    def unavailable(reason: str) -> NegotiationResult:
        return NegotiationResult(offer=None, error=reason)


def build_request(snapshot: TransactionSnapshot) -> list[DiscountRequestLine]:
    """Request lines for every cart line with a positive quantity."""
    return [
        DiscountRequestLine(
            code=line.code,
            description=line.description,
            unit_price=line.unit_price,
            quantity=line.quantity,
        )
        for line in snapshot.lines
        if line.quantity > 0
    ]


def _outcome(future: Future, timeout: float | None = None) -> NegotiationResult:
    """The future's result, with an unexpected service error read as unavailable."""
    try:
        return future.result(timeout=timeout)
    except (CancelledError, FutureTimeout):
        raise
    except Exception as exc:
        logger.error("Discount negotiation failed: %s", exc, exc_info=exc)
        return NegotiationResult.unavailable(str(exc) or type(exc).__name__)


class PendingNegotiation:
    """A negotiation running in the background."""

    def __init__(
        self,
        future: Future,
        on_result: Callable[[NegotiationResult], None] | None,
        dispatch: Dispatcher,
    ) -> None:
        self._future = future
        self._on_result = on_result
        self._dispatch = dispatch
        self._abandoned = False
        future.add_done_callback(self._deliver)

    @property
    def abandoned(self) -> bool:
        return self._abandoned

    @property
    def done(self) -> bool:
        return self._future.done()

    def abandon(self) -> None:
        """Give up on this negotiation; any later result is discarded."""
        self._abandoned = True
        self._future.cancel()
        logger.info("Discount negotiation abandoned")

    def wait(self, timeout: float | None = None) -> NegotiationResult | None:
        """Block until the result is in.  Returns None once abandoned.

        Running out of time abandons the negotiation, so a late offer never
        reaches ``on_result`` after the caller went ahead without it.
        """
        if self._abandoned:
            return None
        try:
            result = _outcome(self._future, timeout)
        except CancelledError:
            return None
        except FutureTimeout:
            logger.warning("Discount negotiation did not finish within %ss", timeout)
            self.abandon()
            return NegotiationResult.unavailable("timed out")
        return None if self._abandoned else result

    def _deliver(self, future: Future) -> None:
        if self._abandoned or future.cancelled():
            return
        result = _outcome(future)

        def hand_over() -> None:
            # Checked again on the receiving thread: abandon may have won.
            if self._abandoned:
                logger.info("Discarding discount result that arrived after abandon")
                return
            if self._on_result is not None:
                self._on_result(result)

        self._dispatch(hand_over)


class DiscountNegotiator:

    def __init__(
        self,
        service: DiscountService,
        executor: Executor | None = None,
    ) -> None:
        self._service = service
        self._executor = executor
        self._owns_executor = executor is None

    def negotiate(self, snapshot: TransactionSnapshot) -> NegotiationResult:
        """Call the service synchronously."""
        request = build_request(snapshot)
        if not request:
            return NegotiationResult.unavailable("nothing to discount")
        try:
            offer = self._service.calculate(request)
        except DiscountServiceUnavailable as exc:
            logger.warning("Discount service unavailable: %s", exc)
            return NegotiationResult.unavailable(str(exc))
        logger.info(
            "Discount offer: %d rule(s), total %s, discounted subtotal %s",
            len(offer.qualifying_lines),
            offer.total_discount,
            offer.discounted_subtotal,
        )
        return NegotiationResult(offer=offer)

    def submit(
        self,
        snapshot: TransactionSnapshot,
        on_result: Callable[[NegotiationResult], None] | None = None,
        dispatch: Dispatcher | None = None,
    ) -> PendingNegotiation:
        """Run ``negotiate`` on a worker thread."""
        future = self._get_executor().submit(self.negotiate, snapshot)
        return PendingNegotiation(future, on_result, dispatch or _run_inline)

    def shutdown(self) -> None:
        if self._owns_executor and self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None

    def _get_executor(self) -> Executor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=1, thread_name_prefix="discount"
            )
        return self._executor
