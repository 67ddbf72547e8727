"""Application service: the cart ledger.

The ledger is the single owner of the live Transaction.  Every mutation goes
through it, and every mutation recomputes totals, so what the operator sees
is always consistent with the lines.  It coordinates the price book, the
held-order store and the sale recorder; none of them ever touch the
Transaction directly.

All calls are expected on the register's event thread.  Nothing here blocks
on the network.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from pos.application.dto import CartLineDTO, HeldOrderDTO, SaleReceipt, TransactionSnapshot
from pos.domain.exceptions import (
    InsufficientTender,
    ItemNotFound,
    NoActiveTransaction,
    OrderNotFound,
    PersistenceFailed,
)
from pos.domain.model.discount import AppliedDiscount
from pos.domain.model.held_order import HeldOrder
from pos.domain.model.item import Item
from pos.domain.model.sale import PaymentMethod, Sale, SaleLine, Tender
from pos.domain.model.transaction import Transaction, TransactionState
from pos.domain.model.value_objects import Money
from pos.domain.repository.held_order_store import HeldOrderStore
from pos.domain.repository.price_book import PriceBook
from pos.domain.repository.sale_recorder import SaleRecorder
from pos.domain.service.pricing import TAX_RATE, Totals, compute_totals, line_total

logger = logging.getLogger(__name__)

UNKNOWN_ITEM = "(Unknown Item)"


class CartLedger:

    def __init__(
        self,
        price_book: PriceBook,
        held_orders: HeldOrderStore,
        sales: SaleRecorder,
        tax_rate: Decimal = TAX_RATE,
    ) -> None:
        self._price_book = price_book
        self._held_orders = held_orders
        self._sales = sales
        self._tax_rate = tax_rate
        self._transaction = Transaction()
        self._applied = AppliedDiscount.none()
        self._totals = Totals.empty()

    # --- Queries --------------------------------------------------------------

    @property
    def totals(self) -> Totals:
        return self._totals

    @property
    def state(self) -> TransactionState:
        return self._transaction.state

    @property
    def lines(self) -> dict[str, int]:
        return self._transaction.copy_lines()

    @property
    def is_empty(self) -> bool:
        return self._transaction.is_empty

    @property
    def applied_discount(self) -> AppliedDiscount:
        return self._applied

    def snapshot(self) -> TransactionSnapshot:
        return TransactionSnapshot(
            state=self._transaction.state.value,
            lines=self._line_dtos(),
            subtotal=self._totals.subtotal,
            discount=self._totals.discount,
            discounted_subtotal=self._totals.discounted_subtotal,
            tax=self._totals.tax,
            grand_total=self._totals.grand_total,
            discount_descriptions=self._applied.descriptions,
        )

    def held_orders(self) -> list[HeldOrderDTO]:
        return [
            HeldOrderDTO(
                id=order.id,  # type: ignore[arg-type]
                held_at=order.held_at.strftime("%Y-%m-%d %H:%M UTC"),
                total=str(order.total_at_hold_time),
                line_count=order.line_count,
                unit_count=order.unit_count,
            )
            for order in self._held_orders.list()
        ]

    # --- Cart mutations -------------------------------------------------------

    def add_item(self, code: str) -> Item:
        """Add one unit of *code*.  Raises ItemNotFound with the cart untouched."""
        item = self._price_book.get(code)
        if item is None:
            raise ItemNotFound(code)
        quantity = self._transaction.add(code)
        self._after_mutation()
        logger.info(
            "Added %s (%s) @ %s, qty now %d", code, item.description, item.unit_price, quantity
        )
        return item

    def set_quantity(self, code: str, quantity: int) -> None:
        """Replace a line's quantity; zero or less removes it.

        Only lines created by ``add_item`` can be changed.
        """
        self._transaction.set_quantity(code, quantity)
        self._after_mutation()
        logger.info("Quantity for %s set to %d", code, max(quantity, 0))

    def remove_all(self, code: str) -> int:
        """Void a line regardless of its quantity."""
        removed = self._transaction.remove_all(code)
        self._after_mutation()
        logger.info("[ITEM REMOVED] %s x%d removed from cart", code, removed)
        return removed

    def cancel(self) -> None:
        if self._transaction.is_empty:
            raise NoActiveTransaction("No active transaction to cancel")
        logger.info(
            "Transaction cancelled: %d line(s), subtotal %s, tax %s, total %s",
            len(self._transaction.lines),
            self._totals.subtotal,
            self._totals.tax,
            self._totals.grand_total,
        )
        self._transaction.clear()
        self._after_mutation()

    def apply_discount(self, applied: AppliedDiscount) -> Totals:
        """Record the discount the operator accepted for the current cart.

        The next cart mutation drops it again, since it was negotiated for
        different lines.
        """
        if self._transaction.is_empty:
            raise NoActiveTransaction("No active transaction to discount")
        self._applied = applied
        self._recompute()
        return self._totals

    # --- Hold / retrieve ------------------------------------------------------

    def hold(self) -> int:
        """Park the cart in the held-order store and return its id.

        If the store fails the cart stays as it is.
        """
        if self._transaction.is_empty:
            raise NoActiveTransaction("No active transaction to hold")

        order = HeldOrder(
            id=None,
            lines=self._transaction.copy_lines(),
            total_at_hold_time=self._totals.subtotal,
        )
        try:
            order_id = self._held_orders.persist(order)
        except PersistenceFailed:
            logger.error("Hold failed; cart kept in place")
            raise

        self._transaction.clear()
        self._after_mutation()
        logger.info("Order held successfully. Order ID: %d", order_id)
        return order_id

    def retrieve(self, order_id: int) -> HeldOrder:
        """Replace the live cart with a held order.

        Whatever was in the cart is discarded; the caller confirms that with
        the operator beforehand.
        """
        order = self._held_orders.retrieve(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        if not self._transaction.is_empty:
            logger.warning(
                "Discarding %d unsaved line(s) to retrieve order #%d",
                len(self._transaction.lines),
                order_id,
            )
        self._transaction.replace_lines(order.lines)
        self._after_mutation()
        logger.info("Order #%d retrieved (%d line(s))", order_id, order.line_count)
        return order

    # --- Finalize -------------------------------------------------------------

    def finalize(
        self,
        applied_discount: AppliedDiscount | None = None,
        tender: Tender | None = None,
    ) -> SaleReceipt:
        """Record the sale and clear the cart.

        Uses *applied_discount* if given, otherwise whatever was applied via
        ``apply_discount``.  Without a tender the exact total is charged.  On
        PersistenceFailed the cart is left intact so the operator can retry.
        """
        undiscounted = compute_totals(
            self._transaction.lines, self._price_book, tax_rate=self._tax_rate
        )
        if undiscounted.grand_total.is_zero:
            raise NoActiveTransaction("No active transaction to complete")

        applied = applied_discount if applied_discount is not None else self._applied
        totals = compute_totals(
            self._transaction.lines,
            self._price_book,
            discount=applied.amount,
            tax_rate=self._tax_rate,
        )

        if tender is None:
            tender = Tender(PaymentMethod.CASH_EXACT, totals.grand_total, Money.zero())
        elif tender.tendered < totals.grand_total:
            raise InsufficientTender(
                f"Amount {tender.tendered} is less than total {totals.grand_total}"
            )

        lines = self._line_dtos()
        sale = Sale(
            id=None,
            lines=[
                SaleLine(
                    code=line.code,
                    description=line.description,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    line_total=line.line_total,
                )
                for line in lines
            ],
            subtotal=totals.subtotal,
            discount=totals.discount,
            tax=totals.tax,
            total=totals.grand_total,
            tender=tender,
            discount_descriptions=applied.descriptions,
        )

        try:
            sale_id = self._sales.persist(sale)
        except PersistenceFailed:
            logger.error("Finalize failed; transaction kept for retry")
            raise

        logger.info(
            "Payment confirmed: sale #%d, %s, subtotal %s, discount %s, tax %s, "
            "total %s, tendered %s, change %s",
            sale_id,
            tender.method.value,
            totals.subtotal,
            totals.discount,
            totals.tax,
            totals.grand_total,
            tender.tendered,
            tender.change,
        )

        self._transaction.settle()
        self._after_mutation()

        return SaleReceipt(
            sale_id=sale_id,
            lines=lines,
            subtotal=totals.subtotal,
            discount=totals.discount,
            tax=totals.tax,
            total=totals.grand_total,
            payment_method=tender.method.value,
            tendered=tender.tendered,
            change=tender.change,
            sold_at=sale.sold_at.strftime("%Y-%m-%d %H:%M UTC"),
        )

    # --- Internal helpers -----------------------------------------------------

    def _after_mutation(self) -> None:
        self._applied = AppliedDiscount.none()
        self._recompute()

    def _recompute(self) -> None:
        self._totals = compute_totals(
            self._transaction.lines,
            self._price_book,
            discount=self._applied.amount,
            tax_rate=self._tax_rate,
        )

    def _line_dtos(self) -> list[CartLineDTO]:
        result: list[CartLineDTO] = []
        for code, quantity in sorted(self._transaction.lines.items()):
            item = self._price_book.get(code)
            unit_price = item.unit_price if item is not None else Money.zero()
            result.append(
                CartLineDTO(
                    code=code,
                    description=item.description if item is not None else UNKNOWN_ITEM,
                    quantity=quantity,
                    unit_price=unit_price,
                    line_total=line_total(unit_price, quantity),
                )
            )
        return result
