"""Integration tests for the CartLedger against in-memory stores."""

import logging

import pytest

from pos.application.cart_ledger import CartLedger
from pos.domain.exceptions import (
    InsufficientTender,
    InvalidOperation,
    ItemNotFound,
    NoActiveTransaction,
    OrderNotFound,
    PersistenceFailed,
)
from pos.domain.model.discount import AppliedDiscount, DiscountSource
from pos.domain.model.sale import PaymentMethod, Tender
from pos.domain.model.transaction import TransactionState
from pos.domain.model.value_objects import Money
from tests.fakes import FakeHeldOrderStore, FakePriceBook, FakeSaleRecorder, item


def _setup():
    book = FakePriceBook([
        item("A", "Apple Juice", "1.50"),
        item("B", "Bread Roll", "1.00"),
        item("C", "Cheddar", "4.25"),
    ])
    held = FakeHeldOrderStore()
    sales = FakeSaleRecorder()
    ledger = CartLedger(book, held, sales)
    return ledger, book, held, sales


def _ring(ledger, code, qty):
    ledger.add_item(code)
    ledger.set_quantity(code, qty)


class TestAddItem:

    def test_add_creates_line_and_recomputes(self):
        ledger, *_ = _setup()
        returned = ledger.add_item("A")
        assert returned.description == "Apple Juice"
        assert ledger.lines == {"A": 1}
        assert ledger.totals.subtotal == Money.of("1.50")
        assert ledger.totals.tax == Money.of("0.11")
        assert ledger.totals.grand_total == Money.of("1.61")

    def test_add_twice_increments(self):
        ledger, *_ = _setup()
        ledger.add_item("B")
        ledger.add_item("B")
        assert ledger.lines == {"B": 2}

    def test_unknown_code_leaves_cart_untouched(self):
        ledger, *_ = _setup()
        ledger.add_item("A")
        before = ledger.totals

        with pytest.raises(ItemNotFound, match="Item not found for code 'NOPE'"):
            ledger.add_item("NOPE")

        assert ledger.lines == {"A": 1}
        assert ledger.totals == before

    def test_reference_cart_totals(self):
        ledger, *_ = _setup()
        _ring(ledger, "A", 2)
        _ring(ledger, "B", 3)
        totals = ledger.totals
        assert totals.subtotal == Money.of("6.00")
        assert totals.tax == Money.of("0.42")
        assert totals.grand_total == Money.of("6.42")


class TestSetQuantityAndVoid:

    def test_set_quantity_zero_removes_line_and_recomputes(self):
        ledger, *_ = _setup()
        _ring(ledger, "A", 2)
        _ring(ledger, "C", 3)
        ledger.set_quantity("A", 0)
        assert ledger.lines == {"C": 3}
        assert ledger.totals.subtotal == Money.of("12.75")

    def test_set_quantity_on_absent_line_rejected(self):
        ledger, *_ = _setup()
        with pytest.raises(InvalidOperation):
            ledger.set_quantity("A", 2)
        assert ledger.is_empty

    def test_remove_all_voids_regardless_of_quantity(self):
        ledger, *_ = _setup()
        _ring(ledger, "B", 7)
        ledger.add_item("A")
        assert ledger.remove_all("B") == 7
        assert ledger.lines == {"A": 1}
        assert ledger.totals.subtotal == Money.of("1.50")

    def test_mutation_drops_applied_discount(self):
        ledger, *_ = _setup()
        _ring(ledger, "C", 2)
        ledger.apply_discount(AppliedDiscount(Money.of("1.00")))
        assert ledger.totals.discount == Money.of("1.00")

        ledger.add_item("A")
        assert ledger.applied_discount.is_zero
        assert ledger.totals.discount.is_zero


class TestCancel:

    def test_cancel_clears_cart(self):
        ledger, *_ = _setup()
        _ring(ledger, "A", 2)
        ledger.cancel()
        assert ledger.is_empty
        assert ledger.totals.grand_total.is_zero

    def test_cancel_empty_cart_rejected(self):
        ledger, *_ = _setup()
        with pytest.raises(NoActiveTransaction):
            ledger.cancel()


class TestHoldRetrieve:

    def test_hold_then_retrieve_round_trips_lines(self):
        ledger, _, held, _ = _setup()
        _ring(ledger, "A", 2)
        _ring(ledger, "B", 3)
        lines_before = ledger.lines

        order_id = ledger.hold()
        assert ledger.is_empty
        assert len(held.list()) == 1

        ledger.retrieve(order_id)
        assert ledger.lines == lines_before
        assert ledger.totals.grand_total == Money.of("6.42")

    def test_second_retrieve_fails(self):
        ledger, *_ = _setup()
        ledger.add_item("A")
        order_id = ledger.hold()
        ledger.retrieve(order_id)

        with pytest.raises(OrderNotFound, match=f"#{order_id}"):
            ledger.retrieve(order_id)

    def test_retrieve_replaces_current_cart(self):
        ledger, *_ = _setup()
        ledger.add_item("A")
        order_id = ledger.hold()
        ledger.add_item("C")

        ledger.retrieve(order_id)
        assert ledger.lines == {"A": 1}

    def test_hold_records_subtotal_at_hold_time(self):
        ledger, _, held, _ = _setup()
        _ring(ledger, "C", 2)
        ledger.hold()
        assert held.list()[0].total_at_hold_time == Money.of("8.50")

    def test_hold_empty_cart_rejected(self):
        ledger, *_ = _setup()
        with pytest.raises(NoActiveTransaction):
            ledger.hold()

    def test_hold_failure_keeps_cart(self):
        ledger, _, held, _ = _setup()
        ledger.add_item("A")
        held.fail = True
        with pytest.raises(PersistenceFailed):
            ledger.hold()
        assert ledger.lines == {"A": 1}

    def test_held_orders_listing(self):
        ledger, *_ = _setup()
        _ring(ledger, "B", 3)
        ledger.add_item("A")
        ledger.hold()

        (summary,) = ledger.held_orders()
        assert summary.id == 1
        assert summary.total == "$4.50"
        assert summary.line_count == 2
        assert summary.unit_count == 4


class TestFinalize:

    def test_finalize_records_sale_and_settles(self):
        ledger, _, _, sales = _setup()
        _ring(ledger, "A", 2)
        _ring(ledger, "B", 3)

        receipt = ledger.finalize()

        assert receipt.sale_id == 1
        assert receipt.total == Money.of("6.42")
        assert receipt.payment_method == PaymentMethod.CASH_EXACT.value
        assert receipt.change.is_zero
        assert ledger.is_empty
        assert ledger.state == TransactionState.SETTLED
        assert [(line.code, line.quantity) for line in sales.sales[0].lines] == [
            ("A", 2),
            ("B", 3),
        ]

    def test_finalize_empty_cart_never_reaches_recorder(self):
        ledger, _, _, sales = _setup()
        with pytest.raises(NoActiveTransaction):
            ledger.finalize()
        assert sales.persist_calls == 0

    def test_finalize_with_discount(self):
        ledger, _, _, sales = _setup()
        _ring(ledger, "A", 2)
        _ring(ledger, "B", 3)
        applied = AppliedDiscount(
            Money.of("1.00"), ("Bread promo",), DiscountSource.ALL
        )

        receipt = ledger.finalize(applied_discount=applied)

        assert receipt.discount == Money.of("1.00")
        assert receipt.tax == Money.of("0.35")
        assert receipt.total == Money.of("5.35")
        assert sales.sales[0].discount_descriptions == ("Bread promo",)

    def test_full_discount_still_finalizes(self):
        ledger, *_ = _setup()
        ledger.add_item("B")
        receipt = ledger.finalize(applied_discount=AppliedDiscount(Money.of("5.00")))
        assert receipt.total.is_zero

    def test_finalize_with_tender_reports_change(self):
        ledger, *_ = _setup()
        _ring(ledger, "A", 2)
        _ring(ledger, "B", 3)
        tender = Tender(PaymentMethod.CASH_CUSTOM, Money.of("10.00"), Money.of("3.58"))

        receipt = ledger.finalize(tender=tender)
        assert receipt.tendered == Money.of("10.00")
        assert receipt.change == Money.of("3.58")

    def test_insufficient_tender_rejected(self):
        ledger, _, _, sales = _setup()
        ledger.add_item("C")
        tender = Tender(PaymentMethod.CASH_CUSTOM, Money.of("1.00"), Money.zero())
        with pytest.raises(InsufficientTender):
            ledger.finalize(tender=tender)
        assert sales.persist_calls == 0
        assert ledger.lines == {"C": 1}

    def test_persistence_failure_keeps_transaction(self, caplog):
        ledger, _, _, sales = _setup()
        ledger.add_item("A")
        sales.fail = True

        with caplog.at_level(logging.ERROR, logger="pos"):
            with pytest.raises(PersistenceFailed):
                ledger.finalize()

        assert ledger.lines == {"A": 1}
        assert "kept for retry" in caplog.text

        sales.fail = False
        assert ledger.finalize().sale_id == 1

    def test_vanished_item_priced_at_zero(self):
        ledger, book, _, _ = _setup()
        ledger.add_item("A")
        ledger.add_item("C")
        book.remove("A")

        receipt = ledger.finalize()
        unknown = next(line for line in receipt.lines if line.code == "A")
        assert unknown.description == "(Unknown Item)"
        assert unknown.line_total.is_zero
        assert receipt.subtotal == Money.of("4.25")

    def test_add_after_finalize_reopens(self):
        ledger, *_ = _setup()
        ledger.add_item("A")
        ledger.finalize()
        ledger.add_item("B")
        assert ledger.state == TransactionState.OPEN
        assert ledger.lines == {"B": 1}


class TestSnapshot:

    def test_snapshot_lines_sorted_with_prices(self):
        ledger, *_ = _setup()
        _ring(ledger, "C", 2)
        ledger.add_item("A")

        snap = ledger.snapshot()
        assert [line.code for line in snap.lines] == ["A", "C"]
        assert snap.lines[1].line_total == Money.of("8.50")
        assert snap.unit_count == 3
        assert snap.state == "OPEN"
