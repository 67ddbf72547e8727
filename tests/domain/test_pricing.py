"""Unit tests for cart pricing and the rounding order."""

from decimal import Decimal

from pos.domain.model.value_objects import Money
from pos.domain.service.pricing import compute_tax, compute_totals, line_total
from tests.fakes import FakePriceBook, item


def _book():
    return FakePriceBook([
        item("A", "Apple Juice", "1.50"),
        item("B", "Bread Roll", "1.00"),
        item("C", "Candy", "0.333"),
    ])


class TestComputeTotals:

    def test_reference_cart(self):
        totals = compute_totals({"A": 2, "B": 3}, _book())
        assert totals.subtotal == Money.of("6.00")
        assert totals.tax == Money.of("0.42")
        assert totals.grand_total == Money.of("6.42")

    def test_empty_cart_is_all_zero(self):
        totals = compute_totals({}, _book())
        assert totals.subtotal.is_zero
        assert totals.tax.is_zero
        assert totals.grand_total.is_zero

    def test_unknown_codes_contribute_nothing(self):
        totals = compute_totals({"A": 1, "GONE": 5}, _book())
        assert totals.subtotal == Money.of("1.50")

    def test_subtotal_rounded_before_tax(self):
        # 3 x 0.333 = 0.999 -> 1.00; tax 0.07
        totals = compute_totals({"C": 3}, _book())
        assert totals.subtotal == Money.of("1.00")
        assert totals.tax == Money.of("0.07")
        assert totals.grand_total == Money.of("1.07")

    def test_tax_half_up(self):
        # 0.50 * 0.07 = 0.035 -> 0.04
        assert compute_tax(Money.of("0.50")) == Money.of("0.04")

    def test_discount_applied_before_tax(self):
        totals = compute_totals({"A": 2, "B": 3}, _book(), discount=Money.of("1.00"))
        assert totals.discount == Money.of("1.00")
        assert totals.discounted_subtotal == Money.of("5.00")
        assert totals.tax == Money.of("0.35")
        assert totals.grand_total == Money.of("5.35")

    def test_discount_floored_at_zero(self):
        totals = compute_totals({"B": 1}, _book(), discount=Money.of("5.00"))
        assert totals.discount == Money.of("1.00")
        assert totals.discounted_subtotal.is_zero
        assert totals.grand_total.is_zero

    def test_custom_tax_rate(self):
        totals = compute_totals({"B": 10}, _book(), tax_rate=Decimal("0.1"))
        assert totals.tax == Money.of("1.00")
        assert totals.grand_total == Money.of("11.00")


class TestLineTotal:

    def test_rounds_to_cents(self):
        assert line_total(Money.of("0.333"), 3) == Money.of("1.00")
