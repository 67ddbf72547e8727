"""Tests for the JSON-file-backed held-order store and sale recorder."""

from datetime import datetime, timedelta, timezone

import pytest

from pos.domain.exceptions import PersistenceFailed
from pos.domain.model.held_order import HeldOrder
from pos.domain.model.sale import PaymentMethod, Sale, SaleLine, Tender
from pos.domain.model.value_objects import Money
from pos.infrastructure.persistence.json_held_order_store import JsonHeldOrderStore
from pos.infrastructure.persistence.json_sale_recorder import JsonSaleRecorder


def _sale(lines, when=None):
    sale_lines = [
        SaleLine(code, f"Item {code}", qty, Money.of("1.00"), Money.of(qty))
        for code, qty in lines
    ]
    total = Money.of(sum(qty for _, qty in lines))
    sale = Sale(
        id=None,
        lines=sale_lines,
        subtotal=total,
        discount=Money.zero(),
        tax=Money.zero(),
        total=total,
        tender=Tender(PaymentMethod.CARD, total, Money.zero()),
        discount_descriptions=("Promo",),
    )
    if when is not None:
        sale.sold_at = when
    return sale


class TestJsonHeldOrderStore:

    def test_file_created_on_first_use(self, tmp_path):
        path = tmp_path / "data" / "held_orders.json"
        JsonHeldOrderStore(path)
        assert path.read_text(encoding="utf-8") == "[]"

    def test_persist_assigns_incrementing_ids(self, tmp_path):
        store = JsonHeldOrderStore(tmp_path / "held.json")
        first = store.persist(HeldOrder(None, {"A1": 2}, Money.of("3.00")))
        second = store.persist(HeldOrder(None, {"B2": 1}, Money.of("1.00")))
        assert (first, second) == (1, 2)

    def test_retrieve_restores_and_deletes(self, tmp_path):
        path = tmp_path / "held.json"
        store = JsonHeldOrderStore(path)
        order_id = store.persist(HeldOrder(None, {"A1": 2, "B2": 3}, Money.of("6.00")))

        reopened = JsonHeldOrderStore(path)
        order = reopened.retrieve(order_id)

        assert order.lines == {"A1": 2, "B2": 3}
        assert order.total_at_hold_time == Money.of("6.00")
        assert reopened.retrieve(order_id) is None
        assert reopened.list() == []

    def test_list_returns_summaries(self, tmp_path):
        store = JsonHeldOrderStore(tmp_path / "held.json")
        store.persist(HeldOrder(None, {"A1": 2}, Money.of("3.00")))
        (order,) = store.list()
        assert order.id == 1
        assert order.unit_count == 2

    def test_corrupt_file_is_persistence_failure(self, tmp_path):
        path = tmp_path / "held.json"
        path.write_text("{not json", encoding="utf-8")
        store = JsonHeldOrderStore(path)
        with pytest.raises(PersistenceFailed):
            store.list()


class TestJsonSaleRecorder:

    def test_persist_and_reload(self, tmp_path):
        path = tmp_path / "sales.json"
        recorder = JsonSaleRecorder(path)
        sale = _sale([("A1", 2)])

        assert recorder.persist(sale) == 1
        assert sale.id == 1

        (loaded,) = JsonSaleRecorder(path).list_recent()
        assert loaded.total == Money.of("2.00")
        assert loaded.tender.method == PaymentMethod.CARD
        assert loaded.discount_descriptions == ("Promo",)
        assert loaded.lines[0].quantity == 2

    def test_historical_counts_sum_quantities(self, tmp_path):
        recorder = JsonSaleRecorder(tmp_path / "sales.json")
        recorder.persist(_sale([("A1", 2), ("B2", 1)]))
        recorder.persist(_sale([("A1", 3)]))
        assert recorder.historical_counts() == {"A1": 5, "B2": 1}

    def test_list_recent_newest_first(self, tmp_path):
        recorder = JsonSaleRecorder(tmp_path / "sales.json")
        now = datetime.now(timezone.utc)
        recorder.persist(_sale([("A1", 1)], when=now - timedelta(hours=1)))
        recorder.persist(_sale([("B2", 1)], when=now))
        recorder.persist(_sale([("C3", 1)], when=now - timedelta(hours=2)))

        recent = recorder.list_recent(limit=2)
        assert [s.id for s in recent] == [2, 1]

    def test_unwritable_location_is_persistence_failure(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        with pytest.raises(PersistenceFailed):
            JsonSaleRecorder(blocker / "sales.json")
