"""JSON-file-backed implementation of SaleRecorder."""

from __future__ import annotations

from collections import Counter
from datetime import datetime
from decimal import Decimal
from pathlib import Path

from pos.domain.model.sale import PaymentMethod, Sale, SaleLine, Tender
from pos.domain.model.value_objects import Money
from pos.domain.repository.sale_recorder import SaleRecorder
from pos.infrastructure.persistence.json_file import JsonFile


def _money(raw: str) -> Money:
    return Money(Decimal(raw))


class JsonSaleRecorder(SaleRecorder):

    def __init__(self, file_path: Path) -> None:
        self._file = JsonFile(file_path)
        self._file.ensure()

    # --- SaleRecorder interface -----------------------------------------------

    def persist(self, sale: Sale) -> int:
        records = self._file.load()
        sale_id = JsonFile.next_id(records)
        raw = self._to_raw(sale)
        raw["id"] = sale_id
        records.append(raw)
        self._file.store(records)
        sale.id = sale_id
        return sale_id

    def historical_counts(self) -> dict[str, int]:
        counts: Counter[str] = Counter()
        for raw in self._file.load():
            for line in raw["lines"]:
                counts[line["code"]] += line["quantity"]
        return dict(counts)

    def list_recent(self, limit: int | None = None) -> list[Sale]:
        sales = [self._to_domain(raw) for raw in self._file.load()]
        sales.sort(key=lambda s: (s.sold_at, s.id or 0), reverse=True)
        return sales if limit is None else sales[:limit]

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(sale: Sale) -> dict:
        return {
            "id": sale.id,
            "sold_at": sale.sold_at.isoformat(),
            "subtotal": str(sale.subtotal.amount),
            "discount": str(sale.discount.amount),
            "discount_descriptions": list(sale.discount_descriptions),
            "tax": str(sale.tax.amount),
            "total": str(sale.total.amount),
            "payment_method": sale.tender.method.value,
            "tendered": str(sale.tender.tendered.amount),
            "change": str(sale.tender.change.amount),
            "lines": [
                {
                    "code": line.code,
                    "description": line.description,
                    "quantity": line.quantity,
                    "unit_price": str(line.unit_price.amount),
                    "line_total": str(line.line_total.amount),
                }
                for line in sale.lines
            ],
        }

    @staticmethod
    def _to_domain(raw: dict) -> Sale:
        return Sale(
            id=raw["id"],
            lines=[
                SaleLine(
                    code=line["code"],
                    description=line["description"],
                    quantity=line["quantity"],
                    unit_price=_money(line["unit_price"]),
                    line_total=_money(line["line_total"]),
                )
                for line in raw["lines"]
            ],
            subtotal=_money(raw["subtotal"]),
            discount=_money(raw["discount"]),
            tax=_money(raw["tax"]),
            total=_money(raw["total"]),
            tender=Tender(
                method=PaymentMethod(raw["payment_method"]),
                tendered=_money(raw["tendered"]),
                change=_money(raw["change"]),
            ),
            discount_descriptions=tuple(raw.get("discount_descriptions", [])),
            sold_at=datetime.fromisoformat(raw["sold_at"]),
        )
