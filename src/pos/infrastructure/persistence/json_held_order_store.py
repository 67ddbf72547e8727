"""JSON-file-backed implementation of HeldOrderStore."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from pathlib import Path

from pos.domain.model.held_order import HeldOrder
from pos.domain.model.value_objects import Money
from pos.domain.repository.held_order_store import HeldOrderStore
from pos.infrastructure.persistence.json_file import JsonFile


class JsonHeldOrderStore(HeldOrderStore):

    def __init__(self, file_path: Path) -> None:
        self._file = JsonFile(file_path)
        self._file.ensure()

    # --- HeldOrderStore interface ---------------------------------------------

    def persist(self, order: HeldOrder) -> int:
        records = self._file.load()
        order.id = JsonFile.next_id(records)
        records.append(self._to_raw(order))
        self._file.store(records)
        return order.id

    def retrieve(self, order_id: int) -> HeldOrder | None:
        records = self._file.load()
        for i, raw in enumerate(records):
            if raw["id"] == order_id:
                del records[i]
                self._file.store(records)
                return self._to_domain(raw)
        return None

    def list(self) -> list[HeldOrder]:
        return [self._to_domain(raw) for raw in self._file.load()]

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(order: HeldOrder) -> dict:
        return {
            "id": order.id,
            "held_at": order.held_at.isoformat(),
            "total": str(order.total_at_hold_time.amount),
            "currency": order.total_at_hold_time.currency,
            "lines": [
                {"code": code, "quantity": quantity}
                for code, quantity in order.lines.items()
            ],
        }

    @staticmethod
    def _to_domain(raw: dict) -> HeldOrder:
        return HeldOrder(
            id=raw["id"],
            lines={line["code"]: line["quantity"] for line in raw["lines"]},
            total_at_hold_time=Money(Decimal(raw["total"]), raw.get("currency", "USD")),
            held_at=datetime.fromisoformat(raw["held_at"]),
        )
