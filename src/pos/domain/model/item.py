"""Item — one price-book entry.

Owned by the price book and read-only from the register's point of view.
The cart never copies items; it looks them up by code whenever totals are
recomputed.
"""

from __future__ import annotations

from dataclasses import dataclass

from pos.domain.model.value_objects import Money


@dataclass(frozen=True)
class Item:

    code: str
    description: str
    unit_price: Money
