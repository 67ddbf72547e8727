"""Sale — a finalized, paid transaction as handed to the sale recorder."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from pos.domain.model.value_objects import Money


class PaymentMethod(Enum):
    CARD = "CARD"
    CASH_EXACT = "CASH_EXACT"
    CASH_NEXT_DOLLAR = "CASH_NEXT_DOLLAR"
    CASH_CUSTOM = "CASH_CUSTOM"


@dataclass(frozen=True)
class Tender:

    method: PaymentMethod
    tendered: Money
    change: Money


@dataclass(frozen=True)
class SaleLine:
    """Price snapshot of one cart line at payment time."""

    code: str
    description: str
    quantity: int
    unit_price: Money
    line_total: Money


@dataclass
class Sale:

    id: int | None
    lines: list[SaleLine]
    subtotal: Money
    discount: Money
    tax: Money
    total: Money
    tender: Tender
    discount_descriptions: tuple[str, ...] = ()
    sold_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
