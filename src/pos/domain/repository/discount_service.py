"""Abstract discount service.

The concrete adapter talks HTTP; the domain only sees request lines in and
a DiscountOffer out.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from pos.domain.model.discount import DiscountOffer
from pos.domain.model.value_objects import Money


@dataclass(frozen=True)
class DiscountRequestLine:

    code: str
    description: str
    unit_price: Money
    quantity: int


class DiscountService(ABC):

    @abstractmethod
    def calculate(self, lines: list[DiscountRequestLine]) -> DiscountOffer:
        """Ask the service for discounts on *lines*.

        Raises DiscountServiceUnavailable on transport errors, timeouts,
        non-2xx answers or malformed bodies.
        """
