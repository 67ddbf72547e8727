"""Transaction aggregate — the live cart.

The Transaction owns a mapping of item code to quantity.  Totals are not
stored here; they are derived from the price book on every mutation by
``pos.domain.service.pricing`` so they can never drift from the lines.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from pos.domain.exceptions import InvalidOperation, ValidationError
from pos.domain.model.value_objects import Quantity


class TransactionState(Enum):
    OPEN = "OPEN"
    SETTLED = "SETTLED"


@dataclass
class Transaction:
    """Aggregate root for the in-progress sale.

    Invariants:
    - every present code has a quantity >= 1
    - at most one line per code; quantity changes replace the line
    """

    lines: dict[str, int] = field(default_factory=dict)
    state: TransactionState = TransactionState.OPEN

    # --- Mutations ------------------------------------------------------------

    def add(self, code: str) -> int:
        """Add one unit of *code* and return the new quantity."""
        self._reopen()
        quantity = self.lines.get(code, 0) + 1
        self.lines[code] = quantity
        return quantity

    def set_quantity(self, code: str, quantity: int) -> None:
        """Replace a line's quantity; zero or less removes the line."""
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise ValidationError(
                f"Quantity must be an integer, got {type(quantity).__name__}"
            )
        if quantity <= 0:
            self.lines.pop(code, None)
            return
        if code not in self.lines:
            raise InvalidOperation(
                f"Cannot set quantity for '{code}' — it is not in the cart"
            )
        self.lines[code] = Quantity(quantity).value

    def remove_all(self, code: str) -> int:
        """Void a line entirely and return the quantity that was removed."""
        if code not in self.lines:
            raise InvalidOperation(f"Cannot void '{code}' — it is not in the cart")
        return self.lines.pop(code)

    def replace_lines(self, lines: dict[str, int]) -> None:
        """Swap in a whole cart, e.g. one retrieved from hold."""
        restored: dict[str, int] = {}
        for code, quantity in lines.items():
            restored[code] = Quantity(quantity).value
        self.lines = restored
        self.state = TransactionState.OPEN

    def clear(self) -> None:
        self.lines = {}
        self.state = TransactionState.OPEN

    def settle(self) -> None:
        """Mark the sale as paid; the next add re-opens an empty cart."""
        self.lines = {}
        self.state = TransactionState.SETTLED

    # --- Queries --------------------------------------------------------------

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def quantity_of(self, code: str) -> int:
        return self.lines.get(code, 0)

    def copy_lines(self) -> dict[str, int]:
        return dict(self.lines)

    # --- Internal helpers -----------------------------------------------------

    def _reopen(self) -> None:
        if self.state == TransactionState.SETTLED:
            self.state = TransactionState.OPEN
