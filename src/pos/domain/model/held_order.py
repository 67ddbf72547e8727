"""HeldOrder — a suspended cart parked in external storage."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from pos.domain.model.value_objects import Money


@dataclass
class HeldOrder:
    """Snapshot of a cart taken at hold time.

    ``id`` is None until the store assigns one.  The store deletes the
    order once it has been retrieved.
    """

    id: int | None
    lines: dict[str, int]
    total_at_hold_time: Money
    held_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def line_count(self) -> int:
        return len(self.lines)

    @property
    def unit_count(self) -> int:
        return sum(self.lines.values())
