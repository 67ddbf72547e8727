"""Abstract store for finalized sales.

Also the source of popularity counts: only completed sales count, never the
live cart.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from pos.domain.model.sale import Sale


class SaleRecorder(ABC):

    @abstractmethod
    def persist(self, sale: Sale) -> int:
        """Save a sale, assign and return its id.

        Raises PersistenceFailed if the write cannot be completed.
        """

    @abstractmethod
    def historical_counts(self) -> dict[str, int]:
        """Return units sold per item code across all recorded sales."""

    @abstractmethod
    def list_recent(self, limit: int | None = None) -> list[Sale]:
        """Return recorded sales, newest first."""
