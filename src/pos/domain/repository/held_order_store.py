"""Abstract store for suspended carts."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pos.domain.model.held_order import HeldOrder


class HeldOrderStore(ABC):

    @abstractmethod
    def persist(self, order: HeldOrder) -> int:
        """Save a held order, assign and return its id.

        Raises PersistenceFailed if the write cannot be completed.
        """

    @abstractmethod
    def retrieve(self, order_id: int) -> HeldOrder | None:
        """Remove and return a held order, or None if absent."""

    @abstractmethod
    def list(self) -> list[HeldOrder]:
        """Return every held order, oldest first."""
