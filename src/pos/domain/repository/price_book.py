"""Abstract price book.

Defined in the domain layer so the domain never depends on
infrastructure.  The register only ever reads from it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from pos.domain.model.item import Item


class PriceBook(ABC):

    @abstractmethod
    def get(self, code: str) -> Item | None:
        """Return the item for an exact (case-sensitive) code, or None."""

    @abstractmethod
    def list_all(self) -> list[Item]:
        """Return every item in the price book."""

    def describe(self, code: str) -> str:
        """Description for *code*, or an empty string when unknown."""
        item = self.get(code)
        return item.description if item is not None else ""
