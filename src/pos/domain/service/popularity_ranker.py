"""Domain service: popularity ranking for quick-key shortcuts.

Ranks item codes by units sold.  Ties are broken by description
(case-insensitive) and then by code, so equally popular items keep their
shortcut slots from one refresh to the next.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Callable

from pos.domain.exceptions import ValidationError
from pos.domain.repository.price_book import PriceBook

DEFAULT_SLOTS = 12


def rank_codes(
    counts: Mapping[str, int],
    describe: Callable[[str], str],
    limit: int | None = None,
) -> list[str]:
    """Return codes in rank order, optionally cut to the first *limit*."""
    for code, count in counts.items():
        if count < 0:
            raise ValidationError(f"Negative popularity count for '{code}'")

    ranked = sorted(
        counts,
        key=lambda code: (-counts[code], (describe(code) or "").lower(), code),
    )
    if limit is not None:
        ranked = ranked[: max(limit, 0)]
    return ranked


class PopularityRanker:
    """Holds the current shortcut assignment.

    Rebuilt wholesale by ``refresh()`` at startup and after each sale; never
    patched incrementally.
    """

    def __init__(self, price_book: PriceBook, slots: int = DEFAULT_SLOTS) -> None:
        if slots < 0:
            raise ValidationError("Shortcut slot count cannot be negative")
        self._price_book = price_book
        self._slots = slots
        self._ranked: list[str] = []

    def refresh(self, counts: Mapping[str, int]) -> list[str]:
        self._ranked = rank_codes(counts, self._price_book.describe, self._slots)
        return list(self._ranked)

    @property
    def ranked(self) -> list[str]:
        return list(self._ranked)

    def shortcuts(self) -> dict[str, str]:
        """Map shortcut keys F1, F2, ... to codes in rank order."""
        return {f"F{i}": code for i, code in enumerate(self._ranked, start=1)}

    def code_for(self, key: str) -> str | None:
        return self.shortcuts().get(key.upper())
