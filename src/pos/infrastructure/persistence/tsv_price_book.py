"""Price book loaded from a tab-separated file.

Format, one item per line::

    code<TAB>description<TAB>price

Blank lines are skipped.  Rows with a bad or negative price are logged and
skipped rather than failing the whole load.  If a code appears twice the
later row wins.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from pos.domain.exceptions import PersistenceFailed, ValidationError
from pos.domain.model.item import Item
from pos.domain.model.value_objects import Money
from pos.domain.repository.price_book import PriceBook

logger = logging.getLogger(__name__)


def parse_price_book(lines: Iterable[str]) -> dict[str, Item]:
    items: dict[str, Item] = {}
    for line_no, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        parts = line.rstrip("\r\n").split("\t")
        if len(parts) < 3:
            logger.warning("Price book line %d has %d field(s), skipped", line_no, len(parts))
            continue
        code, description, raw_price = (p.strip() for p in parts[:3])
        if not code:
            logger.warning("Price book line %d has no code, skipped", line_no)
            continue
        try:
            price = Money.of(raw_price)
        except ValidationError:
            logger.warning("Invalid price format for UPC: %s (line %d)", code, line_no)
            continue
        items[code] = Item(code=code, description=description, unit_price=price)
    return items


class TsvPriceBook(PriceBook):

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        try:
            with file_path.open(encoding="utf-8") as fh:
                self._items = parse_price_book(fh)
        except (OSError, UnicodeDecodeError) as exc:
            raise PersistenceFailed(f"Cannot read price book {file_path}: {exc}") from exc
        logger.info("Loaded %d item(s) from %s", len(self._items), file_path)

    # --- PriceBook interface --------------------------------------------------

    def get(self, code: str) -> Item | None:
        return self._items.get(code)

    def list_all(self) -> list[Item]:
        return sorted(self._items.values(), key=lambda item: item.code)
