"""Shared helpers for the JSON-file-backed stores."""

from __future__ import annotations

import json
from pathlib import Path

from pos.domain.exceptions import PersistenceFailed


class JsonFile:
    """A JSON array on disk.  I/O and decode errors become PersistenceFailed."""

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path

    def load(self) -> list[dict]:
        self.ensure()
        try:
            return json.loads(self._file_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise PersistenceFailed(f"Cannot read {self._file_path}: {exc}") from exc

    def store(self, records: list[dict]) -> None:
        try:
            self._file_path.write_text(
                json.dumps(records, indent=2) + "\n", encoding="utf-8"
            )
        except OSError as exc:
            raise PersistenceFailed(f"Cannot write {self._file_path}: {exc}") from exc

    def ensure(self) -> None:
        if self._file_path.exists():
            return
        try:
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_path.write_text("[]", encoding="utf-8")
        except OSError as exc:
            raise PersistenceFailed(f"Cannot create {self._file_path}: {exc}") from exc

    @staticmethod
    def next_id(records: list[dict]) -> int:
        if not records:
            return 1
        return max(r["id"] for r in records) + 1
