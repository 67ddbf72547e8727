"""Register settings.

Every value has a hardcoded default and can be overridden.  For most values
an explicit override (CLI option) beats the ``POS_*`` environment variable.
The discount endpoint is the exception: ``DISCOUNT_SERVICE_URL`` in the
environment wins over the override, which wins over the default.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path

from pos.domain.exceptions import NumberFormatInvalid

DEFAULT_DISCOUNT_URL = "http://localhost:8080/api/discounts/calculate"
DISCOUNT_URL_ENV = "DISCOUNT_SERVICE_URL"

_ENV_NAMES = {
    "data_dir": "POS_DATA_DIR",
    "price_book": "POS_PRICE_BOOK",
    "discount_timeout": "POS_DISCOUNT_TIMEOUT",
    "fast_gap_ms": "POS_FAST_GAP_MS",
    "inactivity_commit_ms": "POS_INACTIVITY_COMMIT_MS",
    "min_len": "POS_MIN_CODE_LEN",
    "max_len": "POS_MAX_CODE_LEN",
    "shortcut_slots": "POS_SHORTCUT_SLOTS",
    "tax_rate": "POS_TAX_RATE",
}


@dataclass(frozen=True)
class Settings:

    data_dir: Path = Path("data")
    price_book: Path | None = None
    discount_url: str = DEFAULT_DISCOUNT_URL
    discount_timeout: float = 5.0
    fast_gap_ms: float = 50
    inactivity_commit_ms: float = 100
    min_len: int = 2
    max_len: int = 64
    shortcut_slots: int = 12
    tax_rate: Decimal = Decimal("0.07")

    @property
    def price_book_path(self) -> Path:
        return self.price_book or self.data_dir / "pricebook.tsv"

    @property
    def held_orders_path(self) -> Path:
        return self.data_dir / "held_orders.json"

    @property
    def sales_path(self) -> Path:
        return self.data_dir / "sales.json"

    @staticmethod
    def load(
        overrides: Mapping[str, object] | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> Settings:
        overrides = {k: v for k, v in (overrides or {}).items() if v is not None}
        env = os.environ if environ is None else environ

        def pick(name: str) -> object | None:
            if name in overrides:
                return overrides[name]
            value = env.get(_ENV_NAMES[name], "").strip()
            return value or None

        def number(name: str, kind):
            return _number(name, pick(name), getattr(defaults, name), kind)

        defaults = Settings()
        data_dir = pick("data_dir")
        price_book = pick("price_book")

        return Settings(
            data_dir=Path(str(data_dir)) if data_dir else defaults.data_dir,
            price_book=Path(str(price_book)) if price_book else None,
            discount_url=resolve_discount_url(overrides.get("discount_url"), env),
            discount_timeout=_positive("discount_timeout", number("discount_timeout", float)),
            fast_gap_ms=number("fast_gap_ms", float),
            inactivity_commit_ms=number("inactivity_commit_ms", float),
            min_len=number("min_len", int),
            max_len=number("max_len", int),
            shortcut_slots=number("shortcut_slots", int),
            tax_rate=number("tax_rate", Decimal),
        )


def resolve_discount_url(
    override: object | None = None, environ: Mapping[str, str] | None = None
) -> str:
    env = os.environ if environ is None else environ
    from_env = env.get(DISCOUNT_URL_ENV, "").strip()
    if from_env:
        return from_env
    if override is not None and str(override).strip():
        return str(override).strip()
    return DEFAULT_DISCOUNT_URL


def _positive(name: str, value: float) -> float:
    if value <= 0:
        raise NumberFormatInvalid(f"{_ENV_NAMES[name]} must be greater than zero: {value}")
    return value


def _number(name: str, raw: object | None, default, kind):
    if raw is None:
        return default
    try:
        return kind(str(raw).strip())
    except (ValueError, InvalidOperation) as exc:
        raise NumberFormatInvalid(f"Invalid numeric value for {_ENV_NAMES[name]}: {raw!r}") from exc
