"""HTTP adapter for the external discount service.

Request::

    POST <url>
    {"items": [{"upc", "description", "unitPrice", "quantity"}, ...]}

Response (2xx)::

    {"discounts": [{"description", "amount"}, ...],
     "totalDiscount": ..., "discountedTotal": ...}

Every failure (connection, timeout, status, body) surfaces as
DiscountServiceUnavailable; checkout carries on without a discount.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation

import requests

from pos.domain.exceptions import DiscountServiceUnavailable, ValidationError
from pos.domain.model.discount import DiscountLine, DiscountOffer
from pos.domain.model.value_objects import Money
from pos.domain.repository.discount_service import DiscountRequestLine, DiscountService

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0


def build_payload(lines: list[DiscountRequestLine]) -> dict:
    return {
        "items": [
            {
                "upc": line.code,
                "description": line.description,
                "unitPrice": float(line.unit_price.amount),
                "quantity": line.quantity,
            }
            for line in lines
            if line.quantity > 0
        ]
    }


def _amount(value: object) -> Money:
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"Not an amount: {value!r}")
    try:
        return Money(Decimal(str(value)))
    except InvalidOperation as exc:
        raise ValidationError(f"Not an amount: {value!r}") from exc


def parse_offer(body: object) -> DiscountOffer:
    """Build a DiscountOffer from a decoded response body.

    Raises DiscountServiceUnavailable when the body does not match the
    contract.
    """
    try:
        if not isinstance(body, dict):
            raise ValidationError("Response body is not an object")
        raw_lines = body.get("discounts") or []
        if not isinstance(raw_lines, list):
            raise ValidationError("'discounts' is not a list")
        lines = tuple(
            DiscountLine(
                description=str(raw.get("description", "")).strip(),
                amount=_amount(raw.get("amount")),
            )
            for raw in raw_lines
        )
        return DiscountOffer(
            lines=lines,
            total_discount=_amount(body.get("totalDiscount")),
            discounted_subtotal=_amount(body.get("discountedTotal")),
        )
    except (ValidationError, AttributeError, TypeError) as exc:
        raise DiscountServiceUnavailable(f"Malformed discount response: {exc}") from exc


class HttpDiscountService(DiscountService):

    def __init__(
        self,
        url: str,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        if timeout <= 0:
            raise ValidationError(f"Discount timeout must be positive, got {timeout}")
        self._url = url
        self._timeout = timeout
        self._session = session or requests.Session()

    @property
    def url(self) -> str:
        return self._url

    def calculate(self, lines: list[DiscountRequestLine]) -> DiscountOffer:
        payload = build_payload(lines)
        logger.debug("POST %s with %d item(s)", self._url, len(payload["items"]))
        try:
            response = self._session.post(self._url, json=payload, timeout=self._timeout)
        except requests.exceptions.RequestException as exc:
            raise DiscountServiceUnavailable(f"Discount request failed: {exc}") from exc

        if not 200 <= response.status_code < 300:
            raise DiscountServiceUnavailable(
                f"Discount service returned {response.status_code}"
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise DiscountServiceUnavailable(
                f"Invalid JSON received from discount service: {exc}"
            ) from exc

        return parse_offer(body)
