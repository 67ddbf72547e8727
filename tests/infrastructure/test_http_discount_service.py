"""Tests for the HTTP discount adapter, using a stand-in session."""

import pytest
import requests

from pos.domain.exceptions import DiscountServiceUnavailable, ValidationError
from pos.domain.model.value_objects import Money
from pos.domain.repository.discount_service import DiscountRequestLine
from pos.infrastructure.discount.http_discount_service import (
    HttpDiscountService,
    build_payload,
    parse_offer,
)

URL = "http://discounts.test/api/discounts/calculate"


class FakeResponse:

    def __init__(self, status_code=200, body=None, bad_json=False):
        self.status_code = status_code
        self._body = body
        self._bad_json = bad_json

    def json(self):
        if self._bad_json:
            raise ValueError("Expecting value")
        return self._body


class FakeSession:

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, json=None, timeout=None):
        self.calls.append({"url": url, "json": json, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


def _lines():
    return [
        DiscountRequestLine("A1", "Apple Juice", Money.of("1.50"), 2),
        DiscountRequestLine("B2", "Bread Roll", Money.of("1.00"), 3),
    ]


GOOD_BODY = {
    "discounts": [
        {"description": "Bread 3 for 2", "amount": 1.0},
        {"description": "Juice promo", "amount": 0},
    ],
    "totalDiscount": 1.0,
    "discountedTotal": 5.0,
}


class TestPayload:

    def test_wire_field_names(self):
        payload = build_payload(_lines())
        assert payload == {
            "items": [
                {"upc": "A1", "description": "Apple Juice", "unitPrice": 1.5, "quantity": 2},
                {"upc": "B2", "description": "Bread Roll", "unitPrice": 1.0, "quantity": 3},
            ]
        }

    def test_non_positive_quantities_not_sent(self):
        lines = _lines() + [DiscountRequestLine("C3", "Cheese", Money.of("4.00"), 0)]
        assert [i["upc"] for i in build_payload(lines)["items"]] == ["A1", "B2"]


class TestParseOffer:

    def test_zero_amount_lines_kept_raw_but_not_qualifying(self):
        offer = parse_offer(GOOD_BODY)
        assert len(offer.lines) == 2
        assert [line.description for line in offer.qualifying_lines] == ["Bread 3 for 2"]
        assert offer.total_discount == Money.of("1.00")
        assert offer.discounted_subtotal == Money.of("5.00")

    def test_missing_discounts_means_none(self):
        offer = parse_offer({"totalDiscount": 0, "discountedTotal": 6.0})
        assert offer.is_trivial

    @pytest.mark.parametrize(
        "body",
        [
            [],
            {"discounts": [], "discountedTotal": 5.0},
            {"discounts": "nope", "totalDiscount": 0, "discountedTotal": 5.0},
            {"discounts": [{"description": "x", "amount": "abc"}],
             "totalDiscount": 0, "discountedTotal": 5.0},
            {"discounts": [], "totalDiscount": True, "discountedTotal": 5.0},
            {"discounts": [], "totalDiscount": -1, "discountedTotal": 5.0},
        ],
    )
    def test_malformed_bodies_are_unavailable(self, body):
        with pytest.raises(DiscountServiceUnavailable, match="Malformed"):
            parse_offer(body)


class TestHttpDiscountService:

    def test_posts_json_with_timeout(self):
        session = FakeSession(FakeResponse(body=GOOD_BODY))
        service = HttpDiscountService(URL, timeout=2.5, session=session)

        offer = service.calculate(_lines())

        (call,) = session.calls
        assert call["url"] == URL
        assert call["timeout"] == 2.5
        assert call["json"]["items"][0]["upc"] == "A1"
        assert offer.total_discount == Money.of("1.00")

    def test_connection_error_is_unavailable(self):
        session = FakeSession(error=requests.exceptions.ConnectionError("refused"))
        service = HttpDiscountService(URL, session=session)
        with pytest.raises(DiscountServiceUnavailable, match="request failed"):
            service.calculate(_lines())

    def test_timeout_is_unavailable(self):
        session = FakeSession(error=requests.exceptions.Timeout("read timed out"))
        service = HttpDiscountService(URL, session=session)
        with pytest.raises(DiscountServiceUnavailable):
            service.calculate(_lines())

    def test_non_2xx_is_unavailable(self):
        session = FakeSession(FakeResponse(status_code=503, body=GOOD_BODY))
        service = HttpDiscountService(URL, session=session)
        with pytest.raises(DiscountServiceUnavailable, match="returned 503"):
            service.calculate(_lines())

    def test_invalid_json_is_unavailable(self):
        session = FakeSession(FakeResponse(bad_json=True))
        service = HttpDiscountService(URL, session=session)
        with pytest.raises(DiscountServiceUnavailable, match="Invalid JSON"):
            service.calculate(_lines())

    @pytest.mark.parametrize("timeout", [0, -1])
    def test_non_positive_timeout_rejected_up_front(self, timeout):
        with pytest.raises(ValidationError, match="timeout must be positive"):
            HttpDiscountService(URL, timeout=timeout, session=FakeSession())
