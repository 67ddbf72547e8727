"""Composition root — wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from pos.application.cart_ledger import CartLedger
from pos.application.checkout import CheckoutHandler
from pos.application.discount_negotiator import DiscountNegotiator
from pos.application.register import RegisterSession
from pos.domain.service.input_classifier import ClassifierSettings
from pos.domain.service.popularity_ranker import PopularityRanker
from pos.domain.service.scheduler import Scheduler
from pos.infrastructure.config import Settings
from pos.infrastructure.discount.http_discount_service import HttpDiscountService
from pos.infrastructure.persistence.json_held_order_store import JsonHeldOrderStore
from pos.infrastructure.persistence.json_sale_recorder import JsonSaleRecorder
from pos.infrastructure.persistence.tsv_price_book import TsvPriceBook
from pos.infrastructure.scheduling import ThreadingScheduler


def price_book(settings: Settings) -> TsvPriceBook:
    return TsvPriceBook(settings.price_book_path)


def held_order_store(settings: Settings) -> JsonHeldOrderStore:
    return JsonHeldOrderStore(settings.held_orders_path)


def sale_recorder(settings: Settings) -> JsonSaleRecorder:
    return JsonSaleRecorder(settings.sales_path)


def discount_service(settings: Settings) -> HttpDiscountService:
    return HttpDiscountService(settings.discount_url, timeout=settings.discount_timeout)


def classifier_settings(settings: Settings) -> ClassifierSettings:
    return ClassifierSettings(
        fast_gap_ms=settings.fast_gap_ms,
        inactivity_commit_ms=settings.inactivity_commit_ms,
        min_len=settings.min_len,
        max_len=settings.max_len,
    )


def cart_ledger(settings: Settings, book: TsvPriceBook | None = None) -> CartLedger:
    return CartLedger(
        price_book=book or price_book(settings),
        held_orders=held_order_store(settings),
        sales=sale_recorder(settings),
        tax_rate=settings.tax_rate,
    )


def register_session(
    settings: Settings, scheduler: Scheduler | None = None
) -> RegisterSession:
    """Without a scheduler, timer callbacks queue up until the caller runs
    ``ThreadingScheduler.run_pending`` on its own thread."""
    book = price_book(settings)
    sales = sale_recorder(settings)
    ledger = CartLedger(
        price_book=book,
        held_orders=held_order_store(settings),
        sales=sales,
        tax_rate=settings.tax_rate,
    )
    checkout = CheckoutHandler(ledger, DiscountNegotiator(discount_service(settings)))
    return RegisterSession(
        ledger=ledger,
        ranker=PopularityRanker(book, slots=settings.shortcut_slots),
        sales=sales,
        scheduler=scheduler or ThreadingScheduler(),
        checkout=checkout,
        classifier_settings=classifier_settings(settings),
    )
