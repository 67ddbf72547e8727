"""CLI commands for price-book lookups and quick-key shortcuts."""

from __future__ import annotations

import click

from pos.domain.exceptions import DomainException, ItemNotFound
from pos.domain.model.value_objects import normalize_code
from pos.domain.service.popularity_ranker import PopularityRanker
from pos.infrastructure import bootstrap
from pos.infrastructure.config import Settings


@click.command("lookup")
@click.option("--code", required=True, help="Item code (UPC).")
@click.pass_obj
def item_lookup(settings: Settings, code: str) -> None:
    """Show one price-book entry."""
    try:
        code = normalize_code(code, settings.min_len, settings.max_len)
        found = bootstrap.price_book(settings).get(code)
        if found is None:
            raise ItemNotFound(code)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"{found.code}  {found.description}  {found.unit_price}")


@click.command("list")
@click.pass_obj
def item_list(settings: Settings) -> None:
    """List every item in the price book."""
    try:
        items = bootstrap.price_book(settings).list_all()
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not items:
        click.echo("No items found.")
        return

    click.echo(f"{'Code':<16} {'Description':<30} {'Price':>10}")
    click.echo("-" * 58)
    for entry in items:
        click.echo(f"{entry.code:<16} {entry.description:<30} {str(entry.unit_price):>10}")


@click.command("popular")
@click.pass_obj
def popular(settings: Settings) -> None:
    """Show quick-key shortcuts ranked by units sold."""
    try:
        book = bootstrap.price_book(settings)
        counts = bootstrap.sale_recorder(settings).historical_counts()
    except DomainException as exc:
        raise click.ClickException(str(exc))

    ranker = PopularityRanker(book, slots=settings.shortcut_slots)
    ranker.refresh(counts)
    shortcuts = ranker.shortcuts()

    if not shortcuts:
        click.echo("No shortcuts configured.")
        return

    click.echo(f"{'Key':<5} {'Code':<16} {'Description':<30} {'Sold':>6}")
    click.echo("-" * 60)
    for key, code in shortcuts.items():
        click.echo(f"{key:<5} {code:<16} {book.describe(code):<30} {counts.get(code, 0):>6}")
