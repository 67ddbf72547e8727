from __future__ import annotations

from pathlib import Path

import click

from pos.domain.exceptions import DomainException
from pos.infrastructure.cli.held_commands import held_hold, held_list
from pos.infrastructure.cli.item_commands import item_list, item_lookup, popular
from pos.infrastructure.cli.sale_commands import sale_checkout, sale_history
from pos.infrastructure.cli.scan_commands import scan_replay
from pos.infrastructure.config import Settings
from pos.infrastructure.logging_setup import LOG_LEVELS, setup_logging


@click.group()
@click.option("--data-dir", type=click.Path(path_type=Path), default=None, help="Directory holding the price book and stores.")
@click.option("--price-book", type=click.Path(path_type=Path), default=None, help="Price book TSV (defaults to <data-dir>/pricebook.tsv).")
@click.option("--discount-url", default=None, help="Discount service endpoint (DISCOUNT_SERVICE_URL wins if set).")
@click.option("--log-level", type=click.Choice(sorted(LOG_LEVELS), case_sensitive=False), default="WARNING", show_default=True)
@click.option("--log-file", type=click.Path(path_type=Path), default=None, help="Also log to this rotating file.")
@click.pass_context
def cli(
    ctx: click.Context,
    data_dir: Path | None,
    price_book: Path | None,
    discount_url: str | None,
    log_level: str,
    log_file: Path | None,
) -> None:
    """POS — register transaction core"""
    setup_logging(log_level, log_file)
    try:
        ctx.obj = Settings.load(
            {"data_dir": data_dir, "price_book": price_book, "discount_url": discount_url}
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))


@cli.group()
def item() -> None:
    """Look up price-book items."""


@cli.group()
def sale() -> None:
    """Ring up and review sales."""


@cli.group()
def held() -> None:
    """Manage held orders."""


@cli.group()
def scan() -> None:
    """Scanner input tools."""


# Register subcommands
item.add_command(item_list)
item.add_command(item_lookup)
sale.add_command(sale_checkout)
sale.add_command(sale_history)
held.add_command(held_hold)
held.add_command(held_list)
scan.add_command(scan_replay)
cli.add_command(popular)
