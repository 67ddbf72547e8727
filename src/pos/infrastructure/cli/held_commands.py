"""CLI commands for held orders."""

from __future__ import annotations

import click

from pos.domain.exceptions import DomainException
from pos.infrastructure import bootstrap
from pos.infrastructure.cli.cart_input import echo_snapshot, parse_items, ring_up
from pos.infrastructure.config import Settings


@click.command("hold")
@click.option("--items", required=True, help="Items as 'CODE:Qty,CODE:Qty'.")
@click.pass_obj
def held_hold(settings: Settings, items: str) -> None:
    """Ring up a cart and park it as a held order."""
    specs = parse_items(items)
    try:
        ledger = bootstrap.cart_ledger(settings)
        ring_up(ledger, specs)
        snapshot = ledger.snapshot()
        order_id = ledger.hold()
    except DomainException as exc:
        raise click.ClickException(str(exc))

    echo_snapshot(snapshot)
    click.echo(f"Order held successfully. Order ID: {order_id}")


@click.command("list")
@click.pass_obj
def held_list(settings: Settings) -> None:
    """List held orders."""
    try:
        orders = bootstrap.cart_ledger(settings).held_orders()
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not orders:
        click.echo("No held orders.")
        return

    click.echo(f"{'ID':<6} {'Held at':<22} {'Lines':>6} {'Units':>6} {'Total':>10}")
    click.echo("-" * 54)
    for order in orders:
        click.echo(
            f"{order.id:<6} {order.held_at:<22} {order.line_count:>6} "
            f"{order.unit_count:>6} {order.total:>10}"
        )
