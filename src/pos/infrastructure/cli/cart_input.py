"""Parsing and display helpers shared by the CLI commands."""

from __future__ import annotations

import click

from pos.application.cart_ledger import CartLedger
from pos.application.dto import CartLineDTO, TransactionSnapshot


def parse_items(raw: str) -> list[tuple[str, int]]:
    """Parse 'CODE:QTY,CODE:QTY' into (code, quantity) pairs.

    A bare code means quantity 1.
    """
    specs: list[tuple[str, int]] = []
    for pair in raw.split(","):
        pair = pair.strip()
        if not pair:
            continue
        if ":" not in pair:
            specs.append((pair, 1))
            continue
        code, qty_str = pair.rsplit(":", 1)
        try:
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(
                f"Invalid quantity '{qty_str}' for code '{code}'."
            )
        specs.append((code.strip(), qty))
    return specs


def ring_up(ledger: CartLedger, specs: list[tuple[str, int]]) -> None:
    """Add each code once, then set the requested quantity."""
    for code, qty in specs:
        ledger.add_item(code)
        ledger.set_quantity(code, ledger.lines.get(code, 0) - 1 + qty)


def echo_lines(lines: list[CartLineDTO]) -> None:
    click.echo(f"  {'Qty':>5} {'Item':<30} {'Price':>10} {'Total':>10}")
    click.echo(f"  {'-'*58}")
    for line in lines:
        click.echo(
            f"  {line.quantity:>5} {_truncate(line.description, 30):<30} "
            f"{str(line.unit_price):>10} {str(line.line_total):>10}"
        )
    click.echo(f"  {'-'*58}")


def echo_snapshot(snapshot: TransactionSnapshot) -> None:
    if snapshot.is_empty:
        click.echo("Cart is empty.")
        return
    echo_lines(snapshot.lines)
    click.echo(f"  {'Subtotal':<46} {str(snapshot.subtotal):>12}")
    if not snapshot.discount.is_zero:
        click.echo(f"  {'Discount':<46} {'-' + str(snapshot.discount):>12}")
    click.echo(f"  {'Tax':<46} {str(snapshot.tax):>12}")
    click.echo(f"  {'Total':<46} {str(snapshot.grand_total):>12}")


def _truncate(text: str, width: int) -> str:
    if len(text) <= width:
        return text
    return text[: width - 3] + "..."
