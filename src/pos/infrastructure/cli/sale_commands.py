"""CLI commands for checking out and reviewing sales."""

from __future__ import annotations

import click

from pos.application.cart_ledger import CartLedger
from pos.application.checkout import DecideDiscount, DiscountChoice
from pos.application.dto import SaleReceipt
from pos.domain.exceptions import DomainException
from pos.domain.model.discount import DiscountOffer
from pos.domain.model.sale import PaymentMethod
from pos.infrastructure import bootstrap
from pos.infrastructure.cli.cart_input import echo_lines, echo_snapshot, parse_items, ring_up
from pos.infrastructure.config import Settings
from pos.infrastructure.scheduling import SimulatedScheduler

TENDER_METHODS = {
    "card": PaymentMethod.CARD,
    "exact": PaymentMethod.CASH_EXACT,
    "next": PaymentMethod.CASH_NEXT_DOLLAR,
    "custom": PaymentMethod.CASH_CUSTOM,
}


def parse_selection(raw: str | None) -> list[int]:
    """Turn '1,3' (as shown to the operator) into 0-based indexes."""
    if not raw:
        return []
    indexes: list[int] = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        if not part.isdigit() or int(part) < 1:
            raise click.BadParameter(f"Invalid discount number '{part}'.")
        indexes.append(int(part) - 1)
    return indexes


def echo_offer(offer: DiscountOffer) -> None:
    click.echo("Discounts available:")
    for number, line in enumerate(offer.qualifying_lines, start=1):
        click.echo(f"  {number}. {line.description:<40} -{line.amount}")
    click.echo(f"  Total discount: {offer.total_discount}")
    click.echo(f"  New subtotal:   {offer.discounted_subtotal}")


def make_decider(mode: str, select: str | None) -> DecideDiscount:
    preset = parse_selection(select)

    def decide(offer: DiscountOffer) -> tuple[DiscountChoice, list[int]]:
        echo_offer(offer)
        choice = mode
        selected = preset
        if choice == "prompt":
            choice = click.prompt(
                "Apply discounts",
                type=click.Choice([c.value for c in DiscountChoice]),
                default=DiscountChoice.APPLY_ALL.value,
            )
            if choice == DiscountChoice.SUBSET.value:
                selected = parse_selection(click.prompt("Discount numbers (e.g. 1,3)"))
        return DiscountChoice(choice), selected

    return decide


def echo_receipt(receipt: SaleReceipt) -> None:
    click.echo(f"Sale #{receipt.sale_id}  {receipt.sold_at}")
    echo_lines(receipt.lines)
    click.echo(f"  {'Subtotal':<46} {str(receipt.subtotal):>12}")
    if not receipt.discount.is_zero:
        click.echo(f"  {'Discount':<46} {'-' + str(receipt.discount):>12}")
    click.echo(f"  {'Tax':<46} {str(receipt.tax):>12}")
    click.echo(f"  {'Total':<46} {str(receipt.total):>12}")
    click.echo(f"  {'Paid (' + receipt.payment_method + ')':<46} {str(receipt.tendered):>12}")
    click.echo(f"  {'Change':<46} {str(receipt.change):>12}")


def rehold(ledger: CartLedger, held_id: int) -> None:
    """Put a retrieved order back on hold after a failed checkout."""
    if ledger.is_empty:
        return
    try:
        new_id = ledger.hold()
    except DomainException as exc:
        raise click.ClickException(
            f"Checkout failed and order #{held_id} could not be held again: {exc}"
        )
    click.echo(f"Order #{held_id} held again. Order ID: {new_id}")


@click.command("checkout")
@click.option("--items", default=None, help="Items as 'CODE:Qty,CODE:Qty'.")
@click.option("--held", "held_id", type=int, default=None, help="Start from a held order.")
@click.option(
    "--discount",
    type=click.Choice(["prompt", "all", "subset", "skip"]),
    default="prompt",
    show_default=True,
    help="What to do with a discount offer.",
)
@click.option("--select", default=None, help="Discount numbers for --discount subset, e.g. '1,3'.")
@click.option(
    "--tender",
    type=click.Choice(sorted(TENDER_METHODS)),
    default="card",
    show_default=True,
)
@click.option("--amount", default=None, help="Cash tendered for --tender custom.")
@click.pass_obj
def sale_checkout(
    settings: Settings,
    items: str | None,
    held_id: int | None,
    discount: str,
    select: str | None,
    tender: str,
    amount: str | None,
) -> None:
    """Ring up a cart, negotiate discounts and take payment."""
    if not items and held_id is None:
        raise click.UsageError("Provide --items, --held or both.")

    specs = parse_items(items) if items else []
    method = TENDER_METHODS[tender]
    if method == PaymentMethod.CASH_CUSTOM and amount is None:
        amount = click.prompt("Amount tendered")

    retrieved = False
    try:
        session = bootstrap.register_session(settings, SimulatedScheduler())
        if held_id is not None:
            session.ledger.retrieve(held_id)
            retrieved = True
        ring_up(session.ledger, specs)
        echo_snapshot(session.ledger.snapshot())
        receipt = session.pay(make_decider(discount, select), method, amount)
    except DomainException as exc:
        if retrieved:
            rehold(session.ledger, held_id)
        raise click.ClickException(str(exc))
    except (click.ClickException, click.Abort):
        if retrieved:
            rehold(session.ledger, held_id)
        raise

    echo_receipt(receipt)


@click.command("history")
@click.option("--limit", type=int, default=10, show_default=True)
@click.pass_obj
def sale_history(settings: Settings, limit: int) -> None:
    """Show the most recent sales."""
    try:
        sales = bootstrap.sale_recorder(settings).list_recent(limit)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not sales:
        click.echo("No sales recorded.")
        return

    click.echo(f"{'ID':<6} {'Sold at':<22} {'Method':<18} {'Units':>6} {'Total':>10}")
    click.echo("-" * 66)
    for sale in sales:
        units = sum(line.quantity for line in sale.lines)
        click.echo(
            f"{sale.id:<6} {sale.sold_at.strftime('%Y-%m-%d %H:%M UTC'):<22} "
            f"{sale.tender.method.value:<18} {units:>6} {str(sale.total):>10}"
        )
