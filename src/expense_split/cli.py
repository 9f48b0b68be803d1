"""CLI for expense-split using Typer."""

import json
import logging
import sys
from decimal import Decimal
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from .assembler import ExpenseAssembler
from .categories import DEFAULT_CATEGORIES
from .config import load_settings
from .engine import compute_shares, quantize_money, to_decimal
from .exceptions import AssemblyError, ExpenseSplitError
from .models import (
    ExpenseInput,
    ExpenseRecord,
    Group,
    Participant,
    ShareLine,
    SplitStrategy,
)
from .ui import select_category_interactive
from .validator import validate_split

app = typer.Typer(
    name="expense-split",
    help="Split shared expenses equally, by percentage or by exact amounts",
)

console = Console()


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def format_money(amount: Decimal, use_color: bool = True) -> str:
    """Format a share amount with two decimals and thousands separators."""
    if use_color:
        return f"[green]${amount:,.2f}[/green]"
    return f"${amount:,.2f}"


def display_shares(shares: list[ShareLine], total: Decimal, title: str = "Shares"):
    """Display share lines in a table with a reconciliation summary."""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Participant", style="cyan")
    table.add_column("Amount", justify="right", width=14)
    table.add_column("Paid", justify="center", width=6)

    for line in shares:
        table.add_row(
            line.participant_id,
            format_money(line.amount),
            "✓" if line.is_payer else "",
        )

    console.print(table)

    computed_total = sum((line.amount for line in shares), Decimal("0"))
    if computed_total == total:
        console.print(f"  [green]✓ Shares add up to {format_money(total)}[/green]")
    else:
        console.print(
            f"  [yellow]Shares add up to {computed_total}, "
            f"total is {total}[/yellow]"
        )


def display_record(record: ExpenseRecord):
    """Display an assembled expense record."""
    console.print("\n[bold]Expense:[/bold]")
    console.print(f"  Description: {record.description}")
    console.print(f"  Date: {record.date.date()}")
    console.print(f"  Category: {record.category}")
    console.print(f"  Split: {record.strategy.value}")
    if record.group_id:
        console.print(f"  Group: {record.group_id}")
    console.print(f"  Total: {format_money(record.total_amount)}")
    console.print()

    display_shares(record.shares, record.total_amount, title="Split Lines")

    console.print(
        f"  {record.payer_id} is owed {format_money(record.amount_owed_to_payer())}"
    )


@app.command()
def split(
    amount: str = typer.Argument(..., help="Total amount, e.g. 42.50"),
    participants: list[str] = typer.Option(
        ..., "--participant", "-p", help="Participant id (repeat for each person)"
    ),
    strategy: SplitStrategy = typer.Option(
        SplitStrategy.EQUAL, "--strategy", "-s", help="How to split the total"
    ),
    values: list[str] | None = typer.Option(
        None,
        "--value",
        help="Percentage or exact amount per participant, in participant order",
    ),
    payer: str | None = typer.Option(
        None, "--payer", help="Participant who paid (defaults to the first)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    Compute and check a split without building a full expense.
    """
    setup_logging(verbose)

    try:
        settings = load_settings()
        total = quantize_money(to_decimal(amount))
        people = [Participant(id=pid, name=pid) for pid in participants]
        payer_id = payer or people[0].id

        shares = compute_shares(
            strategy,
            total,
            people,
            split_inputs=values or None,
            payer_id=payer_id,
            percentage_tolerance=settings.percentage_tolerance,
        )
        display_shares(shares, total)

        validate_split(
            shares, total, payer_id, people, tolerance=settings.split_tolerance
        )
        console.print("\n[bold green]✓ Split is valid[/bold green]")

    except (ExpenseSplitError, ValueError) as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if verbose:
            raise
        sys.exit(1)


@app.command()
def assemble(
    input_file: Path = typer.Argument(
        ..., exists=True, dir_okay=False, help="Expense form input as JSON"
    ),
    user_id: str = typer.Option(..., "--user-id", help="Id of the submitting user"),
    user_name: str = typer.Option("You", "--user-name", help="Submitter's name"),
    group_file: Path | None = typer.Option(
        None, "--group", exists=True, dir_okay=False, help="Group with members as JSON"
    ),
    pick_category: bool = typer.Option(
        False, "--pick-category", help="Choose a category interactively if blank"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the record as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    Assemble an expense record from form input.

    Computes the split, validates it, and prints the record that would be
    handed to storage.
    """
    setup_logging(verbose)

    try:
        settings = load_settings()
        assembler = ExpenseAssembler(settings)

        raw = ExpenseInput.model_validate_json(input_file.read_text())
        group = None
        if group_file:
            group = Group.model_validate_json(group_file.read_text())
        current_user = Participant(id=user_id, name=user_name)

        if pick_category and not raw.category:
            chosen = select_category_interactive(assembler.categories, raw.description)
            raw = raw.model_copy(update={"category": chosen})

        record = assembler.assemble(raw, current_user, group)

        if as_json:
            print(json.dumps(record.to_payload(), indent=2))
        else:
            display_record(record)
            console.print("\n[bold green]✓ Expense is ready to save[/bold green]")

    except AssemblyError as e:
        console.print(f"\n[bold red]Invalid {e.field}:[/bold red] {e}")
        if verbose:
            raise
        sys.exit(1)
    except Exception as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if verbose:
            raise
        sys.exit(1)


@app.command()
def categories():
    """List the known expense categories."""
    table = Table(title="Categories", show_header=True, header_style="bold magenta")
    table.add_column("Group", style="dim")
    table.add_column("Category", style="cyan")

    for category in DEFAULT_CATEGORIES:
        table.add_row(category.group_name, category.id)

    console.print(table)


if __name__ == "__main__":
    app()
