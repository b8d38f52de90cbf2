"""Main CLI entry point for the td-commission command."""

import click
from decimal import Decimal
from pathlib import Path
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from typing import Optional

from ..storage.database import TransactionDatabase
from ..transactions.errors import TransactionError
from ..transactions.models import Transaction
from ..transactions.stages import TransactionStage, next_stage
from ..transactions.tracker import TransactionTracker

console = Console()

STAGE_COLORS = {
    TransactionStage.AGREEMENT: "cyan",
    TransactionStage.EARNEST_MONEY: "yellow",
    TransactionStage.TITLE_DEED: "blue",
    TransactionStage.COMPLETED: "green",
}


def get_tracker(db_path: Optional[str] = None) -> TransactionTracker:
    """Get tracker instance."""
    path = Path(db_path) if db_path else None
    return TransactionTracker(TransactionDatabase(path))


def fail(error: TransactionError):
    console.print(f"[red]{error.message}[/red]")
    raise SystemExit(1)


def _stage_label(stage: TransactionStage) -> str:
    color = STAGE_COLORS[stage]
    return f"[{color}]{stage.value}[/{color}]"


def _money(amount: Optional[Decimal]) -> str:
    return f"${amount:,.2f}" if amount is not None else "N/A"


def _parse_amount(value: str, param_hint: str) -> Decimal:
    try:
        amount = Decimal(value)
    except ArithmeticError:
        raise click.BadParameter(f"'{value}' is not a number", param_hint=param_hint)
    if not amount.is_finite():
        raise click.BadParameter(f"'{value}' is not a finite number", param_hint=param_hint)
    return amount


@click.group()
@click.version_option(version="1.0.0", prog_name="td-commission")
def cli():
    """TD Commission Engine - transaction stages and commission splits.

    \b
    Quick Start:
      td-commission init
      td-commission create --fee 10000 --listing Alice --selling Bob
      td-commission advance <id> --stage earnest_money --earnest-money 3000
      td-commission show <id>
    """
    pass


@cli.command()
@click.option("--db", "db_path", help="Custom database path")
def init(db_path: Optional[str]):
    """Initialize the transactions database."""
    tracker = get_tracker(db_path)
    console.print(Panel.fit(
        f"[green]✓ Database initialized![/green]\n\n"
        f"Location: [cyan]{tracker.database.db_path}[/cyan]",
        title="TD Commission Engine v1.0"
    ))


@cli.command()
@click.option("--fee", "total_service_fee", type=str, required=True, help="Total service fee")
@click.option("--listing", "listing_agent", required=True, help="Listing agent name or code")
@click.option("--selling", "selling_agent", required=True, help="Selling agent name or code")
@click.option("--db", "db_path", help="Custom database path")
def create(total_service_fee: str, listing_agent: str, selling_agent: str, db_path: Optional[str]):
    """Create a transaction in the agreement stage."""
    fee = _parse_amount(total_service_fee, "--fee")
    tracker = get_tracker(db_path)
    try:
        txn = tracker.create_transaction(fee, listing_agent, selling_agent)
    except TransactionError as e:
        fail(e)

    console.print(f"[green]✓ Created transaction {txn.id}[/green]")


@cli.command("list")
@click.option("--stage", type=click.Choice([s.value for s in TransactionStage]), help="Filter by stage")
@click.option("--db", "db_path", help="Custom database path")
def list_transactions(stage: Optional[str], db_path: Optional[str]):
    """List transactions."""
    tracker = get_tracker(db_path)
    try:
        transactions = tracker.list_transactions()
    except TransactionError as e:
        fail(e)

    if stage:
        transactions = [t for t in transactions if t.stage.value == stage]

    if not transactions:
        console.print("[yellow]No transactions found.[/yellow]")
        return

    table = Table(title=f"Transactions ({len(transactions)})")
    table.add_column("ID", style="dim")
    table.add_column("Stage", justify="center")
    table.add_column("Fee", justify="right", style="bold")
    table.add_column("Listing", style="cyan", max_width=25)
    table.add_column("Selling", style="cyan", max_width=25)
    table.add_column("Created")

    for txn in transactions:
        table.add_row(
            txn.id,
            _stage_label(txn.stage),
            _money(txn.total_service_fee),
            txn.listing_agent[:25],
            txn.selling_agent[:25],
            txn.created_at.strftime("%Y-%m-%d %H:%M"),
        )

    console.print(table)


def _render(txn: Transaction):
    breakdown = txn.financial_breakdown
    upcoming = next_stage(txn.stage)
    info_lines = [
        f"[bold]Stage:[/bold] {_stage_label(txn.stage)}",
        f"[bold]Next:[/bold] {upcoming.value if upcoming else 'none (completed)'}",
        f"[bold]Total Service Fee:[/bold] {_money(txn.total_service_fee)}",
        f"[bold]Listing Agent:[/bold] {txn.listing_agent}",
        f"[bold]Selling Agent:[/bold] {txn.selling_agent}",
        f"[bold]Earnest Money:[/bold] {_money(txn.earnest_money)}",
        "",
        "[bold]Financial Breakdown:[/bold]",
        f"  Agency:        {_money(breakdown.agency)}",
        f"  Listing Agent: {_money(breakdown.listing_agent)}",
        f"  Selling Agent: {_money(breakdown.selling_agent)}",
    ]
    if txn.commission_detail:
        info_lines.extend(["", txn.commission_detail])

    console.print(Panel("\n".join(info_lines), title=f"Transaction {txn.id}"))

    history = Table(title="Stage History")
    history.add_column("#", justify="right", style="dim")
    history.add_column("Stage")
    history.add_column("Changes")
    history.add_column("Updated")
    for i, entry in enumerate(txn.stage_history, 1):
        changes = ", ".join(sorted(entry.changes)) or "-"
        history.add_row(
            str(i),
            _stage_label(entry.stage),
            changes,
            entry.updated_at.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(history)


@cli.command()
@click.argument("txn_id")
@click.option("--db", "db_path", help="Custom database path")
def show(txn_id: str, db_path: Optional[str]):
    """Show a transaction and its stage history."""
    tracker = get_tracker(db_path)
    try:
        txn = tracker.get_transaction(txn_id)
    except TransactionError as e:
        fail(e)

    _render(txn)


@cli.command()
@click.argument("txn_id")
@click.option("--stage", type=click.Choice([s.value for s in TransactionStage]), required=True,
              help="Stage to move to")
@click.option("--earnest-money", type=str, help="Earnest money (required for earnest_money)")
@click.option("--db", "db_path", help="Custom database path")
def advance(txn_id: str, stage: str, earnest_money: Optional[str], db_path: Optional[str]):
    """Move a transaction to its next stage."""
    amount = _parse_amount(earnest_money, "--earnest-money") if earnest_money is not None else None
    tracker = get_tracker(db_path)
    try:
        before = tracker.get_transaction(txn_id)
        txn = tracker.update_stage(txn_id, stage, amount)
    except TransactionError as e:
        fail(e)

    console.print(f"[green]✓ Transaction {txn_id}: {before.stage.value} → {txn.stage.value}[/green]")
    if txn.commission_detail:
        console.print(txn.commission_detail)


@cli.command()
@click.option("--db", "db_path", help="Custom database path")
def stats(db_path: Optional[str]):
    """Show pipeline statistics."""
    tracker = get_tracker(db_path)
    try:
        data = tracker.get_pipeline_summary()
    except TransactionError as e:
        fail(e)

    stage_lines = "\n".join(
        f"  {_stage_label(TransactionStage(stage))}: {s['count']} ({_money(s['total_service_fee'])})"
        for stage, s in data["by_stage"].items()
    )

    console.print(Panel.fit(
        f"[bold]Total Transactions:[/bold] {data['total_transactions']}\n\n"
        f"[bold]By Stage:[/bold]\n{stage_lines}\n\n"
        f"[bold]Completed Fees:[/bold] {_money(data['completed_service_fees'])}",
        title="Pipeline Statistics"
    ))


if __name__ == "__main__":
    cli()
