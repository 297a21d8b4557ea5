"""Typer CLI interface for the tax-lot engine."""

import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console
from rich.table import Table

from taxlots.engines.harvest import HarvestAdvisor
from taxlots.engines.portfolio import TaxLotEngine
from taxlots.exceptions import TaxComputationError
from taxlots.ingestion.transactions import TransactionFileAdapter, load_selections
from taxlots.models.enums import AccountingMethod
from taxlots.models.lots import LotSelection
from taxlots.models.transaction import Transaction
from taxlots.reports.form8949 import Form8949Generator
from taxlots.reports.tax_summary import TaxSummaryGenerator

app = typer.Typer(
    name="taxlots",
    help="taxlots — tax-lot accounting, realized gains and wash sale detection.",
)

FILE_ARG = typer.Argument(..., help="Transaction log (.json or .csv)")
METHOD_OPT = typer.Option(
    "FIFO", "--method", "-m", help="Accounting method: FIFO, LIFO, SPECIFIC_LOT, AVERAGE_COST"
)
SELECTIONS_OPT = typer.Option(
    None, "--selections", help="JSON file of lot selections per sale id (SPECIFIC_LOT)"
)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log replay details"),
) -> None:
    """taxlots — tax-lot accounting, realized gains and wash sale detection."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def _fail(message: str) -> NoReturn:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(1)


def _parse_method(method: str) -> AccountingMethod:
    try:
        return AccountingMethod.parse(method)
    except ValueError:
        valid = ", ".join(m.value for m in AccountingMethod)
        _fail(f"Invalid accounting method '{method}'. Valid: {valid}")


def _load(
    file: Path, selections_file: Path | None
) -> tuple[list[Transaction], dict[str, list[LotSelection]] | None]:
    adapter = TransactionFileAdapter()
    try:
        result = adapter.parse(file)
        selections = load_selections(selections_file) if selections_file else None
    except (FileNotFoundError, TaxComputationError) as exc:
        _fail(str(exc))
    for problem in adapter.validate(result):
        typer.echo(f"Warning: {problem}", err=True)
    return result.transactions, selections


def _parse_price(value: str) -> Decimal | None:
    try:
        price = Decimal(value.replace(",", "").replace("$", "").strip())
    except InvalidOperation:
        return None
    return price if price.is_finite() and price >= 0 else None


def _parse_prices(prices: list[str]) -> dict[str, Decimal]:
    parsed: dict[str, Decimal] = {}
    for entry in prices:
        ticker, sep, value = entry.partition("=")
        price = _parse_price(value) if sep else None
        if price is None:
            _fail(f"Invalid price '{entry}'. Use TICKER=PRICE, e.g. AAPL=182.50")
        parsed[ticker.strip().upper()] = price
    return parsed


@app.command()
def report(
    file: Path = FILE_ARG,
    year: int = typer.Option(..., "--year", "-y", help="Tax year to report"),
    method: str = METHOD_OPT,
    selections: Path | None = SELECTIONS_OPT,
    as_json: bool = typer.Option(False, "--json", help="Print the report as JSON"),
) -> None:
    """Summarize realized gains, income and wash sales for a tax year."""
    accounting = _parse_method(method)
    transactions, chosen = _load(file, selections)
    try:
        tax_report = TaxLotEngine().tax_report(transactions, year, accounting, chosen)
    except TaxComputationError as exc:
        _fail(str(exc))

    if as_json:
        typer.echo(tax_report.model_dump_json(indent=2))
        return
    typer.echo(TaxSummaryGenerator().render(tax_report, accounting))


@app.command()
def lots(
    file: Path = FILE_ARG,
    ticker: str = typer.Option(..., "--ticker", "-t", help="Ticker to show"),
    method: str = METHOD_OPT,
    price: str | None = typer.Option(None, "--price", "-p", help="Current price per share"),
    selections: Path | None = SELECTIONS_OPT,
) -> None:
    """Show open lots and the position summary for one ticker."""
    accounting = _parse_method(method)
    transactions, chosen = _load(file, selections)
    current = None
    if price is not None:
        current = _parse_price(price)
        if current is None:
            _fail(f"Invalid price '{price}'. Use a number, e.g. 182.50")
    try:
        position = TaxLotEngine().position(transactions, ticker, accounting, current, chosen)
    except TaxComputationError as exc:
        _fail(str(exc))

    table = Table(title=f"Open lots: {position.ticker} ({accounting.value})")
    table.add_column("Lot")
    table.add_column("Acquired")
    table.add_column("Original", justify="right")
    table.add_column("Remaining", justify="right")
    table.add_column("Basis/sh", justify="right")
    for lot in position.open_lots:
        table.add_row(
            lot.lot_id,
            lot.acquisition_date.isoformat(),
            f"{lot.original_shares.normalize():f}",
            f"{lot.remaining_shares.normalize():f}",
            f"{lot.cost_basis_per_share:,.4f}",
        )
    console = Console()
    console.print(table)
    console.print(f"Shares open:      {position.total_shares.normalize():f}")
    console.print(f"Cost basis:       {position.total_cost_basis:,.2f}")
    console.print(f"Average basis/sh: {position.average_cost_basis:,.4f}")
    console.print(f"Realized gain:    {position.realized_gain:,.2f}")
    if position.unrealized_gain is not None:
        console.print(f"Unrealized gain:  {position.unrealized_gain:,.2f}")


@app.command(name="wash-sales")
def wash_sales(
    file: Path = FILE_ARG,
    method: str = METHOD_OPT,
    selections: Path | None = SELECTIONS_OPT,
) -> None:
    """List wash sale flags across every ticker in the log."""
    accounting = _parse_method(method)
    transactions, chosen = _load(file, selections)
    try:
        results = TaxLotEngine().process_all(transactions, accounting, chosen)
    except TaxComputationError as exc:
        _fail(str(exc))

    flags = [flag for _, ticker_flags in results.values() for flag in ticker_flags]
    if not flags:
        typer.echo("No wash sales detected.")
        return

    table = Table(title="Wash sale flags")
    table.add_column("Ticker")
    table.add_column("Sale")
    table.add_column("Sold")
    table.add_column("Loss", justify="right")
    table.add_column("Replacement")
    table.add_column("Days", justify="right")
    table.add_column("Disallowed", justify="right")
    for flag in flags:
        table.add_row(
            flag.ticker,
            flag.sale_transaction_id,
            flag.sale_date.isoformat(),
            f"{flag.realized_loss:,.2f}",
            f"{flag.replacement_transaction_id} ({flag.replacement_date.isoformat()})",
            f"{flag.days_from_sale:+d}",
            f"{flag.disallowed_loss:,.2f}",
        )
    Console().print(table)


@app.command()
def form8949(
    file: Path = FILE_ARG,
    year: int = typer.Option(..., "--year", "-y", help="Tax year to report"),
    method: str = METHOD_OPT,
    selections: Path | None = SELECTIONS_OPT,
) -> None:
    """Render Form 8949 lines for sales in a tax year."""
    accounting = _parse_method(method)
    transactions, chosen = _load(file, selections)
    try:
        results = TaxLotEngine().process_all(transactions, accounting, chosen)
    except TaxComputationError as exc:
        _fail(str(exc))

    allocations = [
        allocation
        for result, _ in results.values()
        for allocation in result.allocations
        if allocation.sale_date.year == year
    ]
    flags = [flag for _, ticker_flags in results.values() for flag in ticker_flags]
    generator = Form8949Generator()
    typer.echo(generator.render(generator.generate_lines(allocations, flags)))


@app.command()
def harvest(
    file: Path = FILE_ARG,
    price: list[str] = typer.Option(..., "--price", "-p", help="Current price as TICKER=PRICE"),
    as_of: str | None = typer.Option(None, "--as-of", help="Evaluation date (YYYY-MM-DD), default today"),
    method: str = METHOD_OPT,
    selections: Path | None = SELECTIONS_OPT,
) -> None:
    """Suggest tax-loss harvesting candidates and surface wash sale warnings."""
    accounting = _parse_method(method)
    prices = _parse_prices(price)
    try:
        evaluation_date = date.fromisoformat(as_of) if as_of else date.today()
    except ValueError:
        _fail(f"Invalid --as-of date '{as_of}'. Use YYYY-MM-DD")
    transactions, chosen = _load(file, selections)

    engine = TaxLotEngine()
    advisor = HarvestAdvisor()
    try:
        positions = [
            engine.position(transactions, ticker, accounting, current, chosen)
            for ticker, current in prices.items()
        ]
        results = engine.process_all(transactions, accounting, chosen)
    except TaxComputationError as exc:
        _fail(str(exc))

    flags = [flag for _, ticker_flags in results.values() for flag in ticker_flags]
    suggestions = advisor.rank(
        advisor.find_opportunities(positions, transactions, evaluation_date)
        + advisor.wash_sale_warnings(flags)
    )
    if not suggestions:
        typer.echo("No harvesting opportunities or wash sale warnings.")
        return
    for suggestion in suggestions:
        typer.echo(f"[{suggestion.priority.value}] {suggestion.title}")
        typer.echo(f"  {suggestion.description}")
        typer.echo(f"  Estimated savings: ${suggestion.estimated_savings:,.2f}")
        typer.echo(f"  Action: {suggestion.action}")
        for warning in suggestion.warnings:
            typer.echo(f"  Warning: {warning}")
