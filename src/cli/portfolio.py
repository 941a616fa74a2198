"""Portfolio CLI commands."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from src.db.database import get_db
from src.core.portfolio.csv_io import (
    IMPORT_MODES,
    CSVImportError,
    export_holdings_csv,
    import_holdings,
    parse_holdings_csv,
)
from src.core.portfolio.models import PortfolioSummary
from src.core.portfolio.repository import HoldingRepository
from src.core.refresh import RefreshResult, value_portfolio
from src.data.market.models import AssetType, PriceSource
from src.config import get_settings

settings = get_settings()

console = Console()
app = typer.Typer()

SOURCE_STYLES = {
    PriceSource.LIVE: "green",
    PriceSource.FALLBACK: "yellow",
    PriceSource.UNKNOWN: "red",
}


def _parse_type(value: Optional[str]) -> Optional[AssetType]:
    if value is None:
        return None
    try:
        return AssetType.parse(value)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@app.command("add")
def add_holding(
    symbol: str = typer.Argument(..., help="Ticker or coin symbol (e.g., VFV, BTC)"),
    quantity: float = typer.Argument(..., help="Units held"),
    cost_basis: float = typer.Argument(..., help="Cost basis per unit"),
    asset_type: str = typer.Option("Stock", "--type", "-t", help="Stock, ETF or Crypto"),
    currency: Optional[str] = typer.Option(None, "--currency", help="Currency metadata"),
    exchange: Optional[str] = typer.Option(None, "--exchange", help="Exchange metadata"),
):
    """Add a new holding to the portfolio."""
    parsed_type = _parse_type(asset_type)

    with get_db() as db:
        repo = HoldingRepository(db)

        if repo.get_by_symbol(symbol):
            console.print(
                f"[yellow]Note:[/yellow] {symbol.upper()} is already held; "
                f"adding a separate position."
            )

        try:
            holding = repo.create(
                symbol=symbol,
                quantity=quantity,
                cost_basis_per_unit=cost_basis,
                asset_type=parsed_type,
                currency=currency,
                exchange=exchange,
            )
        except ValueError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1)

        console.print(
            f"[green]Added:[/green] {holding.symbol} ({holding.asset_type}) - "
            f"{quantity:g} @ {cost_basis:,.2f} = {holding.total_cost:,.2f} "
            f"[dim]id {holding.id}[/dim]"
        )


@app.command("list")
def list_holdings():
    """List all holdings in the portfolio."""
    with get_db() as db:
        repo = HoldingRepository(db)
        holdings = repo.get_all()

        if not holdings:
            console.print("[yellow]No holdings found.[/yellow] Use 'add' to add some.")
            return

        table = Table(title="Portfolio Holdings")
        table.add_column("ID", style="dim")
        table.add_column("Symbol", style="cyan")
        table.add_column("Type")
        table.add_column("Quantity", justify="right")
        table.add_column("Cost/Unit", justify="right", style="green")
        table.add_column("Total Cost", justify="right")
        table.add_column("Currency")
        table.add_column("Exchange")

        for h in holdings:
            table.add_row(
                h.id[:8],
                h.symbol,
                h.asset_type,
                f"{h.quantity:,.4g}",
                f"{h.cost_basis_per_unit:,.2f}",
                f"{h.total_cost:,.2f}",
                h.currency or "-",
                h.exchange or "-",
            )

        console.print(table)
        console.print(f"\n[dim]Total holdings: {len(holdings)}[/dim]")


def _resolve_holding_id(repo: HoldingRepository, holding_id: str) -> str:
    """Accept a full ID or an unambiguous prefix as shown by 'list'."""
    if repo.get_by_id(holding_id):
        return holding_id

    matches = [h.id for h in repo.get_all() if h.id.startswith(holding_id)]
    if len(matches) == 1:
        return matches[0]
    if matches:
        console.print(f"[red]Error:[/red] ID prefix {holding_id} is ambiguous.")
    else:
        console.print(f"[red]Error:[/red] Holding {holding_id} not found.")
    raise typer.Exit(1)


@app.command("update")
def update_holding(
    holding_id: str = typer.Argument(..., help="Holding ID (or prefix shown by 'list')"),
    quantity: Optional[float] = typer.Option(None, "--quantity", "-q", help="New quantity"),
    cost_basis: Optional[float] = typer.Option(
        None, "--cost", "-c", help="New cost basis per unit"
    ),
    asset_type: Optional[str] = typer.Option(None, "--type", "-t", help="Stock, ETF or Crypto"),
    symbol: Optional[str] = typer.Option(None, "--symbol", "-s", help="New symbol"),
):
    """Update an existing holding."""
    if quantity is None and cost_basis is None and asset_type is None and symbol is None:
        console.print(
            "[red]Error:[/red] Provide --quantity, --cost, --type and/or --symbol to update."
        )
        raise typer.Exit(1)

    parsed_type = _parse_type(asset_type)

    with get_db() as db:
        repo = HoldingRepository(db)
        holding_id = _resolve_holding_id(repo, holding_id)

        try:
            holding = repo.update(
                holding_id=holding_id,
                symbol=symbol,
                asset_type=parsed_type,
                quantity=quantity,
                cost_basis_per_unit=cost_basis,
            )
        except ValueError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1)

        console.print(
            f"[green]Updated:[/green] {holding.symbol} ({holding.asset_type}) - "
            f"{holding.quantity:g} @ {holding.cost_basis_per_unit:,.2f} = "
            f"{holding.total_cost:,.2f}"
        )


@app.command("remove")
def remove_holding(
    holding_id: str = typer.Argument(..., help="Holding ID (or prefix shown by 'list')"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
):
    """Remove a holding from the portfolio."""
    with get_db() as db:
        repo = HoldingRepository(db)
        holding = repo.get_by_id(_resolve_holding_id(repo, holding_id))

        if not force:
            confirm = typer.confirm(
                f"Remove {holding.symbol} ({holding.quantity:g} @ "
                f"{holding.cost_basis_per_unit:,.2f})?"
            )
            if not confirm:
                console.print("[yellow]Cancelled.[/yellow]")
                raise typer.Exit(0)

        repo.delete(holding.id)
        console.print(f"[green]Removed:[/green] {holding.symbol}")


def _print_summary(summary: PortfolioSummary) -> None:
    """Render positions, allocation and totals."""
    cur = summary.base_currency

    table = Table(title=f"Portfolio Value ({cur})")
    table.add_column("Symbol", style="cyan")
    table.add_column("Type")
    table.add_column("Quantity", justify="right")
    table.add_column("Cost/Unit", justify="right")
    table.add_column("Price", justify="right")
    table.add_column("Source")
    table.add_column("Value", justify="right")
    table.add_column("P&L", justify="right")
    table.add_column("P&L %", justify="right")

    for pos in summary.positions:
        style = SOURCE_STYLES[pos.price_source]
        pnl_color = "green" if pos.unrealized_pnl >= 0 else "red"
        price = "[red]N/A[/red]" if pos.price_source == PriceSource.UNKNOWN else f"{pos.price:,.2f}"
        table.add_row(
            pos.symbol,
            pos.asset_type.value,
            f"{pos.quantity:,.4g}",
            f"{pos.cost_basis_per_unit:,.2f}",
            price,
            f"[{style}]{pos.price_source.value}[/{style}]",
            f"{pos.current_value:,.2f}",
            f"[{pnl_color}]{pos.unrealized_pnl:+,.2f}[/{pnl_color}]",
            f"[{pnl_color}]{pos.unrealized_pnl_pct:+.2f}%[/{pnl_color}]",
        )

    console.print(table)

    if summary.allocation:
        alloc = Table(title="Allocation")
        alloc.add_column("Type", style="cyan")
        alloc.add_column("Value", justify="right")
        alloc.add_column("Weight", justify="right")
        for slice_ in summary.allocation:
            alloc.add_row(
                slice_.asset_type.value,
                f"{slice_.value:,.2f}",
                f"{slice_.weight_pct:.1f}%",
            )
        console.print(alloc)

    pnl_color = "green" if summary.pnl >= 0 else "red"
    console.print()
    console.print(f"[bold]Total Cost:[/bold]    {summary.cost:,.2f} {cur}")
    console.print(f"[bold]Total Value:[/bold]   {summary.current:,.2f} {cur}")
    console.print(
        f"[bold]Total P&L:[/bold]     [{pnl_color}]{summary.pnl:+,.2f} "
        f"({summary.pnl_pct:+.2f}%)[/{pnl_color}]"
    )


@app.command("value")
def portfolio_value():
    """Show portfolio value with resolved prices, P&L and allocation."""
    with get_db() as db:
        if not HoldingRepository(db).get_all():
            console.print("[yellow]No holdings found.[/yellow] Use 'add' to add some.")
            return

        result = value_portfolio(db)

    _print_summary(result.summary)
    if result.prices.unknown:
        console.print(
            f"\n[red]No price for:[/red] {', '.join(result.prices.unknown)} "
            f"[dim](valued at 0)[/dim]"
        )


@app.command("export")
def export_positions(
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output file path (default: stdout)",
    ),
):
    """Export holdings to CSV format."""
    with get_db() as db:
        holdings = HoldingRepository(db).get_all()
        csv_content = export_holdings_csv(holdings)

    if output:
        output.write_text(csv_content, encoding="utf-8")
        console.print(f"[green]Exported {len(holdings)} holdings to {output}[/green]")
    else:
        # Plain stdout so the output can be piped to a file
        typer.echo(csv_content, nl=False)


@app.command("import")
def import_positions(
    file_path: Path = typer.Argument(..., help="Path to holdings CSV file"),
    mode: str = typer.Option(
        "replace",
        "--mode",
        "-m",
        help="Import mode: replace (delete all first) or append (keep existing)",
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
):
    """Import holdings from a CSV file.

    Required columns (any order, any case): symbol, type, quantity,
    costBasisPerUnit. Optional: currency, exchange.

    Examples:
        tracker portfolio import holdings.csv
        tracker portfolio import more.csv --mode append
    """
    if mode not in IMPORT_MODES:
        console.print(f"[red]Error:[/red] Invalid mode: {mode}. Must be 'replace' or 'append'")
        raise typer.Exit(1)

    if not file_path.exists():
        console.print(f"[red]Error:[/red] File not found: {file_path}")
        raise typer.Exit(1)

    try:
        csv_content = file_path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        console.print(f"[red]Error reading file:[/red] {e}")
        raise typer.Exit(1)

    try:
        holdings = parse_holdings_csv(csv_content)
    except CSVImportError as e:
        console.print("[red]Import rejected:[/red]")
        for err in e.errors:
            console.print(f"  - {err}")
        raise typer.Exit(1)

    if mode == "replace" and not force:
        console.print(
            "[yellow]Warning:[/yellow] Mode 'replace' will DELETE all existing holdings first."
        )
        if not typer.confirm(f"Import {len(holdings)} holdings (mode={mode})?"):
            console.print("[yellow]Cancelled.[/yellow]")
            raise typer.Exit(0)

    with get_db() as db:
        result = import_holdings(db, holdings, mode)

    console.print("[green]Import complete![/green]")
    console.print(f"  Created: {result.created}")
    console.print(f"  Removed: {result.removed}")


@app.command("watch")
def watch_portfolio(
    interval: int = typer.Option(
        None,
        "--interval",
        "-n",
        help=f"Seconds between refreshes (default: {settings.refresh_interval_seconds})",
    ),
):
    """Refresh prices periodically and show the latest valuation."""
    from src.core.scheduler import PriceRefreshScheduler

    effective_interval = interval or settings.refresh_interval_seconds

    def show(result: RefreshResult) -> None:
        console.clear()
        _print_summary(result.summary)

    console.print("[bold]Starting price refresh[/bold]")
    console.print(f"  Interval: {effective_interval} seconds")
    console.print("[dim]Press Ctrl+C to stop[/dim]\n")

    PriceRefreshScheduler(interval_seconds=effective_interval, on_refresh=show).start()
