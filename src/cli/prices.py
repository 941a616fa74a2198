"""Price CLI commands."""

from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from src.db.database import get_db
from src.core.preferences.repository import PreferencesRepository
from src.data.market.models import PriceSource
from src.data.market.resolver import build_price_resolver

console = Console()
app = typer.Typer()


@app.command("quote")
def quote(
    symbols: List[str] = typer.Argument(..., help="Symbols to resolve (e.g., BTC VFV AAPL)"),
    currency: Optional[str] = typer.Option(
        None, "--currency", "-c", help="Base currency (default: from settings)"
    ),
    live: Optional[bool] = typer.Option(
        None, "--live/--no-live", help="Override the live prices setting"
    ),
):
    """Resolve current prices for one or more symbols."""
    with get_db() as db:
        prefs = PreferencesRepository(db).get()
        resolver = build_price_resolver(prefs)
        base_currency = currency or prefs.base_currency

    if live is not None:
        resolver.use_live = live

    price_map = resolver.resolve(symbols, base_currency)

    table = Table(title=f"Prices ({price_map.base_currency})")
    table.add_column("Symbol", style="cyan")
    table.add_column("Price", justify="right")
    table.add_column("Source")

    for symbol, entry in price_map.items():
        if entry.source == PriceSource.UNKNOWN:
            table.add_row(symbol, "[red]N/A[/red]", "[red]unknown[/red]")
        elif entry.source == PriceSource.FALLBACK:
            table.add_row(symbol, f"{entry.price:,.4g}", "[yellow]fallback[/yellow]")
        else:
            table.add_row(symbol, f"{entry.price:,.4g}", "[green]live[/green]")

    console.print(table)

    if price_map.unknown:
        raise typer.Exit(1)
