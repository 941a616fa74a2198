"""Settings CLI commands."""

from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from src.db.database import get_db
from src.core.preferences.models import PreferencesResponse, PreferencesUpdate
from src.core.preferences.repository import PreferencesRepository
from src.config import SUPPORTED_CURRENCIES, get_settings

settings = get_settings()

console = Console()
app = typer.Typer()


def _print_preferences(prefs: PreferencesResponse) -> None:
    table = Table(title="Settings", show_header=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    table.add_row("Base currency", prefs.base_currency)
    table.add_row(
        "Live prices",
        "[green]on[/green]" if prefs.use_live_prices else "[yellow]off (fallback only)[/yellow]",
    )
    table.add_row("Crypto provider", prefs.providers.crypto)
    table.add_row("Equity provider", prefs.providers.equity)
    table.add_row(
        "Finnhub API key",
        "[green]configured[/green]" if prefs.has_finnhub_api_key else "[dim]not set[/dim]",
    )
    console.print(table)


@app.command("show")
def show_settings():
    """Show base currency, live prices toggle and providers."""
    with get_db() as db:
        prefs = PreferencesRepository(db).get()
        _print_preferences(PreferencesResponse.from_row(prefs, settings.finnhub_api_key))


@app.command("set")
def set_settings(
    currency: Optional[str] = typer.Option(
        None, "--currency", "-c", help=f"Base currency ({', '.join(SUPPORTED_CURRENCIES)})"
    ),
    live: Optional[bool] = typer.Option(
        None, "--live/--no-live", help="Fetch live prices or use fallback prices only"
    ),
    crypto_provider: Optional[str] = typer.Option(
        None, "--crypto-provider", help="Crypto provider (coingecko or none)"
    ),
    equity_provider: Optional[str] = typer.Option(
        None, "--equity-provider", help="Equity provider (finnhub, yahoo or none)"
    ),
    api_key: Optional[str] = typer.Option(
        None, "--finnhub-key", help="Finnhub API key (empty string clears it)"
    ),
):
    """Update settings; options not given are left unchanged."""
    try:
        update = PreferencesUpdate(
            base_currency=currency,
            use_live_prices=live,
            crypto_provider=crypto_provider,
            equity_provider=equity_provider,
            finnhub_api_key=api_key,
        )
    except ValidationError as e:
        for err in e.errors():
            console.print(f"[red]Error:[/red] {err['msg']}")
        raise typer.Exit(1)

    if update.base_currency and update.base_currency not in SUPPORTED_CURRENCIES:
        console.print(
            f"[yellow]Note:[/yellow] {update.base_currency} is not one of "
            f"{', '.join(SUPPORTED_CURRENCIES)}; providers may not quote it."
        )

    with get_db() as db:
        prefs = PreferencesRepository(db).update(**update.model_dump(exclude_none=True))
        _print_preferences(PreferencesResponse.from_row(prefs, settings.finnhub_api_key))
