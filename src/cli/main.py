"""Main CLI entry point using Typer."""

import logging

import typer
from rich.console import Console

from src.db.database import init_db
from src.config import PRODUCT_NAME, PRODUCT_TAGLINE, PRODUCT_VERSION, get_settings

# Configure logging
logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

# Reduce noise from third-party libraries
logging.getLogger("yfinance").setLevel(logging.WARNING)
logging.getLogger("urllib3").setLevel(logging.WARNING)
logging.getLogger("apscheduler").setLevel(logging.WARNING)

console = Console()
app = typer.Typer(
    name="tracker",
    help=f"{PRODUCT_NAME}: {PRODUCT_TAGLINE}",
    add_completion=False,
)


@app.callback()
def main_callback():
    """Initialize database on startup."""
    init_db()


# Import and add subcommands
from src.cli.portfolio import app as portfolio_app
from src.cli.prices import app as prices_app
from src.cli.settings import app as settings_app

app.add_typer(portfolio_app, name="portfolio", help="Manage and value portfolio holdings")
app.add_typer(prices_app, name="prices", help="Resolve prices for symbols")
app.add_typer(settings_app, name="settings", help="Base currency, live prices and providers")


ASCII_BANNER = """
[bold #4F46E5]╔╦╗╦═╗╔═╗╔═╗╦╔═╔═╗╦═╗
 ║ ╠╦╝╠═╣║  ╠╩╗║╣ ╠╦╝
 ╩ ╩╚═╩ ╩╚═╝╩ ╩╚═╝╩╚═[/]

[bold #14B8A6]  {tagline}[/]
"""


@app.command()
def version():
    """Show version information with ASCII banner."""
    console.print(ASCII_BANNER.format(tagline=PRODUCT_TAGLINE))
    console.print(f"[bold]Version:[/] {PRODUCT_VERSION}")
    console.print(f"[bold]Tagline:[/] {PRODUCT_TAGLINE}")


if __name__ == "__main__":
    app()
