"""Database schema commands."""

import typer
from rich.console import Console
from rich.prompt import Confirm

from src.storefront.core.services.database import DbManageService

console = Console()

db_app = typer.Typer(help="Create or reset the database schema")


@db_app.command("init")
def init(
    drop: bool = typer.Option(False, "--drop", help="Drop all tables first"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation prompt"),
) -> None:
    """Create every table that does not exist yet."""
    manager = DbManageService()
    if drop:
        if not force and not Confirm.ask("Drop ALL tables and their data?"):
            console.print("[yellow]Cancelled[/yellow]")
            return
        manager.drop_all()
        console.print("[yellow]Dropped all tables[/yellow]")

    manager.create_all()
    console.print("[green]✅ Database schema is up to date[/green]")
