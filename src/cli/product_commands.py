"""Catalog maintenance commands."""

from pathlib import Path

import typer
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from src.storefront.core.errors import StorefrontError
from src.storefront.core.services.admin import ProductAdminService, ProductInput
from src.storefront.core.services.checkout.pricing import format_price
from src.storefront.core.services.database import DbSessionService
from src.storefront.core.services.storage_service import StorageService
from src.storefront.entities.service.product import ProductRepository
from src.storefront.runtime.context import get_config

console = Console()

products_app = typer.Typer(help="Seed and inspect the catalog")


@products_app.command("seed")
def seed(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="YAML product list"),
) -> None:
    """Create products from a YAML file holding a ``products:`` list."""
    data = yaml.safe_load(file.read_text(encoding="utf-8")) or {}
    entries = data.get("products", []) if isinstance(data, dict) else data
    if not entries:
        console.print("[yellow]No products in file[/yellow]")
        return

    created = failed = 0
    with DbSessionService().session_scope() as session:
        service = ProductAdminService(session, StorageService())
        for index, entry in enumerate(entries, start=1):
            try:
                product = service.create_product(ProductInput.model_validate(entry))
            except (StorefrontError, ValidationError) as e:
                failed += 1
                console.print(f"[red]❌ Entry {index}: {e}[/red]")
                continue
            created += 1
            console.print(f"[green]✅ {product.name}[/green] ({product.id})")

    console.print(f"\nCreated {created} products, {failed} failed")
    if failed:
        raise typer.Exit(code=1)


@products_app.command("low-stock")
def low_stock(
    threshold: int | None = typer.Option(
        None, "--threshold", "-t", help="Defaults to store.low_stock_threshold"
    ),
    limit: int = typer.Option(50, "--limit", "-l", help="Maximum number of products"),
) -> None:
    """List products running out of stock."""
    threshold = threshold if threshold is not None else get_config().store.low_stock_threshold
    with DbSessionService().session_scope() as session:
        products = ProductRepository(session).low_stock(threshold, limit=limit)

    if not products:
        console.print(f"[green]No products below {threshold} units[/green]")
        return

    table = Table(title=f"Products with fewer than {threshold} units")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="magenta")
    table.add_column("Brand", style="blue")
    table.add_column("Price", style="green")
    table.add_column("Stock", style="yellow")
    for product in products:
        table.add_row(
            product.id, product.name, product.brand, format_price(product.price), str(product.stock)
        )
    console.print(table)
