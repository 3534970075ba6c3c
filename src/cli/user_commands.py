"""Profile management commands."""

import typer
from rich.console import Console
from rich.table import Table

from src.storefront.core.errors import StorefrontError
from src.storefront.core.services.database import DbSessionService
from src.storefront.core.services.user import UserManagementService
from src.storefront.entities.core.profile import Role

console = Console()

users_app = typer.Typer(help="Manage storefront accounts")


@users_app.command("create-admin")
def create_admin(
    email: str = typer.Argument(..., help="Email address of the new admin"),
    password: str = typer.Option(
        ..., "--password", "-p", prompt=True, hide_input=True, help="Password"
    ),
    full_name: str = typer.Option("", "--full-name", "-n", help="Display name"),
) -> None:
    """Create an account with the admin role."""
    with DbSessionService().session_scope() as session:
        try:
            profile = UserManagementService(session).register(
                email, password, full_name or None, role=Role.ADMIN.value
            )
        except StorefrontError as e:
            console.print(f"[red]❌ {e.message}[/red]")
            raise typer.Exit(code=1) from e
    console.print(f"[green]✅ Created admin {profile.email} ({profile.id})[/green]")


@users_app.command("promote")
def promote(
    email: str = typer.Argument(..., help="Email of an existing account"),
    demote: bool = typer.Option(False, "--demote", help="Make the account a customer again"),
) -> None:
    """Grant (or with --demote revoke) the admin role."""
    role = Role.CUSTOMER.value if demote else Role.ADMIN.value
    with DbSessionService().session_scope() as session:
        try:
            profile = UserManagementService(session).set_role(email, role)
        except StorefrontError as e:
            console.print(f"[red]❌ {e.message}[/red]")
            raise typer.Exit(code=1) from e
    console.print(f"[green]✅ {profile.email} is now {profile.role}[/green]")


@users_app.command("list")
def list_users(
    role: str | None = typer.Option(None, "--role", "-r", help="Only show this role"),
) -> None:
    """List accounts."""
    with DbSessionService().session_scope() as session:
        profiles = UserManagementService(session).list_profiles(role)

    if not profiles:
        console.print("[yellow]No accounts found[/yellow]")
        return

    table = Table(title="Accounts")
    table.add_column("ID", style="cyan")
    table.add_column("Email", style="blue")
    table.add_column("Name", style="magenta")
    table.add_column("Role", style="yellow")
    table.add_column("Created", style="green")
    for profile in profiles:
        table.add_row(
            profile.id,
            profile.email,
            profile.full_name or "",
            profile.role,
            profile.created_at.strftime("%Y-%m-%d"),
        )

    console.print(table)
    console.print(f"\n[green]Found {len(profiles)} accounts[/green]")
