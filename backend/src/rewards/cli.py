"""Command-line interface for the rewards backend."""

from typing import Annotated

import typer
import uvicorn
from rich.console import Console
from rich.table import Table
from sqlalchemy import select

from rewards.accounts.models import Account, Role
from rewards.logging_config import configure_logging, get_logger
from rewards.storage.db import db

# Configure logging
configure_logging()
logger = get_logger(__name__)

# Create Typer app
app = typer.Typer(
    name="rewards",
    help="Rewards - referral points backend",
    no_args_is_help=True,
)

# Rich console for pretty output
console = Console()


@app.command("init")
def init_database() -> None:
    """Initialize the database and create tables."""
    console.print("[bold blue]Initializing database...[/bold blue]")
    db.create_tables()
    console.print("[bold green]✓[/bold green] Database initialized successfully")


@app.command("make-admin")
def make_admin(
    email: Annotated[str, typer.Argument(help="Email of the account to promote")],
) -> None:
    """Give an existing account the admin role."""
    with db.session() as session:
        account = session.scalar(select(Account).where(Account.email == email.strip().lower()))
        if not account:
            console.print(f"[bold red]✗[/bold red] No account with email {email}")
            raise typer.Exit(1)

        account.role = Role.ADMIN
        logger.info("account_promoted", account_id=account.id)

    console.print(f"[bold green]✓[/bold green] {email} is now an admin")


@app.command("users")
def list_users() -> None:
    """List all accounts."""
    with db.session() as session:
        accounts = list(session.scalars(select(Account).order_by(Account.id)))

        if not accounts:
            console.print("[yellow]No users found[/yellow]")
            return

        table = Table(title="Users")
        table.add_column("ID", style="cyan")
        table.add_column("Name", style="green")
        table.add_column("Email")
        table.add_column("Role")
        table.add_column("Status")
        table.add_column("Eligibility")
        table.add_column("Level", justify="right")
        table.add_column("Points", justify="right")
        table.add_column("Balance", justify="right")

        for account in accounts:
            table.add_row(
                str(account.id),
                account.name,
                account.email,
                account.role.value,
                account.status.value,
                account.eligibility.value,
                str(account.level),
                str(account.total_points_earned),
                str(account.converted_balance),
            )

        console.print(table)


@app.command("serve")
def serve(
    host: Annotated[str, typer.Option("--host", help="Bind address")] = "127.0.0.1",
    port: Annotated[int, typer.Option("--port", "-p", help="Port")] = 8000,
    reload: Annotated[bool, typer.Option("--reload", help="Reload on code changes")] = False,
) -> None:
    """Run the API server."""
    console.print(f"[bold blue]Serving on http://{host}:{port}[/bold blue]")
    uvicorn.run("rewards.api.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
