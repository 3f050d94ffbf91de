"""
Tap'n'Table CLI.

Command-line interface for setup and close-out operations.
"""

import sys
import time
from datetime import datetime
from pathlib import Path

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).parent))

import httpx
import typer
from rich.console import Console
from rich.table import Table
from sqlalchemy import select, text
from sqlalchemy.exc import SQLAlchemyError

from shared.config.constants import Role
from shared.config.logging import setup_logging
from shared.infrastructure.db import engine, get_db_context, safe_commit
from shared.utils.exceptions import AppException
from shared.utils.money import format_cents

app = typer.Typer(
    name="tapntable",
    help="Tap'n'Table restaurant POS CLI",
    add_completion=False,
)
console = Console()


@app.callback()
def main():
    setup_logging()


# =============================================================================
# Database Commands
# =============================================================================

@app.command()
def init_db():
    """Create all tables."""
    from rest_api.models import Base

    console.print(f"[blue]Creating tables on: {engine.url.render_as_string(hide_password=True)}[/blue]")
    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError as e:
        console.print(f"[red]✗ Table creation failed: {e}[/red]")
        raise typer.Exit(1)
    console.print("[green]✓ Tables created[/green]")


@app.command()
def seed(
    force: bool = typer.Option(False, "--force", "-f", help="Allow seeding production"),
):
    """Seed the database with demo staff, menu, modifiers and discounts."""
    from shared.config.settings import settings
    from rest_api.seed import DEMO_PASSWORD, seed as run_seed

    if settings.environment == "production" and not force:
        console.print("[red]Cannot seed production without --force[/red]")
        raise typer.Exit(1)

    with get_db_context() as db:
        run_seed(db)
    console.print(f"[green]✓ Seed complete[/green] (demo password: {DEMO_PASSWORD})")


@app.command()
def create_user(
    username: str = typer.Argument(..., help="Login name"),
    role: Role = typer.Option(Role.SERVER, help="Staff role"),
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True),
    first_name: str = typer.Option("", help="First name"),
    last_name: str = typer.Option("", help="Last name"),
):
    """Create a staff account."""
    from rest_api.models import User
    from shared.security.password import hash_password

    with get_db_context() as db:
        if db.scalar(select(User.id).where(User.username == username)):
            console.print(f"[red]✗ User '{username}' already exists[/red]")
            raise typer.Exit(1)
        user = User(
            username=username,
            password_hash=hash_password(password),
            first_name=first_name or username,
            last_name=last_name,
            role=role,
        )
        db.add(user)
        safe_commit(db)
        console.print(f"[green]✓ Created {role.value} '{username}' (id {user.id})[/green]")


# =============================================================================
# Close-out Commands
# =============================================================================

@app.command()
def totals(
    start: datetime = typer.Option(None, help="Checks created at or after (ISO 8601)"),
    end: datetime = typer.Option(None, help="Checks created at or before (ISO 8601)"),
    user_id: int = typer.Option(None, help="Only checks owned by this staff id"),
):
    """Show payment totals by tender type."""
    from rest_api.repositories import TotalsFilters
    from rest_api.services.domain import PaymentService

    with get_db_context() as db:
        rows = PaymentService(db).get_totals(TotalsFilters(start=start, end=end, user_id=user_id))

    table = Table(title="Payment Totals")
    table.add_column("Tender", style="cyan")
    table.add_column("Void", style="yellow")
    table.add_column("Count", justify="right")
    table.add_column("Subtotal", justify="right", style="green")
    table.add_column("Tips", justify="right", style="green")

    for row in rows:
        table.add_row(
            row.payment_type.value,
            "yes" if row.is_void else "",
            str(row.count),
            format_cents(row.subtotal_sum_cents),
            format_cents(row.tip_sum_cents),
        )

    if not rows:
        console.print("[yellow]No payments in range[/yellow]")
    else:
        console.print(table)


@app.command()
def close_check(
    check_id: int = typer.Argument(..., help="Check to close"),
):
    """Close a check if its payments cover the total."""
    from rest_api.services.domain import SettlementService

    with get_db_context() as db:
        try:
            check = SettlementService(db).close_check(check_id)
        except AppException as e:
            console.print(f"[red]✗ {e.detail}[/red]")
            raise typer.Exit(1)
        console.print(
            f"[green]✓ Check {check.id} closed[/green] "
            f"total {format_cents(check.total_cents)} at {check.closed_at.isoformat()}"
        )


# =============================================================================
# Health Commands
# =============================================================================

@app.command()
def health(
    url: str = typer.Option("http://localhost:8000/api/health", help="REST API health URL"),
):
    """Check database and REST API health."""
    table = Table(title="Service Health")
    table.add_column("Service", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Response Time", style="yellow")

    start = time.time()
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        table.add_row("Database", "✓ Healthy", f"{(time.time() - start) * 1000:.0f}ms")
        db_ok = True
    except SQLAlchemyError as e:
        table.add_row("Database", f"✗ {type(e).__name__}", "-")
        db_ok = False

    start = time.time()
    try:
        response = httpx.get(url, timeout=5.0)
        elapsed = f"{(time.time() - start) * 1000:.0f}ms"
        if response.status_code == 200:
            table.add_row("REST API", "✓ Healthy", elapsed)
        else:
            table.add_row("REST API", f"✗ Status {response.status_code}", elapsed)
    except httpx.HTTPError as e:
        table.add_row("REST API", f"✗ {type(e).__name__}", "-")

    console.print(table)
    if not db_ok:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
