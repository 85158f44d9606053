"""SpeedCoding CLI application using Typer.

This module provides command-line utilities for the SpeedCoding backend:
secret generation for deployment configuration, schema creation and
refresh token maintenance.
"""

import asyncio
import secrets

import typer
from rich.console import Console

from speedcoding_config import configure_logging, get_settings
from speedcoding_identity.bootstrap import build_identity
from speedcoding_identity.infrastructure.persistence.sqlalchemy.init_db import (
    create_tables,
    drop_tables,
)

app = typer.Typer(
    name="speedcoding",
    help="SpeedCoding backend CLI",
    no_args_is_help=True,
)
console = Console()


# Create secrets subcommand group
secrets_app = typer.Typer(
    name="secrets",
    help="Secret generation utilities",
    no_args_is_help=True,
)
app.add_typer(secrets_app)

db_app = typer.Typer(
    name="db",
    help="Database utilities",
    no_args_is_help=True,
)
app.add_typer(db_app)

tokens_app = typer.Typer(
    name="tokens",
    help="Refresh token maintenance",
    no_args_is_help=True,
)
app.add_typer(tokens_app)


@secrets_app.command("generate")
def generate_secrets() -> None:
    """Generate secure secrets for SpeedCoding configuration.

    Generates two distinct JWT signing secrets, one for access tokens and
    one for refresh tokens. Copy the output to your .env file.
    """
    console.print("\n[bold green]SpeedCoding Secret Generation[/bold green]")
    console.print("=" * 60)
    console.print(
        "\nGenerated secrets for your [bold].env[/bold] configuration file:\n"
    )

    # 64 bytes each for strong HS256 keys
    access_secret = secrets.token_urlsafe(64)
    refresh_secret = secrets.token_urlsafe(64)
    while refresh_secret == access_secret:
        refresh_secret = secrets.token_urlsafe(64)

    console.print(f"[cyan]JWT_ACCESS_SECRET_KEY[/cyan]={access_secret}", soft_wrap=True)
    console.print(f"[cyan]JWT_REFRESH_SECRET_KEY[/cyan]={refresh_secret}", soft_wrap=True)

    console.print("\n" + "=" * 60)
    console.print(
        "[yellow]Keep these secrets secure and never commit them "
        "to version control![/yellow]"
    )
    console.print(
        "[dim]Copy the above values to your config/.env (Docker) or "
        "config/.env.dev (local) file.[/dim]\n"
    )


@db_app.command("init")
def init_db() -> None:
    """Create missing identity tables (existing data is left untouched)."""
    settings = get_settings()
    configure_logging(settings)

    async def _run() -> None:
        container = build_identity(settings)
        try:
            await create_tables(container.engine)
        finally:
            await container.dispose()

    asyncio.run(_run())
    console.print("[green]Database schema is up to date.[/green]")


@db_app.command("drop")
def drop_db(
    yes: bool = typer.Option(False, "--yes", help="Skip the confirmation prompt"),
) -> None:
    """Drop all identity tables and their data."""
    if not yes:
        typer.confirm("This deletes every account and session. Continue?", abort=True)

    settings = get_settings()
    configure_logging(settings)

    async def _run() -> None:
        container = build_identity(settings)
        try:
            await drop_tables(container.engine)
        finally:
            await container.dispose()

    asyncio.run(_run())
    console.print("[yellow]Identity tables dropped.[/yellow]")


@tokens_app.command("purge")
def purge_tokens() -> None:
    """Delete expired and revoked refresh tokens."""
    settings = get_settings()
    configure_logging(settings)

    async def _run() -> int:
        container = build_identity(settings)
        try:
            return await container.lifecycle.token_issuer.purge_expired_refresh_tokens()
        finally:
            await container.dispose()

    purged = asyncio.run(_run())
    console.print(f"[green]Purged {purged} refresh tokens.[/green]")


def cli() -> None:
    """Entry point for the CLI application."""
    app()


if __name__ == "__main__":
    cli()
