"""minizap integrations: store, list and remove encrypted service credentials."""

import asyncio
import json
from typing import Any, Optional

import typer
from rich import box
from rich.table import Table

from minizap.cli.commands import console
from minizap.config import config
from minizap.credentials.integrations import SERVICE_FIELDS
from minizap.exceptions import CredentialError


async def _with_repository(database_url: str, fn):
    from minizap.db.database import init_db, make_session_factory
    from minizap.db.repository import Repository

    db_engine, session_factory = make_session_factory(database_url)
    try:
        await init_db(db_engine)
        async with session_factory() as session:
            return await fn(Repository(session))
    finally:
        await db_engine.dispose()


def _parse_credentials(raw: str) -> dict[str, Any]:
    try:
        credentials = json.loads(raw)
    except ValueError as exc:
        console.print(f"[red]Invalid credentials JSON: {exc}[/red]")
        raise typer.Exit(2)
    if not isinstance(credentials, dict):
        console.print("[red]Credentials must be a JSON object[/red]")
        raise typer.Exit(2)
    return credentials


def integrations_add(
    service: str = typer.Argument(..., help=f"One of: {', '.join(SERVICE_FIELDS)}"),
    credentials: str = typer.Option(..., "--credentials", "-c", help="Credentials as a JSON object"),
    name: Optional[str] = typer.Option(None, "--name", help="Display name (defaults to the service)"),
    user_id: str = typer.Option("local", "--user-id", help="Owner of the integration"),
    database_url: str = typer.Option(None, "--database-url", help="Override MINIZAP_DATABASE_URL"),
):
    """Encrypt and store credentials for the email and sms actions.

    Example:
        minizap integrations add twilio -c '{"accountSid": "AC…", "authToken": "…", "phoneNumber": "+1…"}'
    """
    if not config.credential_encryption_key:
        console.print("[red]MINIZAP_CREDENTIAL_ENCRYPTION_KEY is not set; stored credentials would be unreadable.[/red]")
        raise typer.Exit(2)
    data = _parse_credentials(credentials)

    from minizap.credentials.encryption import CredentialEncryption
    from minizap.credentials.integrations import store_integration

    encryption = CredentialEncryption(config.credential_encryption_key)
    try:
        model = asyncio.run(_with_repository(
            database_url or config.database_url,
            lambda repo: store_integration(repo, encryption, user_id, service, name or service, data),
        ))
    except CredentialError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(2)
    console.print(f"[green]Stored[/green] [bold]{model.service}[/bold] integration [dim]({model.id})[/dim]")


def integrations_list(
    user_id: str = typer.Option("local", "--user-id", help="Owner of the integrations"),
    database_url: str = typer.Option(None, "--database-url", help="Override MINIZAP_DATABASE_URL"),
):
    """List a user's integrations. Credentials are never shown."""
    rows = asyncio.run(_with_repository(
        database_url or config.database_url, lambda repo: repo.list_integrations(user_id),
    ))
    table = Table(box=box.ROUNDED, header_style="bold dim", title=f"[bold]{len(rows)} Integrations[/bold]")
    table.add_column("ID", style="dim")
    table.add_column("Service", style="cyan")
    table.add_column("Name")
    table.add_column("Active")
    for row in rows:
        table.add_row(row.id, row.service, row.name, "yes" if row.is_active else "[dim]no[/dim]")
    console.print(table)


def integrations_remove(
    integration_id: str = typer.Argument(..., help="Integration id from `minizap integrations list`"),
    database_url: str = typer.Option(None, "--database-url", help="Override MINIZAP_DATABASE_URL"),
):
    """Delete one integration."""
    deleted = asyncio.run(_with_repository(
        database_url or config.database_url, lambda repo: repo.delete_integration(integration_id),
    ))
    if not deleted:
        console.print(f"[red]Integration not found: {integration_id}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Removed[/green] integration [dim]{integration_id}[/dim]")
