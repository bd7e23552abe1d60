"""minizap import: store a workflow file in the database."""

import asyncio
from pathlib import Path

import typer

from minizap.cli.commands import console, load_or_exit
from minizap.config import config
from minizap.types import WorkflowDefinition


async def _save(workflow: WorkflowDefinition, database_url: str) -> None:
    from minizap.db.database import init_db, make_session_factory
    from minizap.db.repository import Repository

    db_engine, session_factory = make_session_factory(database_url)
    try:
        await init_db(db_engine)
        async with session_factory() as session:
            await Repository(session).save_workflow(workflow)
    finally:
        await db_engine.dispose()


def import_workflow(
    workflow_file: Path = typer.Argument(..., help="Workflow definition (.yaml, .yml or .json)"),
    database_url: str = typer.Option(None, "--database-url", help="Override MINIZAP_DATABASE_URL"),
):
    """Insert or overwrite a workflow so the API can execute it.

    Example:
        minizap import flows/signup.yaml
    """
    workflow = load_or_exit(workflow_file)
    asyncio.run(_save(workflow, database_url or config.database_url))
    console.print(f"[green]Imported[/green] [bold]{workflow.name}[/bold] [dim]({workflow.id})[/dim]")
    if workflow.has_trigger("webhook"):
        console.print(f"[dim]Webhook URL: /api/webhooks/{workflow.id}[/dim]")
