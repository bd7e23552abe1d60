"""minizap run: execute a workflow file once and print the outcome."""

import asyncio
import json
from pathlib import Path
from typing import Any, Optional

import typer
from rich import box
from rich.panel import Panel
from rich.table import Table

from minizap.cli.commands import console, import_plugins, load_or_exit, parse_trigger_data
from minizap.config import config, configure_logging
from minizap.types import WorkflowDefinition, WorkflowRunResult


async def _run_in_memory(workflow: WorkflowDefinition, trigger_data: Any) -> WorkflowRunResult:
    from minizap.core.factory import build_memory_runtime
    runtime = build_memory_runtime()
    return await runtime.engine.execute_workflow(workflow, trigger_data)


async def _run_with_db(workflow: WorkflowDefinition, trigger_data: Any) -> WorkflowRunResult:
    from minizap.core.factory import build_sql_runtime
    from minizap.db.database import init_db, make_session_factory
    from minizap.db.repository import Repository

    db_engine, session_factory = make_session_factory(config.database_url)
    try:
        await init_db(db_engine)
        runtime = build_sql_runtime(session_factory)
        result = await runtime.engine.execute_workflow(workflow, trigger_data)
        async with session_factory() as session:
            await Repository(session).record_workflow_run(workflow.id)
        return result
    finally:
        await db_engine.dispose()


def _summarize(value: Any, width: int = 70) -> str:
    text = value if isinstance(value, str) else json.dumps(value, default=str)
    return text if len(text) <= width else text[: width - 1] + "…"


def run_workflow(
    workflow_file: Path = typer.Argument(..., help="Workflow definition (.yaml, .yml or .json)"),
    data: Optional[str] = typer.Option(None, "--data", "-d", help="Trigger data as a JSON string"),
    data_file: Optional[Path] = typer.Option(None, "--data-file", help="Read trigger data from a JSON file"),
    db: bool = typer.Option(False, "--db", help="Record the execution in the configured database"),
    plugin: Optional[list[str]] = typer.Option(None, "--plugin", "-p", help="Module with @action handlers (repeatable)"),
    verbose: bool = typer.Option(False, "--verbose", help="Debug logging"),
):
    """Execute a workflow once.

    Runs against in-memory stores unless --db is given.

    Example:
        minizap run flows/signup.yaml --data '{"email": "a@b.com"}'
    """
    configure_logging("DEBUG" if verbose else config.log_level)
    import_plugins(plugin)
    workflow = load_or_exit(workflow_file)
    trigger_data = parse_trigger_data(data, data_file)

    runner = _run_with_db if db else _run_in_memory
    result = asyncio.run(runner(workflow, trigger_data))

    if result.success:
        table = Table(box=box.ROUNDED, header_style="bold dim", title=f"[bold]{workflow.name}[/bold]")
        table.add_column("Step", style="cyan")
        table.add_column("Result")
        for key, value in (result.data or {}).items():
            table.add_row(key, f"[dim]{_summarize(value)}[/dim]")
        console.print(table)
        console.print(f"[bold green]✓ completed[/bold green]  [dim]execution {result.execution_id}[/dim]")
        return

    console.print(Panel(
        result.error or "unknown error",
        title=f"[bold red]✗ {workflow.name} failed[/bold red]",
        subtitle=f"execution {result.execution_id}",
        border_style="red",
    ))
    raise typer.Exit(1)
