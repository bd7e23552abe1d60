"""minizap actions: list registered action types."""

from typing import Optional

import typer
from rich import box
from rich.table import Table

from minizap.cli.commands import console, import_plugins


def actions_list(
    plugin: Optional[list[str]] = typer.Option(None, "--plugin", "-p", help="Module with @action handlers (repeatable)"),
):
    """List every action type a workflow may use.

    Example:
        minizap actions --plugin myproject.actions
    """
    import_plugins(plugin)
    from minizap.actions.builtin import BaseHandler
    from minizap.core.factory import build_memory_runtime

    registry = build_memory_runtime().registry
    table = Table(
        box=box.ROUNDED,
        header_style="bold dim",
        title=f"[bold]{len(registry.list_types())} Action Types[/bold]",
    )
    table.add_column("Type", style="cyan", width=16)
    table.add_column("Handler", width=28)
    table.add_column("Source", width=10)

    for action_type in registry.list_types():
        handler = registry.get(action_type)
        builtin = isinstance(handler, BaseHandler)
        table.add_row(
            action_type,
            f"[dim]{handler.__class__.__name__ if builtin else repr(handler)}[/dim]",
            "built-in" if builtin else "[yellow]plugin[/yellow]",
        )
    console.print(table)
