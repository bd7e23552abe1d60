"""CLI command implementations, wired up in minizap.cli.main."""

import importlib
import json
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console

from minizap.config import load_workflow_file
from minizap.exceptions import WorkflowValidationError
from minizap.types import WorkflowDefinition

console = Console()


def import_plugins(modules: Optional[list[str]]) -> None:
    """Import modules so their ``@action`` functions get registered."""
    for name in modules or []:
        try:
            importlib.import_module(name)
        except ImportError as exc:
            console.print(f"[red]Cannot import plugin module {name!r}: {exc}[/red]")
            raise typer.Exit(2)


def load_or_exit(path: Path) -> WorkflowDefinition:
    try:
        return load_workflow_file(path)
    except FileNotFoundError:
        console.print(f"[red]Workflow file not found: {path}[/red]")
        raise typer.Exit(2)
    except WorkflowValidationError as exc:
        console.print(f"[red]{exc}[/red]")
        for violation in exc.violations:
            console.print(f"  [dim]•[/dim] {violation}")
        raise typer.Exit(2)


def parse_trigger_data(data: Optional[str], data_file: Optional[Path]) -> Any:
    if data and data_file:
        console.print("[red]Use either --data or --data-file, not both.[/red]")
        raise typer.Exit(2)
    try:
        if data_file is not None:
            return json.loads(data_file.read_text())
        if data:
            return json.loads(data)
    except (OSError, ValueError) as exc:
        console.print(f"[red]Invalid trigger data: {exc}[/red]")
        raise typer.Exit(2)
    return {}
