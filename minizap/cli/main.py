"""minizap CLI: Typer application."""

import typer
from rich.console import Console

from minizap.version import __version__

app = typer.Typer(
    name="minizap",
    help="minizap: run trigger → action workflows from the command line.",
    no_args_is_help=True,
)
console = Console()


@app.callback()
def main(
    version: bool = typer.Option(False, "--version", "-v", is_eager=True, help="Show version"),
):
    """minizap CLI."""
    if version:
        console.print(f"minizap v{__version__}")
        raise typer.Exit()


from minizap.cli.commands import run, importer, actions, config, serve, integrations  # noqa: E402

app.command(name="run", help="Execute a workflow file once")(run.run_workflow)
app.command(name="import", help="Store a workflow file in the database")(importer.import_workflow)
app.command(name="actions", help="List registered action types")(actions.actions_list)
app.command(name="config", help="Show resolved configuration")(config.config_show)
app.command(name="serve", help="Start the HTTP API server")(serve.serve)

integrations_app = typer.Typer(name="integrations", help="Manage stored service credentials.", no_args_is_help=True)
integrations_app.command("add", help="Encrypt and store credentials for a service")(integrations.integrations_add)
integrations_app.command("list", help="List stored integrations")(integrations.integrations_list)
integrations_app.command("remove", help="Delete a stored integration")(integrations.integrations_remove)
app.add_typer(integrations_app)


if __name__ == "__main__":
    app()
