"""minizap config: show resolved configuration."""

import os

from rich import box
from rich.table import Table

from minizap.cli.commands import console
from minizap.config import MinizapConfig

SECRET_FIELDS = {"credential_encryption_key"}

# field → heading; fields not listed fall under "Other"
_GROUPS = {
    "app_name": "App", "debug": "App", "log_level": "App",
    "database_url": "Database",
    "credential_encryption_key": "Credentials",
    "action_timeout_ms": "Action handlers", "delay_default_ms": "Action handlers",
    "delay_max_ms": "Action handlers",
    "email_default_from": "Action handlers", "http_user_agent": "Action handlers",
    "twilio_api_base": "Action handlers",
    "host": "Server", "port": "Server", "cors_origins": "Server",
}


def _redact(value: str) -> str:
    return "***" if len(value) <= 8 else f"{value[:4]}…***"


def _display(name: str, value) -> str:
    if value in (None, ""):
        return "[dim](not set)[/dim]"
    if name in SECRET_FIELDS:
        return _redact(str(value))
    return str(value)


def config_show():
    """Show the resolved configuration and where each value came from.

    Values are read from MINIZAP_* environment variables, then .env, then
    defaults. The credential encryption key is masked.

    Example:
        MINIZAP_ACTION_TIMEOUT_MS=5000 minizap config
    """
    cfg = MinizapConfig()
    table = Table(box=box.SIMPLE_HEAD, header_style="bold dim", title="[bold]minizap Configuration[/bold]")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_column("Source", style="dim")

    grouped: dict[str, list[str]] = {}
    for name in MinizapConfig.model_fields:
        grouped.setdefault(_GROUPS.get(name, "Other"), []).append(name)

    for heading, names in grouped.items():
        table.add_section()
        table.add_row(f"[bold]{heading}[/bold]", "", "")
        for name in names:
            env_var = f"MINIZAP_{name.upper()}"
            if env_var in os.environ:
                source = env_var
            elif name in cfg.model_fields_set:
                source = ".env"
            else:
                source = "default"
            table.add_row(f"  {name}", _display(name, getattr(cfg, name)), source)

    console.print(table)
