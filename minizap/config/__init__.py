"""Application configuration + workflow file loader for minizap.

All env vars defined here with MINIZAP_ prefix.
Workflow loaders: load_workflow_file(), parse_workflow()
"""

import logging

from pydantic_settings import BaseSettings

from minizap.config.loader import load_workflow_file, parse_workflow
from minizap.config.schema import StepYAML, WorkflowFile


class MinizapConfig(BaseSettings):
    # ── App ──
    app_name: str = "minizap"
    debug: bool = False
    log_level: str = "INFO"

    # ── Database ──
    database_url: str = "sqlite+aiosqlite:///./minizap.db"

    # ── Credentials ──
    credential_encryption_key: str = ""             # Fernet key for integration credentials

    # ── Action handlers ──
    action_timeout_ms: int = 30000                  # bound on every external call
    delay_default_ms: int = 1000
    delay_max_ms: int = 3_600_000                  # longest accepted delay action (1h)
    email_default_from: str = "noreply@minizap.local"
    http_user_agent: str = "Mini-Zapier/1.0"
    twilio_api_base: str = "https://api.twilio.com/2010-04-01"

    # ── Server ──
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = ["http://localhost:3000"]

    model_config = {"env_prefix": "MINIZAP_", "env_file": ".env", "extra": "ignore"}


config = MinizapConfig()


def configure_logging(level: str) -> None:
    """Root logging setup for the CLI and API entry points."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


__all__ = [
    "MinizapConfig",
    "config",
    "configure_logging",
    "load_workflow_file",
    "parse_workflow",
    "StepYAML",
    "WorkflowFile",
]
