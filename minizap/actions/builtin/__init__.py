"""Built-in action handlers and the default registry wiring."""

import logging
from dataclasses import dataclass, field
from typing import Optional

import httpx

from minizap.actions.builtin.base import BaseHandler
from minizap.actions.builtin.database import DatabaseHandler
from minizap.actions.builtin.delay import DelayHandler
from minizap.actions.builtin.email import EmailHandler
from minizap.actions.builtin.notification import NotificationHandler
from minizap.actions.builtin.sms import SmsHandler
from minizap.actions.builtin.webhook import WebhookHandler
from minizap.actions.plugin import get_registered_actions
from minizap.actions.registry import ActionRegistry
from minizap.config import MinizapConfig, config as default_config
from minizap.credentials.integrations import IntegrationResolver
from minizap.db.stores import DataSink, NotificationSink

logger = logging.getLogger(__name__)


@dataclass
class HandlerServices:
    """Collaborators the built-in handlers write through."""
    data_sink: DataSink
    notification_sink: NotificationSink
    integrations: Optional[IntegrationResolver] = None
    settings: MinizapConfig = field(default_factory=lambda: default_config)
    http_transport: Optional[httpx.AsyncBaseTransport] = None


def build_default_registry(services: HandlerServices, include_plugins: bool = True) -> ActionRegistry:
    """Registry with the six built-in kinds plus every ``@action`` function."""
    settings = services.settings
    registry = ActionRegistry()
    for handler in (
        EmailHandler(
            services.integrations,
            default_from=settings.email_default_from,
            default_timeout_ms=settings.action_timeout_ms,
        ),
        WebhookHandler(
            default_timeout_ms=settings.action_timeout_ms,
            user_agent=settings.http_user_agent,
            transport=services.http_transport,
        ),
        DatabaseHandler(services.data_sink),
        SmsHandler(
            services.integrations,
            api_base=settings.twilio_api_base,
            default_timeout_ms=settings.action_timeout_ms,
            transport=services.http_transport,
        ),
        NotificationHandler(services.notification_sink),
        DelayHandler(default_ms=settings.delay_default_ms, max_ms=settings.delay_max_ms),
    ):
        registry.register(handler)

    if include_plugins:
        for action_type, fn in get_registered_actions().items():
            registry.register_function(action_type, fn, replace=True)
            logger.info(f"[Registry] Registered plugin action '{action_type}'")
    return registry


__all__ = [
    "BaseHandler",
    "DatabaseHandler",
    "DelayHandler",
    "EmailHandler",
    "NotificationHandler",
    "SmsHandler",
    "WebhookHandler",
    "HandlerServices",
    "build_default_registry",
]
