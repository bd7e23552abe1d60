"""Wires registry, stores and engine together for the CLI, API and tests."""

from dataclasses import dataclass
from typing import Optional

import httpx
from sqlalchemy.ext.asyncio import async_sessionmaker

from minizap.actions.builtin import HandlerServices, build_default_registry
from minizap.actions.registry import ActionRegistry
from minizap.callbacks import LoggingCallback
from minizap.config import MinizapConfig, config as default_config
from minizap.core.engine import WorkflowEngine
from minizap.credentials.encryption import CredentialEncryption
from minizap.credentials.integrations import (
    IntegrationResolver, SqlIntegrationResolver, StaticIntegrationResolver,
)
from minizap.db.stores import (
    DataSink, ExecutionStore, NotificationSink,
    InMemoryDataSink, InMemoryExecutionStore, InMemoryNotificationSink,
    SqlDataSink, SqlExecutionStore, SqlNotificationSink,
)


@dataclass
class Runtime:
    engine: WorkflowEngine
    registry: ActionRegistry
    execution_store: ExecutionStore
    notification_sink: NotificationSink
    data_sink: DataSink


def _assemble(
    execution_store: ExecutionStore,
    notification_sink: NotificationSink,
    data_sink: DataSink,
    integrations: IntegrationResolver,
    settings: MinizapConfig,
    callbacks: Optional[list],
    http_transport: Optional[httpx.AsyncBaseTransport],
) -> Runtime:
    registry = build_default_registry(HandlerServices(
        data_sink=data_sink,
        notification_sink=notification_sink,
        integrations=integrations,
        settings=settings,
        http_transport=http_transport,
    ))
    engine = WorkflowEngine(
        registry,
        execution_store,
        notification_sink,
        callbacks=[LoggingCallback()] if callbacks is None else callbacks,
    )
    return Runtime(engine, registry, execution_store, notification_sink, data_sink)


def build_memory_runtime(
    settings: MinizapConfig = None,
    integrations: Optional[IntegrationResolver] = None,
    callbacks: Optional[list] = None,
    http_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Runtime:
    """Engine over in-memory stores. Nothing outlives the process."""
    return _assemble(
        InMemoryExecutionStore(),
        InMemoryNotificationSink(),
        InMemoryDataSink(),
        integrations or StaticIntegrationResolver(),
        settings or default_config,
        callbacks,
        http_transport,
    )


def build_sql_runtime(
    session_factory: async_sessionmaker,
    settings: MinizapConfig = None,
    encryption: Optional[CredentialEncryption] = None,
    callbacks: Optional[list] = None,
    http_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Runtime:
    """Engine over the SQL stores sharing *session_factory*."""
    settings = settings or default_config
    encryption = encryption or CredentialEncryption(settings.credential_encryption_key)
    return _assemble(
        SqlExecutionStore(session_factory),
        SqlNotificationSink(session_factory),
        SqlDataSink(session_factory),
        SqlIntegrationResolver(session_factory, encryption),
        settings,
        callbacks,
        http_transport,
    )
