"""Shared fixtures: settings, in-memory collaborators, registry, engine, SQLite.

Every test that needs an engine should build it from these fixtures so the
stores it writes to are the ones it asserts on.
"""

import pytest
from cryptography.fernet import Fernet

from minizap.actions.builtin import HandlerServices, build_default_registry
from minizap.actions.plugin import clear_registered_actions
from minizap.config import MinizapConfig
from minizap.core.engine import WorkflowEngine
from minizap.credentials.integrations import StaticIntegrationResolver
from minizap.db.database import init_db, make_session_factory
from minizap.db.stores import InMemoryDataSink, InMemoryExecutionStore, InMemoryNotificationSink
from minizap.types import ActionResult, ActionSpec, TriggerSpec, WorkflowConfiguration, WorkflowDefinition


@pytest.fixture(autouse=True)
def _isolate_plugins():
    """@action registrations are process-global; keep each test's to itself."""
    clear_registered_actions()
    yield
    clear_registered_actions()


@pytest.fixture
def settings():
    """Config with short timeouts and no .env lookup."""
    return MinizapConfig(
        _env_file=None,
        database_url="sqlite+aiosqlite:///:memory:",
        credential_encryption_key=Fernet.generate_key().decode(),
        action_timeout_ms=2000,
        delay_default_ms=0,
    )


@pytest.fixture
def execution_store():
    return InMemoryExecutionStore()


@pytest.fixture
def notification_sink():
    return InMemoryNotificationSink()


@pytest.fixture
def data_sink():
    return InMemoryDataSink()


@pytest.fixture
def integrations():
    return StaticIntegrationResolver()


@pytest.fixture
def services(settings, data_sink, notification_sink, integrations):
    return HandlerServices(
        data_sink=data_sink,
        notification_sink=notification_sink,
        integrations=integrations,
        settings=settings,
    )


@pytest.fixture
def registry(services):
    return build_default_registry(services, include_plugins=False)


@pytest.fixture
def engine(registry, execution_store, notification_sink):
    return WorkflowEngine(registry, execution_store, notification_sink, callbacks=[])


@pytest.fixture
def make_workflow():
    """Factory: make_workflow(actions=[...], triggers=[...]) with dicts or TriggerSpec/ActionSpec steps."""

    def _make(actions=None, triggers=None, name="Test flow", user_id="user-1", **kwargs):
        def _spec(cls, step):
            return step if isinstance(step, cls) else cls(**step)

        return WorkflowDefinition(
            user_id=user_id,
            name=name,
            configuration=WorkflowConfiguration(
                triggers=[_spec(TriggerSpec, t) for t in (triggers if triggers is not None else [{"type": "manual"}])],
                actions=[_spec(ActionSpec, a) for a in (actions or [])],
            ),
            **kwargs,
        )

    return _make


class RecordingHandler:
    """Test handler: remembers every resolved config it receives."""

    def __init__(self, action_type="record", result=None, raises=None):
        self.action_type = action_type
        self.calls = []
        self._result = result
        self._raises = raises

    async def execute(self, config, context):
        self.calls.append(config)
        if self._raises is not None:
            raise self._raises
        if self._result is not None:
            return self._result
        return ActionResult.ok({"echo": config})


@pytest.fixture
def recording_handler():
    """Factory for RecordingHandler instances."""
    return RecordingHandler


@pytest.fixture
async def session_factory():
    """Shared in-memory SQLite with schema created; one session per call."""
    db_engine, factory = make_session_factory("sqlite+aiosqlite:///:memory:")
    await init_db(db_engine)
    yield factory
    await db_engine.dispose()


@pytest.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s
