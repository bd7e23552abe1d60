"""WorkflowEngine: run lifecycle, failure paths, notifications, persistence errors."""

import asyncio

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock
from datetime import datetime, timezone
from freezegun import freeze_time

from minizap.actions.builtin import HandlerServices, build_default_registry
from minizap.config import parse_workflow
from minizap.core.engine import WorkflowEngine
from minizap.db.stores import InMemoryExecutionStore, InMemoryNotificationSink
from minizap.exceptions import PersistenceError
from minizap.types import ActionResult, ExecutionStatus, NotificationType


def _events(recorded, name):
    return [data for event, data in recorded if event == name]


# ── Completed runs ───────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_completed_run_records_output_and_no_notification(
    engine, registry, execution_store, notification_sink, make_workflow, recording_handler,
):
    handler = recording_handler(result=ActionResult.ok({"id": "42"}))
    registry.register(handler)
    workflow = make_workflow(
        triggers=[{"type": "webhook"}],
        actions=[{"type": "delay", "config": {"duration": 0}}, {"type": "record", "config": {"x": 1}}],
    )

    result = await engine.execute_workflow(workflow, {"email": "a@b.com"})

    assert result.success is True
    assert result.error is None
    assert result.data == {
        "trigger_webhook": {"email": "a@b.com"},
        "action_0": {"message": "Delayed for 0ms"},
        "action_1": {"id": "42"},
    }
    record = execution_store.get(result.execution_id)
    assert record.status == ExecutionStatus.COMPLETED
    assert record.input == {"email": "a@b.com"}
    assert record.output == result.data
    assert record.error is None
    assert record.end_time is not None
    assert record.end_time >= record.start_time
    assert notification_sink.notifications == []


@pytest.mark.asyncio
async def test_trigger_data_defaults_to_empty_mapping(engine, execution_store, make_workflow):
    result = await engine.execute_workflow(make_workflow())
    assert result.success is True
    assert execution_store.get(result.execution_id).input == {}
    assert result.data == {"trigger_manual": {}}


@pytest.mark.asyncio
async def test_workflow_without_triggers_or_actions_completes(engine, make_workflow):
    result = await engine.execute_workflow(make_workflow(triggers=[], actions=[]), {"a": 1})
    assert result.success is True
    assert result.data == {}


@pytest.mark.asyncio
async def test_email_and_schedule_triggers_pass_unconditionally(engine, make_workflow):
    workflow = make_workflow(triggers=[{"type": "email"}, {"type": "schedule", "config": {"cron": "* * * * *"}}])
    result = await engine.execute_workflow(workflow, {"k": "v"})
    assert result.success is True
    assert result.data == {"trigger_email": {"k": "v"}, "trigger_schedule": {"k": "v"}}


@pytest.mark.asyncio
async def test_repeated_trigger_type_keeps_first_entry(engine, make_workflow):
    workflow = make_workflow(triggers=[{"type": "webhook"}, {"type": "webhook"}])
    result = await engine.execute_workflow(workflow, {"n": 1})
    assert result.success is True
    assert list(result.data) == ["trigger_webhook"]


@pytest.mark.asyncio
async def test_run_timestamps_use_wall_clock(engine, execution_store, make_workflow):
    with freeze_time("2024-06-01 12:00:00+00:00", real_asyncio=True):
        result = await engine.execute_workflow(make_workflow(actions=[{"type": "delay", "config": {"duration": 0}}]))

    record = execution_store.get(result.execution_id)
    assert record.start_time == datetime(2024, 6, 1, 12, tzinfo=timezone.utc)
    assert record.end_time == record.start_time


# ── Trigger failures ─────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_unknown_trigger_fails_immediately(
    engine, registry, execution_store, notification_sink, make_workflow, recording_handler,
):
    handler = recording_handler()
    registry.register(handler)
    workflow = make_workflow(triggers=[{"type": "carrier_pigeon"}], actions=[{"type": "record"}])

    result = await engine.execute_workflow(workflow, {})

    assert result.success is False
    assert result.error == "Unknown trigger type: carrier_pigeon"
    assert handler.calls == []
    record = execution_store.get(result.execution_id)
    assert record.status == ExecutionStatus.FAILED
    assert record.error == "Unknown trigger type: carrier_pigeon"
    assert record.output is None
    assert len(notification_sink.notifications) == 1


@pytest.mark.asyncio
async def test_first_failing_trigger_stops_later_triggers(engine, make_workflow):
    recorded = []
    engine.callbacks = [lambda event, data: recorded.append((event, data))]
    workflow = make_workflow(triggers=[{"type": "manual"}, {"type": "sms"}, {"type": "webhook"}])

    result = await engine.execute_workflow(workflow, {})

    assert result.error == "Unknown trigger type: sms"
    assert [d["trigger_type"] for d in _events(recorded, "trigger_validated")] == ["manual"]
    assert _events(recorded, "execution_failed")[0]["steps"] == ["trigger_manual"]


# ── Action failures ──────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_failed_action_stops_the_run(engine, registry, make_workflow, recording_handler):
    ok_a = recording_handler("ok_a")
    ok_b = recording_handler("ok_b")
    bad = recording_handler("bad", result=ActionResult.fail("boom"))
    never = recording_handler("never")
    for h in (ok_a, ok_b, bad, never):
        registry.register(h)
    recorded = []
    engine.callbacks = [lambda event, data: recorded.append((event, data))]

    workflow = make_workflow(actions=[{"type": "ok_a"}, {"type": "ok_b"}, {"type": "bad"}, {"type": "never"}])
    result = await engine.execute_workflow(workflow, {})

    assert result.success is False
    assert result.error == "Action 3 failed: boom"
    assert len(ok_a.calls) == 1 and len(ok_b.calls) == 1 and len(bad.calls) == 1
    assert never.calls == []
    assert _events(recorded, "execution_failed")[0]["steps"] == ["trigger_manual", "action_0", "action_1"]


@pytest.mark.asyncio
async def test_unknown_action_type_fails_the_step(engine, execution_store, make_workflow):
    result = await engine.execute_workflow(make_workflow(actions=[{"type": "teleport"}]), {})
    assert result.error == "Action 1 failed: Unknown action type: teleport"
    assert execution_store.get(result.execution_id).status == ExecutionStatus.FAILED


@pytest.mark.asyncio
async def test_loaded_workflow_reaches_mixed_case_handler(engine, registry):
    registry.register_function("postToSlack", lambda config, context: ActionResult.ok({"posted": config["text"]}))
    workflow = parse_workflow({
        "name": "Slack ping",
        "triggers": [{"type": "manual"}],
        "actions": [{"type": "postToSlack", "config": {"text": "hi"}}],
    })

    result = await engine.execute_workflow(workflow, {})

    assert result.success is True
    assert result.data["action_0"] == {"posted": "hi"}


@pytest.mark.asyncio
async def test_trigger_type_case_is_significant(engine):
    workflow = parse_workflow({"name": "Loud", "triggers": [{"type": "WEBHOOK"}]})
    result = await engine.execute_workflow(workflow, {})
    assert result.error == "Unknown trigger type: WEBHOOK"


@pytest.mark.asyncio
async def test_handler_fault_uses_error_prefix(engine, registry, execution_store, make_workflow, recording_handler):
    registry.register(recording_handler("explode", raises=RuntimeError("kaboom")))
    result = await engine.execute_workflow(make_workflow(actions=[{"type": "explode"}]), {})
    assert result.success is False
    assert result.error == "Action 1 error: kaboom"
    assert execution_store.get(result.execution_id).error == "Action 1 error: kaboom"


@pytest.mark.asyncio
async def test_handler_returning_wrong_type_is_a_fault(engine, registry, make_workflow):
    registry.register_function("sloppy", lambda config, context: {"success": True})
    result = await engine.execute_workflow(make_workflow(actions=[{"type": "sloppy"}]), {})
    assert result.error.startswith("Action 1 error: ")
    assert "expected ActionResult" in result.error


@pytest.mark.asyncio
async def test_unexpected_dispatch_error_still_reaches_failed(execution_store, notification_sink, make_workflow):
    registry = MagicMock()
    registry.dispatch = AsyncMock(side_effect=KeyError("registry broke"))
    engine = WorkflowEngine(registry, execution_store, notification_sink)

    result = await engine.execute_workflow(make_workflow(actions=[{"type": "anything"}]), {})

    assert result.success is False
    assert "registry broke" in result.error
    assert execution_store.get(result.execution_id).status == ExecutionStatus.FAILED
    assert len(notification_sink.notifications) == 1


@pytest.mark.asyncio
async def test_builtin_handler_failure_message(engine, make_workflow):
    result = await engine.execute_workflow(make_workflow(actions=[{"type": "webhook", "config": {}}]), {})
    assert result.error == "Action 1 failed: Webhook URL is required"


# ── Failure notification ─────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_failed_run_emits_exactly_one_notification(engine, notification_sink, make_workflow):
    workflow = make_workflow(name="Lead intake", user_id="owner-7", actions=[{"type": "nope"}])
    result = await engine.execute_workflow(workflow, {})

    assert len(notification_sink.notifications) == 1
    note = notification_sink.notifications[0]
    assert note.user_id == "owner-7"
    assert note.type == NotificationType.WORKFLOW_ERROR
    assert note.message == 'Workflow "Lead intake" failed: Action 1 failed: Unknown action type: nope'
    assert note.metadata == {"workflowId": workflow.id, "executionId": result.execution_id}


@pytest.mark.asyncio
async def test_notification_action_is_the_only_success_notification(engine, notification_sink, make_workflow):
    workflow = make_workflow(actions=[{"type": "notification", "config": {"message": "Done"}}])
    result = await engine.execute_workflow(workflow, {})

    assert result.success is True
    assert [n.type for n in notification_sink.notifications] == [NotificationType.WORKFLOW_SUCCESS]
    assert notification_sink.notifications[0].metadata["context"] == {"trigger_manual": {}}


# ── Variable propagation ─────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_later_actions_see_earlier_results(engine, registry, make_workflow, recording_handler):
    producer = recording_handler("produce", result=ActionResult.ok({"id": "42"}))
    consumer = recording_handler("consume")
    registry.register(producer)
    registry.register(consumer)
    workflow = make_workflow(actions=[
        {"type": "produce"},
        {"type": "consume", "config": {"ref": "{{action_0_result.id}}", "who": "{{trigger.email}}"}},
    ])

    await engine.execute_workflow(workflow, {"email": "a@b.com"})

    assert consumer.calls == [{"ref": "42", "who": "a@b.com"}]


@pytest.mark.asyncio
async def test_unresolved_placeholders_reach_handler_verbatim(engine, registry, make_workflow, recording_handler):
    handler = recording_handler()
    registry.register(handler)
    workflow = make_workflow(actions=[{"type": "record", "config": {"to": "{{trigger.missing}}", "n": 3}}])

    await engine.execute_workflow(workflow, {"present": True})

    assert handler.calls == [{"to": "{{trigger.missing}}", "n": 3}]


@pytest.mark.asyncio
async def test_definition_config_is_not_mutated(engine, registry, make_workflow, recording_handler):
    registry.register(recording_handler())
    workflow = make_workflow(actions=[{"type": "record", "config": {"msg": "hi {{trigger.name}}"}}])
    await engine.execute_workflow(workflow, {"name": "Ada"})
    assert workflow.configuration.actions[0].config == {"msg": "hi {{trigger.name}}"}


# ── Terminal state ───────────────────────────────────────────────────────────


@pytest.mark.asyncio
@pytest.mark.parametrize("actions, triggers", [
    ([{"type": "delay", "config": {"duration": 0}}], [{"type": "manual"}]),
    ([{"type": "teleport"}], [{"type": "manual"}]),
    ([], [{"type": "carrier_pigeon"}]),
    ([{"type": "delay", "config": {"duration": -5}}], [{"type": "webhook"}]),
])
async def test_exactly_one_of_output_or_error(engine, execution_store, make_workflow, actions, triggers):
    result = await engine.execute_workflow(make_workflow(actions=actions, triggers=triggers), {})
    record = execution_store.get(result.execution_id)

    assert record.status in (ExecutionStatus.COMPLETED, ExecutionStatus.FAILED)
    assert record.end_time is not None
    assert (record.output is not None) == (record.status == ExecutionStatus.COMPLETED)
    assert (record.error is not None) == (record.status == ExecutionStatus.FAILED)


@pytest.mark.asyncio
async def test_terminal_update_happens_once(registry, notification_sink, make_workflow):
    store = MagicMock()
    store.create = AsyncMock(return_value="exec-1")
    store.update = AsyncMock()
    engine = WorkflowEngine(registry, store, notification_sink)

    await engine.execute_workflow(make_workflow(actions=[{"type": "teleport"}]), {})

    store.update.assert_awaited_once()
    execution_id, updates = store.update.await_args.args
    assert execution_id == "exec-1"
    assert updates["status"] == ExecutionStatus.FAILED
    assert set(updates) == {"status", "end_time", "error"}


# ── Persistence errors propagate ─────────────────────────────────────────────


@pytest.mark.asyncio
async def test_create_failure_propagates(registry, notification_sink, make_workflow):
    store = MagicMock()
    store.create = AsyncMock(side_effect=PersistenceError("db down", operation="create_execution"))
    engine = WorkflowEngine(registry, store, notification_sink)

    with pytest.raises(PersistenceError):
        await engine.execute_workflow(make_workflow(), {})


@pytest.mark.asyncio
async def test_terminal_update_failure_propagates(registry, notification_sink, make_workflow):
    store = InMemoryExecutionStore()
    store.update = AsyncMock(side_effect=PersistenceError("db down", operation="update_execution"))
    engine = WorkflowEngine(registry, store, notification_sink)

    with pytest.raises(PersistenceError):
        await engine.execute_workflow(make_workflow(), {})


@pytest.mark.asyncio
async def test_notification_failure_propagates(registry, execution_store, make_workflow):
    sink = MagicMock()
    sink.create = AsyncMock(side_effect=PersistenceError("notifications down"))
    engine = WorkflowEngine(registry, execution_store, sink)

    with pytest.raises(PersistenceError, match="notifications down"):
        await engine.execute_workflow(make_workflow(triggers=[{"type": "carrier_pigeon"}]), {})


@pytest.mark.asyncio
async def test_persistence_error_from_custom_handler_is_a_fault(engine, registry, make_workflow, recording_handler):
    registry.register(recording_handler("store", raises=PersistenceError("side table down")))
    result = await engine.execute_workflow(make_workflow(actions=[{"type": "store"}]), {})
    assert result.error == "Action 1 error: side table down"


# ── Callbacks ────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_callbacks_fire_in_lifecycle_order(engine, make_workflow):
    recorded = []

    async def cb(event, data):
        recorded.append(event)

    engine.callbacks = [cb]
    await engine.execute_workflow(make_workflow(actions=[{"type": "delay", "config": {"duration": 0}}]), {})

    assert recorded == ["execution_started", "trigger_validated", "action_completed", "execution_completed"]


@pytest.mark.asyncio
async def test_callback_errors_do_not_change_outcome(engine, make_workflow):
    def broken(event, data):
        raise ValueError("observer bug")

    engine.callbacks = [broken]
    result = await engine.execute_workflow(make_workflow(), {})
    assert result.success is True


# ── Concurrency ──────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_concurrent_runs_are_independent(engine, execution_store, make_workflow):
    workflow = make_workflow(actions=[
        {"type": "delay", "config": {"duration": 20}},
        {"type": "database", "config": {"operation": "insert", "table": "t", "data": {"who": "{{trigger.who}}"}}},
    ])

    first, second = await asyncio.gather(
        engine.execute_workflow(workflow, {"who": "a"}),
        engine.execute_workflow(workflow, {"who": "b"}),
    )

    assert first.execution_id != second.execution_id
    assert first.data["action_1"]["record"]["data"] == {"who": "a"}
    assert second.data["action_1"]["record"]["data"] == {"who": "b"}
    assert all(r.status == ExecutionStatus.COMPLETED for r in execution_store.records.values())


# ── End-to-end scenario ──────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_delay_then_webhook_timeout(
    settings, data_sink, notification_sink, execution_store, make_workflow,
):
    async def unreachable(request):
        await asyncio.sleep(5)
        return httpx.Response(200)

    registry = build_default_registry(HandlerServices(
        data_sink=data_sink,
        notification_sink=notification_sink,
        settings=settings,
        http_transport=httpx.MockTransport(unreachable),
    ), include_plugins=False)
    recorded = []
    engine = WorkflowEngine(
        registry, execution_store, notification_sink,
        callbacks=[lambda event, data: recorded.append((event, data))],
    )
    workflow = make_workflow(
        triggers=[{"type": "webhook"}],
        actions=[
            {"type": "delay", "config": {"duration": 50}},
            {"type": "webhook", "config": {"url": "http://10.255.255.1/hook", "timeout": 10}},
        ],
    )

    result = await engine.execute_workflow(workflow, {"ping": 1})

    assert result.success is False
    assert result.error == "Action 2 failed: Webhook request timed out after 10ms"
    assert _events(recorded, "execution_failed")[0]["steps"] == ["trigger_webhook", "action_0"]
    record = execution_store.get(result.execution_id)
    assert record.status == ExecutionStatus.FAILED
    assert record.output is None
    assert len(notification_sink.notifications) == 1
