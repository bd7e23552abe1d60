"""ActionRegistry dispatch contract and the @action plugin decorator."""

import pytest

from minizap.actions.builtin import HandlerServices, build_default_registry
from minizap.actions.plugin import action, get_registered_actions
from minizap.actions.registry import ActionHandler, ActionRegistry, FunctionHandler
from minizap.exceptions import ActionDispatchError, ActionFaultError
from minizap.types import ActionResult, ActionSpec, ExecutionContext


@pytest.fixture
def context():
    return ExecutionContext(workflow_id="wf-1", user_id="u-1")


# ── Registration ─────────────────────────────────────────────────────────────


def test_default_registry_has_six_builtin_kinds(registry):
    assert registry.list_types() == ["database", "delay", "email", "notification", "sms", "webhook"]


def test_builtin_handlers_satisfy_protocol(registry):
    for action_type in registry.list_types():
        assert isinstance(registry.get(action_type), ActionHandler)


def test_duplicate_registration_rejected():
    registry = ActionRegistry()
    registry.register_function("x", lambda c, ctx: ActionResult.ok())
    with pytest.raises(ValueError, match="already registered"):
        registry.register_function("x", lambda c, ctx: ActionResult.ok())
    registry.register_function("x", lambda c, ctx: ActionResult.ok("new"), replace=True)
    assert "x" in registry


def test_handler_without_type_rejected():
    with pytest.raises(ValueError):
        ActionRegistry().register(FunctionHandler("", lambda c, ctx: None))


def test_get_unknown_raises():
    with pytest.raises(ActionDispatchError, match="Unknown action type: ghost"):
        ActionRegistry().get("ghost")


# ── Dispatch ─────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_dispatch_unknown_type_returns_failed_result(context):
    result = await ActionRegistry().dispatch(ActionSpec(type="ghost"), context)
    assert result == ActionResult.fail("Unknown action type: ghost")


@pytest.mark.asyncio
async def test_dispatch_sync_and_async_functions(context):
    registry = ActionRegistry()

    def sync_fn(config, ctx):
        return ActionResult.ok({"sync": config["v"]})

    async def async_fn(config, ctx):
        return ActionResult.ok({"async": config["v"], "user": ctx.user_id})

    registry.register_function("s", sync_fn)
    registry.register_function("a", async_fn)

    assert (await registry.dispatch(ActionSpec(type="s", config={"v": 1}), context)).data == {"sync": 1}
    assert (await registry.dispatch(ActionSpec(type="a", config={"v": 2}), context)).data == {"async": 2, "user": "u-1"}


@pytest.mark.asyncio
async def test_dispatch_wraps_raised_exception(context):
    registry = ActionRegistry()

    async def broken(config, ctx):
        raise ZeroDivisionError("division by zero")

    registry.register_function("broken", broken)
    with pytest.raises(ActionFaultError, match="division by zero") as info:
        await registry.dispatch(ActionSpec(type="broken"), context)
    assert info.value.action_type == "broken"
    assert isinstance(info.value.__cause__, ZeroDivisionError)


@pytest.mark.asyncio
async def test_dispatch_rejects_non_result(context):
    registry = ActionRegistry()
    registry.register_function("bad", lambda c, ctx: "done")
    with pytest.raises(ActionFaultError, match="returned str"):
        await registry.dispatch(ActionSpec(type="bad"), context)


# ── @action plugins ──────────────────────────────────────────────────────────


def test_action_decorator_collects_function():
    @action("slack")
    async def post_to_slack(config, context):
        return ActionResult.ok({"posted": config.get("text")})

    assert "slack" in get_registered_actions()
    assert post_to_slack._minizap_action == "slack"


def test_action_decorator_rejects_conflicting_type():
    @action("dup")
    def first(config, context):
        return ActionResult.ok()

    with pytest.raises(ValueError):
        @action("dup")
        def second(config, context):
            return ActionResult.ok()


@pytest.mark.asyncio
async def test_default_registry_picks_up_plugins(services, context):
    @action("slack")
    async def post_to_slack(config, context):
        return ActionResult.ok({"posted": config.get("text")})

    registry = build_default_registry(services)
    assert "slack" in registry
    result = await registry.dispatch(ActionSpec(type="slack", config={"text": "hi"}), context)
    assert result.data == {"posted": "hi"}


def test_plugins_can_be_left_out(services):
    @action("slack")
    def post_to_slack(config, context):
        return ActionResult.ok()

    assert "slack" not in build_default_registry(HandlerServices(
        data_sink=services.data_sink, notification_sink=services.notification_sink,
    ), include_plugins=False)
