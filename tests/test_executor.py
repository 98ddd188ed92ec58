"""Tests for CommandExecutor dispatch, failure handling and bus hygiene."""

import asyncio
from dataclasses import dataclass

import pytest

from intent_router import commands as c
from intent_router.bus import CommandBus
from intent_router.commands import COMMAND_TYPES, Command
from intent_router.executor import CommandExecutor, CommandOutcome

from conftest import RecordingEffects


def _sample(cls):
    """Build a command instance filling required fields with plain values."""
    from dataclasses import MISSING, fields

    kwargs = {}
    for f in fields(cls):
        if f.default is not MISSING or f.default_factory is not MISSING:
            continue
        kwargs[f.name] = 1.0 if f.type in ("float", float) else "x"
    return cls(**kwargs)


@pytest.mark.asyncio
async def test_sync_raising_handler_still_frees_the_slot(bus, effects):
    executor = CommandExecutor(bus, effects)

    def boom(command):
        raise ValueError("handler bug")

    executor.register(c.Navigate, boom)
    cmd = c.Navigate(path="/")
    assert bus.push(cmd)
    outcome = await executor.drain()

    assert bus.peek_current() is None
    assert not bus.is_processing
    assert outcome.success is False
    assert "navigate" in outcome.message
    assert "handler bug" not in outcome.message
    assert effects.outcomes == [outcome]


@pytest.mark.asyncio
async def test_async_raising_handler_is_reported(bus, effects):
    executor = CommandExecutor(bus, effects)

    async def boom(command):
        raise KeyError("missing")

    executor.register(c.RefreshData, boom)
    bus.push(c.RefreshData())
    outcome = await executor.drain()
    assert outcome.title == "Command Failed"
    assert bus.state.phase == "idle"


@pytest.mark.asyncio
async def test_each_accepted_push_runs_one_handler_and_one_clear(effects):
    bus = CommandBus()
    executor = CommandExecutor(bus, effects)
    calls, clears = [], []
    bus.subscribe(lambda s: clears.append(1) if s.phase == "idle" else None)

    async def counting(command):
        calls.append(command)
        if len(calls) % 2:
            raise RuntimeError("odd calls fail")
        return CommandOutcome(command, True, "ok")

    executor.register(c.RefreshData, counting)
    for _ in range(6):
        cmd = c.RefreshData()
        assert bus.push(cmd)
        await executor.on_new_command(cmd)
        await executor.on_new_command(cmd)  # second delivery is a no-op

    assert len(calls) == 6
    assert len(clears) == 6
    assert [o.success for o in effects.outcomes] == [False, True] * 3


@pytest.mark.asyncio
async def test_command_not_on_the_bus_is_skipped(bus, effects):
    executor = CommandExecutor(bus, effects)
    assert await executor.on_new_command(c.RefreshData()) is None
    assert effects.outcomes == []


@pytest.mark.asyncio
async def test_drain_on_idle_bus_returns_none(bus, effects):
    assert await CommandExecutor(bus, effects).drain() is None


@pytest.mark.asyncio
async def test_unknown_command_is_handled(bus, effects):
    @dataclass(frozen=True)
    class Bogus(Command):
        pass

    executor = CommandExecutor(bus, effects)
    bus.push(Bogus())
    outcome = await executor.drain()
    assert outcome.title == "Unknown Command"
    assert not outcome.success
    assert bus.state.phase == "idle"


def test_every_command_kind_has_a_handler(bus, effects):
    executor = CommandExecutor(bus, effects)
    assert len(COMMAND_TYPES) == 100
    for cls in COMMAND_TYPES.values():
        assert cls in executor._handlers


@pytest.mark.asyncio
async def test_every_command_kind_settles(effects):
    bus = CommandBus()
    executor = CommandExecutor(bus, effects)
    for kind, cls in COMMAND_TYPES.items():
        cmd = _sample(cls)
        assert bus.push(cmd), kind
        outcome = await executor.drain()
        assert isinstance(outcome, CommandOutcome), kind
        assert bus.state.phase == "idle", kind
    assert len(effects.outcomes) == 100


@pytest.mark.asyncio
async def test_handler_timeout(bus, effects):
    executor = CommandExecutor(bus, effects, handler_timeout_s=0.01)

    async def slow(command):
        await asyncio.sleep(1)

    executor.register(c.SyncAll, slow)
    bus.push(c.SyncAll())
    outcome = await executor.drain()
    assert outcome.title == "Command Timed Out"
    assert bus.state.phase == "idle"


@pytest.mark.asyncio
async def test_failing_notify_does_not_leave_slot_occupied(bus):
    class BrokenNotify(RecordingEffects):
        async def notify(self, outcome):
            raise RuntimeError("toast layer down")

    executor = CommandExecutor(bus, BrokenNotify())
    bus.push(c.ToggleTheme())
    outcome = await executor.drain()
    assert outcome.success
    assert bus.state.phase == "idle"


@pytest.mark.asyncio
async def test_navigate(bus, effects):
    executor = CommandExecutor(bus, effects)
    bus.push(c.Navigate(path="/settings"))
    await executor.drain()
    assert effects.paths == ["/settings"]
    assert effects.last.success


@pytest.mark.asyncio
async def test_toggle_and_set_theme(bus, effects):
    executor = CommandExecutor(bus, effects)
    bus.push(c.ToggleTheme())
    await executor.drain()
    assert effects.view["theme"] == "dark"
    bus.push(c.ToggleTheme())
    await executor.drain()
    assert effects.view["theme"] == "light"

    bus.push(c.SetTheme(theme="sepia"))
    outcome = await executor.drain()
    assert not outcome.success
    assert effects.view["theme"] == "light"


@pytest.mark.asyncio
async def test_create_task_inserts_for_current_user(bus, effects):
    executor = CommandExecutor(bus, effects)
    bus.push(c.CreateTask(title="Ship release", priority="high"))
    outcome = await executor.drain()
    assert outcome.success
    row = effects.tables["personal_items"][0]
    assert row["user_id"] == "user-1"
    assert row["item_type"] == "task"
    assert row["priority"] == "high"
    assert ("voice-task-created", None) in effects.events


@pytest.mark.asyncio
async def test_insert_without_user_requires_authentication(bus):
    effects = RecordingEffects(user_id=None)
    executor = CommandExecutor(bus, effects)
    bus.push(c.CreateNote(title="idea"))
    outcome = await executor.drain()
    assert outcome.title == "Authentication Required"
    assert effects.tables == {}


@pytest.mark.asyncio
async def test_add_expense_is_stored_negative(bus, effects):
    executor = CommandExecutor(bus, effects)
    bus.push(c.AddExpense(amount=12.5, category_name="food"))
    await executor.drain()
    assert effects.tables["financials"][0]["amount"] == -12.5


@pytest.mark.asyncio
async def test_remote_failure_becomes_friendly_outcome(bus, effects):
    effects.invoke_error = ConnectionError("502 from upstream")
    executor = CommandExecutor(bus, effects)
    bus.push(c.DraftEmail(intent="follow up", to="a@example.com"))
    outcome = await executor.drain()
    assert outcome.title == "Draft Failed"
    assert "502" not in outcome.message


@pytest.mark.asyncio
async def test_ask_assistant_truncates_answer(bus, effects):
    effects.invoke_response = {"response": "y" * 300}
    executor = CommandExecutor(bus, effects)
    bus.push(c.AskAssistant(question="why?"))
    outcome = await executor.drain()
    assert len(outcome.message) == 100
    assert effects.invocations[0][1] == {"action": "chat", "query": "why?"}


@pytest.mark.asyncio
async def test_ui_event_commands_emit_and_open_domain(bus, effects):
    executor = CommandExecutor(bus, effects)
    bus.push(c.ListEvents(timeframe="tomorrow"))
    await executor.drain()
    assert effects.view["expanded_domain"] == "events"
    event, detail = effects.events[-1]
    assert event == "voice-list-events"
    assert detail["timeframe"] == "tomorrow"


@pytest.mark.asyncio
async def test_automation_toggle_and_delete(bus, effects):
    executor = CommandExecutor(bus, effects)
    bus.push(c.CreateAutomation(name="Inbox digest", trigger="email_received"))
    await executor.drain()
    effects.tables["automations"][0]["id"] = "auto-1"

    bus.push(c.ToggleAutomation(automation_name="digest"))
    outcome = await executor.drain()
    assert outcome.title == "Automation Paused"
    assert effects.tables["automations"][0]["is_active"] is False

    bus.push(c.ListAutomations(filter="inactive"))
    outcome = await executor.drain()
    assert outcome.message == "Found 1 automation"

    bus.push(c.DeleteAutomation(automation_id="auto-1"))
    await executor.drain()
    assert effects.tables["automations"] == []

    bus.push(c.DeleteAutomation(automation_id="auto-1"))
    outcome = await executor.drain()
    assert outcome.title == "Automation Not Found"


@pytest.mark.asyncio
async def test_webhook_error_status_fails(bus, effects):
    effects.webhook_status = 500
    executor = CommandExecutor(bus, effects)
    bus.push(c.TriggerWebhook(webhook_url="https://hooks.example.com/x", payload={"a": 1}))
    outcome = await executor.drain()
    assert not outcome.success
    url, payload = effects.webhooks[0]
    assert payload["a"] == 1
    assert payload["source"] == "voice"


@pytest.mark.asyncio
async def test_attach_executes_pushed_commands(bus, effects):
    executor = CommandExecutor(bus, effects)
    executor.attach()
    assert bus.push(c.Navigate(path="/help"))
    await executor.join()
    assert effects.paths == ["/help"]
    assert bus.state.phase == "idle"

    assert bus.push(c.RefreshData())
    await executor.join()
    assert len(effects.outcomes) == 2

    executor.detach()
    bus.push(c.RefreshData())
    await executor.join()
    assert len(effects.outcomes) == 2
    assert bus.state.phase == "occupied"


@pytest.mark.asyncio
async def test_attach_picks_up_command_pushed_earlier(bus, effects):
    bus.push(c.CollapseDomain())
    executor = CommandExecutor(bus, effects)
    executor.attach()
    await executor.join()
    assert effects.view["expanded_domain"] is None
    assert bus.state.phase == "idle"


def test_missing_handler_fails_construction(bus, effects, monkeypatch):
    @dataclass(frozen=True)
    class Orphan(Command):
        pass

    monkeypatch.setitem(COMMAND_TYPES, "orphan", Orphan)
    with pytest.raises(TypeError, match="orphan"):
        CommandExecutor(bus, effects)


@pytest.mark.asyncio
async def test_processing_flag_toggle_does_not_rerun_handler(bus, effects):
    executor = CommandExecutor(bus, effects)
    calls = []

    async def toggling(command):
        calls.append(command)
        bus.set_processing(False)
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        return CommandOutcome(command, True, "ok")

    executor.register(c.RefreshData, toggling)
    executor.attach()
    assert bus.push(c.RefreshData())
    await executor.join()
    executor.detach()

    assert len(calls) == 1
    assert len(effects.outcomes) == 1
    assert bus.state.phase == "idle"


@pytest.mark.asyncio
async def test_non_command_is_not_dispatched(bus, effects):
    executor = CommandExecutor(bus, effects)
    assert await executor.on_new_command({"type": "navigate"}) is None
    assert effects.outcomes == []
