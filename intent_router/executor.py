"""CommandExecutor: drains the command bus and performs each command's effect."""

import asyncio
import inspect
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

from loguru import logger

from intent_router import commands as c
from intent_router.bus import CommandBus, CommandBusState
from intent_router.commands import COMMAND_CATEGORIES, COMMAND_TYPES, Command, command_to_dict

ORCHESTRATOR_FUNCTION = "assistant-orchestrator"


@dataclass(frozen=True)
class CommandOutcome:
    """User-visible result of one executed command."""
    command: Command | None
    success: bool
    title: str
    message: str = ""

    @property
    def kind(self) -> str:
        return self.command.kind if self.command is not None else "unknown"


class CommandEffects(ABC):
    """Side effects available to command handlers.

    Implementations bridge to the UI, the data store and remote functions.
    Any method may raise; the executor turns that into a failure outcome.
    """

    @abstractmethod
    async def notify(self, outcome: CommandOutcome) -> None:
        """Show an outcome to the user."""

    @abstractmethod
    async def navigate(self, path: str) -> None: ...

    @abstractmethod
    async def view_state(self, key: str) -> Any: ...

    @abstractmethod
    async def set_view_state(self, key: str, value: Any) -> None: ...

    @abstractmethod
    async def emit(self, event: str, detail: dict[str, Any] | None = None) -> None:
        """Broadcast a UI event for components that own the concrete action."""

    @abstractmethod
    async def invoke(self, function: str, body: dict[str, Any]) -> dict[str, Any]:
        """Call a remote backend function."""

    @abstractmethod
    async def insert(self, table: str, row: dict[str, Any]) -> None: ...

    @abstractmethod
    async def select(self, table: str, match: dict[str, Any]) -> list[dict[str, Any]]: ...

    @abstractmethod
    async def update(self, table: str, match: dict[str, Any], values: dict[str, Any]) -> int: ...

    @abstractmethod
    async def delete(self, table: str, match: dict[str, Any]) -> int: ...

    @abstractmethod
    async def post_webhook(self, url: str, payload: dict[str, Any]) -> int:
        """POST payload as JSON; returns the HTTP status."""

    @abstractmethod
    async def current_user(self) -> str | None: ...


Handler = Callable[[Command], Awaitable[CommandOutcome] | CommandOutcome]


def handles(*command_types: type[Command]):
    """Mark an executor method as the handler for the given command types."""
    def decorate(fn):
        fn._handles = command_types
        return fn
    return decorate


# Commands whose whole effect is a UI event (optionally opening a domain view).
# type -> (title, event, domain to expand)
_UI_EVENTS: dict[type[Command], tuple[str, str, str | None]] = {
    c.Filter: ("Filter Applied", "filter", None),
    c.Search: ("Searching", "search", None),
    c.ClearFilters: ("Filters Cleared", "clear-filters", None),
    c.ExportData: ("Export Started", "export-data", None),
    c.ToggleFullscreen: ("Fullscreen Toggled", "toggle-fullscreen", None),
    c.ToggleSidebar: ("Sidebar Toggled", "toggle-sidebar", None),
    c.SelectAgent: ("Agent Selected", "select-agent", None),
    c.FilterAgents: ("Agents Filtered", "filter-agents", None),
    c.TrainAgent: ("Training Agents", "train-agent", None),
    c.AllocateAgents: ("Allocating Agents", "allocate-agents", None),
    c.CreateSwarm: ("Creating Agent Swarm", "create-swarm", None),
    c.GetAgentStatus: ("Checking Agent Status", "agent-status", None),
    c.TransferKnowledge: ("Transferring Knowledge", "transfer-knowledge", None),
    c.TriggerWorkflow: ("Workflow Triggered", "trigger-workflow", None),
    c.CreateWorkflow: ("Creating Workflow", "create-workflow", None),
    c.ListWorkflows: ("Listing Workflows", "list-workflows", None),
    c.StopWorkflow: ("Stopping Workflow", "stop-workflow", None),
    c.OpenDialog: ("Opening", "open-dialog", None),
    c.ReplyToEmail: ("Opening Reply", "reply-email", "communications"),
    c.ForwardEmail: ("Forwarding Email", "forward-email", "communications"),
    c.CompleteTask: ("Completing Task", "complete-task", None),
    c.UpdateTask: ("Updating Task", "update-task", None),
    c.ListTasks: ("Listing Tasks", "list-tasks", "tasks"),
    c.DeleteTask: ("Deleting Task", "delete-task", None),
    c.AssignTask: ("Assigning Task", "assign-task", None),
    c.ListNotes: ("Listing Notes", "list-notes", None),
    c.SearchNotes: ("Searching Notes", "search-notes", None),
    c.UpdateGoalProgress: ("Updating Goal Progress", "update-goal", None),
    c.ListGoals: ("Listing Goals", "list-goals", None),
    c.CompleteHabit: ("Completing Habit", "complete-habit", None),
    c.GetHabitStreak: ("Checking Habit Streak", "habit-streak", None),
    c.ListEvents: ("Listing Events", "list-events", "events"),
    c.CancelEvent: ("Cancelling Event", "cancel-event", None),
    c.RescheduleEvent: ("Rescheduling Event", "reschedule-event", None),
    c.GetAvailability: ("Checking Availability", "check-availability", "events"),
    c.BlockTime: ("Blocking Time", "block-time", None),
    c.CheckBalance: ("Checking Balance", "check-balance", "financials"),
    c.ListTransactions: ("Listing Transactions", "list-transactions", "financials"),
    c.CategorizeTransaction: ("Categorizing Transaction", "categorize", None),
    c.GetFinancialSummary: ("Getting Financial Summary", "financial-summary", "financials"),
    c.ReconcileAccounts: ("Reconciling Accounts", "reconcile", "financials"),
    c.SetBudget: ("Setting Budget", "set-budget", None),
    c.GetCashFlow: ("Analyzing Cash Flow", "cash-flow", "financials"),
    c.CreateWidget: ("Creating Widget", "create-widget", None),
    c.UpdateWidget: ("Updating Widget", "update-widget", None),
    c.DeleteWidget: ("Deleting Widget", "delete-widget", None),
    c.ListWidgets: ("Listing Widgets", "list-widgets", None),
    c.RefreshWidget: ("Refreshing Widget", "refresh-widget", None),
    c.UploadFile: ("Opening File Upload", "upload-file", None),
    c.SearchDocuments: ("Searching Documents", "search-documents", "documents"),
    c.ListDocuments: ("Listing Documents", "list-documents", "documents"),
    c.AnalyzeDocument: ("Analyzing Document", "analyze-document", None),
    c.SummarizeDocument: ("Summarizing Document", "summarize-document", None),
    c.CreateDocument: ("Creating Document", "create-document", None),
    c.SaveKnowledge: ("Saving Knowledge", "save-knowledge", None),
    c.SearchKnowledge: ("Searching Knowledge", "search-knowledge", "knowledge"),
    c.GetInsights: ("Getting Insights", "get-insights", None),
    c.AddToDashboard: ("Adding to Dashboard", "add-to-dashboard", None),
    c.RearrangeDashboard: ("Rearranging Dashboard", "rearrange-dashboard", None),
    c.ResetDashboard: ("Resetting Dashboard", "reset-dashboard", None),
    c.ShareDashboard: ("Sharing Dashboard", "share-dashboard", None),
    c.ShowTutorial: ("Starting Tutorial", "show-tutorial", None),
    c.ClearCache: ("Clearing Cache", "clear-cache", None),
    c.CheckStatus: ("Checking System Status", "check-status", None),
}


def _describe(command: Command) -> str:
    """First populated text field, used as the outcome message."""
    for name in ("title", "query", "purpose", "name", "task_title", "event_title",
                 "widget_name", "habit_name", "topic", "feature", "dialog", "entity"):
        value = getattr(command, name, None)
        if isinstance(value, str) and value:
            return value.replace("_", " ") if name == "dialog" else value
    return ""


class CommandExecutor:
    """Runs one command at a time off a CommandBus.

    Every claimed command gets exactly one handler call and exactly one
    ``bus.clear()``, whatever the handler does. Handler failures become
    failure outcomes; nothing propagates to the caller.
    """

    def __init__(
        self,
        bus: CommandBus,
        effects: CommandEffects,
        *,
        handler_timeout_s: float | None = None,
    ):
        self._bus = bus
        self._effects = effects
        self._handler_timeout_s = handler_timeout_s
        self._handlers: dict[type[Command], Handler] = {}
        self._loop: asyncio.AbstractEventLoop | None = None
        self._unsubscribe: Callable[[], None] | None = None
        self._tasks: set[asyncio.Task] = set()
        self._in_flight: set[int] = set()
        self._last_outcome: CommandOutcome | None = None

        for name in dir(type(self)):
            types = getattr(getattr(type(self), name), "_handles", None)
            if types:
                for command_type in types:
                    self._handlers[command_type] = getattr(self, name)
        for command_type in _UI_EVENTS:
            self._handlers.setdefault(command_type, self._ui_event)

        missing = sorted(kind for kind, cls in COMMAND_TYPES.items() if cls not in self._handlers)
        if missing:
            raise TypeError(f"No handler for command kinds: {', '.join(missing)}")

    @property
    def last_outcome(self) -> CommandOutcome | None:
        return self._last_outcome

    def register(self, command_type: type[Command], handler: Handler) -> None:
        """Replace the handler for a command type."""
        self._handlers[command_type] = handler

    # --- bus wiring ---

    def attach(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """Execute commands as soon as they are pushed onto the bus."""
        if self._unsubscribe is not None:
            return
        self._loop = loop or asyncio.get_running_loop()
        self._unsubscribe = self._bus.subscribe(self._on_bus_state)
        # A command pushed before attaching is still waiting.
        current = self._bus.state
        if current.phase == "occupied":
            self._on_bus_state(current)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def drain(self) -> CommandOutcome | None:
        """Execute the bus's pending command, if any."""
        command = self._bus.peek_current()
        if command is None:
            return None
        return await self.on_new_command(command)

    async def join(self) -> None:
        """Wait until every scheduled dispatch has settled."""
        await asyncio.sleep(0)
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
            await asyncio.sleep(0)

    def _on_bus_state(self, state: CommandBusState) -> None:
        if state.phase != "occupied" or self._loop is None:
            return
        self._loop.call_soon_threadsafe(self._spawn, state.current_command)

    def _spawn(self, command: Command) -> None:
        task = self._loop.create_task(self.on_new_command(command))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    # --- dispatch ---

    async def on_new_command(self, command: Command) -> CommandOutcome | None:
        if id(command) in self._in_flight or not self._bus.begin_processing(command):
            logger.debug(f"Executor: {getattr(command, 'kind', command)!r} not claimable, skipping")
            return None

        logger.info(f"Executing command: {getattr(command, 'kind', '') or type(command).__name__}")
        self._in_flight.add(id(command))
        try:
            outcome = await self._run(command)
            self._last_outcome = outcome
            await self._report(outcome)
        finally:
            self._in_flight.discard(id(command))
            self._bus.clear()
        return outcome

    async def _run(self, command: Command) -> CommandOutcome:
        handler = self._handlers.get(type(command))
        if handler is None:
            logger.warning(f"Unknown command type: {command!r}")
            return CommandOutcome(command, False, "Unknown Command", "I didn't understand that command")

        try:
            result = handler(command)
            if inspect.isawaitable(result):
                if self._handler_timeout_s is not None:
                    result = await asyncio.wait_for(result, timeout=self._handler_timeout_s)
                else:
                    result = await result
        except asyncio.TimeoutError:
            logger.warning(f"Command {command.kind} timed out after {self._handler_timeout_s}s")
            return CommandOutcome(command, False, "Command Timed Out", f"{self._label(command)} took too long")
        except Exception as e:
            logger.warning(f"Command {command.kind} failed: {e!r}")
            return CommandOutcome(command, False, "Command Failed", f"Could not {self._label(command)}")

        if not isinstance(result, CommandOutcome):
            return CommandOutcome(command, True, self._label(command).capitalize())
        return result

    async def _report(self, outcome: CommandOutcome) -> None:
        try:
            await self._effects.notify(outcome)
        except Exception as e:
            logger.warning(f"Outcome delivery failed for {outcome.kind}: {e}")

    @staticmethod
    def _label(command: Command) -> str:
        return (command.kind or "run command").replace("_", " ")

    # --- helpers ---

    @staticmethod
    def _ok(command: Command, title: str, message: str = "") -> CommandOutcome:
        return CommandOutcome(command, True, title, message)

    @staticmethod
    def _fail(command: Command, title: str, message: str = "") -> CommandOutcome:
        return CommandOutcome(command, False, title, message)

    async def _expand(self, domain: str | None) -> None:
        await self._effects.set_view_state("expanded_domain", domain)

    async def _insert_for_user(
        self, command: Command, table: str, row: dict[str, Any], title: str, message: str,
    ) -> CommandOutcome:
        user_id = await self._effects.current_user()
        if not user_id:
            return self._fail(command, "Authentication Required", f"Sign in to {self._label(command)}")
        await self._effects.insert(table, {"user_id": user_id, **row})
        return self._ok(command, title, message)

    async def _ui_event(self, command: Command) -> CommandOutcome:
        title, event, domain = _UI_EVENTS[type(command)]
        if domain:
            await self._expand(domain)
        await self._effects.emit(f"voice-{event}", command_to_dict(command))
        return self._ok(command, title, _describe(command))

    # --- navigation & data hub ---

    @handles(c.Navigate)
    async def _navigate(self, command: c.Navigate) -> CommandOutcome:
        await self._effects.navigate(command.path)
        return self._ok(command, "Navigation", f"Navigating to {command.path}")

    @handles(c.ShowNotification)
    async def _show_notification(self, command: c.ShowNotification) -> CommandOutcome:
        titles = {"error": "Error", "info": "Info"}
        return CommandOutcome(command, command.variant != "error", titles.get(command.variant, "Success"), command.message)

    @handles(c.VoiceResponse)
    async def _voice_response(self, command: c.VoiceResponse) -> CommandOutcome:
        return self._ok(command, "Assistant", command.text)

    @handles(c.SwitchTab)
    async def _switch_tab(self, command: c.SwitchTab) -> CommandOutcome:
        await self._effects.set_view_state("active_tab", command.tab)
        return self._ok(command, "Tab Switched", f"Switched to {command.tab} tab")

    @handles(c.ExpandDomain)
    async def _expand_domain(self, command: c.ExpandDomain) -> CommandOutcome:
        await self._expand(command.domain)
        return self._ok(command, "Domain Opened", f"Expanded {command.domain} domain")

    @handles(c.CollapseDomain)
    async def _collapse_domain(self, command: c.CollapseDomain) -> CommandOutcome:
        await self._expand(None)
        return self._ok(command, "Domain Closed", "Returned to hub view")

    @handles(c.SwitchPersona)
    async def _switch_persona(self, command: c.SwitchPersona) -> CommandOutcome:
        await self._effects.set_view_state("target_persona", command.persona)
        return self._ok(command, "Persona Changed", f"Switched to {command.persona.upper()} view")

    # --- reports ---

    @handles(c.GenerateReport)
    async def _generate_report(self, command: c.GenerateReport) -> CommandOutcome:
        persona = command.persona or "ceo"
        await self._effects.set_view_state("report_request", persona)
        return self._ok(command, "Report Requested", f"Generating {persona.upper()} report")

    @handles(c.RunQuery)
    async def _run_query(self, command: c.RunQuery) -> CommandOutcome:
        await self._effects.set_view_state("enterprise_query", command.query)
        await self._effects.set_view_state("trigger_enterprise_query", True)
        return self._ok(command, "Query Running", f"Analyzing: {command.query}")

    @handles(c.RefreshData)
    async def _refresh_data(self, command: c.RefreshData) -> CommandOutcome:
        await self._effects.set_view_state("refresh_requested", True)
        return self._ok(command, "Refreshing", "Updating data")

    @handles(c.SyncAll)
    async def _sync_all(self, command: c.SyncAll) -> CommandOutcome:
        await self._effects.set_view_state("refresh_requested", True)
        await self._effects.emit("voice-sync-all")
        return self._ok(command, "Syncing All Data")

    # --- theme ---

    @handles(c.ToggleTheme)
    async def _toggle_theme(self, command: c.ToggleTheme) -> CommandOutcome:
        theme = "light" if await self._effects.view_state("theme") == "dark" else "dark"
        await self._effects.set_view_state("theme", theme)
        return self._ok(command, "Theme Toggled", f"Switched to {theme} mode")

    @handles(c.SetTheme)
    async def _set_theme(self, command: c.SetTheme) -> CommandOutcome:
        if command.theme not in ("light", "dark"):
            return self._fail(command, "Unknown Theme", f"No theme called {command.theme}")
        await self._effects.set_view_state("theme", command.theme)
        return self._ok(command, "Theme Changed", f"Set to {command.theme} mode")

    # --- communications ---

    @handles(c.DraftEmail)
    async def _draft_email(self, command: c.DraftEmail) -> CommandOutcome:
        try:
            data = await self._effects.invoke(ORCHESTRATOR_FUNCTION, {
                "action": "draft_message", "context": command.intent, "platform": "gmail",
                "to": command.to, "subject": command.subject,
            })
        except Exception as e:
            logger.warning(f"Draft email failed: {e}")
            return self._fail(command, "Draft Failed", "Could not generate email draft")
        await self._effects.emit("email-drafted", data)
        await self._expand("communications")
        return self._ok(command, "Draft Ready", "Review it in Communications.")

    @handles(c.ComposeEmail)
    async def _compose_email(self, command: c.ComposeEmail) -> CommandOutcome:
        try:
            data = await self._effects.invoke(ORCHESTRATOR_FUNCTION, {
                "action": "compose_email", "to": command.to, "subject": command.subject,
                "intent": command.intent, "urgency": command.urgency,
            })
        except Exception as e:
            logger.warning(f"Compose email failed: {e}")
            return self._fail(command, "Compose Failed", "Could not compose email")
        await self._effects.emit("email-composed", data)
        await self._expand("communications")
        return self._ok(command, "Email Composed", f"Email to {command.to} ready for approval.")

    @handles(c.SendEmail)
    async def _send_email(self, command: c.SendEmail) -> CommandOutcome:
        try:
            # Queued as a draft; the user approves the actual send.
            await self._effects.invoke(ORCHESTRATOR_FUNCTION, {
                "action": "send_message", "content": command.content or "",
                "subject": command.subject, "toAddresses": [command.to],
                "platform": "gmail", "isDraft": True,
            })
        except Exception as e:
            logger.warning(f"Send email failed: {e}")
            return self._fail(command, "Send Failed", "Could not queue email")
        await self._expand("communications")
        return self._ok(command, "Email Queued", "Please review and approve to send.")

    @handles(c.OpenCommunications, c.CheckInbox)
    async def _open_communications(self, command: Command) -> CommandOutcome:
        await self._expand("communications")
        return self._ok(command, "Opening Communications", "Showing your inbox and messages")

    # --- records created for the current user ---

    @handles(c.CreateTask)
    async def _create_task(self, command: c.CreateTask) -> CommandOutcome:
        outcome = await self._insert_for_user(command, "personal_items", {
            "item_type": "task",
            "title": command.title,
            "content": command.description,
            "priority": command.priority,
            "status": "active",
            "metadata": {"voice_created": True, "due_date_hint": command.due_date},
            "tags": [],
        }, "Task Created", command.title)
        if outcome.success:
            await self._effects.emit("voice-task-created")
        return outcome

    @handles(c.CreateNote)
    async def _create_note(self, command: c.CreateNote) -> CommandOutcome:
        return await self._insert_for_user(command, "personal_items", {
            "item_type": "note",
            "title": command.title,
            "content": command.content,
            "priority": "medium",
            "status": "active",
            "metadata": {"voice_created": True},
            "tags": list(command.tags),
        }, "Note Created", command.title)

    @handles(c.CreateReminder)
    async def _create_reminder(self, command: c.CreateReminder) -> CommandOutcome:
        return await self._insert_for_user(command, "personal_items", {
            "item_type": "reminder",
            "title": command.title,
            "content": command.description,
            "priority": "high",
            "status": "active",
            "reminder_at": command.reminder_at,
            "metadata": {"voice_created": True},
            "tags": [],
        }, "Reminder Set", command.title)

    @handles(c.CreateGoal)
    async def _create_goal(self, command: c.CreateGoal) -> CommandOutcome:
        return await self._insert_for_user(command, "personal_goals", {
            "title": command.title,
            "target_value": command.target_value,
            "target_date": command.target_date,
            "category": command.category_name,
            "status": "active",
            "current_value": 0,
        }, "Goal Created", command.title)

    @handles(c.CreateHabit)
    async def _create_habit(self, command: c.CreateHabit) -> CommandOutcome:
        if command.frequency not in ("daily", "weekly", "monthly"):
            return self._fail(command, "Invalid Frequency", f"Habits repeat daily, weekly or monthly, not {command.frequency}")
        return await self._insert_for_user(command, "personal_habits", {
            "name": command.name,
            "frequency": command.frequency,
            "target_count": 1,
            "current_streak": 0,
            "longest_streak": 0,
            "is_active": True,
        }, "Habit Created", command.name)

    @handles(c.CreateEvent)
    async def _create_event(self, command: c.CreateEvent) -> CommandOutcome:
        outcome = await self._insert_for_user(command, "calendar_events", {
            "title": command.title,
            "start_at": command.start_at,
            "end_at": command.end_at,
            "location": command.location,
            "attendees": list(command.attendees) or None,
            "source": "voice",
            "type": "meeting",
        }, "Event Created", command.title)
        if outcome.success:
            await self._effects.emit("voice-event-created")
        return outcome

    @handles(c.ShowCalendar)
    async def _show_calendar(self, command: c.ShowCalendar) -> CommandOutcome:
        await self._expand("events")
        return self._ok(command, "Opening Calendar")

    @handles(c.AddExpense)
    async def _add_expense(self, command: c.AddExpense) -> CommandOutcome:
        summary = f"${command.amount:g} for {command.category_name}"
        return await self._insert_for_user(command, "financials", {
            "title": command.description or command.category_name,
            "amount": -abs(command.amount),
            "category": command.category_name,
            "type": "expense",
            "source": "voice",
            "transaction_date": datetime.now(timezone.utc).isoformat(),
        }, "Expense Added", summary)

    # --- knowledge & assistant ---

    @handles(c.AskAssistant)
    async def _ask_assistant(self, command: c.AskAssistant) -> CommandOutcome:
        try:
            data = await self._effects.invoke(ORCHESTRATOR_FUNCTION, {"action": "chat", "query": command.question})
        except Exception as e:
            logger.warning(f"Assistant question failed: {e}")
            return self._fail(command, "Assistant Error", "Could not process question")
        answer = str((data or {}).get("response") or "Processing...")
        return self._ok(command, "Assistant", answer[:100])

    @handles(c.GetSummary)
    async def _get_summary(self, command: c.GetSummary) -> CommandOutcome:
        try:
            data = await self._effects.invoke(ORCHESTRATOR_FUNCTION, {"action": "get_personal_summary"})
        except Exception as e:
            logger.warning(f"Summary request failed: {e}")
            return self._fail(command, "Summary Unavailable", "Could not load your summary")
        summary = (data or {}).get("summary") or {}
        return self._ok(
            command, "Your Summary",
            f"Tasks: {summary.get('activeTasks', 0)}, Streak: {summary.get('currentStreak', 0)} days",
        )

    # --- help ---

    @handles(c.GetHelp)
    async def _get_help(self, command: c.GetHelp) -> CommandOutcome:
        await self._effects.navigate("/help")
        return self._ok(command, "Getting Help", command.topic or "General help")

    @handles(c.ListCommands, c.WhatCanYouDo)
    async def _list_commands(self, command: Command) -> CommandOutcome:
        categories = sorted(COMMAND_CATEGORIES)
        count = sum(len(kinds) for kinds in COMMAND_CATEGORIES.values())
        await self._effects.emit("voice-list-commands", {"categories": {k: list(COMMAND_CATEGORIES[k]) for k in categories}})
        return self._ok(
            command, "Voice Commands",
            f"I support {count} commands across {len(categories)} categories: {', '.join(categories[:5])}...",
        )

    # --- automation ---

    @handles(c.CreateAutomation)
    async def _create_automation(self, command: c.CreateAutomation) -> CommandOutcome:
        return await self._insert_for_user(command, "automations", {
            "name": command.name,
            "trigger_event": command.trigger,
            "webhook_url": command.webhook_url,
            "provider": command.provider,
            "description": command.description,
            "is_active": True,
        }, "Automation Created", command.name)

    @handles(c.ListAutomations)
    async def _list_automations(self, command: c.ListAutomations) -> CommandOutcome:
        user_id = await self._effects.current_user()
        if not user_id:
            return self._fail(command, "Authentication Required", "Sign in to list automations")
        match: dict[str, Any] = {"user_id": user_id}
        if command.filter in ("active", "inactive"):
            match["is_active"] = command.filter == "active"
        rows = await self._effects.select("automations", match)
        await self._effects.emit("voice-automations-listed", {"automations": rows})
        return self._ok(command, "Automations", f"Found {len(rows)} automation{'s' if len(rows) != 1 else ''}")

    async def _find_automation(self, command: c.ToggleAutomation | c.DeleteAutomation) -> dict[str, Any] | None:
        user_id = await self._effects.current_user()
        if not user_id:
            return None
        rows = await self._effects.select("automations", {"user_id": user_id})
        for row in rows:
            if command.automation_id and row.get("id") == command.automation_id:
                return row
            if command.automation_name and command.automation_name.lower() in str(row.get("name", "")).lower():
                return row
        return None

    @handles(c.ToggleAutomation)
    async def _toggle_automation(self, command: c.ToggleAutomation) -> CommandOutcome:
        row = await self._find_automation(command)
        if row is None:
            return self._fail(command, "Automation Not Found", command.automation_name or command.automation_id or "")
        active = not row.get("is_active", False)
        await self._effects.update("automations", {"id": row["id"]}, {"is_active": active})
        return self._ok(command, "Automation Enabled" if active else "Automation Paused", str(row.get("name", "")))

    @handles(c.DeleteAutomation)
    async def _delete_automation(self, command: c.DeleteAutomation) -> CommandOutcome:
        row = await self._find_automation(command)
        if row is None:
            return self._fail(command, "Automation Not Found", command.automation_name or command.automation_id or "")
        await self._effects.delete("automations", {"id": row["id"]})
        return self._ok(command, "Automation Deleted", str(row.get("name", "")))

    @handles(c.TriggerWebhook)
    async def _trigger_webhook(self, command: c.TriggerWebhook) -> CommandOutcome:
        payload = {
            **command.payload,
            "triggered_at": datetime.now(timezone.utc).isoformat(),
            "source": "voice",
        }
        status = await self._effects.post_webhook(command.webhook_url, payload)
        if status >= 400:
            return self._fail(command, "Webhook Failed", f"Endpoint answered {status}")
        return self._ok(command, "Webhook Triggered", f"Endpoint answered {status}")
