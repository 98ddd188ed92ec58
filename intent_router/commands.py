"""Command value objects.

Every concrete action the executor can perform is a frozen dataclass tagged
with a ``kind`` string. The set is closed: subclasses register themselves in
``COMMAND_TYPES`` and the executor refuses to start unless it has a handler
for each one.
"""

import dataclasses
import re
from dataclasses import dataclass, field
from typing import Any, ClassVar

COMMAND_TYPES: dict[str, type["Command"]] = {}
COMMAND_CATEGORIES: dict[str, list[str]] = {}


@dataclass(frozen=True)
class Command:
    """Base class; never instantiated directly."""

    kind: ClassVar[str] = ""
    category: ClassVar[str] = ""

    def __init_subclass__(cls, kind: str = "", category: str = "", **kwargs):
        super().__init_subclass__(**kwargs)
        if not kind:
            return
        if kind in COMMAND_TYPES:
            raise TypeError(f"Duplicate command kind '{kind}'")
        cls.kind = kind
        cls.category = category
        COMMAND_TYPES[kind] = cls
        COMMAND_CATEGORIES.setdefault(category, []).append(kind)


# --- navigation & data hub ---

@dataclass(frozen=True)
class Navigate(Command, kind="navigate", category="navigation"):
    path: str


@dataclass(frozen=True)
class ShowNotification(Command, kind="show_notification", category="navigation"):
    message: str
    variant: str = "success"  # success | error | info


@dataclass(frozen=True)
class SwitchTab(Command, kind="switch_tab", category="navigation"):
    tab: str  # command | insights | admin


@dataclass(frozen=True)
class ExpandDomain(Command, kind="expand_domain", category="navigation"):
    domain: str


@dataclass(frozen=True)
class CollapseDomain(Command, kind="collapse_domain", category="navigation"):
    pass


@dataclass(frozen=True)
class SwitchPersona(Command, kind="switch_persona", category="navigation"):
    persona: str


# --- filtering & search ---

@dataclass(frozen=True)
class Filter(Command, kind="filter", category="search"):
    entity: str
    criteria: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Search(Command, kind="search", category="search"):
    query: str
    scope: str | None = None  # agents | documents | all | tasks | emails | events


@dataclass(frozen=True)
class ClearFilters(Command, kind="clear_filters", category="search"):
    pass


# --- reports ---

@dataclass(frozen=True)
class GenerateReport(Command, kind="generate_report", category="reports"):
    persona: str | None = None


@dataclass(frozen=True)
class RunQuery(Command, kind="run_query", category="reports"):
    query: str


@dataclass(frozen=True)
class RefreshData(Command, kind="refresh_data", category="reports"):
    pass


@dataclass(frozen=True)
class ExportData(Command, kind="export_data", category="reports"):
    format: str | None = None  # csv | pdf | json
    entity: str | None = None


# --- theme & ui ---

@dataclass(frozen=True)
class ToggleTheme(Command, kind="toggle_theme", category="system"):
    pass


@dataclass(frozen=True)
class SetTheme(Command, kind="set_theme", category="system"):
    theme: str  # light | dark


@dataclass(frozen=True)
class ToggleFullscreen(Command, kind="toggle_fullscreen", category="system"):
    pass


@dataclass(frozen=True)
class ToggleSidebar(Command, kind="toggle_sidebar", category="system"):
    pass


# --- agents ---

@dataclass(frozen=True)
class SelectAgent(Command, kind="select_agent", category="agents"):
    agent_id: str


@dataclass(frozen=True)
class FilterAgents(Command, kind="filter_agents", category="agents"):
    sector: str | None = None
    status: str | None = None
    capability: str | None = None


@dataclass(frozen=True)
class TrainAgent(Command, kind="train_agent", category="agents"):
    agent_id: str | None = None
    task_type: str | None = None


@dataclass(frozen=True)
class AllocateAgents(Command, kind="allocate_agents", category="agents"):
    task_id: str | None = None
    count: int | None = None


@dataclass(frozen=True)
class CreateSwarm(Command, kind="create_swarm", category="agents"):
    agent_ids: tuple[str, ...] = ()
    purpose: str | None = None


@dataclass(frozen=True)
class GetAgentStatus(Command, kind="get_agent_status", category="agents"):
    agent_id: str | None = None


@dataclass(frozen=True)
class TransferKnowledge(Command, kind="transfer_knowledge", category="agents"):
    from_agent_id: str | None = None
    to_agent_id: str | None = None


@dataclass(frozen=True)
class VoiceResponse(Command, kind="voice_response", category="agents"):
    text: str


# --- workflows ---

@dataclass(frozen=True)
class TriggerWorkflow(Command, kind="trigger_workflow", category="workflows"):
    workflow_id: str


@dataclass(frozen=True)
class CreateWorkflow(Command, kind="create_workflow", category="workflows"):
    name: str
    description: str | None = None


@dataclass(frozen=True)
class ListWorkflows(Command, kind="list_workflows", category="workflows"):
    pass


@dataclass(frozen=True)
class StopWorkflow(Command, kind="stop_workflow", category="workflows"):
    workflow_id: str | None = None


@dataclass(frozen=True)
class OpenDialog(Command, kind="open_dialog", category="workflows"):
    dialog: str


# --- email & communications ---

@dataclass(frozen=True)
class DraftEmail(Command, kind="draft_email", category="communication"):
    intent: str
    to: str | None = None
    subject: str | None = None


@dataclass(frozen=True)
class SendEmail(Command, kind="send_email", category="communication"):
    to: str
    subject: str | None = None
    content: str | None = None


@dataclass(frozen=True)
class ComposeEmail(Command, kind="compose_email", category="communication"):
    to: str
    intent: str
    subject: str | None = None
    urgency: str = "normal"  # low | normal | high


@dataclass(frozen=True)
class OpenCommunications(Command, kind="open_communications", category="communication"):
    pass


@dataclass(frozen=True)
class CheckInbox(Command, kind="check_inbox", category="communication"):
    pass


@dataclass(frozen=True)
class ReplyToEmail(Command, kind="reply_to_email", category="communication"):
    email_id: str | None = None
    intent: str | None = None


@dataclass(frozen=True)
class ForwardEmail(Command, kind="forward_email", category="communication"):
    email_id: str | None = None
    to: str | None = None


# --- tasks ---

@dataclass(frozen=True)
class CreateTask(Command, kind="create_task", category="tasks"):
    title: str
    description: str | None = None
    priority: str = "medium"  # low | medium | high | critical
    due_date: str | None = None


@dataclass(frozen=True)
class CompleteTask(Command, kind="complete_task", category="tasks"):
    task_id: str | None = None
    task_title: str | None = None


@dataclass(frozen=True)
class UpdateTask(Command, kind="update_task", category="tasks"):
    updates: dict[str, Any] = field(default_factory=dict)
    task_id: str | None = None


@dataclass(frozen=True)
class ListTasks(Command, kind="list_tasks", category="tasks"):
    filter: str = "all"  # all | today | overdue | upcoming


@dataclass(frozen=True)
class DeleteTask(Command, kind="delete_task", category="tasks"):
    task_id: str | None = None
    task_title: str | None = None


@dataclass(frozen=True)
class AssignTask(Command, kind="assign_task", category="tasks"):
    task_id: str | None = None
    agent_id: str | None = None


# --- notes & reminders ---

@dataclass(frozen=True)
class CreateNote(Command, kind="create_note", category="notes"):
    title: str
    content: str | None = None
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class CreateReminder(Command, kind="create_reminder", category="notes"):
    title: str
    reminder_at: str
    description: str | None = None


@dataclass(frozen=True)
class ListNotes(Command, kind="list_notes", category="notes"):
    pass


@dataclass(frozen=True)
class SearchNotes(Command, kind="search_notes", category="notes"):
    query: str


# --- goals & habits ---

@dataclass(frozen=True)
class CreateGoal(Command, kind="create_goal", category="goals"):
    title: str
    target_value: float | None = None
    target_date: str | None = None
    category_name: str = "general"


@dataclass(frozen=True)
class UpdateGoalProgress(Command, kind="update_goal_progress", category="goals"):
    value: float
    goal_id: str | None = None


@dataclass(frozen=True)
class ListGoals(Command, kind="list_goals", category="goals"):
    pass


@dataclass(frozen=True)
class CreateHabit(Command, kind="create_habit", category="goals"):
    name: str
    frequency: str = "daily"  # daily | weekly | monthly


@dataclass(frozen=True)
class CompleteHabit(Command, kind="complete_habit", category="goals"):
    habit_id: str | None = None
    habit_name: str | None = None


@dataclass(frozen=True)
class GetHabitStreak(Command, kind="get_habit_streak", category="goals"):
    habit_name: str | None = None


# --- calendar ---

@dataclass(frozen=True)
class CreateEvent(Command, kind="create_event", category="calendar"):
    title: str
    start_at: str
    end_at: str | None = None
    location: str | None = None
    attendees: tuple[str, ...] = ()


@dataclass(frozen=True)
class ListEvents(Command, kind="list_events", category="calendar"):
    timeframe: str = "today"  # today | tomorrow | this_week | next_week


@dataclass(frozen=True)
class CancelEvent(Command, kind="cancel_event", category="calendar"):
    event_id: str | None = None
    event_title: str | None = None


@dataclass(frozen=True)
class RescheduleEvent(Command, kind="reschedule_event", category="calendar"):
    new_time: str
    event_id: str | None = None


@dataclass(frozen=True)
class GetAvailability(Command, kind="get_availability", category="calendar"):
    date: str | None = None


@dataclass(frozen=True)
class BlockTime(Command, kind="block_time", category="calendar"):
    start_at: str
    end_at: str
    reason: str | None = None


@dataclass(frozen=True)
class ShowCalendar(Command, kind="show_calendar", category="calendar"):
    pass


# --- finance ---

@dataclass(frozen=True)
class CheckBalance(Command, kind="check_balance", category="finance"):
    account_id: str | None = None


@dataclass(frozen=True)
class ListTransactions(Command, kind="list_transactions", category="finance"):
    filter: str = "recent"  # recent | pending | all
    account_id: str | None = None


@dataclass(frozen=True)
class CategorizeTransaction(Command, kind="categorize_transaction", category="finance"):
    category_name: str
    transaction_id: str | None = None


@dataclass(frozen=True)
class GetFinancialSummary(Command, kind="get_financial_summary", category="finance"):
    period: str = "month"  # today | week | month | year


@dataclass(frozen=True)
class ReconcileAccounts(Command, kind="reconcile_accounts", category="finance"):
    pass


@dataclass(frozen=True)
class AddExpense(Command, kind="add_expense", category="finance"):
    amount: float
    category_name: str
    description: str | None = None


@dataclass(frozen=True)
class SetBudget(Command, kind="set_budget", category="finance"):
    category_name: str
    amount: float
    period: str = "monthly"  # monthly | weekly


@dataclass(frozen=True)
class GetCashFlow(Command, kind="get_cash_flow", category="finance"):
    pass


# --- widgets ---

@dataclass(frozen=True)
class CreateWidget(Command, kind="create_widget", category="widgets"):
    purpose: str
    data_source: str | None = None


@dataclass(frozen=True)
class UpdateWidget(Command, kind="update_widget", category="widgets"):
    updates: dict[str, Any] = field(default_factory=dict)
    widget_id: str | None = None


@dataclass(frozen=True)
class DeleteWidget(Command, kind="delete_widget", category="widgets"):
    widget_id: str | None = None
    widget_name: str | None = None


@dataclass(frozen=True)
class ListWidgets(Command, kind="list_widgets", category="widgets"):
    pass


@dataclass(frozen=True)
class RefreshWidget(Command, kind="refresh_widget", category="widgets"):
    widget_id: str | None = None


# --- documents ---

@dataclass(frozen=True)
class UploadFile(Command, kind="upload_file", category="documents"):
    category_name: str | None = None


@dataclass(frozen=True)
class SearchDocuments(Command, kind="search_documents", category="documents"):
    query: str


@dataclass(frozen=True)
class ListDocuments(Command, kind="list_documents", category="documents"):
    category_name: str | None = None


@dataclass(frozen=True)
class AnalyzeDocument(Command, kind="analyze_document", category="documents"):
    document_id: str | None = None


@dataclass(frozen=True)
class SummarizeDocument(Command, kind="summarize_document", category="documents"):
    document_id: str | None = None


@dataclass(frozen=True)
class CreateDocument(Command, kind="create_document", category="documents"):
    title: str
    content: str | None = None
    doc_type: str | None = None


# --- knowledge ---

@dataclass(frozen=True)
class SaveKnowledge(Command, kind="save_knowledge", category="knowledge"):
    title: str
    content: str
    category_name: str | None = None


@dataclass(frozen=True)
class SearchKnowledge(Command, kind="search_knowledge", category="knowledge"):
    query: str


@dataclass(frozen=True)
class GetInsights(Command, kind="get_insights", category="knowledge"):
    topic: str | None = None


@dataclass(frozen=True)
class AskAssistant(Command, kind="ask_assistant", category="knowledge"):
    question: str


# --- dashboard ---

@dataclass(frozen=True)
class AddToDashboard(Command, kind="add_to_dashboard", category="dashboard"):
    widget_type: str


@dataclass(frozen=True)
class RearrangeDashboard(Command, kind="rearrange_dashboard", category="dashboard"):
    pass


@dataclass(frozen=True)
class ResetDashboard(Command, kind="reset_dashboard", category="dashboard"):
    pass


@dataclass(frozen=True)
class ShareDashboard(Command, kind="share_dashboard", category="dashboard"):
    email: str | None = None


# --- help ---

@dataclass(frozen=True)
class GetHelp(Command, kind="get_help", category="help"):
    topic: str | None = None


@dataclass(frozen=True)
class ShowTutorial(Command, kind="show_tutorial", category="help"):
    feature: str | None = None


@dataclass(frozen=True)
class ListCommands(Command, kind="list_commands", category="help"):
    pass


@dataclass(frozen=True)
class WhatCanYouDo(Command, kind="what_can_you_do", category="help"):
    pass


# --- system ---

@dataclass(frozen=True)
class SyncAll(Command, kind="sync_all", category="system"):
    pass


@dataclass(frozen=True)
class ClearCache(Command, kind="clear_cache", category="system"):
    pass


@dataclass(frozen=True)
class CheckStatus(Command, kind="check_status", category="system"):
    pass


@dataclass(frozen=True)
class GetSummary(Command, kind="get_summary", category="system"):
    pass


# --- automation ---

@dataclass(frozen=True)
class CreateAutomation(Command, kind="create_automation", category="automation"):
    name: str
    trigger: str  # email_received | task_completed | ... | custom
    webhook_url: str | None = None
    provider: str = "custom"  # zapier | make | n8n | custom
    description: str | None = None


@dataclass(frozen=True)
class ListAutomations(Command, kind="list_automations", category="automation"):
    filter: str = "all"  # all | active | inactive


@dataclass(frozen=True)
class ToggleAutomation(Command, kind="toggle_automation", category="automation"):
    automation_id: str | None = None
    automation_name: str | None = None


@dataclass(frozen=True)
class DeleteAutomation(Command, kind="delete_automation", category="automation"):
    automation_id: str | None = None
    automation_name: str | None = None


@dataclass(frozen=True)
class TriggerWebhook(Command, kind="trigger_webhook", category="automation"):
    webhook_url: str
    payload: dict[str, Any] = field(default_factory=dict)


# --- wire form ---

_CAMEL = re.compile(r"(?<!^)(?=[A-Z])")

# Incoming keys that collide with the ``category`` class attribute.
_RENAMED_KEYS = {"category": "category_name"}


def _snake(key: str) -> str:
    key = _CAMEL.sub("_", key).lower()
    return _RENAMED_KEYS.get(key, key)


def command_from_dict(data: dict[str, Any]) -> Command:
    """Build a command from its wire form, e.g. ``{"type": "navigate", "path": "/"}``.

    camelCase keys are accepted; unknown keys are dropped; lists become tuples.

    Raises:
        ValueError: Unknown kind or missing required fields.
    """
    kind = data.get("type") or data.get("kind")
    cls = COMMAND_TYPES.get(kind or "")
    if cls is None:
        raise ValueError(f"Unknown command kind '{kind}'")

    names = {f.name for f in dataclasses.fields(cls)}
    kwargs = {}
    for key, value in data.items():
        name = _snake(key)
        if name in names:
            kwargs[name] = tuple(value) if isinstance(value, list) else value
    try:
        return cls(**kwargs)
    except TypeError as e:
        raise ValueError(f"Invalid '{kind}' command: {e}") from e


def command_to_dict(command: Command) -> dict[str, Any]:
    data = {"type": command.kind}
    for f in dataclasses.fields(command):
        value = getattr(command, f.name)
        if value is not None:
            data[f.name] = list(value) if isinstance(value, tuple) else value
    return data
