"""Deterministic instruction parser: turns plain phrases into commands.

Navigation phrases resolve through the route alias table (confidence 0.9),
"filter X by Y" phrases become filter commands (0.8), and a fixed set of
common phrasings map straight onto their commands. Anything else returns
None and is left to the router.
"""

import re
from dataclasses import dataclass
from typing import Callable

from loguru import logger

from intent_router import commands as c
from intent_router.aliases import resolve_route
from intent_router.commands import Command

NAVIGATION_CONFIDENCE = 0.9
FILTER_CONFIDENCE = 0.8
COMMAND_CONFIDENCE = 0.85


@dataclass(frozen=True)
class ParsedCommand:
    command: Command
    confidence: float
    original: str


_NAVIGATION = [
    re.compile(r"^(?:show me|open|go to|navigate to|take me to)\s+(?:the\s+)?(.+?)(?:\s+page)?$", re.I),
    re.compile(r"^(?:show|display)\s+(?:the\s+)?(.+?)$", re.I),
]

_FILTER = re.compile(r"^(?:filter|show only|find)\s+(.+?)\s+(?:by|where|with)\s+(.+)$", re.I)


def _priority(text: str) -> str:
    lowered = text.lower()
    if "urgent" in lowered or "critical" in lowered:
        return "critical"
    if "high priority" in lowered or "important" in lowered:
        return "high"
    if "low priority" in lowered:
        return "low"
    return "medium"


def _task_filter(word: str | None) -> str:
    word = (word or "all").lower()
    return "today" if word.startswith("today") else word


def _timeframe(word: str | None) -> str:
    return (word or "today").lower().replace(" ", "_")


# (pattern, builder) in match order; first hit wins.
Rule = tuple[re.Pattern, Callable[[re.Match], Command]]

DEFAULT_RULES: list[Rule] = [
    # tasks
    (re.compile(r"^(?:create|add|new)\s+(?:an?\s+)?(?:(?:urgent|important|high priority|low priority)\s+)?task\s+(?:to\s+|called\s+)?(.+?)(?:\s+due\s+(.+))?$", re.I),
     lambda m: c.CreateTask(title=m.group(1), due_date=m.group(2), priority=_priority(m.string))),
    (re.compile(r"^(?:show|list)\s+(?:my\s+)?(?:(overdue|upcoming|today'?s)\s+)?tasks$", re.I),
     lambda m: c.ListTasks(filter=_task_filter(m.group(1)))),
    (re.compile(r"^(?:complete|finish|mark)\s+(?:the\s+)?task\s+(.+?)(?:\s+(?:as\s+)?(?:done|complete))?$", re.I),
     lambda m: c.CompleteTask(task_title=m.group(1))),
    # notes
    (re.compile(r"^(?:create|add|take|new)\s+(?:an?\s+)?note\s+(?:about\s+|called\s+)?(.+)$", re.I),
     lambda m: c.CreateNote(title=m.group(1))),
    (re.compile(r"^remind me to\s+(.+?)\s+((?:at|on|in|tomorrow|tonight)\b.*)$", re.I),
     lambda m: c.CreateReminder(title=m.group(1), reminder_at=m.group(2))),
    # calendar
    (re.compile(r"^(?:schedule|create|add|book)\s+(?:an?\s+)?(?:meeting|event)\s+(?:called\s+|about\s+|for\s+)?(.+?)\s+(?:at|on)\s+(.+)$", re.I),
     lambda m: c.CreateEvent(title=m.group(1), start_at=m.group(2))),
    (re.compile(r"^(?:show|list|what'?s on)\s+(?:my\s+)?(?:calendar|schedule|events)(?:\s+(?:for\s+)?(today|tomorrow|this week|next week))?$", re.I),
     lambda m: c.ListEvents(timeframe=_timeframe(m.group(1)))),
    (re.compile(r"^(?:am i|when am i)\s+(?:free|available)(?:\s+(?:on\s+)?(.+?))?\??$", re.I),
     lambda m: c.GetAvailability(date=m.group(1))),
    # communications
    (re.compile(r"^(?:draft|write)\s+(?:an?\s+)?email\s+to\s+(\S+)\s+(?:about|saying)\s+(.+)$", re.I),
     lambda m: c.DraftEmail(intent=m.group(2), to=m.group(1))),
    (re.compile(r"^(?:check|read)\s+(?:my\s+)?(?:inbox|email|emails|mail)$", re.I),
     lambda m: c.CheckInbox()),
    # finance
    (re.compile(r"^(?:add|log|record)\s+(?:an?\s+)?expense\s+(?:of\s+)?\$?(\d+(?:\.\d+)?)\s+(?:for|on)\s+(.+)$", re.I),
     lambda m: c.AddExpense(amount=float(m.group(1)), category_name=m.group(2))),
    (re.compile(r"^(?:what'?s|what is|check|show)\s+(?:my\s+)?(?:account\s+)?balance\??$", re.I),
     lambda m: c.CheckBalance()),
    (re.compile(r"^(?:show|get)\s+(?:my\s+)?cash\s*flow$", re.I),
     lambda m: c.GetCashFlow()),
    # theme & layout
    (re.compile(r"^(?:switch to|enable|use|turn on)\s+(dark|light)\s+(?:mode|theme)$", re.I),
     lambda m: c.SetTheme(theme=m.group(1).lower())),
    (re.compile(r"^toggle\s+(?:the\s+)?theme$", re.I),
     lambda m: c.ToggleTheme()),
    (re.compile(r"^toggle\s+(?:the\s+)?fullscreen$", re.I),
     lambda m: c.ToggleFullscreen()),
    (re.compile(r"^toggle\s+(?:the\s+)?sidebar$", re.I),
     lambda m: c.ToggleSidebar()),
    (re.compile(r"^(?:switch to|go to)\s+(?:the\s+)?(command|insights|admin)\s+tab$", re.I),
     lambda m: c.SwitchTab(tab=m.group(1).lower())),
    # reports & data
    (re.compile(r"^(?:generate|create)\s+(?:an?\s+|the\s+)?(?:(\w+)\s+)?report$", re.I),
     lambda m: c.GenerateReport(persona=m.group(1).lower() if m.group(1) else None)),
    (re.compile(r"^(?:refresh|reload)(?:\s+(?:the\s+)?data)?$", re.I),
     lambda m: c.RefreshData()),
    (re.compile(r"^sync\s+(?:all|everything)$", re.I),
     lambda m: c.SyncAll()),
    (re.compile(r"^(?:clear|reset)\s+(?:all\s+)?filters$", re.I),
     lambda m: c.ClearFilters()),
    # help & system
    (re.compile(r"^what can you do\??$", re.I),
     lambda m: c.WhatCanYouDo()),
    (re.compile(r"^(?:list|show)\s+(?:all\s+)?(?:voice\s+)?commands$", re.I),
     lambda m: c.ListCommands()),
    (re.compile(r"^help(?:\s+(?:me\s+)?with\s+(.+))?$", re.I),
     lambda m: c.GetHelp(topic=m.group(1))),
    (re.compile(r"^(?:check\s+)?(?:system\s+)?status$", re.I),
     lambda m: c.CheckStatus()),
    (re.compile(r"^(?:give me\s+)?my\s+summary$|^what'?s my summary\??$", re.I),
     lambda m: c.GetSummary()),
    # search last; it swallows any "search ..." phrase
    (re.compile(r"^(?:search|look)\s+(?:for\s+)?(.+)$", re.I),
     lambda m: c.Search(query=m.group(1))),
]


class CommandParser:
    """Ordered pattern matcher from a single phrase to a Command."""

    def __init__(self, rules: list[Rule] | None = None):
        self._rules = list(DEFAULT_RULES if rules is None else rules)

    def parse(self, text: str) -> ParsedCommand | None:
        phrase = (text or "").strip().rstrip(".!")
        if not phrase:
            return None

        # "show only X by Y" is a filter even when X names a page
        m = _FILTER.match(phrase)
        if m:
            command = c.Filter(entity=m.group(1).strip().lower(), criteria={"query": m.group(2).strip()})
            return ParsedCommand(command, FILTER_CONFIDENCE, text)

        for pattern in _NAVIGATION:
            m = pattern.match(phrase)
            if not m:
                continue
            path, _ = resolve_route(m.group(1))
            if path:
                return ParsedCommand(c.Navigate(path=path), NAVIGATION_CONFIDENCE, text)

        for pattern, build in self._rules:
            m = pattern.match(phrase)
            if not m:
                continue
            try:
                command = build(m)
            except (TypeError, ValueError) as e:
                logger.debug(f"Parser rule {pattern.pattern!r} matched but could not build: {e}")
                continue
            return ParsedCommand(command, COMMAND_CONFIDENCE, text)

        return None
