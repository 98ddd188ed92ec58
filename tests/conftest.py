"""Shared fakes and fixtures for intent_router tests."""

import asyncio

import pytest

from intent_router.bus import CommandBus
from intent_router.executor import CommandEffects, CommandOutcome
from intent_router.models import (
    CapabilityLookup,
    ClassificationResult,
    FallbackResolver,
    Interpretation,
    ProviderRecord,
)
from intent_router.registry import Agent, CapabilityRegistry


def record(agent_id, score, success, **kwargs):
    return ProviderRecord(
        agent_id=agent_id,
        agent_name=kwargs.pop("agent_name", agent_id.title()),
        sector=kwargs.pop("sector", "general"),
        hierarchy_tier=kwargs.pop("hierarchy_tier", "specialist"),
        specialization_score=score,
        success_rate=success,
        **kwargs,
    )


class StaticLookup(CapabilityLookup):
    def __init__(self, records=(), scores=None):
        self.records = list(records)
        self.scores = scores or {}
        self.calls = []

    async def find_providers(self, task_type, confidence_threshold=0.7, limit=5):
        self.calls.append(task_type)
        return list(self.records)

    async def task_type_scores(self):
        return self.scores


class FailingLookup(CapabilityLookup):
    def __init__(self):
        self.calls = 0

    async def find_providers(self, task_type, confidence_threshold=0.7, limit=5):
        self.calls += 1
        raise ConnectionError("database unreachable")


class SlowLookup(CapabilityLookup):
    def __init__(self, delay_s=1.0):
        self.delay_s = delay_s

    async def find_providers(self, task_type, confidence_threshold=0.7, limit=5):
        await asyncio.sleep(self.delay_s)
        return []


class StaticResolver(FallbackResolver):
    def __init__(self, interpretation, name="static"):
        self.interpretation = interpretation
        self._name = name
        self.queries = []

    @property
    def name(self):
        return self._name

    async def resolve(self, query, context: ClassificationResult | None = None) -> Interpretation:
        self.queries.append((query, context))
        return self.interpretation


class FailingResolver(FallbackResolver):
    def __init__(self, name="failing"):
        self._name = name
        self.calls = 0

    @property
    def name(self):
        return self._name

    async def resolve(self, query, context=None):
        self.calls += 1
        raise TimeoutError(f"{self._name} timed out")


class RecordingEffects(CommandEffects):
    """In-memory effects port that records every call."""

    def __init__(self, user_id="user-1"):
        self.user_id = user_id
        self.outcomes: list[CommandOutcome] = []
        self.paths: list[str] = []
        self.view: dict = {}
        self.events: list[tuple[str, dict | None]] = []
        self.invocations: list[tuple[str, dict]] = []
        self.tables: dict[str, list[dict]] = {}
        self.webhooks: list[tuple[str, dict]] = []
        self.invoke_response: dict = {}
        self.invoke_error: Exception | None = None
        self.webhook_status = 200

    async def notify(self, outcome):
        self.outcomes.append(outcome)

    async def navigate(self, path):
        self.paths.append(path)

    async def view_state(self, key):
        return self.view.get(key)

    async def set_view_state(self, key, value):
        self.view[key] = value

    async def emit(self, event, detail=None):
        self.events.append((event, detail))

    async def invoke(self, function, body):
        self.invocations.append((function, body))
        if self.invoke_error is not None:
            raise self.invoke_error
        return self.invoke_response

    async def insert(self, table, row):
        self.tables.setdefault(table, []).append(dict(row))

    async def select(self, table, match):
        return [row for row in self.tables.get(table, []) if all(row.get(k) == v for k, v in match.items())]

    async def update(self, table, match, values):
        rows = await self.select(table, match)
        for row in rows:
            row.update(values)
        return len(rows)

    async def delete(self, table, match):
        rows = await self.select(table, match)
        self.tables[table] = [row for row in self.tables.get(table, []) if row not in rows]
        return len(rows)

    async def post_webhook(self, url, payload):
        self.webhooks.append((url, payload))
        return self.webhook_status

    async def current_user(self):
        return self.user_id

    @property
    def last(self) -> CommandOutcome:
        return self.outcomes[-1]


@pytest.fixture
def bus():
    return CommandBus()


@pytest.fixture
def effects():
    return RecordingEffects()


@pytest.fixture
def registry():
    return CapabilityRegistry([
        Agent("cal-1", "Calendar Pro", sector="operations", success_rate=0.9,
              specializations={"scheduling": 0.9}),
        Agent("cal-2", "Calendar Lite", success_rate=0.5, specializations={"scheduling": 0.6}),
        Agent("fin-1", "Ledger", sector="finance", success_rate=0.8,
              specializations={"financial_analysis": 0.5}),
        Agent("old-1", "Retired", success_rate=1.0, dormant=True,
              specializations={"scheduling": 1.0}),
    ])
