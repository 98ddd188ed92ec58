"""Core data models for intent-router."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class Tier(IntEnum):
    """Escalating resolution strategy."""

    TIER1 = 1  # deterministic pattern / proven specialist
    TIER2 = 2  # local specialization heuristic
    TIER3 = 3  # expensive external resolution

    @property
    def label(self) -> str:
        return f"tier{self.value}"


@dataclass(frozen=True)
class ClassificationResult:
    """Result of intent classification."""
    task_type: str
    domain: str | None
    confidence: float
    matched_pattern: str | None
    requires_escalation: bool


@dataclass(frozen=True)
class ProviderRecord:
    """A capability provider row as returned by a lookup."""
    agent_id: str
    agent_name: str
    sector: str
    hierarchy_tier: str
    specialization_score: float
    success_rate: float
    routing_reason: str = ""  # lookup's own verdict, overrides the derived one


@dataclass(frozen=True)
class AgentCandidate:
    """A ranked capability provider for one routing call."""
    agent_id: str
    agent_name: str
    sector: str
    hierarchy_tier: str
    specialization_score: float
    success_rate: float
    confidence: float
    routing_reason: str


@dataclass(frozen=True)
class RoutingResult:
    """Result of routing a task type to capability providers."""
    tier: Tier
    candidates: tuple[AgentCandidate, ...]
    task_type: str
    domain: str | None
    confidence: float
    routing_time_ms: float
    escalation_required: bool
    reason: str

    @property
    def best(self) -> AgentCandidate | None:
        return self.candidates[0] if self.candidates else None


@dataclass(frozen=True)
class TierStats:
    """Per-task-type readiness for deterministic routing."""
    task_type: str
    total_specialists: int
    avg_specialization: float
    can_tier1_route: bool
    recommended_tier: str


@dataclass(frozen=True)
class Interpretation:
    """Final task interpretation produced by a heavy-fallback resolver."""
    task_type: str
    domain: str | None = None
    confidence: float = 0.0
    command: Any = None  # a Command, when the resolver produced one
    resolver: str = ""


class CapabilityLookup(ABC):
    """Source of capability providers for a task type."""

    @abstractmethod
    async def find_providers(
        self,
        task_type: str,
        confidence_threshold: float = 0.7,
        limit: int = 5,
    ) -> list[ProviderRecord]:
        """Return providers registered for task_type, in any order."""
        ...

    async def task_type_scores(self) -> dict[str, list[float]]:
        """Specialization scores per task type. Optional."""
        raise NotImplementedError(f"{self.name} does not expose task type scores")

    @property
    def name(self) -> str:
        return self.__class__.__name__


class FallbackResolver(ABC):
    """Abstract base class for Tier-3 heavy-fallback resolvers."""

    @abstractmethod
    async def resolve(
        self,
        query: str,
        context: ClassificationResult | None = None,
    ) -> Interpretation:
        """Interpret a query the cheaper tiers could not settle."""
        ...

    @property
    def name(self) -> str:
        return self.__class__.__name__


@dataclass
class EfficiencyReport:
    """Snapshot of tier usage and the savings it implies."""
    total_routes: int
    tier1_percentage: float
    tier2_percentage: float
    tier3_percentage: float
    expensive_calls_avoided: int
    avg_routing_time_ms: float
    estimated_time_saved_ms: float
    estimated_cost_saved: float
    tier_counts: dict[str, int] = field(default_factory=dict)
