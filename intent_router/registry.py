"""In-memory capability registry."""

from dataclasses import dataclass, field

from intent_router.models import CapabilityLookup, ProviderRecord


@dataclass
class Agent:
    """A capability provider and the task types it specializes in."""
    agent_id: str
    name: str
    sector: str = "general"
    hierarchy_tier: str = "specialist"
    success_rate: float = 0.0
    dormant: bool = False
    specializations: dict[str, float] = field(default_factory=dict)  # task_type -> score


class CapabilityRegistry(CapabilityLookup):
    """Holds agents in process memory and serves them per task type."""

    def __init__(self, agents: list[Agent] | None = None):
        self._agents: dict[str, Agent] = {}
        for agent in agents or []:
            self.add(agent)

    def add(self, agent: Agent) -> None:
        self._agents[agent.agent_id] = agent

    def remove(self, agent_id: str) -> None:
        self._agents.pop(agent_id, None)

    def get(self, agent_id: str) -> Agent | None:
        return self._agents.get(agent_id)

    def register(self, agent_id: str, task_type: str, specialization_score: float) -> None:
        """Set an agent's specialization score for a task type."""
        agent = self._agents.get(agent_id)
        if agent is None:
            raise KeyError(f"Unknown agent '{agent_id}'")
        agent.specializations[task_type] = max(0.0, float(specialization_score))

    def record_outcome(self, agent_id: str, success: bool, weight: float = 0.1) -> None:
        """Nudge an agent's success rate toward the latest outcome."""
        agent = self._agents.get(agent_id)
        if agent is None:
            return
        target = 1.0 if success else 0.0
        agent.success_rate = min(1.0, max(0.0, agent.success_rate + (target - agent.success_rate) * weight))

    async def find_providers(
        self,
        task_type: str,
        confidence_threshold: float = 0.7,
        limit: int = 5,
    ) -> list[ProviderRecord]:
        return [
            ProviderRecord(
                agent_id=agent.agent_id,
                agent_name=agent.name,
                sector=agent.sector,
                hierarchy_tier=agent.hierarchy_tier,
                specialization_score=agent.specializations[task_type],
                success_rate=agent.success_rate,
            )
            for agent in self._agents.values()
            if not agent.dormant and task_type in agent.specializations
        ]

    async def task_type_scores(self) -> dict[str, list[float]]:
        scores: dict[str, list[float]] = {}
        for agent in self._agents.values():
            for task_type, score in agent.specializations.items():
                scores.setdefault(task_type, []).append(score)
        return scores
