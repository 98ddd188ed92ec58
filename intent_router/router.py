"""CapabilityRouter: tiered routing of task types to capability providers."""

import asyncio
import time

from loguru import logger

from intent_router.failover import CircuitBreaker
from intent_router.heuristics import IntentClassifier
from intent_router.models import (
    AgentCandidate,
    CapabilityLookup,
    ClassificationResult,
    ProviderRecord,
    RoutingResult,
    Tier,
    TierStats,
)
from intent_router.telemetry import RoutingTelemetry

SPECIALIZATION_WEIGHT = 0.7
SUCCESS_WEIGHT = 0.3

REASON_TIER1 = "Tier 1: deterministic routing via proven specialization"
REASON_TIER2 = "Tier 2: partial match - LLM refinement recommended"
REASON_TIER3 = "Tier 3: novel task type - LLM required for routing"
REASON_NONE = "No specialists found"
REASON_ERROR = "routing error"

# A routing reason containing any of these asks for heavier analysis.
_ESCALATION_MARKERS = ("llm", "ambiguous")


def candidate_confidence(specialization_score: float, success_rate: float) -> float:
    """Blend specialization and track record; increasing in both."""
    score = SPECIALIZATION_WEIGHT * max(0.0, specialization_score) + SUCCESS_WEIGHT * max(0.0, success_rate)
    return round(min(1.0, score), 4)


def needs_escalation(reason: str) -> bool:
    lowered = reason.lower()
    return any(marker in lowered for marker in _ESCALATION_MARKERS)


def decide_tier(candidates: tuple[AgentCandidate, ...] | list[AgentCandidate], confidence_threshold: float) -> Tier:
    if not candidates:
        return Tier.TIER3
    top = candidates[0]
    if top.confidence >= confidence_threshold and not needs_escalation(top.routing_reason):
        return Tier.TIER1
    if any(c.specialization_score > 0 for c in candidates):
        return Tier.TIER2
    return Tier.TIER3


def recommend_tier(max_specialization: float) -> str:
    if max_specialization >= 0.7:
        return Tier.TIER1.label
    if max_specialization >= 0.4:
        return Tier.TIER2.label
    return Tier.TIER3.label


class CapabilityRouter:
    """Ranks capability providers for a task type and picks the tier to use.

    Routing never raises: lookup errors, timeouts and an open circuit all
    degrade to a Tier-3 result. Every call records exactly one telemetry
    sample once its result is known.
    """

    LOOKUP_CIRCUIT = "capability_lookup"

    def __init__(
        self,
        lookup: CapabilityLookup,
        telemetry: RoutingTelemetry | None = None,
        classifier: IntentClassifier | None = None,
        *,
        lookup_timeout_s: float = 2.0,
        breaker: CircuitBreaker | None = None,
    ):
        self._lookup = lookup
        self._telemetry = telemetry or RoutingTelemetry()
        self._classifier = classifier or IntentClassifier()
        self._lookup_timeout_s = lookup_timeout_s
        self._breaker = breaker or CircuitBreaker(failure_threshold=3, window_s=60.0, cooldown_s=30.0)
        self._last_result: RoutingResult | None = None

    @property
    def telemetry(self) -> RoutingTelemetry:
        return self._telemetry

    @property
    def classifier(self) -> IntentClassifier:
        return self._classifier

    @property
    def last_result(self) -> RoutingResult | None:
        return self._last_result

    async def route(
        self,
        task_type: str,
        confidence_threshold: float = 0.7,
        limit: int = 5,
    ) -> RoutingResult:
        start = time.monotonic()
        result = await self._route(task_type, confidence_threshold, limit, start)
        self._finish(result)
        return result

    async def route_query(
        self,
        query: str,
        confidence_threshold: float = 0.7,
        limit: int = 5,
        *,
        intent: ClassificationResult | None = None,
    ) -> RoutingResult:
        """Classify a query, then route its task type in one call.

        Pass ``intent`` to reuse a classification the caller already holds.
        """
        start = time.monotonic()
        if intent is None:
            intent = self._classifier.classify(query)
        routing = await self._route(intent.task_type, confidence_threshold, limit, start)

        tier = routing.tier
        if intent.requires_escalation and tier is Tier.TIER1:
            tier = Tier.TIER2
        result = RoutingResult(
            tier=tier,
            candidates=routing.candidates,
            task_type=routing.task_type,
            domain=intent.domain,
            confidence=routing.confidence,
            routing_time_ms=(time.monotonic() - start) * 1000,
            escalation_required=intent.requires_escalation or routing.escalation_required,
            reason=routing.reason,
        )
        self._finish(result)
        return result

    async def tier_stats(self) -> list[TierStats]:
        """Deterministic-routing readiness for every known task type."""
        try:
            scores = await asyncio.wait_for(self._lookup.task_type_scores(), timeout=self._lookup_timeout_s)
        except Exception as e:
            logger.warning(f"Tier stats unavailable from {self._lookup.name}: {e}")
            return []

        stats = []
        for task_type, values in scores.items():
            if not values:
                continue
            best = max(values)
            stats.append(TierStats(
                task_type=task_type,
                total_specialists=len(values),
                avg_specialization=sum(values) / len(values),
                can_tier1_route=best >= 0.7,
                recommended_tier=recommend_tier(best),
            ))
        stats.sort(key=lambda s: (-s.avg_specialization, s.task_type))
        return stats

    # --- internals ---

    async def _route(
        self, task_type: str, confidence_threshold: float, limit: int, start: float,
    ) -> RoutingResult:
        if self._breaker.is_open(self.LOOKUP_CIRCUIT):
            logger.info(f"Route: {task_type} → tier3 (lookup circuit open)")
            return self._error_result(task_type, start)

        try:
            records = await asyncio.wait_for(
                self._lookup.find_providers(task_type, confidence_threshold, limit),
                timeout=self._lookup_timeout_s,
            )
        except Exception as e:
            # asyncio.TimeoutError included
            self._breaker.record_failure(self.LOOKUP_CIRCUIT)
            logger.warning(f"Capability lookup failed for '{task_type}' via {self._lookup.name}: {e!r}")
            return self._error_result(task_type, start)
        self._breaker.record_success(self.LOOKUP_CIRCUIT)

        try:
            candidates = self.rank(records or [], confidence_threshold, limit)
        except Exception as e:
            logger.warning(f"Malformed provider records for '{task_type}': {e!r}")
            return self._error_result(task_type, start)
        tier = decide_tier(candidates, confidence_threshold)
        top = candidates[0] if candidates else None
        return RoutingResult(
            tier=tier,
            candidates=candidates,
            task_type=task_type,
            domain=None,
            confidence=top.confidence if top else 0.0,
            routing_time_ms=(time.monotonic() - start) * 1000,
            escalation_required=tier is not Tier.TIER1,
            reason=top.routing_reason if top else REASON_NONE,
        )

    @staticmethod
    def rank(
        records: list[ProviderRecord], confidence_threshold: float = 0.7, limit: int = 5,
    ) -> tuple[AgentCandidate, ...]:
        """Score, sort best-first and truncate provider records."""
        if limit <= 0:
            return ()
        candidates = []
        for rec in records:
            confidence = candidate_confidence(rec.specialization_score, rec.success_rate)
            if rec.routing_reason:
                reason = rec.routing_reason
            elif confidence >= confidence_threshold:
                reason = REASON_TIER1
            elif rec.specialization_score > 0:
                reason = REASON_TIER2
            else:
                reason = REASON_TIER3
            candidates.append(AgentCandidate(
                agent_id=rec.agent_id,
                agent_name=rec.agent_name,
                sector=rec.sector,
                hierarchy_tier=rec.hierarchy_tier,
                specialization_score=rec.specialization_score,
                success_rate=rec.success_rate,
                confidence=confidence,
                routing_reason=reason,
            ))
        candidates.sort(key=lambda c: (-c.confidence, -c.success_rate, -c.specialization_score, c.agent_id))
        return tuple(candidates[:limit])

    def _error_result(self, task_type: str, start: float) -> RoutingResult:
        return RoutingResult(
            tier=Tier.TIER3,
            candidates=(),
            task_type=task_type,
            domain=None,
            confidence=0.0,
            routing_time_ms=(time.monotonic() - start) * 1000,
            escalation_required=True,
            reason=REASON_ERROR,
        )

    def _finish(self, result: RoutingResult) -> None:
        self._last_result = result
        self._telemetry.record(result.tier, result.routing_time_ms)
        best = result.best
        logger.info(
            f"Route: {result.task_type} → {result.tier.label} "
            f"({best.agent_name if best else 'no candidate'}, conf={result.confidence:.2f}) "
            f"in {result.routing_time_ms:.1f}ms"
        )
