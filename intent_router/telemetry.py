"""Running counters of tier usage and routing latency."""

import threading
from dataclasses import dataclass

from intent_router.models import EfficiencyReport, Tier


@dataclass(frozen=True)
class TelemetrySnapshot:
    tier1_count: int
    tier2_count: int
    tier3_count: int
    average_latency_ms: float
    expensive_calls_avoided: int
    last_tier: Tier | None

    @property
    def total(self) -> int:
        return self.tier1_count + self.tier2_count + self.tier3_count


class RoutingTelemetry:
    """Process-lifetime accumulator; owned by whoever builds the router.

    Counters only grow. Latency is an incremental mean, no history is kept.
    """

    def __init__(self, *, saved_ms_per_call: float = 2000.0, saved_cost_per_call: float = 0.002):
        self._lock = threading.Lock()
        self._counts: dict[Tier, int] = {tier: 0 for tier in Tier}
        self._avg_latency_ms = 0.0
        self._avoided = 0
        self._last_tier: Tier | None = None
        self._saved_ms_per_call = saved_ms_per_call
        self._saved_cost_per_call = saved_cost_per_call

    def record(self, tier: Tier, elapsed_ms: float) -> None:
        tier = Tier(tier)
        with self._lock:
            self._counts[tier] += 1
            total = sum(self._counts.values())
            self._avg_latency_ms += (elapsed_ms - self._avg_latency_ms) / total
            if tier is Tier.TIER1:
                self._avoided += 1
            self._last_tier = tier

    def snapshot(self) -> TelemetrySnapshot:
        with self._lock:
            return TelemetrySnapshot(
                tier1_count=self._counts[Tier.TIER1],
                tier2_count=self._counts[Tier.TIER2],
                tier3_count=self._counts[Tier.TIER3],
                average_latency_ms=self._avg_latency_ms,
                expensive_calls_avoided=self._avoided,
                last_tier=self._last_tier,
            )

    def report(self) -> EfficiencyReport:
        snap = self.snapshot()
        total = snap.total

        def pct(count: int) -> float:
            return (count / total) * 100 if total else 0.0

        return EfficiencyReport(
            total_routes=total,
            tier1_percentage=pct(snap.tier1_count),
            tier2_percentage=pct(snap.tier2_count),
            tier3_percentage=pct(snap.tier3_count),
            expensive_calls_avoided=snap.expensive_calls_avoided,
            avg_routing_time_ms=snap.average_latency_ms,
            estimated_time_saved_ms=snap.expensive_calls_avoided * self._saved_ms_per_call,
            estimated_cost_saved=snap.expensive_calls_avoided * self._saved_cost_per_call,
            tier_counts={
                Tier.TIER1.label: snap.tier1_count,
                Tier.TIER2.label: snap.tier2_count,
                Tier.TIER3.label: snap.tier3_count,
            },
        )
