"""Tests for RoutingTelemetry counters and the efficiency report."""

import threading

import pytest

from intent_router.models import Tier
from intent_router.router import CapabilityRouter
from intent_router.telemetry import RoutingTelemetry

from conftest import FailingLookup, StaticLookup, record


def test_empty_report_is_all_zero():
    report = RoutingTelemetry().report()
    assert report.total_routes == 0
    assert report.tier1_percentage == 0.0
    assert report.avg_routing_time_ms == 0.0
    assert report.estimated_cost_saved == 0.0
    assert report.tier_counts == {"tier1": 0, "tier2": 0, "tier3": 0}


def test_record_counts_and_mean_latency():
    t = RoutingTelemetry()
    t.record(Tier.TIER1, 10.0)
    t.record(Tier.TIER1, 20.0)
    t.record(Tier.TIER3, 30.0)
    snap = t.snapshot()
    assert (snap.tier1_count, snap.tier2_count, snap.tier3_count) == (2, 0, 1)
    assert snap.average_latency_ms == pytest.approx(20.0)
    assert snap.expensive_calls_avoided == 2
    assert snap.last_tier is Tier.TIER3


def test_report_percentages_and_savings():
    t = RoutingTelemetry(saved_ms_per_call=1000.0, saved_cost_per_call=0.01)
    for tier in (Tier.TIER1, Tier.TIER1, Tier.TIER2, Tier.TIER3):
        t.record(tier, 5.0)
    report = t.report()
    assert report.total_routes == 4
    assert report.tier1_percentage == 50.0
    assert report.tier2_percentage == 25.0
    assert report.tier3_percentage == 25.0
    assert report.estimated_time_saved_ms == 2000.0
    assert report.estimated_cost_saved == pytest.approx(0.02)


def test_record_accepts_plain_ints():
    t = RoutingTelemetry()
    t.record(2, 1.0)
    assert t.snapshot().tier2_count == 1


def test_threaded_records_are_not_lost():
    t = RoutingTelemetry()

    def worker():
        for _ in range(500):
            t.record(Tier.TIER2, 1.0)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for th in threads:
        th.start()
    for th in threads:
        th.join()
    assert t.snapshot().total == 4000


@pytest.mark.asyncio
async def test_route_calls_are_conserved():
    telemetry = RoutingTelemetry()
    good = CapabilityRouter(StaticLookup([record("a", 0.9, 0.9)]), telemetry)
    weak = CapabilityRouter(StaticLookup([record("b", 0.3, 0.3)]), telemetry)
    broken = CapabilityRouter(FailingLookup(), telemetry)

    n = 0
    for router in (good, weak, broken):
        for _ in range(3):
            await router.route("x")
            n += 1
    await good.route_query("schedule lunch")
    n += 1

    snap = telemetry.snapshot()
    assert snap.tier1_count + snap.tier2_count + snap.tier3_count == n
    assert snap.tier1_count == 4
