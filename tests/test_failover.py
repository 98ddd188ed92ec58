"""Tests for CircuitBreaker and EscalationChain."""

import pytest

from intent_router.failover import CircuitBreaker, EscalationChain
from intent_router.models import Interpretation

from conftest import FailingResolver, StaticResolver


def test_breaker_opens_after_threshold():
    cb = CircuitBreaker(failure_threshold=3, cooldown_s=60)
    for _ in range(2):
        cb.record_failure("llm")
    assert not cb.is_open("llm")
    cb.record_failure("llm")
    assert cb.is_open("llm")
    assert cb.state("llm") == "open"


def test_breaker_half_opens_after_cooldown(monkeypatch):
    clock = [1000.0]
    monkeypatch.setattr("intent_router.failover.time.monotonic", lambda: clock[0])
    cb = CircuitBreaker(failure_threshold=1, cooldown_s=30)
    cb.record_failure("llm")
    assert cb.is_open("llm")

    clock[0] += 31
    assert not cb.is_open("llm")
    assert cb.state("llm") == "half-open"

    cb.record_failure("llm")  # failed probe
    assert cb.state("llm") == "open"

    clock[0] += 31
    cb.is_open("llm")
    cb.record_success("llm")
    assert cb.state("llm") == "closed"


def test_old_failures_fall_out_of_window(monkeypatch):
    clock = [0.0]
    monkeypatch.setattr("intent_router.failover.time.monotonic", lambda: clock[0])
    cb = CircuitBreaker(failure_threshold=2, window_s=10)
    cb.record_failure("x")
    clock[0] = 20.0
    cb.record_failure("x")
    assert not cb.is_open("x")


@pytest.mark.asyncio
async def test_chain_falls_through_to_next_resolver():
    good = StaticResolver(Interpretation("scheduling", "calendar", 0.9), name="local")
    bad = FailingResolver(name="remote")
    chain = EscalationChain()
    interpretation, resolver, latency_ms = await chain.resolve([bad, good], "book it")
    assert resolver is good
    assert interpretation.task_type == "scheduling"
    assert bad.calls == 1
    assert latency_ms >= 0


@pytest.mark.asyncio
async def test_chain_skips_open_circuit():
    bad = FailingResolver(name="remote")
    good = StaticResolver(Interpretation("x"), name="local")
    chain = EscalationChain(CircuitBreaker(failure_threshold=1, cooldown_s=60))
    await chain.resolve([bad, good], "q")
    await chain.resolve([bad, good], "q")
    assert bad.calls == 1


@pytest.mark.asyncio
async def test_chain_raises_when_all_fail():
    chain = EscalationChain()
    with pytest.raises(RuntimeError, match="All resolvers failed"):
        await chain.resolve([FailingResolver("a"), FailingResolver("b")], "q")


@pytest.mark.asyncio
async def test_all_open_forces_a_probe():
    cb = CircuitBreaker(failure_threshold=1, cooldown_s=600)
    flaky = StaticResolver(Interpretation("recovered"), name="flaky")
    cb.record_failure("flaky")
    assert cb.is_open("flaky")

    interpretation, resolver, _ = await EscalationChain(cb).resolve([flaky], "q")
    assert resolver is flaky
    assert interpretation.task_type == "recovered"
    assert cb.state("flaky") == "closed"


@pytest.mark.asyncio
async def test_no_resolvers_is_a_failure():
    with pytest.raises(RuntimeError):
        await EscalationChain().resolve([], "q")


def test_success_resets_failure_count():
    cb = CircuitBreaker(failure_threshold=2)
    cb.record_failure("llm")
    cb.record_success("llm")
    cb.record_failure("llm")
    assert cb.state("llm") == "closed"
    cb.record_failure("llm")
    assert cb.state("llm") == "open"


@pytest.mark.asyncio
async def test_failure_message_names_each_resolver():
    chain = EscalationChain()
    with pytest.raises(RuntimeError, match="a: .*b: "):
        await chain.resolve([FailingResolver("a"), FailingResolver("b")], "q")
