"""Circuit breaking for the capability lookup and the Tier-3 resolvers."""

import time
from collections import deque
from dataclasses import dataclass, field

from loguru import logger

from intent_router.models import ClassificationResult, FallbackResolver, Interpretation

CLOSED = "closed"
OPEN = "open"
HALF_OPEN = "half-open"


@dataclass
class _Circuit:
    failures: deque = field(default_factory=deque)  # monotonic timestamps, newest last
    state: str = CLOSED
    opened_at: float = 0.0


class CircuitBreaker:
    """Named circuits that open after ``failure_threshold`` failures within
    ``window_s`` and let a single probe through once ``cooldown_s`` has passed.
    """

    def __init__(self, failure_threshold: int = 3, window_s: float = 300.0, cooldown_s: float = 60.0):
        self._failure_threshold = max(1, failure_threshold)
        self._window_s = window_s
        self._cooldown_s = cooldown_s
        self._circuits: dict[str, _Circuit] = {}

    def _circuit(self, name: str) -> _Circuit:
        circuit = self._circuits.get(name)
        if circuit is None:
            # Only the newest threshold-many failures can decide a trip.
            circuit = self._circuits[name] = _Circuit(deque(maxlen=self._failure_threshold))
        return circuit

    def state(self, name: str) -> str:
        return self._circuit(name).state

    def opened_at(self, name: str) -> float:
        return self._circuit(name).opened_at

    def is_open(self, name: str) -> bool:
        """True while calls to ``name`` should be skipped."""
        circuit = self._circuit(name)
        if circuit.state != OPEN:
            return False
        if time.monotonic() - circuit.opened_at < self._cooldown_s:
            return True
        circuit.state = HALF_OPEN
        logger.info(f"CircuitBreaker: {name} -> half-open after {self._cooldown_s}s cooldown")
        return False

    def record_success(self, name: str) -> None:
        circuit = self._circuit(name)
        if circuit.state != CLOSED:
            logger.info(f"CircuitBreaker: {name} -> closed")
        circuit.failures.clear()
        circuit.state = CLOSED
        circuit.opened_at = 0.0

    def record_failure(self, name: str) -> None:
        circuit = self._circuit(name)
        now = time.monotonic()
        while circuit.failures and now - circuit.failures[0] >= self._window_s:
            circuit.failures.popleft()
        circuit.failures.append(now)

        if circuit.state == HALF_OPEN:
            self._trip(name, circuit, now, "probe failed")
        elif circuit.state == CLOSED and len(circuit.failures) >= self._failure_threshold:
            self._trip(name, circuit, now, f"{len(circuit.failures)} failures in {self._window_s}s")

    @staticmethod
    def _trip(name: str, circuit: _Circuit, now: float, why: str) -> None:
        circuit.state = OPEN
        circuit.opened_at = now
        logger.warning(f"CircuitBreaker: {name} -> open ({why})")


class EscalationChain:
    """Tier-3 resolvers tried in order, each behind its own circuit."""

    def __init__(self, breaker: CircuitBreaker | None = None) -> None:
        self._breaker = breaker or CircuitBreaker()

    @property
    def breaker(self) -> CircuitBreaker:
        return self._breaker

    async def resolve(
        self,
        resolvers: list[FallbackResolver],
        query: str,
        context: ClassificationResult | None = None,
    ) -> tuple[Interpretation, FallbackResolver, int]:
        """Return ``(interpretation, resolver, latency_ms)`` from the first
        resolver that answers.

        When every circuit is open the one opened longest ago is called anyway,
        so a recovered resolver is noticed. Raises RuntimeError when nothing
        answers.
        """
        errors: list[str] = []
        attempted = False
        for resolver in resolvers:
            if self._breaker.is_open(resolver.name):
                logger.info(f"EscalationChain: skipping {resolver.name} (circuit open)")
                continue
            attempted = True
            try:
                return await self._attempt(resolver, query, context)
            except Exception as e:
                errors.append(f"{resolver.name}: {e}")

        if not attempted and resolvers:
            stalest = min(resolvers, key=lambda r: self._breaker.opened_at(r.name))
            logger.info(f"EscalationChain: every circuit open, probing {stalest.name}")
            try:
                return await self._attempt(stalest, query, context)
            except Exception as e:
                errors.append(f"{stalest.name}: {e}")

        raise RuntimeError(f"All resolvers failed: {'; '.join(errors) or 'none configured'}")

    async def _attempt(
        self,
        resolver: FallbackResolver,
        query: str,
        context: ClassificationResult | None,
    ) -> tuple[Interpretation, FallbackResolver, int]:
        start = time.monotonic()
        try:
            interpretation = await resolver.resolve(query, context)
        except Exception as e:
            self._breaker.record_failure(resolver.name)
            logger.warning(f"Resolver {resolver.name} failed after {self._elapsed_ms(start)}ms: {e}")
            raise
        self._breaker.record_success(resolver.name)
        return interpretation, resolver, self._elapsed_ms(start)

    @staticmethod
    def _elapsed_ms(start: float) -> int:
        return int((time.monotonic() - start) * 1000)
