"""InstructionPipeline: from raw instruction text to a command on the bus.

Cheapest strategy first: the deterministic parser, then classification and
capability routing, and only when routing gives up, the heavy-fallback
resolvers behind the escalation chain.
"""

from dataclasses import dataclass

from loguru import logger

from intent_router.bus import CommandBus
from intent_router.commands import Command, command_from_dict
from intent_router.failover import EscalationChain
from intent_router.models import ClassificationResult, FallbackResolver, Interpretation, RoutingResult, Tier
from intent_router.parser import CommandParser
from intent_router.router import CapabilityRouter

REASON_PARSED = "parsed"
REASON_RESOLVED = "resolved"
REASON_ROUTED = "routed"
REASON_BUSY = "busy"
REASON_UNRESOLVED = "unresolved"
REASON_INVALID = "invalid command"
REASON_EMPTY = "empty"


@dataclass(frozen=True)
class SubmitResult:
    """What happened to one submitted instruction.

    ``accepted`` is True only when a command was placed on the bus. A
    ``reason`` of "busy" means the bus already held a command; the caller
    should tell the user to try again, nothing is queued.
    """
    accepted: bool
    command: Command | None = None
    routing: RoutingResult | None = None
    interpretation: Interpretation | None = None
    reason: str = ""


class InstructionPipeline:
    """Producer that turns instructions into bus commands."""

    def __init__(
        self,
        bus: CommandBus,
        router: CapabilityRouter,
        *,
        parser: CommandParser | None = None,
        resolvers: list[FallbackResolver] | tuple = (),
        escalation: EscalationChain | None = None,
        confidence_threshold: float = 0.7,
        min_parse_confidence: float = 0.7,
    ):
        self._bus = bus
        self._router = router
        self._parser = parser or CommandParser()
        self._resolvers = list(resolvers)
        self._escalation = escalation or EscalationChain()
        self._confidence_threshold = confidence_threshold
        self._min_parse_confidence = min_parse_confidence

    @property
    def resolvers(self) -> list[FallbackResolver]:
        return list(self._resolvers)

    async def submit(self, text: str) -> SubmitResult:
        if not text or not text.strip():
            return SubmitResult(False, reason=REASON_EMPTY)

        # 1. Deterministic parse
        parsed = self._parser.parse(text)
        if parsed is not None and parsed.confidence >= self._min_parse_confidence:
            logger.info(f"Parsed {text!r} -> {parsed.command.kind} ({parsed.confidence:.2f})")
            return self._push(parsed.command, REASON_PARSED)

        # 2. Classification + capability routing
        intent = self._router.classifier.classify(text)
        routing = await self._router.route_query(text, self._confidence_threshold, intent=intent)
        if not self._needs_fallback(routing, intent):
            return SubmitResult(False, routing=routing, reason=REASON_ROUTED)

        # 3. Heavy fallback
        try:
            interpretation, resolver, latency_ms = await self._escalation.resolve(
                self._resolvers, text, intent,
            )
        except RuntimeError as e:
            logger.error(f"Escalation failed for {text!r}: {e}")
            return SubmitResult(False, routing=routing, reason=REASON_UNRESOLVED)

        logger.info(f"Resolved {text!r} via {resolver.name} in {latency_ms}ms -> {interpretation.task_type}")
        command = interpretation.command
        if command is None:
            return SubmitResult(False, routing=routing, interpretation=interpretation, reason=REASON_ROUTED)
        if isinstance(command, dict):
            try:
                command = command_from_dict(command)
            except ValueError as e:
                logger.warning(f"Resolver {resolver.name} returned an invalid command: {e}")
                return SubmitResult(False, routing=routing, interpretation=interpretation, reason=REASON_INVALID)
        if not isinstance(command, Command):
            logger.warning(f"Resolver {resolver.name} returned {type(command).__name__}, not a command")
            return SubmitResult(False, routing=routing, interpretation=interpretation, reason=REASON_INVALID)

        result = self._push(command, REASON_RESOLVED)
        return SubmitResult(result.accepted, command, routing, interpretation, result.reason)

    def _needs_fallback(self, routing: RoutingResult, intent: ClassificationResult) -> bool:
        # Tier 2 with a confident classification is served locally.
        if not self._resolvers:
            return False
        return routing.tier is Tier.TIER3 or intent.requires_escalation

    def _push(self, command: Command, reason: str) -> SubmitResult:
        if self._bus.push(command):
            return SubmitResult(True, command, reason=reason)
        logger.info(f"Bus busy; dropped {command.kind}")
        return SubmitResult(False, command, reason=REASON_BUSY)
