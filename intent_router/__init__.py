"""intent-router: tiered intent classification, capability routing, and single-slot command dispatch."""

from intent_router.models import (
    AgentCandidate,
    CapabilityLookup,
    ClassificationResult,
    FallbackResolver,
    Interpretation,
    ProviderRecord,
    RoutingResult,
    Tier,
    TierStats,
)
from intent_router.heuristics import IntentClassifier, classify
from intent_router.router import CapabilityRouter
from intent_router.telemetry import RoutingTelemetry
from intent_router.commands import Command, command_from_dict
from intent_router.bus import CommandBus, CommandBusState
from intent_router.executor import CommandEffects, CommandExecutor, CommandOutcome
from intent_router.failover import CircuitBreaker, EscalationChain
from intent_router.registry import Agent, CapabilityRegistry
from intent_router.parser import CommandParser, ParsedCommand
from intent_router.pipeline import InstructionPipeline, SubmitResult

__all__ = [
    "Tier",
    "ClassificationResult",
    "ProviderRecord",
    "AgentCandidate",
    "RoutingResult",
    "TierStats",
    "Interpretation",
    "CapabilityLookup",
    "FallbackResolver",
    "IntentClassifier",
    "classify",
    "CapabilityRouter",
    "RoutingTelemetry",
    "Command",
    "command_from_dict",
    "CommandBus",
    "CommandBusState",
    "CommandEffects",
    "CommandExecutor",
    "CommandOutcome",
    "CircuitBreaker",
    "EscalationChain",
    "Agent",
    "CapabilityRegistry",
    "CommandParser",
    "ParsedCommand",
    "InstructionPipeline",
    "SubmitResult",
]
