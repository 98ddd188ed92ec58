"""Tier-1 intent classification over a static pattern table.

Each rule binds a phrase (and optional keywords) to a ``(task_type, domain)``
pair with a base confidence. Matching is a plain case-insensitive substring
test, so classification is a pure function of the query and the table.
"""

from dataclasses import dataclass

from intent_router.models import ClassificationResult

UNKNOWN_TASK = "unknown"

# Confidence added per keyword found alongside the rule.
KEYWORD_BONUS = 0.05
# Keyword-only hits are partial matches and keep this share of the base.
PARTIAL_MATCH_FACTOR = 0.75


@dataclass(frozen=True)
class IntentPattern:
    """A deterministic classification rule."""
    pattern: str
    task_type: str
    domain: str | None
    confidence: float
    keywords: tuple[str, ...] = ()


# Seed table. Order matters only as the final tie-break.
DEFAULT_PATTERNS: tuple[IntentPattern, ...] = (
    IntentPattern("schedule", "scheduling", "calendar", 0.9, ("meeting", "appointment", "book", "reserve")),
    IntentPattern("email", "email_composition", "communications", 0.9, ("send", "write", "compose", "reply")),
    IntentPattern("analyze", "data_analysis", "analytics", 0.85, ("report", "insight", "trend", "pattern")),
    IntentPattern("research", "research", "knowledge", 0.85, ("find", "look up", "search", "investigate")),
    IntentPattern("summarize", "summarization", "knowledge", 0.9, ("brief", "overview", "digest", "recap")),
    IntentPattern("calculate", "financial_analysis", "finance", 0.9, ("budget", "expense", "revenue", "cost")),
    IntentPattern("create", "content_creation", "creative", 0.8, ("design", "generate", "make", "build")),
    IntentPattern("review", "document_review", "legal", 0.85, ("contract", "agreement", "terms", "policy")),
    IntentPattern("plan", "strategic_planning", "strategy", 0.85, ("roadmap", "strategy", "goal", "objective")),
    IntentPattern("automate", "workflow_automation", "automation", 0.9, ("workflow", "trigger", "process", "routine")),
    IntentPattern("monitor", "monitoring", "operations", 0.85, ("track", "watch", "alert", "notify")),
    IntentPattern("optimize", "optimization", "performance", 0.85, ("improve", "enhance", "boost", "streamline")),
)


def unknown_result() -> ClassificationResult:
    return ClassificationResult(
        task_type=UNKNOWN_TASK,
        domain=None,
        confidence=0.0,
        matched_pattern=None,
        requires_escalation=True,
    )


class IntentClassifier:
    """Classifies free text against an ordered pattern table."""

    def __init__(
        self,
        patterns: tuple[IntentPattern, ...] | list[IntentPattern] = DEFAULT_PATTERNS,
        *,
        escalation_threshold: float = 0.7,
    ):
        self._patterns = tuple(patterns)
        self._escalation_threshold = escalation_threshold

    @property
    def patterns(self) -> tuple[IntentPattern, ...]:
        return self._patterns

    def classify(self, query: str) -> ClassificationResult:
        text = (query or "").strip().lower()
        if not text:
            return unknown_result()

        best: IntentPattern | None = None
        best_key: tuple | None = None
        best_hits = 0
        best_phrase = False

        for index, rule in enumerate(self._patterns):
            phrase_hit = rule.pattern.lower() in text
            hits = sum(1 for kw in rule.keywords if kw.lower() in text)
            if not phrase_hit and hits == 0:
                continue
            # Larger is better; negative index keeps earlier rules ahead.
            key = (phrase_hit, hits, len(rule.pattern), rule.confidence, -index)
            if best_key is None or key > best_key:
                best, best_key, best_hits, best_phrase = rule, key, hits, phrase_hit

        if best is None:
            return unknown_result()

        base = best.confidence if best_phrase else best.confidence * PARTIAL_MATCH_FACTOR
        confidence = round(min(1.0, base + best_hits * KEYWORD_BONUS), 4)
        return ClassificationResult(
            task_type=best.task_type,
            domain=best.domain,
            confidence=confidence,
            matched_pattern=best.pattern,
            requires_escalation=confidence < self._escalation_threshold,
        )


_default_classifier = IntentClassifier()


def classify(query: str) -> ClassificationResult:
    """Classify with the default pattern table."""
    return _default_classifier.classify(query)
