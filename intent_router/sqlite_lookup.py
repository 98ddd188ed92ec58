"""SQLite-backed capability lookup and intent pattern loading.

Expected tables::

    agents(id TEXT, name TEXT, sector TEXT, hierarchy_tier TEXT,
           success_rate REAL, status TEXT)
    agent_task_scores(agent_id TEXT, task_type TEXT, specialization_score REAL)
    intent_task_mapping(intent_pattern TEXT, task_type TEXT, confidence REAL,
                        domain TEXT, keywords TEXT)   -- keywords comma-separated
"""

import aiosqlite
from loguru import logger

from intent_router.heuristics import IntentPattern
from intent_router.models import CapabilityLookup, ProviderRecord

DORMANT_STATUS = "DORMANT"


class SqliteCapabilityLookup(CapabilityLookup):
    """Reads capability providers for a task type from an SQLite database."""

    def __init__(self, db_path: str):
        self._db_path = db_path

    async def find_providers(
        self,
        task_type: str,
        confidence_threshold: float = 0.7,
        limit: int = 5,
    ) -> list[ProviderRecord]:
        async with aiosqlite.connect(self._db_path) as db:
            cur = await db.execute(
                """SELECT a.id, a.name, a.sector, a.hierarchy_tier,
                          COALESCE(s.specialization_score, 0), COALESCE(a.success_rate, 0)
                   FROM agents a
                   JOIN agent_task_scores s ON s.agent_id = a.id
                   WHERE s.task_type = ? AND COALESCE(a.status, '') != ?
                   ORDER BY s.specialization_score DESC, a.success_rate DESC, a.id""",
                (task_type, DORMANT_STATUS),
            )
            rows = await cur.fetchall()
        return [
            ProviderRecord(
                agent_id=str(agent_id),
                agent_name=name,
                sector=sector or "general",
                hierarchy_tier=hierarchy_tier or "specialist",
                specialization_score=float(score),
                success_rate=float(success),
            )
            for agent_id, name, sector, hierarchy_tier, score, success in rows
        ]

    async def task_type_scores(self) -> dict[str, list[float]]:
        async with aiosqlite.connect(self._db_path) as db:
            cur = await db.execute("SELECT task_type, specialization_score FROM agent_task_scores")
            rows = await cur.fetchall()
        scores: dict[str, list[float]] = {}
        for task_type, score in rows:
            scores.setdefault(task_type, []).append(float(score or 0))
        return scores


async def load_patterns(db_path: str) -> list[IntentPattern]:
    """Build a classifier pattern table from ``intent_task_mapping``.

    Rows come back in insertion order so the table's tie-break stays stable.
    """
    async with aiosqlite.connect(db_path) as db:
        cur = await db.execute(
            """SELECT intent_pattern, task_type, confidence, domain, keywords
               FROM intent_task_mapping ORDER BY rowid"""
        )
        rows = await cur.fetchall()

    patterns = []
    for pattern, task_type, confidence, domain, keywords in rows:
        if not pattern or not task_type:
            logger.warning(f"Skipping incomplete intent mapping row: {pattern!r} -> {task_type!r}")
            continue
        kw = tuple(k.strip() for k in keywords.split(",") if k.strip()) if keywords else ()
        patterns.append(IntentPattern(
            pattern=pattern.lower(),
            task_type=task_type,
            domain=domain,
            confidence=float(confidence if confidence is not None else 0.8),
            keywords=kw,
        ))
    logger.info(f"Loaded {len(patterns)} intent patterns from {db_path}")
    return patterns
