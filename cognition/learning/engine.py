"""LearningEngine — mines recurring interaction patterns in the background.

High-confidence interactions are analysed as soon as they arrive; everything
else waits for the periodic pattern sweep, which also runs the deeper
cross-interaction analysis. A slower sweep flushes the pattern table to the
durable store. Pattern updates only ever increment counts and fold samples
into a running mean, so the sweeps can interleave with foreground learning.
"""

from __future__ import annotations

import logging
from collections import deque
from datetime import timedelta
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from cognition.clock import utc_now
from cognition.config import Settings, settings
from cognition.learning.models import (
    Interaction,
    LearningPattern,
    PatternType,
    PersistenceOutcome,
    pattern_id,
)
from cognition.learning.patterns import basic_keys, deep_keys
from cognition.scoring import clamp, jaccard_similarity

if TYPE_CHECKING:
    from datetime import datetime

    from cognition.clock import Clock
    from cognition.context.models import ContextSnapshot
    from cognition.learning.patterns import PatternKey
    from cognition.learning.store import DurableStore
    from cognition.learning.sweeps import SweepScheduler

logger = logging.getLogger(__name__)

PATTERN_SWEEP = "pattern_sweep"
PERSISTENCE_SWEEP = "persistence_sweep"


class LearningEngine:
    """Queues interactions and maintains the learned pattern table.

    Args:
        store: Durable store for periodic flushes (None disables persistence).
        scheduler: SweepScheduler that drives the background sweeps.
        config: Settings to read thresholds and cadences from.
        clock: Time source.
    """

    def __init__(
        self,
        store: DurableStore | None = None,
        scheduler: SweepScheduler | None = None,
        config: Settings | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._scheduler = scheduler
        self._config = config or settings
        self._clock = clock
        self._queue: deque[Interaction] = deque(maxlen=self._config.learning_queue_size)
        self._patterns: dict[str, LearningPattern] = {}
        self._total_interactions = 0
        self._immediate_extractions = 0
        self._processed = 0
        self._failed_items = 0
        self._average_confidence = 0.0
        self._last_learning_at: datetime | None = None
        self._last_persistence: PersistenceOutcome | None = None
        self._persistence_failures = 0

    @property
    def queue_size(self) -> int:
        return len(self._queue)

    @property
    def last_persistence(self) -> PersistenceOutcome | None:
        return self._last_persistence

    # -- Lifecycle -------------------------------------------------------------

    async def start(self) -> None:
        """Register the pattern and persistence sweeps and start the scheduler."""
        if self._scheduler is None:
            logger.debug("No scheduler configured; background sweeps disabled")
            return
        self._scheduler.add_sweep(
            PATTERN_SWEEP,
            self._pattern_sweep_job,
            self._config.pattern_sweep_interval_seconds,
        )
        if self._store is not None:
            self._scheduler.add_sweep(
                PERSISTENCE_SWEEP,
                self.persist,
                self._config.persistence_interval_seconds,
            )
        self._scheduler.start()

    async def stop(self) -> None:
        """Stop the sweeps and make a final persistence attempt."""
        if self._scheduler is not None:
            self._scheduler.stop()
        if self._store is not None:
            await self.persist()

    async def _pattern_sweep_job(self) -> None:
        self.run_pattern_sweep()

    # -- Intake ----------------------------------------------------------------

    def learn_from_interaction(
        self,
        text: str,
        response: str,
        confidence: float,
        source: str,
        context: ContextSnapshot | None = None,
    ) -> Interaction:
        """Queue an interaction; extract its patterns now if confidence is high."""
        interaction = Interaction(
            input=text,
            response=response,
            confidence=clamp(confidence),
            source=source,
            timestamp=self._clock(),
            context=context,
        )
        self._queue.append(interaction)
        self._total_interactions += 1
        self._average_confidence += (
            interaction.confidence - self._average_confidence
        ) / self._total_interactions
        self._last_learning_at = interaction.timestamp

        if interaction.confidence >= self._config.high_confidence_threshold:
            self._extract_basic(interaction)
            self._immediate_extractions += 1
        return interaction

    # -- Pattern table ---------------------------------------------------------

    def _extract_basic(self, interaction: Interaction) -> None:
        for key in basic_keys(interaction):
            self._observe(key, interaction)
        interaction.extracted = True

    def _observe(self, key: PatternKey, interaction: Interaction) -> LearningPattern:
        pattern_type, name = key
        pid = pattern_id(pattern_type, name)
        pattern = self._patterns.get(pid)
        if pattern is None:
            pattern = LearningPattern(
                id=pid,
                type=pattern_type,
                key=name,
                confidence=interaction.confidence,
                examples=[interaction.input],
                sources={interaction.source: 1} if interaction.source else {},
                first_seen=interaction.timestamp,
                last_seen=interaction.timestamp,
            )
            self._patterns[pid] = pattern
            logger.debug("New pattern %s", pid)
            return pattern
        pattern.observe(
            interaction.confidence,
            interaction.input,
            interaction.source,
            interaction.timestamp,
            self._config.pattern_example_limit,
        )
        return pattern

    def run_pattern_sweep(self) -> int:
        """Analyse one batch from the queue. Returns the number of items processed.

        Each item gets its basic extraction (if it has not had it yet) and the
        deep analysis. A failing item is logged and skipped.
        """
        batch: list[Interaction] = []
        while self._queue and len(batch) < self._config.pattern_batch_size:
            batch.append(self._queue.popleft())
        if not batch:
            self.prune_stale_patterns()
            return 0

        peers = batch + list(self._queue)
        processed = 0
        for interaction in batch:
            try:
                if not interaction.extracted:
                    self._extract_basic(interaction)
                for key in deep_keys(interaction, peers, self._config.similarity_threshold):
                    self._observe(key, interaction)
                processed += 1
            except Exception:
                self._failed_items += 1
                logger.exception("Failed to analyse interaction %s", interaction.id)

        self._processed += processed
        pruned = self.prune_stale_patterns()
        logger.info(
            "Pattern sweep processed %d/%d interaction(s), pruned %d, %d queued",
            processed,
            len(batch),
            pruned,
            len(self._queue),
        )
        return processed

    def flush_queue(self) -> int:
        """Sweep repeatedly until the queue is empty. Returns the total processed."""
        total = 0
        while self._queue:
            total += self.run_pattern_sweep()
        return total

    def prune_stale_patterns(self) -> int:
        """Drop patterns that are both long unseen and rarely observed."""
        cutoff = self._clock() - timedelta(days=self._config.pattern_stale_days)
        stale = [
            pid
            for pid, p in self._patterns.items()
            if p.last_seen < cutoff and p.occurrences < self._config.pattern_stale_min_occurrences
        ]
        for pid in stale:
            del self._patterns[pid]
        if stale:
            logger.info("Pruned %d stale pattern(s)", len(stale))
        return len(stale)

    # -- Persistence -----------------------------------------------------------

    async def persist(self) -> PersistenceOutcome:
        """Flush patterns and stats to the durable store.

        Failures are logged and counted; the next cycle simply tries again.
        The in-memory table is never modified here.
        """
        now = self._clock()
        if self._store is None:
            outcome = PersistenceOutcome(ok=False, at=now, error="no durable store configured")
            self._last_persistence = outcome
            return outcome

        payload = {
            "patterns": {pid: p.model_dump(mode="json") for pid, p in self._patterns.items()},
            "stats": self.get_learning_stats(),
            "saved_at": now.isoformat(),
        }
        try:
            ok = await self._store.save_patterns(self._config.pattern_store_key, payload)
            error = None if ok else "store reported failure"
        except Exception as exc:
            logger.exception("Pattern persistence failed")
            ok, error = False, str(exc) or type(exc).__name__

        outcome = PersistenceOutcome(
            ok=ok, at=now, pattern_count=len(payload["patterns"]), error=error
        )
        if not ok:
            self._persistence_failures += 1
            logger.warning(
                "Pattern persistence failed (%s); will retry next cycle", outcome.error
            )
        self._last_persistence = outcome
        return outcome

    async def load(self) -> int:
        """Restore patterns from the durable store. Returns how many were loaded."""
        if self._store is None:
            return 0
        try:
            data = await self._store.load_patterns(self._config.pattern_store_key)
        except Exception:
            logger.exception("Failed to load saved patterns")
            return 0

        loaded = 0
        for pid, raw in (data.get("patterns") or {}).items():
            try:
                self._patterns[pid] = LearningPattern.model_validate(raw)
                loaded += 1
            except ValidationError:
                logger.warning("Skipping invalid saved pattern %s", pid)
        logger.info("Loaded %d saved pattern(s)", loaded)
        return loaded

    # -- Reads -----------------------------------------------------------------

    def get_patterns(self, pattern_type: PatternType | None = None) -> list[LearningPattern]:
        """Copies of the learned patterns, optionally filtered by type."""
        return [
            p.model_copy(deep=True)
            for p in self._patterns.values()
            if pattern_type is None or p.type == pattern_type
        ]

    def get_top_patterns(self, limit: int = 10) -> list[LearningPattern]:
        """Most frequent patterns first, ties broken by confidence."""
        ranked = sorted(
            self._patterns.values(),
            key=lambda p: (p.occurrences, p.confidence),
            reverse=True,
        )
        return [p.model_copy(deep=True) for p in ranked[:limit]]

    def get_learning_stats(self) -> dict[str, Any]:
        by_type: dict[str, int] = {}
        for p in self._patterns.values():
            by_type[p.type.value] = by_type.get(p.type.value, 0) + 1
        last = self._last_persistence
        return {
            "total_interactions": self._total_interactions,
            "immediate_extractions": self._immediate_extractions,
            "processed": self._processed,
            "failed_items": self._failed_items,
            "queue_size": len(self._queue),
            "pattern_count": len(self._patterns),
            "patterns_by_type": by_type,
            "average_confidence": self._average_confidence,
            "last_learning_at": (
                self._last_learning_at.isoformat() if self._last_learning_at else None
            ),
            "persistence": {
                "last_ok": last.ok if last else None,
                "last_at": last.at.isoformat() if last else None,
                "failures": self._persistence_failures,
            },
        }

    def find_similar_patterns(
        self, text: str, limit: int = 5
    ) -> list[tuple[LearningPattern, float]]:
        """Patterns whose examples resemble *text*, best match first."""
        scored = []
        for pattern in self._patterns.values():
            if not pattern.examples:
                continue
            best = max(jaccard_similarity(text, example) for example in pattern.examples)
            if best > 0:
                scored.append((pattern, best))
        scored.sort(key=lambda item: item[1], reverse=True)
        return [(p.model_copy(deep=True), score) for p, score in scored[:limit]]

    def get_recommendations(self, text: str, limit: int = 3) -> list[str]:
        """Module hints drawn from the sources behind similar past interactions."""
        hints: dict[str, None] = {}
        for pattern, _score in self.find_similar_patterns(text):
            source = pattern.top_source
            if source:
                hints.setdefault(f"Try the {source} module", None)
        return list(hints)[:limit]

    def reset(self) -> None:
        """Forget all queued interactions, patterns, counters and persistence history."""
        self._queue.clear()
        self._patterns.clear()
        self._total_interactions = 0
        self._immediate_extractions = 0
        self._processed = 0
        self._failed_items = 0
        self._average_confidence = 0.0
        self._last_learning_at = None
        self._last_persistence = None
        self._persistence_failures = 0
