"""ReasoningEngine — builds and scores an explainable chain for each answer."""

from __future__ import annotations

import logging
import time
from collections import deque
from typing import TYPE_CHECKING, Any

from cognition.clock import utc_now
from cognition.config import Settings, settings
from cognition.intent import classify_intent
from cognition.modules.payloads import render_payload
from cognition.reasoning.models import ReasoningChain, ReasoningStep, StepCategory
from cognition.scoring import (
    aggregate_confidence,
    clamp,
    jaccard_similarity,
    keywords,
    weighted_confidence,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from cognition.clock import Clock
    from cognition.context.models import ContextSnapshot
    from cognition.modules.base import ModuleResponse

logger = logging.getLogger(__name__)

NO_ANSWER_CONFIDENCE = 0.1
NEUTRAL_RELEVANCE = 0.5
SWING_LIMIT = 0.5
_PREVIEW_CHARS = 120

_REQUIRED_CATEGORIES = (
    StepCategory.INPUT_ANALYSIS,
    StepCategory.CONTEXT_INTEGRATION,
    StepCategory.RESPONSE_ANALYSIS,
)


class ReasoningEngine:
    """Produces reasoning chains and keeps a short in-memory history of them.

    The history exists for debugging and explainability only.
    """

    def __init__(self, config: Settings | None = None, clock: Clock = utc_now) -> None:
        self._config = config or settings
        self._clock = clock
        self._history: deque[ReasoningChain] = deque(maxlen=self._config.reasoning_history_size)

    def create_reasoning_chain(
        self,
        text: str,
        context: ContextSnapshot | None,
        responses: Sequence[ModuleResponse],
    ) -> ReasoningChain:
        """Build the chain: analysis, context, ranking, validation, conclusion."""
        t0 = time.monotonic()
        ranked = sorted(responses, key=lambda r: r.confidence, reverse=True)

        steps = [self._analyze_input(text, context)]
        steps.append(self._integrate_context(text, context, steps[-1]))
        if ranked:
            steps.append(self._rank_responses(ranked, steps[-1]))
        steps.append(self._validate(text, steps))
        steps.append(self._conclude(ranked, steps[-1]))

        chain = ReasoningChain(
            input=text,
            steps=steps,
            conclusion=steps[-1].outputs["conclusion"],
            confidence=self.chain_confidence(steps),
            sources=[r.source for r in ranked],
            created_at=self._clock(),
            processing_time=time.monotonic() - t0,
        )
        self._history.append(chain)
        logger.debug(
            "Reasoning chain %s: %d steps, confidence %.2f",
            chain.id,
            len(chain.steps),
            chain.confidence,
        )
        return chain

    # -- Steps -----------------------------------------------------------------

    def _analyze_input(self, text: str, context: ContextSnapshot | None) -> ReasoningStep:
        analysis = classify_intent(text, context)
        entities = ", ".join(analysis.entities) or "none"
        return ReasoningStep(
            index=0,
            category=StepCategory.INPUT_ANALYSIS,
            description="Analyze the input for intent and entities",
            inputs={"input": text},
            outputs={"intent": analysis.intent, "entities": analysis.entities},
            confidence=analysis.confidence,
            justification=f"Classified as {analysis.intent}; entities: {entities}",
        )

    def _integrate_context(
        self,
        text: str,
        context: ContextSnapshot | None,
        previous: ReasoningStep,
    ) -> ReasoningStep:
        messages = list(context.recent_messages) if context else []
        window = messages[-self._config.reasoning_context_window :]
        relevance = self.context_relevance(text, [m.content for m in window])
        topics = list(context.topics) if context else []
        return ReasoningStep(
            index=1,
            category=StepCategory.CONTEXT_INTEGRATION,
            description="Integrate conversation context and history",
            inputs={
                "intent": previous.outputs["intent"],
                "messages": len(window),
                "topics": topics,
            },
            outputs={"relevance": relevance, "topics": topics},
            confidence=clamp(0.5 + relevance / 2),
            justification=(
                f"Relevance {relevance:.2f} across {len(window)} recent message(s); "
                f"topics: {', '.join(topics) or 'none'}"
            ),
        )

    def _rank_responses(
        self,
        ranked: Sequence[ModuleResponse],
        previous: ReasoningStep,
    ) -> ReasoningStep:
        best = ranked[0]
        preview = render_payload(best.data)[:_PREVIEW_CHARS]
        return ReasoningStep(
            index=2,
            category=StepCategory.RESPONSE_ANALYSIS,
            description="Rank module responses by confidence",
            inputs={"relevance": previous.outputs["relevance"], "responses": len(ranked)},
            outputs={
                "ranking": [(r.source, r.confidence) for r in ranked],
                "best_source": best.source,
                "best_confidence": best.confidence,
            },
            confidence=best.confidence,
            justification=f"Best answer from {best.source}: {preview}",
        )

    def _validate(self, text: str, steps: list[ReasoningStep]) -> ReasoningStep:
        scores = {
            "consistency": self.consistency_score(steps),
            "completeness": self.completeness_score(steps),
            "relevance": self.relevance_score(text, steps),
            "logical_flow": self.logical_flow_score(steps),
        }
        summary = ", ".join(f"{k} {v:.2f}" for k, v in scores.items())
        return ReasoningStep(
            index=len(steps),
            category=StepCategory.VALIDATION,
            description="Validate the chain",
            inputs={"steps": len(steps)},
            outputs=scores,
            confidence=aggregate_confidence(scores.values()),
            justification=summary,
        )

    def _conclude(
        self,
        ranked: Sequence[ModuleResponse],
        validation: ReasoningStep,
    ) -> ReasoningStep:
        if ranked:
            best = ranked[0]
            conclusion = f"{best.source} answers with confidence {best.confidence:.2f}"
            confidence = best.confidence
            outputs: dict[str, Any] = {"conclusion": conclusion, "source": best.source}
        else:
            conclusion = "No module produced a confident answer"
            confidence = NO_ANSWER_CONFIDENCE
            outputs = {"conclusion": conclusion, "source": None}
        return ReasoningStep(
            index=validation.index + 1,
            category=StepCategory.CONCLUSION,
            description="Conclude",
            inputs={"validation": validation.confidence},
            outputs=outputs,
            confidence=confidence,
            justification=conclusion,
        )

    # -- Scoring ---------------------------------------------------------------

    @staticmethod
    def context_relevance(text: str, messages: Sequence[str]) -> float:
        """Average token-Jaccard similarity between *text* and each message."""
        if not messages:
            return NEUTRAL_RELEVANCE
        return sum(jaccard_similarity(text, m) for m in messages) / len(messages)

    @staticmethod
    def consistency_score(steps: Sequence[ReasoningStep]) -> float:
        """Share of adjacent pairs where the next step consumes an earlier output."""
        if len(steps) < 2:
            return 1.0
        pairs = list(zip(steps, steps[1:], strict=False))
        consumed = sum(1 for a, b in pairs if set(a.outputs) & set(b.inputs))
        return consumed / len(pairs)

    @staticmethod
    def completeness_score(steps: Sequence[ReasoningStep]) -> float:
        present = {s.category for s in steps}
        return sum(1 for c in _REQUIRED_CATEGORIES if c in present) / len(_REQUIRED_CATEGORIES)

    @staticmethod
    def relevance_score(text: str, steps: Sequence[ReasoningStep]) -> float:
        """Keyword overlap between each step's text and the input, averaged over steps."""
        input_words = set(keywords(text))
        if not input_words or not steps:
            return NEUTRAL_RELEVANCE
        overlap = sum(
            len(input_words & set(keywords(step.text))) / len(input_words) for step in steps
        )
        return clamp(overlap / len(steps))

    @staticmethod
    def logical_flow_score(steps: Sequence[ReasoningStep]) -> float:
        """1 minus the share of adjacent pairs whose confidence swings past the limit."""
        if len(steps) < 2:
            return 1.0
        pairs = list(zip(steps, steps[1:], strict=False))
        swings = sum(1 for a, b in pairs if abs(a.confidence - b.confidence) > SWING_LIMIT)
        return 1.0 - swings / len(pairs)

    @staticmethod
    def chain_confidence(steps: Sequence[ReasoningStep]) -> float:
        """Position-weighted average; earlier steps weigh more (1 / (index + 1))."""
        weights = [1 / (i + 1) for i in range(len(steps))]
        return weighted_confidence([s.confidence for s in steps], weights)

    # -- Introspection ---------------------------------------------------------

    def get_history(self) -> list[ReasoningChain]:
        return list(self._history)

    def get_chain(self, chain_id: str) -> ReasoningChain | None:
        return next((c for c in self._history if c.id == chain_id), None)

    def get_stats(self) -> dict[str, Any]:
        count = len(self._history)
        if not count:
            return {"total_chains": 0, "average_processing_time": 0.0, "average_confidence": 0.0}
        return {
            "total_chains": count,
            "average_processing_time": sum(c.processing_time for c in self._history) / count,
            "average_confidence": sum(c.confidence for c in self._history) / count,
        }
