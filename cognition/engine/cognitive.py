"""CognitiveEngine — routes each input through intent, modules, reasoning and learning.

Requests are serialized through a single queue worker: one input is handled
end to end (context, intent, module dispatch, synthesis, bookkeeping) before
the next one starts. Module calls inside a request fan out concurrently.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import re
from typing import TYPE_CHECKING, Any

from cognition.clock import utc_now
from cognition.config import Settings, settings
from cognition.context.manager import ContextManager
from cognition.context.models import MessageMetadata
from cognition.engine.fallback import build_fallback
from cognition.engine.models import ENGINE_SOURCE, EngineResponse, FailureReason
from cognition.intent import classify_intent
from cognition.learning.engine import LearningEngine
from cognition.modules.base import ModuleResponse
from cognition.modules.payloads import render_payload
from cognition.modules.registry import ModuleRegistry
from cognition.reasoning.engine import ReasoningEngine
from cognition.scoring import aggregate_confidence

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from cognition.clock import Clock
    from cognition.context.models import ContextSnapshot
    from cognition.intent import IntentAnalysis
    from cognition.modules.base import KnowledgeModule
    from cognition.reasoning.models import ReasoningChain

    _Request = tuple[str, asyncio.Future[EngineResponse]]

logger = logging.getLogger(__name__)

SYSTEM_INTENT = "system"
LOW_CONFIDENCE = 0.5
_CLEAR_RE = re.compile(r"^\s*(?:reset|clear(?: context)?)\s*[.!?]*\s*$", re.IGNORECASE)


class CognitiveEngine:
    """The single entry point for turning user input into an answer.

    Collaborators that are not supplied are built with the same config and
    clock.
    """

    def __init__(
        self,
        *,
        context_manager: ContextManager | None = None,
        reasoning_engine: ReasoningEngine | None = None,
        learning_engine: LearningEngine | None = None,
        config: Settings | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._config = config or settings
        self._clock = clock
        self._context = context_manager or ContextManager(self._config, clock)
        self._reasoning = reasoning_engine or ReasoningEngine(self._config, clock)
        self._learning = learning_engine or LearningEngine(config=self._config, clock=clock)
        self._registry = ModuleRegistry()
        self._initialized = False

        self._queue: asyncio.Queue[_Request] = asyncio.Queue()
        self._worker: asyncio.Task[None] | None = None

        self._processed = 0
        self._fallbacks = 0
        self._failures: dict[str, int] = {}

    @property
    def context_manager(self) -> ContextManager:
        return self._context

    @property
    def reasoning_engine(self) -> ReasoningEngine:
        return self._reasoning

    @property
    def learning_engine(self) -> LearningEngine:
        return self._learning

    @property
    def registry(self) -> ModuleRegistry:
        return self._registry

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    # -- Lifecycle -------------------------------------------------------------

    def initialize(
        self, modules: ModuleRegistry | Iterable[KnowledgeModule] = ()
    ) -> CognitiveEngine:
        """Bind the knowledge modules to route to. Modules arrive already built."""
        if isinstance(modules, ModuleRegistry):
            self._registry = modules
        else:
            self._registry = ModuleRegistry(modules)
        self._initialized = True
        logger.info(
            "Cognitive engine initialized with %d module(s): %s",
            len(self._registry),
            ", ".join(self._registry.names) or "none",
        )
        return self

    async def start(self) -> None:
        """Start the queue worker and the learning sweeps."""
        self._ensure_worker()
        await self._learning.start()

    async def stop(self) -> None:
        """Stop the worker, answer queued requests with a shutdown notice, stop learning."""
        worker, self._worker = self._worker, None
        if worker is not None:
            worker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await worker

        pending: list[_Request] = []
        while not self._queue.empty():
            pending.append(self._queue.get_nowait())
            self._queue.task_done()
        for text, future in pending:
            if not future.done():
                future.set_result(self.create_fallback_response(text, FailureReason.SHUTDOWN))
        if pending:
            logger.info("Answered %d pending request(s) with a shutdown notice", len(pending))

        await self._learning.stop()
        logger.info("Cognitive engine stopped")

    def _ensure_worker(self) -> None:
        if not self.running:
            self._worker = asyncio.create_task(self._drain_queue(), name="cognitive-engine-worker")

    async def _drain_queue(self) -> None:
        while True:
            text, future = await self._queue.get()
            try:
                if not future.done():
                    response = await self._handle(text)
                    if not future.done():
                        future.set_result(response)
            except asyncio.CancelledError:
                if not future.done():
                    future.set_result(self.create_fallback_response(text, FailureReason.SHUTDOWN))
                raise
            finally:
                self._queue.task_done()

    # -- Request handling ------------------------------------------------------

    async def process_input(self, text: str) -> EngineResponse:
        """Answer *text*. Never raises; failures come back as fallback responses."""
        self._ensure_worker()
        future: asyncio.Future[EngineResponse] = asyncio.get_running_loop().create_future()
        await self._queue.put((text, future))
        return await future

    async def _handle(self, text: str) -> EngineResponse:
        try:
            response = await self._respond(text)
        except Exception:
            logger.exception("Failed to process input")
            self._count_failure(FailureReason.INTERNAL_ERROR)
            response = self.create_fallback_response(text, FailureReason.INTERNAL_ERROR)

        self._processed += 1
        if response.fallback:
            self._fallbacks += 1
        if response.intent != SYSTEM_INTENT:
            self._record(text, response)
        return response

    async def _respond(self, text: str) -> EngineResponse:
        snapshot = self._context.extract_context(text)
        analysis = self.analyze_intent(text, snapshot)
        if analysis.intent == SYSTEM_INTENT:
            return self._system_command(text)

        modules = self.select_modules(analysis)
        if not modules:
            self._count_failure(FailureReason.NO_MODULES)
            return self.create_fallback_response(text, FailureReason.NO_MODULES)

        responses, dropped = await self._dispatch(text, modules, snapshot)
        if not responses:
            reason = (
                FailureReason.NO_CONFIDENT_ANSWER
                if analysis.matched
                else FailureReason.CLASSIFICATION_MISS
            )
            self._count_failure(reason)
            notes = [f"{name}: {why.description}" for name, why in dropped.items()]
            notes.extend(self._learning.get_recommendations(text))
            return self.create_fallback_response(text, reason, "; ".join(notes) or None)

        chain = None
        if self._config.reasoning_enabled:
            chain = self._reasoning.create_reasoning_chain(text, snapshot, responses)
        return self.build_response(responses, analysis, text, chain)

    def _system_command(self, text: str) -> EngineResponse:
        if _CLEAR_RE.match(text):
            cleared = self._context.clear_context()
            logger.info("Cleared %d message(s) on request", cleared)
            return EngineResponse(
                response=f"Conversation context cleared ({cleared} message(s) removed).",
                confidence=0.95,
                sources=[ENGINE_SOURCE],
                reasoning=[f"Fallback response: {FailureReason.SYSTEM_COMMAND.description}"],
                intent=SYSTEM_INTENT,
                fallback=True,
            )
        return self.create_fallback_response(text, FailureReason.SYSTEM_COMMAND)

    def _record(self, text: str, response: EngineResponse) -> None:
        """Append the exchange to the context and hand it to learning.

        Failures are logged and swallowed so the answer is still delivered.
        """
        snapshot = None
        try:
            snapshot = self._context.extract_context(text)
            self._context.add_message("user", text)
            self._context.add_message(
                "assistant",
                response.response,
                metadata=MessageMetadata(
                    confidence=response.confidence, sources=tuple(response.sources)
                ),
            )
        except Exception:
            logger.exception("Failed to update conversation context")

        try:
            self._learning.learn_from_interaction(
                text,
                response.response,
                response.confidence,
                response.sources[0] if response.sources else ENGINE_SOURCE,
                snapshot,
            )
        except Exception:
            logger.exception("Failed to queue interaction for learning")

    # -- Routing ---------------------------------------------------------------

    def analyze_intent(self, text: str, context: ContextSnapshot | None = None) -> IntentAnalysis:
        analysis = classify_intent(text, context)
        logger.debug(
            "Intent %s (%.2f), modules=%s", analysis.intent, analysis.confidence,
            analysis.suggested_modules,
        )
        return analysis

    def select_modules(self, analysis: IntentAnalysis) -> list[KnowledgeModule]:
        """Initialized modules for the analysis, or every initialized module."""
        selected = self._registry.resolve(analysis.suggested_modules)
        if not selected:
            selected = self._registry.initialized_modules()
        return selected

    async def process_with_modules(
        self,
        text: str,
        modules: Sequence[KnowledgeModule],
        context: ContextSnapshot | None = None,
    ) -> list[ModuleResponse]:
        """Query *modules* concurrently; confident successes, best first."""
        responses, _dropped = await self._dispatch(text, modules, context)
        return responses

    async def _dispatch(
        self,
        text: str,
        modules: Sequence[KnowledgeModule],
        context: ContextSnapshot | None,
    ) -> tuple[list[ModuleResponse], dict[str, FailureReason]]:
        results = await asyncio.gather(*(self._call(m, text, context) for m in modules))

        responses: list[ModuleResponse] = []
        dropped: dict[str, FailureReason] = {}
        for module, result in zip(modules, results, strict=True):
            if isinstance(result, FailureReason):
                dropped[module.name] = result
                self._count_failure(result)
            elif result.confidence > self._config.min_module_confidence:
                responses.append(result)
            else:
                logger.debug(
                    "Dropping %s: confidence %.2f below threshold", module.name, result.confidence
                )
        responses.sort(key=lambda r: r.confidence, reverse=True)
        return responses, dropped

    async def _call(
        self,
        module: KnowledgeModule,
        text: str,
        context: ContextSnapshot | None,
    ) -> ModuleResponse | FailureReason:
        timeout = self._config.module_timeout_seconds
        try:
            result = await asyncio.wait_for(module.process(text, context), timeout=timeout)
        except TimeoutError:
            logger.warning("Module %s timed out after %.1fs", module.name, timeout)
            return FailureReason.MODULE_TIMEOUT
        except Exception:
            logger.exception("Module %s failed", module.name)
            return FailureReason.MODULE_FAILURE

        if not isinstance(result, ModuleResponse):
            logger.warning("Module %s returned %r instead of a ModuleResponse", module.name, result)
            return FailureReason.MODULE_FAILURE
        if not result.success:
            logger.warning("Module %s reported failure", module.name)
            return FailureReason.MODULE_FAILURE
        return result

    # -- Synthesis -------------------------------------------------------------

    def build_response(
        self,
        responses: Sequence[ModuleResponse],
        analysis: IntentAnalysis,
        text: str,
        chain: ReasoningChain | None = None,
    ) -> EngineResponse:
        """Combine ranked module responses into one answer."""
        if not responses:
            return self.create_fallback_response(text, FailureReason.NO_CONFIDENT_ANSWER)

        primary = responses[0]
        confidence = max(
            self._config.response_confidence_floor,
            aggregate_confidence(r.confidence for r in responses),
        )
        reasoning = []
        if not analysis.matched:
            reasoning.append("No intent rule matched; consulted general-purpose modules")
        reasoning.extend(
            [
                f"Intent: {analysis.intent} (confidence {analysis.confidence:.2f})",
                f"Primary source: {primary.source} (confidence {primary.confidence:.2f})",
                f"Consulted {len(responses)} module(s)",
            ]
        )
        if analysis.entities:
            reasoning.append(f"Key entities: {', '.join(analysis.entities[:3])}")
        if chain is not None:
            reasoning.append(f"Reasoning chain confidence: {chain.confidence:.2f}")
        if confidence < LOW_CONFIDENCE:
            reasoning.append(
                f"Low confidence: module answers averaged {confidence:.2f}, treat with care"
            )

        return EngineResponse(
            response=render_payload(primary.data),
            confidence=confidence,
            sources=[r.source for r in responses],
            reasoning=reasoning,
            intent=analysis.intent,
            chain_id=chain.id if chain is not None else None,
        )

    def create_fallback_response(
        self,
        text: str,
        reason: FailureReason,
        detail: str | None = None,
    ) -> EngineResponse:
        """Deterministic answer that needs no knowledge module."""
        return build_fallback(text, reason, modules=self._registry.names, detail=detail)

    # -- Introspection ---------------------------------------------------------

    def _count_failure(self, reason: FailureReason) -> None:
        self._failures[reason.value] = self._failures.get(reason.value, 0) + 1

    def get_stats(self) -> dict[str, Any]:
        return {
            "initialized": self._initialized,
            "running": self.running,
            "modules": self._registry.names,
            "initialized_modules": [m.name for m in self._registry.initialized_modules()],
            "processed": self._processed,
            "fallbacks": self._fallbacks,
            "failures": dict(self._failures),
            "queue_size": self._queue.qsize(),
            "context": self._context.get_context_stats(),
            "reasoning": self._reasoning.get_stats(),
            "learning": self._learning.get_learning_stats(),
        }
