"""ContextManager — bounded, rolling conversation state for one chat session."""

from __future__ import annotations

import logging
import re
from collections import deque
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from cognition.clock import utc_now
from cognition.config import Settings, settings
from cognition.context.models import (
    ContextSnapshot,
    ConversationContext,
    Entity,
    FlowState,
    Message,
    MessageMetadata,
)
from cognition.scoring import jaccard_similarity, tokenize

if TYPE_CHECKING:
    from cognition.clock import Clock

logger = logging.getLogger(__name__)

# Keyword → topic category. Multi-word keys are matched as phrases.
TOPIC_KEYWORDS: dict[str, str] = {
    # mathematics
    "math": "mathematics",
    "mathematics": "mathematics",
    "calculate": "mathematics",
    "equation": "mathematics",
    "algebra": "mathematics",
    "geometry": "mathematics",
    "multiply": "mathematics",
    "divide": "mathematics",
    "plus": "mathematics",
    "minus": "mathematics",
    "sum": "mathematics",
    "number": "mathematics",
    # science
    "science": "science",
    "physics": "science",
    "chemistry": "science",
    "biology": "science",
    "atom": "science",
    "energy": "science",
    "planet": "science",
    "gravity": "science",
    # technology
    "code": "technology",
    "coding": "technology",
    "programming": "technology",
    "program": "technology",
    "function": "technology",
    "computer": "technology",
    "software": "technology",
    "algorithm": "technology",
    "python": "technology",
    "javascript": "technology",
    # philosophy
    "philosophy": "philosophy",
    "ethics": "philosophy",
    "moral": "philosophy",
    "consciousness": "philosophy",
    "existence": "philosophy",
    "free will": "philosophy",
    "meaning of life": "philosophy",
    # vocabulary
    "define": "vocabulary",
    "definition": "vocabulary",
    "meaning": "vocabulary",
    "word": "vocabulary",
    "synonym": "vocabulary",
    "antonym": "vocabulary",
    "spell": "vocabulary",
}

NUMBER_CONFIDENCE = 0.9
PROPER_NOUN_CONFIDENCE = 0.7

_NUMBER_RE = re.compile(r"\b\d+\b")
_PROPER_NOUN_RE = re.compile(r"\b[A-Z][a-z]+(?:\s+[A-Z][a-z]+)*\b")

# Capitalized only because they open a sentence.
_SENTENCE_WORDS = frozenset(
    {
        "A", "An", "And", "Are", "Can", "Could", "Define", "Do", "Does", "Explain",
        "Hello", "Hey", "Hi", "How", "If", "Is", "It", "My", "No", "Please",
        "So", "Tell", "Thanks", "The", "This", "What", "When", "Where", "Which",
        "Who", "Why", "Yes", "You",
    }
)


def extract_topics(text: str) -> list[str]:
    """Topic categories mentioned in *text*, in table order."""
    lowered = text.lower()
    tokens = set(tokenize(text))
    found: dict[str, None] = {}
    for keyword, category in TOPIC_KEYWORDS.items():
        hit = keyword in lowered if " " in keyword else keyword in tokens
        if hit:
            found.setdefault(category, None)
    return list(found)


def extract_entities(text: str) -> list[Entity]:
    """Numbers and candidate proper nouns found in *text*."""
    entities = [
        Entity(type="number", value=match, confidence=NUMBER_CONFIDENCE)
        for match in _NUMBER_RE.findall(text)
    ]
    for match in _PROPER_NOUN_RE.findall(text):
        words = match.split()
        while words and words[0] in _SENTENCE_WORDS:
            words.pop(0)
        if words:
            entities.append(
                Entity(type="proper_noun", value=" ".join(words), confidence=PROPER_NOUN_CONFIDENCE)
            )
    return entities


class ContextManager:
    """Owns one rolling conversation context plus a short archive of past sessions.

    Args:
        config: Settings to read bounds and thresholds from (default: global settings).
        clock: Time source (default: current UTC time).
    """

    def __init__(self, config: Settings | None = None, clock: Clock = utc_now) -> None:
        self._config = config or settings
        self._clock = clock
        self._current: ConversationContext | None = None
        self._history: deque[ConversationContext] = deque(
            maxlen=self._config.max_archived_sessions
        )

    @property
    def current(self) -> ConversationContext | None:
        return self._current

    @property
    def history(self) -> tuple[ConversationContext, ...]:
        """Archived sessions, oldest first."""
        return tuple(self._history)

    # -- Session lifecycle -----------------------------------------------------

    def create_context(self) -> ConversationContext:
        """Start a new session, archiving the current one if present."""
        if self._current is not None:
            self.end_session()
        now = self._clock()
        self._current = ConversationContext(started_at=now, last_activity=now)
        logger.debug("Started conversation context %s", self._current.id)
        return self._current

    def is_session_active(self) -> bool:
        """True while the current session has seen activity within the timeout."""
        if self._current is None:
            return False
        idle = (self._clock() - self._current.last_activity).total_seconds()
        return idle < self._config.session_timeout_seconds

    def end_session(self) -> ConversationContext | None:
        """Archive the current session. Returns it, or None if there was none."""
        ctx = self._current
        if ctx is None:
            return None
        self._history.append(ctx)
        self._current = None
        logger.info(
            "Archived conversation %s (%d messages, %d archived)",
            ctx.id,
            len(ctx.messages),
            len(self._history),
        )
        return ctx

    def _ensure_context(self) -> ConversationContext:
        if self._current is not None and not self.is_session_active():
            logger.info("Conversation %s timed out", self._current.id)
            self.end_session()
        if self._current is None:
            return self.create_context()
        return self._current

    # -- Messages --------------------------------------------------------------

    def add_message(
        self,
        role: str,
        content: str,
        *,
        metadata: MessageMetadata | dict[str, Any] | None = None,
    ) -> Message:
        """Append a message and refresh topics/entities.

        The flow state is recomputed for user messages only; assistant replies
        leave it as the preceding user turn set it.
        """
        ctx = self._ensure_context()
        if isinstance(metadata, dict):
            metadata = MessageMetadata(**metadata)
        message = Message(role=role, content=content, timestamp=self._clock(), metadata=metadata)

        seen_topics = set(ctx.topics)
        new_topics = extract_topics(content)

        ctx.messages.append(message)
        if role == "user":
            ctx.flow = self._compute_flow(ctx, message, new_topics, seen_topics)
        ctx.last_activity = message.timestamp

        for topic in new_topics:
            if topic in ctx.topics:
                ctx.topics.remove(topic)
            ctx.topics.append(topic)
        for entity in extract_entities(content):
            ctx.entities = [
                e for e in ctx.entities if (e.type, e.value) != (entity.type, entity.value)
            ]
            ctx.entities.append(entity)

        self._enforce_bounds(ctx)
        return message

    def _compute_flow(
        self,
        ctx: ConversationContext,
        message: Message,
        new_topics: list[str],
        seen_topics: set[str],
    ) -> FlowState:
        if len(ctx.messages) <= 2:
            return FlowState.NEW

        prior_user = next(
            (m for m in reversed(ctx.messages[:-1]) if m.role == "user"),
            None,
        )
        if prior_user is not None:
            gap = (message.timestamp - prior_user.timestamp).total_seconds()
            similarity = jaccard_similarity(message.content, prior_user.content)
            if (
                gap < self._config.follow_up_window_seconds
                and similarity > self._config.follow_up_similarity
            ):
                return FlowState.FOLLOW_UP

        if not set(new_topics) <= seen_topics:
            return FlowState.TOPIC_CHANGE
        return FlowState.CONTINUING

    def _enforce_bounds(self, ctx: ConversationContext) -> None:
        if len(ctx.messages) > self._config.max_messages:
            ctx.messages = ctx.messages[-self._config.max_messages :]
        if len(ctx.topics) > self._config.max_topics:
            ctx.topics = ctx.topics[-self._config.max_topics :]
        if len(ctx.entities) > self._config.max_entities:
            ctx.entities = ctx.entities[-self._config.max_entities :]

    def clear_context(self) -> int:
        """Drop the current session's messages without archiving. Returns the count."""
        if self._current is None:
            return 0
        count = len(self._current.messages)
        now = self._clock()
        self._current.messages.clear()
        self._current.flow = FlowState.NEW
        self._current.started_at = now
        self._current.last_activity = now
        return count

    # -- Reads -----------------------------------------------------------------

    def extract_context(self, current_input: str = "") -> ContextSnapshot:
        """Snapshot of the current session for modules and engines.

        Creates a context when none exists rather than failing.
        """
        ctx = self._ensure_context()
        return ContextSnapshot(
            context_id=ctx.id,
            current_input=current_input,
            topics=ctx.topics[-self._config.max_topics :],
            entities=ctx.entities[-self._config.max_entities :],
            flow=ctx.flow,
            session_duration=(self._clock() - ctx.started_at).total_seconds(),
            message_count=len(ctx.messages),
            recent_messages=ctx.messages[-self._config.recent_message_count :],
        )

    def get_context_stats(self) -> dict[str, Any]:
        ctx = self._current
        if ctx is None:
            return {
                "context_id": None,
                "message_count": 0,
                "duration": 0.0,
                "topics": [],
                "flow": FlowState.NEW.value,
                "last_activity": None,
                "archived_sessions": len(self._history),
            }
        return {
            "context_id": ctx.id,
            "message_count": len(ctx.messages),
            "duration": (self._clock() - ctx.started_at).total_seconds(),
            "topics": list(ctx.topics),
            "flow": ctx.flow.value,
            "last_activity": ctx.last_activity.isoformat(),
            "archived_sessions": len(self._history),
        }

    def get_context_summary(self) -> str:
        """One-line description of the current session."""
        stats = self.get_context_stats()
        topics = ", ".join(stats["topics"]) if stats["topics"] else "general conversation"
        minutes = int(stats["duration"] // 60)
        return f"Session: {minutes}m, Messages: {stats['message_count']}, Topics: {topics}"

    # -- Session persistence ---------------------------------------------------

    def export_context(self) -> dict[str, Any]:
        """JSON-friendly snapshot of the current session and the archive."""
        return {
            "current": self._current.model_dump(mode="json") if self._current else None,
            "history": [ctx.model_dump(mode="json") for ctx in self._history],
        }

    def import_context(self, data: dict[str, Any]) -> bool:
        """Restore state produced by ``export_context``. Returns False on bad data."""
        try:
            current = data.get("current")
            restored = ConversationContext.model_validate(current) if current else None
            history = [ConversationContext.model_validate(c) for c in data.get("history", [])]
        except (ValidationError, AttributeError, TypeError) as exc:
            logger.warning("Ignoring invalid context snapshot: %s", exc)
            return False

        self._current = restored
        self._history.clear()
        self._history.extend(history)
        logger.info(
            "Imported context (current=%s, archived=%d)",
            restored.id if restored else None,
            len(self._history),
        )
        return True
