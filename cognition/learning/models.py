"""Data models for interaction learning."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from cognition.context.models import ContextSnapshot


class PatternType(StrEnum):
    INPUT_SHAPE = "input_shape"
    RESPONSE_QUALITY = "response_quality"
    CONTEXT = "context"
    SIMILARITY = "similarity"
    BEHAVIOR = "behavior"
    SUCCESS = "success"
    TEMPORAL = "temporal"


def pattern_id(pattern_type: PatternType, key: str) -> str:
    return f"{pattern_type.value}:{key}"


class LearningPattern(BaseModel):
    """A recurring interaction pattern and its running statistics.

    Attributes:
        id: ``"<type>:<key>"``.
        confidence: Mean of every confidence sample observed so far.
        occurrences: Number of observations. Only ever increases.
        examples: Most recent inputs that produced the pattern (capped).
        sources: How often each answering source was involved.
    """

    id: str
    type: PatternType
    key: str
    confidence: float
    occurrences: int = 1
    examples: list[str] = Field(default_factory=list)
    sources: dict[str, int] = Field(default_factory=dict)
    first_seen: datetime
    last_seen: datetime

    def observe(
        self,
        confidence: float,
        example: str,
        source: str,
        seen_at: datetime,
        example_limit: int,
    ) -> None:
        """Fold one more observation into the running statistics."""
        self.occurrences += 1
        self.confidence += (confidence - self.confidence) / self.occurrences
        self.examples.append(example)
        if len(self.examples) > example_limit:
            self.examples = self.examples[-example_limit:]
        if source:
            self.sources[source] = self.sources.get(source, 0) + 1
        self.last_seen = max(self.last_seen, seen_at)

    @property
    def top_source(self) -> str | None:
        if not self.sources:
            return None
        return max(self.sources.items(), key=lambda item: item[1])[0]


@dataclass
class Interaction:
    """One (input, response, confidence, source, context) tuple awaiting analysis."""

    input: str
    response: str
    confidence: float
    source: str
    timestamp: datetime
    context: ContextSnapshot | None = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    extracted: bool = False


@dataclass
class PersistenceOutcome:
    """Result of one attempt to flush patterns to the durable store."""

    ok: bool
    at: datetime
    pattern_count: int = 0
    error: str | None = None
