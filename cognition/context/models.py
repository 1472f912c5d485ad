"""Data models for conversation context tracking."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class FlowState(StrEnum):
    """How the latest message relates to the conversation so far."""

    NEW = "new"
    CONTINUING = "continuing"
    FOLLOW_UP = "follow_up"
    TOPIC_CHANGE = "topic_change"


class MessageMetadata(BaseModel):
    """Optional annotations attached to an assistant turn."""

    model_config = ConfigDict(frozen=True)

    confidence: float | None = None
    sources: tuple[str, ...] = ()


class Message(BaseModel):
    """A single conversation turn. Immutable once appended."""

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime
    metadata: MessageMetadata | None = None


class Entity(BaseModel):
    """A value picked out of a message, e.g. a number or a proper noun."""

    type: str
    value: str
    confidence: float


class ConversationContext(BaseModel):
    """Rolling state of one chat session."""

    id: str = Field(default_factory=lambda: f"ctx_{uuid.uuid4().hex}")
    messages: list[Message] = Field(default_factory=list)
    topics: list[str] = Field(default_factory=list)
    entities: list[Entity] = Field(default_factory=list)
    started_at: datetime
    last_activity: datetime
    flow: FlowState = FlowState.NEW


@dataclass(frozen=True)
class ContextSnapshot:
    """Read-only view of the context handed to modules and engines."""

    context_id: str
    current_input: str
    topics: list[str] = field(default_factory=list)
    entities: list[Entity] = field(default_factory=list)
    flow: FlowState = FlowState.NEW
    session_duration: float = 0.0
    message_count: int = 0
    recent_messages: list[Message] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly form, used when interactions are queued for learning."""
        return {
            "context_id": self.context_id,
            "current_input": self.current_input,
            "topics": list(self.topics),
            "entities": [e.model_dump() for e in self.entities],
            "flow": self.flow.value,
            "session_duration": self.session_duration,
            "message_count": self.message_count,
            "recent_messages": [m.model_dump(mode="json") for m in self.recent_messages],
        }
