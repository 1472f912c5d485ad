"""Conversation context tracking: messages, topics, entities and flow."""

from cognition.context.manager import ContextManager
from cognition.context.models import (
    ContextSnapshot,
    ConversationContext,
    Entity,
    FlowState,
    Message,
    MessageMetadata,
)

__all__ = [
    "ContextManager",
    "ContextSnapshot",
    "ConversationContext",
    "Entity",
    "FlowState",
    "Message",
    "MessageMetadata",
]
