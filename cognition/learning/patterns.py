"""Pattern key extraction for learned interactions.

Basic keys (input shape, response quality, context) are computed for every
interaction. Deep keys (similarity, behavior, success, temporal) are computed
by the periodic sweep, which can compare an interaction against the rest of
the queue.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from cognition.learning.models import PatternType
from cognition.scoring import jaccard_similarity, keywords

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from cognition.context.models import ContextSnapshot
    from cognition.learning.models import Interaction

COMPLEX_QUERY_WORDS = 10
RAPID_SESSION_SECONDS = 120
DETAILED_INPUT_CHARS = 100
DETAILED_RESPONSE_CHARS = 500
BRIEF_RESPONSE_CHARS = 50
SUCCESS_RESPONSE_CHARS = 200
SUCCESS_CONFIDENCE = 0.8
STRUGGLE_CONFIDENCE = 0.5

PatternKey = tuple[PatternType, str]


def _rx(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern, re.IGNORECASE)


# Ordered: first match wins.
INPUT_SHAPE_RULES: tuple[tuple[str, re.Pattern[str]], ...] = (
    (
        "definition_request",
        _rx(r"\b(?:define|definition of|meaning of|what does .+ mean)\b|^what is an? "),
    ),
    ("instruction_request", _rx(r"^(?:how (?:do|can|should) i|how to|show me how|steps to)\b")),
    ("explanation_request", _rx(r"^(?:why|explain|how does|how do)\b")),
    ("temporal_request", _rx(r"\b(?:when|what time|what day|what year|how long ago)\b")),
    ("location_request", _rx(r"\bwhere\b")),
    ("calculation_request", _rx(r"\d+\s*[-+*/x×÷]\s*\d+|\b(?:calculate|compute|solve)\b")),
    ("coding_request", _rx(r"\b(?:code|function|program|script|python|javascript)\b")),
    ("debugging_request", _rx(r"\b(?:error|bug|fix|debug|broken|exception)\b")),
    ("gratitude_expression", _rx(r"\b(?:thanks|thank you|appreciate)\b")),
    ("greeting", _rx(r"^\s*(?:hi|hello|hey|greetings|good (?:morning|afternoon|evening))\b")),
)


def input_shape_key(text: str) -> str | None:
    """Classify the shape of a user input."""
    stripped = text.strip()
    for key, pattern in INPUT_SHAPE_RULES:
        if pattern.search(stripped):
            return key
    if len(stripped.split()) > COMPLEX_QUERY_WORDS:
        return "complex_query"
    if stripped.count("?") > 1:
        return "multiple_questions"
    return None


def response_quality_key(response: str, confidence: float) -> str:
    """Confidence band, suffixed with a length band for very long or short answers."""
    if confidence > 0.9:
        band = "high_confidence"
    elif confidence > 0.7:
        band = "medium_confidence"
    elif confidence > 0.5:
        band = "low_confidence"
    else:
        band = "uncertain"

    if len(response) > DETAILED_RESPONSE_CHARS:
        return f"{band}_detailed"
    if len(response) < BRIEF_RESPONSE_CHARS:
        return f"{band}_brief"
    return band


def context_key(context: ContextSnapshot | None) -> str | None:
    """Conversation length band joined with topic breadth, if either applies."""
    if context is None:
        return None
    parts = []
    count = context.message_count
    if count <= 2:
        parts.append("new_conversation")
    elif count > 10:
        parts.append("extended_conversation")
    elif count > 5:
        parts.append("moderate_conversation")

    topics = len(context.topics)
    if topics == 1:
        parts.append("focused")
    elif topics > 3:
        parts.append("multi_topic")
    return "_".join(parts) or None


def basic_keys(interaction: Interaction) -> list[PatternKey]:
    """Input-shape, response-quality and context keys for one interaction."""
    keys: list[PatternKey] = []
    shape = input_shape_key(interaction.input)
    if shape:
        keys.append((PatternType.INPUT_SHAPE, shape))
    quality = response_quality_key(interaction.response, interaction.confidence)
    keys.append((PatternType.RESPONSE_QUALITY, quality))
    ctx = context_key(interaction.context)
    if ctx:
        keys.append((PatternType.CONTEXT, ctx))
    return keys


# -- Deep analysis -------------------------------------------------------------


def similarity_key(
    interaction: Interaction,
    others: Iterable[Interaction],
    threshold: float,
) -> str | None:
    """Cluster key when another queued input is similar enough to this one."""
    for other in others:
        if other.id == interaction.id:
            continue
        if jaccard_similarity(interaction.input, other.input) > threshold:
            words = sorted(keywords(interaction.input)[:3])
            return "similar_" + "_".join(words) if words else "similar_inputs"
    return None


def behavior_keys(interaction: Interaction) -> list[str]:
    ctx = interaction.context
    if ctx is None:
        return []
    keys = []
    if ctx.message_count > 3 and ctx.session_duration < RAPID_SESSION_SECONDS:
        keys.append("rapid_questioning")
    if ctx.message_count > 5 and len(interaction.input) > DETAILED_INPUT_CHARS:
        keys.append("detailed_exploration")
    if len(ctx.topics) > 2:
        keys.append("topic_jumping")
    return keys


def success_keys(interaction: Interaction) -> list[str]:
    source = interaction.source or "unknown"
    if interaction.confidence >= SUCCESS_CONFIDENCE:
        keys = [f"{source}_success"]
        if len(interaction.response) > SUCCESS_RESPONSE_CHARS:
            keys.append(f"{source}_detailed_success")
        return keys
    if interaction.confidence < STRUGGLE_CONFIDENCE:
        return [f"{source}_struggle"]
    return []


def time_of_day(moment: datetime) -> str:
    hour = moment.hour
    if hour < 6:
        return "night"
    if hour < 12:
        return "morning"
    if hour < 18:
        return "afternoon"
    return "evening"


def temporal_key(moment: datetime) -> str:
    """Hour-of-day bucket joined with weekday/weekend."""
    day = "weekend" if moment.weekday() >= 5 else "weekday"
    return f"{time_of_day(moment)}_{day}"


def deep_keys(
    interaction: Interaction,
    others: Iterable[Interaction],
    similarity_threshold: float,
) -> list[PatternKey]:
    """All sweep-time keys for one interaction."""
    keys: list[PatternKey] = []
    similar = similarity_key(interaction, others, similarity_threshold)
    if similar:
        keys.append((PatternType.SIMILARITY, similar))
    keys.extend((PatternType.BEHAVIOR, k) for k in behavior_keys(interaction))
    keys.extend((PatternType.SUCCESS, k) for k in success_keys(interaction))
    keys.append((PatternType.TEMPORAL, temporal_key(interaction.timestamp)))
    return keys
