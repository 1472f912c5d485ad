"""Token similarity and confidence aggregation helpers."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

_TOKEN_RE = re.compile(r"\w+")

STOP_WORDS = frozenset(
    {
        "the", "and", "for", "are", "but", "not", "you", "your", "with", "this",
        "that", "from", "have", "has", "was", "were", "what", "who", "how", "why",
        "when", "where", "which", "can", "does", "did", "into", "about", "its",
        "our", "they", "them", "then", "than", "there", "their", "would",
        "could", "should", "will", "just", "also", "please", "tell",
    }
)


def tokenize(text: str) -> list[str]:
    """Lowercase word tokens of *text*."""
    return _TOKEN_RE.findall(text.lower())


def keywords(text: str) -> list[str]:
    """Unique content words longer than two characters, in first-seen order."""
    seen: dict[str, None] = {}
    for token in tokenize(text):
        if len(token) > 2 and token not in STOP_WORDS:
            seen.setdefault(token, None)
    return list(seen)


def jaccard_similarity(a: str, b: str) -> float:
    """Token-set Jaccard similarity. Two empty texts score 0.0."""
    set_a = set(tokenize(a))
    set_b = set(tokenize(b))
    union = set_a | set_b
    if not union:
        return 0.0
    return len(set_a & set_b) / len(union)


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def aggregate_confidence(values: Iterable[float]) -> float:
    """Average a set of confidences into one score in [0, 1].

    Returns 0.0 for an empty input.
    """
    items = list(values)
    if not items:
        return 0.0
    return clamp(sum(items) / len(items))


def weighted_confidence(values: Sequence[float], weights: Sequence[float]) -> float:
    """Weighted mean of *values*, clamped to [0, 1]."""
    total_weight = sum(weights)
    if not values or total_weight <= 0:
        return 0.0
    return clamp(sum(v * w for v, w in zip(values, weights, strict=True)) / total_weight)
