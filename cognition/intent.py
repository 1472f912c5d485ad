"""Ordered intent rule table.

Rules are evaluated top to bottom and the first match wins. Each rule names
the modules it routes to and the extractor that pulls entities out of the
matching utterance, so every rule can be exercised on its own.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from cognition.scoring import keywords

if TYPE_CHECKING:
    from collections.abc import Callable

    from cognition.context.models import ContextSnapshot

GENERAL_INTENT = "general"
FALLBACK_MODULES = ("vocabulary", "facts", "mathematics")
FALLBACK_CONFIDENCE = 0.4


# -- Entity extractors ---------------------------------------------------------

_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")
_OPERATOR_RE = re.compile(r"(?<=[\d\s])[-+*/x×÷^%](?=[\s\d])")
_VOCAB_TARGET_RE = re.compile(
    r"(?:define|definition of|meaning of|synonyms? (?:of|for)|antonyms? (?:of|for)|spell)\s+"
    r"[\"']?([a-z][a-z'-]*)",
    re.IGNORECASE,
)
_WHAT_DOES_MEAN_RE = re.compile(r"what does [\"']?([a-z][a-z'-]*)[\"']? mean", re.IGNORECASE)
_SUBJECT_RE = re.compile(
    r"(?:tell me about|who (?:is|was)|what (?:is|are|was|were)|where is|when (?:did|was)|"
    r"facts? about|information (?:about|on)|history of)\s+(.+)",
    re.IGNORECASE,
)
_PERSONAL_RE = re.compile(r"(?:my name is|call me|i am|i'm)\s+([A-Za-z][\w'-]*)", re.IGNORECASE)


def extract_math_terms(text: str) -> list[str]:
    """Numbers and arithmetic operators, in order of appearance."""
    terms = _NUMBER_RE.findall(text)
    terms.extend(_OPERATOR_RE.findall(text))
    return terms


def extract_vocabulary_target(text: str) -> list[str]:
    """The word being asked about, or the longest content word."""
    match = _WHAT_DOES_MEAN_RE.search(text) or _VOCAB_TARGET_RE.search(text)
    if match:
        return [match.group(1).lower()]
    words = keywords(text)
    return [max(words, key=len)] if words else []


def extract_subject(text: str) -> list[str]:
    """The subject phrase of a factual question."""
    match = _SUBJECT_RE.search(text)
    if match:
        subject = match.group(1).strip().rstrip("?!. ")
        if subject:
            return [subject]
    return keywords(text)[:3]


def extract_keywords(text: str) -> list[str]:
    return keywords(text)[:5]


def extract_personal_details(text: str) -> list[str]:
    match = _PERSONAL_RE.search(text)
    if match:
        return [match.group(1)]
    return []


# -- Rule table ----------------------------------------------------------------


@dataclass(frozen=True)
class IntentRule:
    """One row of the intent table."""

    intent: str
    confidence: float
    patterns: tuple[re.Pattern[str], ...]
    modules: tuple[str, ...]
    extractor: Callable[[str], list[str]] = extract_keywords

    def matches(self, text: str) -> bool:
        return any(p.search(text) for p in self.patterns)


def _compile(*patterns: str) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


INTENT_RULES: tuple[IntentRule, ...] = (
    IntentRule(
        intent="mathematics",
        confidence=0.95,
        patterns=_compile(
            r"\d+(?:\.\d+)?\s*[-+*/x×÷^%]\s*\d+",
            r"\b(?:calculate|compute|solve|equation|multiply|divide|plus|minus|times|"
            r"square root|percent(?:age)? of|sum of)\b",
        ),
        modules=("mathematics",),
        extractor=extract_math_terms,
    ),
    IntentRule(
        intent="vocabulary",
        confidence=0.9,
        patterns=_compile(
            r"\b(?:define|definition of|meaning of|synonyms?|antonyms?|spell)\b",
            r"\bwhat does [\"']?\w+[\"']? mean\b",
        ),
        modules=("vocabulary",),
        extractor=extract_vocabulary_target,
    ),
    IntentRule(
        intent="facts",
        confidence=0.8,
        patterns=_compile(
            r"\b(?:tell me about|who (?:is|was)|what (?:is|are|was|were)|where is|"
            r"when (?:did|was)|facts? about|information (?:about|on)|history of)\b",
        ),
        modules=("facts",),
        extractor=extract_subject,
    ),
    IntentRule(
        intent="coding",
        confidence=0.85,
        patterns=_compile(
            r"\b(?:code|coding|program(?:ming)?|function|python|javascript|typescript|"
            r"bug|debug|algorithm|compile|syntax)\b",
        ),
        modules=("coding",),
    ),
    IntentRule(
        intent="personal",
        confidence=0.9,
        patterns=_compile(
            r"\b(?:my name is|call me|i am|i'm|remember that|do you remember|who am i|"
            r"what do you know about me)\b",
        ),
        modules=("user-info",),
        extractor=extract_personal_details,
    ),
    IntentRule(
        intent="philosophy",
        confidence=0.75,
        patterns=_compile(
            r"\b(?:philosophy|philosophical|ethics|ethical|moral|morality|consciousness|"
            r"existence|free will|meaning of life)\b",
        ),
        modules=("philosophy",),
    ),
    IntentRule(
        intent="system",
        confidence=0.95,
        patterns=_compile(
            r"^\s*(?:status|help|stats|diagnostics?|reset|clear(?: context)?)\s*[.!?]*\s*$",
            r"\bsystem (?:status|check|stats)\b",
        ),
        modules=(),
    ),
)


# -- Classification ------------------------------------------------------------


@dataclass
class IntentAnalysis:
    """Result of classifying one utterance."""

    intent: str
    confidence: float
    entities: list[str] = field(default_factory=list)
    suggested_modules: list[str] = field(default_factory=list)
    context: ContextSnapshot | None = None
    matched: bool = True


def match_rule(text: str, rules: tuple[IntentRule, ...] = INTENT_RULES) -> IntentRule | None:
    """First rule matching *text*, or None."""
    for rule in rules:
        if rule.matches(text):
            return rule
    return None


def classify_intent(
    text: str,
    context: ContextSnapshot | None = None,
    rules: tuple[IntentRule, ...] = INTENT_RULES,
) -> IntentAnalysis:
    """Classify *text* against the rule table.

    When no rule matches, the analysis is ``general`` with a low confidence
    and a broad module candidate set.
    """
    rule = match_rule(text, rules)
    if rule is None:
        return IntentAnalysis(
            intent=GENERAL_INTENT,
            confidence=FALLBACK_CONFIDENCE,
            entities=extract_keywords(text),
            suggested_modules=list(FALLBACK_MODULES),
            context=context,
            matched=False,
        )
    return IntentAnalysis(
        intent=rule.intent,
        confidence=rule.confidence,
        entities=rule.extractor(text),
        suggested_modules=list(rule.modules),
        context=context,
    )
