"""Tests for the ordered intent rule table."""

import pytest

from cognition.intent import (
    FALLBACK_CONFIDENCE,
    FALLBACK_MODULES,
    INTENT_RULES,
    classify_intent,
    extract_math_terms,
    extract_personal_details,
    extract_subject,
    extract_vocabulary_target,
    match_rule,
)

# -- One test per rule -----------------------------------------------------------


def test_mathematics_rule() -> None:
    analysis = classify_intent("What is 15 * 8?")
    assert analysis.intent == "mathematics"
    assert analysis.confidence == 0.95
    assert analysis.suggested_modules == ["mathematics"]
    assert analysis.entities == ["15", "8", "*"]


def test_vocabulary_rule() -> None:
    analysis = classify_intent("Define serendipity")
    assert analysis.intent == "vocabulary"
    assert analysis.confidence == 0.9
    assert analysis.suggested_modules == ["vocabulary"]
    assert analysis.entities == ["serendipity"]


def test_facts_rule() -> None:
    analysis = classify_intent("Tell me about the Eiffel Tower")
    assert analysis.intent == "facts"
    assert analysis.confidence == 0.8
    assert analysis.suggested_modules == ["facts"]
    assert analysis.entities == ["the Eiffel Tower"]


def test_coding_rule() -> None:
    analysis = classify_intent("How do I write a python decorator")
    assert analysis.intent == "coding"
    assert analysis.confidence == 0.85
    assert analysis.suggested_modules == ["coding"]


def test_personal_rule() -> None:
    analysis = classify_intent("My name is Alex")
    assert analysis.intent == "personal"
    assert analysis.confidence == 0.9
    assert analysis.suggested_modules == ["user-info"]
    assert analysis.entities == ["Alex"]


def test_philosophy_rule() -> None:
    analysis = classify_intent("Do we have free will")
    assert analysis.intent == "philosophy"
    assert analysis.confidence == 0.75
    assert analysis.suggested_modules == ["philosophy"]


@pytest.mark.parametrize("text", ["status", "help", "stats", "clear context", "run a system check"])
def test_system_rule(text: str) -> None:
    analysis = classify_intent(text)
    assert analysis.intent == "system"
    assert analysis.confidence == 0.95
    assert analysis.suggested_modules == []


# -- Ordering and fallback -------------------------------------------------------


def test_rule_order() -> None:
    assert [r.intent for r in INTENT_RULES] == [
        "mathematics",
        "vocabulary",
        "facts",
        "coding",
        "personal",
        "philosophy",
        "system",
    ]


def test_first_match_wins() -> None:
    # Matches both facts ("what is") and mathematics; mathematics comes first.
    assert match_rule("what is 2 + 2").intent == "mathematics"
    # "meaning of life" is philosophy, but "meaning of" is a vocabulary cue first.
    assert match_rule("what is the meaning of life").intent == "vocabulary"


def test_help_inside_sentence_is_not_system() -> None:
    assert classify_intent("can you help me with this").intent != "system"


def test_no_match_falls_back_to_general() -> None:
    analysis = classify_intent("blue bananas dancing")
    assert analysis.intent == "general"
    assert analysis.confidence == FALLBACK_CONFIDENCE
    assert analysis.suggested_modules == list(FALLBACK_MODULES)
    assert analysis.matched is False
    assert analysis.entities == ["blue", "bananas", "dancing"]


def test_context_is_attached() -> None:
    marker = object()
    assert classify_intent("hello", marker).context is marker


# -- Extractors ------------------------------------------------------------------


def test_extract_math_terms() -> None:
    assert extract_math_terms("12.5 + 3") == ["12.5", "3", "+"]


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("what does ephemeral mean", ["ephemeral"]),
        ("synonyms for happy", ["happy"]),
        ("how do you spell necessary", ["necessary"]),
        ("antonym", ["antonym"]),
    ],
)
def test_extract_vocabulary_target(text: str, expected: list[str]) -> None:
    assert extract_vocabulary_target(text) == expected


def test_extract_subject_strips_punctuation() -> None:
    assert extract_subject("Who was Ada Lovelace?") == ["Ada Lovelace"]


def test_extract_personal_details_empty() -> None:
    assert extract_personal_details("remember that I like tea") == []
