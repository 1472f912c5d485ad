"""Tests for module-independent fallback responses."""

import pytest

from cognition.engine import ENGINE_SOURCE, FailureReason, build_fallback, evaluate_arithmetic


def _fallback(text: str, **kwargs):
    return build_fallback(text, FailureReason.NO_MODULES, **kwargs)


# -- Handlers ------------------------------------------------------------------


def test_greeting() -> None:
    result = _fallback("hello")
    assert result.confidence == 0.9
    assert result.response.startswith("Hello!")
    assert result.intent == "greeting"


def test_help() -> None:
    result = _fallback("what can you do?")
    assert result.confidence == 0.9
    assert "arithmetic" in result.response


def test_status_lists_modules() -> None:
    result = _fallback("status", modules=["facts", "mathematics"])
    assert result.confidence == 0.9
    assert "facts, mathematics" in result.response


def test_status_without_modules() -> None:
    assert "loaded: none" in _fallback("system check").response


def test_arithmetic() -> None:
    result = _fallback("12 + 5")
    assert result.confidence == 0.95
    assert result.response == "12 + 5 = 17"
    assert "17" in result.response


def test_division_by_zero_in_words() -> None:
    result = _fallback("what is 4 / 0?")
    assert result.confidence == 0.95
    assert "division by zero" in result.response


def test_generic() -> None:
    result = _fallback("blorp")
    assert result.confidence == 0.3
    assert "not sure" in result.response
    assert result.intent == "general"


# -- Shared shape ----------------------------------------------------------------


@pytest.mark.parametrize("text", ["hi", "help", "status", "3 * 3", "??"])
def test_fallback_shape(text: str) -> None:
    result = _fallback(text)
    assert result.sources == [ENGINE_SOURCE]
    assert result.fallback is True
    assert result.reasoning[0] == f"Fallback response: {FailureReason.NO_MODULES.description}"


def test_detail_is_added_to_reasoning() -> None:
    result = build_fallback("x", FailureReason.MODULE_TIMEOUT, detail="facts timed out")
    assert "facts timed out" in result.reasoning


# -- evaluate_arithmetic -------------------------------------------------------


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("12 + 5", ("12 + 5", 17)),
        ("What is 15 * 8?", ("15 * 8", 120)),
        ("calculate 10 - 25", ("10 - 25", -15)),
        ("7 / 2", ("7 / 2", 3.5)),
        ("6 x 7", ("6 * 7", 42)),
        ("9 ÷ 3", ("9 / 3", 3.0)),
        ("1.5 + 1.5", ("1.5 + 1.5", 3.0)),
        ("8 / 0", ("8 / 0", None)),
    ],
)
def test_evaluate_arithmetic(text: str, expected) -> None:
    assert evaluate_arithmetic(text) == expected


@pytest.mark.parametrize("text", ["1 + 2 + 3", "what is love", "2 +", ""])
def test_evaluate_arithmetic_rejects(text: str) -> None:
    assert evaluate_arithmetic(text) is None
