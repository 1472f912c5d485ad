"""Deterministic answers that need no knowledge module.

Everything here is plain pattern matching and integer/float arithmetic, so
building a fallback response cannot fail.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from cognition.engine.models import ENGINE_SOURCE, EngineResponse, FailureReason

if TYPE_CHECKING:
    from collections.abc import Sequence

GREETING_CONFIDENCE = 0.9
HELP_CONFIDENCE = 0.9
STATUS_CONFIDENCE = 0.9
ARITHMETIC_CONFIDENCE = 0.95
GENERIC_CONFIDENCE = 0.3

CAPABILITIES = (
    "arithmetic such as '12 + 5'",
    "word definitions",
    "facts about people, places and things",
    "coding questions",
    "philosophy discussions",
    "remembering things you tell me about yourself",
)

_GREETING_RE = re.compile(
    r"^\s*(?:hi|hello|hey|howdy|greetings|good (?:morning|afternoon|evening))\b",
    re.IGNORECASE,
)
_HELP_RE = re.compile(r"\b(?:help|what can you do|how do you work)\b", re.IGNORECASE)
_STATUS_RE = re.compile(
    r"\b(?:status|stats|diagnostics?|system check|how are you|"
    r"are you (?:ok|okay|working|online))\b",
    re.IGNORECASE,
)
_ARITHMETIC_RE = re.compile(
    r"^\s*(?:what(?:'s| is)|calculate|compute|solve)?\s*"
    r"(-?\d+(?:\.\d+)?)\s*([-+*/x×÷])\s*(-?\d+(?:\.\d+)?)\s*[?=.!]*\s*$",
    re.IGNORECASE,
)

_OPERATOR_SYMBOLS = {"x": "*", "×": "*", "÷": "/"}


def _number(token: str) -> int | float:
    return float(token) if "." in token else int(token)


def _format(value: int | float) -> str:
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return str(round(value, 10))
    return str(value)


def evaluate_arithmetic(text: str) -> tuple[str, int | float | None] | None:
    """Evaluate a single-operator expression such as ``12 + 5``.

    Returns ``(expression, result)``, with ``result`` None for division by
    zero, or None when *text* is not a single-operator expression.
    """
    match = _ARITHMETIC_RE.match(text)
    if match is None:
        return None
    left_raw, op, right_raw = match.groups()
    op = _OPERATOR_SYMBOLS.get(op.lower(), op)
    left, right = _number(left_raw), _number(right_raw)
    expression = f"{left_raw} {op} {right_raw}"

    if op == "+":
        return expression, left + right
    if op == "-":
        return expression, left - right
    if op == "*":
        return expression, left * right
    if right == 0:
        return expression, None
    return expression, left / right


def build_fallback(
    text: str,
    reason: FailureReason,
    *,
    modules: Sequence[str] = (),
    detail: str | None = None,
) -> EngineResponse:
    """Answer *text* without any knowledge module."""
    reasoning = [f"Fallback response: {reason.description}"]
    if detail:
        reasoning.append(detail)

    def respond(message: str, confidence: float, intent: str, handler: str) -> EngineResponse:
        return EngineResponse(
            response=message,
            confidence=confidence,
            sources=[ENGINE_SOURCE],
            reasoning=[*reasoning, f"Handled by the {handler} fallback"],
            intent=intent,
            fallback=True,
        )

    if _GREETING_RE.search(text):
        return respond(
            "Hello! I'm here to help. Ask me a question, or type 'help' to see what I can do.",
            GREETING_CONFIDENCE,
            "greeting",
            "greeting",
        )

    if _HELP_RE.search(text):
        lines = "\n".join(f"- {c}" for c in CAPABILITIES)
        return respond(f"Here's what I can help with:\n{lines}", HELP_CONFIDENCE, "system", "help")

    if _STATUS_RE.search(text):
        loaded = ", ".join(modules) if modules else "none"
        return respond(
            f"All systems are running. Knowledge modules loaded: {loaded}.",
            STATUS_CONFIDENCE,
            "system",
            "status",
        )

    evaluated = evaluate_arithmetic(text)
    if evaluated is not None:
        expression, result = evaluated
        if result is None:
            message = f"{expression} has no answer: division by zero is undefined."
        else:
            message = f"{expression} = {_format(result)}"
        return respond(message, ARITHMETIC_CONFIDENCE, "mathematics", "arithmetic")

    capabilities = "; ".join(CAPABILITIES)
    return respond(
        f"I'm not sure I understood that. Here's what I can do: {capabilities}.",
        GENERIC_CONFIDENCE,
        "general",
        "generic",
    )
