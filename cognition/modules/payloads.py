"""Closed set of payload shapes a knowledge module can answer with."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class TextAnswer:
    text: str


@dataclass(frozen=True)
class NumericResult:
    value: float | int | str
    expression: str = ""


@dataclass(frozen=True)
class DefinitionResult:
    definition: str
    term: str = ""


@dataclass(frozen=True)
class RawPayload:
    data: Any


Payload = TextAnswer | NumericResult | DefinitionResult | RawPayload

_PAYLOAD_TYPES = (TextAnswer, NumericResult, DefinitionResult, RawPayload)


def coerce_payload(data: Any) -> Payload:
    """Map a module's raw answer onto a payload variant.

    Recognised shapes: plain text, ``{"answer": ...}``, ``{"definition": ...}``,
    ``{"result": ...}`` and ``{"content": ...}``. Anything else is kept as
    ``RawPayload``.
    """
    if isinstance(data, _PAYLOAD_TYPES):
        return data
    if isinstance(data, str):
        return TextAnswer(data)
    if isinstance(data, dict):
        if data.get("answer"):
            return TextAnswer(str(data["answer"]))
        if data.get("definition"):
            return DefinitionResult(
                definition=str(data["definition"]),
                term=str(data.get("word") or data.get("term") or ""),
            )
        if data.get("result") is not None:
            return NumericResult(value=data["result"], expression=str(data.get("expression", "")))
        if data.get("content"):
            return TextAnswer(str(data["content"]))
    return RawPayload(data)


def _format_number(value: float | int | str) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def render_payload(payload: Payload) -> str:
    """Turn a payload into response text."""
    match payload:
        case TextAnswer(text=text):
            return text
        case DefinitionResult(definition=definition, term=term):
            return f"{term}: {definition}" if term else definition
        case NumericResult(value=value, expression=expression):
            result = _format_number(value)
            return f"{expression} = {result}" if expression else result
        case RawPayload(data=data):
            if data is None:
                return ""
            return json.dumps(data, indent=2, default=str)
