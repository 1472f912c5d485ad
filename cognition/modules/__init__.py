"""Knowledge module contract, payload variants and registry."""

from cognition.modules.base import KnowledgeModule, ModuleResponse
from cognition.modules.payloads import (
    DefinitionResult,
    NumericResult,
    Payload,
    RawPayload,
    TextAnswer,
    coerce_payload,
    render_payload,
)
from cognition.modules.registry import FunctionModule, ModuleRegistry

__all__ = [
    "DefinitionResult",
    "FunctionModule",
    "KnowledgeModule",
    "ModuleRegistry",
    "ModuleResponse",
    "NumericResult",
    "Payload",
    "RawPayload",
    "TextAnswer",
    "coerce_payload",
    "render_payload",
]
