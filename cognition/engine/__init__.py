"""The cognitive engine: request queue, module dispatch, synthesis and fallbacks."""

from cognition.engine.cognitive import CognitiveEngine
from cognition.engine.fallback import build_fallback, evaluate_arithmetic
from cognition.engine.models import ENGINE_SOURCE, EngineResponse, FailureReason

__all__ = [
    "ENGINE_SOURCE",
    "CognitiveEngine",
    "EngineResponse",
    "FailureReason",
    "build_fallback",
    "evaluate_arithmetic",
]
