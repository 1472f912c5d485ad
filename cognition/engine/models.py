"""Response and failure types for the cognitive engine."""

from enum import StrEnum

from pydantic import BaseModel, Field

ENGINE_SOURCE = "cognitive-engine"


class FailureReason(StrEnum):
    """Recovered conditions that lead to a fallback or a degraded answer."""

    CLASSIFICATION_MISS = "classification_miss"
    MODULE_TIMEOUT = "module_timeout"
    MODULE_FAILURE = "module_failure"
    NO_MODULES = "no_modules"
    NO_CONFIDENT_ANSWER = "no_confident_answer"
    PERSISTENCE_FAILURE = "persistence_failure"
    INTERNAL_ERROR = "internal_error"
    SHUTDOWN = "shutdown"
    SYSTEM_COMMAND = "system_command"

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]


_DESCRIPTIONS = {
    FailureReason.CLASSIFICATION_MISS: "no intent rule matched the input",
    FailureReason.MODULE_TIMEOUT: "a knowledge module timed out",
    FailureReason.MODULE_FAILURE: "a knowledge module failed",
    FailureReason.NO_MODULES: "no knowledge modules are available",
    FailureReason.NO_CONFIDENT_ANSWER: "no module produced a confident answer",
    FailureReason.PERSISTENCE_FAILURE: "learned patterns could not be saved",
    FailureReason.INTERNAL_ERROR: "an internal error occurred",
    FailureReason.SHUTDOWN: "the engine is shutting down",
    FailureReason.SYSTEM_COMMAND: "system command handled by the engine",
}


class EngineResponse(BaseModel):
    """The answer returned by ``CognitiveEngine.process_input``."""

    response: str
    confidence: float
    sources: list[str] = Field(default_factory=list)
    reasoning: list[str] = Field(default_factory=list)
    intent: str = "general"
    chain_id: str | None = None
    fallback: bool = False
