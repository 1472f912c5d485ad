"""Data models for reasoning chains."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class StepCategory(StrEnum):
    INPUT_ANALYSIS = "input_analysis"
    CONTEXT_INTEGRATION = "context_integration"
    RESPONSE_ANALYSIS = "response_analysis"
    VALIDATION = "validation"
    CONCLUSION = "conclusion"


class ReasoningStep(BaseModel):
    """One judgment in a reasoning chain."""

    index: int
    category: StepCategory
    description: str
    inputs: dict[str, Any] = Field(default_factory=dict)
    outputs: dict[str, Any] = Field(default_factory=dict)
    confidence: float
    justification: str = ""

    @property
    def text(self) -> str:
        return f"{self.description} {self.justification}"


class ReasoningChain(BaseModel):
    """An ordered, explainable trace behind one answer."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    input: str
    steps: list[ReasoningStep] = Field(default_factory=list)
    conclusion: str = ""
    confidence: float = 0.0
    sources: list[str] = Field(default_factory=list)
    created_at: datetime
    processing_time: float = 0.0

    def step(self, category: StepCategory) -> ReasoningStep | None:
        """First step of the given category, if any."""
        return next((s for s in self.steps if s.category == category), None)
