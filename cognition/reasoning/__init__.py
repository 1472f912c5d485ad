"""Explainable reasoning chains built around module responses."""

from cognition.reasoning.engine import ReasoningEngine
from cognition.reasoning.models import ReasoningChain, ReasoningStep, StepCategory

__all__ = ["ReasoningChain", "ReasoningEngine", "ReasoningStep", "StepCategory"]
