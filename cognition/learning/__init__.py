"""Background learning from past interactions."""

from cognition.learning.engine import LearningEngine
from cognition.learning.models import (
    Interaction,
    LearningPattern,
    PatternType,
    PersistenceOutcome,
)
from cognition.learning.store import DurableStore, PatternStore
from cognition.learning.sweeps import SweepScheduler

__all__ = [
    "DurableStore",
    "Interaction",
    "LearningEngine",
    "LearningPattern",
    "PatternStore",
    "PatternType",
    "PersistenceOutcome",
    "SweepScheduler",
]
