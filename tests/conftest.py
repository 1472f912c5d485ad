"""Shared test fixtures."""

import asyncio
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from cognition.config import Settings
from cognition.modules.base import ModuleResponse

# A Monday morning
START = datetime(2025, 6, 2, 9, 0, tzinfo=UTC)


class FakeClock:
    """Manually advanced clock for deterministic timing."""

    def __init__(self, start: datetime = START) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float = 0, **kwargs) -> datetime:
        self.now += timedelta(seconds=seconds, **kwargs)
        return self.now


class StaticModule:
    """Knowledge module that always returns the same answer."""

    def __init__(
        self,
        name: str,
        data=None,
        confidence: float = 0.9,
        *,
        success: bool = True,
        initialized: bool = True,
    ) -> None:
        self.name = name
        self.data = data if data is not None else f"{name} answer"
        self.confidence = confidence
        self.success = success
        self.initialized = initialized
        self.calls: list[str] = []

    async def process(self, text, context) -> ModuleResponse:
        self.calls.append(text)
        return ModuleResponse(
            source=self.name,
            success=self.success,
            confidence=self.confidence,
            data=self.data,
        )


class SlowModule(StaticModule):
    """Answers only after *delay* seconds."""

    def __init__(self, name: str, delay: float, **kwargs) -> None:
        super().__init__(name, **kwargs)
        self.delay = delay
        self.cancelled = False

    async def process(self, text, context) -> ModuleResponse:
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return await super().process(text, context)


class FailingModule(StaticModule):
    """Raises on every call."""

    async def process(self, text, context) -> ModuleResponse:
        self.calls.append(text)
        raise RuntimeError(f"{self.name} exploded")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def config(tmp_path: Path) -> Settings:
    """Settings with a temp database and a short module timeout."""
    return Settings(database_path=tmp_path / "cognition.db", module_timeout_seconds=0.2)
