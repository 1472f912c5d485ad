"""Tests for LearningEngine — intake, sweeps, persistence."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from conftest import FakeClock

import cognition.learning.engine as learning_engine_module
from cognition.config import Settings
from cognition.learning import LearningEngine, PatternType
from cognition.learning.engine import PATTERN_SWEEP, PERSISTENCE_SWEEP
from cognition.learning.models import pattern_id


@pytest.fixture
def engine(clock: FakeClock) -> LearningEngine:
    return LearningEngine(config=Settings(), clock=clock)


def _learn(engine: LearningEngine, text: str = "define joy", confidence: float = 0.9, **kwargs):
    return engine.learn_from_interaction(
        text,
        kwargs.pop("response", "joy: a feeling of great pleasure"),
        confidence,
        kwargs.pop("source", "vocabulary"),
        **kwargs,
    )


# -- Intake ----------------------------------------------------------------------


def test_high_confidence_extracts_immediately(engine: LearningEngine) -> None:
    interaction = _learn(engine, confidence=0.9)
    assert interaction.extracted is True
    assert engine.queue_size == 1
    shape = pattern_id(PatternType.INPUT_SHAPE, "definition_request")
    assert [p.id for p in engine.get_patterns(PatternType.INPUT_SHAPE)] == [shape]
    assert engine.get_learning_stats()["immediate_extractions"] == 1


def test_low_confidence_waits_for_sweep(engine: LearningEngine) -> None:
    interaction = _learn(engine, confidence=0.5)
    assert interaction.extracted is False
    assert engine.get_patterns() == []

    assert engine.run_pattern_sweep() == 1
    assert interaction.extracted is True
    assert engine.get_patterns(PatternType.INPUT_SHAPE)
    assert engine.queue_size == 0


def test_confidence_is_clamped(engine: LearningEngine) -> None:
    assert _learn(engine, confidence=1.7).confidence == 1.0


def test_queue_is_bounded(clock: FakeClock) -> None:
    engine = LearningEngine(config=Settings(learning_queue_size=3), clock=clock)
    for i in range(5):
        _learn(engine, f"question {i}", confidence=0.1)
    assert engine.queue_size == 3
    assert engine.get_learning_stats()["total_interactions"] == 5


# -- Pattern statistics ----------------------------------------------------------


def test_pattern_confidence_is_cumulative_mean(engine: LearningEngine) -> None:
    samples = [0.9, 0.8, 0.85, 0.7, 0.95]
    for sample in samples:
        _learn(engine, "define joy", confidence=sample)
    engine.flush_queue()

    shape = next(
        p for p in engine.get_patterns(PatternType.INPUT_SHAPE) if p.key == "definition_request"
    )
    assert shape.occurrences == 5
    assert shape.confidence == pytest.approx(sum(samples) / len(samples))
    assert shape.confidence == pytest.approx(0.84)
    assert shape.sources == {"vocabulary": 5}


def test_occurrences_only_increase(engine: LearningEngine, clock: FakeClock) -> None:
    seen = []
    for i in range(4):
        _learn(engine, "define joy", confidence=0.9)
        clock.advance(1)
        seen.append(engine.get_patterns(PatternType.INPUT_SHAPE)[0].occurrences)
    assert seen == sorted(seen)
    assert seen[-1] == 4


def test_examples_are_capped(clock: FakeClock) -> None:
    engine = LearningEngine(config=Settings(pattern_example_limit=3), clock=clock)
    for i in range(5):
        _learn(engine, f"define word{i}", confidence=0.9)
    shape = engine.get_patterns(PatternType.INPUT_SHAPE)[0]
    assert shape.examples == ["define word2", "define word3", "define word4"]


def test_sweep_runs_deep_analysis(engine: LearningEngine) -> None:
    _learn(engine, "what is the speed of light", confidence=0.9, source="facts")
    _learn(engine, "what is the speed of light exactly", confidence=0.9, source="facts")
    engine.run_pattern_sweep()

    keys = {p.id for p in engine.get_patterns()}
    assert pattern_id(PatternType.SIMILARITY, "similar_light_speed") in keys
    assert pattern_id(PatternType.SUCCESS, "facts_success") in keys
    assert pattern_id(PatternType.TEMPORAL, "morning_weekday") in keys


def test_sweep_processes_one_batch(clock: FakeClock) -> None:
    engine = LearningEngine(config=Settings(pattern_batch_size=2), clock=clock)
    for i in range(5):
        _learn(engine, f"question {i}", confidence=0.5)
    assert engine.run_pattern_sweep() == 2
    assert engine.queue_size == 3
    assert engine.flush_queue() == 3
    assert engine.get_learning_stats()["processed"] == 5


def test_sweep_skips_failing_items(engine: LearningEngine, monkeypatch) -> None:
    good = _learn(engine, "define joy", confidence=0.5)
    bad = _learn(engine, "define sorrow", confidence=0.5)

    real_deep_keys = learning_engine_module.deep_keys

    def flaky(interaction, peers, threshold):
        if interaction is bad:
            raise RuntimeError("boom")
        return real_deep_keys(interaction, peers, threshold)

    monkeypatch.setattr(learning_engine_module, "deep_keys", flaky)
    assert engine.run_pattern_sweep() == 1
    assert good.extracted is True
    assert engine.get_learning_stats()["failed_items"] == 1


def test_stale_patterns_are_pruned(engine: LearningEngine, clock: FakeClock) -> None:
    _learn(engine, "define joy", confidence=0.9)
    for _ in range(3):
        _learn(engine, "thanks", confidence=0.9)
    clock.advance(days=8)

    pruned = engine.prune_stale_patterns()
    ids = {p.id for p in engine.get_patterns()}
    assert pruned > 0
    assert pattern_id(PatternType.INPUT_SHAPE, "definition_request") not in ids
    assert pattern_id(PatternType.INPUT_SHAPE, "gratitude_expression") in ids


# -- Reads -----------------------------------------------------------------------


def test_stats_are_idempotent(engine: LearningEngine) -> None:
    _learn(engine, confidence=0.9)
    _learn(engine, confidence=0.3)
    first = engine.get_learning_stats()
    second = engine.get_learning_stats()
    assert first == second
    assert first["total_interactions"] == 2
    assert first["average_confidence"] == pytest.approx(0.6)
    assert first["queue_size"] == 2


def test_get_patterns_returns_copies(engine: LearningEngine) -> None:
    _learn(engine, confidence=0.9)
    pattern = engine.get_patterns()[0]
    pattern.occurrences = 99
    assert engine.get_patterns()[0].occurrences == 1


def test_top_patterns_ranked_by_occurrences(engine: LearningEngine) -> None:
    _learn(engine, "thanks", confidence=0.95)
    _learn(engine, "thanks again", confidence=0.95)
    _learn(engine, "define joy", confidence=0.85)
    top = engine.get_top_patterns(limit=2)
    assert len(top) == 2
    assert top[0].occurrences >= top[1].occurrences
    assert top[0].occurrences == 2


def test_find_similar_and_recommendations(engine: LearningEngine) -> None:
    _learn(engine, "define serendipity", confidence=0.9, source="vocabulary")
    similar = engine.find_similar_patterns("define serendipity please")
    assert similar
    assert similar[0][1] > 0
    assert engine.get_recommendations("define serendipity please") == ["Try the vocabulary module"]
    assert engine.get_recommendations("zzz") == []


def test_reset(engine: LearningEngine) -> None:
    _learn(engine, confidence=0.9)
    engine.reset()
    assert engine.get_patterns() == []
    assert engine.queue_size == 0
    assert engine.get_learning_stats()["total_interactions"] == 0


# -- Persistence -----------------------------------------------------------------


async def test_persist_success(clock: FakeClock) -> None:
    store = AsyncMock()
    store.save_patterns.return_value = True
    engine = LearningEngine(store=store, config=Settings(), clock=clock)
    _learn(engine, confidence=0.9)

    outcome = await engine.persist()
    assert outcome.ok is True
    assert outcome.pattern_count == len(engine.get_patterns())
    key, payload = store.save_patterns.call_args.args
    assert key == "learning_patterns"
    assert set(payload) == {"patterns", "stats", "saved_at"}


async def test_persist_failure_is_observable_and_retried(clock: FakeClock) -> None:
    store = AsyncMock()
    store.save_patterns.side_effect = [OSError("disk full"), True]
    engine = LearningEngine(store=store, config=Settings(), clock=clock)
    _learn(engine, confidence=0.9)
    before = engine.get_patterns()

    failed = await engine.persist()
    assert failed.ok is False
    assert failed.error == "disk full"
    assert engine.last_persistence is failed
    assert engine.get_patterns() == before
    assert engine.get_learning_stats()["persistence"]["failures"] == 1

    retried = await engine.persist()
    assert retried.ok is True
    assert engine.get_learning_stats()["persistence"]["last_ok"] is True


async def test_reset_forgets_persistence_history(clock: FakeClock) -> None:
    store = AsyncMock()
    store.save_patterns.side_effect = OSError("disk full")
    engine = LearningEngine(store=store, config=Settings(), clock=clock)
    await engine.persist()
    assert engine.get_learning_stats()["persistence"]["failures"] == 1

    engine.reset()

    assert engine.last_persistence is None
    assert engine.get_learning_stats()["persistence"] == {
        "last_ok": None,
        "last_at": None,
        "failures": 0,
    }


async def test_persist_store_reports_false(clock: FakeClock) -> None:
    store = AsyncMock()
    store.save_patterns.return_value = False
    engine = LearningEngine(store=store, config=Settings(), clock=clock)
    outcome = await engine.persist()
    assert outcome.ok is False
    assert outcome.error == "store reported failure"


async def test_persist_without_store(engine: LearningEngine) -> None:
    outcome = await engine.persist()
    assert outcome.ok is False


async def test_load_skips_invalid_patterns(clock: FakeClock) -> None:
    source = LearningEngine(config=Settings(), clock=clock)
    _learn(source, confidence=0.9)
    saved = {p.id: p.model_dump(mode="json") for p in source.get_patterns()}
    saved["broken"] = {"id": "broken"}

    store = AsyncMock()
    store.load_patterns.return_value = {"patterns": saved}
    engine = LearningEngine(store=store, config=Settings(), clock=clock)

    assert await engine.load() == len(saved) - 1
    assert {p.id for p in engine.get_patterns()} == {p.id for p in source.get_patterns()}


async def test_load_survives_store_errors(clock: FakeClock) -> None:
    store = AsyncMock()
    store.load_patterns.side_effect = RuntimeError("gone")
    engine = LearningEngine(store=store, config=Settings(), clock=clock)
    assert await engine.load() == 0


# -- Lifecycle -------------------------------------------------------------------


async def test_start_registers_sweeps(clock: FakeClock) -> None:
    scheduler = MagicMock()
    engine = LearningEngine(store=AsyncMock(), scheduler=scheduler, config=Settings(), clock=clock)
    await engine.start()

    names = [c.args[0] for c in scheduler.add_sweep.call_args_list]
    assert names == [PATTERN_SWEEP, PERSISTENCE_SWEEP]
    scheduler.start.assert_called_once()


async def test_start_without_store_skips_persistence_sweep(clock: FakeClock) -> None:
    scheduler = MagicMock()
    engine = LearningEngine(scheduler=scheduler, config=Settings(), clock=clock)
    await engine.start()
    names = [c.args[0] for c in scheduler.add_sweep.call_args_list]
    assert names == [PATTERN_SWEEP]


async def test_stop_persists_once_more(clock: FakeClock) -> None:
    scheduler = MagicMock()
    store = AsyncMock()
    store.save_patterns.return_value = True
    engine = LearningEngine(store=store, scheduler=scheduler, config=Settings(), clock=clock)
    await engine.stop()
    scheduler.stop.assert_called_once()
    store.save_patterns.assert_awaited_once()
