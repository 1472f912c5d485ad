"""Tests for PatternStore — aiosqlite persistence."""

from pathlib import Path

import aiosqlite
import pytest

from cognition.learning import DurableStore, PatternStore


@pytest.fixture
async def store(tmp_path: Path) -> PatternStore:
    """Create a PatternStore backed by a temp database."""
    return PatternStore(db_path=tmp_path / "test.db")


def test_satisfies_protocol(store: PatternStore) -> None:
    assert isinstance(store, DurableStore)


async def test_load_missing_key(store: PatternStore) -> None:
    assert await store.load_patterns("nothing") == {"patterns": {}}


async def test_save_and_load(store: PatternStore) -> None:
    payload = {"patterns": {"success:facts_success": {"occurrences": 3}}, "stats": {"x": 1}}
    assert await store.save_patterns("learning", payload) is True
    assert await store.load_patterns("learning") == payload


async def test_save_overwrites(store: PatternStore) -> None:
    await store.save_patterns("learning", {"patterns": {"a": 1}})
    await store.save_patterns("learning", {"patterns": {"b": 2}})
    assert (await store.load_patterns("learning"))["patterns"] == {"b": 2}


async def test_keys_are_independent(store: PatternStore) -> None:
    await store.save_patterns("one", {"patterns": {"a": 1}})
    await store.save_patterns("two", {"patterns": {"b": 2}})
    assert (await store.load_patterns("one"))["patterns"] == {"a": 1}


async def test_creates_parent_directory(tmp_path: Path) -> None:
    store = PatternStore(db_path=tmp_path / "nested" / "dir" / "test.db")
    assert await store.save_patterns("k", {"patterns": {}}) is True
    assert (tmp_path / "nested" / "dir" / "test.db").exists()


async def test_invalid_json_is_ignored(tmp_path: Path) -> None:
    db_path = tmp_path / "test.db"
    store = PatternStore(db_path=db_path)
    await store.save_patterns("k", {"patterns": {}})
    async with aiosqlite.connect(str(db_path)) as db:
        await db.execute("UPDATE learning_patterns SET payload = 'not json' WHERE key = 'k'")
        await db.commit()
    assert await store.load_patterns("k") == {"patterns": {}}


async def test_save_failure_returns_false(tmp_path: Path) -> None:
    # A directory where the database file should be cannot be opened.
    db_path = tmp_path / "db"
    db_path.mkdir()
    store = PatternStore(db_path=db_path)
    assert await store.save_patterns("k", {"patterns": {}}) is False
